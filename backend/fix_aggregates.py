"""
Script to backfill seller aggregate scores from the rating rows
"""

import sys
from app.core.logging import setup_logging
from app.database import SessionLocal
from app.services.aggregates import fix_all_seller_aggregates


def fix_aggregates():
    print("Recomputing out-of-sync seller aggregates...")

    db = SessionLocal()
    try:
        fixed = fix_all_seller_aggregates(db)
    finally:
        db.close()

    print(f"✓ Repaired aggregates for {fixed} sellers")


if __name__ == "__main__":
    setup_logging()
    try:
        fix_aggregates()
    except Exception as e:
        print(f"✗ Error fixing aggregates: {e}")
        sys.exit(1)
