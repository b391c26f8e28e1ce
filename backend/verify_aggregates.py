"""
Script to verify seller aggregate scores
Run periodically to ensure data integrity; exits non-zero when drift is found
"""

import sys
from app.config import settings
from app.core.logging import setup_logging
from app.database import SessionLocal
from app.services.aggregates import verify_all_seller_aggregates


def verify_aggregates() -> int:
    print("Verifying seller aggregate scores...\n")

    db = SessionLocal()
    try:
        report = verify_all_seller_aggregates(db)
    finally:
        db.close()

    print(f"Total sellers checked: {report.total_sellers}")
    print(f"Sellers with discrepancies: {report.sellers_with_discrepancies}\n")

    if not report.discrepancies:
        print("✓ All aggregate scores are correct!")
        return 0

    tolerance = settings.aggregate_score_tolerance
    for d in report.discrepancies:
        print(f"Seller: {d.seller_name} (ID: {d.seller_id})")
        for field_name in d.mismatched_fields(tolerance):
            stored = getattr(d.stored, field_name)
            actual = getattr(d.actual, field_name)
            if field_name == "seller_rating":
                print(f"  - {field_name}: stored={stored:.2f}, expected={actual:.2f}")
            else:
                print(f"  - {field_name}: stored={stored}, actual={actual}")
        print("")

    print("To fix discrepancies, run: python fix_aggregates.py")
    return 1


if __name__ == "__main__":
    setup_logging()
    try:
        sys.exit(verify_aggregates())
    except Exception as e:
        print(f"✗ Error verifying aggregates: {e}")
        sys.exit(1)
