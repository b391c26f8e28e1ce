"""
Script to add the seller rating tables and aggregate columns
Run this script to update an existing database schema
"""

import sys
from sqlalchemy import inspect, text
from app.database import engine
from app.models.post import Post
from app.models.rating import Rating


def run_migration():
    """Add aggregate columns to users and create the seller_ratings table"""

    print("Running migration: seller rating aggregates...")

    try:
        Post.__table__.create(bind=engine, checkfirst=True)
        Rating.__table__.create(bind=engine, checkfirst=True)
        print("✓ Ensured 'seller_ratings' table (unique seller/rater pair)")

        existing_columns = {column["name"] for column in inspect(engine).get_columns("users")}
        new_columns = {
            "total_ratings": "INTEGER NOT NULL DEFAULT 0",
            "positive_ratings": "INTEGER NOT NULL DEFAULT 0",
            "seller_rating": "FLOAT NOT NULL DEFAULT 0",
        }

        with engine.connect() as conn:
            for name, definition in new_columns.items():
                if name in existing_columns:
                    print(f"- Column '{name}' already present")
                    continue
                conn.execute(text(f"ALTER TABLE users ADD COLUMN {name} {definition}"))
                print(f"✓ Successfully added '{name}' column")

            conn.commit()

        print("\nMigration completed successfully!")
        print("Run fix_aggregates.py to backfill aggregates for existing ratings.")

    except Exception as e:
        print(f"✗ Error running migration: {e}")
        sys.exit(1)


if __name__ == "__main__":
    run_migration()
