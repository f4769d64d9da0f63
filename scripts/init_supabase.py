#!/usr/bin/env python3
"""
Standalone script to create the products table in Supabase.
Needs DATABASE_URL (the Postgres connection string from the Supabase dashboard).

Run this directly: python3 scripts/init_supabase.py [--seed]
"""
import argparse
import os
import sys
from datetime import date, timedelta
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.alerts import ALERT_DAYS_AHEAD, target_date_for
from core.config import DATABASE_URL, DEFAULT_PRODUCTS_TABLE
from core.db_connectors import create_products_table, get_engine, seed_products, test_connection


def sample_rows(today: date) -> list[dict[str, str]]:
    """A few products, one of them due for the next alert scan."""
    return [
        {"name": "Milk", "expiration_date": target_date_for(today)},
        {"name": "Yogurt", "expiration_date": target_date_for(today, ALERT_DAYS_AHEAD + 3)},
        {"name": "Cheese", "expiration_date": (today + timedelta(days=30)).isoformat()},
    ]


def init_supabase(seed: bool = False) -> bool:
    """Create the products table (and optionally sample rows) in Supabase."""
    if not DATABASE_URL:
        print("❌ Error: DATABASE_URL must be set in .env file")
        return False

    table = os.environ.get("PRODUCTS_TABLE", "").strip() or DEFAULT_PRODUCTS_TABLE
    print(f"🔗 Connecting to database: {DATABASE_URL.split('@')[-1][:40]}...")

    try:
        engine = get_engine(DATABASE_URL)

        if not test_connection(engine):
            print("❌ Error: Could not connect to Supabase")
            return False

        print("✅ Connected to Supabase")
        print(f"📊 Creating table '{table}'...")
        executed = create_products_table(engine, table)
        print(f"   ✅ {executed} statement(s) executed")

        if seed:
            print("\n🌱 Inserting sample data...")
            inserted = seed_products(engine, sample_rows(date.today()), table)
            print(f"   ✅ {inserted} product(s) inserted")

        print("\n✅ Setup complete!")
        return True

    except Exception as e:
        print(f"\n❌ Error: {e}")
        import traceback
        traceback.print_exc()
        return False


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the products table in Supabase")
    parser.add_argument("--seed", action="store_true", help="Insert sample products")
    args = parser.parse_args()

    success = init_supabase(seed=args.seed)
    sys.exit(0 if success else 1)
