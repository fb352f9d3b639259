#!/usr/bin/env python3
"""
Check connectivity to the configured PostgreSQL database

Uses the same retry logic as the API and prints the server version plus
row counts for the core tables.

Usage:
    python3 check_db_connection.py [--url postgresql://...]
"""
import argparse
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from dotenv import load_dotenv

load_dotenv()

import psycopg2

from smartstore.core.database import get_db_connection_with_retry

CORE_TABLES = ["organizations", "users", "products", "customers", "orders", "workflows"]


def main(database_url=None) -> int:
    print("=" * 70)
    print("  🔌 SMARTSTORE DATABASE CHECK")
    print("=" * 70)

    try:
        conn = get_db_connection_with_retry(database_url, max_retries=3, dict_cursor=True)
    except (psycopg2.Error, ValueError) as e:
        print(f"\n❌ Connection failed: {e}")
        return 1

    try:
        cursor = conn.cursor()
        cursor.execute("SELECT version() AS version")
        print(f"\n✅ Connected: {cursor.fetchone()['version']}")

        print("\n  📊 Row counts:")
        for table in CORE_TABLES:
            try:
                cursor.execute(f"SELECT COUNT(*) AS total FROM {table}")
                print(f"    {table:15s}: {cursor.fetchone()['total']:6d}")
            except psycopg2.Error as e:
                conn.rollback()
                print(f"    {table:15s}: ⚠️  {str(e).strip().splitlines()[0]}")
        cursor.close()
    finally:
        conn.close()

    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description='Check database connectivity')
    parser.add_argument('--url', default=None, help='Database URL (defaults to DATABASE_URL)')
    args = parser.parse_args()
    sys.exit(main(args.url))
