#!/usr/bin/env python3
"""
Compare row counts between two SmartStore databases

Handy after a migration or a restore: every core table must hold the same
number of rows in both databases.

Usage:
    python3 compare_databases.py --source postgresql://... --target postgresql://...
"""
import argparse
import os
import sys
from typing import Dict, Optional

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import psycopg2

from smartstore.core.database import get_db_connection_with_retry

TABLES = [
    "organizations",
    "users",
    "categories",
    "products",
    "inventory_movements",
    "customers",
    "orders",
    "order_items",
    "expenses",
    "vendors",
    "subscriptions",
    "conversations",
    "workflows",
    "workflow_executions",
]


def table_counts(database_url: str) -> Dict[str, Optional[int]]:
    """Row count per table; None when the table is missing"""
    conn = get_db_connection_with_retry(database_url, dict_cursor=True)
    counts = {}
    try:
        cursor = conn.cursor()
        for table in TABLES:
            try:
                cursor.execute(f"SELECT COUNT(*) AS total FROM {table}")
                counts[table] = cursor.fetchone()["total"]
            except psycopg2.Error:
                conn.rollback()
                counts[table] = None
        cursor.close()
    finally:
        conn.close()
    return counts


def main(source: str, target: str) -> int:
    source_counts = table_counts(source)
    target_counts = table_counts(target)

    differences = 0
    print(f"{'table':22s} {'source':>10s} {'target':>10s}")
    print("-" * 44)
    for table in TABLES:
        left, right = source_counts[table], target_counts[table]
        marker = "" if left == right else "  ❌"
        differences += left != right
        print(f"{table:22s} {str(left):>10s} {str(right):>10s}{marker}")

    if differences:
        print(f"\n❌ {differences} table(s) differ")
        return 1
    print("\n✅ Databases match")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description='Compare table counts between two databases')
    parser.add_argument('--source', required=True, help='Source database URL')
    parser.add_argument('--target', required=True, help='Target database URL')
    args = parser.parse_args()
    sys.exit(main(args.source, args.target))
