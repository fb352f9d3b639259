#!/usr/bin/env python3
"""
Seed the SmartStore database with the demo organization

Creates tables (optionally dropping them first), then the demo tenant with
its users, catalog, customers, orders, expenses, plan and workflow.
Running it twice does not duplicate anything.

Usage:
    python3 seed_database.py [--reset] [--password SECRET]

Author: SmartStore
Date: 2025-11-12
"""
import argparse
import logging
import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from dotenv import load_dotenv

load_dotenv()

from smartstore.core.database import SessionLocal, init_db
from smartstore.services.seed_service import DEMO_PASSWORD, SeedService


def main(reset: bool, password: str) -> int:
    init_db(drop_existing=reset)
    print("✅ Tables ready" + (" (dropped and recreated)" if reset else ""))

    db = SessionLocal()
    try:
        created = SeedService(db, password).seed()
    finally:
        db.close()

    if not created:
        print("ℹ️  Demo data already present, nothing to do")
        return 0

    print("\n📦 Created:")
    for entity, count in sorted(created.items()):
        print(f"   {entity:15s} {count:4d}")
    print(f"\n🔑 Demo password for every seeded user: {password}")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description='Seed the SmartStore demo organization')
    parser.add_argument('--reset', action='store_true', help='Drop every table before seeding')
    parser.add_argument('--password', default=DEMO_PASSWORD, help='Password for the seeded users')
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    sys.exit(main(args.reset, args.password))
