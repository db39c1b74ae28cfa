#!/usr/bin/env python3
"""
Student Review Portal — demo seed.

Creates the sample admin, staff and student accounts plus the sample title
corpus for the default department.

Usage:
    python scripts/seed_demo_data.py              # add to the existing DB
    python scripts/seed_demo_data.py --reset      # drop and recreate first
"""

import argparse

from review_portal import create_app
from review_portal.models import db
from review_portal.services.seed import seed_demo_data


def main():
    parser = argparse.ArgumentParser(description="Seed Student Review Portal demo data")
    parser.add_argument("--reset", action="store_true", help="Drop and recreate all tables")
    parser.add_argument("--department", default=None, help="Department for the sample titles")
    args = parser.parse_args()

    app = create_app()
    with app.app_context():
        if args.reset:
            print("Resetting database (drop_all + create_all)...")
            db.drop_all()
            db.create_all()

        summary = seed_demo_data(args.department or app.config["DEFAULT_DEPARTMENT"])
        print(f"Seeded {summary['users']} users and {summary['titles']} titles.")
        print("Send X-User-Id with one of the user ids above to call the API.")


if __name__ == "__main__":
    main()
