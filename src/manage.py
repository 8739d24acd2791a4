"""ReviewHub management CLI.

Creates and drops relational schemas, and bootstraps the first Admin
account (staff accounts are otherwise only provisioned by an Admin).

Usage:
    python src/manage.py setup-db                      # Create all tables
    python src/manage.py drop-db                       # Drop all tables
    python src/manage.py create-admin admin@example.com --name "Site Admin"
"""

import argparse
import sys


def setup_database():
    from reviewhub.domain import reviewhub
    from reviewhub.utils.db import setup_db

    print("Initializing reviewhub domain...")
    reviewhub.init()
    print("Creating reviewhub database schema...")
    setup_db(reviewhub)
    print("Done.")


def drop_database():
    from reviewhub.domain import reviewhub
    from reviewhub.utils.db import drop_db

    print("Initializing reviewhub domain...")
    reviewhub.init()
    print("Dropping reviewhub database schema...")
    drop_db(reviewhub)
    print("Done.")


def create_admin(email, full_name=None):
    from reviewhub.access.registration import bootstrap_admin
    from reviewhub.domain import reviewhub

    reviewhub.init()
    with reviewhub.domain_context():
        admin_id = bootstrap_admin(email, full_name)
    print(f"Admin account created: {admin_id}")
    return admin_id


def main():
    parser = argparse.ArgumentParser(description="ReviewHub management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    admin_parser = subparsers.add_parser("create-admin", help="Create an Admin account")
    admin_parser.add_argument("email")
    admin_parser.add_argument("--name", default=None, help="Full name")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "create-admin":
        create_admin(args.email, args.name)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
