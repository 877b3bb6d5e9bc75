"""Teashop database management CLI.

Creates or drops the schema for the database named by DATABASE_URL.

Usage:
    python src/manage.py setup-db   # Create all tables
    python src/manage.py drop-db    # Drop all tables
"""

import argparse
import dataclasses
import sys

from shared.db import drop_db, setup_db
from shared.domain import init_domain
from shared.logging import configure_logging
from shared.settings import Settings


def main(argv=None):
    parser = argparse.ArgumentParser(description="Teashop database management")
    parser.add_argument("--database-url", help="Override DATABASE_URL")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("setup-db", help="Create all database tables")
    drop_parser = subparsers.add_parser("drop-db", help="Drop all database tables")
    drop_parser.add_argument("--yes", action="store_true", help="Do not ask for confirmation")

    args = parser.parse_args(argv)

    settings = Settings.from_env()
    if args.database_url:
        settings = dataclasses.replace(settings, database_url=args.database_url)
    configure_logging(settings.env)
    domain = init_domain(settings)

    if args.command == "setup-db":
        print("Creating schema...")
        setup_db(domain)
        print("Done.")
    elif args.command == "drop-db":
        if not args.yes and input("Drop all teashop tables? [y/N] ").strip().lower() != "y":
            print("Aborted.")
            return 1
        drop_db(domain)
        print("Done.")
    else:
        parser.print_help()
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
