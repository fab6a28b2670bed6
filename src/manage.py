"""RigShop database management CLI.

Creates and drops the SQL schema for the ordering domain. Only SQL providers
are touched; the default in-memory configuration makes both commands no-ops.

Usage:
    PROTEAN_ENV=production python src/manage.py setup-db   # Create all tables
    PROTEAN_ENV=production python src/manage.py drop-db    # Drop all tables
"""

import argparse
import sys

import structlog

from ordering.utils.logging import configure_logging

logger = structlog.get_logger(__name__)


def setup_database():
    from ordering.domain import ordering
    from ordering.utils.db import setup_db

    ordering.init()
    logger.info("Creating ordering database schema")
    setup_db(ordering)
    logger.info("Ordering schema ready")


def drop_database():
    from ordering.domain import ordering
    from ordering.utils.db import drop_db

    ordering.init()
    logger.info("Dropping ordering database schema")
    drop_db(ordering)
    logger.info("Ordering schema dropped")


def main(argv=None):
    parser = argparse.ArgumentParser(description="RigShop database management")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    args = parser.parse_args(argv)
    configure_logging()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
