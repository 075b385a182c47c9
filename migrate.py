#!/usr/bin/env python3
"""
Migration management script for the CEART bookings service.
Provides convenient commands for database migrations.
"""

import argparse
import logging
import sys
from pathlib import Path

from alembic import command
from alembic.config import Config

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger("migrate")

BASE_DIR = Path(__file__).parent


def get_alembic_config() -> Config:
    alembic_config = Config(str(BASE_DIR / "alembic.ini"))
    alembic_config.set_main_option("script_location", str(BASE_DIR / "migrations"))
    return alembic_config


def run_command(description, func, *args, **kwargs) -> bool:
    """Run an alembic command and report the outcome."""
    logger.info(f"{description}...")
    try:
        func(get_alembic_config(), *args, **kwargs)
        logger.info(f"{description} completed successfully")
        return True
    except Exception as e:
        logger.error(f"{description} failed: {e}")
        return False


def create_migration(message):
    """Create a new migration."""
    return run_command(f"Creating migration: {message}", command.revision, message=message, autogenerate=True)


def upgrade_migration(revision="head"):
    """Apply migrations."""
    return run_command(f"Upgrading database to {revision}", command.upgrade, revision)


def downgrade_migration(revision):
    """Downgrade migrations."""
    return run_command(f"Downgrading database to {revision}", command.downgrade, revision)


def show_current_revision():
    """Show current database revision."""
    return run_command("Showing current database revision", command.current, verbose=True)


def show_migration_history():
    """Show migration history."""
    return run_command("Showing migration history", command.history)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="CEART Bookings Service Migration Manager")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    create_parser = subparsers.add_parser("create", help="Create a new migration")
    create_parser.add_argument("message", help="Migration message")

    upgrade_parser = subparsers.add_parser("upgrade", help="Apply migrations")
    upgrade_parser.add_argument("--revision", default="head", help="Target revision (default: head)")

    downgrade_parser = subparsers.add_parser("downgrade", help="Downgrade migrations")
    downgrade_parser.add_argument("revision", help="Target revision")

    subparsers.add_parser("current", help="Show current database revision")
    subparsers.add_parser("history", help="Show migration history")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    if args.command == "create":
        ok = create_migration(args.message)
    elif args.command == "upgrade":
        ok = upgrade_migration(args.revision)
    elif args.command == "downgrade":
        ok = downgrade_migration(args.revision)
    elif args.command == "current":
        ok = show_current_revision()
    else:
        ok = show_migration_history()

    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
