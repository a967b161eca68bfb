"""
Backup CLI Utility

Command-line interface for exporting, importing and validating bundles.
No UI required - designed for scripted backups and testing use.

Usage Examples:
    # Export the default user's data
    python -m src.utils.backup_cli export intake_backup.json

    # Export a specific user's data
    python -m src.utils.backup_cli export backup.json --user-id 1b9d6bcd-...

    # Restore a backup into the user recorded in the file
    python -m src.utils.backup_cli import intake_backup.json

    # Restore a backup into a different account
    python -m src.utils.backup_cli import intake_backup.json --user-id 7c4a...

    # Check a bundle without touching the database
    python -m src.utils.backup_cli validate intake_backup.json
"""

import argparse
import logging
import os
import sys

from src.services.backup_service import export_to_file, import_from_file
from src.services.database import initialize_app_database
from src.services.exceptions import BackupError
from src.utils.bundle_validator import validate_bundle_file
from src.utils.config import ENV_ENVIRONMENT, Config, set_config


def export_bundle(output_file: str, user_id: str = None) -> int:
    """Export one user's data graph."""
    print(f"Exporting to {output_file}...")
    result = export_to_file(output_file, user_id=user_id)

    if result.success:
        print(result.get_summary())
        return 0
    else:
        print(f"ERROR: {result.error}")
        return 1


def import_bundle(input_file: str, user_id: str = None) -> int:
    """Import a bundle as one transaction."""
    print(f"Importing from {input_file}...")

    try:
        result = import_from_file(input_file, requested_user_id=user_id)
    except BackupError as e:
        print(f"ERROR: {e}")
        print("No changes were made.")
        return 1
    except OSError as e:
        print(f"ERROR: cannot read {input_file}: {e}")
        return 1

    print(result.get_summary())
    return 0


def validate_bundle(input_file: str) -> int:
    """Validate a bundle offline."""
    print(f"Validating {input_file}...")
    result = validate_bundle_file(input_file)
    print(result.get_summary())
    return 0 if result.valid else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="intake-backup",
        description="Backup and restore utility for Intake",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Export the default user's data:
    intake-backup export intake_backup.json

  Import into the user recorded in the file:
    intake-backup import intake_backup.json

  Import into another account:
    intake-backup import intake_backup.json --user-id <uuid>

  Check a bundle without touching the database:
    intake-backup validate intake_backup.json
""",
    )
    parser.add_argument(
        "--database-url",
        help="SQLAlchemy database URL (default: configured database)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    export_parser = subparsers.add_parser("export", help="Export one user's data")
    export_parser.add_argument("file", help="JSON file path")
    export_parser.add_argument("--user-id", help="User to export (default: configured user)")

    import_parser = subparsers.add_parser("import", help="Import a bundle atomically")
    import_parser.add_argument("file", help="JSON file path")
    import_parser.add_argument(
        "--user-id",
        help="Target owner (default: the user recorded in the bundle)",
    )

    validate_parser = subparsers.add_parser("validate", help="Validate a bundle offline")
    validate_parser.add_argument("file", help="JSON file path")

    return parser


def main(argv=None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Validation never touches the database
    if args.command == "validate":
        return validate_bundle(args.file)

    if args.database_url:
        environment = os.environ.get(ENV_ENVIRONMENT, "production")
        set_config(Config(environment, database_url=args.database_url))

    initialize_app_database()

    if args.command == "export":
        return export_bundle(args.file, user_id=args.user_id)
    elif args.command == "import":
        return import_bundle(args.file, user_id=args.user_id)
    else:
        print(f"Unknown command: {args.command}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
