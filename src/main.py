"""
Main entry point for the Intake backup tool.

This module reports the active configuration and hands the command line
over to the backup CLI, which initializes the database as needed.
"""

import logging
import sys

from src.services.database import close_connections
from src.utils.backup_cli import main as cli_main
from src.utils.config import get_config

logger = logging.getLogger(__name__)


def main(argv=None):
    """
    Main application entry point.

    Runs one CLI command and exits with its status code.
    """
    config = get_config()
    logger.debug(f"Intake backup ({config.environment}): {config.database_url}")

    try:
        status = cli_main(argv)
    finally:
        close_connections()

    sys.exit(status)


if __name__ == "__main__":
    main()
