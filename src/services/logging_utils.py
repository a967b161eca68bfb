"""Service layer logging utilities.

Provides structured logging functions for backup operations, enabling
consistent log format and context across export and import.

Usage:
    from src.services.logging_utils import get_service_logger, log_operation

    logger = get_service_logger(__name__)

    log_operation(
        logger,
        operation="run_import",
        outcome="success",
        effective_user_id="00000000-0000-0000-0000-000000000001",
        rows_written=42,
    )
"""

import logging
from typing import Any


def get_service_logger(name: str) -> logging.Logger:
    """
    Get a logger configured for service operations.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Logger instance under the 'intake.services' prefix.

    Example:
        >>> logger = get_service_logger(__name__)
        >>> logger.name
        'intake.services.backup_service'
    """
    if "." in name:
        name = name.split(".")[-1]
    return logging.getLogger(f"intake.services.{name}")


def log_operation(
    logger: logging.Logger,
    operation: str,
    outcome: str,
    level: int = logging.INFO,
    **context: Any,
) -> None:
    """
    Log a service operation with structured context.

    The context is passed via the 'extra' parameter for structured logging
    and is also rendered into the message so plain handlers show it.

    Args:
        logger: Logger instance to use
        operation: Operation name (e.g., "run_export", "run_import")
        outcome: Outcome description (e.g., "start", "success", "rolled_back")
        level: Log level (default: INFO)
        **context: Additional context fields
            Common fields:
            - user_id / effective_user_id: Owner being exported or imported
            - rows_written: Rows written by an import
            - collection: Collection being processed when an error occurred
            - error: Error message if outcome is an error

    Example:
        >>> log_operation(
        ...     logger,
        ...     operation="run_import",
        ...     outcome="rolled_back",
        ...     level=logging.WARNING,
        ...     collection="daily_activity",
        ...     rows_staged=12,
        ... )
    """
    extra = {
        "operation": operation,
        "outcome": outcome,
        **context,
    }
    details = " ".join(f"{key}={value}" for key, value in context.items())
    message = f"{operation}: {outcome}"
    if details:
        message = f"{message} {details}"
    logger.log(level, message, extra=extra)
