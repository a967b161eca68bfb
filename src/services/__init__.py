"""Services package - Backup and restore logic for Intake.

Architecture:
- Services: Stateless functions; each export or import is one unit of work
- Transactions: Managed via session_scope() context manager
- Exceptions: Consistent error handling via the BackupError hierarchy

Service Modules:
- bundle_codec: Bundle document <-> typed snapshot conversion
- dependency_order: Fixed collection write order
- upsert_writer: Insert-or-overwrite writes per collection
- user_remapper: Effective owner resolution and placeholder creation
- backup_service: run_export / run_import and file helpers

Infrastructure:
- exceptions: Custom exception classes for backup errors
- database: Session management and database utilities
- logging_utils: Structured operation logging
"""

from . import database

from .backup_service import (
    ExportResult,
    ImportResult,
    export_to_file,
    import_from_file,
    run_export,
    run_import,
    table_counts,
)
from .exceptions import (
    BackupError,
    InvalidDate,
    InvalidReference,
    MalformedBundle,
    OperationCancelled,
    RowError,
    RowWriteError,
    StoreUnavailable,
    UserResolutionFailed,
)

__all__ = [
    "database",
    "ExportResult",
    "ImportResult",
    "export_to_file",
    "import_from_file",
    "run_export",
    "run_import",
    "table_counts",
    "BackupError",
    "InvalidDate",
    "InvalidReference",
    "MalformedBundle",
    "OperationCancelled",
    "RowError",
    "RowWriteError",
    "StoreUnavailable",
    "UserResolutionFailed",
]
