"""Service layer exception classes for the Intake backup engine.

Every failed export or import surfaces exactly one of these exceptions.
Row-level errors always abort the enclosing unit of work.

Exception Hierarchy:
    BackupError (base)
    ├── MalformedBundle
    ├── RowError
    │   ├── InvalidDate
    │   ├── InvalidReference
    │   └── RowWriteError
    ├── StoreUnavailable
    │   └── UserResolutionFailed
    └── OperationCancelled
"""

from typing import Optional


class BackupError(Exception):
    """Base exception for all export/import errors.

    Attributes:
        retryable: True when re-running the whole operation may succeed
    """

    retryable = False


class MalformedBundle(BackupError):
    """Raised when a document cannot be read as a bundle at all.

    The caller must fix the input; retrying is pointless.

    Example:
        >>> raise MalformedBundle("food_items must be an array")
        MalformedBundle: Malformed bundle: food_items must be an array
    """

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Malformed bundle: {reason}")


class RowError(BackupError):
    """Raised when one row of one collection cannot be written.

    Args:
        collection: Bundle collection name (e.g. "daily_activity")
        row_key: Identifier of the failing row (id, "user:date" or "#index")
        message: What went wrong

    Attributes:
        rows_staged: Rows written before the failure. Diagnostic only;
            none of them were committed.
    """

    def __init__(self, collection: str, row_key: Optional[str], message: str):
        self.collection = collection
        self.row_key = row_key
        self.message = message
        self.rows_staged = 0
        super().__init__(f"{collection}[{row_key}]: {message}")


class InvalidDate(RowError):
    """Raised when a row carries a date or timestamp that cannot be parsed.

    Example:
        >>> raise InvalidDate("daily_activity", "#0", "date", "2024-13-45")
        InvalidDate: daily_activity[#0]: invalid date for 'date': '2024-13-45'
    """

    def __init__(self, collection: str, row_key: Optional[str], field: str, value):
        self.field = field
        self.value = value
        super().__init__(collection, row_key, f"invalid date for '{field}': {value!r}")


class InvalidReference(RowError):
    """Raised when a row points at something that cannot exist.

    Covers foreign key violations reported by the store and unknown
    reference kinds on log entries and preset items.
    """

    pass


class RowWriteError(RowError):
    """Raised when the store rejects a row for any other constraint."""

    pass


class StoreUnavailable(BackupError):
    """Raised when the connection or transaction layer fails.

    Transient; the whole operation is safe to retry.
    """

    retryable = True

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.original_error = original_error
        super().__init__(f"Store unavailable: {message}")


class UserResolutionFailed(StoreUnavailable):
    """Raised when the effective owner row cannot be created."""

    def __init__(self, user_id: str, original_error: Optional[Exception] = None):
        self.user_id = user_id
        super().__init__(f"could not ensure user '{user_id}'", original_error)


class OperationCancelled(BackupError):
    """Raised when the caller cancels an in-flight import."""

    def __init__(self, collection: Optional[str] = None):
        self.collection = collection
        self.rows_staged = 0
        where = f" while writing {collection}" if collection else ""
        super().__init__(f"Operation cancelled{where}")
