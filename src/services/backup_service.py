"""
Backup Service - Export and import a user's full data graph.

Both operations run as one unit of work against the store. Export reads
every collection in dependency order and returns a complete bundle document;
import resolves the owner, upserts every collection in dependency order and
commits, or rolls back entirely on the first failure.

Usage:
    from src.services.backup_service import run_export, run_import

    document = run_export(user_id)
    result = run_import(document, requested_user_id="...")
    print(result.get_summary())
"""

import json
import logging
import threading
from pathlib import Path
from typing import Any, Dict, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.models import (
    BodyWeight,
    DailyActivity,
    FoodItem,
    LogEntry,
    Preset,
    PresetItem,
    Recipe,
    RecipeIngredient,
    RecipePortion,
    User,
)
from src.services.bundle_codec import (
    BodyWeightRecord,
    BundleSnapshot,
    DailyActivityRecord,
    FoodItemRecord,
    LogEntryRecord,
    PresetItemRecord,
    PresetRecord,
    RecipeIngredientRecord,
    RecipePortionRecord,
    RecipeRecord,
    decode,
    encode,
)
from src.services.database import session_scope
from src.services.dependency_order import collection_order
from src.services.exceptions import (
    BackupError,
    OperationCancelled,
    RowError,
    StoreUnavailable,
)
from src.services.logging_utils import get_service_logger, log_operation
from src.services.upsert_writer import WriteContext, write_snapshot
from src.services.user_remapper import ensure_user, resolve_effective_user
from src.utils.config import get_default_user_id
from src.utils.constants import BUNDLE_COLLECTIONS, BUNDLE_VERSION
from src.utils.datetime_utils import utc_now

logger = get_service_logger(__name__)

# Table behind every collection, users included
COLLECTION_MODELS = {
    "users": User,
    "food_items": FoodItem,
    "recipes": Recipe,
    "recipe_ingredients": RecipeIngredient,
    "recipe_portions": RecipePortion,
    "presets": Preset,
    "preset_items": PresetItem,
    "log_entries": LogEntry,
    "body_weights": BodyWeight,
    "daily_activity": DailyActivity,
}


# ============================================================================
# Result Classes
# ============================================================================


class ImportResult:
    """Result of a committed import with per-collection tracking."""

    def __init__(self, effective_user_id: str):
        self.effective_user_id = effective_user_id
        self.rows_written = 0
        self.user_created = False
        self.entity_counts: Dict[str, int] = {}

    def add_collection(self, collection: str, count: int):
        """Record rows written for one collection."""
        self.entity_counts[collection] = count
        self.rows_written += count

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": True,
            "imported_rows": self.rows_written,
            "effective_user_id": self.effective_user_id,
            "user_created": self.user_created,
            "entity_counts": dict(self.entity_counts),
        }

    def get_summary(self) -> str:
        """Get a user-friendly summary string of the import results."""
        lines = [
            "=" * 60,
            "Import Summary",
            "=" * 60,
            f"Owner: {self.effective_user_id}"
            + (" (placeholder created)" if self.user_created else ""),
            "",
        ]
        for collection, count in self.entity_counts.items():
            if count > 0:
                lines.append(f"  {collection}: {count}")
        lines.append("")
        lines.append(f"Rows Written: {self.rows_written}")
        lines.append("=" * 60)
        return "\n".join(lines)


class ExportResult:
    """Result of an export written to a file."""

    def __init__(self, file_path: str, record_count: int):
        self.file_path = file_path
        self.record_count = record_count
        self.success = True
        self.error = None
        self.entity_counts: Dict[str, int] = {}

    def add_entity_count(self, entity_type: str, count: int):
        """Add count for a specific entity type."""
        self.entity_counts[entity_type] = count

    def get_summary(self) -> str:
        """Get a summary string of the export results."""
        if not self.success:
            return f"Export failed: {self.error}"

        lines = [f"Exported {self.record_count} records to {self.file_path}"]

        if self.entity_counts:
            lines.append("")
            for entity, count in self.entity_counts.items():
                lines.append(f"  {entity}: {count}")

        return "\n".join(lines)


# ============================================================================
# Export
# ============================================================================


def _read_snapshot(session: Session, user_id: str) -> BundleSnapshot:
    """Read every collection for one user; food items are read globally."""
    snapshot = BundleSnapshot(version=BUNDLE_VERSION, exported_at=utc_now(), user_id=user_id)

    snapshot.food_items = [
        FoodItemRecord.from_model(item)
        for item in session.query(FoodItem).order_by(FoodItem.created_at, FoodItem.id)
    ]
    snapshot.recipes = [
        RecipeRecord.from_model(recipe)
        for recipe in session.query(Recipe)
        .filter(Recipe.user_id == user_id)
        .order_by(Recipe.created_at, Recipe.id)
    ]
    snapshot.recipe_ingredients = [
        RecipeIngredientRecord.from_model(ingredient)
        for ingredient in session.query(RecipeIngredient)
        .join(Recipe, Recipe.id == RecipeIngredient.recipe_id)
        .filter(Recipe.user_id == user_id)
        .order_by(RecipeIngredient.created_at, RecipeIngredient.id)
    ]
    snapshot.recipe_portions = [
        RecipePortionRecord.from_model(portion)
        for portion in session.query(RecipePortion)
        .join(Recipe, Recipe.id == RecipePortion.recipe_id)
        .filter(Recipe.user_id == user_id)
        .order_by(RecipePortion.created_at, RecipePortion.id)
    ]
    snapshot.presets = [
        PresetRecord.from_model(preset)
        for preset in session.query(Preset)
        .filter(Preset.user_id == user_id)
        .order_by(Preset.created_at, Preset.id)
    ]
    snapshot.preset_items = [
        PresetItemRecord.from_model(item)
        for item in session.query(PresetItem)
        .join(Preset, Preset.id == PresetItem.preset_id)
        .filter(Preset.user_id == user_id)
        .order_by(PresetItem.created_at, PresetItem.id)
    ]
    snapshot.log_entries = [
        LogEntryRecord.from_model(entry)
        for entry in session.query(LogEntry)
        .filter(LogEntry.user_id == user_id)
        .order_by(LogEntry.occurred_at, LogEntry.id)
    ]
    snapshot.body_weights = [
        BodyWeightRecord.from_model(weight)
        for weight in session.query(BodyWeight)
        .filter(BodyWeight.user_id == user_id)
        .order_by(BodyWeight.measured_at, BodyWeight.id)
    ]
    snapshot.daily_activity = [
        DailyActivityRecord.from_model(activity)
        for activity in session.query(DailyActivity)
        .filter(DailyActivity.user_id == user_id)
        .order_by(DailyActivity.date)
    ]
    return snapshot


def run_export(user_id: Optional[str] = None, session: Optional[Session] = None) -> Dict[str, Any]:
    """
    Export one user's data graph as a bundle document.

    Args:
        user_id: Owner to export; the configured default when None
        session: Optional session for transactional composition

    Returns:
        Bundle document (dict ready for json.dumps)

    Raises:
        StoreUnavailable: If any read fails. No partial document is returned.
    """
    user_id = user_id or get_default_user_id()
    log_operation(logger, operation="run_export", outcome="start", user_id=user_id)

    try:
        if session is not None:
            snapshot = _read_snapshot(session, user_id)
        else:
            with session_scope() as sess:
                snapshot = _read_snapshot(sess, user_id)
    except SQLAlchemyError as e:
        log_operation(
            logger,
            operation="run_export",
            outcome="error",
            level=logging.ERROR,
            user_id=user_id,
            error=str(e),
        )
        raise StoreUnavailable(f"export read failed: {e}", e)

    log_operation(logger, operation="run_export", outcome="success", user_id=user_id, **snapshot.counts())
    return encode(snapshot)


# ============================================================================
# Import
# ============================================================================


def _run_import_impl(
    snapshot: BundleSnapshot,
    effective_user_id: str,
    session: Session,
    cancel_event: Optional[threading.Event],
) -> ImportResult:
    result = ImportResult(effective_user_id)
    ctx = WriteContext(
        session=session,
        effective_user_id=effective_user_id,
        now=utc_now(),
        cancel_event=cancel_event,
    )

    ctx.check_cancelled("users")
    result.user_created = ensure_user(session, effective_user_id)

    try:
        write_snapshot(ctx, snapshot)
        ctx.check_cancelled()
    except (RowError, OperationCancelled) as e:
        e.rows_staged = ctx.rows_staged
        raise

    for name in collection_order():
        if name in BUNDLE_COLLECTIONS:
            result.add_collection(name, ctx.collection_counts.get(name, 0))
    return result


def run_import(
    document: Union[str, bytes, Dict[str, Any]],
    requested_user_id: Optional[str] = None,
    session: Optional[Session] = None,
    cancel_event: Optional[threading.Event] = None,
    default_user_id: Optional[str] = None,
) -> ImportResult:
    """
    Import a bundle atomically.

    Every owned row is written with one effective owner (requested user,
    else the bundle's user, else the default). Collections are written in
    dependency order no matter how the document lists them. Re-importing
    the same bundle overwrites rows in place and never duplicates them.

    When ``session`` is given the caller owns the transaction and must roll
    back on error; otherwise the import commits or rolls back on its own.

    Args:
        document: Bundle as JSON text/bytes or a decoded dictionary
        requested_user_id: Optional explicit target owner
        session: Optional session for transactional composition
        cancel_event: Optional event; setting it aborts and rolls back
        default_user_id: Fallback owner; the configured default when None

    Returns:
        ImportResult describing the committed import

    Raises:
        MalformedBundle: If the document is not a bundle
        InvalidDate: If a date or timestamp cannot be parsed
        InvalidReference: If a row violates a foreign key or has an unknown kind
        RowWriteError: If the store rejects a row for another reason
        StoreUnavailable: If the connection or transaction fails
        OperationCancelled: If ``cancel_event`` is set during the import
    """
    snapshot = decode(document)
    effective_user_id = resolve_effective_user(
        requested_user_id, snapshot.user_id, default_user_id
    )
    log_operation(
        logger,
        operation="run_import",
        outcome="start",
        requested_user_id=requested_user_id,
        bundle_user_id=snapshot.user_id,
        effective_user_id=effective_user_id,
        **snapshot.counts(),
    )

    try:
        if session is not None:
            result = _run_import_impl(snapshot, effective_user_id, session, cancel_event)
        else:
            with session_scope() as sess:
                result = _run_import_impl(snapshot, effective_user_id, sess, cancel_event)
    except (RowError, OperationCancelled) as e:
        log_operation(
            logger,
            operation="run_import",
            outcome="rolled_back",
            level=logging.WARNING,
            effective_user_id=effective_user_id,
            collection=e.collection,
            rows_staged=e.rows_staged,
            error=str(e),
        )
        raise
    except BackupError as e:
        log_operation(
            logger,
            operation="run_import",
            outcome="rolled_back",
            level=logging.ERROR,
            effective_user_id=effective_user_id,
            error=str(e),
        )
        raise
    except SQLAlchemyError as e:
        log_operation(
            logger,
            operation="run_import",
            outcome="rolled_back",
            level=logging.ERROR,
            effective_user_id=effective_user_id,
            error=str(e),
        )
        raise StoreUnavailable(f"import transaction failed: {e}", e)

    log_operation(
        logger,
        operation="run_import",
        outcome="success",
        effective_user_id=effective_user_id,
        rows_written=result.rows_written,
    )
    return result


# ============================================================================
# File Helpers
# ============================================================================


def export_to_file(file_path: str, user_id: Optional[str] = None) -> ExportResult:
    """
    Export one user's bundle to a JSON file.

    Args:
        file_path: Path to output JSON file
        user_id: Owner to export; the configured default when None

    Returns:
        ExportResult with per-collection counts, or success=False with error
    """
    result = ExportResult(file_path, 0)
    try:
        document = run_export(user_id)
        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(document, f, indent=2, ensure_ascii=False)
    except (BackupError, OSError) as e:
        logger.error(f"Export to {file_path} failed: {e}")
        result.success = False
        result.error = str(e)
        return result

    for name in BUNDLE_COLLECTIONS:
        count = len(document[name])
        result.add_entity_count(name, count)
        result.record_count += count
    return result


def import_from_file(
    file_path: str,
    requested_user_id: Optional[str] = None,
    cancel_event: Optional[threading.Event] = None,
) -> ImportResult:
    """
    Import a bundle from a JSON file.

    Raises:
        OSError: If the file cannot be read
        BackupError: As for run_import()
    """
    with open(file_path, "rb") as f:
        content = f.read()
    return run_import(content, requested_user_id=requested_user_id, cancel_event=cancel_event)


def table_counts(session: Optional[Session] = None) -> Dict[str, int]:
    """
    Count rows in every table, in dependency order.

    Args:
        session: Optional session for transactional composition

    Returns:
        Dictionary of collection name to row count
    """
    if session is not None:
        return {name: session.query(COLLECTION_MODELS[name]).count() for name in collection_order()}
    with session_scope() as sess:
        return {name: sess.query(COLLECTION_MODELS[name]).count() for name in collection_order()}
