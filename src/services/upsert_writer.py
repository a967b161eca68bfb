"""
Upsert Writer - Apply bundle rows to the store with insert-or-overwrite semantics.

Each collection has one write function. A row whose identifier is absent is
inserted; a row whose identifier exists has every mutable field replaced by
the incoming value (last writer wins, no field-level merge). The stored
creation timestamp is kept on update. Daily activity keys on
(effective user, date) instead of an id.

Every row is flushed as soon as it is staged so a store constraint failure
is attributed to the row that caused it. Nothing here commits; the caller
owns the transaction.
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence

from sqlalchemy.exc import IntegrityError
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
)
from src.services.dependency_order import collection_order
from src.services.exceptions import (
    InvalidDate,
    InvalidReference,
    OperationCancelled,
    RowWriteError,
)
from src.utils.datetime_utils import parse_activity_date


@dataclass
class WriteContext:
    """
    State shared by every write in one import.

    Attributes:
        session: Session of the enclosing unit of work
        effective_user_id: Owner every owned row is written with
        now: Single timestamp used for every missing timestamp
        cancel_event: Optional event; when set, the next row raises
            OperationCancelled
        rows_staged: Rows written so far in this import
        collection_counts: Rows written per collection
    """

    session: Session
    effective_user_id: str
    now: datetime
    cancel_event: Optional[threading.Event] = None
    rows_staged: int = 0
    collection_counts: Dict[str, int] = field(default_factory=dict)

    def check_cancelled(self, collection: Optional[str] = None) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise OperationCancelled(collection)


# ============================================================================
# Helpers
# ============================================================================


def _require_id(collection: str, index: int, row_id: Optional[str]) -> str:
    if not row_id:
        raise RowWriteError(collection, f"#{index}", "row has no id")
    return row_id


def _stage(ctx: WriteContext, collection: str, row_key: str, obj, is_new: bool) -> None:
    """Add (when new) and flush one row, translating constraint failures."""
    if is_new:
        ctx.session.add(obj)
    try:
        ctx.session.flush()
    except IntegrityError as e:
        detail = str(e.orig) if e.orig is not None else str(e)
        if "FOREIGN KEY" in detail.upper():
            raise InvalidReference(collection, row_key, f"foreign key violation: {detail}")
        raise RowWriteError(collection, row_key, detail)
    ctx.rows_staged += 1
    ctx.collection_counts[collection] = ctx.collection_counts.get(collection, 0) + 1


def _get_or_new(ctx: WriteContext, model, row_id: str, created_at: Optional[datetime]):
    """Return (row, is_new); new rows get the incoming or operation timestamp."""
    existing = ctx.session.get(model, row_id)
    if existing is not None:
        return existing, False
    return model(id=row_id, created_at=created_at or ctx.now), True


def _check_reference(collection: str, row_key: str, record) -> None:
    try:
        record.reference
    except ValueError:
        raise InvalidReference(collection, row_key, f"unknown reference kind {record.kind!r}")
    if not record.ref_id:
        raise InvalidReference(collection, row_key, "reference has no ref_id")


# ============================================================================
# Collection Writers
# ============================================================================


def write_food_items(ctx: WriteContext, rows: Sequence[FoodItemRecord]) -> int:
    """Upsert food items; owned items move to the effective user, unowned stay shared."""
    for index, record in enumerate(rows):
        ctx.check_cancelled("food_items")
        row_id = _require_id("food_items", index, record.id)
        item, is_new = _get_or_new(ctx, FoodItem, row_id, record.created_at)
        item.user_id = ctx.effective_user_id if record.user_id else None
        item.name = record.name
        item.brand = record.brand
        item.serving_label = record.serving_label
        item.source = record.source
        item.calories_per_serving = record.calories_per_serving
        item.protein_g_per_serving = record.protein_g_per_serving
        item.carbs_g_per_serving = record.carbs_g_per_serving
        item.fat_g_per_serving = record.fat_g_per_serving
        item.fiber_g_per_serving = record.fiber_g_per_serving
        _stage(ctx, "food_items", row_id, item, is_new)
    return len(rows)


def write_recipes(ctx: WriteContext, rows: Sequence[RecipeRecord]) -> int:
    """Upsert recipes; ids may coincide with food item ids."""
    for index, record in enumerate(rows):
        ctx.check_cancelled("recipes")
        row_id = _require_id("recipes", index, record.id)
        recipe, is_new = _get_or_new(ctx, Recipe, row_id, record.created_at)
        recipe.user_id = ctx.effective_user_id
        recipe.name = record.name
        recipe.instructions = record.instructions
        recipe.yield_count = record.yield_count
        _stage(ctx, "recipes", row_id, recipe, is_new)
    return len(rows)


def write_recipe_ingredients(ctx: WriteContext, rows: Sequence[RecipeIngredientRecord]) -> int:
    for index, record in enumerate(rows):
        ctx.check_cancelled("recipe_ingredients")
        row_id = _require_id("recipe_ingredients", index, record.id)
        ingredient, is_new = _get_or_new(ctx, RecipeIngredient, row_id, record.created_at)
        ingredient.recipe_id = record.recipe_id
        ingredient.food_item_id = record.food_item_id
        ingredient.amount_g = record.amount_g
        _stage(ctx, "recipe_ingredients", row_id, ingredient, is_new)
    return len(rows)


def write_recipe_portions(ctx: WriteContext, rows: Sequence[RecipePortionRecord]) -> int:
    for index, record in enumerate(rows):
        ctx.check_cancelled("recipe_portions")
        row_id = _require_id("recipe_portions", index, record.id)
        portion, is_new = _get_or_new(ctx, RecipePortion, row_id, record.created_at)
        portion.recipe_id = record.recipe_id
        portion.name = record.name
        portion.portion_count = record.portion_count
        _stage(ctx, "recipe_portions", row_id, portion, is_new)
    return len(rows)


def write_presets(ctx: WriteContext, rows: Sequence[PresetRecord]) -> int:
    for index, record in enumerate(rows):
        ctx.check_cancelled("presets")
        row_id = _require_id("presets", index, record.id)
        preset, is_new = _get_or_new(ctx, Preset, row_id, record.created_at)
        preset.user_id = ctx.effective_user_id
        preset.name = record.name
        preset.pinned = record.pinned
        _stage(ctx, "presets", row_id, preset, is_new)
    return len(rows)


def write_preset_items(ctx: WriteContext, rows: Sequence[PresetItemRecord]) -> int:
    """Upsert preset items. The ref_id is trusted; only the kind tag is checked."""
    for index, record in enumerate(rows):
        ctx.check_cancelled("preset_items")
        row_id = _require_id("preset_items", index, record.id)
        _check_reference("preset_items", row_id, record)
        item, is_new = _get_or_new(ctx, PresetItem, row_id, record.created_at)
        item.preset_id = record.preset_id
        item.kind = record.reference.kind.value
        item.ref_id = record.ref_id
        item.servings = record.servings
        _stage(ctx, "preset_items", row_id, item, is_new)
    return len(rows)


def write_log_entries(ctx: WriteContext, rows: Sequence[LogEntryRecord]) -> int:
    """Upsert log entries. The ref_id is trusted; only the kind tag is checked."""
    for index, record in enumerate(rows):
        ctx.check_cancelled("log_entries")
        row_id = _require_id("log_entries", index, record.id)
        _check_reference("log_entries", row_id, record)
        entry, is_new = _get_or_new(ctx, LogEntry, row_id, record.created_at)
        entry.user_id = ctx.effective_user_id
        entry.occurred_at = record.occurred_at or ctx.now
        entry.kind = record.reference.kind.value
        entry.ref_id = record.ref_id
        entry.servings = record.servings
        entry.meal = record.meal
        entry.note = record.note
        _stage(ctx, "log_entries", row_id, entry, is_new)
    return len(rows)


def write_body_weights(ctx: WriteContext, rows: Sequence[BodyWeightRecord]) -> int:
    for index, record in enumerate(rows):
        ctx.check_cancelled("body_weights")
        row_id = _require_id("body_weights", index, record.id)
        weight, is_new = _get_or_new(ctx, BodyWeight, row_id, record.created_at)
        weight.user_id = ctx.effective_user_id
        weight.measured_at = record.measured_at or ctx.now
        weight.weight_kg = record.weight_kg
        weight.source = record.source
        weight.note = record.note
        _stage(ctx, "body_weights", row_id, weight, is_new)
    return len(rows)


def write_daily_activity(ctx: WriteContext, rows: Sequence[DailyActivityRecord]) -> int:
    """
    Upsert activity rows keyed on (effective user, date).

    Raises:
        InvalidDate: If a date is not YYYY-MM-DD. Never skipped or guessed.
    """
    for index, record in enumerate(rows):
        ctx.check_cancelled("daily_activity")
        row_key = record.date or f"#{index}"
        try:
            day = parse_activity_date(record.date)
        except ValueError:
            raise InvalidDate("daily_activity", row_key, "date", record.date)

        activity = ctx.session.get(DailyActivity, (ctx.effective_user_id, day))
        is_new = activity is None
        if is_new:
            activity = DailyActivity(
                user_id=ctx.effective_user_id,
                date=day,
                created_at=record.created_at or ctx.now,
            )
        activity.steps = record.steps
        activity.active_calories_kcal_est = record.active_calories_kcal_est
        activity.source = record.source
        _stage(ctx, "daily_activity", f"{ctx.effective_user_id}:{row_key}", activity, is_new)
    return len(rows)


WRITERS: Dict[str, Callable[[WriteContext, Sequence], int]] = {
    "food_items": write_food_items,
    "recipes": write_recipes,
    "recipe_ingredients": write_recipe_ingredients,
    "recipe_portions": write_recipe_portions,
    "presets": write_presets,
    "preset_items": write_preset_items,
    "log_entries": write_log_entries,
    "body_weights": write_body_weights,
    "daily_activity": write_daily_activity,
}


def write_collection(ctx: WriteContext, collection: str, rows: Sequence) -> int:
    """
    Write one collection's rows.

    Raises:
        KeyError: If the collection has no writer
    """
    return WRITERS[collection](ctx, rows)


def write_snapshot(ctx: WriteContext, snapshot: BundleSnapshot) -> List[str]:
    """
    Write every collection of a snapshot in dependency order.

    Users are handled by the remapper before this runs.

    Returns:
        Collection names in the order they were written
    """
    written = []
    for name in collection_order():
        if name not in WRITERS:
            continue
        write_collection(ctx, name, snapshot.rows(name))
        written.append(name)
    return written
