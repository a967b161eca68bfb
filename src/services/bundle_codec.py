"""
Bundle Codec - Convert a user's data graph to and from a versioned document.

A bundle is one JSON object with a ``version`` tag, an ``exported_at``
timestamp, the exporting ``user_id`` and one array per collection. Array
order inside the document carries no meaning; the import path imposes
dependency order itself.

The codec is a pure transformation: no database or file access.

Usage:
    from src.services.bundle_codec import decode, encode

    snapshot = decode(json_text)          # str, bytes or dict
    document = encode(snapshot)           # dict ready for json.dumps
"""

import json
import math
from dataclasses import dataclass, field, fields
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Union

from src.models.enums import ItemReference
from src.services.exceptions import InvalidDate, MalformedBundle
from src.utils.constants import (
    BUNDLE_COLLECTIONS,
    BUNDLE_VERSION,
    DEFAULT_FOOD_SOURCE,
    DEFAULT_MEAL,
    DEFAULT_MEASUREMENT_SOURCE,
    DEFAULT_PORTION_COUNT,
    DEFAULT_SERVING_LABEL,
    DEFAULT_SERVINGS,
    DEFAULT_YIELD_COUNT,
)
from src.utils.datetime_utils import (
    format_activity_date,
    format_timestamp,
    parse_timestamp,
    utc_now,
)

# Zero time written by clients that never set a timestamp
_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)

# SQLite INTEGER is a signed 64-bit value
_INT_MIN = -(2**63)
_INT_MAX = 2**63 - 1


# ============================================================================
# Row Records
# ============================================================================


@dataclass
class FoodItemRecord:
    id: Optional[str]
    name: str = ""
    user_id: Optional[str] = None
    brand: str = ""
    serving_label: str = DEFAULT_SERVING_LABEL
    source: str = DEFAULT_FOOD_SOURCE
    calories_per_serving: float = 0.0
    protein_g_per_serving: float = 0.0
    carbs_g_per_serving: float = 0.0
    fat_g_per_serving: float = 0.0
    fiber_g_per_serving: float = 0.0
    created_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, item) -> "FoodItemRecord":
        return cls(
            id=item.id,
            user_id=item.user_id,
            name=item.name,
            brand=item.brand or "",
            serving_label=item.serving_label,
            source=item.source,
            calories_per_serving=item.calories_per_serving,
            protein_g_per_serving=item.protein_g_per_serving,
            carbs_g_per_serving=item.carbs_g_per_serving,
            fat_g_per_serving=item.fat_g_per_serving,
            fiber_g_per_serving=item.fiber_g_per_serving,
            created_at=item.created_at,
        )


@dataclass
class RecipeRecord:
    id: Optional[str]
    name: str = ""
    user_id: Optional[str] = None
    instructions: str = ""
    yield_count: int = DEFAULT_YIELD_COUNT
    created_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, recipe) -> "RecipeRecord":
        return cls(
            id=recipe.id,
            user_id=recipe.user_id,
            name=recipe.name,
            instructions=recipe.instructions or "",
            yield_count=recipe.yield_count,
            created_at=recipe.created_at,
        )


@dataclass
class RecipeIngredientRecord:
    id: Optional[str]
    recipe_id: str = ""
    food_item_id: str = ""
    amount_g: float = 0.0
    created_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, ingredient) -> "RecipeIngredientRecord":
        return cls(
            id=ingredient.id,
            recipe_id=ingredient.recipe_id,
            food_item_id=ingredient.food_item_id,
            amount_g=ingredient.amount_g,
            created_at=ingredient.created_at,
        )


@dataclass
class RecipePortionRecord:
    id: Optional[str]
    recipe_id: str = ""
    name: str = ""
    portion_count: float = DEFAULT_PORTION_COUNT
    created_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, portion) -> "RecipePortionRecord":
        return cls(
            id=portion.id,
            recipe_id=portion.recipe_id,
            name=portion.name,
            portion_count=portion.portion_count,
            created_at=portion.created_at,
        )


@dataclass
class PresetRecord:
    id: Optional[str]
    name: str = ""
    user_id: Optional[str] = None
    pinned: bool = False
    created_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, preset) -> "PresetRecord":
        return cls(
            id=preset.id,
            user_id=preset.user_id,
            name=preset.name,
            pinned=preset.pinned,
            created_at=preset.created_at,
        )


@dataclass
class PresetItemRecord:
    id: Optional[str]
    preset_id: str = ""
    kind: str = ""
    ref_id: str = ""
    servings: float = DEFAULT_SERVINGS
    created_at: Optional[datetime] = None

    @property
    def reference(self) -> ItemReference:
        """Tagged reference; raises ValueError for an unknown kind."""
        return ItemReference.parse(self.kind, self.ref_id)

    @classmethod
    def from_model(cls, item) -> "PresetItemRecord":
        return cls(
            id=item.id,
            preset_id=item.preset_id,
            kind=item.kind,
            ref_id=item.ref_id,
            servings=item.servings,
            created_at=item.created_at,
        )


@dataclass
class LogEntryRecord:
    id: Optional[str]
    user_id: Optional[str] = None
    occurred_at: Optional[datetime] = None
    kind: str = ""
    ref_id: str = ""
    servings: float = DEFAULT_SERVINGS
    meal: str = DEFAULT_MEAL
    note: str = ""
    created_at: Optional[datetime] = None

    @property
    def reference(self) -> ItemReference:
        """Tagged reference; raises ValueError for an unknown kind."""
        return ItemReference.parse(self.kind, self.ref_id)

    @classmethod
    def from_model(cls, entry) -> "LogEntryRecord":
        return cls(
            id=entry.id,
            user_id=entry.user_id,
            occurred_at=entry.occurred_at,
            kind=entry.kind,
            ref_id=entry.ref_id,
            servings=entry.servings,
            meal=entry.meal,
            note=entry.note or "",
            created_at=entry.created_at,
        )


@dataclass
class BodyWeightRecord:
    id: Optional[str]
    user_id: Optional[str] = None
    measured_at: Optional[datetime] = None
    weight_kg: float = 0.0
    source: str = DEFAULT_MEASUREMENT_SOURCE
    note: str = ""
    created_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, weight) -> "BodyWeightRecord":
        return cls(
            id=weight.id,
            user_id=weight.user_id,
            measured_at=weight.measured_at,
            weight_kg=weight.weight_kg,
            source=weight.source,
            note=weight.note or "",
            created_at=weight.created_at,
        )


@dataclass
class DailyActivityRecord:
    """Activity row; ``date`` stays a YYYY-MM-DD string until it is written."""

    date: str = ""
    user_id: Optional[str] = None
    steps: int = 0
    active_calories_kcal_est: float = 0.0
    source: str = DEFAULT_MEASUREMENT_SOURCE
    created_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, activity) -> "DailyActivityRecord":
        return cls(
            user_id=activity.user_id,
            date=format_activity_date(activity.date),
            steps=activity.steps,
            active_calories_kcal_est=activity.active_calories_kcal_est,
            source=activity.source,
            created_at=activity.created_at,
        )


@dataclass
class BundleSnapshot:
    """In-memory form of a bundle."""

    version: int = BUNDLE_VERSION
    exported_at: Optional[datetime] = None
    user_id: Optional[str] = None
    food_items: List[FoodItemRecord] = field(default_factory=list)
    recipes: List[RecipeRecord] = field(default_factory=list)
    recipe_ingredients: List[RecipeIngredientRecord] = field(default_factory=list)
    recipe_portions: List[RecipePortionRecord] = field(default_factory=list)
    presets: List[PresetRecord] = field(default_factory=list)
    preset_items: List[PresetItemRecord] = field(default_factory=list)
    log_entries: List[LogEntryRecord] = field(default_factory=list)
    body_weights: List[BodyWeightRecord] = field(default_factory=list)
    daily_activity: List[DailyActivityRecord] = field(default_factory=list)

    def rows(self, collection: str) -> list:
        """Return the record list for a collection name."""
        if collection not in BUNDLE_COLLECTIONS:
            raise KeyError(f"Unknown collection: {collection}")
        return getattr(self, collection)

    def counts(self) -> Dict[str, int]:
        """Row count per collection, in dependency order."""
        return {name: len(getattr(self, name)) for name in BUNDLE_COLLECTIONS}

    @property
    def total_rows(self) -> int:
        return sum(self.counts().values())


# ============================================================================
# Encoding
# ============================================================================


def _record_to_dict(record) -> Dict[str, Any]:
    result = {}
    for f in fields(record):
        value = getattr(record, f.name)
        if isinstance(value, datetime):
            value = format_timestamp(value)
        elif isinstance(value, date):
            value = format_activity_date(value)
        result[f.name] = value
    # Unowned food items leave user_id out entirely
    if isinstance(record, FoodItemRecord) and not record.user_id:
        result.pop("user_id")
    return result


def encode(snapshot: BundleSnapshot) -> Dict[str, Any]:
    """
    Convert a snapshot into a bundle document.

    Args:
        snapshot: Snapshot to encode

    Returns:
        Dictionary ready for json.dumps()
    """
    document: Dict[str, Any] = {
        "version": snapshot.version,
        "exported_at": format_timestamp(snapshot.exported_at or utc_now()),
        "user_id": snapshot.user_id or "",
    }
    for name in BUNDLE_COLLECTIONS:
        document[name] = [_record_to_dict(record) for record in snapshot.rows(name)]
    return document


def encode_json(snapshot: BundleSnapshot, indent: Optional[int] = 2) -> str:
    """Encode a snapshot straight to JSON text."""
    return json.dumps(encode(snapshot), indent=indent, ensure_ascii=False)


# ============================================================================
# Decoding
# ============================================================================


class _RowReader:
    """Typed accessors over one raw row, with defaults for missing values."""

    def __init__(self, collection: str, index: int, raw: Dict[str, Any]):
        self.collection = collection
        self.raw = raw
        row_id = raw.get("id")
        self.key = row_id if isinstance(row_id, str) and row_id else f"#{index}"

    def _malformed(self, key: str, expected: str) -> MalformedBundle:
        return MalformedBundle(
            f"{self.collection}[{self.key}].{key} must be {expected}, "
            f"got {type(self.raw[key]).__name__}"
        )

    def text(self, key: str, default: str = "") -> str:
        value = self.raw.get(key)
        if value is None:
            return default
        if not isinstance(value, str):
            raise self._malformed(key, "a string")
        return value

    def optional_text(self, key: str) -> Optional[str]:
        value = self.text(key)
        return value or None

    def number(self, key: str, default: float = 0.0) -> float:
        value = self.raw.get(key)
        if value is None:
            return default
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise self._malformed(key, "a number")
        try:
            number = float(value)
        except OverflowError:
            raise self._malformed(key, "a finite number")
        if not math.isfinite(number):
            raise self._malformed(key, "a finite number")
        return number

    def integer(self, key: str, default: int = 0) -> int:
        value = self.raw.get(key)
        if value is None:
            return default
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise self._malformed(key, "an integer")
        if isinstance(value, float) and not value.is_integer():
            raise self._malformed(key, "an integer")
        number = int(value)
        if not _INT_MIN <= number <= _INT_MAX:
            raise self._malformed(key, "a 64-bit integer")
        return number

    def boolean(self, key: str, default: bool = False) -> bool:
        value = self.raw.get(key)
        if value is None:
            return default
        if not isinstance(value, bool):
            raise self._malformed(key, "a boolean")
        return value

    def timestamp(self, key: str) -> Optional[datetime]:
        """Missing, empty and zero timestamps decode to None."""
        value = self.raw.get(key)
        if value is None or value == "":
            return None
        if not isinstance(value, str):
            raise InvalidDate(self.collection, self.key, key, value)
        try:
            parsed = parse_timestamp(value)
        except ValueError:
            raise InvalidDate(self.collection, self.key, key, value)
        if parsed == _ZERO_TIME:
            return None
        return parsed


def _decode_food_item(r: _RowReader) -> FoodItemRecord:
    return FoodItemRecord(
        id=r.optional_text("id"),
        user_id=r.optional_text("user_id"),
        name=r.text("name"),
        brand=r.text("brand"),
        serving_label=r.text("serving_label") or DEFAULT_SERVING_LABEL,
        source=r.text("source") or DEFAULT_FOOD_SOURCE,
        calories_per_serving=r.number("calories_per_serving"),
        protein_g_per_serving=r.number("protein_g_per_serving"),
        carbs_g_per_serving=r.number("carbs_g_per_serving"),
        fat_g_per_serving=r.number("fat_g_per_serving"),
        fiber_g_per_serving=r.number("fiber_g_per_serving"),
        created_at=r.timestamp("created_at"),
    )


def _decode_recipe(r: _RowReader) -> RecipeRecord:
    return RecipeRecord(
        id=r.optional_text("id"),
        user_id=r.optional_text("user_id"),
        name=r.text("name"),
        instructions=r.text("instructions"),
        yield_count=r.integer("yield_count", DEFAULT_YIELD_COUNT),
        created_at=r.timestamp("created_at"),
    )


def _decode_recipe_ingredient(r: _RowReader) -> RecipeIngredientRecord:
    return RecipeIngredientRecord(
        id=r.optional_text("id"),
        recipe_id=r.text("recipe_id"),
        food_item_id=r.text("food_item_id"),
        amount_g=r.number("amount_g"),
        created_at=r.timestamp("created_at"),
    )


def _decode_recipe_portion(r: _RowReader) -> RecipePortionRecord:
    return RecipePortionRecord(
        id=r.optional_text("id"),
        recipe_id=r.text("recipe_id"),
        name=r.text("name"),
        portion_count=r.number("portion_count", DEFAULT_PORTION_COUNT),
        created_at=r.timestamp("created_at"),
    )


def _decode_preset(r: _RowReader) -> PresetRecord:
    return PresetRecord(
        id=r.optional_text("id"),
        user_id=r.optional_text("user_id"),
        name=r.text("name"),
        pinned=r.boolean("pinned"),
        created_at=r.timestamp("created_at"),
    )


def _decode_preset_item(r: _RowReader) -> PresetItemRecord:
    return PresetItemRecord(
        id=r.optional_text("id"),
        preset_id=r.text("preset_id"),
        kind=r.text("kind"),
        ref_id=r.text("ref_id"),
        servings=r.number("servings", DEFAULT_SERVINGS),
        created_at=r.timestamp("created_at"),
    )


def _decode_log_entry(r: _RowReader) -> LogEntryRecord:
    return LogEntryRecord(
        id=r.optional_text("id"),
        user_id=r.optional_text("user_id"),
        occurred_at=r.timestamp("occurred_at"),
        kind=r.text("kind"),
        ref_id=r.text("ref_id"),
        servings=r.number("servings", DEFAULT_SERVINGS),
        meal=r.text("meal") or DEFAULT_MEAL,
        note=r.text("note"),
        created_at=r.timestamp("created_at"),
    )


def _decode_body_weight(r: _RowReader) -> BodyWeightRecord:
    return BodyWeightRecord(
        id=r.optional_text("id"),
        user_id=r.optional_text("user_id"),
        measured_at=r.timestamp("measured_at"),
        weight_kg=r.number("weight_kg"),
        source=r.text("source") or DEFAULT_MEASUREMENT_SOURCE,
        note=r.text("note"),
        created_at=r.timestamp("created_at"),
    )


def _decode_daily_activity(r: _RowReader) -> DailyActivityRecord:
    raw_date = r.raw.get("date")
    if raw_date is not None and not isinstance(raw_date, str):
        raise InvalidDate(r.collection, r.key, "date", raw_date)
    if isinstance(raw_date, str) and raw_date:
        r.key = raw_date
    return DailyActivityRecord(
        user_id=r.optional_text("user_id"),
        date=raw_date or "",
        steps=r.integer("steps"),
        active_calories_kcal_est=r.number("active_calories_kcal_est"),
        source=r.text("source") or DEFAULT_MEASUREMENT_SOURCE,
        created_at=r.timestamp("created_at"),
    )


_DECODERS: Dict[str, Callable[[_RowReader], Any]] = {
    "food_items": _decode_food_item,
    "recipes": _decode_recipe,
    "recipe_ingredients": _decode_recipe_ingredient,
    "recipe_portions": _decode_recipe_portion,
    "presets": _decode_preset,
    "preset_items": _decode_preset_item,
    "log_entries": _decode_log_entry,
    "body_weights": _decode_body_weight,
    "daily_activity": _decode_daily_activity,
}


def _load_document(document: Union[str, bytes, bytearray, Dict[str, Any]]) -> Dict[str, Any]:
    if isinstance(document, (str, bytes, bytearray)):
        try:
            document = json.loads(document)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MalformedBundle(f"not valid JSON: {e}")
    if not isinstance(document, dict):
        raise MalformedBundle(
            f"top level must be an object, got {type(document).__name__}"
        )
    return document


def decode(document: Union[str, bytes, bytearray, Dict[str, Any]]) -> BundleSnapshot:
    """
    Convert a bundle document into a snapshot.

    Missing arrays are empty and missing optional fields take the column
    defaults. Missing timestamps stay None for the writer to fill.

    Args:
        document: JSON text/bytes or an already decoded dictionary

    Returns:
        BundleSnapshot

    Raises:
        MalformedBundle: If the input is not a bundle-shaped JSON object
        InvalidDate: If a row timestamp is present but unparsable
    """
    data = _load_document(document)

    version = data.get("version", BUNDLE_VERSION)
    if isinstance(version, bool) or version != BUNDLE_VERSION:
        raise MalformedBundle(
            f"unsupported bundle version {version!r}; expected {BUNDLE_VERSION}"
        )

    user_id = data.get("user_id")
    if user_id is not None and not isinstance(user_id, str):
        raise MalformedBundle("user_id must be a string")

    exported_at = None
    raw_exported_at = data.get("exported_at")
    if raw_exported_at:
        if not isinstance(raw_exported_at, str):
            raise MalformedBundle("exported_at must be a timestamp string")
        try:
            exported_at = parse_timestamp(raw_exported_at)
        except ValueError:
            raise MalformedBundle(f"exported_at is not a timestamp: {raw_exported_at!r}")

    snapshot = BundleSnapshot(
        version=BUNDLE_VERSION,
        exported_at=exported_at,
        user_id=user_id or None,
    )

    for name in BUNDLE_COLLECTIONS:
        raw_rows = data.get(name)
        if raw_rows is None:
            continue
        if not isinstance(raw_rows, list):
            raise MalformedBundle(f"{name} must be an array")
        decoder = _DECODERS[name]
        records = snapshot.rows(name)
        for index, raw in enumerate(raw_rows):
            if not isinstance(raw, dict):
                raise MalformedBundle(f"{name}[{index}] must be an object")
            records.append(decoder(_RowReader(name, index, raw)))

    return snapshot
