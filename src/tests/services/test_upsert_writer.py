"""
Tests for the upsert writer.

Writes go through a caller session and are never committed here; each test
inspects the session directly.
"""

import threading
from datetime import date, datetime, timezone

import pytest

from src.models import DailyActivity, FoodItem, LogEntry, PresetItem, User
from src.services.bundle_codec import (
    BundleSnapshot,
    DailyActivityRecord,
    FoodItemRecord,
    LogEntryRecord,
    PresetItemRecord,
    PresetRecord,
    RecipeIngredientRecord,
    RecipeRecord,
)
from src.services.exceptions import (
    InvalidDate,
    InvalidReference,
    OperationCancelled,
    RowWriteError,
)
from src.services.upsert_writer import (
    WriteContext,
    write_collection,
    write_daily_activity,
    write_food_items,
    write_log_entries,
    write_snapshot,
)

ALICE = "11111111-1111-1111-1111-111111111111"
NOW = datetime(2024, 3, 5, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def ctx(test_db):
    session = test_db()
    session.add(User(id=ALICE, display_name="Alice"))
    session.flush()
    yield WriteContext(session=session, effective_user_id=ALICE, now=NOW)
    session.rollback()


class TestFoodItems:
    def test_insert_then_overwrite(self, ctx):
        write_food_items(ctx, [FoodItemRecord(id="f-1", name="Egg", user_id="someone")])
        write_food_items(ctx, [FoodItemRecord(id="f-1", name="Large Egg", user_id="someone")])

        items = ctx.session.query(FoodItem).all()
        assert len(items) == 1
        assert items[0].name == "Large Egg"
        assert items[0].user_id == ALICE
        assert ctx.rows_staged == 2
        assert ctx.collection_counts == {"food_items": 2}

    def test_unowned_item_stays_unowned(self, ctx):
        write_food_items(ctx, [FoodItemRecord(id="f-1", name="Water")])

        assert ctx.session.get(FoodItem, "f-1").user_id is None

    def test_missing_created_at_uses_operation_time(self, ctx):
        write_food_items(ctx, [FoodItemRecord(id="f-1", name="Egg")])

        assert ctx.session.get(FoodItem, "f-1").created_at == NOW

    def test_missing_id(self, ctx):
        with pytest.raises(RowWriteError) as exc_info:
            write_food_items(ctx, [FoodItemRecord(id="f-1", name="a"), FoodItemRecord(id=None)])

        assert exc_info.value.collection == "food_items"
        assert exc_info.value.row_key == "#1"

    def test_null_column_is_row_write_error(self, ctx):
        record = FoodItemRecord(id="f-1", name=None)

        with pytest.raises(RowWriteError) as exc_info:
            write_food_items(ctx, [record])

        assert exc_info.value.row_key == "f-1"


class TestReferences:
    def test_ingredient_with_missing_recipe(self, ctx):
        write_food_items(ctx, [FoodItemRecord(id="f-1", name="Oats")])

        with pytest.raises(InvalidReference) as exc_info:
            write_collection(
                ctx,
                "recipe_ingredients",
                [RecipeIngredientRecord(id="ri-1", recipe_id="nope", food_item_id="f-1")],
            )

        assert "foreign key" in exc_info.value.message

    def test_dangling_log_reference_is_trusted(self, ctx):
        write_log_entries(
            ctx,
            [LogEntryRecord(id="l-1", kind="recipe_portion", ref_id="gone", occurred_at=NOW)],
        )

        entry = ctx.session.get(LogEntry, "l-1")
        assert entry.reference.is_recipe_portion
        assert entry.ref_id == "gone"
        assert entry.user_id == ALICE

    def test_unknown_kind(self, ctx):
        with pytest.raises(InvalidReference):
            write_log_entries(ctx, [LogEntryRecord(id="l-1", kind="drink", ref_id="x")])

    def test_empty_ref_id(self, ctx):
        write_collection(ctx, "presets", [PresetRecord(id="p-1", name="Lunch")])

        with pytest.raises(InvalidReference) as exc_info:
            write_collection(
                ctx, "preset_items", [PresetItemRecord(id="pi-1", preset_id="p-1", kind="food")]
            )

        assert exc_info.value.collection == "preset_items"
        assert ctx.session.get(PresetItem, "pi-1") is None


class TestDailyActivity:
    def test_keyed_on_user_and_date(self, ctx):
        write_daily_activity(ctx, [DailyActivityRecord(date="2024-03-01", steps=100)])
        write_daily_activity(
            ctx,
            [DailyActivityRecord(date="2024-03-01", user_id="someone-else", steps=250)],
        )

        rows = ctx.session.query(DailyActivity).all()
        assert len(rows) == 1
        assert rows[0].user_id == ALICE
        assert rows[0].date == date(2024, 3, 1)
        assert rows[0].steps == 250

    @pytest.mark.parametrize("bad_date", ["2024-13-45", "03/01/2024", "", "2024-02-30"])
    def test_bad_date(self, ctx, bad_date):
        with pytest.raises(InvalidDate) as exc_info:
            write_daily_activity(ctx, [DailyActivityRecord(date=bad_date)])

        assert exc_info.value.field == "date"
        assert exc_info.value.collection == "daily_activity"


class TestSnapshot:
    def test_writes_in_dependency_order(self, ctx):
        snapshot = BundleSnapshot(
            recipes=[RecipeRecord(id="r-1", name="Toast")],
            food_items=[FoodItemRecord(id="f-1", name="Bread")],
            recipe_ingredients=[
                RecipeIngredientRecord(id="ri-1", recipe_id="r-1", food_item_id="f-1", amount_g=30)
            ],
        )

        written = write_snapshot(ctx, snapshot)

        assert written[0] == "food_items"
        assert written[-1] == "daily_activity"
        assert "users" not in written
        assert ctx.rows_staged == 3

    def test_cancellation(self, ctx):
        ctx.cancel_event = threading.Event()
        ctx.cancel_event.set()

        with pytest.raises(OperationCancelled) as exc_info:
            write_snapshot(ctx, BundleSnapshot(food_items=[FoodItemRecord(id="f-1", name="x")]))

        assert exc_info.value.collection == "food_items"
        assert ctx.rows_staged == 0

    def test_unknown_collection(self, ctx):
        with pytest.raises(KeyError):
            write_collection(ctx, "users", [])
