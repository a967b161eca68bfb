"""
Tests for the Intake models.

Tests cover:
- Identifier generation and normalization
- Composite (user_id, date) key of daily activity
- Tagged references on log entries and preset items
- Foreign key enforcement and cascades
"""

import uuid
from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

# Registers the SQLite pragma listener
import src.services.database  # noqa: F401
from src.models import (
    DailyActivity,
    FoodItem,
    ItemReference,
    LogEntry,
    Preset,
    PresetItem,
    Recipe,
    RecipeIngredient,
    ReferenceKind,
    User,
)
from src.models.base import Base


@pytest.fixture
def engine():
    """Create in-memory SQLite database for testing."""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def session(engine):
    """Create database session for testing."""
    Session = sessionmaker(bind=engine)
    session = Session()
    session.add(User(id="u-1", display_name="Test User"))
    session.flush()
    yield session
    session.close()


class TestBaseModel:
    def test_generated_id_and_created_at(self, session):
        item = FoodItem(name="Egg")
        session.add(item)
        session.flush()

        assert uuid.UUID(item.id)
        assert item.created_at is not None
        assert item.serving_label == "1 serving"

    def test_uuid_id_is_normalized(self, session):
        value = uuid.uuid4()
        item = FoodItem(id=value, name="Egg")

        assert item.id == str(value)


class TestDailyActivity:
    def test_composite_key(self, session):
        session.add(DailyActivity(user_id="u-1", date=date(2024, 3, 1), steps=10))
        session.flush()

        row = session.get(DailyActivity, ("u-1", date(2024, 3, 1)))
        assert row.steps == 10
        assert row.source == "manual"

    def test_one_row_per_user_and_day(self, session):
        session.add(DailyActivity(user_id="u-1", date=date(2024, 3, 1)))
        session.flush()
        session.expunge_all()
        session.add(DailyActivity(user_id="u-1", date=date(2024, 3, 1)))

        with pytest.raises(IntegrityError):
            session.flush()


class TestReferences:
    def test_parse(self):
        reference = ItemReference.parse("recipe_portion", "rp-1")

        assert reference.kind is ReferenceKind.RECIPE_PORTION
        assert reference.is_recipe_portion
        assert not reference.is_food

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            ItemReference.parse("drink", "x")

    def test_log_entry_reference(self, session):
        entry = LogEntry(id="l-1", user_id="u-1", kind="food", ref_id="f-1")

        assert entry.reference == ItemReference(ReferenceKind.FOOD, "f-1")

    def test_preset_item_reference(self):
        item = PresetItem(kind="recipe_portion", ref_id="rp-1")

        assert item.reference.is_recipe_portion


class TestConstraints:
    def test_recipe_requires_user(self, session):
        session.add(Recipe(id="r-1", user_id="nobody", name="Toast"))

        with pytest.raises(IntegrityError):
            session.flush()

    def test_ingredient_requires_recipe(self, session):
        session.add(FoodItem(id="f-1", name="Bread"))
        session.flush()
        session.add(RecipeIngredient(id="ri-1", recipe_id="r-x", food_item_id="f-1"))

        with pytest.raises(IntegrityError):
            session.flush()

    def test_deleting_preset_deletes_items(self, session):
        preset = Preset(id="p-1", user_id="u-1", name="Lunch")
        preset.items.append(PresetItem(id="pi-1", kind="food", ref_id="f-1"))
        session.add(preset)
        session.flush()

        session.delete(preset)
        session.flush()

        assert session.get(PresetItem, "pi-1") is None
