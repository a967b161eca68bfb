"""Pytest configuration and fixtures for backup engine tests."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, scoped_session

from src.models.base import Base
from src.services.database import get_session_factory
from src.utils.config import Config, reset_config, set_config

ALICE = "11111111-1111-1111-1111-111111111111"


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Keep tests away from the real data directory and environment."""
    monkeypatch.delenv("INTAKE_DEFAULT_USER_ID", raising=False)
    monkeypatch.delenv("INTAKE_DATABASE_URL", raising=False)
    set_config(Config("development", database_url=f"sqlite:///{tmp_path / 'intake.db'}"))
    yield
    reset_config()


@pytest.fixture(scope="function")
def test_db():
    """Provide a clean test database for each test function.

    This fixture:
    1. Creates an in-memory SQLite database
    2. Creates all tables
    3. Provides the database to the test
    4. Drops all tables after the test completes
    """
    # Create in-memory SQLite database for testing
    engine = create_engine("sqlite:///:memory:", echo=False)

    # Create all tables
    Base.metadata.create_all(engine)

    # Create session factory
    session_factory = sessionmaker(bind=engine, expire_on_commit=False)
    Session = scoped_session(session_factory)

    # Monkey-patch the global session factory for tests
    import src.services.database as db_module

    original_get_session = db_module.get_session_factory
    db_module.get_session_factory = lambda: Session

    # Provide database to test
    yield Session

    # Cleanup
    Session.remove()
    Base.metadata.drop_all(engine)
    engine.dispose()

    # Restore original session factory
    db_module.get_session_factory = original_get_session


def make_bundle(user_id=ALICE, **collections):
    """Build a bundle document with empty arrays for unspecified collections."""
    document = {
        "version": 1,
        "exported_at": "2024-03-02T08:00:00Z",
        "user_id": user_id,
        "food_items": [],
        "recipes": [],
        "recipe_ingredients": [],
        "recipe_portions": [],
        "presets": [],
        "preset_items": [],
        "log_entries": [],
        "body_weights": [],
        "daily_activity": [],
    }
    document.update(collections)
    return document


@pytest.fixture
def bundle_factory():
    """Provide make_bundle() to tests."""
    return make_bundle


@pytest.fixture
def scenario_bundle():
    """
    Bundle exercising every collection.

    Creates:
    - Two food items (one unowned), one sharing its id with a recipe
    - One recipe with one ingredient and one portion
    - One preset with one item
    - Three log entries across two days
    - One body weight and one daily activity row
    """
    return make_bundle(
        food_items=[
            {
                "id": "food-oats",
                "user_id": ALICE,
                "name": "Rolled Oats",
                "brand": "Acme",
                "serving_label": "40 g",
                "source": "custom",
                "calories_per_serving": 150.0,
                "protein_g_per_serving": 5.0,
                "carbs_g_per_serving": 27.0,
                "fat_g_per_serving": 3.0,
                "fiber_g_per_serving": 4.0,
                "created_at": "2024-03-01T07:00:00Z",
            },
            {
                "id": "shared-porridge",
                "name": "Porridge",
                "brand": "",
                "serving_label": "1 bowl",
                "source": "recipe",
                "calories_per_serving": 300.0,
                "protein_g_per_serving": 10.0,
                "carbs_g_per_serving": 54.0,
                "fat_g_per_serving": 6.0,
                "fiber_g_per_serving": 8.0,
                "created_at": "2024-03-01T07:05:00Z",
            },
        ],
        recipes=[
            {
                "id": "shared-porridge",
                "user_id": ALICE,
                "name": "Porridge",
                "instructions": "Simmer oats in water for 5 minutes.",
                "yield_count": 2,
                "created_at": "2024-03-01T07:05:00Z",
            }
        ],
        recipe_ingredients=[
            {
                "id": "ri-1",
                "recipe_id": "shared-porridge",
                "food_item_id": "food-oats",
                "amount_g": 80.0,
                "created_at": "2024-03-01T07:06:00Z",
            }
        ],
        recipe_portions=[
            {
                "id": "portion-bowl",
                "recipe_id": "shared-porridge",
                "name": "bowl",
                "portion_count": 1.0,
                "created_at": "2024-03-01T07:06:30Z",
            }
        ],
        presets=[
            {
                "id": "preset-breakfast",
                "user_id": ALICE,
                "name": "Usual breakfast",
                "pinned": True,
                "created_at": "2024-03-01T07:10:00Z",
            }
        ],
        preset_items=[
            {
                "id": "pi-1",
                "preset_id": "preset-breakfast",
                "kind": "recipe_portion",
                "ref_id": "portion-bowl",
                "servings": 1.0,
                "created_at": "2024-03-01T07:10:30Z",
            }
        ],
        log_entries=[
            {
                "id": "log-1",
                "user_id": ALICE,
                "occurred_at": "2024-03-01T08:00:00Z",
                "kind": "food",
                "ref_id": "food-oats",
                "servings": 1.0,
                "meal": "breakfast",
                "note": "",
                "created_at": "2024-03-01T08:00:05Z",
            },
            {
                "id": "log-2",
                "user_id": ALICE,
                "occurred_at": "2024-03-01T12:30:00Z",
                "kind": "recipe_portion",
                "ref_id": "portion-bowl",
                "servings": 2.0,
                "meal": "lunch",
                "note": "big bowl",
                "created_at": "2024-03-01T12:30:05Z",
            },
            {
                "id": "log-3",
                "user_id": ALICE,
                "occurred_at": "2024-03-02T07:45:00Z",
                "kind": "food",
                "ref_id": "shared-porridge",
                "servings": 1.0,
                "meal": "breakfast",
                "note": "",
                "created_at": "2024-03-02T07:45:05Z",
            },
        ],
        body_weights=[
            {
                "id": "bw-1",
                "user_id": ALICE,
                "measured_at": "2024-03-01T06:30:00Z",
                "weight_kg": 72.4,
                "source": "manual",
                "note": "",
                "created_at": "2024-03-01T06:30:10Z",
            }
        ],
        daily_activity=[
            {
                "user_id": ALICE,
                "date": "2024-03-01",
                "steps": 9500,
                "active_calories_kcal_est": 420.5,
                "source": "healthkit",
                "created_at": "2024-03-01T23:59:00Z",
            }
        ],
    )
