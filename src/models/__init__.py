"""
Database models package.

This package contains all SQLAlchemy ORM models for the application.
"""

from .base import Base, BaseModel, new_id
from .enums import ItemReference, ReferenceKind
from .user import User
from .food_item import FoodItem
from .recipe import Recipe, RecipeIngredient, RecipePortion
from .preset import Preset, PresetItem
from .log_entry import LogEntry
from .body_weight import BodyWeight
from .daily_activity import DailyActivity

__all__ = [
    "Base",
    "BaseModel",
    "new_id",
    # Reference types
    "ItemReference",
    "ReferenceKind",
    # Owners
    "User",
    # Catalog
    "FoodItem",
    "Recipe",
    "RecipeIngredient",
    "RecipePortion",
    "Preset",
    "PresetItem",
    # Journal
    "LogEntry",
    "BodyWeight",
    "DailyActivity",
]
