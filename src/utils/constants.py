"""
Constants for the Intake backup engine.

This module defines all system-wide constants including:
- Database file location
- Bundle format metadata
- Single-tenant defaults
- Column defaults shared by the models and the bundle codec
"""

from typing import List

# ============================================================================
# Database
# ============================================================================

DATABASE_FILENAME = "intake.db"

# ============================================================================
# Bundle Format
# ============================================================================

# Only one bundle version is defined; there is no cross-version migration
BUNDLE_VERSION = 1

# Names of the per-entity arrays in a bundle, in dependency order
BUNDLE_COLLECTIONS: List[str] = [
    "food_items",
    "recipes",
    "recipe_ingredients",
    "recipe_portions",
    "presets",
    "preset_items",
    "log_entries",
    "body_weights",
    "daily_activity",
]

# ============================================================================
# Users
# ============================================================================

# Fallback owner when neither the caller nor the bundle names one
DEFAULT_USER_ID = "00000000-0000-0000-0000-000000000001"

# Display name given to owners created on import
PLACEHOLDER_USER_NAME = "Imported User"

# ============================================================================
# Column Defaults
# ============================================================================

DEFAULT_SERVING_LABEL = "1 serving"
DEFAULT_FOOD_SOURCE = "custom"
DEFAULT_MEASUREMENT_SOURCE = "manual"
DEFAULT_MEAL = "breakfast"
DEFAULT_YIELD_COUNT = 1
DEFAULT_PORTION_COUNT = 1.0
DEFAULT_SERVINGS = 1.0

# Date format for daily activity rows
ACTIVITY_DATE_FORMAT = "%Y-%m-%d"
