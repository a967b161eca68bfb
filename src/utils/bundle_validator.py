"""
Bundle Validator - Offline checks of a bundle before it is imported.

Reads a bundle without touching a store and reports problems that would
make an import fail or produce surprising results. Errors mean the import
would abort; warnings mean it would succeed but may not do what was meant.

Usage:
    from src.utils.bundle_validator import validate_bundle_file

    result = validate_bundle_file("intake_backup.json")
    if not result.valid:
        for error in result.errors:
            print(f"{error.field}: {error.message}")
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Set, Union

from src.models.enums import ReferenceKind
from src.services.bundle_codec import BundleSnapshot, decode
from src.services.exceptions import InvalidDate, MalformedBundle
from src.utils.constants import BUNDLE_COLLECTIONS
from src.utils.datetime_utils import parse_activity_date

logger = logging.getLogger(__name__)


@dataclass
class ValidationIssue:
    """One finding, located by field path (e.g. "recipes[2].id")."""

    field: str
    message: str


@dataclass
class ValidationResult:
    """Result of validating one bundle."""

    valid: bool = True
    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationIssue] = field(default_factory=list)
    counts: Dict[str, int] = field(default_factory=dict)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def warning_count(self) -> int:
        return len(self.warnings)

    def add_error(self, field_path: str, message: str):
        self.errors.append(ValidationIssue(field_path, message))
        self.valid = False

    def add_warning(self, field_path: str, message: str):
        self.warnings.append(ValidationIssue(field_path, message))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": [{"field": e.field, "message": e.message} for e in self.errors],
            "warnings": [{"field": w.field, "message": w.message} for w in self.warnings],
            "counts": dict(self.counts),
        }

    def get_summary(self) -> str:
        """Get a user-friendly summary string of the findings."""
        status = "valid" if self.valid else "INVALID"
        lines = [
            f"Bundle is {status}: {self.error_count} error(s), {self.warning_count} warning(s)"
        ]
        for error in self.errors:
            lines.append(f"  ERROR   {error.field}: {error.message}")
        for warning in self.warnings:
            lines.append(f"  WARNING {warning.field}: {warning.message}")
        return "\n".join(lines)


# ============================================================================
# Checks
# ============================================================================


def _check_ids(snapshot: BundleSnapshot, result: ValidationResult) -> Dict[str, Set[str]]:
    """Flag missing ids and warn on duplicates; return the ids seen per collection."""
    seen: Dict[str, Set[str]] = {}
    for name in BUNDLE_COLLECTIONS:
        if name == "daily_activity":
            continue
        ids: Set[str] = set()
        for index, record in enumerate(snapshot.rows(name)):
            if not record.id:
                result.add_error(f"{name}[{index}].id", "row has no id")
            elif record.id in ids:
                result.add_warning(
                    f"{name}[{index}].id", f"duplicate id {record.id!r}; the last row wins"
                )
            else:
                ids.add(record.id)
        seen[name] = ids
    return seen


def _check_recipe_links(snapshot: BundleSnapshot, seen, result: ValidationResult):
    """Recipes must travel with their children; food items may already be stored."""
    for index, ingredient in enumerate(snapshot.recipe_ingredients):
        if ingredient.recipe_id not in seen["recipes"]:
            result.add_error(
                f"recipe_ingredients[{index}].recipe_id",
                f"recipe {ingredient.recipe_id!r} is not in the bundle",
            )
        if ingredient.food_item_id not in seen["food_items"]:
            result.add_warning(
                f"recipe_ingredients[{index}].food_item_id",
                f"food item {ingredient.food_item_id!r} is not in the bundle",
            )
    for index, portion in enumerate(snapshot.recipe_portions):
        if portion.recipe_id not in seen["recipes"]:
            result.add_error(
                f"recipe_portions[{index}].recipe_id",
                f"recipe {portion.recipe_id!r} is not in the bundle",
            )


def _check_item_references(name: str, rows, seen, result: ValidationResult):
    """Unknown kinds are errors; references missing from the bundle are warnings."""
    targets = {
        ReferenceKind.FOOD: seen["food_items"],
        ReferenceKind.RECIPE_PORTION: seen["recipe_portions"],
    }
    for index, record in enumerate(rows):
        try:
            reference = record.reference
        except ValueError:
            result.add_error(f"{name}[{index}].kind", f"unknown reference kind {record.kind!r}")
            continue
        if not reference.ref_id:
            result.add_error(f"{name}[{index}].ref_id", "reference has no ref_id")
        elif reference.ref_id not in targets[reference.kind]:
            result.add_warning(
                f"{name}[{index}].ref_id",
                f"{reference.kind.value} {reference.ref_id!r} is not in the bundle",
            )


def _check_presets(snapshot: BundleSnapshot, seen, result: ValidationResult):
    for index, item in enumerate(snapshot.preset_items):
        if item.preset_id not in seen["presets"]:
            result.add_error(
                f"preset_items[{index}].preset_id",
                f"preset {item.preset_id!r} is not in the bundle",
            )


def _check_activity_dates(snapshot: BundleSnapshot, result: ValidationResult):
    days: Set[date] = set()
    for index, activity in enumerate(snapshot.daily_activity):
        try:
            day = parse_activity_date(activity.date)
        except ValueError:
            result.add_error(f"daily_activity[{index}].date", f"invalid date {activity.date!r}")
            continue
        if day in days:
            result.add_warning(
                f"daily_activity[{index}].date",
                f"date {activity.date} appears more than once; the last row wins",
            )
        days.add(day)


# ============================================================================
# Public API
# ============================================================================


def validate_bundle(document: Union[str, bytes, Dict[str, Any]]) -> ValidationResult:
    """
    Validate a bundle document without a store.

    Args:
        document: Bundle as JSON text/bytes or a decoded dictionary

    Returns:
        ValidationResult with errors, warnings and per-collection counts
    """
    result = ValidationResult()

    try:
        snapshot = decode(document)
    except (MalformedBundle, InvalidDate) as e:
        result.add_error("bundle", str(e))
        return result

    result.counts = snapshot.counts()
    if snapshot.total_rows == 0:
        result.add_warning("bundle", "bundle contains no rows")

    seen = _check_ids(snapshot, result)
    _check_recipe_links(snapshot, seen, result)
    _check_presets(snapshot, seen, result)
    _check_item_references("preset_items", snapshot.preset_items, seen, result)
    _check_item_references("log_entries", snapshot.log_entries, seen, result)
    _check_activity_dates(snapshot, result)

    if result.valid:
        logger.info(f"Bundle validation passed ({result.warning_count} warnings)")
    else:
        logger.warning(f"Bundle validation failed with {result.error_count} errors")
    return result


def validate_bundle_file(file_path: str) -> ValidationResult:
    """
    Validate a bundle file.

    Args:
        file_path: Path to the bundle JSON file

    Returns:
        ValidationResult; an unreadable file is reported as an error
    """
    try:
        with open(file_path, "rb") as f:
            content = f.read()
    except OSError as e:
        result = ValidationResult()
        result.add_error("file", f"cannot read {file_path}: {e}")
        return result
    return validate_bundle(content)
