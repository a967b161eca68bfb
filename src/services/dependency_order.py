"""
Dependency Order - Fixed write order for bundle collections.

Every foreign key in the schema points from a later collection to an
earlier one in COLLECTION_ORDER, so writing collections in this order never
writes a reference before its target. The graph is fixed and acyclic, so the
order is a constant rather than a per-bundle topological sort.

Usage:
    from src.services.dependency_order import collection_order

    for name in collection_order():
        ...
"""

from typing import Dict, List, Tuple

# Dependency order for import: (import_order, dependencies)
DEPENDENCY_ORDER: Dict[str, Tuple[int, List[str]]] = {
    "users": (1, []),
    "food_items": (2, ["users"]),
    # Recipes may share an id with a food item
    "recipes": (3, ["users", "food_items"]),
    "recipe_ingredients": (4, ["recipes", "food_items"]),
    "recipe_portions": (5, ["recipes"]),
    "presets": (6, ["users"]),
    "preset_items": (7, ["presets"]),
    # Loose references into food_items / recipe_portions via the kind tag
    "log_entries": (8, ["users", "food_items", "recipe_portions"]),
    "body_weights": (9, ["users"]),
    "daily_activity": (10, ["users"]),
}

COLLECTION_ORDER: List[str] = sorted(DEPENDENCY_ORDER, key=lambda name: DEPENDENCY_ORDER[name][0])


def collection_order() -> List[str]:
    """
    Return the collection write order.

    Returns:
        New list of collection names, users first, daily_activity last
    """
    return list(COLLECTION_ORDER)


def import_order_of(collection: str) -> int:
    """
    Return the 1-based position of a collection in the write order.

    Raises:
        KeyError: If the collection is unknown
    """
    return DEPENDENCY_ORDER[collection][0]


def dependencies_of(collection: str) -> List[str]:
    """
    Return the collections that must be written before ``collection``.

    Raises:
        KeyError: If the collection is unknown
    """
    return list(DEPENDENCY_ORDER[collection][1])


def verify_order() -> List[str]:
    """
    Check that every dependency edge points strictly backwards.

    Returns:
        List of violations, empty when the order is sound
    """
    violations = []
    for name, (position, deps) in DEPENDENCY_ORDER.items():
        for dep in deps:
            if dep not in DEPENDENCY_ORDER:
                violations.append(f"{name} depends on unknown collection {dep}")
            elif DEPENDENCY_ORDER[dep][0] >= position:
                violations.append(f"{name} (#{position}) depends on later {dep}")
    return violations
