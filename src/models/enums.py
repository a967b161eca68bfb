"""
Enumerations and reference types shared by the models and the backup engine.

This module contains:
- ReferenceKind: Which table a log entry or preset item points into
- ItemReference: Tagged reference pairing a ReferenceKind with a row id
"""

from dataclasses import dataclass
from enum import Enum


class ReferenceKind(str, Enum):
    """
    Target table of a polymorphic reference.

    Log entries and preset items store a ``kind`` tag next to a ``ref_id``.
    The tag decides which table the id lives in; there is no foreign key.

    Values:
        FOOD: ref_id is a food_items.id
        RECIPE_PORTION: ref_id is a recipe_portions.id
    """

    FOOD = "food"
    RECIPE_PORTION = "recipe_portion"


@dataclass(frozen=True)
class ItemReference:
    """A ``kind`` tag plus the id it selects."""

    kind: ReferenceKind
    ref_id: str

    @classmethod
    def parse(cls, kind: str, ref_id: str) -> "ItemReference":
        """
        Build a reference from raw column values.

        Raises:
            ValueError: If ``kind`` is not a known ReferenceKind
        """
        return cls(kind=ReferenceKind(kind), ref_id=ref_id)

    @property
    def is_food(self) -> bool:
        return self.kind is ReferenceKind.FOOD

    @property
    def is_recipe_portion(self) -> bool:
        return self.kind is ReferenceKind.RECIPE_PORTION
