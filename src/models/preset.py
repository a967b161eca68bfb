"""
Preset models for one-tap logging of common meals.

This module contains:
- Preset: Named group of items owned by a user
- PresetItem: One food or recipe portion inside a preset
"""

from sqlalchemy import Boolean, Column, Float, ForeignKey, Index, String
from sqlalchemy.orm import relationship

from .base import BaseModel
from .enums import ItemReference
from src.utils.constants import DEFAULT_SERVINGS


class Preset(BaseModel):
    """
    Preset model.

    Attributes:
        user_id: Owning user
        name: Preset name
        pinned: Whether the preset is pinned to the top of the list
    """

    __tablename__ = "presets"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(200), nullable=False)
    pinned = Column(Boolean, nullable=False, default=False)

    user = relationship("User", back_populates="presets")
    items = relationship(
        "PresetItem",
        back_populates="preset",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (Index("idx_preset_user", "user_id"),)


class PresetItem(BaseModel):
    """
    Item inside a preset.

    ``kind`` and ``ref_id`` form a polymorphic reference; see
    :class:`ItemReference`.

    Attributes:
        preset_id: Foreign key to Preset
        kind: "food" or "recipe_portion"
        ref_id: Id in the table selected by ``kind``
        servings: Servings logged when the preset is applied
    """

    __tablename__ = "preset_items"

    preset_id = Column(String(36), ForeignKey("presets.id", ondelete="CASCADE"), nullable=False)
    kind = Column(String(20), nullable=False)
    ref_id = Column(String(36), nullable=False)
    servings = Column(Float, nullable=False, default=DEFAULT_SERVINGS)

    preset = relationship("Preset", back_populates="items")

    __table_args__ = (Index("idx_preset_item_preset", "preset_id"),)

    @property
    def reference(self) -> ItemReference:
        return ItemReference.parse(self.kind, self.ref_id)
