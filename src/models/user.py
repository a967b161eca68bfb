"""
User model.

Users own every other collection except food items, which may be unowned
and shared.
"""

from sqlalchemy import Column, String
from sqlalchemy.orm import relationship

from .base import BaseModel


class User(BaseModel):
    """
    Account that owns logged data.

    Attributes:
        email: Optional unique email address
        display_name: Name shown in the UI
    """

    __tablename__ = "users"

    email = Column(String(320), unique=True, nullable=True)
    display_name = Column(String(200), nullable=True)

    food_items = relationship("FoodItem", back_populates="user", passive_deletes=True)
    recipes = relationship("Recipe", back_populates="user", passive_deletes=True)
    presets = relationship("Preset", back_populates="user", passive_deletes=True)

    def __repr__(self) -> str:
        return f"User(id='{self.id}', display_name='{self.display_name}')"
