"""
FoodItem model for per-serving nutrition data.

A food item may share its identifier with a Recipe; that pairing is how a
cooked dish carries both macro data and cooking metadata.
"""

from sqlalchemy import Column, Float, ForeignKey, Index, String
from sqlalchemy.orm import relationship

from .base import BaseModel
from src.utils.constants import DEFAULT_FOOD_SOURCE, DEFAULT_SERVING_LABEL


class FoodItem(BaseModel):
    """
    Food item with macros per serving.

    Attributes:
        user_id: Owning user, or None for shared items
        name: Food name (required)
        brand: Optional brand
        serving_label: Human description of one serving (e.g. "1 cup")
        source: Provenance tag (e.g. "custom", "usda")
        calories_per_serving: kcal per serving
        protein_g_per_serving: Protein grams per serving
        carbs_g_per_serving: Carbohydrate grams per serving
        fat_g_per_serving: Fat grams per serving
        fiber_g_per_serving: Fiber grams per serving
    """

    __tablename__ = "food_items"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    name = Column(String(300), nullable=False)
    brand = Column(String(200), nullable=True)
    serving_label = Column(String(100), nullable=False, default=DEFAULT_SERVING_LABEL)
    source = Column(String(50), nullable=False, default=DEFAULT_FOOD_SOURCE)

    # Macros per serving
    calories_per_serving = Column(Float, nullable=False, default=0.0)
    protein_g_per_serving = Column(Float, nullable=False, default=0.0)
    carbs_g_per_serving = Column(Float, nullable=False, default=0.0)
    fat_g_per_serving = Column(Float, nullable=False, default=0.0)
    fiber_g_per_serving = Column(Float, nullable=False, default=0.0)

    user = relationship("User", back_populates="food_items")
    used_in_recipes = relationship("RecipeIngredient", back_populates="food_item")

    __table_args__ = (Index("idx_food_item_user", "user_id"),)

    def __repr__(self) -> str:
        return f"FoodItem(id='{self.id}', name='{self.name}', brand='{self.brand}')"
