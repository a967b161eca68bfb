"""
Recipe models.

This module contains:
- Recipe: Cooking metadata, optionally sharing its id with a FoodItem
- RecipeIngredient: Food item used in a recipe with an amount in grams
- RecipePortion: Named share of a recipe's yield that can be logged
"""

from sqlalchemy import Column, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from .base import BaseModel
from src.utils.constants import DEFAULT_PORTION_COUNT, DEFAULT_YIELD_COUNT


class Recipe(BaseModel):
    """
    Recipe model.

    The id is not a foreign key to food_items even when the two share it;
    either row may exist without the other.

    Attributes:
        user_id: Owning user (required)
        name: Recipe name (required)
        instructions: Free-form cooking instructions (markdown)
        yield_count: Number of portions the recipe makes
    """

    __tablename__ = "recipes"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(300), nullable=False)
    instructions = Column(Text, nullable=True)
    yield_count = Column(Integer, nullable=False, default=DEFAULT_YIELD_COUNT)

    user = relationship("User", back_populates="recipes")
    recipe_ingredients = relationship(
        "RecipeIngredient",
        back_populates="recipe",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    portions = relationship(
        "RecipePortion",
        back_populates="recipe",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (Index("idx_recipe_user", "user_id"),)

    def __repr__(self) -> str:
        return f"Recipe(id='{self.id}', name='{self.name}', yield_count={self.yield_count})"


class RecipeIngredient(BaseModel):
    """
    Junction table linking recipes to food items with an amount.

    Attributes:
        recipe_id: Foreign key to Recipe
        food_item_id: Foreign key to FoodItem
        amount_g: Grams of the food item used
    """

    __tablename__ = "recipe_ingredients"

    recipe_id = Column(String(36), ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False)
    food_item_id = Column(
        String(36), ForeignKey("food_items.id", ondelete="RESTRICT"), nullable=False
    )
    amount_g = Column(Float, nullable=False)

    recipe = relationship("Recipe", back_populates="recipe_ingredients")
    food_item = relationship("FoodItem", back_populates="used_in_recipes")

    __table_args__ = (
        Index("idx_recipe_ingredient_recipe", "recipe_id"),
        Index("idx_recipe_ingredient_food_item", "food_item_id"),
    )

    def __repr__(self) -> str:
        return (
            f"RecipeIngredient(recipe_id='{self.recipe_id}', "
            f"food_item_id='{self.food_item_id}', amount_g={self.amount_g})"
        )


class RecipePortion(BaseModel):
    """
    Named portion of a recipe.

    Attributes:
        recipe_id: Foreign key to Recipe
        name: Portion name (e.g. "1 bowl")
        portion_count: How many yield units this portion represents
    """

    __tablename__ = "recipe_portions"

    recipe_id = Column(String(36), ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(200), nullable=False)
    portion_count = Column(Float, nullable=False, default=DEFAULT_PORTION_COUNT)

    recipe = relationship("Recipe", back_populates="portions")

    __table_args__ = (Index("idx_recipe_portion_recipe", "recipe_id"),)
