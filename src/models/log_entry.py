"""
LogEntry model for the food log.
"""

from sqlalchemy import Column, DateTime, Float, ForeignKey, Index, String, Text

from .base import BaseModel
from .enums import ItemReference
from src.utils.constants import DEFAULT_MEAL, DEFAULT_SERVINGS


class LogEntry(BaseModel):
    """
    One logged food or recipe portion.

    Attributes:
        user_id: Owning user
        occurred_at: When the food was eaten
        kind: "food" or "recipe_portion"
        ref_id: Id in the table selected by ``kind``
        servings: Number of servings eaten
        meal: Meal slot ("breakfast", "lunch", "dinner", "snack_N")
        note: Optional free text
    """

    __tablename__ = "log_entries"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    occurred_at = Column(DateTime(timezone=True), nullable=False)
    kind = Column(String(20), nullable=False)
    ref_id = Column(String(36), nullable=False)
    servings = Column(Float, nullable=False, default=DEFAULT_SERVINGS)
    meal = Column(String(30), nullable=False, default=DEFAULT_MEAL)
    note = Column(Text, nullable=True)

    __table_args__ = (Index("idx_log_entry_user_occurred", "user_id", "occurred_at"),)

    @property
    def reference(self) -> ItemReference:
        return ItemReference.parse(self.kind, self.ref_id)

    def __repr__(self) -> str:
        return (
            f"LogEntry(id='{self.id}', kind='{self.kind}', ref_id='{self.ref_id}', "
            f"meal='{self.meal}')"
        )
