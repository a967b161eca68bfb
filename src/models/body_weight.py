"""
BodyWeight model for weigh-ins.
"""

from sqlalchemy import Column, DateTime, Float, ForeignKey, Index, String, Text

from .base import BaseModel
from src.utils.constants import DEFAULT_MEASUREMENT_SOURCE


class BodyWeight(BaseModel):
    """
    A single body weight measurement.

    Attributes:
        user_id: Owning user
        measured_at: When the measurement was taken
        weight_kg: Weight in kilograms
        source: Where the value came from (e.g. "manual", "scale")
        note: Optional free text
    """

    __tablename__ = "body_weights"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    measured_at = Column(DateTime(timezone=True), nullable=False)
    weight_kg = Column(Float, nullable=False)
    source = Column(String(50), nullable=False, default=DEFAULT_MEASUREMENT_SOURCE)
    note = Column(Text, nullable=True)

    __table_args__ = (Index("idx_body_weight_user_measured", "user_id", "measured_at"),)

    def __repr__(self) -> str:
        return f"BodyWeight(id='{self.id}', weight_kg={self.weight_kg})"
