"""
DailyActivity model for per-day step counts and active energy.

Unlike the other collections, activity rows are keyed by (user_id, date)
rather than by an opaque identifier.
"""

from sqlalchemy import Column, Date, DateTime, Float, ForeignKey, Integer, String

from .base import Base
from src.utils.constants import DEFAULT_MEASUREMENT_SOURCE
from src.utils.datetime_utils import utc_now


class DailyActivity(Base):
    """
    Activity totals for one user on one calendar day.

    Attributes:
        user_id: Owning user (part of the primary key)
        date: Calendar day (part of the primary key)
        steps: Step count
        active_calories_kcal_est: Estimated active energy burned
        source: Where the values came from
        created_at: When the row was first written
    """

    __tablename__ = "daily_activity"

    user_id = Column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    date = Column(Date, primary_key=True)
    steps = Column(Integer, nullable=False, default=0)
    active_calories_kcal_est = Column(Float, nullable=False, default=0.0)
    source = Column(String(50), nullable=False, default=DEFAULT_MEASUREMENT_SOURCE)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    def __repr__(self) -> str:
        return (
            f"DailyActivity(user_id='{self.user_id}', date={self.date}, steps={self.steps})"
        )
