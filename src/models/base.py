"""
Base model class for all database models.

Provides common functionality and fields for all models:
- Opaque string primary key (UUID text, preserved across export/import)
- Creation timestamp
- Identifier normalization and repr
- SQLAlchemy declarative base
"""

import uuid as uuid_lib
from typing import Any

from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import declarative_base, validates

from src.utils.datetime_utils import utc_now

# Create the declarative base for all models
Base = declarative_base()


def new_id() -> str:
    """Generate a fresh row identifier."""
    return str(uuid_lib.uuid4())


class BaseModel(Base):
    """
    Abstract base model with common fields and methods.

    All identifier-keyed models inherit from this class to get:
    - id: Stable identifier assigned at creation, never regenerated on import
    - created_at: Timestamp when record was created
    """

    __abstract__ = True

    # Stored as string for SQLite compatibility
    id = Column(String(36), primary_key=True, default=new_id)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    @validates("id")
    def _validate_id(self, _key: str, value: Any) -> str:
        """Normalize identifiers (e.g. uuid.UUID) to strings."""
        if value is None:
            return value
        return str(value)

    def __repr__(self) -> str:
        """
        String representation of model instance.

        Returns:
            String like "ClassName(id='...', name='...')"
        """
        class_name = self.__class__.__name__
        attrs = []

        if hasattr(self, "id") and self.id is not None:
            attrs.append(f"id='{self.id}'")

        if hasattr(self, "name") and self.name is not None:
            attrs.append(f"name='{self.name}'")

        attrs_str = ", ".join(attrs)
        return f"{class_name}({attrs_str})"
