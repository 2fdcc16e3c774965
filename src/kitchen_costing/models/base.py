"""
Base model class for all database models.

Provides common functionality and fields for all models:
- Integer primary key plus a UUID column for external references
- Timestamp fields (created_at, updated_at)
- Utility methods (to_dict, update_from_dict)
- SQLAlchemy declarative base
"""

import uuid as uuid_lib
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import declarative_base, validates

from kitchen_costing.utils.datetime_utils import to_iso, utc_now

Base = declarative_base()

# Columns update_from_dict never touches
PROTECTED_COLUMNS = ("id", "uuid", "user_id", "created_at", "updated_at")


class BaseModel(Base):
    """
    Abstract base model with common fields and methods.

    All models inherit:
    - id: Integer primary key
    - uuid: Stable external identifier
    - created_at / updated_at: Timestamps
    - to_dict(): Convert model to dictionary
    """

    __abstract__ = True

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Stored as string for SQLite compatibility
    uuid = Column(
        String(36), unique=True, nullable=False, default=lambda: str(uuid_lib.uuid4()), index=True
    )

    created_at = Column(DateTime, nullable=False, default=utc_now)
    updated_at = Column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        """
        Column values as a JSON-ready dict.

        Datetimes become ISO strings and Decimals become strings, so money
        and per-gram prices keep their exact digits.
        """
        result = {}
        for column in self.__table__.columns:
            value = getattr(self, column.name)
            if isinstance(value, datetime):
                value = to_iso(value)
            elif isinstance(value, Decimal):
                value = str(value)
            result[column.name] = value
        return result

    @validates("uuid")
    def _validate_uuid(self, _key: str, value: Any) -> str:
        """Normalize UUID values to strings for SQLite compatibility."""
        if value is None:
            return value
        return str(value)

    def update_from_dict(self, data: Dict[str, Any], exclude: Iterable[str] = ()) -> None:
        """
        Update model instance from dictionary.

        Only columns present in data are set; identity, ownership and
        timestamp columns are never overwritten.

        Args:
            data: Dictionary with field names and values
            exclude: Extra column names to leave untouched
        """
        skipped = set(PROTECTED_COLUMNS) | set(exclude)
        for column in self.__table__.columns:
            if column.name in data and column.name not in skipped:
                setattr(self, column.name, data[column.name])

        self.updated_at = utc_now()

    def __repr__(self) -> str:
        """String representation like "ClassName(id=1, name='Flour')"."""
        class_name = self.__class__.__name__
        attrs = []

        if getattr(self, "id", None) is not None:
            attrs.append(f"id={self.id}")

        if getattr(self, "name", None) is not None:
            attrs.append(f"name='{self.name}'")

        return f"{class_name}({', '.join(attrs)})"
