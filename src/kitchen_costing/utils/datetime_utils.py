"""Timezone-aware timestamp helpers.

Usage:
    from kitchen_costing.utils.datetime_utils import utc_now

    # SQLAlchemy Column defaults
    created_at = Column(DateTime, default=utc_now)
"""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Return current UTC time as a timezone-aware datetime."""
    return datetime.now(timezone.utc)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Format a datetime as ISO-8601, passing None through."""
    if value is None:
        return None
    return value.isoformat()
