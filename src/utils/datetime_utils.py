"""Datetime utilities for timezone-aware UTC timestamps.

SQLite does not keep timezone offsets, so every timestamp handled by the
backup engine is normalized to UTC before it is stored and treated as UTC
when it is read back.

Usage:
    from src.utils.datetime_utils import utc_now, format_timestamp

    # For SQLAlchemy Column defaults
    created_at = Column(DateTime, default=utc_now)

    # For bundle output
    "created_at": format_timestamp(row.created_at)
"""

import re
from datetime import date, datetime, timezone
from typing import Optional

from .constants import ACTIVITY_DATE_FORMAT

# Seconds fraction of any length, followed by an offset or the end
_FRACTION = re.compile(r"\.(\d+)(?=[+-]\d\d:?\d\d$|$)")


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime.

    This is the replacement for the deprecated datetime.utcnow().

    Returns:
        Current UTC datetime with timezone info
    """
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: str) -> datetime:
    """
    Parse an ISO-8601 timestamp into an aware UTC datetime.

    Accepts a trailing "Z" as well as explicit offsets. Naive values are
    assumed to be UTC. Fractions of any length are cut or padded to
    microseconds, so nanosecond timestamps parse.

    Args:
        value: Timestamp string

    Returns:
        Aware UTC datetime

    Raises:
        ValueError: If the string is not an ISO-8601 timestamp
    """
    text = value.strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    return ensure_utc(datetime.fromisoformat(text))


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Format a datetime as ISO-8601 UTC with a "Z" suffix."""
    if value is None:
        return None
    return ensure_utc(value).isoformat().replace("+00:00", "Z")


def parse_activity_date(value: str) -> date:
    """
    Parse a daily activity date in YYYY-MM-DD form.

    Raises:
        ValueError: If the value is not a calendar date in that form
    """
    return datetime.strptime(value, ACTIVITY_DATE_FORMAT).date()


def format_activity_date(value: date) -> str:
    return value.strftime(ACTIVITY_DATE_FORMAT)
