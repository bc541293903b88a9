"""
Shared datetime helpers.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Optional

# Older parsers accept exactly three or six fractional digits.
_FRACTION_RE = re.compile(r"(\.\d{1,6})\d*")


def ensure_utc(dt: datetime) -> datetime:
    """Return a timezone-aware UTC datetime."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(dt: datetime) -> str:
    """Format a datetime as ISO 8601 in UTC with a ``Z`` suffix."""
    return ensure_utc(dt).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: str) -> Optional[datetime]:
    """Parse an ISO 8601 / RFC 3339 timestamp and normalize it to UTC.

    Returns None when the value is empty or cannot be parsed.
    """
    if not value or not isinstance(value, str):
        return None
    raw = _FRACTION_RE.sub(lambda m: m.group(1).ljust(7, "0"), value.strip())
    if raw.endswith("Z") or raw.endswith("z"):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        return None
    return ensure_utc(parsed)
