# campus_parking/utils/timestamps.py
"""
Reservations are stored as naive datetimes. Clients often send ISO strings
with a `Z` or `+03:00` suffix, so every incoming value passes through here.
"""

from datetime import datetime, timezone
from typing import Optional


def as_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Aware datetimes are converted to UTC and stripped; naive ones pass through."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
