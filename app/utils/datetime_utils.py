"""
Datetime helpers shared by services and repositories.
"""

from datetime import datetime, timezone
from typing import Optional


def as_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Return an aware UTC datetime.

    Databases without timezone support hand back naive values; those are
    stored in UTC, so they are tagged rather than converted.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
