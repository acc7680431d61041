"""Timezone helpers.

SQLite drops tzinfo on round-trip, so every datetime read back from the
database is normalised to aware UTC before it is compared or serialised.
"""

from __future__ import annotations

import datetime
from typing import Optional


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def ensure_utc(value: Optional[datetime.datetime]) -> Optional[datetime.datetime]:
    """Return ``value`` as an aware UTC datetime (naive values are assumed UTC)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value.astimezone(datetime.timezone.utc)


def isoformat(value: Optional[datetime.datetime]) -> Optional[str]:
    value = ensure_utc(value)
    return value.isoformat() if value else None
