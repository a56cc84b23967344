from __future__ import annotations

from datetime import date, datetime, timezone, tzinfo
from typing import Optional


def utc_now() -> datetime:
    """Current instant as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_aware(value: datetime, reference_tz: Optional[tzinfo] = None) -> datetime:
    """
    Return ``value`` as an aware UTC datetime.

    Naive values are interpreted in ``reference_tz`` (UTC when omitted).
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=reference_tz or timezone.utc)
    return value.astimezone(timezone.utc)


def local_today(reference_tz: tzinfo, now: Optional[datetime] = None) -> date:
    """Calendar date of ``now`` in the reference timezone."""
    current = now or utc_now()
    return ensure_aware(current).astimezone(reference_tz).date()
