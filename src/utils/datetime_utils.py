"""
Datetime utilities for consistent timezone handling across the application.

This module provides utilities to ensure all datetime operations use timezone-aware
datetimes consistently. Business logic runs on Brazil time (UTC-3, the
America/Sao_Paulo offset without daylight saving).
"""

import logging
from datetime import datetime, timezone, timedelta, date, time
from typing import Optional

logger = logging.getLogger(__name__)

# Brazil timezone constant (UTC-3)
BRAZIL_TZ = timezone(timedelta(hours=-3))


def brazil_now() -> datetime:
    """
    Get current Brazil datetime (UTC-3).

    Returns:
        Current datetime with Brazil timezone (UTC-3)
    """
    return datetime.now(BRAZIL_TZ)


def ensure_brazil(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Ensure a datetime is timezone-aware with Brazil timezone.

    Args:
        dt: Datetime to ensure is Brazil timezone-aware

    Returns:
        Timezone-aware datetime in Brazil timezone, or None if input is None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        # If naive, assume it's already in Brazil time and localize it
        return dt.replace(tzinfo=BRAZIL_TZ)
    return dt.astimezone(BRAZIL_TZ)


def start_of_day(day: date) -> datetime:
    """Brazil-time midnight at the start of ``day``."""
    return datetime.combine(day, time.min, tzinfo=BRAZIL_TZ)


def end_of_day(day: date) -> datetime:
    """Last representable Brazil-time instant of ``day``."""
    return datetime.combine(day, time.max, tzinfo=BRAZIL_TZ)


def minutes_between(start: Optional[datetime], end: Optional[datetime]) -> Optional[float]:
    """
    Minutes elapsed from ``start`` to ``end``.

    Naive values (SQLite hands timestamps back without tzinfo) are read as
    Brazil time. Returns None if either side is missing or the interval is negative.
    """
    if start is None or end is None:
        return None
    delta = ensure_brazil(end) - ensure_brazil(start)  # type: ignore[operator]
    if delta.total_seconds() < 0:
        logger.warning(f"Ignoring negative interval {start} -> {end}")
        return None
    return delta.total_seconds() / 60
