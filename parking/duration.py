"""Stay duration calculation and formatting."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from dateutil.relativedelta import relativedelta

from .clock import Timestamp, parse_timestamp, utc_now

logger = logging.getLogger(__name__)

ONE_HOUR = timedelta(hours=1)
SHORT_STAY_HOURS = 8
LONG_STAY_DAYS = 30

NOT_AVAILABLE = "N/A"
FUTURE_DATE = "Fecha futura"
JUST_NOW = "Ahora"


@dataclass
class StayDuration:
    """Elapsed time of a stay, broken down for display."""

    formatted: str
    days: int = 0
    hours: int = 0
    minutes: int = 0
    seconds: int = 0
    total_days: int = 0
    total_hours: int = 0
    is_under_8_hours: bool = False

    def __str__(self) -> str:
        return self.formatted


def calc_whole_hours(elapsed: timedelta) -> int:
    """Whole hours in a span, truncated toward zero."""
    hours = abs(elapsed) // ONE_HOUR
    return hours if elapsed >= timedelta(0) else -hours


def calc_full_days(start: datetime, end: datetime) -> int:
    """
    Full calendar days between two instants (end >= start).

    Counts date boundaries crossed, minus one when the final day is not
    complete yet (end's time of day is earlier than start's).
    """
    days = (end.date() - start.date()).days
    if days > 0 and end.time() < start.time():
        days -= 1
    return days


def calc_stay_duration(
    entry_at: Timestamp,
    exit_at: Timestamp = None,
    now: Optional[datetime] = None,
) -> StayDuration:
    """
    Calculate how long a stay has lasted.

    Ongoing stays (no exit_at) are measured up to `now`, or the current
    time when `now` is not given. Never raises: bad input yields "N/A" and
    an entry after the end yields "Fecha futura", both with zeroed fields.
    """
    start = parse_timestamp(entry_at)
    if start is None:
        logger.debug(f"No usable entry time: {entry_at!r}")
        return StayDuration(formatted=NOT_AVAILABLE)

    if exit_at is None:
        end = parse_timestamp(now) if now is not None else utc_now()
    else:
        end = parse_timestamp(exit_at)
    if end is None:
        logger.debug(f"No usable exit time: {exit_at!r}")
        return StayDuration(formatted=NOT_AVAILABLE)

    if start > end:
        return StayDuration(formatted=FUTURE_DATE)

    total_hours = calc_whole_hours(end - start)
    total_days = calc_full_days(start, end)
    interval = relativedelta(end, start)

    parts = []
    if total_days > 0:
        parts.append(f"{total_days}d")
    if interval.hours > 0:
        parts.append(f"{interval.hours}h")
    if interval.minutes > 0:
        parts.append(f"{interval.minutes}m")

    if total_days < LONG_STAY_DAYS and not parts and interval.seconds > 0:
        parts.append(f"{interval.seconds}s")

    return StayDuration(
        formatted=" ".join(parts) if parts else JUST_NOW,
        days=total_days,
        hours=interval.hours,
        minutes=interval.minutes,
        seconds=interval.seconds,
        total_days=total_days,
        total_hours=total_hours,
        is_under_8_hours=total_hours < SHORT_STAY_HOURS,
    )
