"""Fee calculation: rate resolution, billable days and stay quotes."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Union

from .clock import Timestamp, parse_timestamp, utc_now
from .duration import (
    NOT_AVAILABLE,
    SHORT_STAY_HOURS,
    StayDuration,
    calc_stay_duration,
    calc_whole_hours,
)
from .settings import GarageSettings
from .vehicle_type import VehicleType

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(hours=24)

VehicleLabel = Union[str, VehicleType, None]


@dataclass
class Quote:
    """Fee and duration computed together for a single instant."""

    vehicle_type: VehicleType
    entry_at: Optional[datetime]
    exit_at: Optional[datetime]
    duration: StayDuration
    billable_days: int
    daily_rate: int
    fee: int
    is_short_stay: bool = False


def resolve_daily_rate(
    vehicle_type: VehicleLabel, settings: Optional[GarageSettings]
) -> int:
    """Day rate for a vehicle label; 0 when there are no settings."""
    if not settings:
        return 0
    return settings.rate_for(VehicleType.from_label(vehicle_type))


def calc_billable_days(elapsed: timedelta, grace_period_hours: float) -> int:
    """
    Number of days to bill for a stay of at least 8 hours.

    - Up to 24h: one day
    - Longer: full days, plus one when the leftover exceeds the grace period
    """
    if elapsed <= ONE_DAY:
        return 1
    full_days, remainder = divmod(elapsed, ONE_DAY)
    if remainder > timedelta(hours=grace_period_hours or 0):
        return full_days + 1
    return full_days


def calc_fee(
    entry_at: Timestamp,
    exit_at: Timestamp,
    settings: Optional[GarageSettings],
    vehicle_type: VehicleLabel,
    now: Optional[datetime] = None,
) -> int:
    """
    Calculate the charge for a stay in whole CLP.

    Stays under 8 whole hours pay the flat short-stay rate. Longer stays
    pay billable days times the vehicle's day rate. Ongoing stays
    (exit_at None) are billed up to `now`, defaulting to the current time.
    """
    if not settings:
        return 0
    start = parse_timestamp(entry_at)
    if start is None:
        logger.debug(f"Cannot price stay without entry time: {entry_at!r}")
        return 0
    end = _resolve_end(exit_at, now)
    if end is None:
        return 0

    elapsed = end - start
    if calc_whole_hours(elapsed) < SHORT_STAY_HOURS:
        return settings.rate_under_8_hours or 0

    days = calc_billable_days(elapsed, settings.grace_period_hours)
    return days * resolve_daily_rate(vehicle_type, settings)


def quote_stay(
    entry_at: Timestamp,
    exit_at: Timestamp,
    settings: Optional[GarageSettings],
    vehicle_type: VehicleLabel,
    now: Optional[datetime] = None,
) -> Quote:
    """
    Duration and fee for a stay, both measured against one end instant.

    Confirmation screens show this and persist `fee` unchanged.
    """
    start = parse_timestamp(entry_at)
    end = _resolve_end(exit_at, now)
    if end is None:
        duration = StayDuration(formatted=NOT_AVAILABLE)
        fee = 0
    else:
        duration = calc_stay_duration(entry_at, end)
        fee = calc_fee(entry_at, end, settings, vehicle_type)

    billable_days = 0
    is_short_stay = False
    # Only a priced stay is classified; missing settings or times are neither
    if settings and start is not None and end is not None:
        if calc_whole_hours(end - start) < SHORT_STAY_HOURS:
            is_short_stay = True
        else:
            billable_days = calc_billable_days(end - start, settings.grace_period_hours)

    return Quote(
        vehicle_type=VehicleType.from_label(vehicle_type),
        entry_at=start,
        exit_at=end,
        duration=duration,
        billable_days=billable_days,
        daily_rate=resolve_daily_rate(vehicle_type, settings),
        fee=fee,
        is_short_stay=is_short_stay,
    )


def _resolve_end(exit_at: Timestamp, now: Optional[datetime]) -> Optional[datetime]:
    if exit_at is not None:
        return parse_timestamp(exit_at)
    if now is not None:
        return parse_timestamp(now)
    return utc_now()
