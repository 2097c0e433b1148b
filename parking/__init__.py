"""
Garage billing models.

This package computes parking charges and stay durations:
- VehicleType: Rate categories resolved from free-text labels
- GarageSettings: Capacity, grace period and day rates
- StayDuration / calc_stay_duration: Elapsed time for display
- calc_fee / quote_stay: The billing rules
- Stay: One vehicle's session, closed once at exit
- Garage: Main aggregate with occupancy and reporting
- Ticker: Shared "now" for live displays
"""

from .errors import (
    GarageError,
    SettingsError,
    StayNotFoundError,
    StayClosedError,
    DuplicateStayError,
    GarageFullError,
)
from .clock import (
    GARAGE_TZ,
    FixedClock,
    SystemClock,
    Ticker,
    local_date,
    local_today,
    parse_timestamp,
    utc_now,
)
from .vehicle_type import VehicleType, VEHICLE_TYPES
from .settings import GarageSettings
from .duration import StayDuration, calc_stay_duration
from .fee import Quote, calc_billable_days, calc_fee, quote_stay, resolve_daily_rate
from .stay import Stay, STATUS_ACTIVE, STATUS_FINISHED
from .garage import Garage, GarageSummary, Occupancy, normalize_plate, total_revenue
from .loader import load_garage, save_garage, save_settings

__all__ = [
    "GarageError",
    "SettingsError",
    "StayNotFoundError",
    "StayClosedError",
    "DuplicateStayError",
    "GarageFullError",
    "GARAGE_TZ",
    "FixedClock",
    "SystemClock",
    "Ticker",
    "local_date",
    "local_today",
    "parse_timestamp",
    "utc_now",
    "VehicleType",
    "VEHICLE_TYPES",
    "GarageSettings",
    "StayDuration",
    "calc_stay_duration",
    "Quote",
    "calc_billable_days",
    "calc_fee",
    "quote_stay",
    "resolve_daily_rate",
    "Stay",
    "STATUS_ACTIVE",
    "STATUS_FINISHED",
    "Garage",
    "GarageSummary",
    "Occupancy",
    "normalize_plate",
    "total_revenue",
    "load_garage",
    "save_garage",
    "save_settings",
]
