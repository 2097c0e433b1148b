"""Garage class - the main aggregate for settings, stays and reporting."""

import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from typing import Dict, Iterable, List, Optional, Union

from .clock import GARAGE_TZ, local_date, utc_now
from .errors import DuplicateStayError, GarageFullError, StayNotFoundError
from .fee import Quote
from .settings import GarageSettings
from .stay import STATUS_FINISHED, Stay
from .vehicle_type import VehicleType

logger = logging.getLogger(__name__)

NEAR_FULL_PERCENTAGE = 90
ALL_STATUSES = "todos"


@dataclass
class Occupancy:
    """Spots in use versus capacity."""

    active: int
    capacity: int

    @property
    def percentage(self) -> float:
        if self.capacity <= 0:
            return 0.0
        return self.active / self.capacity * 100

    @property
    def is_near_full(self) -> bool:
        return self.percentage >= NEAR_FULL_PERCENTAGE

    @property
    def is_full(self) -> bool:
        return self.active >= self.capacity


@dataclass
class GarageSummary:
    """Activity over a date window."""

    start: date
    end: date
    active: int
    capacity: int
    entries: int = 0
    exits: int = 0
    income: int = 0
    by_vehicle_type: Dict[str, int] = field(default_factory=dict)
    by_country: Dict[str, int] = field(default_factory=dict)


class Garage:
    """Settings plus every known stay, active and closed."""

    def __init__(self, settings: GarageSettings, stays: Optional[List[Stay]] = None):
        self.settings = settings
        self.stays = stays or []

    def active_stays(self) -> List[Stay]:
        """Active stays, oldest entry first."""
        return sorted(
            (s for s in self.stays if s.is_active),
            key=lambda s: s.entry_at or datetime.min.replace(tzinfo=timezone.utc),
        )

    def closed_stays(self) -> List[Stay]:
        return [s for s in self.stays if not s.is_active]

    def find_active(self, license_plate: str) -> Stay:
        """Find the active stay for a plate, ignoring case, spaces and hyphens."""
        plate = normalize_plate(license_plate)
        for stay in self.stays:
            if stay.is_active and normalize_plate(stay.license_plate) == plate:
                return stay
        raise StayNotFoundError(f"No active stay for plate {license_plate}")

    def occupancy(self) -> Occupancy:
        return Occupancy(
            active=sum(1 for s in self.stays if s.is_active),
            capacity=self.settings.capacity,
        )

    def register_entry(
        self,
        license_plate: str,
        vehicle_type: Union[str, VehicleType, None],
        country: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Stay:
        """Open a new stay. Plates are stored upper-cased without separators."""
        try:
            self.find_active(license_plate)
        except StayNotFoundError:
            pass
        else:
            raise DuplicateStayError(f"Vehicle {license_plate} is already parked")

        if self.occupancy().is_full:
            raise GarageFullError(
                f"Garage is full ({self.settings.capacity} spots in use)"
            )

        stay = Stay(
            license_plate=normalize_plate(license_plate),
            entry_at=now or utc_now(),
            vehicle_type=vehicle_type,
            country=country,
            stay_id=self._next_id(),
        )
        self.stays.append(stay)
        logger.info(f"Entry registered for {stay.license_plate} ({stay.type_label})")
        return stay

    def register_exit(self, license_plate: str, now: Optional[datetime] = None) -> Quote:
        return self.find_active(license_plate).register_exit(self.settings, now)

    def force_exit(
        self,
        license_plate: str,
        now: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> Quote:
        return self.find_active(license_plate).force_exit(self.settings, now, notes)

    def filter_history(
        self,
        search: Optional[str] = None,
        entry_date: Optional[str] = None,
        exit_date: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[Stay]:
        """
        Filter stays for the history view, newest entry first.

        Args:
            search: Substring of plate, vehicle type or country (case-insensitive)
            entry_date: Only stays that entered on this local day (YYYY-MM-DD)
            exit_date: Only stays that exited on this local day (YYYY-MM-DD)
            status: "activo", "finalizado", or "todos"/None for all
        """
        stays = self.stays
        if search:
            needle = search.lower()
            stays = [
                s for s in stays
                if needle in s.license_plate.lower()
                or needle in s.type_label.lower()
                or needle in (s.country or "").lower()
            ]
        if entry_date:
            stays = [
                s for s in stays
                if s.entry_at and local_date(s.entry_at).isoformat() == entry_date
            ]
        if exit_date:
            stays = [
                s for s in stays
                if s.exit_at and local_date(s.exit_at).isoformat() == exit_date
            ]
        if status and status != ALL_STATUSES:
            stays = [s for s in stays if s.status == status]
        return sorted(
            stays,
            key=lambda s: s.entry_at or datetime.min.replace(tzinfo=timezone.utc),
            reverse=True,
        )

    def summarize(self, start: date, end: Optional[date] = None) -> GarageSummary:
        """
        Entries, exits and income for the days start..end (inclusive, garage local days).

        Vehicle type and country breakdowns count stays that entered in
        the window. Active count and capacity are always current.
        """
        end = end or start
        window_start = datetime.combine(start, time.min, tzinfo=GARAGE_TZ)
        window_end = datetime.combine(end, time.max, tzinfo=GARAGE_TZ)

        def in_window(moment: Optional[datetime]) -> bool:
            return moment is not None and window_start <= moment <= window_end

        entered = [s for s in self.stays if in_window(s.entry_at)]
        exited = [s for s in self.stays if in_window(s.exit_at)]
        occupancy = self.occupancy()

        return GarageSummary(
            start=start,
            end=end,
            active=occupancy.active,
            capacity=occupancy.capacity,
            entries=len(entered),
            exits=len(exited),
            income=total_revenue(exited),
            by_vehicle_type=dict(Counter(s.type_label for s in entered)),
            by_country=dict(Counter(s.country for s in entered if s.country)),
        )

    def _next_id(self) -> int:
        ids = [s.id for s in self.stays if isinstance(s.id, int)]
        return max(ids) + 1 if ids else 1


def total_revenue(stays: Iterable[Stay]) -> int:
    """Sum of charges over finished stays."""
    return sum(s.total_paid or 0 for s in stays if s.status == STATUS_FINISHED)


_PLATE_SEPARATORS = re.compile(r"[\s-]")


def normalize_plate(license_plate: str) -> str:
    """Canonical plate: upper case, no spaces or hyphens."""
    return _PLATE_SEPARATORS.sub("", license_plate or "").upper()
