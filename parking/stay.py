"""Stay class - one vehicle's parking session from entry to exit."""

import logging
from datetime import datetime
from typing import Any, Dict, Optional, Union

from .clock import Timestamp, parse_timestamp
from .duration import StayDuration, calc_stay_duration
from .errors import StayClosedError
from .fee import Quote, quote_stay
from .settings import GarageSettings
from .vehicle_type import VehicleType

logger = logging.getLogger(__name__)

STATUS_ACTIVE = "activo"
STATUS_FINISHED = "finalizado"
STAY_STATUSES = [STATUS_ACTIVE, STATUS_FINISHED]

FORCED_EXIT_NOTE = "Salida forzada por administrador."


class Stay:
    """A parking session. Mutated once at exit, read-only afterwards."""

    def __init__(
            self,
            license_plate: str,
            entry_at: Timestamp,
            vehicle_type: Union[str, VehicleType, None] = None,
            country: Optional[str] = None,
            exit_at: Timestamp = None,
            status: Optional[str] = None,
            total_paid: Optional[int] = None,
            exit_notes: Optional[str] = None,
            stay_id: Optional[Any] = None,
    ):
        self.license_plate = license_plate
        self.entry_at = parse_timestamp(entry_at)
        if isinstance(vehicle_type, VehicleType):
            vehicle_type = vehicle_type.label
        # Raw text is what gets stored and searched; billing uses the resolved type
        self.vehicle_label = vehicle_type
        self.vehicle_type = VehicleType.from_label(vehicle_type)
        self.country = country
        self.exit_at = parse_timestamp(exit_at)
        self.status = status or (STATUS_FINISHED if self.exit_at else STATUS_ACTIVE)
        self.total_paid = total_paid
        self.exit_notes = exit_notes
        self.id = stay_id

    def __repr__(self) -> str:
        return f"Stay({self.license_plate!r}, {self.status!r})"

    @property
    def is_active(self) -> bool:
        return self.status == STATUS_ACTIVE

    @property
    def type_label(self) -> str:
        """Vehicle type as entered, or the resolved label when none was given."""
        return self.vehicle_label or self.vehicle_type.label

    def duration(self, now: Optional[datetime] = None) -> StayDuration:
        """Elapsed time, up to exit_at for closed stays or `now` for open ones."""
        return calc_stay_duration(self.entry_at, self.exit_at, now=now)

    def estimate(
        self, settings: Optional[GarageSettings], now: Optional[datetime] = None
    ) -> Quote:
        """Quote for the stay as if it ended now (or at its recorded exit)."""
        return quote_stay(
            self.entry_at, self.exit_at, settings, self.vehicle_type, now=now
        )

    def register_exit(
        self, settings: GarageSettings, now: Optional[datetime] = None
    ) -> Quote:
        """Close the stay at `now` and record the charge."""
        return self._close(settings, now, notes=None)

    def force_exit(
        self,
        settings: GarageSettings,
        now: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> Quote:
        """Administrative exit: same charge as a regular exit, with a note."""
        return self._close(settings, now, notes=notes or FORCED_EXIT_NOTE)

    def _close(
        self,
        settings: GarageSettings,
        now: Optional[datetime],
        notes: Optional[str],
    ) -> Quote:
        if not self.is_active or self.exit_at is not None:
            raise StayClosedError(f"Stay for {self.license_plate} is already closed")

        quote = quote_stay(self.entry_at, None, settings, self.vehicle_type, now=now)
        self.exit_at = quote.exit_at
        self.total_paid = quote.fee
        self.status = STATUS_FINISHED
        if notes:
            self.exit_notes = notes
        logger.info(
            f"Exit registered for {self.license_plate}: "
            f"{quote.duration.formatted}, total {quote.fee}"
        )
        return quote

    @classmethod
    def from_dict(cls, dct: Dict[str, Any]) -> "Stay":
        """Build from a stay row using backend column names."""
        return cls(
            dct["license_plate"],
            dct["entry_at"],
            dct.get("vehicle_type"),
            dct.get("country"),
            dct.get("exit_at"),
            dct.get("status"),
            dct.get("total_paid_clp"),
            dct.get("exit_notes"),
            dct.get("id"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a stay row, omitting None values."""
        dct = {
            "license_plate": self.license_plate,
            "entry_at": self.entry_at.isoformat() if self.entry_at else None,
            "status": self.status,
        }
        if self.vehicle_label is not None:
            dct["vehicle_type"] = self.vehicle_label
        if self.id is not None:
            dct["id"] = self.id
        if self.country is not None:
            dct["country"] = self.country
        if self.exit_at is not None:
            dct["exit_at"] = self.exit_at.isoformat()
        if self.total_paid is not None:
            dct["total_paid_clp"] = self.total_paid
        if self.exit_notes is not None:
            dct["exit_notes"] = self.exit_notes
        return dct
