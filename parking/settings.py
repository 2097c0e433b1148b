"""GarageSettings class for capacity and rate configuration."""

from typing import Any, Dict, Optional

from .errors import SettingsError
from .vehicle_type import VehicleType


class GarageSettings:
    """Garage capacity, grace period and per-type day rates (CLP)."""

    def __init__(
            self,
            capacity: int = 50,
            grace_period_hours: int = 0,
            rate_under_8_hours: int = 0,
            car_rate: int = 10000,
            truck_rate: int = 12000,
            trailer_rate: int = 15000,
            articulated_truck_rate: int = 20000,
    ):
        self.capacity = capacity
        self.grace_period_hours = grace_period_hours
        self.rate_under_8_hours = rate_under_8_hours
        self.car_rate = car_rate
        self.truck_rate = truck_rate
        self.trailer_rate = trailer_rate
        self.articulated_truck_rate = articulated_truck_rate

    @classmethod
    def from_dict(cls, dct: Optional[Dict[str, Any]]) -> "GarageSettings":
        """Build from a settings row; missing fields become 0."""
        dct = dct or {}
        return cls(
            capacity=dct.get("capacity") or 0,
            grace_period_hours=dct.get("grace_period_hours") or 0,
            rate_under_8_hours=dct.get("rate_under_8_hours_clp") or 0,
            car_rate=dct.get("car_rate_clp") or 0,
            truck_rate=dct.get("truck_rate_clp") or 0,
            trailer_rate=dct.get("trailer_rate_clp") or 0,
            articulated_truck_rate=dct.get("articulated_truck_rate_clp") or 0,
        )

    def to_dict(self) -> Dict[str, int]:
        return {
            "capacity": self.capacity,
            "grace_period_hours": self.grace_period_hours,
            "rate_under_8_hours_clp": self.rate_under_8_hours,
            "car_rate_clp": self.car_rate,
            "truck_rate_clp": self.truck_rate,
            "trailer_rate_clp": self.trailer_rate,
            "articulated_truck_rate_clp": self.articulated_truck_rate,
        }

    def validate(self) -> None:
        """Raise SettingsError unless capacity > 0 and all rates are ints >= 0."""
        if not _is_int(self.capacity) or self.capacity <= 0:
            raise SettingsError(f"capacity must be a positive integer, got {self.capacity!r}")
        for field, value in self.to_dict().items():
            if field == "capacity":
                continue
            if not _is_int(value) or value < 0:
                raise SettingsError(f"{field} must be a non-negative integer, got {value!r}")

    def rate_for(self, vehicle_type: VehicleType) -> int:
        """Day rate for a vehicle category. CAR is the fallback rate."""
        if vehicle_type == VehicleType.TRAILER:
            return self.trailer_rate
        if vehicle_type == VehicleType.TRUCK:
            return self.truck_rate
        if vehicle_type == VehicleType.ARTICULATED_TRUCK:
            return self.articulated_truck_rate
        return self.car_rate


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
