"""VehicleType enum for rate categories."""

from enum import Enum
from typing import Optional, Union


class VehicleType(Enum):
    """Closed set of billing categories. Value is the display label."""

    CAR = "Automóvil"
    TRAILER = "Trailer"
    TRUCK = "Camión Solo"
    ARTICULATED_TRUCK = "Camión Acoplado"

    @property
    def label(self) -> str:
        return self.value

    @classmethod
    def from_label(cls, label: Optional[Union[str, "VehicleType"]]) -> "VehicleType":
        """
        Resolve a free-text vehicle label to its category.

        Case-insensitive substring match, first hit wins. Unknown or empty
        labels fall back to CAR.
        """
        if isinstance(label, VehicleType):
            return label
        text = (label or "").lower()
        for keywords, vehicle_type in _KEYWORDS:
            if any(keyword in text for keyword in keywords):
                return vehicle_type
        return cls.CAR


# Order matters: "camión acoplado" must not be caught by a looser truck match
_KEYWORDS = (
    (("trailer",), VehicleType.TRAILER),
    (("camión solo",), VehicleType.TRUCK),
    (("camión acoplado",), VehicleType.ARTICULATED_TRUCK),
    (("automóvil", "automovil", "auto"), VehicleType.CAR),
)

VEHICLE_TYPES = [
    VehicleType.CAR.label,
    VehicleType.TRAILER.label,
    VehicleType.TRUCK.label,
    VehicleType.ARTICULATED_TRUCK.label,
]
