"""Exceptions raised by garage operations."""


class GarageError(Exception):
    """Base class for garage operation failures."""


class SettingsError(GarageError, ValueError):
    """Raised when a settings record has invalid values."""


class StayNotFoundError(GarageError, LookupError):
    """Raised when no active stay matches a license plate."""


class StayClosedError(GarageError):
    """Raised when trying to exit a stay that already has an exit."""


class DuplicateStayError(GarageError):
    """Raised when a plate is registered while already parked."""


class GarageFullError(GarageError):
    """Raised when registering an entry with no free spots."""
