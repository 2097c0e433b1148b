"""YAML loading and saving utilities for garage data."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Union

import yaml

from .garage import Garage
from .settings import GarageSettings
from .stay import Stay

logger = logging.getLogger(__name__)


def _parse_object(dct: Dict[str, Any]) -> Union[GarageSettings, Stay, Garage, dict]:
    """Parse dictionary into appropriate object type."""
    # Stay row
    if "license_plate" in dct and "entry_at" in dct:
        return Stay.from_dict(dct)
    # Settings row
    elif "capacity" in dct or "car_rate_clp" in dct:
        return GarageSettings.from_dict(dct)
    # Top-level garage object
    elif "settings" in dct:
        settings = dct["settings"]
        if not isinstance(settings, GarageSettings):
            settings = GarageSettings.from_dict(settings)
        return Garage(settings, dct.get("stays") or [])
    else:
        return dct


def _read_raw(filename: Union[str, Path]) -> Dict[str, Any]:
    with open(filename, "r", encoding="utf-8") as fp:
        return yaml.load(fp, Loader=yaml.SafeLoader) or {}


def _write_raw(filename: Union[str, Path], data: Dict[str, Any]) -> None:
    with open(filename, "w", encoding="utf-8") as fp:
        yaml.dump(
            data,
            fp,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
            width=120,
        )


def load_garage(filename: Union[str, Path]) -> Garage:
    """Load settings and stays from a YAML file."""
    with open(filename, "rb") as fp:
        # Unquoted YAML timestamps load as datetimes; str() keeps them parseable
        json_data = json.dumps(
            yaml.load(fp, Loader=yaml.SafeLoader) or {}, indent=4, default=str
        )
    garage = json.loads(json_data, object_hook=_parse_object)
    if not isinstance(garage, Garage):
        raise ValueError(f"{filename} has no 'settings' section")
    logger.info(f"Loaded {len(garage.stays)} stays from {filename}")
    return garage


def save_garage(filename: Union[str, Path], garage: Garage) -> None:
    """
    Write settings and stays back to a YAML file.

    Loads the raw YAML first so unrelated top-level keys survive.
    """
    path = Path(filename)
    data = _read_raw(path) if path.exists() else {}
    data["settings"] = garage.settings.to_dict()
    data["stays"] = [stay.to_dict() for stay in garage.stays]
    _write_raw(path, data)
    logger.info(f"Saved {len(garage.stays)} stays to {filename}")


def save_settings(filename: Union[str, Path], settings: GarageSettings) -> None:
    """Validate and replace the settings section of a YAML file."""
    settings.validate()
    data = _read_raw(filename)
    data["settings"] = settings.to_dict()
    _write_raw(filename, data)
    logger.info(f"Saved settings to {filename}")
