#!/usr/bin/env python3
"""Validate garage YAML files against the schema and the garage rules."""
import sys
from pathlib import Path

import yaml
from jsonschema import validate, ValidationError

from parking import STATUS_ACTIVE, STATUS_FINISHED, normalize_plate, parse_timestamp


def load_schema() -> dict:
    """Load the JSON schema from schema.yaml."""
    schema_path = Path(__file__).parent / "schema.yaml"
    with open(schema_path, encoding="utf-8") as f:
        return yaml.safe_load(f)


def check_stays(data: dict) -> list[str]:
    """
    Rules the schema cannot express, checked on schema-valid data.

    - entry_at and exit_at must parse as ISO-8601 timestamps
    - a stay cannot exit before it entered
    - finished stays need an exit time, active ones must not have one
    - a plate can only have one active stay (ignoring case, spaces and hyphens)
    - active stays cannot outnumber the capacity
    """
    errors = []
    active_plates = {}
    for index, row in enumerate(data.get("stays") or []):
        label = f"stays.{index} ({row['license_plate']})"
        entry_at = parse_timestamp(row["entry_at"])
        exit_at = parse_timestamp(row.get("exit_at"))
        if entry_at is None:
            errors.append(f"{label}: invalid entry_at {row['entry_at']!r}")
        if row.get("exit_at") is not None and exit_at is None:
            errors.append(f"{label}: invalid exit_at {row['exit_at']!r}")
        if entry_at and exit_at and exit_at < entry_at:
            errors.append(f"{label}: exit_at is before entry_at")

        status = row.get("status") or (STATUS_FINISHED if exit_at else STATUS_ACTIVE)
        if status == STATUS_FINISHED and row.get("exit_at") is None:
            errors.append(f"{label}: finished stay has no exit_at")
        if status == STATUS_ACTIVE and row.get("exit_at") is not None:
            errors.append(f"{label}: active stay has an exit_at")

        if status == STATUS_ACTIVE:
            plate = normalize_plate(row["license_plate"])
            if plate in active_plates:
                errors.append(
                    f"{label}: plate already active at stays.{active_plates[plate]}"
                )
            else:
                active_plates[plate] = index

    capacity = data["settings"]["capacity"]
    if len(active_plates) > capacity:
        errors.append(
            f"{len(active_plates)} active stays exceed capacity {capacity}"
        )
    return errors


def validate_garage_file(filepath: Path, schema: dict) -> list[str]:
    """Validate a single garage YAML file. Returns list of errors."""
    errors = []
    try:
        with open(filepath, encoding="utf-8") as f:
            data = yaml.safe_load(f)
        validate(instance=data, schema=schema)
        errors.extend(check_stays(data))
    except yaml.YAMLError as e:
        errors.append(f"YAML parse error: {e}")
    except ValidationError as e:
        errors.append(f"Schema validation error: {e.message}")
        if e.path:
            errors.append(f"  at path: {'.'.join(str(p) for p in e.path)}")
    except OSError as e:
        errors.append(f"Error: {e}")
    return errors


def main(argv=None):
    """Validate the given garage files, or garage.yaml next to this script."""
    schema = load_schema()
    paths = [Path(p) for p in (argv if argv is not None else sys.argv[1:])]
    if not paths:
        paths = [Path(__file__).parent / "garage.yaml"]

    all_valid = True
    for filepath in paths:
        errors = validate_garage_file(filepath, schema)
        if errors:
            print(f"FAIL: {filepath.name}")
            for error in errors:
                print(f"  {error}")
            all_valid = False
        else:
            print(f"OK: {filepath.name}")

    return 0 if all_valid else 1


if __name__ == "__main__":
    sys.exit(main())
