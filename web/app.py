"""Flask web application for the garage."""

import logging
import os
from datetime import date
from pathlib import Path

from flask import Flask, jsonify, request

# Add parent directory to path for model imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from parking.clock import local_today, parse_timestamp, utc_now
from parking.errors import (
    DuplicateStayError,
    GarageError,
    GarageFullError,
    StayClosedError,
    StayNotFoundError,
)
from parking.fee import quote_stay
from parking.garage import total_revenue
from parking.loader import load_garage, save_garage

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config["GARAGE_DATA_FILE"] = os.environ.get(
    "GARAGE_DATA_FILE", str(Path(__file__).parent.parent / "garage.yaml")
)

ERROR_STATUS = {
    StayNotFoundError: 404,
    DuplicateStayError: 409,
    StayClosedError: 409,
    GarageFullError: 409,
}


def get_data_path() -> Path:
    return Path(app.config["GARAGE_DATA_FILE"])


def request_now():
    """The instant a request is evaluated at: ?at= / form 'at', else now."""
    value = request.values.get("at")
    if not value:
        return utc_now()
    moment = parse_timestamp(value)
    if moment is None:
        raise ValueError(f"Invalid timestamp: {value}")
    return moment


def quote_json(quote) -> dict:
    return {
        "vehicle_type": quote.vehicle_type.label,
        "entry_at": quote.entry_at.isoformat() if quote.entry_at else None,
        "exit_at": quote.exit_at.isoformat() if quote.exit_at else None,
        "duration": quote.duration.formatted,
        "is_under_8_hours": quote.duration.is_under_8_hours,
        "billable_days": quote.billable_days,
        "daily_rate": quote.daily_rate,
        "total_paid_clp": quote.fee,
    }


@app.errorhandler(GarageError)
def handle_garage_error(error):
    status = ERROR_STATUS.get(type(error), 400)
    return jsonify({"error": str(error)}), status


@app.errorhandler(ValueError)
def handle_value_error(error):
    return jsonify({"error": str(error)}), 400


@app.route("/api/stays/active")
def active_stays():
    """Parked vehicles, each priced at the same instant."""
    garage = load_garage(get_data_path())
    now = request_now()
    occupancy = garage.occupancy()

    stays = []
    for stay in garage.active_stays():
        row = quote_json(stay.estimate(garage.settings, now=now))
        row.update(stay.to_dict())
        stays.append(row)

    return jsonify({
        "as_of": now.isoformat(),
        "active": occupancy.active,
        "capacity": occupancy.capacity,
        "is_near_full": occupancy.is_near_full,
        "stays": stays,
    })


@app.route("/api/stays/history")
def stay_history():
    """Filtered history with revenue for finished stays."""
    garage = load_garage(get_data_path())
    stays = garage.filter_history(
        search=request.args.get("search") or None,
        entry_date=request.args.get("entry_date") or None,
        exit_date=request.args.get("exit_date") or None,
        status=request.args.get("status") or None,
    )
    rows = []
    for stay in stays:
        row = stay.to_dict()
        row["duration"] = stay.duration().formatted if stay.exit_at else None
        rows.append(row)

    return jsonify({"revenue": total_revenue(stays), "count": len(rows), "stays": rows})


@app.route("/api/stays", methods=["POST"])
def register_entry():
    """Register a vehicle entry."""
    path = get_data_path()
    license_plate = request.values.get("license_plate")
    if not license_plate:
        return jsonify({"error": "license_plate is required"}), 400

    garage = load_garage(path)
    stay = garage.register_entry(
        license_plate,
        request.values.get("vehicle_type"),
        request.values.get("country") or None,
        now=request_now(),
    )
    save_garage(path, garage)
    logger.info(f"Entry saved for {stay.license_plate}")
    return jsonify(stay.to_dict()), 201


@app.route("/api/stays/<license_plate>/exit", methods=["POST"])
def register_exit(license_plate: str):
    """Close a stay and persist its charge."""
    path = get_data_path()
    garage = load_garage(path)
    quote = garage.register_exit(license_plate, now=request_now())
    save_garage(path, garage)
    return jsonify(quote_json(quote))


@app.route("/api/stays/<license_plate>/force-exit", methods=["POST"])
def force_exit(license_plate: str):
    """Administrative exit with an optional note."""
    path = get_data_path()
    garage = load_garage(path)
    quote = garage.force_exit(
        license_plate, now=request_now(), notes=request.values.get("notes") or None
    )
    save_garage(path, garage)
    return jsonify(quote_json(quote))


@app.route("/api/quote")
def quote():
    """Price a stay without recording anything."""
    entry_at = request.args.get("entry_at")
    if not entry_at:
        return jsonify({"error": "entry_at is required"}), 400
    garage = load_garage(get_data_path())
    result = quote_stay(
        entry_at,
        request.args.get("exit_at") or None,
        garage.settings,
        request.args.get("vehicle_type"),
        now=request_now(),
    )
    return jsonify(quote_json(result))


@app.route("/api/summary")
def summary():
    """Activity for ?start=YYYY-MM-DD&end=YYYY-MM-DD (default: today)."""
    garage = load_garage(get_data_path())
    start_arg = request.args.get("start")
    end_arg = request.args.get("end")
    start = date.fromisoformat(start_arg) if start_arg else local_today()
    end = date.fromisoformat(end_arg) if end_arg else start
    result = garage.summarize(start, end)

    return jsonify({
        "start": result.start.isoformat(),
        "end": result.end.isoformat(),
        "active": result.active,
        "capacity": result.capacity,
        "entries": result.entries,
        "exits": result.exits,
        "income": result.income,
        "by_vehicle_type": result.by_vehicle_type,
        "by_country": result.by_country,
    })


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    # Using 5001 to avoid conflict with macOS AirPlay Receiver on 5000
    app.run(debug=True, host="0.0.0.0", port=5001)
