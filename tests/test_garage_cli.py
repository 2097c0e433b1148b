#!/usr/bin/env python3
"""Tests for garage CLI formatting helpers and commands."""

from datetime import datetime, timezone

import pytest
import yaml

from parking import GarageSettings, Stay
from garage import (
    format_clp,
    format_local,
    main,
    make_active_table,
    make_history_table,
    truncate,
)

GARAGE_YAML = """
settings:
  capacity: 10
  grace_period_hours: 2
  rate_under_8_hours_clp: 3000
  car_rate_clp: 10000
  truck_rate_clp: 12000
  trailer_rate_clp: 15000
  articulated_truck_rate_clp: 25000
stays:
  - id: 1
    license_plate: XY1234
    entry_at: '2024-01-01T10:00:00+00:00'
    vehicle_type: Camión Acoplado
    country: Argentina
    status: activo
"""


@pytest.fixture
def garage_file(tmp_path):
    path = tmp_path / "garage.yaml"
    path.write_text(GARAGE_YAML, encoding="utf-8")
    return path


class TestFormatClp:
    """Tests for format_clp."""

    def test_thousands_use_dots(self):
        assert format_clp(1234567) == "$1.234.567"
        assert format_clp(500) == "$500"
        assert format_clp(0) == "$0"

    def test_none_returns_dash(self):
        assert format_clp(None) == "-"


class TestFormatLocal:
    """Tests for format_local."""

    def test_santiago_summer_time(self):
        moment = datetime(2024, 1, 1, 13, 0, tzinfo=timezone.utc)
        assert format_local(moment) == "01/01/24 10:00"

    def test_none_returns_dash(self):
        assert format_local(None) == "-"


class TestTruncate:
    """Tests for truncate."""

    def test_none_returns_dash(self):
        assert truncate(None) == "-"

    def test_long_text_truncated_with_ellipsis(self):
        assert truncate("Salida forzada por administrador.", max_len=15) == "Salida forza..."


class TestTables:
    """Tests for make_active_table and make_history_table."""

    def test_active_row(self):
        settings = GarageSettings(grace_period_hours=2, articulated_truck_rate=25000)
        stay = Stay("XY1234", "2024-01-01T10:00:00Z", "Camión Acoplado", "Argentina")
        now = datetime(2024, 1, 2, 16, 0, tzinfo=timezone.utc)
        rows = make_active_table([stay], settings, now)
        assert rows == [[
            "XY1234",
            "Camión Acoplado",
            "Argentina",
            "01/01/24 07:00",
            "1d 6h",
            "$50.000",
        ]]

    def test_history_row_open_stay(self):
        stay = Stay("XY1234", "2024-01-01T10:00:00Z", "Trailer")
        row = make_history_table([stay])[0]
        assert row[3] == "-"
        assert row[4] == "-"
        assert row[6] == "-"

    def test_history_row_closed_stay(self):
        stay = Stay(
            "XY1234", "2024-01-01T10:00:00Z", "Trailer",
            exit_at="2024-01-01T12:30:00Z", total_paid=3000,
        )
        row = make_history_table([stay])[0]
        assert row[4] == "2h 30m"
        assert row[5] == "finalizado"
        assert row[6] == "$3.000"


class TestCommands:
    """End-to-end CLI runs against a temporary data file."""

    def test_missing_file(self, tmp_path, capsys):
        assert main([str(tmp_path / "nope.yaml"), "rates"]) == 1
        assert "File not found" in capsys.readouterr().out

    def test_rates(self, garage_file, capsys):
        assert main([str(garage_file), "rates"]) == 0
        out = capsys.readouterr().out
        assert "Grace period: 2 hours" in out
        assert "$25.000" in out

    def test_status(self, garage_file, capsys):
        assert main([str(garage_file), "status", "--at", "2024-01-02T16:00:00Z"]) == 0
        out = capsys.readouterr().out
        assert "Occupancy: 1 / 10" in out
        assert "$50.000" in out

    def test_quote(self, garage_file, capsys):
        args = [str(garage_file), "quote", "2024-01-01T10:00:00Z", "2024-01-01T16:00:00Z"]
        assert main(args) == 0
        out = capsys.readouterr().out
        assert "under 8 hours" in out
        assert "$3.000" in out

    def test_quote_bad_entry_time(self, garage_file, capsys):
        assert main([str(garage_file), "quote", "yesterday-ish"]) == 1
        assert "Error: Invalid entry time" in capsys.readouterr().out

    def test_quote_bad_exit_time(self, garage_file, capsys):
        assert main([str(garage_file), "quote", "2024-01-01T10:00:00Z", "later"]) == 1
        assert "Error: Invalid timestamp" in capsys.readouterr().out

    def test_quote_long_stay_shows_days(self, garage_file, capsys):
        args = [str(garage_file), "quote", "2024-01-01T10:00:00Z", "2024-01-02T16:00:00Z"]
        assert main(args) == 0
        out = capsys.readouterr().out
        assert "Days:     2 x $10.000" in out
        assert "under 8 hours" not in out

    def test_exit_dry_run_leaves_file(self, garage_file, capsys):
        before = garage_file.read_text(encoding="utf-8")
        args = [str(garage_file), "exit", "xy1234", "--at", "2024-01-02T16:00:00Z", "--dry-run"]
        assert main(args) == 0
        assert "Total:    $50.000" in capsys.readouterr().out
        assert garage_file.read_text(encoding="utf-8") == before

    def test_exit_saves(self, garage_file):
        assert main([str(garage_file), "exit", "XY1234", "--at", "2024-01-02T16:00:00Z"]) == 0
        data = yaml.safe_load(garage_file.read_text(encoding="utf-8"))
        assert data["stays"][0]["total_paid_clp"] == 50000
        assert data["stays"][0]["status"] == "finalizado"

    def test_force_exit_saves_note(self, garage_file):
        args = [str(garage_file), "force-exit", "XY1234", "--at", "2024-01-01T11:00:00Z"]
        assert main(args) == 0
        data = yaml.safe_load(garage_file.read_text(encoding="utf-8"))
        assert data["stays"][0]["exit_notes"] == "Salida forzada por administrador."
        assert data["stays"][0]["total_paid_clp"] == 3000

    def test_entry_then_duplicate(self, garage_file, capsys):
        args = [str(garage_file), "entry", "NEW001", "Trailer", "--at", "2024-01-01T10:00:00Z"]
        assert main(args) == 0
        assert main(args) == 1
        assert "already parked" in capsys.readouterr().out

    def test_unknown_plate(self, garage_file, capsys):
        assert main([str(garage_file), "exit", "NOPE"]) == 1
        assert "No active stay" in capsys.readouterr().out

    def test_history_and_summary(self, garage_file, capsys):
        main([str(garage_file), "exit", "XY1234", "--at", "2024-01-02T16:00:00Z"])
        capsys.readouterr()
        assert main([str(garage_file), "history", "--status", "finalizado"]) == 0
        assert "Revenue: $50.000" in capsys.readouterr().out
        assert main([str(garage_file), "summary", "--start", "2024-01-01", "--end", "2024-01-02"]) == 0
        out = capsys.readouterr().out
        assert "Entries: 1" in out
        assert "Income: $50.000" in out
