#!/usr/bin/env python3
"""Tests for the Stay lifecycle."""

from datetime import datetime, timedelta, timezone

import pytest
from parking import GarageSettings, Stay, StayClosedError, VehicleType

ENTRY = datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def settings():
    return GarageSettings(
        grace_period_hours=2,
        rate_under_8_hours=2000,
        car_rate=10000,
        articulated_truck_rate=25000,
    )


@pytest.fixture
def stay():
    return Stay("ABCD12", "2024-01-01T10:00:00Z", "Camión Acoplado", country="Chile")


class TestStayBasics:
    """Construction and derived properties."""

    def test_new_stay_is_active(self, stay):
        assert stay.is_active
        assert stay.status == "activo"
        assert stay.entry_at == ENTRY
        assert stay.exit_at is None

    def test_vehicle_type_normalized_once(self, stay):
        assert stay.vehicle_type == VehicleType.ARTICULATED_TRUCK

    def test_recorded_label_kept_apart_from_billing_type(self):
        stay = Stay("X", "2024-01-01T10:00:00Z", "camion solo")
        assert stay.vehicle_type == VehicleType.CAR
        assert stay.vehicle_label == "camion solo"
        assert stay.type_label == "camion solo"

    def test_type_label_without_recorded_label(self):
        assert Stay("X", "2024-01-01T10:00:00Z").type_label == "Automóvil"
        assert Stay("X", "2024-01-01T10:00:00Z", VehicleType.TRAILER).vehicle_label == "Trailer"

    def test_exit_at_implies_finished(self):
        closed = Stay("X", "2024-01-01T10:00:00Z", exit_at="2024-01-01T12:00:00Z")
        assert closed.status == "finalizado"
        assert not closed.is_active

    def test_duration_of_open_stay(self, stay):
        assert stay.duration(now=ENTRY + timedelta(hours=5)).formatted == "5h"

    def test_estimate(self, stay, settings):
        quote = stay.estimate(settings, now=ENTRY + timedelta(hours=30))
        assert quote.fee == 50000
        assert stay.is_active


class TestStayExit:
    """register_exit and force_exit."""

    def test_register_exit_records_charge(self, stay, settings):
        now = ENTRY + timedelta(hours=30)
        quote = stay.register_exit(settings, now)
        assert quote.fee == 50000
        assert stay.total_paid == 50000
        assert stay.exit_at == now
        assert stay.status == "finalizado"
        assert stay.exit_notes is None

    def test_charge_matches_live_estimate(self, stay, settings):
        now = ENTRY + timedelta(hours=61, minutes=17)
        estimate = stay.estimate(settings, now=now)
        quote = stay.register_exit(settings, now)
        assert quote.fee == estimate.fee
        assert stay.duration().formatted == estimate.duration.formatted

    def test_closed_stay_is_immutable(self, stay, settings):
        stay.register_exit(settings, ENTRY + timedelta(hours=3))
        with pytest.raises(StayClosedError):
            stay.register_exit(settings, ENTRY + timedelta(hours=90))
        with pytest.raises(StayClosedError):
            stay.force_exit(settings, ENTRY + timedelta(hours=90))
        assert stay.total_paid == 2000

    def test_closed_estimate_uses_recorded_exit(self, stay, settings):
        stay.register_exit(settings, ENTRY + timedelta(hours=3))
        later = stay.estimate(settings, now=ENTRY + timedelta(days=10))
        assert later.fee == 2000

    def test_force_exit_default_note(self, stay, settings):
        quote = stay.force_exit(settings, ENTRY + timedelta(hours=30))
        assert quote.fee == 50000
        assert stay.exit_notes == "Salida forzada por administrador."
        assert stay.status == "finalizado"

    def test_force_exit_custom_note(self, stay, settings):
        stay.force_exit(settings, ENTRY + timedelta(hours=1), notes="Grúa municipal")
        assert stay.exit_notes == "Grúa municipal"


class TestStaySerialization:
    """from_dict and to_dict."""

    def test_from_dict(self):
        stay = Stay.from_dict({
            "id": 7,
            "license_plate": "ZZ9999",
            "entry_at": "2024-01-01T10:00:00+00:00",
            "exit_at": "2024-01-02T10:00:00+00:00",
            "vehicle_type": "Trailer",
            "country": "Perú",
            "status": "finalizado",
            "total_paid_clp": 15000,
        })
        assert stay.id == 7
        assert stay.vehicle_type == VehicleType.TRAILER
        assert stay.total_paid == 15000
        assert stay.exit_at == datetime(2024, 1, 2, 10, tzinfo=timezone.utc)

    def test_to_dict_omits_empty_fields(self, stay):
        assert stay.to_dict() == {
            "license_plate": "ABCD12",
            "entry_at": "2024-01-01T10:00:00+00:00",
            "vehicle_type": "Camión Acoplado",
            "status": "activo",
            "country": "Chile",
        }

    def test_to_dict_after_exit(self, stay, settings):
        stay.register_exit(settings, ENTRY + timedelta(hours=30))
        row = stay.to_dict()
        assert row["exit_at"] == "2024-01-02T16:00:00+00:00"
        assert row["total_paid_clp"] == 50000
        assert row["status"] == "finalizado"

    def test_to_dict_without_vehicle_type(self):
        assert "vehicle_type" not in Stay("X", "2024-01-01T10:00:00Z").to_dict()
