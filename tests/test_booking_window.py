# tests/test_booking_window.py
"""Unit tests for turning a grid selection into a concrete window and price."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from datetime import datetime
from decimal import Decimal
from campus_parking.exceptions import InvariantViolation
from campus_parking.models.enums import BookingType, VehicleType
from campus_parking.services.booking_window import Selection, compute_price, resolve

TARIFF = {"hourly": 20, "flat_24h": 250, "monthly_regular": 2000, "monthly_night": 1200}


class TestResolve:
    def test_hourly_single_cell_is_one_interval(self):
        w = resolve("hourly", Selection.single(datetime(2025, 12, 4, 9, 0), 60), TARIFF)
        assert (w.start, w.end) == (datetime(2025, 12, 4, 9, 0), datetime(2025, 12, 4, 10, 0))
        assert w.price == Decimal(20)

    def test_hourly_end_includes_end_cell_duration(self):
        w = resolve("hourly", Selection.span(datetime(2025, 12, 4, 9, 0), datetime(2025, 12, 4, 11, 0)), TARIFF)
        assert w.end == datetime(2025, 12, 4, 12, 0)
        assert w.price == Decimal(60)

    def test_partial_hours_round_up(self):
        w = resolve("hourly", Selection.span(datetime(2025, 12, 4, 13, 0), datetime(2025, 12, 4, 15, 0), 30), TARIFF)
        assert w.end == datetime(2025, 12, 4, 15, 30)
        assert w.price == Decimal(60)

    def test_end_cell_before_start_cell(self):
        with pytest.raises(InvariantViolation):
            resolve("hourly", Selection.span(datetime(2025, 12, 4, 13, 0), datetime(2025, 12, 4, 10, 0)), TARIFF)

    def test_flat_24h_ignores_closing_time(self):
        w = resolve("flat_24h", Selection.single(datetime(2025, 12, 4, 9, 0)), TARIFF)
        assert w.end == datetime(2025, 12, 5, 9, 0)
        assert w.price == Decimal(250)

    def test_legacy_mode_name(self):
        w = resolve("flat24", Selection.single(datetime(2025, 12, 4, 9, 0)), TARIFF)
        assert w.end == datetime(2025, 12, 5, 9, 0)

    def test_monthly_night(self):
        w = resolve("monthly_night", Selection.single(datetime(2025, 12, 1, 0, 0), 0), TARIFF)
        assert w.start == datetime(2025, 12, 1, 18, 0)
        assert w.end == datetime(2026, 1, 1, 8, 0)
        assert w.price == Decimal(1200)

    def test_monthly_regular(self):
        w = resolve("monthly_regular", Selection.single(datetime(2025, 12, 1, 0, 0), 0), TARIFF)
        assert w.start == datetime(2025, 12, 1, 0, 0)
        assert w.end == datetime(2026, 1, 1, 23, 59, 59)
        assert w.price == Decimal(2000)

    def test_monthly_clamps_to_month_end(self):
        w = resolve("monthly_regular", Selection.single(datetime(2026, 1, 31, 0, 0), 0), TARIFF)
        assert w.end == datetime(2026, 2, 28, 23, 59, 59)


class TestComputePrice:
    def test_deterministic(self):
        start, end = datetime(2025, 12, 4, 8, 0), datetime(2025, 12, 4, 8, 1)
        assert compute_price("hourly", start, end, TARIFF) == compute_price("hourly", start, end, TARIFF) == Decimal(20)

    def test_unknown_mode(self):
        with pytest.raises(InvariantViolation):
            compute_price("weekly", datetime(2025, 12, 4), datetime(2025, 12, 5), TARIFF)


class TestModeNames:
    def test_legacy_names(self):
        assert BookingType.normalize("daily") == BookingType.HOURLY
        assert BookingType.normalize(" Monthly ") == BookingType.MONTHLY_REGULAR

    def test_unknown_mode_is_invariant_violation(self):
        with pytest.raises(InvariantViolation) as exc:
            BookingType.normalize("weekly")
        assert exc.value.http_status == 422

    def test_unknown_vehicle_type_is_invariant_violation(self):
        assert VehicleType.normalize("car") == VehicleType.NORMAL
        with pytest.raises(InvariantViolation):
            VehicleType.normalize("truck")
