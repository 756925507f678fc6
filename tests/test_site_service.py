# tests/test_site_service.py
"""Unit tests for building summaries and status."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from datetime import datetime
from campus_parking.services.records import BuildingInfo, SlotKey
from campus_parking.services.schedule_calendar import WeeklySchedule
from campus_parking.services.site_service import building_status, list_site_buildings
from campus_parking.exceptions import InvariantViolation
from fakes import FakeStore, make_reservation, make_slot

THURSDAY_NOON = datetime(2025, 12, 4, 12, 0)


def building(schedule=None):
    return BuildingInfo(
        id="B1", site_id="S1", name="Parking A",
        schedule=schedule or WeeklySchedule.from_entries([{"days": "thursday", "open_time": "08:00", "close_time": "20:00"}]),
        supported_types=("normal",), capacity={"normal": 2},
    )


class TestBuildingStatus:
    def test_closed_wins(self):
        assert building_status(False, 10, 10) == "closed"

    def test_full_low_available(self):
        assert building_status(True, 10, 0) == "full"
        assert building_status(True, 100, 9) == "low"
        assert building_status(True, 100, 10) == "available"

    def test_no_capacity_is_not_full(self):
        assert building_status(True, 0, 0) == "available"


class TestSiteBuildings:
    @pytest.mark.asyncio
    async def test_summary(self):
        store = FakeStore(
            slots=[make_slot("ZA", 1), make_slot("ZA", 2)],
            reservations=[make_reservation("ZA-001", THURSDAY_NOON, THURSDAY_NOON.replace(hour=14))],
            buildings=[building()],
        )
        [summary] = await list_site_buildings(store, "S1", now=THURSDAY_NOON)
        assert summary.is_open is True
        assert summary.available == {"normal": 1}
        assert summary.status == "available"
        assert summary.hours_text == "Thu 08:00-20:00"

    @pytest.mark.asyncio
    async def test_closed_building(self):
        store = FakeStore(slots=[make_slot("ZA", 1)], buildings=[building()])
        [summary] = await list_site_buildings(store, "S1", now=datetime(2025, 12, 5, 12, 0))
        assert summary.status == "closed"


class TestSlotKey:
    def test_legacy_id(self):
        key = SlotKey.parse_legacy("1-1-2-3-7")
        assert key.building_id == "1-1"
        assert key.floor_id == "1-1-3"
        assert key.zone_id == "1-1-3-B"
        assert key.sequence == 7
        assert key.slot_id == "1-1-3-B-007"

    def test_malformed_legacy_id(self):
        with pytest.raises(InvariantViolation):
            SlotKey.parse_legacy("1-1-x-3")
