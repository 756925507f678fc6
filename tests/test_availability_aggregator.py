# tests/test_availability_aggregator.py
"""Unit tests for floor/zone aggregation, multi-floor merge and range minimum."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from datetime import datetime, timedelta
from campus_parking.services.availability_aggregator import (
    aggregate, apply_range_minimum, cell_availability, merge_floors,
)
from campus_parking.services.records import FloorAvailability, ZoneAvailability
from campus_parking.services.schedule_calendar import TimeSlot
from fakes import FakeStore, make_reservation, make_slot


def at(hour):
    return datetime(2025, 12, 4, hour, 0)


def cell(hour, remaining=None, available=True):
    return TimeSlot(id=f"c{hour}", start=at(hour), duration_minutes=60, is_available=available, remaining=remaining)


def two_floor_store(reservations=()):
    slots = []
    for floor_id, level in (("F2", 2), ("F1", 1)):
        for zone in ("B", "A"):
            for seq in (1, 2):
                slots.append(make_slot(f"{floor_id}-{zone}", seq, floor_id=floor_id, level=level,
                                       floor_name=f"Floor {level}", zone_name=f"Zone {zone}"))
    return FakeStore(slots=slots, reservations=reservations)


class TestAggregate:
    @pytest.mark.asyncio
    async def test_floors_by_level_zones_by_name(self):
        store = two_floor_store([make_reservation("F1-A-001", at(9), at(11))])
        floors = await aggregate(store, "B1", at(10), at(11), "normal")
        assert [f.floor_id for f in floors] == ["F1", "F2"]
        assert [z.name for z in floors[0].zones] == ["Zone A", "Zone B"]
        assert floors[0].zones[0].available == 1
        assert floors[0].available == 3 and floors[0].capacity == 4

    @pytest.mark.asyncio
    async def test_full_zone_status(self):
        store = two_floor_store([
            make_reservation("F1-A-001", at(9), at(11)),
            make_reservation("F1-A-002", at(10), at(12)),
        ])
        floors = await aggregate(store, "B1", at(10), at(11), "normal")
        assert floors[0].zones[0].status == "full"
        assert floors[0].status == "available"


class TestMergeFloors:
    def test_same_zone_name_is_summed(self):
        floors = [
            FloorAvailability("F1", "Floor 1", 1, (ZoneAvailability("F1-A", "Zone A", 5, 0), ZoneAvailability("F1-B", "Zone B", 5, 2))),
            FloorAvailability("F2", "Floor 2", 2, (ZoneAvailability("F2-A", "Zone A", 5, 3),)),
            FloorAvailability("F3", "Floor 3", 3, (ZoneAvailability("F3-A", "Zone A", 5, 5),)),
        ]
        merged = merge_floors(floors, ["F1", "F2"])
        assert [z.name for z in merged] == ["Zone A", "Zone B"]
        zone_a = merged[0]
        assert (zone_a.capacity, zone_a.available, zone_a.status) == (10, 3, "available")
        assert zone_a.zone_ids == ("F1-A", "F2-A")
        assert zone_a.floor_ids == ("F1", "F2")

    def test_full_when_sum_is_zero(self):
        floors = [
            FloorAvailability("F1", "Floor 1", 1, (ZoneAvailability("F1-A", "Zone A", 5, 0),)),
            FloorAvailability("F2", "Floor 2", 2, (ZoneAvailability("F2-A", "Zone A", 5, 0),)),
        ]
        assert merge_floors(floors, ["F1", "F2"])[0].status == "full"


class TestRangeMinimum:
    def test_minimum_not_sum_or_first(self):
        cells = [cell(8, 9), cell(9, 5), cell(10, 2), cell(11, 7), cell(12, 1)]
        result = apply_range_minimum(cells, at(9), at(12))
        assert [c.remaining for c in result] == [9, 2, 2, 2, 1]

    def test_unknown_counts_left_alone(self):
        cells = [cell(9), cell(10)]
        assert apply_range_minimum(cells, at(9), at(11)) == cells


class TestCellAvailability:
    @pytest.mark.asyncio
    async def test_fills_each_cell_with_its_own_window(self):
        store = two_floor_store([make_reservation("F1-A-001", at(9), at(10))])
        cells = [cell(8, available=False), cell(9), cell(10)]
        filled = await cell_availability(store, "B1", cells, "normal")
        assert [c.remaining for c in filled] == [None, 7, 8]

    @pytest.mark.asyncio
    async def test_monthly_cells_cover_a_month(self):
        store = two_floor_store([make_reservation("F1-A-001", at(9) + timedelta(days=10), at(10) + timedelta(days=10))])
        monthly = TimeSlot(id="m", start=datetime(2025, 12, 4), duration_minutes=0, is_available=True)
        filled = await cell_availability(store, "B1", [monthly], "normal")
        assert filled[0].remaining == 7

    @pytest.mark.asyncio
    async def test_type_without_slots_is_zero(self):
        filled = await cell_availability(two_floor_store(), "B1", [cell(9)], "ev")
        assert filled[0].remaining == 0
