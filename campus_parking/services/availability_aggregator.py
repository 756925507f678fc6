"""
AvailabilityAggregator — per floor / per zone free capacity for one building
and one window, plus the two read-side transforms the booking screens need:

  * merge_floors        — same zone name across selected floors is summed
  * apply_range_minimum — a multi-cell selection is only as free as its
                          busiest cell
"""

from dataclasses import dataclass, replace
from datetime import datetime

from dateutil.relativedelta import relativedelta

from campus_parking.models.enums import VehicleType
from campus_parking.services.overlap_oracle import check_window, count_free
from campus_parking.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class AggregatedZone:
    name: str
    capacity: int
    available: int
    status: str
    floor_ids: tuple
    zone_ids: tuple


async def aggregate(store, building_id: str, start: datetime, end: datetime, vehicle_type) -> list:
    """
    Capacity / availability for every floor and zone of a building.
    Floors ordered by level, zones by name.
    """
    check_window(start, end)
    vehicle_type = VehicleType.normalize(vehicle_type).value
    floors = await store.aggregate_availability(building_id, start, end, vehicle_type)

    result = [
        replace(floor, zones=tuple(sorted(floor.zones, key=lambda z: z.name)))
        for floor in sorted(floors, key=lambda f: (f.level, f.name))
    ]
    logger.info(
        f"[AVAIL] building={building_id} type={vehicle_type} floors={len(result)} "
        f"free={sum(f.available for f in result)}/{sum(f.capacity for f in result)}"
    )
    return result


def merge_floors(floors, floor_ids) -> list:
    selected = set(floor_ids)
    merged = {}
    for floor in floors:
        if floor.floor_id not in selected:
            continue
        for zone in floor.zones:
            entry = merged.setdefault(zone.name, {"capacity": 0, "available": 0, "floor_ids": [], "zone_ids": []})
            entry["capacity"] += zone.capacity
            entry["available"] += zone.available
            if floor.floor_id not in entry["floor_ids"]:
                entry["floor_ids"].append(floor.floor_id)
            entry["zone_ids"].append(zone.zone_id)

    return [
        AggregatedZone(
            name=name,
            capacity=data["capacity"],
            available=data["available"],
            status="available" if data["available"] > 0 else "full",
            floor_ids=tuple(data["floor_ids"]),
            zone_ids=tuple(data["zone_ids"]),
        )
        for name, data in sorted(merged.items())
    ]


def apply_range_minimum(cells, start: datetime, end: datetime) -> list:
    """
    Every cell starting inside [start, end) reports the minimum `remaining`
    of the range. Cells outside the range, and unknown (None) counts, are
    left alone.
    """
    in_range = [c for c in cells if start <= c.start < end]
    known = [c.remaining for c in in_range if c.remaining is not None]
    if not known:
        return list(cells)

    floor_value = min(known)
    return [
        replace(c, remaining=floor_value) if start <= c.start < end else c
        for c in cells
    ]


def _cell_window(cell):
    if cell.duration_minutes > 0:
        return cell.start, cell.end
    # monthly "contract start" cells stand for one calendar month
    return cell.start, cell.start + relativedelta(months=1)


async def cell_availability(store, building_id: str, cells, vehicle_type) -> list:
    """
    Fill in `remaining` for every selectable cell with the building-level
    free count for that cell's own window. One slot listing and one
    reservation read cover the whole grid.
    """
    vehicle_type = VehicleType.normalize(vehicle_type).value
    selectable = [c for c in cells if c.is_available]
    if not selectable:
        return list(cells)

    slots = [s for s in await store.list_slots(building_id) if s.vehicle_type == vehicle_type]
    if not slots:
        return [replace(c, remaining=0) if c.is_available else c for c in cells]

    windows = [_cell_window(c) for c in selectable]
    span_start = min(w[0] for w in windows)
    span_end = max(w[1] for w in windows)
    reservations = await store.occupying_reservations([s.id for s in slots], span_start, span_end)

    filled = []
    for cell in cells:
        if not cell.is_available:
            filled.append(cell)
            continue
        cell_start, cell_end = _cell_window(cell)
        filled.append(replace(cell, remaining=count_free(slots, reservations, cell_start, cell_end)))
    return filled
