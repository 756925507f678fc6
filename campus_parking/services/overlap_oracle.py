"""
OverlapOracle — answers "how many slots of type T are free in scope X during
[start, end)?".

Occupancy is never stored: a slot is occupied when at least one reservation
in the occupying set (pending / confirmed / checked_in) overlaps the window
under the half-open rule  r.start < end AND r.end > start.
Back-to-back bookings (one ends exactly when the next starts) do not overlap.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from campus_parking.exceptions import InvariantViolation
from campus_parking.models.enums import OCCUPYING_STATUSES, VehicleType
from campus_parking.utils.logger import get_logger

logger = get_logger(__name__)

SCOPE_KINDS = ("building", "floor", "zone")


@dataclass(frozen=True)
class Scope:
    kind: str
    id: str

    def __post_init__(self):
        if self.kind not in SCOPE_KINDS:
            raise InvariantViolation(f"Unknown scope kind '{self.kind}'", kind=self.kind)

    @classmethod
    def building(cls, building_id: str) -> "Scope":
        return cls("building", building_id)

    @classmethod
    def floor(cls, floor_id: str) -> "Scope":
        return cls("floor", floor_id)

    @classmethod
    def zone(cls, zone_id: str) -> "Scope":
        return cls("zone", zone_id)


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    return a_start < b_end and a_end > b_start


def check_window(start: datetime, end: datetime):
    if end <= start:
        raise InvariantViolation(
            f"Window end must be after start (got {start.isoformat()} → {end.isoformat()})",
        )


def occupied_slot_ids(reservations: Iterable, start: datetime, end: datetime) -> set:
    """Distinct slot ids held by occupying reservations overlapping [start, end)."""
    return {
        r.slot_id
        for r in reservations
        if r.slot_id
        and r.status in OCCUPYING_STATUSES
        and overlaps(r.start_time, r.end_time, start, end)
    }


def count_free(slots: Iterable, reservations: Iterable, start: datetime, end: datetime) -> int:
    slot_ids = {s.id for s in slots}
    if not slot_ids:
        return 0
    taken = occupied_slot_ids(reservations, start, end) & slot_ids
    return max(0, len(slot_ids) - len(taken))


async def slots_in_scope(store, scope: Scope, vehicle_type) -> list:
    vehicle_type = VehicleType.normalize(vehicle_type).value
    if scope.kind == "building":
        slots = await store.list_slots(scope.id)
    elif scope.kind == "floor":
        slots = await store.list_slots(floor_id=scope.id)
    else:
        slots = await store.list_slots(zone_id=scope.id)
    return [s for s in slots if s.vehicle_type == vehicle_type]


async def free_count(store, scope: Scope, vehicle_type, start: datetime, end: datetime) -> int:
    """
    Number of slots of `vehicle_type` in `scope` with no occupying overlap.
    Read-only; a TransportFailure from the store propagates to the caller.
    """
    check_window(start, end)
    slots = await slots_in_scope(store, scope, vehicle_type)
    if not slots:
        return 0

    reservations = await store.occupying_reservations([s.id for s in slots], start, end)
    free = count_free(slots, reservations, start, end)
    logger.debug(
        f"[AVAIL] {scope.kind}={scope.id} type={vehicle_type} "
        f"{start.isoformat()}→{end.isoformat()} free={free}/{len(slots)}"
    )
    return free
