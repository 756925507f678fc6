"""
SlotAllocator — picks a concrete free slot in a zone and reserves it.

Flow (optimistic check-then-insert):
  1. Read the zone's slots of the requested type + occupying reservations.
  2. Candidates = slots with no overlap, ordered by (sequence, label).
  3. Insert a pending reservation on the first candidate.
     The store's insert is the arbiter: if a concurrent booking got there
     first it raises ConflictDetected.
  4. On conflict, re-read availability and try the next candidate, up to
     `max_conflict_retries` times.

No in-process lock is taken; two processes racing for the last slot are
decided by the database.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from campus_parking.config import settings
from campus_parking.exceptions import ConflictDetected, InvariantViolation, NotAvailable
from campus_parking.models.enums import BookingType, VehicleType
from campus_parking.services.overlap_oracle import check_window, occupied_slot_ids, slots_in_scope, Scope
from campus_parking.services.records import ReservationInfo, SlotInfo
from campus_parking.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class AllocationResult:
    slot: SlotInfo
    reservation: ReservationInfo
    attempts: int


@dataclass(frozen=True)
class ReservationResult:
    reservation_id: str
    slot_id: str
    slot_label: str
    floor_name: str
    zone_name: str
    start: datetime
    end: datetime
    status: str
    total_amount: Decimal


async def _free_candidates(store, zone_id: str, vehicle_type: str, start: datetime, end: datetime,
                           skip: set) -> list:
    slots = await slots_in_scope(store, Scope.zone(zone_id), vehicle_type)
    if not slots:
        return []
    reservations = await store.occupying_reservations([s.id for s in slots], start, end)
    taken = occupied_slot_ids(reservations, start, end) | skip
    return sorted((s for s in slots if s.id not in taken), key=lambda s: s.sort_key)


async def allocate(
    store,
    zone_id: str,
    start: datetime,
    end: datetime,
    vehicle_type,
    *,
    user_id: str,
    building_id: str,
    booking_type=BookingType.HOURLY,
    total_amount=Decimal("0"),
    max_conflict_retries: Optional[int] = None,
) -> AllocationResult:
    check_window(start, end)
    if not user_id:
        raise InvariantViolation("user_id is required to reserve a slot")

    vehicle_type = VehicleType.normalize(vehicle_type).value
    booking_type = BookingType.normalize(booking_type).value
    if max_conflict_retries is None:
        max_conflict_retries = settings.ALLOCATION_CONFLICT_RETRIES

    lost = set()
    attempt = 0
    while True:
        attempt += 1
        candidates = await _free_candidates(store, zone_id, vehicle_type, start, end, lost)
        if not candidates:
            if lost:
                logger.warning(f"[ALLOC] zone={zone_id} no candidate left after {len(lost)} lost race(s)")
                raise ConflictDetected(
                    f"Zone {zone_id} filled up while booking; please pick another zone",
                    zone_id=zone_id,
                )
            logger.info(f"[ALLOC] zone={zone_id} type={vehicle_type} full for {start.isoformat()}→{end.isoformat()}")
            raise NotAvailable(f"No free {vehicle_type} slot in zone {zone_id}", zone_id=zone_id)

        slot = candidates[0]
        try:
            reservation = await store.insert_reservation(
                user_id=user_id,
                building_id=building_id,
                slot_id=slot.id,
                start=start,
                end=end,
                vehicle_type=vehicle_type,
                booking_type=booking_type,
                total_amount=total_amount,
            )
        except ConflictDetected:
            lost.add(slot.id)
            if attempt > max_conflict_retries:
                logger.warning(f"[ALLOC] slot={slot.id} lost race, retries exhausted ({attempt} attempts)")
                raise
            logger.info(f"[ALLOC] slot={slot.id} lost race, retrying with next candidate")
            continue

        logger.info(
            f"[ALLOC] ✅ reservation={reservation.id} slot={slot.id} user={user_id} "
            f"{start.isoformat()}→{end.isoformat()} attempt={attempt}"
        )
        return AllocationResult(slot=slot, reservation=reservation, attempts=attempt)


async def reserve_slot(store, user_id: str, zone_id: str, vehicle_type, start: datetime, end: datetime,
                       booking_type=BookingType.HOURLY, total_amount=Decimal("0"),
                       building_id: Optional[str] = None) -> ReservationResult:
    """Entry point for the reservation endpoint; derives the building from the zone's slots."""
    if building_id is None:
        zone_slots = await store.list_slots(zone_id=zone_id)
        if not zone_slots:
            raise NotAvailable(f"Zone {zone_id} has no slots", zone_id=zone_id)
        building_id = zone_slots[0].key.building_id

    result = await allocate(
        store, zone_id, start, end, vehicle_type,
        user_id=user_id,
        building_id=building_id,
        booking_type=booking_type,
        total_amount=total_amount,
    )
    return ReservationResult(
        reservation_id=result.reservation.id,
        slot_id=result.slot.id,
        slot_label=result.slot.label,
        floor_name=result.slot.floor_name,
        zone_name=result.slot.zone_name,
        start=result.reservation.start_time,
        end=result.reservation.end_time,
        status=result.reservation.status,
        total_amount=result.reservation.total_amount,
    )
