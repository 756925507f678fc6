"""
SQL implementation of the reservation store (SQLAlchemy session).

All reads and writes the engine needs go through here:
  - building / slot lookups (capacity is counted from slots)
  - occupying reservations overlapping a window
  - per floor / zone availability for a building
  - the overlap-checked insert (PostgreSQL exclusion constraint is the
    arbiter; every dialect also re-checks inside the insert transaction)
  - status transitions and the pending-expiry bulk update

Methods are coroutines so the engine can swap in the RPC store; the
session calls inside are synchronous.
"""

from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from campus_parking.exceptions import (
    ConflictDetected, InvariantViolation, NotAvailable, ReservationNotFound,
)
from campus_parking.models.building import Building, ScheduleEntry as ScheduleRow
from campus_parking.models.enums import (
    ALLOWED_TRANSITIONS, OCCUPYING_STATUSES, ReservationStatus,
)
from campus_parking.models.floor import Floor
from campus_parking.models.reservation import NO_OVERLAP_CONSTRAINT, Reservation
from campus_parking.models.site import Site
from campus_parking.models.slot import Slot
from campus_parking.models.zone import Zone
from campus_parking.services.records import (
    BuildingInfo, FloorAvailability, ReservationInfo, SlotInfo, SlotKey, ZoneAvailability,
)
from campus_parking.services.overlap_oracle import count_free
from campus_parking.services.schedule_calendar import WeeklySchedule
from campus_parking.utils.logger import get_logger

logger = get_logger(__name__)

EXCLUSION_VIOLATION = "23P01"


def _to_reservation_info(row: Reservation) -> ReservationInfo:
    return ReservationInfo(
        id=row.id,
        user_id=row.user_id,
        building_id=row.building_id,
        slot_id=row.slot_id,
        vehicle_type=row.vehicle_type,
        start_time=row.start_time,
        end_time=row.end_time,
        status=row.status,
        booking_type=row.booking_type,
        total_amount=Decimal(str(row.total_amount or 0)),
        created_at=row.created_at,
    )


def _is_overlap_violation(exc: IntegrityError) -> bool:
    pgcode = getattr(exc.orig, "pgcode", None)
    return pgcode == EXCLUSION_VIOLATION or NO_OVERLAP_CONSTRAINT in str(exc.orig)


class SqlReservationStore:
    """
    Store over a SQLAlchemy session.

    Only PostgreSQL guarantees no overlapping reservations per slot (the
    exclusion constraint). On SQLite the overlap pre-check and the commit
    are separate statements, so two processes can both pass the check:
    SQLite is for single-process development and tests only.
    """

    def __init__(self, db: Session):
        self.db = db

    # ── Buildings ─────────────────────────────────────────────────────────

    def _schedule_for(self, building: Building) -> WeeklySchedule:
        rows = (
            self.db.query(ScheduleRow)
            .filter(ScheduleRow.building_id == building.id)
            .order_by(ScheduleRow.id)
            .all()
        )
        if rows:
            return WeeklySchedule.from_entries(rows)
        return WeeklySchedule.from_legacy(building.open_time, building.close_time)

    def _capacity_for(self, building_id: str) -> dict:
        counts = (
            self.db.query(Slot.vehicle_type, func.count(Slot.id))
            .filter(Slot.building_id == building_id)
            .group_by(Slot.vehicle_type)
            .all()
        )
        return {vehicle_type: int(n) for vehicle_type, n in counts}

    def _building_info(self, building: Building, category: str = "parking") -> BuildingInfo:
        return BuildingInfo(
            id=building.id,
            site_id=building.site_id,
            name=building.name,
            schedule=self._schedule_for(building),
            supported_types=tuple(building.supported_type_list) or ("normal",),
            capacity=self._capacity_for(building.id),
            category=category,
        )

    async def list_buildings(self, site_id: str) -> list:
        site = self.db.query(Site).filter(Site.id == site_id).first()
        if not site:
            return []
        buildings = (
            self.db.query(Building)
            .filter(Building.site_id == site_id)
            .order_by(Building.name)
            .all()
        )
        return [self._building_info(b, site.category) for b in buildings]

    async def get_building(self, building_id: str):
        building = self.db.query(Building).filter(Building.id == building_id).first()
        if not building:
            return None
        site = self.db.query(Site).filter(Site.id == building.site_id).first()
        return self._building_info(building, site.category if site else "parking")

    # ── Slots ─────────────────────────────────────────────────────────────

    async def list_slots(self, building_id: str = None, *, floor_id: str = None, zone_id: str = None) -> list:
        if not (building_id or floor_id or zone_id):
            raise InvariantViolation("list_slots needs a building, floor or zone")

        q = (
            self.db.query(Slot, Floor, Zone)
            .join(Floor, Floor.id == Slot.floor_id)
            .join(Zone, Zone.id == Slot.zone_id)
        )
        if building_id:
            q = q.filter(Slot.building_id == building_id)
        if floor_id:
            q = q.filter(Slot.floor_id == floor_id)
        if zone_id:
            q = q.filter(Slot.zone_id == zone_id)

        return [
            SlotInfo(
                id=slot.id,
                key=SlotKey(slot.site_id, slot.building_id, slot.floor_id, slot.zone_id, slot.sequence),
                vehicle_type=slot.vehicle_type,
                label=slot.label or f"{zone.name} #{slot.sequence}",
                floor_name=floor.name,
                floor_level=floor.level,
                zone_name=zone.name,
            )
            for slot, floor, zone in q.order_by(Slot.zone_id, Slot.sequence).all()
        ]

    # ── Reservations ──────────────────────────────────────────────────────

    def _overlapping_query(self, slot_ids, start: datetime, end: datetime):
        return self.db.query(Reservation).filter(
            Reservation.slot_id.in_(list(slot_ids)),
            Reservation.status.in_(list(OCCUPYING_STATUSES)),
            Reservation.start_time < end,
            Reservation.end_time > start,
        )

    async def occupying_reservations(self, slot_ids, start: datetime, end: datetime) -> list:
        if not slot_ids:
            return []
        return [_to_reservation_info(r) for r in self._overlapping_query(slot_ids, start, end).all()]

    async def aggregate_availability(self, building_id: str, start: datetime, end: datetime, vehicle_type: str) -> list:
        slots = [s for s in await self.list_slots(building_id) if s.vehicle_type == vehicle_type]
        reservations = await self.occupying_reservations([s.id for s in slots], start, end)

        by_floor = {}
        for slot in slots:
            floor = by_floor.setdefault(slot.key.floor_id, {"name": slot.floor_name, "level": slot.floor_level, "zones": {}})
            floor["zones"].setdefault(slot.key.zone_id, {"name": slot.zone_name, "slots": []})["slots"].append(slot)

        result = []
        for floor_id, floor in by_floor.items():
            zones = tuple(
                ZoneAvailability(
                    zone_id=zone_id,
                    name=zone["name"],
                    capacity=len(zone["slots"]),
                    available=count_free(zone["slots"], reservations, start, end),
                )
                for zone_id, zone in floor["zones"].items()
            )
            result.append(FloorAvailability(floor_id=floor_id, name=floor["name"], level=floor["level"], zones=zones))
        return result

    async def insert_reservation(self, user_id: str, building_id: str, slot_id: str, start: datetime, end: datetime,
                                 vehicle_type: str, booking_type: str, total_amount=Decimal("0")) -> ReservationInfo:
        """
        Insert a pending reservation. Raises ConflictDetected when an occupying
        reservation on the same slot overlaps [start, end).
        """
        if end <= start:
            raise InvariantViolation("Reservation end must be after start")
        slot = self.db.query(Slot).filter(Slot.id == slot_id).first()
        if not slot:
            raise NotAvailable(f"Slot {slot_id} does not exist", slot_id=slot_id)

        if self._overlapping_query([slot_id], start, end).first():
            raise ConflictDetected(f"Slot {slot_id} is already booked for that window", slot_id=slot_id)

        now = datetime.utcnow()
        row = Reservation(
            user_id=user_id,
            building_id=building_id,
            slot_id=slot_id,
            vehicle_type=vehicle_type,
            start_time=start,
            end_time=end,
            status=ReservationStatus.PENDING.value,
            booking_type=booking_type,
            total_amount=total_amount,
            created_at=now,
            updated_at=now,
        )
        self.db.add(row)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            if _is_overlap_violation(exc):
                logger.warning(f"[ALLOC] exclusion constraint rejected slot={slot_id} {start.isoformat()}→{end.isoformat()}")
                raise ConflictDetected(f"Slot {slot_id} was booked concurrently", slot_id=slot_id)
            raise
        self.db.refresh(row)
        return _to_reservation_info(row)

    async def transition_status(self, reservation_id: str, new_status: str) -> ReservationInfo:
        row = self.db.query(Reservation).filter(Reservation.id == reservation_id).first()
        if not row:
            raise ReservationNotFound(f"Reservation {reservation_id} not found", reservation_id=reservation_id)

        try:
            new_status = ReservationStatus(new_status).value
        except ValueError:
            raise InvariantViolation(f"Unknown reservation status '{new_status}'")
        if new_status not in ALLOWED_TRANSITIONS.get(row.status, set()):
            raise InvariantViolation(
                f"Cannot move reservation from '{row.status}' to '{new_status}'",
                reservation_id=reservation_id,
            )

        old_status = row.status
        row.status = new_status
        row.updated_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(row)
        logger.info(f"[STATUS] reservation={reservation_id} {old_status} → {new_status}")
        return _to_reservation_info(row)

    async def auto_cancel_expired_pending(self, now: datetime, grace: timedelta) -> int:
        """Cancel pending reservations whose start passed more than `grace` ago."""
        cutoff = now - grace
        count = (
            self.db.query(Reservation)
            .filter(
                Reservation.status == ReservationStatus.PENDING.value,
                Reservation.start_time < cutoff,
            )
            .update(
                {Reservation.status: ReservationStatus.CANCELLED.value, Reservation.updated_at: datetime.utcnow()},
                synchronize_session=False,
            )
        )
        self.db.commit()
        return count
