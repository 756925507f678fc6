"""
BookingDraft — the in-progress booking a client walks through:

  SelectingWindow → WindowChosen → ZoneChosen → SlotAllocated → Reserved

The draft is immutable; every step returns a new draft, so a stale
reference held by a slower request can never see half-applied state.
Post-reservation states (confirmed, cancelled, checked in/out) live on the
reservation row, not on the draft.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from campus_parking.exceptions import InvariantViolation
from campus_parking.models.enums import BookingType, VehicleType


class BookingStage(str, Enum):
    SELECTING_WINDOW = "selecting_window"
    WINDOW_CHOSEN = "window_chosen"
    ZONE_CHOSEN = "zone_chosen"
    SLOT_ALLOCATED = "slot_allocated"
    RESERVED = "reserved"


_ORDER = list(BookingStage)


@dataclass(frozen=True)
class BookingDraft:
    building_id: str
    booking_type: BookingType = BookingType.HOURLY
    vehicle_type: VehicleType = VehicleType.NORMAL
    stage: BookingStage = BookingStage.SELECTING_WINDOW
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    price: Optional[Decimal] = None
    floor_ids: tuple = ()
    zone_id: Optional[str] = None
    slot_id: Optional[str] = None
    reservation_id: Optional[str] = None

    def _require(self, stage: BookingStage):
        if _ORDER.index(self.stage) < _ORDER.index(stage):
            raise InvariantViolation(
                f"Booking draft is at '{self.stage.value}', expected at least '{stage.value}'",
                stage=self.stage.value,
            )

    def with_window(self, start: datetime, end: datetime, price: Decimal) -> "BookingDraft":
        """Choosing a new window discards any zone / slot picked for the old one."""
        if end <= start:
            raise InvariantViolation("Window end must be after start")
        if self.stage == BookingStage.RESERVED:
            raise InvariantViolation("Draft is already reserved; reset it first")
        return replace(
            self,
            stage=BookingStage.WINDOW_CHOSEN,
            start=start, end=end, price=price,
            floor_ids=(), zone_id=None, slot_id=None,
        )

    def with_zone(self, zone_id: str, floor_ids=()) -> "BookingDraft":
        self._require(BookingStage.WINDOW_CHOSEN)
        if self.stage == BookingStage.RESERVED:
            raise InvariantViolation("Draft is already reserved; reset it first")
        return replace(self, stage=BookingStage.ZONE_CHOSEN, zone_id=zone_id, floor_ids=tuple(floor_ids), slot_id=None)

    def with_allocation(self, slot_id: str) -> "BookingDraft":
        self._require(BookingStage.ZONE_CHOSEN)
        return replace(self, stage=BookingStage.SLOT_ALLOCATED, slot_id=slot_id)

    def with_reservation(self, reservation_id: str) -> "BookingDraft":
        self._require(BookingStage.SLOT_ALLOCATED)
        return replace(self, stage=BookingStage.RESERVED, reservation_id=reservation_id)

    def reset(self) -> "BookingDraft":
        return BookingDraft(
            building_id=self.building_id,
            booking_type=self.booking_type,
            vehicle_type=self.vehicle_type,
        )
