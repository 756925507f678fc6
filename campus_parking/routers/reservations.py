# campus_parking/routers/reservations.py
"""
Reservation endpoints.
POST /reservations/quote        — resolve a grid selection into [start, end) + price
POST /reservations              — allocate a slot in a zone and create a pending reservation
PUT  /reservations/{id}/status  — lifecycle transition (confirm, check in/out, cancel)
"""

from fastapi import APIRouter, Depends, status

from campus_parking.config import settings
from campus_parking.schemas.reservation import (
    QuoteOut, QuoteRequest, ReservationCreate, ReservationInfoOut, ReservationOut, ReservationStatusUpdate,
)
from campus_parking.services.booking_window import Selection, resolve
from campus_parking.services.schedule_calendar import TimeSlot
from campus_parking.services.slot_allocator import reserve_slot
from campus_parking.services.store_factory import get_store
from campus_parking.models.enums import BookingType

router = APIRouter()


def _selection(start_cell, end_cell) -> Selection:
    def cell(c):
        return TimeSlot(id="", start=c.start, duration_minutes=c.duration_minutes, is_available=True)
    return Selection(start_cell=cell(start_cell), end_cell=cell(end_cell) if end_cell else None)


@router.post("/reservations/quote", response_model=QuoteOut)
def quote(body: QuoteRequest):
    """Price and concrete window for a selection; nothing is reserved."""
    mode = BookingType.normalize(body.mode)
    window = resolve(mode, _selection(body.start_cell, body.end_cell), settings.TARIFF)
    return QuoteOut(mode=mode.value, start=window.start, end=window.end, price=window.price)


@router.post("/reservations", response_model=ReservationOut, status_code=status.HTTP_201_CREATED)
async def create_reservation(body: ReservationCreate, store=Depends(get_store)):
    mode = BookingType.normalize(body.mode)
    window = resolve(mode, _selection(body.start_cell, body.end_cell), settings.TARIFF)
    return await reserve_slot(
        store,
        user_id=body.user_id,
        zone_id=body.zone_id,
        vehicle_type=body.vehicle_type,
        start=window.start,
        end=window.end,
        booking_type=mode,
        total_amount=window.price,
    )


@router.put("/reservations/{reservation_id}/status", response_model=ReservationInfoOut)
async def update_status(reservation_id: str, body: ReservationStatusUpdate, store=Depends(get_store)):
    """Only the documented lifecycle moves are accepted; anything else is 422."""
    return await store.transition_status(reservation_id, body.status)
