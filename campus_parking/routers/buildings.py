# campus_parking/routers/buildings.py
"""
Site and building browsing.
GET /sites/{site_id}/buildings   — building summaries with open/full/low status
GET /buildings/{id}/windows      — selectable booking grid for one building
"""

from dataclasses import replace
from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from campus_parking.config import settings
from campus_parking.exceptions import TransportFailure
from campus_parking.models.enums import BookingType
from campus_parking.schemas.building import BuildingSummaryOut
from campus_parking.schemas.calendar import DaySectionOut, WindowsOut
from campus_parking.services.availability_aggregator import cell_availability
from campus_parking.services.schedule_calendar import generate_days, iter_slots
from campus_parking.services.site_service import list_site_buildings
from campus_parking.services.store_factory import get_store
from campus_parking.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)


@router.get("/sites/{site_id}/buildings", response_model=list[BuildingSummaryOut])
async def get_site_buildings(site_id: str, store=Depends(get_store)):
    """All buildings of a site with hours, current availability and status."""
    return await list_site_buildings(store, site_id)


@router.get("/buildings/{building_id}/windows", response_model=WindowsOut, summary="Selectable booking windows")
async def get_windows(
    building_id: str,
    mode: str = "hourly",
    anchor_date: Optional[date] = None,
    granularity: int = Query(60, description="Minutes per cell, -1 = full day, -2 = half day"),
    vehicle_type: Optional[str] = None,
    store=Depends(get_store),
):
    """
    Day sections for the booking grid. When `vehicle_type` is given every
    selectable cell carries its remaining free count; otherwise `remaining`
    stays null.
    """
    building = await store.get_building(building_id)
    if not building:
        raise HTTPException(status_code=404, detail=f"Building '{building_id}' not found")

    booking_type = BookingType.normalize(mode)

    now = datetime.now()
    days = generate_days(
        building.schedule,
        booking_type,
        anchor_date or now.date(),
        window_size_days=settings.BOOKING_WINDOW_DAYS,
        granularity=granularity,
        now=now,
    )

    if vehicle_type:
        try:
            filled = await cell_availability(store, building_id, iter_slots(days), vehicle_type)
            by_id = {cell.id: cell for cell in filled}
            days = [replace(d, slots=tuple(by_id[c.id] for c in d.slots)) for d in days]
        except TransportFailure as e:
            logger.warning(f"[AVAIL] building={building_id} cell availability unavailable: {e}")

    return WindowsOut(
        building_id=building_id,
        mode=booking_type.value,
        granularity=granularity,
        hours_text=building.schedule.describe(),
        days=[DaySectionOut.model_validate(d) for d in days],
    )
