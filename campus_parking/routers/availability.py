# campus_parking/routers/availability.py
"""
Zone availability for a chosen window.
GET  /buildings/{id}/availability        — per floor / per zone free counts
POST /buildings/{id}/availability/merge  — zones of several floors summed by name
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Header

from campus_parking.exceptions import TransportFailure
from campus_parking.models.enums import VehicleType
from campus_parking.schemas.availability import AggregatedZoneOut, AvailabilityOut, FloorAvailabilityOut, MergeRequest
from campus_parking.services.availability_aggregator import aggregate, merge_floors
from campus_parking.services.request_tracker import LatestRequestTracker, Superseded
from campus_parking.services.store_factory import get_store
from campus_parking.utils.logger import get_logger
from campus_parking.utils.timestamps import as_naive_utc

router = APIRouter()
logger = get_logger(__name__)

# Shared across requests: one booking screen = one (client session, building) key
tracker = LatestRequestTracker()


@router.get("/buildings/{building_id}/availability", response_model=AvailabilityOut)
async def get_availability(
    building_id: str,
    start: datetime,
    end: datetime,
    vehicle_type: str = "normal",
    x_client_session: Optional[str] = Header(None),
    store=Depends(get_store),
):
    """
    Free capacity per floor and zone. If the backend is unreachable the
    answer degrades to an empty, `degraded` result instead of failing.
    When the caller sends X-Client-Session, an older request for the same
    screen that finishes after a newer one comes back `superseded`.
    """
    start, end = as_naive_utc(start), as_naive_utc(end)
    vehicle_type = VehicleType.normalize(vehicle_type).value
    result = AvailabilityOut(building_id=building_id, vehicle_type=vehicle_type, start=start, end=end)

    try:
        if x_client_session:
            floors = await tracker.run((x_client_session, building_id),
                                       aggregate(store, building_id, start, end, vehicle_type))
            if floors is Superseded:
                result.superseded = True
                return result
        else:
            floors = await aggregate(store, building_id, start, end, vehicle_type)
    except TransportFailure as e:
        logger.warning(f"[AVAIL] building={building_id} degraded: {e}")
        result.degraded = True
        return result

    result.floors = [FloorAvailabilityOut.model_validate(f) for f in floors]
    return result


@router.post("/buildings/{building_id}/availability/merge", response_model=list[AggregatedZoneOut])
async def merge_availability(building_id: str, body: MergeRequest, store=Depends(get_store)):
    """Zones with the same name across the selected floors, summed."""
    floors = await aggregate(store, building_id, body.start, body.end, body.vehicle_type)
    return merge_floors(floors, body.floor_ids)
