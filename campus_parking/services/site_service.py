"""
Site / building summaries for the map and list screens.

For each building: opening hours text, whether it is open right now, and
capacity vs. currently free slots per vehicle type, reduced to one status:

  closed     — no schedule entry covers "now"
  full       — the building has slots and none is free
  low        — less than LOW_AVAILABILITY_RATIO of capacity free
  available  — otherwise
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from campus_parking.config import settings
from campus_parking.services.overlap_oracle import Scope, free_count
from campus_parking.utils.logger import get_logger

logger = get_logger(__name__)

# "free now" is measured over the next hour
CURRENT_WINDOW = timedelta(hours=1)


@dataclass(frozen=True)
class BuildingSummary:
    id: str
    site_id: str
    name: str
    category: str
    hours_text: str
    is_open: bool
    status: str
    capacity: dict
    available: dict
    supported_types: tuple


def building_status(is_open: bool, capacity: int, available: int, low_ratio: float = None) -> str:
    low_ratio = settings.LOW_AVAILABILITY_RATIO if low_ratio is None else low_ratio
    if not is_open:
        return "closed"
    if capacity <= 0:
        return "available"
    if available <= 0:
        return "full"
    if available / capacity < low_ratio:
        return "low"
    return "available"


async def summarize_building(store, building, now: Optional[datetime] = None) -> BuildingSummary:
    now = now or datetime.now()
    available = {}
    for vehicle_type, total in building.capacity.items():
        available[vehicle_type] = (
            await free_count(store, Scope.building(building.id), vehicle_type, now, now + CURRENT_WINDOW)
            if total else 0
        )

    is_open = building.schedule.is_open_at(now)
    status = building_status(is_open, sum(building.capacity.values()), sum(available.values()))
    return BuildingSummary(
        id=building.id,
        site_id=building.site_id,
        name=building.name,
        category=building.category,
        hours_text=building.schedule.describe(),
        is_open=is_open,
        status=status,
        capacity=dict(building.capacity),
        available=available,
        supported_types=building.supported_types,
    )


async def list_site_buildings(store, site_id: str, now: Optional[datetime] = None) -> list:
    buildings = await store.list_buildings(site_id)
    summaries = [await summarize_building(store, b, now) for b in buildings]
    logger.info(f"[SITE] site={site_id} buildings={len(summaries)}")
    return summaries
