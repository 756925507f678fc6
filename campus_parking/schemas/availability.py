# campus_parking/schemas/availability.py
from pydantic import BaseModel, field_validator
from datetime import datetime
from typing import List

from campus_parking.utils.timestamps import as_naive_utc


class ZoneAvailabilityOut(BaseModel):
    zone_id: str
    name: str
    capacity: int
    available: int
    status: str

    class Config:
        from_attributes = True


class FloorAvailabilityOut(BaseModel):
    floor_id: str
    name: str
    level: int
    capacity: int
    available: int
    status: str
    zones: List[ZoneAvailabilityOut] = []

    class Config:
        from_attributes = True


class AvailabilityOut(BaseModel):
    building_id: str
    vehicle_type: str
    start: datetime
    end: datetime
    floors: List[FloorAvailabilityOut] = []
    degraded: bool = False           # True when the backend could not be reached
    superseded: bool = False         # True when a newer request for the same screen won


class MergeRequest(BaseModel):
    start: datetime
    end: datetime
    vehicle_type: str = "normal"
    floor_ids: List[str]

    @field_validator("start", "end")
    @classmethod
    def naive_utc_window(cls, value: datetime) -> datetime:
        return as_naive_utc(value)


class AggregatedZoneOut(BaseModel):
    name: str
    capacity: int
    available: int
    status: str
    floor_ids: List[str]
    zone_ids: List[str]

    class Config:
        from_attributes = True
