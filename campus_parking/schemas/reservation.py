# campus_parking/schemas/reservation.py
from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from decimal import Decimal
from typing import Optional

from campus_parking.utils.timestamps import as_naive_utc


class CellIn(BaseModel):
    start: datetime
    duration_minutes: int = Field(60, ge=0)

    @field_validator("start")
    @classmethod
    def naive_utc_start(cls, value: datetime) -> datetime:
        return as_naive_utc(value)


class QuoteRequest(BaseModel):
    mode: str = "hourly"
    start_cell: CellIn
    end_cell: Optional[CellIn] = None


class QuoteOut(BaseModel):
    mode: str
    start: datetime
    end: datetime
    price: Decimal


class ReservationCreate(BaseModel):
    user_id: str
    zone_id: str
    vehicle_type: str = "normal"
    mode: str = "hourly"
    start_cell: CellIn
    end_cell: Optional[CellIn] = None


class ReservationOut(BaseModel):
    reservation_id: str
    slot_id: str
    slot_label: str
    floor_name: str
    zone_name: str
    start: datetime
    end: datetime
    status: str
    total_amount: Decimal

    class Config:
        from_attributes = True


class ReservationStatusUpdate(BaseModel):
    status: str


class ReservationInfoOut(BaseModel):
    id: str
    user_id: str
    building_id: str
    slot_id: Optional[str]
    vehicle_type: str
    start_time: datetime
    end_time: datetime
    status: str
    booking_type: str
    total_amount: Decimal

    class Config:
        from_attributes = True
