# campus_parking/schemas/calendar.py
from pydantic import BaseModel
from datetime import date, datetime
from typing import List, Optional


class TimeSlotOut(BaseModel):
    id: str
    start: datetime
    end: datetime
    duration_minutes: int
    is_available: bool
    remaining: Optional[int] = None

    class Config:
        from_attributes = True


class DaySectionOut(BaseModel):
    day: Optional[date] = None
    weekday: Optional[str] = None
    is_open: bool
    is_padding: bool = False
    hours_text: str
    slots: List[TimeSlotOut] = []

    class Config:
        from_attributes = True


class WindowsOut(BaseModel):
    building_id: str
    mode: str
    granularity: int
    hours_text: str
    days: List[DaySectionOut]
