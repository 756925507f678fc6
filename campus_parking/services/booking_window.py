"""
BookingWindowResolver — converts a selection on the calendar grid into a
concrete half-open [start, end) window and a price.

  hourly           start cell start → end cell start + end cell duration
  flat_24h         start → start + 24h, regardless of closing time
  monthly_regular  date 00:00 → same day next month 23:59:59
  monthly_night    date 18:00 → same day next month 08:00

Month arithmetic clamps to the last day of a shorter month (Jan 31 → Feb 28).
"""

import math
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from decimal import Decimal
from typing import Optional

from dateutil.relativedelta import relativedelta

from campus_parking.exceptions import InvariantViolation
from campus_parking.models.enums import BookingType
from campus_parking.services.schedule_calendar import TimeSlot

NIGHT_START = time(18, 0)
NIGHT_END = time(8, 0)
MONTH_END_OF_DAY = time(23, 59, 59)


@dataclass(frozen=True)
class Selection:
    start_cell: TimeSlot
    end_cell: Optional[TimeSlot] = None

    @classmethod
    def single(cls, start: datetime, duration_minutes: int = 60) -> "Selection":
        return cls(TimeSlot(id="", start=start, duration_minutes=duration_minutes, is_available=True))

    @classmethod
    def span(cls, start: datetime, end_cell_start: datetime, duration_minutes: int = 60) -> "Selection":
        return cls(
            TimeSlot(id="", start=start, duration_minutes=duration_minutes, is_available=True),
            TimeSlot(id="", start=end_cell_start, duration_minutes=duration_minutes, is_available=True),
        )


@dataclass(frozen=True)
class ResolvedWindow:
    start: datetime
    end: datetime
    price: Decimal

    @property
    def hours(self) -> float:
        return (self.end - self.start).total_seconds() / 3600


def _hourly_window(selection: Selection):
    first = selection.start_cell
    last = selection.end_cell or first
    start = first.start
    end = last.start + timedelta(minutes=last.duration_minutes)
    if end <= start:
        raise InvariantViolation(
            f"End cell ({last.start.isoformat()}) must not precede start cell ({start.isoformat()})"
        )
    return start, end


def _window_for(mode: BookingType, selection: Selection):
    if mode == BookingType.HOURLY:
        return _hourly_window(selection)

    start = selection.start_cell.start
    if mode == BookingType.FLAT_24H:
        return start, start + timedelta(hours=24)

    day = start.date()
    if mode == BookingType.MONTHLY_REGULAR:
        begin = datetime.combine(day, time(0, 0))
        return begin, datetime.combine(begin + relativedelta(months=1), MONTH_END_OF_DAY)

    begin = datetime.combine(day, NIGHT_START)
    return begin, datetime.combine(begin + relativedelta(months=1), NIGHT_END)


def compute_price(mode, start: datetime, end: datetime, tariff: dict) -> Decimal:
    """Hourly is billed per started hour; the other modes are flat prices."""
    mode = BookingType.normalize(mode)
    if mode == BookingType.HOURLY:
        hours = (end - start).total_seconds() / 3600
        return Decimal(math.ceil(hours) * tariff["hourly"])
    return Decimal(tariff[mode.value])


def resolve(mode, selection: Selection, tariff: dict) -> ResolvedWindow:
    mode = BookingType.normalize(mode)
    start, end = _window_for(mode, selection)
    return ResolvedWindow(start=start, end=end, price=compute_price(mode, start, end, tariff))
