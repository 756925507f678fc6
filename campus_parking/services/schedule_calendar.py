"""
ScheduleCalendar — turns a building's weekly opening schedule into the grid
of selectable booking cells.

Hourly / flat-24h modes: N consecutive days from the anchor date, each open
day split at the requested granularity (fixed minutes, half-day, full-day).
Monthly modes: a Sunday-first calendar of the anchor month, one
"contract start" cell per day, past days disabled.

Every generated cell is provisional: `remaining` stays None until the
availability aggregator fills it in.
"""

import calendar
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional

from campus_parking.exceptions import InvariantViolation
from campus_parking.models.enums import BookingType
from campus_parking.utils.logger import get_logger

logger = get_logger(__name__)

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
CRON_WEEKDAYS = ("sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday")
SHORT_NAMES = {d: d[:3].capitalize() for d in WEEKDAYS}

FULL_DAY = -1
HALF_DAY = -2
MINUTES_PER_DAY = 24 * 60
FLAT_24H_STEP_MINUTES = 60


def parse_hhmm(value) -> time:
    if isinstance(value, time):
        return value
    try:
        hours, minutes = str(value).strip()[:5].split(":")
        return time(int(hours), int(minutes))
    except (ValueError, AttributeError):
        raise InvariantViolation(f"Invalid HH:MM time: {value!r}")


def parse_cron_days(day_part: str) -> frozenset:
    """
    Decode the day-of-week field of a cron expression.
    Supports "*", ranges ("1-5", wrapping "5-1"), lists ("0,6") and single
    days. 0 and 7 are both Sunday.
    """
    day_part = (day_part or "").strip()
    if day_part == "*":
        return frozenset(WEEKDAYS)

    try:
        if "-" in day_part:
            start, end = (int(p) for p in day_part.split("-"))
            indices, current = [], start % 7
            for _ in range(8):
                indices.append(current)
                if current == end % 7:
                    break
                current = (current + 1) % 7
        elif "," in day_part:
            indices = [int(p) % 7 for p in day_part.split(",")]
        else:
            indices = [int(day_part) % 7]
    except ValueError:
        raise InvariantViolation(f"Invalid cron day-of-week field: {day_part!r}")

    return frozenset(CRON_WEEKDAYS[i] for i in indices)


@dataclass(frozen=True)
class ScheduleEntry:
    days: frozenset
    open_time: time
    close_time: time

    @property
    def open_minutes(self) -> int:
        """Minutes between open and close; close <= open rolls into the next day."""
        start = self.open_time.hour * 60 + self.open_time.minute
        end = self.close_time.hour * 60 + self.close_time.minute
        if end <= start:
            end += MINUTES_PER_DAY
        return end - start

    @property
    def is_overnight(self) -> bool:
        return self.close_time <= self.open_time

    def window_on(self, day: date) -> tuple:
        opens = datetime.combine(day, self.open_time)
        return opens, opens + timedelta(minutes=self.open_minutes)

    @classmethod
    def from_row(cls, days, open_time, close_time) -> "ScheduleEntry":
        if isinstance(days, str):
            days = [d for d in days.split(",")]
        names = frozenset(d.strip().lower() for d in days if d and d.strip())
        unknown = names - set(WEEKDAYS)
        if unknown:
            raise InvariantViolation(f"Unknown weekday(s) in schedule: {sorted(unknown)}")
        return cls(days=names, open_time=parse_hhmm(open_time), close_time=parse_hhmm(close_time))

    @classmethod
    def from_cron(cls, open_expr: str, close_expr: str) -> "ScheduleEntry":
        """Build from a cron pair such as ("0 8 * * 1-5", "0 20 * * 1-5")."""
        open_parts, close_parts = open_expr.split(), close_expr.split()
        if len(open_parts) < 5 or len(close_parts) < 5:
            raise InvariantViolation(f"Invalid cron schedule: {open_expr!r} / {close_expr!r}")
        return cls(
            days=parse_cron_days(open_parts[4]),
            open_time=time(int(open_parts[1]), int(open_parts[0])),
            close_time=time(int(close_parts[1]), int(close_parts[0])),
        )


ALL_DAY_ENTRY = ScheduleEntry(days=frozenset(WEEKDAYS), open_time=time(0, 0), close_time=time(0, 0))


class WeeklySchedule:
    """
    A building's opening hours. At most one entry may claim each weekday.
    An empty schedule means the building never closes.
    """

    def __init__(self, entries: Iterable[ScheduleEntry] = ()):
        self.entries = tuple(entries)
        claimed = {}
        for entry in self.entries:
            for day in entry.days:
                if day in claimed:
                    raise InvariantViolation(
                        f"Weekday '{day}' is claimed by more than one schedule entry",
                        weekday=day,
                    )
                claimed[day] = entry
        self._by_day = claimed

    @classmethod
    def from_entries(cls, rows) -> "WeeklySchedule":
        """
        rows: ScheduleEntry objects, {days, open_time, close_time} dicts,
        {"cron": {"open", "close"}} dicts, or ORM rows with those columns.
        """
        entries = []
        for row in rows:
            if isinstance(row, ScheduleEntry):
                entries.append(row)
            elif isinstance(row, dict) and row.get("cron"):
                entries.append(ScheduleEntry.from_cron(row["cron"]["open"], row["cron"]["close"]))
            elif isinstance(row, dict):
                entries.append(ScheduleEntry.from_row(row.get("days"), row.get("open_time"), row.get("close_time")))
            else:
                entries.append(ScheduleEntry.from_row(row.days, row.open_time, row.close_time))
        return cls(entries)

    @classmethod
    def from_legacy(cls, open_time, close_time) -> "WeeklySchedule":
        """Buildings created before schedule entries only carry open/close columns."""
        if not open_time or not close_time:
            return cls()
        return cls([ScheduleEntry(frozenset(WEEKDAYS), parse_hhmm(open_time), parse_hhmm(close_time))])

    @property
    def is_always_open(self) -> bool:
        return not self.entries

    def entry_for(self, day: date) -> Optional[ScheduleEntry]:
        if self.is_always_open:
            return ALL_DAY_ENTRY
        return self._by_day.get(WEEKDAYS[day.weekday()])

    def is_open_at(self, moment: datetime) -> bool:
        """True when `moment` is inside an opening window (close time inclusive)."""
        if self.is_always_open:
            return True
        today, yesterday = moment.date(), moment.date() - timedelta(days=1)
        for day in (today, yesterday):
            entry = self.entry_for(day)
            if entry is None:
                continue
            opens, closes = entry.window_on(day)
            if opens <= moment <= closes:
                return True
        return False

    def describe(self) -> str:
        if self.is_always_open:
            return "Open 24 hours"
        parts = []
        for entry in self.entries:
            ordered = [d for d in WEEKDAYS if d in entry.days]
            if len(ordered) == 7:
                days = "Daily"
            elif len(ordered) > 2 and WEEKDAYS.index(ordered[-1]) - WEEKDAYS.index(ordered[0]) == len(ordered) - 1:
                days = f"{SHORT_NAMES[ordered[0]]}-{SHORT_NAMES[ordered[-1]]}"
            else:
                days = ",".join(SHORT_NAMES[d] for d in ordered)
            parts.append(f"{days} {entry.open_time:%H:%M}-{entry.close_time:%H:%M}")
        return ", ".join(parts)


@dataclass(frozen=True)
class TimeSlot:
    id: str
    start: datetime
    duration_minutes: int
    is_available: bool
    remaining: Optional[int] = None     # placeholder until cross-checked

    @property
    def end(self) -> datetime:
        return self.start + timedelta(minutes=self.duration_minutes)


@dataclass(frozen=True)
class DaySection:
    day: Optional[date]
    weekday: Optional[str]
    is_open: bool
    hours_text: str
    slots: tuple = field(default_factory=tuple)
    is_padding: bool = False


def _make_slot(start: datetime, duration: int, now: datetime) -> TimeSlot:
    return TimeSlot(
        id=f"{start:%Y-%m-%dT%H:%M}/{duration}",
        start=start,
        duration_minutes=duration,
        is_available=start >= now,
    )


def _day_slots(entry: ScheduleEntry, day: date, mode: BookingType, granularity: int, now: datetime) -> list:
    opens, closes = entry.window_on(day)
    total = entry.open_minutes

    if mode == BookingType.FLAT_24H:
        step, duration = FLAT_24H_STEP_MINUTES, MINUTES_PER_DAY
    elif granularity == FULL_DAY:
        return [_make_slot(opens, total, now)]
    elif granularity == HALF_DAY:
        half = total // 2
        slots = [_make_slot(opens, half, now)]
        second = opens + timedelta(minutes=half)
        if half > 0 and second < closes:
            slots.append(_make_slot(second, half, now))
        return slots
    else:
        step = duration = granularity

    slots, cursor = [], opens
    while cursor < closes:
        slots.append(_make_slot(cursor, duration, now))
        cursor += timedelta(minutes=step)
    return slots


def _monthly_days(anchor: date, now: datetime) -> list:
    first = anchor.replace(day=1)
    days_in_month = calendar.monthrange(first.year, first.month)[1]
    leading = (first.weekday() + 1) % 7      # Sunday-first grid

    sections = [
        DaySection(day=None, weekday=None, is_open=False, hours_text="", is_padding=True)
        for _ in range(leading)
    ]
    for n in range(1, days_in_month + 1):
        day = first.replace(day=n)
        start = datetime.combine(day, time(0, 0))
        slot = TimeSlot(
            id=f"{day.isoformat()}/MONTHLY",
            start=start,
            duration_minutes=0,
            is_available=day >= now.date(),
        )
        sections.append(DaySection(
            day=day,
            weekday=WEEKDAYS[day.weekday()],
            is_open=True,
            hours_text="contract start",
            slots=(slot,),
        ))
    return sections


def generate_days(
    schedule: WeeklySchedule,
    mode,
    anchor_date: date,
    window_size_days: int = 5,
    granularity: int = 60,
    now: Optional[datetime] = None,
) -> list:
    """Build the selectable grid for one building."""
    mode = BookingType.normalize(mode)
    now = now or datetime.now()

    if mode.is_monthly:
        return _monthly_days(anchor_date, now)

    if granularity not in (FULL_DAY, HALF_DAY) and granularity <= 0:
        raise InvariantViolation(f"Granularity must be positive minutes, FULL_DAY or HALF_DAY (got {granularity})")
    if window_size_days <= 0:
        raise InvariantViolation("window_size_days must be positive")

    sections = []
    for offset in range(window_size_days):
        day = anchor_date + timedelta(days=offset)
        entry = schedule.entry_for(day)
        if entry is None:
            sections.append(DaySection(day=day, weekday=WEEKDAYS[day.weekday()], is_open=False, hours_text="closed"))
            continue
        slots = _day_slots(entry, day, mode, granularity, now)
        sections.append(DaySection(
            day=day,
            weekday=WEEKDAYS[day.weekday()],
            is_open=True,
            hours_text=f"{entry.open_time:%H:%M} - {entry.close_time:%H:%M}",
            slots=tuple(slots),
        ))

    logger.debug(f"[CALENDAR] mode={mode.value} days={len(sections)} granularity={granularity}")
    return sections


def iter_slots(sections) -> list:
    return [slot for section in sections for slot in section.slots]
