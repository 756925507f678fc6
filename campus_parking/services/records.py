"""
Plain records passed between the reservation store and the engine.
Both the SQL store and the RPC store return these, so the engine never
touches ORM rows or JSON payloads directly.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from campus_parking.exceptions import InvariantViolation
from campus_parking.services.schedule_calendar import WeeklySchedule


@dataclass(frozen=True, order=True)
class SlotKey:
    """Structured slot identity: site → building → floor → zone → sequence."""
    site_id: str
    building_id: str
    floor_id: str
    zone_id: str
    sequence: int

    @property
    def slot_id(self) -> str:
        return f"{self.zone_id}-{self.sequence:03d}"

    @classmethod
    def parse_legacy(cls, raw: str) -> "SlotKey":
        """
        Decode the mobile app's old positional ids "site-building-zoneIdx-floor-n"
        (zoneIdx 1 = Zone A). Only used when importing old data.
        """
        parts = (raw or "").split("-")
        if len(parts) != 5 or not all(parts):
            raise InvariantViolation(f"Malformed legacy slot id: {raw!r}")
        site, building, zone_idx, floor, seq = parts
        if not zone_idx.isdigit() or not seq.isdigit() or int(zone_idx) < 1:
            raise InvariantViolation(f"Malformed legacy slot id: {raw!r}")
        zone_letter = chr(ord("A") + int(zone_idx) - 1)
        building_id = f"{site}-{building}"
        floor_id = f"{building_id}-{floor}"
        return cls(
            site_id=site,
            building_id=building_id,
            floor_id=floor_id,
            zone_id=f"{floor_id}-{zone_letter}",
            sequence=int(seq),
        )


@dataclass(frozen=True)
class SlotInfo:
    id: str
    key: SlotKey
    vehicle_type: str
    label: str
    floor_name: str = ""
    floor_level: int = 0
    zone_name: str = ""

    @property
    def sort_key(self):
        return (self.key.sequence, self.label)


@dataclass(frozen=True)
class ReservationInfo:
    id: str
    user_id: str
    building_id: str
    slot_id: Optional[str]
    vehicle_type: str
    start_time: datetime
    end_time: datetime
    status: str
    booking_type: str
    total_amount: Decimal = Decimal("0")
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class BuildingInfo:
    id: str
    site_id: str
    name: str
    schedule: WeeklySchedule
    supported_types: tuple = ("normal",)
    capacity: dict = field(default_factory=dict)     # vehicle type → slot count
    category: str = "parking"


@dataclass(frozen=True)
class ZoneAvailability:
    zone_id: str
    name: str
    capacity: int
    available: int

    @property
    def status(self) -> str:
        return "available" if self.available > 0 else "full"


@dataclass(frozen=True)
class FloorAvailability:
    floor_id: str
    name: str
    level: int
    zones: tuple = ()

    @property
    def capacity(self) -> int:
        return sum(z.capacity for z in self.zones)

    @property
    def available(self) -> int:
        return sum(z.available for z in self.zones)

    @property
    def status(self) -> str:
        return "available" if self.available > 0 else "full"
