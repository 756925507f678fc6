# campus_parking/models/enums.py
"""
Value sets shared by the tables, the engine and the API schemas.
"""

from enum import Enum

from campus_parking.exceptions import InvariantViolation


class VehicleType(str, Enum):
    NORMAL = "normal"
    EV = "ev"
    MOTORCYCLE = "motorcycle"

    @classmethod
    def normalize(cls, value: str) -> "VehicleType":
        """Accepts the legacy 'car' alias used by older clients."""
        if isinstance(value, cls):
            return value
        value = (value or "").strip().lower()
        if value in ("car", ""):
            return cls.NORMAL
        try:
            return cls(value)
        except ValueError:
            raise InvariantViolation(f"Unknown vehicle type '{value}'", vehicle_type=value)


class ReservationStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"
    CANCELLED = "cancelled"


class BookingType(str, Enum):
    HOURLY = "hourly"
    FLAT_24H = "flat_24h"
    MONTHLY_REGULAR = "monthly_regular"
    MONTHLY_NIGHT = "monthly_night"

    @classmethod
    def normalize(cls, value: str) -> "BookingType":
        """Accepts the mobile client's older mode names as well."""
        if isinstance(value, cls):
            return value
        legacy = {"daily": cls.HOURLY, "flat24": cls.FLAT_24H, "monthly": cls.MONTHLY_REGULAR}
        value = (value or "").strip().lower()
        if value in legacy:
            return legacy[value]
        try:
            return cls(value)
        except ValueError:
            raise InvariantViolation(f"Unknown booking mode '{value}'", mode=value)

    @property
    def is_monthly(self) -> bool:
        return self in (BookingType.MONTHLY_REGULAR, BookingType.MONTHLY_NIGHT)


class SiteCategory(str, Enum):
    PARKING = "parking"
    BUILDING = "building"


# Only these statuses hold a slot; cancelled / checked_out never block a booking
OCCUPYING_STATUSES = frozenset({
    ReservationStatus.PENDING.value,
    ReservationStatus.CONFIRMED.value,
    ReservationStatus.CHECKED_IN.value,
})

ALLOWED_TRANSITIONS = {
    ReservationStatus.PENDING.value: {ReservationStatus.CONFIRMED.value, ReservationStatus.CANCELLED.value},
    ReservationStatus.CONFIRMED.value: {ReservationStatus.CHECKED_IN.value, ReservationStatus.CANCELLED.value},
    ReservationStatus.CHECKED_IN.value: {ReservationStatus.CHECKED_OUT.value},
    ReservationStatus.CHECKED_OUT.value: set(),
    ReservationStatus.CANCELLED.value: set(),
}
