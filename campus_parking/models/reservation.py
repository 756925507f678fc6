# campus_parking/models/reservation.py
"""
Reservations table — the only shared mutable resource.
Interval is half-open [start_time, end_time).
On PostgreSQL an exclusion constraint guarantees that no two occupying
reservations (pending / confirmed / checked_in) overlap on the same slot,
so the database, not the caller, decides a double-booking race.
"""

import uuid
from sqlalchemy import Column, String, DateTime, Numeric, DDL, event
from campus_parking.database import Base


class Reservation(Base):
    __tablename__ = "reservations"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(100), nullable=False, index=True)
    building_id = Column(String(50), nullable=False, index=True)
    slot_id = Column(String(80), index=True)          # nullable until allocation
    vehicle_type = Column(String(20), nullable=False, default="normal")
    start_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime, nullable=False, index=True)
    status = Column(String(20), nullable=False, default="pending", index=True)
    booking_type = Column(String(20), nullable=False, default="hourly")
    total_amount = Column(Numeric(10, 2), nullable=False, default=0)
    created_at = Column(DateTime)
    updated_at = Column(DateTime)

    def __repr__(self):
        return f"<Reservation {self.id} slot={self.slot_id} {self.start_time}→{self.end_time} status={self.status}>"


NO_OVERLAP_CONSTRAINT = "reservations_slot_no_overlap"

event.listen(
    Reservation.__table__,
    "after_create",
    DDL(
        f"ALTER TABLE reservations ADD CONSTRAINT {NO_OVERLAP_CONSTRAINT} "
        "EXCLUDE USING gist (slot_id WITH =, tsrange(start_time, end_time, '[)') WITH &&) "
        "WHERE (status IN ('pending', 'confirmed', 'checked_in'))"
    ).execute_if(dialect="postgresql"),
)
