# campus_parking/models/slot.py
"""
Physical parking slots.
The hierarchy is stored as explicit columns (site → building → floor → zone →
sequence); there is no stored "available/booked" flag, occupancy is always
derived from overlapping reservations.
"""

from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint
from campus_parking.database import Base


class Slot(Base):
    __tablename__ = "slots"
    __table_args__ = (
        UniqueConstraint("zone_id", "sequence", name="uq_slots_zone_sequence"),
    )

    id = Column(String(80), primary_key=True)
    site_id = Column(String(50), nullable=False, index=True)
    building_id = Column(String(50), ForeignKey("buildings.id", ondelete="CASCADE"), nullable=False, index=True)
    floor_id = Column(String(50), ForeignKey("floors.id", ondelete="CASCADE"), nullable=False, index=True)
    zone_id = Column(String(50), ForeignKey("zones.id", ondelete="CASCADE"), nullable=False, index=True)
    sequence = Column(Integer, nullable=False)
    vehicle_type = Column(String(20), nullable=False, default="normal")  # normal | ev | motorcycle
    label = Column(String(100))

    def __repr__(self):
        return f"<Slot {self.id} zone={self.zone_id} seq={self.sequence} type={self.vehicle_type}>"
