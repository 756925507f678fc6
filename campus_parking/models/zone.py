# campus_parking/models/zone.py
"""
Zones group slots on a floor ("Zone A".."Zone E"). No state of their own.
"""

from sqlalchemy import Column, String, ForeignKey
from campus_parking.database import Base


class Zone(Base):
    __tablename__ = "zones"

    id = Column(String(50), primary_key=True)
    floor_id = Column(String(50), ForeignKey("floors.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(50), nullable=False)

    def __repr__(self):
        return f"<Zone {self.id} name={self.name} floor={self.floor_id}>"
