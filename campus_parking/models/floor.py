# campus_parking/models/floor.py
"""
Floors of a building. `level` orders floors for display and allocation.
"""

from sqlalchemy import Column, Integer, String, ForeignKey
from campus_parking.database import Base


class Floor(Base):
    __tablename__ = "floors"

    id = Column(String(50), primary_key=True)
    building_id = Column(String(50), ForeignKey("buildings.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)   # e.g. "Floor 3"
    level = Column(Integer, nullable=False, default=1)

    def __repr__(self):
        return f"<Floor {self.id} name={self.name} building={self.building_id}>"
