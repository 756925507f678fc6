# campus_parking/models/building.py
"""
Buildings and their weekly opening schedule.
Capacity per vehicle type is not stored; it is counted from the slots table.
open_time / close_time are legacy columns used only when a building has no
schedule_entries rows.
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from campus_parking.database import Base


class Building(Base):
    __tablename__ = "buildings"

    id = Column(String(50), primary_key=True)
    site_id = Column(String(50), ForeignKey("sites.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    supported_types = Column(String(100), nullable=False, default="normal")  # comma separated
    open_time = Column(String(5))     # HH:MM, legacy
    close_time = Column(String(5))    # HH:MM, legacy
    created_at = Column(DateTime)

    @property
    def supported_type_list(self) -> list[str]:
        return [t.strip() for t in (self.supported_types or "").split(",") if t.strip()]

    def __repr__(self):
        return f"<Building {self.id} name={self.name} site={self.site_id}>"


class ScheduleEntry(Base):
    __tablename__ = "schedule_entries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    building_id = Column(String(50), ForeignKey("buildings.id", ondelete="CASCADE"), nullable=False, index=True)
    days = Column(String(100), nullable=False)        # comma separated: monday,tuesday,...
    open_time = Column(String(5), nullable=False)     # HH:MM
    close_time = Column(String(5), nullable=False)    # HH:MM, earlier than open = next day

    def __repr__(self):
        return f"<ScheduleEntry {self.id} building={self.building_id} {self.days} {self.open_time}-{self.close_time}>"
