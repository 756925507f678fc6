# campus_parking/models/site.py
"""
Campus sites table — a physical location (parking lot or building group)
with map coordinates. Buildings hang off a site.
"""

from sqlalchemy import Column, String, Float
from campus_parking.database import Base


class Site(Base):
    __tablename__ = "sites"

    id = Column(String(50), primary_key=True)
    name = Column(String(200), nullable=False)
    category = Column(String(20), nullable=False, default="parking")  # parking | building
    lat = Column(Float, default=0)
    lng = Column(Float, default=0)

    def __repr__(self):
        return f"<Site {self.id} name={self.name} category={self.category}>"
