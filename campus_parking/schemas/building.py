# campus_parking/schemas/building.py
from pydantic import BaseModel
from typing import Dict, List


class BuildingSummaryOut(BaseModel):
    id: str
    site_id: str
    name: str
    category: str
    hours_text: str
    is_open: bool
    status: str                       # available | low | full | closed
    capacity: Dict[str, int]
    available: Dict[str, int]
    supported_types: List[str]

    class Config:
        from_attributes = True
