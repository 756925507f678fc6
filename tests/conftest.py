# tests/conftest.py
"""Shared fixtures: an in-memory SQLite database seeded with a small campus."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from datetime import datetime
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from campus_parking.database import create_tables
from campus_parking.models import Site, Building, ScheduleEntry, Floor, Zone, Slot, Reservation


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_tables(bind=engine)
    Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = Session()
    try:
        yield db
    finally:
        db.close()
        engine.dispose()


def seed_small_campus(db, slots_per_zone=3):
    """
    Site S1 → building B1 (Mon-Sat 08:00-20:00, closed Sunday) with two floors,
    each with Zone A and Zone B. Per zone: `slots_per_zone` normal slots and
    one ev slot.
    """
    db.add(Site(id="S1", name="Main Campus", category="parking"))
    db.add(Building(id="B1", site_id="S1", name="Parking A", supported_types="normal,ev",
                    created_at=datetime(2025, 1, 1)))
    db.add(ScheduleEntry(building_id="B1", days="monday,tuesday,wednesday,thursday,friday,saturday",
                         open_time="08:00", close_time="20:00"))
    for level in (1, 2):
        floor_id = f"B1-{level}"
        db.add(Floor(id=floor_id, building_id="B1", name=f"Floor {level}", level=level))
        for letter in "AB":
            zone_id = f"{floor_id}-{letter}"
            db.add(Zone(id=zone_id, floor_id=floor_id, name=f"Zone {letter}"))
            for seq in range(1, slots_per_zone + 2):
                db.add(Slot(
                    id=f"{zone_id}-{seq:03d}", site_id="S1", building_id="B1",
                    floor_id=floor_id, zone_id=zone_id, sequence=seq,
                    vehicle_type="ev" if seq == slots_per_zone + 1 else "normal",
                    label=f"{letter}{level}-{seq:02d}",
                ))
    db.commit()


def add_reservation(db, slot_id, start, end, status="pending", user_id="u-1", building_id="B1"):
    row = Reservation(
        user_id=user_id, building_id=building_id, slot_id=slot_id, vehicle_type="normal",
        start_time=start, end_time=end, status=status, booking_type="hourly",
        total_amount=0, created_at=datetime(2025, 1, 1), updated_at=datetime(2025, 1, 1),
    )
    db.add(row)
    db.commit()
    return row


@pytest.fixture
def campus_db(db_session):
    seed_small_campus(db_session)
    return db_session
