# scripts/setup/seed_campus.py
"""
Seed a demo campus: one site, two parking buildings, floors with zones A–E
and slots for every vehicle type.
Safe to re-run: existing rows are left untouched.
Usage: python scripts/setup/seed_campus.py [--floors 3] [--slots-per-zone 10]
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

import argparse
from datetime import datetime
from campus_parking.database import SessionLocal, create_tables
from campus_parking.models import Site, Building, ScheduleEntry, Floor, Zone, Slot
from campus_parking.services.records import SlotKey

SITE = {"id": "1-1", "name": "Main Campus", "category": "parking", "lat": 13.7563, "lng": 100.5018}

BUILDINGS = [
    {
        "id": "1-1-1",
        "name": "Parking Building A",
        "supported_types": "normal,ev,motorcycle",
        "schedule": [
            {"days": "monday,tuesday,wednesday,thursday,friday", "open_time": "06:00", "close_time": "22:00"},
            {"days": "saturday", "open_time": "08:00", "close_time": "18:00"},
        ],
    },
    {
        "id": "1-1-2",
        "name": "Library Car Park",
        "supported_types": "normal,motorcycle",
        "schedule": [],                               # open 24 hours
    },
]

ZONE_LETTERS = "ABCDE"


def vehicle_type_for(sequence: int, per_zone: int) -> str:
    """Last slot of a zone is for motorcycles, the one before it has a charger."""
    if sequence == per_zone:
        return "motorcycle"
    if sequence == per_zone - 1:
        return "ev"
    return "normal"


def seed(db, floors: int = 3, slots_per_zone: int = 10) -> int:
    created = 0
    if not db.query(Site).filter(Site.id == SITE["id"]).first():
        db.add(Site(**SITE))
        created += 1

    for spec in BUILDINGS:
        if db.query(Building).filter(Building.id == spec["id"]).first():
            print(f"   ↷ {spec['name']} already exists, skipping")
            continue

        db.add(Building(
            id=spec["id"], site_id=SITE["id"], name=spec["name"],
            supported_types=spec["supported_types"], created_at=datetime.utcnow(),
        ))
        for entry in spec["schedule"]:
            db.add(ScheduleEntry(building_id=spec["id"], **entry))

        for level in range(1, floors + 1):
            floor_id = f"{spec['id']}-{level}"
            db.add(Floor(id=floor_id, building_id=spec["id"], name=f"Floor {level}", level=level))
            for letter in ZONE_LETTERS:
                zone_id = f"{floor_id}-{letter}"
                db.add(Zone(id=zone_id, floor_id=floor_id, name=f"Zone {letter}"))
                for seq in range(1, slots_per_zone + 1):
                    key = SlotKey(SITE["id"], spec["id"], floor_id, zone_id, seq)
                    db.add(Slot(
                        id=key.slot_id, site_id=key.site_id, building_id=key.building_id,
                        floor_id=key.floor_id, zone_id=key.zone_id, sequence=seq,
                        vehicle_type=vehicle_type_for(seq, slots_per_zone),
                        label=f"{letter}{level}-{seq:02d}",
                    ))
                    created += 1
        print(f"   ✓ {spec['name']}: {floors} floors × {len(ZONE_LETTERS)} zones × {slots_per_zone} slots")

    db.commit()
    return created


def main():
    parser = argparse.ArgumentParser(description="Seed demo campus parking data")
    parser.add_argument("--floors", type=int, default=3)
    parser.add_argument("--slots-per-zone", type=int, default=10)
    args = parser.parse_args()

    print("🌱 Seeding demo campus")
    create_tables()
    db = SessionLocal()
    try:
        created = seed(db, args.floors, args.slots_per_zone)
    finally:
        db.close()
    print(f"✅ Done ({created} rows added)")


if __name__ == "__main__":
    main()
