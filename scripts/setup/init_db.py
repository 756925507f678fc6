# scripts/setup/init_db.py
"""
Initialize database — creates all tables.
Run once before first launch, or after adding new models.
Usage: python scripts/setup/init_db.py
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from campus_parking.database import create_tables, engine
from campus_parking.config import settings
from sqlalchemy import inspect, text


def main():
    print("🗄️  Campus Parking DB Initialization")
    print("=" * 40)
    print(f"📡 Database: {settings.DATABASE_URL}")

    # Test connection
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("✅ Database connection OK")
    except Exception as e:
        print(f"❌ Cannot connect to database: {e}")
        print("\nMake sure PostgreSQL is running:")
        print("  docker-compose up -d db")
        print("  # or: sudo systemctl start postgresql")
        sys.exit(1)

    # Create all tables
    print("\n📋 Creating tables...")
    create_tables()
    if engine.dialect.name == "postgresql":
        print("✅ All tables created (with reservation no-overlap constraint)")
    else:
        print("✅ All tables created (no-overlap enforced in the insert transaction)")

    tables = sorted(inspect(engine).get_table_names())
    print(f"\n📊 Tables in database ({len(tables)} total):")
    for t in tables:
        print(f"   ✓ {t}")

    print("\n🎉 Database ready! Seed demo data, then start the backend:")
    print("   python scripts/setup/seed_campus.py")
    print("   uvicorn campus_parking.main:app --host 0.0.0.0 --port 8080 --reload")


if __name__ == "__main__":
    main()
