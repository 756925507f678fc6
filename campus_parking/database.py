"""
Database connection, session management, and table creation.
Uses SQLAlchemy; PostgreSQL in production (the reservation exclusion
constraint needs btree_gist), SQLite for local runs and tests.
All models are imported in create_tables() so one call creates every table.
"""

from sqlalchemy import create_engine
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import sessionmaker
from campus_parking.config import settings


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,       # Auto-reconnect if DB connection drops
        "pool_size": 10,
        "max_overflow": 20,
    }


engine = create_engine(
    settings.DATABASE_URL,
    echo=False,                      # Set True to log all SQL queries (debug only)
    **_engine_kwargs(settings.DATABASE_URL),
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """FastAPI dependency — yields a DB session and closes it after request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables(bind=None):
    """
    Creates all DB tables. Safe to call multiple times.
    On PostgreSQL the btree_gist extension must exist for the
    reservations exclusion constraint.
    """
    from campus_parking.models.site import Site                      # noqa
    from campus_parking.models.building import Building, ScheduleEntry  # noqa
    from campus_parking.models.floor import Floor                    # noqa
    from campus_parking.models.zone import Zone                      # noqa
    from campus_parking.models.slot import Slot                      # noqa
    from campus_parking.models.reservation import Reservation        # noqa

    target = bind or engine
    if target.dialect.name == "postgresql":
        from sqlalchemy import text
        with target.begin() as conn:
            conn.execute(text("CREATE EXTENSION IF NOT EXISTS btree_gist"))

    Base.metadata.create_all(bind=target)


def enforces_no_overlap(bind=None) -> bool:
    """
    True when the database itself rejects overlapping reservations.
    Elsewhere (SQLite) only the in-process pre-check guards a slot, which
    is fine for one worker and unsafe for several.
    """
    return (bind or engine).dialect.name == "postgresql"
