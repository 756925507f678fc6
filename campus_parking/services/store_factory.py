"""
Picks the reservation store for a request: the remote RPC backend when
RPC_BASE_URL is configured, otherwise the local database.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from campus_parking.config import settings
from campus_parking.database import get_db
from campus_parking.services.reservation_store import SqlReservationStore
from campus_parking.services.rpc_store import RpcReservationStore


async def get_store(db: Session = Depends(get_db)):
    """FastAPI dependency — yields a store and closes the HTTP client after request."""
    if settings.RPC_BASE_URL:
        store = RpcReservationStore()
        try:
            yield store
        finally:
            await store.aclose()
    else:
        yield SqlReservationStore(db)
