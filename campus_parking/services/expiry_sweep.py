"""
Expiry sweep — cancels reservations still `pending` more than
PENDING_GRACE_MINUTES after their start time.

Triggered by the cron endpoint (POST /api/v1/maintenance/auto-cancel) or,
when SWEEP_INTERVAL_SECONDS > 0, by an in-process loop started at boot.
Running it twice in a row cancels nothing the second time.
"""

import asyncio
from datetime import datetime, timedelta
from typing import Optional

from campus_parking.config import settings
from campus_parking.database import SessionLocal
from campus_parking.exceptions import TransportFailure
from campus_parking.services.reservation_store import SqlReservationStore
from campus_parking.utils.logger import get_logger

logger = get_logger(__name__)


async def sweep_expired_pending(store, now: Optional[datetime] = None, grace: Optional[timedelta] = None) -> int:
    now = now or datetime.now()
    grace = grace if grace is not None else timedelta(minutes=settings.PENDING_GRACE_MINUTES)

    cancelled = await store.auto_cancel_expired_pending(now, grace)
    if cancelled:
        logger.info(f"[SWEEP] 🧹 cancelled {cancelled} pending reservation(s) older than start + {grace}")
    else:
        logger.debug("[SWEEP] nothing to cancel")
    return cancelled


async def run_sweep_loop(interval_seconds: int):
    """Periodic sweep against the local database. Runs until cancelled."""

    logger.info(f"🚀 Expiry sweep every {interval_seconds}s")
    while True:
        db = SessionLocal()
        try:
            await sweep_expired_pending(SqlReservationStore(db))
        except TransportFailure as e:
            logger.warning(f"[SWEEP] backend unreachable, retry next round: {e}")
        except Exception as e:
            logger.error(f"[SWEEP] unexpected error: {e}", exc_info=True)
        finally:
            db.close()
        await asyncio.sleep(interval_seconds)
