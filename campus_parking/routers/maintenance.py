# campus_parking/routers/maintenance.py
"""
Scheduled maintenance hooks, called by an external cron.
POST /maintenance/auto-cancel — cancel pending reservations past start + grace
"""

import hmac
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status

from campus_parking.config import settings
from campus_parking.services.expiry_sweep import sweep_expired_pending
from campus_parking.services.store_factory import get_store
from campus_parking.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)


def verify_cron_caller(
    authorization: Optional[str] = Header(None),
    x_api_key: Optional[str] = Header(None),
):
    """Accepts a Bearer token or an X-API-Key equal to CRON_SECRET (or API_KEY when no cron secret is set)."""
    secret = settings.CRON_SECRET or settings.API_KEY
    token = x_api_key
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization[7:].strip()
    if secret and token and hmac.compare_digest(token, secret):
        return
    logger.warning("[SWEEP] rejected unauthorized auto-cancel call")
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


@router.post("/maintenance/auto-cancel", dependencies=[Depends(verify_cron_caller)])
async def auto_cancel(store=Depends(get_store)):
    cancelled = await sweep_expired_pending(store)
    return {
        "success": True,
        "cancelled_count": cancelled,
        "timestamp": datetime.utcnow().isoformat(),
    }
