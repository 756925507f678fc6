# campus_parking/routers/health.py
"""
System health check endpoint.
Returns status of backend + DB + remote reservation backend reachability.
"""

import requests
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import text
from campus_parking.database import get_db
from campus_parking.config import settings
from datetime import datetime

router = APIRouter()


@router.get("/health", summary="System health check")
def health_check(db: Session = Depends(get_db)):
    """
    Returns:
    - Backend status
    - Database connectivity
    - RPC backend reachability (only when RPC_BASE_URL is set)
    """
    result = {
        "status": "ok",
        "timestamp": datetime.utcnow().isoformat(),
        "backend": "ok",
        "database": "unknown",
        "rpc_backend": "disabled",
    }

    # Check database
    try:
        db.execute(text("SELECT 1"))
        result["database"] = "ok"
    except Exception as e:
        result["database"] = f"error: {str(e)}"
        result["status"] = "degraded"

    # Ping the remote backend
    if settings.RPC_BASE_URL:
        headers = {"apikey": settings.RPC_API_KEY} if settings.RPC_API_KEY else {}
        try:
            resp = requests.get(settings.RPC_BASE_URL.rstrip("/") + "/", headers=headers, timeout=3)
            result["rpc_backend"] = "ok" if resp.status_code < 500 else f"http_{resp.status_code}"
            if resp.status_code >= 500:
                result["status"] = "degraded"
        except requests.exceptions.ConnectionError:
            result["rpc_backend"] = "unreachable"
            result["status"] = "degraded"
        except requests.exceptions.RequestException as e:
            result["rpc_backend"] = f"error: {str(e)}"
            result["status"] = "degraded"

    return result
