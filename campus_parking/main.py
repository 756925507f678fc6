# campus_parking/main.py
"""
FastAPI application entry point.
Includes security middleware, global error handlers, and all routers.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from campus_parking.routers import availability, buildings, health, maintenance, reservations
from campus_parking.database import create_tables, enforces_no_overlap
from campus_parking.config import settings
from campus_parking.exceptions import BookingError
from campus_parking.utils.logger import get_logger
import time
import asyncio

logger = get_logger(__name__)

app = FastAPI(
    title="Campus Parking Reservation API",
    description="Slot availability, booking windows and overlap-safe slot reservation.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS (mobile app and web client call the API directly) ──────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],   # Restrict to app origins in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── API Key Middleware ───────────────────────────────────────────────────────
class APIKeyMiddleware(BaseHTTPMiddleware):
    """
    Optional lightweight API key auth.
    The cron hook (/api/v1/maintenance/auto-cancel) checks CRON_SECRET itself.
    Set API_KEY in .env. Leave empty to disable auth.
    """
    async def dispatch(self, request: Request, call_next):
        open_paths = {"/api/v1/maintenance/auto-cancel", "/api/v1/health", "/docs", "/redoc", "/openapi.json"}
        if request.url.path in open_paths or not settings.API_KEY:
            return await call_next(request)

        api_key = request.headers.get("X-API-Key") or request.query_params.get("api_key")
        if api_key != settings.API_KEY:
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"detail": "Invalid or missing API key"},
            )
        return await call_next(request)


if settings.API_KEY:
    app.add_middleware(APIKeyMiddleware)


# ── Request Timing Middleware ────────────────────────────────────────────────
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 2)
    logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
    return response


# ── Booking Error Handler ────────────────────────────────────────────────────
@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    logger.info(f"{request.method} {request.url.path} → {exc.code}: {exc.message}")
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


# ── Global Exception Handler ─────────────────────────────────────────────────
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(buildings.router,    prefix="/api/v1", tags=["🏢 Sites & Buildings"])
app.include_router(availability.router, prefix="/api/v1", tags=["🅿️  Availability"])
app.include_router(reservations.router, prefix="/api/v1", tags=["📝 Reservations"])
app.include_router(maintenance.router,  prefix="/api/v1", tags=["🧹 Maintenance"])
app.include_router(health.router,       prefix="/api/v1", tags=["💚 Health"])


# ── Startup ───────────────────────────────────────────────────────────────────
@app.on_event("startup")
async def startup():
    logger.info("🚀 Campus Parking backend starting up...")
    create_tables()
    logger.info("✅ Database tables ready")
    if not enforces_no_overlap():
        logger.warning("⚠️  Database has no exclusion constraint: run a single worker (SQLite is for development only)")
    if settings.RPC_BASE_URL:
        logger.info(f"🔗 Reservations served by remote backend: {settings.RPC_BASE_URL}")
    logger.info(f"🌐 Listening on http://{settings.BACKEND_IP}:{settings.BACKEND_PORT}")
    logger.info("📖 API docs at /docs")

    if settings.SWEEP_INTERVAL_SECONDS > 0:
        from campus_parking.services.expiry_sweep import run_sweep_loop
        asyncio.create_task(run_sweep_loop(settings.SWEEP_INTERVAL_SECONDS))
        logger.info("🧹 Expiry sweep started (in-process)")


@app.on_event("shutdown")
async def shutdown():
    logger.info("🛑 Campus Parking backend shutting down...")
