"""
Application configuration using Pydantic-Settings.
All settings can be overridden via environment variables or .env file.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # ── Database ──────────────────────────────────────────────────────────
    DATABASE_URL: str = "sqlite:///./campus_parking.db"

    # ── Network ───────────────────────────────────────────────────────────
    BACKEND_IP: str = "0.0.0.0"
    BACKEND_PORT: int = 8080

    # ── Security ──────────────────────────────────────────────────────────
    API_KEY: Optional[str] = None       # Set in .env to enable auth on API endpoints
    CRON_SECRET: Optional[str] = None   # Shared secret for the scheduled expiry sweep

    # ── Remote reservation backend (optional) ─────────────────────────────
    RPC_BASE_URL: Optional[str] = None  # e.g. https://<project>.supabase.co/rest/v1
    RPC_API_KEY: Optional[str] = None
    RPC_TIMEOUT_SECONDS: float = 10.0
    # When RPC_BASE_URL is set the API talks to the remote backend instead of DATABASE_URL

    # ── Tariffs (THB) ─────────────────────────────────────────────────────
    HOURLY_RATE: int = 20
    FLAT_24H_PRICE: int = 250
    MONTHLY_REGULAR_PRICE: int = 2000
    MONTHLY_NIGHT_PRICE: int = 1200

    @property
    def TARIFF(self) -> dict:
        return {
            "hourly": self.HOURLY_RATE,
            "flat_24h": self.FLAT_24H_PRICE,
            "monthly_regular": self.MONTHLY_REGULAR_PRICE,
            "monthly_night": self.MONTHLY_NIGHT_PRICE,
        }

    # ── Booking rules ─────────────────────────────────────────────────────
    PENDING_GRACE_MINUTES: int = 15        # Pending past start + grace → auto-cancelled
    BOOKING_WINDOW_DAYS: int = 5           # Days shown in hourly / 24h grids
    LOW_AVAILABILITY_RATIO: float = 0.10   # Building status "low" below 10% free
    ALLOCATION_CONFLICT_RETRIES: int = 1   # Retries against another slot after a lost race
    SWEEP_INTERVAL_SECONDS: int = 0        # In-process expiry sweep period; 0 = rely on the cron endpoint

    # ── Logging ───────────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[str] = None          # Defaults to <project>/logs
    LOG_FILE: str = "reservations.log"

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
