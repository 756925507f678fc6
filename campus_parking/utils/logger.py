"""
Logging setup for the reservation service: console plus a rotating file.
HTTP client and SQL engine chatter is held at WARNING so booking lines stay readable.
"""

import logging
import os
from logging.handlers import RotatingFileHandler

from campus_parking.config import settings

LOG_LEVEL = settings.LOG_LEVEL.upper()
LOG_DIR = settings.LOG_DIR or os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), "logs")
os.makedirs(LOG_DIR, exist_ok=True)

# httpx logs every RPC round trip at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine", "urllib3")

_configured = False


def _configure_root_logger():
    global _configured
    if _configured:
        return
    _configured = True

    fmt = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    handlers = [logging.StreamHandler()]
    handlers.append(RotatingFileHandler(
        filename=os.path.join(LOG_DIR, settings.LOG_FILE),
        maxBytes=5 * 1024 * 1024,
        backupCount=10,
        encoding="utf-8",
    ))

    root = logging.getLogger()
    root.setLevel(LOG_LEVEL)
    for handler in handlers:
        handler.setLevel(LOG_LEVEL)
        handler.setFormatter(fmt)
        root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.WARNING, root.level))


def get_logger(name: str) -> logging.Logger:
    """Named logger; the first call sets up the handlers."""
    _configure_root_logger()
    return logging.getLogger(name)
