# tests/test_logger.py
"""Logging setup: booking lines stay readable next to HTTP/SQL client chatter."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import logging
from logging.handlers import RotatingFileHandler
from campus_parking.config import settings
from campus_parking.utils.logger import QUIET_LOGGERS, get_logger


def test_client_libraries_held_at_warning():
    get_logger("campus_parking.test")
    for name in QUIET_LOGGERS:
        assert logging.getLogger(name).level >= logging.WARNING


def test_rotating_file_uses_configured_name():
    get_logger("campus_parking.test")
    files = [h for h in logging.getLogger().handlers if isinstance(h, RotatingFileHandler)]
    assert any(h.baseFilename.endswith(settings.LOG_FILE) for h in files)
