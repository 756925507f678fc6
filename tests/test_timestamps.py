# tests/test_timestamps.py
"""Unit tests for normalising client timestamps to naive UTC."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from datetime import datetime, timedelta, timezone
from campus_parking.schemas.availability import MergeRequest
from campus_parking.schemas.reservation import CellIn
from campus_parking.utils.timestamps import as_naive_utc


class TestAsNaiveUtc:
    def test_naive_passes_through(self):
        moment = datetime(2025, 12, 4, 10, 0)
        assert as_naive_utc(moment) == moment

    def test_aware_converted_and_stripped(self):
        moment = datetime(2025, 12, 4, 13, 0, tzinfo=timezone(timedelta(hours=3)))
        converted = as_naive_utc(moment)
        assert converted == datetime(2025, 12, 4, 10, 0)
        assert converted.tzinfo is None

    def test_none(self):
        assert as_naive_utc(None) is None


class TestRequestSchemas:
    def test_cell_start_with_z_suffix(self):
        cell = CellIn(start="2025-12-04T11:00:00Z")
        assert cell.start == datetime(2025, 12, 4, 11, 0)
        assert cell.start.tzinfo is None

    def test_merge_window(self):
        body = MergeRequest(start="2025-12-04T10:00:00Z", end="2025-12-04T14:00:00+02:00", floor_ids=["F1"])
        assert (body.start, body.end) == (datetime(2025, 12, 4, 10, 0), datetime(2025, 12, 4, 12, 0))
        assert body.end.tzinfo is None
