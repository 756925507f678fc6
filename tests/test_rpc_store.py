# tests/test_rpc_store.py
"""RPC store tests with httpx.MockTransport standing in for the remote backend."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import json
import httpx
import pytest
from datetime import datetime, timedelta
from decimal import Decimal
from campus_parking.exceptions import BookingError, ConflictDetected, InvariantViolation, TransportFailure
from campus_parking.services.rpc_store import RpcReservationStore

START = datetime(2025, 12, 4, 10, 0)
END = datetime(2025, 12, 4, 12, 0)

RESERVATION_ROW = {
    "id": "r-1", "user_id": "u1", "building_id": "B1", "slot_id": "Z-001", "vehicle_type": "normal",
    "start_time": "2025-12-04T10:00:00", "end_time": "2025-12-04T12:00:00",
    "status": "pending", "booking_type": "hourly", "total_amount": "40.00",
}


def make_store(handler):
    return RpcReservationStore(base_url="http://backend.test/rest/v1", api_key="k", transport=httpx.MockTransport(handler))


class TestReads:
    @pytest.mark.asyncio
    async def test_site_buildings(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            seen["apikey"] = request.headers.get("apikey")
            return httpx.Response(200, json=[{
                "id": "B1", "name": "Parking A", "capacity": {"normal": 10, "ev": 2},
                "supported_types": ["normal", "ev"],
                "schedule": [{"cron": {"open": "0 8 * * 1-5", "close": "0 20 * * 1-5"}}],
            }])

        store = make_store(handler)
        buildings = await store.list_buildings("S1")
        await store.aclose()

        assert seen["path"] == "/rest/v1/rpc/get_site_buildings"
        assert seen["body"]["p_site_id"] == "S1"
        assert seen["apikey"] == "k"
        assert buildings[0].site_id == "S1"
        assert buildings[0].capacity == {"normal": 10, "ev": 2}
        assert buildings[0].schedule.describe() == "Mon-Fri 08:00-20:00"

    @pytest.mark.asyncio
    async def test_building_availability(self):
        def handler(request):
            return httpx.Response(200, json=[{
                "floor_id": "F1", "floor_name": "Floor 1", "level": 1,
                "zones": [{"zone_id": "F1-A", "zone_name": "Zone A", "capacity": 5, "available": 0}],
            }])

        store = make_store(handler)
        floors = await store.aggregate_availability("B1", START, END, "normal")
        await store.aclose()
        assert floors[0].zones[0].status == "full"
        assert floors[0].capacity == 5

    @pytest.mark.asyncio
    async def test_occupying_reservations_query(self):
        seen = {}

        def handler(request):
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json=[RESERVATION_ROW])

        store = make_store(handler)
        rows = await store.occupying_reservations(["Z-001", "Z-002"], START, END)
        await store.aclose()
        assert seen["params"]["start_time"] == "lt.2025-12-04T12:00:00"
        assert seen["params"]["end_time"] == "gt.2025-12-04T10:00:00"
        assert rows[0].start_time == START
        assert rows[0].total_amount == Decimal("40.00")

    @pytest.mark.asyncio
    async def test_slots_with_embedded_floor_and_zone(self):
        def handler(request):
            return httpx.Response(200, json=[{
                "id": "Z-001", "site_id": "S1", "building_id": "B1", "floor_id": "F1", "zone_id": "F1-A",
                "sequence": 1, "vehicle_type": "normal", "label": None,
                "floors": {"name": "Floor 1", "level": 1}, "zones": {"name": "Zone A"},
            }])

        store = make_store(handler)
        slots = await store.list_slots(zone_id="F1-A")
        await store.aclose()
        assert slots[0].label == "Zone A #1"
        assert slots[0].key.floor_id == "F1"


class TestErrorMapping:
    @pytest.mark.asyncio
    async def test_exclusion_violation_is_conflict(self):
        def handler(request):
            return httpx.Response(400, json={"code": "23P01", "message": "conflicting key value violates exclusion constraint"})

        store = make_store(handler)
        with pytest.raises(ConflictDetected):
            await store.insert_reservation("u1", "B1", "Z-001", START, END, "normal", "hourly", Decimal(40))
        await store.aclose()

    @pytest.mark.asyncio
    async def test_http_409_is_conflict(self):
        store = make_store(lambda request: httpx.Response(409, json={"message": "Double Booking"}))
        with pytest.raises(ConflictDetected):
            await store.insert_reservation("u1", "B1", "Z-001", START, END, "normal", "hourly")
        await store.aclose()

    @pytest.mark.asyncio
    async def test_server_error_is_transport_failure(self):
        store = make_store(lambda request: httpx.Response(503, text="maintenance"))
        with pytest.raises(TransportFailure):
            await store.aggregate_availability("B1", START, END, "normal")
        await store.aclose()

    @pytest.mark.asyncio
    async def test_connection_error_is_transport_failure(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        store = make_store(handler)
        with pytest.raises(TransportFailure):
            await store.list_buildings("S1")
        await store.aclose()

    @pytest.mark.asyncio
    async def test_other_client_error(self):
        store = make_store(lambda request: httpx.Response(403, json={"message": "permission denied"}))
        with pytest.raises(BookingError) as exc_info:
            await store.list_buildings("S1")
        await store.aclose()
        assert not isinstance(exc_info.value, (ConflictDetected, TransportFailure))

    def test_base_url_required(self):
        with pytest.raises(InvariantViolation):
            RpcReservationStore(base_url="")


class TestWrites:
    @pytest.mark.asyncio
    async def test_insert_returns_representation(self):
        seen = {}

        def handler(request):
            seen["prefer"] = request.headers.get("prefer")
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json=[RESERVATION_ROW])

        store = make_store(handler)
        r = await store.insert_reservation("u1", "B1", "Z-001", START, END, "normal", "hourly", Decimal(40))
        await store.aclose()
        assert seen["prefer"] == "return=representation"
        assert seen["body"]["status"] == "pending"
        assert r.id == "r-1"

    @pytest.mark.asyncio
    async def test_transition_is_compare_and_set(self):
        calls = []

        def handler(request):
            calls.append((request.method, dict(request.url.params)))
            if request.method == "GET":
                return httpx.Response(200, json=[RESERVATION_ROW])
            return httpx.Response(200, json=[dict(RESERVATION_ROW, status="confirmed")])

        store = make_store(handler)
        r = await store.transition_status("r-1", "confirmed")
        await store.aclose()
        assert r.status == "confirmed"
        assert calls[1] == ("PATCH", {"id": "eq.r-1", "status": "eq.pending"})

    @pytest.mark.asyncio
    async def test_invalid_transition_never_patches(self):
        methods = []

        def handler(request):
            methods.append(request.method)
            return httpx.Response(200, json=[dict(RESERVATION_ROW, status="cancelled")])

        store = make_store(handler)
        with pytest.raises(InvariantViolation):
            await store.transition_status("r-1", "confirmed")
        await store.aclose()
        assert methods == ["GET"]

    @pytest.mark.asyncio
    async def test_auto_cancel_rpc(self):
        def handler(request):
            assert request.url.path.endswith("/rpc/auto_cancel_expired_pending_reservations")
            assert json.loads(request.content)["p_grace_minutes"] == 15
            return httpx.Response(200, json=3)

        store = make_store(handler)
        assert await store.auto_cancel_expired_pending(START, timedelta(minutes=15)) == 3
        await store.aclose()
