"""
Reservation store backed by a remote PostgREST / RPC backend over HTTP.

Same contract as SqlReservationStore, so the engine and routers can run
against either. Error mapping:
  - connection errors, timeouts, 5xx     → TransportFailure
  - 409 or PostgreSQL code 23P01         → ConflictDetected
  - any other 4xx                        → BookingError
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

import httpx
from dateutil.parser import isoparse

from campus_parking.config import settings
from campus_parking.exceptions import (
    BookingError, ConflictDetected, InvariantViolation, ReservationNotFound, TransportFailure,
)
from campus_parking.models.enums import ALLOWED_TRANSITIONS, OCCUPYING_STATUSES, ReservationStatus
from campus_parking.services.records import (
    BuildingInfo, FloorAvailability, ReservationInfo, SlotInfo, SlotKey, ZoneAvailability,
)
from campus_parking.services.schedule_calendar import WeeklySchedule
from campus_parking.utils.logger import get_logger
from campus_parking.utils.timestamps import as_naive_utc

logger = get_logger(__name__)

EXCLUSION_VIOLATION = "23P01"


def _parse_dt(value) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return as_naive_utc(value)
    return as_naive_utc(isoparse(value))


def _to_reservation_info(row: dict) -> ReservationInfo:
    return ReservationInfo(
        id=str(row["id"]),
        user_id=str(row.get("user_id", "")),
        building_id=str(row.get("building_id", "")),
        slot_id=row.get("slot_id"),
        vehicle_type=row.get("vehicle_type") or "normal",
        start_time=_parse_dt(row["start_time"]),
        end_time=_parse_dt(row["end_time"]),
        status=row.get("status") or ReservationStatus.PENDING.value,
        booking_type=row.get("booking_type") or "hourly",
        total_amount=Decimal(str(row.get("total_amount") or 0)),
        created_at=_parse_dt(row.get("created_at")),
    )


def _to_slot_info(row: dict) -> SlotInfo:
    floor = row.get("floors") or {}
    zone = row.get("zones") or {}
    key = SlotKey(
        site_id=str(row.get("site_id", "")),
        building_id=str(row["building_id"]),
        floor_id=str(row["floor_id"]),
        zone_id=str(row["zone_id"]),
        sequence=int(row.get("sequence") or 0),
    )
    return SlotInfo(
        id=str(row["id"]),
        key=key,
        vehicle_type=row.get("vehicle_type") or "normal",
        label=row.get("label") or f"{zone.get('name', '')} #{key.sequence}".strip(),
        floor_name=floor.get("name", ""),
        floor_level=int(floor.get("level") or 0),
        zone_name=zone.get("name", ""),
    )


def _schedule_from(row: dict) -> WeeklySchedule:
    entries = row.get("schedule") or row.get("schedule_entries") or []
    if entries:
        return WeeklySchedule.from_entries(entries)
    return WeeklySchedule.from_legacy(row.get("open_time"), row.get("close_time"))


def _to_building_info(row: dict, site_id: str = None) -> BuildingInfo:
    capacity = row.get("capacity") or {}
    supported = row.get("supported_types") or ["normal"]
    if isinstance(supported, str):
        supported = [t.strip() for t in supported.split(",") if t.strip()]
    return BuildingInfo(
        id=str(row["id"]),
        site_id=str(row.get("site_id") or site_id or ""),
        name=row.get("name", ""),
        schedule=_schedule_from(row),
        supported_types=tuple(supported),
        capacity={k: int(v) for k, v in capacity.items()},
        category=row.get("category") or "parking",
    )


def _to_floor_availability(row: dict) -> FloorAvailability:
    zones = tuple(
        ZoneAvailability(
            zone_id=str(z.get("zone_id") or z.get("id")),
            name=z.get("zone_name") or z.get("name", ""),
            capacity=int(z.get("capacity") or 0),
            available=int(z.get("available") or 0),
        )
        for z in row.get("zones") or []
    )
    return FloorAvailability(
        floor_id=str(row.get("floor_id") or row.get("id")),
        name=row.get("floor_name") or row.get("name", ""),
        level=int(row.get("level") or 0),
        zones=zones,
    )


def _in_list(values) -> str:
    return "in.(" + ",".join(f'"{v}"' for v in values) + ")"


class RpcReservationStore:
    def __init__(self, base_url: str = None, api_key: str = None, timeout: float = None,
                 transport: httpx.AsyncBaseTransport = None):
        base_url = base_url or settings.RPC_BASE_URL
        if not base_url:
            raise InvariantViolation("RPC_BASE_URL is not configured")
        api_key = api_key or settings.RPC_API_KEY
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["apikey"] = api_key
            headers["Authorization"] = f"Bearer {api_key}"
        self.client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout or settings.RPC_TIMEOUT_SECONDS,
            transport=transport,
        )

    async def aclose(self):
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.aclose()

    # ── Transport ─────────────────────────────────────────────────────────

    async def _request(self, method: str, path: str, **kwargs):
        try:
            response = await self.client.request(method, path, **kwargs)
        except (httpx.TimeoutException, httpx.TransportError) as e:
            logger.error(f"[RPC] {method} {path} unreachable: {e}")
            raise TransportFailure(f"Reservation backend unreachable: {e}")

        if response.status_code >= 500:
            logger.error(f"[RPC] {method} {path} → HTTP {response.status_code}")
            raise TransportFailure(f"Reservation backend error (HTTP {response.status_code})")

        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = {}
            message = body.get("message") or response.text or f"HTTP {response.status_code}"
            if response.status_code == 409 or body.get("code") == EXCLUSION_VIOLATION:
                raise ConflictDetected(message)
            raise BookingError(message, status=response.status_code)

        if not response.content:
            return None
        return response.json()

    async def _rpc(self, name: str, params: dict = None):
        return await self._request("POST", f"/rpc/{name}", json=params or {})

    # ── Contract ──────────────────────────────────────────────────────────

    async def list_buildings(self, site_id: str) -> list:
        rows = await self._rpc("get_site_buildings", {"p_site_id": site_id, "p_lat": 0, "p_lng": 0, "p_user_id": None})
        return [_to_building_info(r, site_id) for r in rows or []]

    async def get_building(self, building_id: str):
        rows = await self._request(
            "GET", "/buildings",
            params={"id": f"eq.{building_id}", "select": "*,schedule_entries(days,open_time,close_time)"},
        )
        if not rows:
            return None
        row = dict(rows[0])
        if not row.get("capacity"):
            capacity = {}
            for slot in await self.list_slots(building_id):
                capacity[slot.vehicle_type] = capacity.get(slot.vehicle_type, 0) + 1
            row["capacity"] = capacity
        return _to_building_info(row)

    async def list_slots(self, building_id: str = None, *, floor_id: str = None, zone_id: str = None) -> list:
        if not (building_id or floor_id or zone_id):
            raise InvariantViolation("list_slots needs a building, floor or zone")
        params = {"select": "*,floors(name,level),zones(name)", "order": "zone_id,sequence"}
        if building_id:
            params["building_id"] = f"eq.{building_id}"
        if floor_id:
            params["floor_id"] = f"eq.{floor_id}"
        if zone_id:
            params["zone_id"] = f"eq.{zone_id}"
        rows = await self._request("GET", "/slots", params=params)
        return [_to_slot_info(r) for r in rows or []]

    async def occupying_reservations(self, slot_ids, start: datetime, end: datetime) -> list:
        if not slot_ids:
            return []
        params = [
            ("select", "*"),
            ("slot_id", _in_list(slot_ids)),
            ("status", _in_list(sorted(OCCUPYING_STATUSES))),
            ("start_time", f"lt.{end.isoformat()}"),
            ("end_time", f"gt.{start.isoformat()}"),
        ]
        rows = await self._request("GET", "/reservations", params=params)
        return [_to_reservation_info(r) for r in rows or []]

    async def aggregate_availability(self, building_id: str, start: datetime, end: datetime, vehicle_type: str) -> list:
        rows = await self._rpc("get_building_availability", {
            "p_building_id": building_id,
            "p_start_time": start.isoformat(),
            "p_end_time": end.isoformat(),
            "p_vehicle_type": vehicle_type,
        })
        return [_to_floor_availability(r) for r in rows or []]

    async def insert_reservation(self, user_id: str, building_id: str, slot_id: str, start: datetime, end: datetime,
                                 vehicle_type: str, booking_type: str, total_amount=Decimal("0")) -> ReservationInfo:
        payload = {
            "user_id": user_id,
            "building_id": building_id,
            "slot_id": slot_id,
            "start_time": start.isoformat(),
            "end_time": end.isoformat(),
            "status": ReservationStatus.PENDING.value,
            "vehicle_type": vehicle_type,
            "booking_type": booking_type,
            "total_amount": str(total_amount),
        }
        try:
            rows = await self._request("POST", "/reservations", json=payload,
                                       headers={"Prefer": "return=representation"})
        except ConflictDetected:
            logger.warning(f"[ALLOC] backend rejected slot={slot_id} {start.isoformat()}→{end.isoformat()} (double booking)")
            raise ConflictDetected(f"Slot {slot_id} was booked concurrently", slot_id=slot_id)
        row = rows[0] if isinstance(rows, list) else rows
        return _to_reservation_info(row)

    async def transition_status(self, reservation_id: str, new_status: str) -> ReservationInfo:
        rows = await self._request("GET", "/reservations", params={"id": f"eq.{reservation_id}", "select": "*"})
        if not rows:
            raise ReservationNotFound(f"Reservation {reservation_id} not found", reservation_id=reservation_id)
        current = rows[0]["status"]
        if new_status not in ALLOWED_TRANSITIONS.get(current, set()):
            raise InvariantViolation(
                f"Cannot move reservation from '{current}' to '{new_status}'",
                reservation_id=reservation_id,
            )

        # status filter makes the update a compare-and-set
        updated = await self._request(
            "PATCH", "/reservations",
            params={"id": f"eq.{reservation_id}", "status": f"eq.{current}"},
            json={"status": new_status, "updated_at": datetime.utcnow().isoformat()},
            headers={"Prefer": "return=representation"},
        )
        if not updated:
            raise ConflictDetected(
                f"Reservation {reservation_id} changed status concurrently",
                reservation_id=reservation_id,
            )
        logger.info(f"[STATUS] reservation={reservation_id} {current} → {new_status}")
        return _to_reservation_info(updated[0])

    async def auto_cancel_expired_pending(self, now: datetime, grace: timedelta) -> int:
        result = await self._rpc("auto_cancel_expired_pending_reservations", {
            "p_now": now.isoformat(),
            "p_grace_minutes": int(grace.total_seconds() // 60),
        })
        return int(result or 0)
