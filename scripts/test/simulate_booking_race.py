# scripts/test/simulate_booking_race.py
"""
Fire N concurrent reservation requests at the same zone and window and
report how many succeeded. With K free slots in the zone, exactly
min(N, K) requests should win; the rest get not_available / conflict_detected.

Usage:
  python scripts/test/simulate_booking_race.py --zone 1-1-1-1-A --start 2025-12-04T09:00 -n 20
"""

import argparse
import asyncio
from collections import Counter

import httpx

BACKEND_URL = "http://127.0.0.1:8080/api/v1"


async def reserve(client: httpx.AsyncClient, i: int, args) -> str:
    payload = {
        "user_id": f"race-user-{i}",
        "zone_id": args.zone,
        "vehicle_type": args.vehicle_type,
        "mode": "hourly",
        "start_cell": {"start": args.start, "duration_minutes": args.minutes},
    }
    try:
        resp = await client.post(f"{args.url}/reservations", json=payload)
    except httpx.HTTPError as e:
        return f"transport:{type(e).__name__}"
    if resp.status_code == 201:
        return "reserved"
    return resp.json().get("code", f"http_{resp.status_code}")


async def run(args):
    headers = {"X-API-Key": args.api_key} if args.api_key else {}
    async with httpx.AsyncClient(headers=headers, timeout=30) as client:
        results = await asyncio.gather(*(reserve(client, i, args) for i in range(args.n)))

    counts = Counter(results)
    print(f"🏁 {args.n} concurrent requests → zone {args.zone} @ {args.start}")
    for outcome, n in counts.most_common():
        print(f"   {outcome:<20} {n}")


def main():
    parser = argparse.ArgumentParser(description="Concurrent booking race against one zone")
    parser.add_argument("--url", default=BACKEND_URL)
    parser.add_argument("--zone", required=True)
    parser.add_argument("--start", required=True, help="ISO start, e.g. 2025-12-04T09:00")
    parser.add_argument("--minutes", type=int, default=60)
    parser.add_argument("--vehicle-type", default="normal")
    parser.add_argument("-n", type=int, default=20)
    parser.add_argument("--api-key", default=None)
    asyncio.run(run(parser.parse_args()))


if __name__ == "__main__":
    main()
