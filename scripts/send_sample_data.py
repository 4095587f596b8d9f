"""
Send simulated wind-sensor readings to the ingestion API.

Usage:
    python scripts/send_sample_data.py --device WS-001 --api-key wsk_... [--count 10] [--interval 5]

Register the device first (POST /devices/register) to obtain its API key.
"""

from __future__ import annotations

import argparse
import random
import sys
import time
from datetime import datetime, timezone

import httpx

DEFAULT_API_URL = "http://127.0.0.1:8000"


def generate_sample_payload(device_code: str) -> dict:
    """Generate one realistic reading; roughly one in ten trips an alert."""
    wind_speed = random.choice(
        [
            round(random.uniform(2, 12), 2),
            round(random.uniform(2, 12), 2),
            round(random.uniform(8, 18), 2),
            round(random.uniform(20, 28), 2),  # warning zone
            round(random.uniform(30, 38), 2),  # critical zone
        ]
        + [round(random.uniform(2, 12), 2)] * 5
    )

    return {
        "device_id": device_code,
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "data": {
            "wind_speed": wind_speed,
            "wind_direction": random.randint(0, 359),
            "temperature": round(random.uniform(8, 37), 2),
            "humidity": round(random.uniform(35, 95), 2),
        },
        "metadata": {
            "battery": round(random.uniform(5, 100), 1),
            "signal": random.randint(-95, -55),
            "firmware": "1.0.0-sim",
        },
    }


def send_telemetry(client: httpx.Client, payload: dict) -> tuple[int, dict]:
    try:
        resp = client.post("/telemetry/data", json=payload)
    except httpx.ConnectError:
        return 0, {"error": "Could not connect to server. Is the API running?"}
    except httpx.HTTPError as exc:
        return 0, {"error": str(exc)}
    try:
        return resp.status_code, resp.json()
    except ValueError:
        return resp.status_code, {"error": resp.text[:300]}


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--url", default=DEFAULT_API_URL)
    parser.add_argument("--device", required=True, help="Device code used at registration.")
    parser.add_argument("--api-key", required=True)
    parser.add_argument("--count", type=int, default=1, help="Readings to send; 0 loops forever.")
    parser.add_argument("--interval", type=float, default=5.0, help="Seconds between readings.")
    args = parser.parse_args(argv)

    headers = {"Authorization": f"Bearer {args.api_key}"}
    sent = 0
    failed = 0
    with httpx.Client(base_url=args.url, headers=headers, timeout=10.0) as client:
        try:
            while args.count == 0 or sent + failed < args.count:
                payload = generate_sample_payload(args.device)
                status_code, body = send_telemetry(client, payload)
                if status_code == 200:
                    sent += 1
                    alerts = body.get("alerts") or []
                    summary = ", ".join(a["type"] for a in alerts) or "no alerts"
                    print(f"[{payload['timestamp']}] wind={payload['data']['wind_speed']} m/s -> #{body.get('telemetry_id')} ({summary})")
                else:
                    failed += 1
                    print(f"[{payload['timestamp']}] failed ({status_code}): {body}", file=sys.stderr)

                if args.count == 0 or sent + failed < args.count:
                    time.sleep(args.interval)
        except KeyboardInterrupt:
            pass

    print(f"sent={sent} failed={failed}")
    return 0 if failed == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
