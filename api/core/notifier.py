"""
Outbound alert webhook client.

Payload (POST, JSON):
    {"source": "wind-telemetry", "device_code": "...", "alerts": [{...}, ...]}

Any 2xx response counts as delivered.
"""

from __future__ import annotations

from typing import Any

import httpx

from . import settings


# Webhook failures are explicit and separable from other runtime errors.
class NotifierError(RuntimeError):
    pass


def _normalize_url(url: str) -> str:
    url = (url or "").strip()
    if not url:
        raise NotifierError("ALERT_WEBHOOK_URL is empty.")
    if not url.startswith(("http://", "https://")):
        raise NotifierError(f"Unsupported webhook URL scheme: {url[:50]}")
    return url


def webhook_enabled() -> bool:
    return bool(settings.alert_webhook_url())


async def post_alerts(
    *,
    url: str,
    device_code: str,
    alerts: list[dict[str, Any]],
    timeout_s: float = 10.0,
) -> int:
    """
    Deliver `alerts` for one device to the webhook at `url`.

    Returns the HTTP status code of the delivery.
    """
    url = _normalize_url(url)
    if not alerts:
        raise NotifierError("Alerts list is empty.")

    payload = {
        "source": "wind-telemetry",
        "device_code": device_code,
        "alerts": alerts,
    }

    try:
        async with httpx.AsyncClient(timeout=timeout_s) as client:
            resp = await client.post(url, json=payload)
    except httpx.HTTPError as exc:
        raise NotifierError(f"Alert webhook request failed: {exc}") from exc

    if resp.status_code < 200 or resp.status_code >= 300:
        # Avoid dumping huge bodies; include a small snippet.
        body = resp.text[:500]
        raise NotifierError(f"Alert webhook rejected delivery: {resp.status_code} {body}")

    return resp.status_code
