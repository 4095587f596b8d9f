from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

import pytest
from fastapi.testclient import TestClient

from auth import dependencies as auth_dependencies
from devices import dependencies as device_dependencies
from main import app

USER = {
    "id": 7,
    "email": "ops@example.com",
    "password_hash": "x",
    "is_active": True,
    "created_at": datetime(2026, 1, 1, tzinfo=timezone.utc),
    "updated_at": datetime(2026, 1, 1, tzinfo=timezone.utc),
}

DEVICE_ID = UUID("3f0c1a9e-6a52-4a7e-9a0e-2a1d7c6b5e01")
OTHER_DEVICE_ID = UUID("9b2e4d10-1c3f-4f8a-8b6d-0e5a7c9d2f11")

DEVICE = {
    "id": DEVICE_ID,
    "device_code": "WS-001",
    "location": {"lat": 55.6, "lng": 12.5},
    "installation_date": datetime(2026, 1, 2, tzinfo=timezone.utc),
    "status": "active",
    "firmware_version": "1.4.2",
    "last_seen": datetime(2026, 10, 19, 11, 0, tzinfo=timezone.utc),
    "user_id": USER["id"],
    "created_at": datetime(2026, 1, 2, tzinfo=timezone.utc),
    "updated_at": datetime(2026, 1, 2, tzinfo=timezone.utc),
}


def async_return(value):
    async def _fake(*args, **kwargs):
        return value

    return _fake


class Recorder:
    """Async stand-in that records its calls and returns a fixed value."""

    def __init__(self, result=None):
        self.result = result
        self.calls: list[tuple[tuple, dict]] = []

    async def __call__(self, *args, **kwargs):
        self.calls.append((args, kwargs))
        return self.result

    @property
    def kwargs(self) -> dict:
        return self.calls[-1][1]


@pytest.fixture
def client():
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def user_client(client):
    app.dependency_overrides[auth_dependencies.get_current_user] = lambda: USER
    return client


@pytest.fixture
def device_client(client):
    app.dependency_overrides[device_dependencies.get_current_device] = lambda: DEVICE
    return client


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in (
        "ALERT_WIND_SPEED_WARNING",
        "ALERT_WIND_SPEED_CRITICAL",
        "ALERT_TEMPERATURE_WARNING",
        "ALERT_TEMPERATURE_CRITICAL",
        "ALERT_BATTERY_WARNING",
        "ALERT_BATTERY_CRITICAL",
        "ALERT_SIGNAL_WARNING",
        "ALERT_SIGNAL_CRITICAL",
        "ALERT_WEBHOOK_URL",
        "DEVICE_OFFLINE_AFTER_MIN",
    ):
        monkeypatch.delenv(name, raising=False)
