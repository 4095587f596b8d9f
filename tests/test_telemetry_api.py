from __future__ import annotations

from datetime import datetime, timezone

import pytest

from alerts import repository as alert_repository
from alerts import service as alert_service
from devices import repository as device_repository
from telemetry import repository as telemetry_repository

from conftest import DEVICE, DEVICE_ID, OTHER_DEVICE_ID, USER, Recorder

PAYLOAD = {
    "device_id": "WS-001",
    "timestamp": "2026-10-19T11:59:30Z",
    "location": {"lat": 55.6, "lng": 12.5},
    "data": {"wind_speed": 25.5, "wind_direction": 270, "temperature": 18.2, "humidity": 64},
    "metadata": {"battery": 8, "signal": -71, "firmware": "1.4.2"},
}


@pytest.fixture
def ingest_fakes(monkeypatch):
    fakes = {
        "lookup": Recorder(DEVICE),
        "insert": Recorder(101),
        "status": Recorder(None),
        "touch": Recorder(None),
        "notify": Recorder(True),
    }
    monkeypatch.setattr(device_repository, "get_device_by_code", fakes["lookup"])
    monkeypatch.setattr(telemetry_repository, "insert_reading", fakes["insert"])
    monkeypatch.setattr(alert_repository, "upsert_device_status", fakes["status"])
    monkeypatch.setattr(device_repository, "touch_last_seen", fakes["touch"])
    monkeypatch.setattr(alert_service, "notify_critical_alerts", fakes["notify"])
    return fakes


def test_ingest_stores_reading_and_returns_alerts(device_client, ingest_fakes):
    resp = device_client.post("/telemetry/data", json=PAYLOAD)

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["telemetry_id"] == 101
    assert [a["type"] for a in body["alerts"]] == ["HIGH_WIND_SPEED", "CRITICAL_BATTERY"]
    assert body["alerts"][0]["device_id"] == str(DEVICE_ID)

    stored = ingest_fakes["insert"].kwargs
    assert stored["device_id"] == DEVICE_ID
    assert stored["timestamp"] == datetime(2026, 10, 19, 11, 59, 30, tzinfo=timezone.utc)
    assert stored["wind_speed"] == 25.5
    assert stored["wind_direction"] == 270
    assert stored["battery_level"] == 8.0
    assert stored["signal_strength"] == -71
    assert stored["metadata"]["firmware"] == "1.4.2"

    args, kwargs = ingest_fakes["status"].calls[0]
    assert args == (DEVICE_ID,)
    assert kwargs["error_codes"] == ["HIGH_WIND_SPEED", "CRITICAL_BATTERY"]
    assert kwargs["battery_level"] == 8.0
    assert kwargs["signal_strength"] == -71

    assert ingest_fakes["touch"].calls == [((DEVICE_ID,), {})]
    # Background notifier receives the device code and the alert objects.
    notify_args, _ = ingest_fakes["notify"].calls[0]
    assert notify_args[0] == "WS-001"
    assert len(notify_args[1]) == 2


def test_ingest_without_alerts_omits_alerts_key(device_client, ingest_fakes):
    payload = {"device_id": "WS-001", "data": {"wind_speed": 4.0}, "metadata": {"battery": 90, "signal": -60}}
    resp = device_client.post("/telemetry/data", json=payload)

    assert resp.status_code == 200
    assert resp.json() == {"success": True, "telemetry_id": 101}
    assert ingest_fakes["insert"].kwargs["timestamp"] is None
    assert ingest_fakes["status"].kwargs["error_codes"] == []
    assert ingest_fakes["notify"].calls == []


def test_zero_values_are_readings_not_gaps(device_client, ingest_fakes):
    payload = {"device_id": "WS-001", "data": {"wind_speed": 0}, "metadata": {"battery": 0}}
    resp = device_client.post("/telemetry/data", json=payload)

    assert resp.status_code == 200
    assert [a["type"] for a in resp.json()["alerts"]] == ["CRITICAL_BATTERY"]
    assert ingest_fakes["insert"].kwargs["wind_speed"] == 0


def test_ingest_blank_device_id(device_client, ingest_fakes):
    resp = device_client.post("/telemetry/data", json={**PAYLOAD, "device_id": "  "})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Device ID is required."


def test_ingest_unknown_device(device_client, ingest_fakes, monkeypatch):
    monkeypatch.setattr(device_repository, "get_device_by_code", Recorder(None))
    resp = device_client.post("/telemetry/data", json=PAYLOAD)
    assert resp.status_code == 404
    assert ingest_fakes["insert"].calls == []


def test_ingest_for_another_device_is_forbidden(device_client, ingest_fakes, monkeypatch):
    other = {**DEVICE, "id": OTHER_DEVICE_ID, "device_code": "WS-002"}
    monkeypatch.setattr(device_repository, "get_device_by_code", Recorder(other))
    resp = device_client.post("/telemetry/data", json={**PAYLOAD, "device_id": "WS-002"})
    assert resp.status_code == 403
    assert ingest_fakes["insert"].calls == []


def test_ingest_rejects_out_of_range_direction(device_client, ingest_fakes):
    payload = {**PAYLOAD, "data": {"wind_direction": 400}}
    assert device_client.post("/telemetry/data", json=payload).status_code == 422


def test_ingest_requires_device_key(client):
    resp = client.post("/telemetry/data", json=PAYLOAD)
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Missing or invalid API key."


def test_ingest_with_unknown_key(client, monkeypatch):
    monkeypatch.setattr(device_repository, "get_device_by_api_key_hash", Recorder(None))
    resp = client.post("/telemetry/data", json=PAYLOAD, headers={"Authorization": "Bearer wsk_nope"})
    assert resp.status_code == 401


def test_list_telemetry_passes_filters_and_caps_limit(user_client, monkeypatch):
    rows = [
        {
            "id": 5,
            "device_id": DEVICE_ID,
            "device_code": "WS-001",
            "timestamp": datetime(2026, 10, 19, 11, 0, tzinfo=timezone.utc),
            "wind_speed": 12.4,
            "wind_direction": 270,
            "temperature": 18.2,
            "humidity": 64.0,
            "battery_level": 87.5,
            "signal_strength": -71,
            "metadata": {},
        }
    ]
    fake = Recorder(rows)
    monkeypatch.setattr(telemetry_repository, "list_readings", fake)

    resp = user_client.get(
        "/telemetry",
        params={
            "device_id": "WS-001",
            "limit": 5000,
            "from_date": "2026-10-18T00:00:00Z",
            "to_date": "2026-10-19T23:59:59Z",
        },
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["telemetry"][0]["device_code"] == "WS-001"
    assert body["telemetry"][0]["device_id"] == str(DEVICE_ID)
    assert fake.kwargs["user_id"] == USER["id"]
    assert fake.kwargs["device_code"] == "WS-001"
    assert fake.kwargs["limit"] == 1000
    assert fake.kwargs["to_date"] == datetime(2026, 10, 19, 23, 59, 59, tzinfo=timezone.utc)


def test_list_telemetry_rejects_inverted_range(user_client, monkeypatch):
    monkeypatch.setattr(telemetry_repository, "list_readings", Recorder([]))
    resp = user_client.get(
        "/telemetry",
        params={"from_date": "2026-10-19T00:00:00Z", "to_date": "2026-10-18T00:00:00Z"},
    )
    assert resp.status_code == 400


def test_list_telemetry_requires_user(client):
    assert client.get("/telemetry").status_code == 401


def test_ingest_rejects_impossible_battery(device_client, ingest_fakes):
    payload = {**PAYLOAD, "metadata": {"battery": 180}}
    resp = device_client.post("/telemetry/data", json=payload)
    assert resp.status_code == 400
    assert ingest_fakes["insert"].calls == []


@pytest.mark.parametrize("signal", ["1e400", "5000000000", "12", "-250"])
def test_ingest_rejects_impossible_signal(device_client, ingest_fakes, signal):
    body = (
        '{"device_id": "WS-001", "data": {"wind_speed": 4.2},'
        ' "metadata": {"battery": 50, "signal": ' + signal + "}}"
    )
    resp = device_client.post(
        "/telemetry/data",
        content=body,
        headers={"Content-Type": "application/json"},
    )
    assert resp.status_code == 400
    assert "metadata.signal" in resp.json()["detail"]
    assert ingest_fakes["insert"].calls == []
    assert ingest_fakes["status"].calls == []
