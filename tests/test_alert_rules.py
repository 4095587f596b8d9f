from __future__ import annotations

from datetime import datetime, timezone
from typing import get_args
from decimal import Decimal

import pytest

from alerts import rules

AT = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
LIMITS = rules.Thresholds()


def evaluate(**values):
    return rules.evaluate_telemetry("dev-1", rules.Reading(**values), timestamp=AT, thresholds=LIMITS)


def types(alerts):
    return [a.type for a in alerts]


def test_calm_reading_has_no_alerts():
    assert evaluate(wind_speed=5.2, temperature=18.0, humidity=60, battery_level=90, signal_strength=-60) == []


def test_missing_metrics_are_skipped():
    assert evaluate() == []


@pytest.mark.parametrize(
    ("wind_speed", "expected"),
    [
        (19.99, []),
        (20, ["HIGH_WIND_SPEED"]),
        (29.9, ["HIGH_WIND_SPEED"]),
        (30, ["EXTREME_WIND_SPEED"]),
        (45, ["EXTREME_WIND_SPEED"]),
    ],
)
def test_wind_speed_boundaries(wind_speed, expected):
    assert types(evaluate(wind_speed=wind_speed)) == expected


@pytest.mark.parametrize(
    ("battery", "expected"),
    [
        (20.1, []),
        (20, ["LOW_BATTERY"]),
        (10.5, ["LOW_BATTERY"]),
        (10, ["CRITICAL_BATTERY"]),
        (0, ["CRITICAL_BATTERY"]),
    ],
)
def test_battery_boundaries(battery, expected):
    assert types(evaluate(battery_level=battery)) == expected


@pytest.mark.parametrize(
    ("signal", "expected"),
    [(-79, []), (-80, ["POOR_SIGNAL"]), (-89, ["POOR_SIGNAL"]), (-90, ["CRITICAL_SIGNAL"])],
)
def test_signal_boundaries(signal, expected):
    assert types(evaluate(signal_strength=signal)) == expected


def test_critical_replaces_warning_for_same_metric():
    alerts = evaluate(temperature=41)
    assert len(alerts) == 1
    alert = alerts[0]
    assert alert.type == "EXTREME_TEMPERATURE"
    assert alert.severity == "critical"
    assert alert.threshold == 40
    assert alert.value == 41
    assert alert.message == "Extreme temperature detected: 41 °C"


def test_alerts_follow_metric_order_and_carry_context():
    alerts = evaluate(wind_speed=25.5, temperature=36, humidity=99, battery_level=8, signal_strength=-85)
    assert types(alerts) == ["HIGH_WIND_SPEED", "HIGH_TEMPERATURE", "CRITICAL_BATTERY", "POOR_SIGNAL"]
    assert {a.device_id for a in alerts} == {"dev-1"}
    assert {a.timestamp for a in alerts} == {AT}
    assert alerts[0].message == "High wind speed detected: 25.5 m/s"
    assert alerts[2].message == "Critical battery level: 8%"
    assert alerts[3].message == "Poor signal strength: -85 dBm"


def test_humidity_never_alerts():
    assert evaluate(humidity=100) == []


def test_custom_thresholds():
    limits = rules.Thresholds(wind_speed_warning=10, wind_speed_critical=15)
    alerts = rules.evaluate_telemetry("d", rules.Reading(wind_speed=12), timestamp=AT, thresholds=limits)
    assert types(alerts) == ["HIGH_WIND_SPEED"]
    assert alerts[0].threshold == 10


def test_thresholds_from_env(monkeypatch):
    monkeypatch.setenv("ALERT_WIND_SPEED_WARNING", "12.5")
    monkeypatch.setenv("ALERT_SIGNAL_CRITICAL", "not-a-number")
    limits = rules.thresholds_from_env()
    assert limits.wind_speed_warning == 12.5
    assert limits.signal_critical == -90.0
    assert limits.temperature_critical == 40.0


def test_alert_to_dict_is_json_friendly():
    data = evaluate(wind_speed=31)[0].to_dict()
    assert data["timestamp"] == "2026-10-19T12:00:00+00:00"
    assert data["severity"] == "critical"
    assert data["device_id"] == "dev-1"


def test_reading_from_row_coerces_db_values():
    reading = rules.Reading.from_row(
        {"wind_speed": Decimal("21.40"), "temperature": "18.5", "battery_level": None, "signal_strength": -70}
    )
    assert reading == rules.Reading(wind_speed=21.4, temperature=18.5, signal_strength=-70.0)


def test_to_float_rejects_garbage():
    assert rules.to_float("abc") is None
    assert rules.to_float(True) is None
    assert rules.to_float(" 3.5 ") == 3.5


def test_health_from_alerts():
    assert rules.health_from_alerts([]) == "good"
    assert rules.health_from_alerts(evaluate(wind_speed=21)) == "warning"
    assert rules.health_from_alerts(evaluate(wind_speed=21, battery_level=5)) == "critical"


def test_filter_by_severity():
    alerts = evaluate(wind_speed=21, battery_level=5)
    assert types(rules.filter_by_severity(alerts, "critical")) == ["CRITICAL_BATTERY"]
    assert rules.filter_by_severity(alerts, None) == alerts


def test_severity_literal_matches_alert_severities():
    assert set(get_args(rules.Severity)) == {rules.SEVERITY_WARNING, rules.SEVERITY_CRITICAL}
