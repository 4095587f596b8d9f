"""
Alert threshold rules for wind-sensor readings.

Each metric is checked independently against a warning and a critical
threshold; at most one alert is produced per metric and critical wins.

| metric          | direction | warning | critical |
|-----------------|-----------|---------|----------|
| wind_speed      | >=        | 20 m/s  | 30 m/s   |
| temperature     | >=        | 35 °C   | 40 °C    |
| battery_level   | <=        | 20 %    | 10 %     |
| signal_strength | <=        | -80 dBm | -90 dBm  |

Humidity is carried on the reading but never alerts.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Iterable, Literal

from core import settings

SEVERITY_WARNING = "warning"
SEVERITY_CRITICAL = "critical"
Severity = Literal["warning", "critical"]

HEALTH_GOOD = "good"
HEALTH_WARNING = "warning"
HEALTH_CRITICAL = "critical"


@dataclass(frozen=True)
class Thresholds:
    wind_speed_warning: float = 20.0
    wind_speed_critical: float = 30.0
    temperature_warning: float = 35.0
    temperature_critical: float = 40.0
    battery_warning: float = 20.0
    battery_critical: float = 10.0
    signal_warning: float = -80.0
    signal_critical: float = -90.0


def thresholds_from_env() -> Thresholds:
    defaults = Thresholds()
    return Thresholds(
        wind_speed_warning=settings.env_float("ALERT_WIND_SPEED_WARNING", defaults.wind_speed_warning),
        wind_speed_critical=settings.env_float("ALERT_WIND_SPEED_CRITICAL", defaults.wind_speed_critical),
        temperature_warning=settings.env_float("ALERT_TEMPERATURE_WARNING", defaults.temperature_warning),
        temperature_critical=settings.env_float("ALERT_TEMPERATURE_CRITICAL", defaults.temperature_critical),
        battery_warning=settings.env_float("ALERT_BATTERY_WARNING", defaults.battery_warning),
        battery_critical=settings.env_float("ALERT_BATTERY_CRITICAL", defaults.battery_critical),
        signal_warning=settings.env_float("ALERT_SIGNAL_WARNING", defaults.signal_warning),
        signal_critical=settings.env_float("ALERT_SIGNAL_CRITICAL", defaults.signal_critical),
    )


def to_float(value: Any) -> float | None:
    """
    Coerce a DB/JSON numeric (Decimal, int, str) to float; None stays None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        return float(value)
    try:
        return float(str(value).strip())
    except ValueError:
        return None


@dataclass(frozen=True)
class Reading:
    wind_speed: float | None = None
    temperature: float | None = None
    humidity: float | None = None
    battery_level: float | None = None
    signal_strength: float | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Reading":
        return cls(
            wind_speed=to_float(row.get("wind_speed")),
            temperature=to_float(row.get("temperature")),
            humidity=to_float(row.get("humidity")),
            battery_level=to_float(row.get("battery_level")),
            signal_strength=to_float(row.get("signal_strength")),
        )


@dataclass(frozen=True)
class Alert:
    type: str
    severity: str
    message: str
    value: float
    threshold: float
    device_id: str
    timestamp: datetime

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data


@dataclass(frozen=True)
class _Rule:
    metric: str
    rising: bool
    warning_attr: str
    critical_attr: str
    warning_type: str
    critical_type: str
    warning_message: str
    critical_message: str


_RULES = (
    _Rule(
        metric="wind_speed",
        rising=True,
        warning_attr="wind_speed_warning",
        critical_attr="wind_speed_critical",
        warning_type="HIGH_WIND_SPEED",
        critical_type="EXTREME_WIND_SPEED",
        warning_message="High wind speed detected: {value} m/s",
        critical_message="Extreme wind speed detected: {value} m/s",
    ),
    _Rule(
        metric="temperature",
        rising=True,
        warning_attr="temperature_warning",
        critical_attr="temperature_critical",
        warning_type="HIGH_TEMPERATURE",
        critical_type="EXTREME_TEMPERATURE",
        warning_message="High temperature detected: {value} °C",
        critical_message="Extreme temperature detected: {value} °C",
    ),
    _Rule(
        metric="battery_level",
        rising=False,
        warning_attr="battery_warning",
        critical_attr="battery_critical",
        warning_type="LOW_BATTERY",
        critical_type="CRITICAL_BATTERY",
        warning_message="Low battery detected: {value}%",
        critical_message="Critical battery level: {value}%",
    ),
    _Rule(
        metric="signal_strength",
        rising=False,
        warning_attr="signal_warning",
        critical_attr="signal_critical",
        warning_type="POOR_SIGNAL",
        critical_type="CRITICAL_SIGNAL",
        warning_message="Poor signal strength: {value} dBm",
        critical_message="Critical signal strength: {value} dBm",
    ),
)


def _format_value(value: float) -> str:
    # 25.0 -> "25", 25.5 -> "25.5"
    return f"{value:g}"


def _breaches(value: float, threshold: float, *, rising: bool) -> bool:
    return value >= threshold if rising else value <= threshold


def evaluate_telemetry(
    device_id: Any,
    reading: Reading,
    *,
    timestamp: datetime | None = None,
    thresholds: Thresholds | None = None,
) -> list[Alert]:
    """
    Check one reading against the thresholds and return its alerts.

    Alerts are ordered wind speed, temperature, battery, signal.
    """
    limits = thresholds or thresholds_from_env()
    at = timestamp or datetime.now(timezone.utc)
    alerts: list[Alert] = []

    for rule in _RULES:
        value = getattr(reading, rule.metric)
        if value is None:
            continue

        critical = getattr(limits, rule.critical_attr)
        warning = getattr(limits, rule.warning_attr)
        if _breaches(value, critical, rising=rule.rising):
            alert_type, severity, template, threshold = (
                rule.critical_type, SEVERITY_CRITICAL, rule.critical_message, critical,
            )
        elif _breaches(value, warning, rising=rule.rising):
            alert_type, severity, template, threshold = (
                rule.warning_type, SEVERITY_WARNING, rule.warning_message, warning,
            )
        else:
            continue

        alerts.append(
            Alert(
                type=alert_type,
                severity=severity,
                message=template.format(value=_format_value(value)),
                value=value,
                threshold=threshold,
                device_id=str(device_id),
                timestamp=at,
            )
        )

    return alerts


def health_from_alerts(alerts: Iterable[Alert]) -> str:
    severities = {alert.severity for alert in alerts}
    if SEVERITY_CRITICAL in severities:
        return HEALTH_CRITICAL
    if SEVERITY_WARNING in severities:
        return HEALTH_WARNING
    return HEALTH_GOOD


def filter_by_severity(alerts: Iterable[Alert], severity: Severity | None) -> list[Alert]:
    if not severity:
        return list(alerts)
    return [alert for alert in alerts if alert.severity == severity]
