"""
In-memory reductions for the aggregated dashboard view.

All averages skip missing values; a series with no values averages to 0.
Hour and day buckets are UTC (`YYYY-MM-DDTHH`, `YYYY-MM-DD`).
"""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timedelta
from typing import Any, Iterable

from alerts.rules import to_float
from core.timeutil import as_utc

HOUR_FORMAT = "%Y-%m-%dT%H"
DAY_FORMAT = "%Y-%m-%d"


def _values(rows: Iterable[dict[str, Any]], key: str) -> list[float]:
    out = []
    for row in rows:
        value = to_float(row.get(key))
        if value is not None:
            out.append(value)
    return out


def mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def r2(value: float) -> float:
    return round(value, 2)


def empty_aggregations(*, device_filtered: bool) -> dict[str, Any]:
    return {
        "total_devices": 1 if device_filtered else 0,
        "total_readings": 0,
        "avg_wind_speed": 0,
        "max_wind_speed": 0,
        "min_wind_speed": 0,
        "avg_temperature": 0,
        "avg_humidity": 0,
        "avg_wind_direction": 0,
        "data_completeness": 0,
        "time_range": {"start": None, "end": None},
        "hourly_trends": [],
        "daily_stats": [],
    }


def data_completeness(timestamps: list[datetime]) -> float:
    """
    Percentage of hour buckets between the first and last reading that hold
    at least one reading.
    """
    if not timestamps:
        return 0.0
    hours = {as_utc(ts).replace(minute=0, second=0, microsecond=0) for ts in timestamps}
    first, last = min(hours), max(hours)
    span = int((last - first) / timedelta(hours=1)) + 1
    return len(hours) / span * 100


def _group(rows: list[dict[str, Any]], fmt: str) -> dict[str, list[dict[str, Any]]]:
    groups: dict[str, list[dict[str, Any]]] = defaultdict(list)
    for row in rows:
        groups[as_utc(row["timestamp"]).strftime(fmt)].append(row)
    return groups


def hourly_trends(rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    trends = []
    for hour, bucket in sorted(_group(rows, HOUR_FORMAT).items()):
        trends.append(
            {
                "hour": hour,
                "avg_wind_speed": r2(mean(_values(bucket, "wind_speed"))),
                "avg_temperature": r2(mean(_values(bucket, "temperature"))),
                "avg_humidity": r2(mean(_values(bucket, "humidity"))),
            }
        )
    return trends


def daily_stats(rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    stats = []
    for day, bucket in sorted(_group(rows, DAY_FORMAT).items()):
        wind = _values(bucket, "wind_speed")
        stats.append(
            {
                "day": day,
                "avg_wind_speed": r2(mean(wind)),
                "max_wind_speed": r2(max(wind)) if wind else 0,
                "min_wind_speed": r2(min(wind)) if wind else 0,
                "avg_temperature": r2(mean(_values(bucket, "temperature"))),
                "avg_humidity": r2(mean(_values(bucket, "humidity"))),
            }
        )
    return stats


def aggregate_readings(rows: list[dict[str, Any]], *, device_filtered: bool = False) -> dict[str, Any]:
    if not rows:
        return empty_aggregations(device_filtered=device_filtered)

    wind = _values(rows, "wind_speed")
    timestamps = [as_utc(row["timestamp"]) for row in rows]

    return {
        "total_devices": len({str(row["device_id"]) for row in rows}),
        "total_readings": len(rows),
        "avg_wind_speed": r2(mean(wind)),
        "max_wind_speed": r2(max(wind)) if wind else 0,
        "min_wind_speed": r2(min(wind)) if wind else 0,
        "avg_temperature": r2(mean(_values(rows, "temperature"))),
        "avg_humidity": r2(mean(_values(rows, "humidity"))),
        "avg_wind_direction": r2(mean(_values(rows, "wind_direction"))),
        "data_completeness": r2(data_completeness(timestamps)),
        "time_range": {
            "start": min(timestamps).isoformat(),
            "end": max(timestamps).isoformat(),
        },
        "hourly_trends": hourly_trends(rows),
        "daily_stats": daily_stats(rows),
    }
