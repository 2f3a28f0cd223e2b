from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from . import config
from .errors import NotFound, ValidationError
from .schemas import AlertOut, SensorOut
from .store import Store

# Per-sensor score used when averaging a report's water quality
STATUS_SCORE = {"healthy": 100, "moderate": 70, "critical": 40}


def _round_half_up(x: float) -> int:
    return math.floor(x + 0.5)


def _wqi(healthy: int, total: int) -> int:
    if total == 0:
        return 0
    return _round_half_up(healthy * 100 / total)


def dashboard_stats(store: Store) -> Dict[str, Any]:
    stats = store.aggregate_sensor_stats()
    return {
        "totalSensors": stats["totalSensors"],
        "healthySensors": stats["healthySensors"],
        "moderateSensors": stats["moderateSensors"],
        "criticalSensors": stats["criticalSensors"],
        "activeAlerts": store.count_unresolved_alerts(),
        "overallWQI": _wqi(stats["healthySensors"], stats["totalSensors"]),
        "avgReadings": stats["avgReadings"],
    }


def _parse_date(raw: Optional[str], field: str) -> datetime:
    if not raw:
        raise ValidationError(f"{field} is required")
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError(f"Invalid {field}: {raw}")
    # timestamps are stored as naive UTC
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def generate_report(
    store: Store,
    start_date: Optional[str],
    end_date: Optional[str],
    sensor_ids: Optional[Sequence[str]] = None,
) -> Dict[str, Any]:
    start = _parse_date(start_date, "startDate")
    end = _parse_date(end_date, "endDate")
    if end < start:
        raise ValidationError("endDate must not be before startDate")

    sensors = store.sensors_updated_between(start, end, sensor_ids)
    alerts = store.alerts_raised_between(start, end, sensor_ids)

    avg_wqi = 0
    if sensors:
        avg_wqi = _round_half_up(sum(STATUS_SCORE.get(s.status, 0) for s in sensors) / len(sensors))

    return {
        "period": {"startDate": start_date, "endDate": end_date},
        "summary": {
            "totalReadings": len(sensors),
            "totalAlerts": len(alerts),
            "avgWQI": avg_wqi,
        },
        "sensorData": [SensorOut.from_model(s).to_json() for s in sensors],
        "alerts": [AlertOut.from_model(a).to_json() for a in alerts],
    }


def area_status(store: Store, area_id: str) -> Dict[str, Any]:
    """
    Citizen-facing summary for one area: worst status among its sensors and
    the mean of each reading field.
    """
    sensor_ids: List[str] = config.AREA_SENSORS.get(area_id, [])
    sensors = store.list_active_sensors_by_ids(sensor_ids)
    if not sensors:
        raise NotFound("No sensors found for this area")

    statuses = {s.status for s in sensors}
    overall = "good"
    if "critical" in statuses:
        overall = "critical"
    elif "moderate" in statuses:
        overall = "moderate"

    n = len(sensors)
    return {
        "areaId": area_id,
        "status": overall,
        "sensors": n,
        "readings": {
            "ph": sum(s.ph for s in sensors) / n,
            "turbidity": sum(s.turbidity for s in sensors) / n,
            "temperature": sum(s.temperature for s in sensors) / n,
            "dissolvedOxygen": sum(s.dissolved_oxygen for s in sensors) / n,
        },
        "lastUpdated": datetime.utcnow().isoformat(),
    }
