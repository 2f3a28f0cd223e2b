"""
Ingestion pipeline: one reading, one pass.

    Received -> Validated -> Classified -> Persisted -> (AlertEvaluated)
             -> Broadcasted -> Done

A payload that fails validation is rejected before anything is written.
A StorageUnavailable raised mid-way aborts the pass; steps that already
completed (for example the sensor upsert) are not rolled back.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

import pydantic

from . import alert_engine
from .classifier import classify
from .errors import ValidationError
from .models import Sensor, Alert
from .schemas import AlertOut, Readings, SensorOut
from .store import Store

logger = logging.getLogger(__name__)

REQUIRED_MESSAGE = "All readings (pH, turbidity, temperature, dissolved oxygen) are required"
INVALID_MESSAGE = "Readings must be finite numbers"

REQUIRED_FIELDS = ("ph", "turbidity", "temperature", "dissolvedOxygen")


@dataclass
class IngestResult:
    sensor: Sensor
    alert: Optional[Alert] = None

    @property
    def status(self) -> str:
        return self.sensor.status


def validate_readings(payload: Any) -> Readings:
    """
    Missing or null fields are rejected; zero is a legitimate measurement.
    Strings, booleans, NaN and infinities are rejected as invalid.
    """
    if not isinstance(payload, Mapping):
        raise ValidationError(REQUIRED_MESSAGE)

    missing = [f for f in REQUIRED_FIELDS if payload.get(f) is None]
    if missing:
        raise ValidationError(REQUIRED_MESSAGE, error=f"missing: {', '.join(missing)}")

    try:
        return Readings.model_validate({f: payload[f] for f in REQUIRED_FIELDS})
    except pydantic.ValidationError as e:
        fields = sorted({str(err["loc"][0]) for err in e.errors() if err.get("loc")})
        raise ValidationError(INVALID_MESSAGE, error=f"invalid: {', '.join(fields)}") from e


def ingest_reading(store: Store, hub, sensor_id: str, payload: Any) -> IngestResult:
    readings = validate_readings(payload)

    status = classify(readings)

    sensor = store.upsert_sensor(sensor_id, readings, status)
    logger.info("Sensor %s updated: %s", sensor_id, status)

    alert = alert_engine.evaluate(store, sensor_id, sensor.name, readings, status)

    if alert is not None:
        hub.publish("alert", AlertOut.from_model(alert).to_json())
    hub.publish("sensor_update", SensorOut.from_model(sensor).to_json())

    return IngestResult(sensor=sensor, alert=alert)
