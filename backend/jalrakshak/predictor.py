"""
Heuristic short-horizon risk predictions.

The risk tier is a pure threshold rule over the current reading. The
projected parameters are the current reading nudged by bounded random
jitter; they are illustrative, not a model output.
"""
from __future__ import annotations

import logging
import random
from typing import List, Optional, Tuple

from . import config
from .models import Sensor, Prediction
from .schemas import PredictionOut, Readings
from .store import Store

logger = logging.getLogger(__name__)

HIGH_PH_MIN = 6.0
HIGH_TURBIDITY_MAX = 30.0
HIGH_DO_MIN = 4.0

MEDIUM_PH_MIN = 6.5
MEDIUM_TURBIDITY_MAX = 20.0
MEDIUM_DO_MIN = 5.0

# Maximum jitter per field (sign gives direction of drift)
PH_DRIFT = -0.5
TURBIDITY_DRIFT = 5.0
TEMPERATURE_DRIFT = 2.0
DO_DRIFT = -0.3


def risk_tier(readings: Readings) -> Tuple[str, int]:
    """Returns (predicted_risk, confidence)."""
    if (
        readings.ph < HIGH_PH_MIN
        or readings.turbidity > HIGH_TURBIDITY_MAX
        or readings.dissolved_oxygen < HIGH_DO_MIN
    ):
        return "high", 85
    if (
        readings.ph < MEDIUM_PH_MIN
        or readings.turbidity > MEDIUM_TURBIDITY_MAX
        or readings.dissolved_oxygen < MEDIUM_DO_MIN
    ):
        return "medium", 80
    return "low", 75


def project(readings: Readings, rng: random.Random) -> dict[str, float]:
    return {
        "ph": readings.ph + rng.random() * PH_DRIFT,
        "turbidity": readings.turbidity + rng.random() * TURBIDITY_DRIFT,
        "temperature": readings.temperature + rng.random() * TEMPERATURE_DRIFT,
        "dissolvedOxygen": readings.dissolved_oxygen + rng.random() * DO_DRIFT,
    }


def sensor_readings(sensor: Sensor) -> Readings:
    return Readings(
        ph=sensor.ph,
        turbidity=sensor.turbidity,
        temperature=sensor.temperature,
        dissolved_oxygen=sensor.dissolved_oxygen,
    )


def predict(sensor: Sensor, rng: Optional[random.Random] = None) -> Prediction:
    rng = rng or random.Random()
    readings = sensor_readings(sensor)
    risk, confidence = risk_tier(readings)
    return Prediction(
        sensor_id=sensor.sensor_id,
        location=sensor.name,
        predicted_risk=risk,
        confidence=confidence,
        timeframe=config.PREDICTION_TIMEFRAME,
        predicted_parameters=project(readings, rng),
    )


def generate_predictions(
    store: Store,
    hub,
    limit: int = config.PREDICTION_BATCH_SIZE,
    rng: Optional[random.Random] = None,
) -> List[Prediction]:
    """
    One prediction per recently updated active sensor (at most `limit`),
    persisted as a batch and broadcast as `predictions_updated`.
    """
    rng = rng or random.Random()
    sensors = store.list_active_sensors(newest_first=True, limit=limit)
    batch = [predict(s, rng) for s in sensors]
    store.insert_predictions(batch)
    logger.info("Generated %d predictions", len(batch))

    hub.publish("predictions_updated", [PredictionOut.from_model(p).to_json() for p in batch])
    return batch
