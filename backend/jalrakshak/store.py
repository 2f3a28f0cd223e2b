"""
SQLAlchemy-backed store for sensor state, alerts and predictions.

Responsibilities:
- Atomic create-or-replace of a sensor's current state
- Alert and prediction persistence
- The read queries the routes, the predictor and the reports need

NOT responsible for:
- Validation or classification (done upstream in the pipeline)
- Broadcasting
"""
from __future__ import annotations

import functools
import logging
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from sqlalchemy import desc, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .errors import NotFound, StorageUnavailable
from .models import Sensor, Alert, Prediction
from .schemas import Readings, GeoPoint

logger = logging.getLogger(__name__)


def _guard(action: str):
    """Turn any engine failure into StorageUnavailable("Error <action>")."""
    def decorator(fn):
        @functools.wraps(fn)
        def wrapper(self: "Store", *args, **kwargs):
            try:
                return fn(self, *args, **kwargs)
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error("Storage failure while %s: %s", action, e)
                raise StorageUnavailable(f"Error {action}", error=str(e)) from e
        return wrapper
    return decorator


def _dialect_insert(db: Session):
    dialect = db.get_bind().dialect.name
    if dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    elif dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    else:
        raise RuntimeError(f"Unsupported database dialect for sensor upsert: {dialect}")
    return insert


class Store:
    def __init__(self, db: Session):
        self.db = db

    # =========================================================================
    # Sensors
    # =========================================================================

    @_guard("updating sensor readings")
    def upsert_sensor(
        self,
        sensor_id: str,
        readings: Readings,
        status: str,
        name: Optional[str] = None,
        location: Optional[GeoPoint] = None,
    ) -> Sensor:
        """
        Create or replace the current state of one sensor.

        A single INSERT ... ON CONFLICT DO UPDATE, so two concurrent writers
        for the same sensor_id can never leave a record with mixed fields.
        is_active is left alone on update.
        """
        now = datetime.utcnow()
        state = {
            "ph": readings.ph,
            "turbidity": readings.turbidity,
            "temperature": readings.temperature,
            "dissolved_oxygen": readings.dissolved_oxygen,
            "status": status,
            "timestamp": now,
        }
        identity = {}
        if name is not None:
            identity["name"] = name
        if location is not None:
            identity["lat"] = location.lat
            identity["lng"] = location.lng

        insert = _dialect_insert(self.db)
        stmt = insert(Sensor).values(
            sensor_id=sensor_id,
            name=name or sensor_id,
            lat=location.lat if location else None,
            lng=location.lng if location else None,
            is_active=True,
            **state,
        )
        updates = {key: stmt.excluded[key] for key in {**state, **identity}}
        stmt = stmt.on_conflict_do_update(index_elements=[Sensor.sensor_id], set_=updates)

        self.db.execute(stmt)
        self.db.commit()
        return self.db.query(Sensor).filter(Sensor.sensor_id == sensor_id).one()

    @_guard("fetching sensor data")
    def get_sensor(self, sensor_id: str) -> Sensor:
        sensor = (
            self.db.query(Sensor)
            .filter(Sensor.sensor_id == sensor_id, Sensor.is_active == True)  # noqa: E712
            .first()
        )
        if not sensor:
            raise NotFound("Sensor not found")
        return sensor

    @_guard("fetching sensors")
    def list_active_sensors(self, newest_first: bool = True, limit: Optional[int] = None) -> List[Sensor]:
        order = desc(Sensor.timestamp) if newest_first else Sensor.timestamp.asc()
        q = self.db.query(Sensor).filter(Sensor.is_active == True).order_by(order)  # noqa: E712
        if limit is not None:
            q = q.limit(limit)
        return q.all()

    @_guard("fetching sensors")
    def list_active_sensors_by_ids(self, sensor_ids: Iterable[str]) -> List[Sensor]:
        ids = list(sensor_ids)
        if not ids:
            return []
        return (
            self.db.query(Sensor)
            .filter(Sensor.sensor_id.in_(ids), Sensor.is_active == True)  # noqa: E712
            .all()
        )

    @_guard("deactivating sensor")
    def deactivate_sensor(self, sensor_id: str) -> Sensor:
        sensor = self.db.query(Sensor).filter(Sensor.sensor_id == sensor_id).first()
        if not sensor:
            raise NotFound("Sensor not found")
        if sensor.is_active:
            sensor.is_active = False
            self.db.commit()
            self.db.refresh(sensor)
        return sensor

    @_guard("checking sensors")
    def has_sensors(self) -> bool:
        return self.db.query(Sensor.id).first() is not None

    @_guard("fetching sensors")
    def sensors_updated_between(
        self, start: datetime, end: datetime, sensor_ids: Optional[Sequence[str]] = None
    ) -> List[Sensor]:
        q = self.db.query(Sensor).filter(Sensor.timestamp >= start, Sensor.timestamp <= end)
        if sensor_ids:
            q = q.filter(Sensor.sensor_id.in_(list(sensor_ids)))
        return q.order_by(desc(Sensor.timestamp)).all()

    # =========================================================================
    # Alerts
    # =========================================================================

    @_guard("saving alert")
    def insert_alert(self, alert: Alert) -> int:
        self.db.add(alert)
        self.db.commit()
        self.db.refresh(alert)
        return alert.id

    @_guard("fetching alerts")
    def list_unresolved_alerts(self, limit: int = 50) -> List[Alert]:
        return (
            self.db.query(Alert)
            .filter(Alert.is_resolved == False)  # noqa: E712
            .order_by(desc(Alert.timestamp), desc(Alert.id))
            .limit(limit)
            .all()
        )

    @_guard("counting alerts")
    def count_unresolved_alerts(self) -> int:
        return self.db.query(Alert).filter(Alert.is_resolved == False).count()  # noqa: E712

    @_guard("resolving alert")
    def resolve_alert(self, alert_id: int) -> tuple[Alert, bool]:
        """Returns (alert, changed). Resolving twice is a no-op."""
        alert = self.db.query(Alert).filter(Alert.id == alert_id).first()
        if not alert:
            raise NotFound("Alert not found")
        if alert.is_resolved:
            return alert, False
        alert.is_resolved = True
        alert.resolved_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(alert)
        return alert, True

    @_guard("fetching alerts")
    def alerts_raised_between(
        self, start: datetime, end: datetime, sensor_ids: Optional[Sequence[str]] = None
    ) -> List[Alert]:
        q = self.db.query(Alert).filter(Alert.timestamp >= start, Alert.timestamp <= end)
        if sensor_ids:
            q = q.filter(Alert.sensor_id.in_(list(sensor_ids)))
        return q.order_by(desc(Alert.timestamp)).all()

    # =========================================================================
    # Predictions
    # =========================================================================

    @_guard("saving predictions")
    def insert_predictions(self, batch: Sequence[Prediction]) -> List[int]:
        if not batch:
            return []
        self.db.add_all(batch)
        self.db.commit()
        return [p.id for p in batch]

    @_guard("fetching predictions")
    def list_recent_predictions(self, limit: int = 10) -> List[Prediction]:
        return (
            self.db.query(Prediction)
            .order_by(desc(Prediction.timestamp), desc(Prediction.id))
            .limit(limit)
            .all()
        )

    # =========================================================================
    # Aggregates
    # =========================================================================

    @_guard("fetching dashboard statistics")
    def aggregate_sensor_stats(self) -> dict:
        """
        Status counts and reading averages over active sensors.
        With no active sensors every count and average is 0.
        """
        rows = (
            self.db.query(Sensor.status, func.count(Sensor.id))
            .filter(Sensor.is_active == True)  # noqa: E712
            .group_by(Sensor.status)
            .all()
        )
        counts = {status: n for status, n in rows}

        avg_ph, avg_turb, avg_temp, avg_do = (
            self.db.query(
                func.avg(Sensor.ph),
                func.avg(Sensor.turbidity),
                func.avg(Sensor.temperature),
                func.avg(Sensor.dissolved_oxygen),
            )
            .filter(Sensor.is_active == True)  # noqa: E712
            .one()
        )

        return {
            "totalSensors": sum(counts.values()),
            "healthySensors": counts.get("healthy", 0),
            "moderateSensors": counts.get("moderate", 0),
            "criticalSensors": counts.get("critical", 0),
            "avgReadings": {
                "avgPH": float(avg_ph or 0.0),
                "avgTurbidity": float(avg_turb or 0.0),
                "avgTemperature": float(avg_temp or 0.0),
                "avgOxygen": float(avg_do or 0.0),
            },
        }
