from datetime import datetime
from typing import Any

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from . import config, reports, __version__
from .broadcast import BroadcastHub, get_hub
from .database import get_db
from .errors import NotFound
from .pipeline import ingest_reading
from .predictor import generate_predictions
from .schemas import (
    AlertOut, PredictionOut, ReportRequest, SensorOut,
    envelope,
)
from .store import Store

router = APIRouter(prefix="/api")


def get_store(db: Session = Depends(get_db)) -> Store:
    return Store(db)


# -----------------------------
# Sensors
# -----------------------------
@router.get("/sensors")
def list_sensors(store: Store = Depends(get_store)):
    sensors = store.list_active_sensors(newest_first=True)
    return envelope([SensorOut.from_model(s).to_json() for s in sensors], total=len(sensors))


@router.get("/sensors/{sensor_id}")
def get_sensor(sensor_id: str, store: Store = Depends(get_store)):
    return envelope(SensorOut.from_model(store.get_sensor(sensor_id)).to_json())


@router.post("/sensors/{sensor_id}/readings")
def submit_reading(
    sensor_id: str,
    payload: Any = Body(None),
    store: Store = Depends(get_store),
    hub: BroadcastHub = Depends(get_hub),
):
    result = ingest_reading(store, hub, sensor_id, payload)
    return envelope(
        SensorOut.from_model(result.sensor).to_json(),
        message="Sensor readings updated successfully",
    )


@router.put("/sensors/{sensor_id}/deactivate")
def deactivate_sensor(sensor_id: str, store: Store = Depends(get_store)):
    sensor = store.deactivate_sensor(sensor_id)
    return envelope(SensorOut.from_model(sensor).to_json(), message="Sensor deactivated")


# -----------------------------
# Alerts
# -----------------------------
@router.get("/alerts")
def list_alerts(store: Store = Depends(get_store)):
    alerts = store.list_unresolved_alerts(limit=config.ALERT_LIST_LIMIT)
    return envelope([AlertOut.from_model(a).to_json() for a in alerts], total=len(alerts))


@router.put("/alerts/{alert_id}/resolve")
def resolve_alert(
    alert_id: str,
    store: Store = Depends(get_store),
    hub: BroadcastHub = Depends(get_hub),
):
    try:
        key = int(alert_id)
    except ValueError:
        raise NotFound("Alert not found")

    alert, changed = store.resolve_alert(key)
    data = AlertOut.from_model(alert).to_json()
    if changed:
        hub.publish("alert_resolved", data)
    return envelope(data, message="Alert resolved successfully")


# -----------------------------
# Predictions
# -----------------------------
@router.get("/predictions")
def list_predictions(store: Store = Depends(get_store)):
    predictions = store.list_recent_predictions(limit=config.PREDICTION_LIST_LIMIT)
    return envelope([PredictionOut.from_model(p).to_json() for p in predictions])


@router.post("/predictions/generate")
def generate(store: Store = Depends(get_store), hub: BroadcastHub = Depends(get_hub)):
    batch = generate_predictions(store, hub, limit=config.PREDICTION_BATCH_SIZE)
    return envelope(
        [PredictionOut.from_model(p).to_json() for p in batch],
        message="AI predictions generated successfully",
    )


# -----------------------------
# Dashboard, reports, citizen app
# -----------------------------
@router.get("/dashboard/stats")
def dashboard_stats(store: Store = Depends(get_store)):
    return envelope(reports.dashboard_stats(store))


@router.post("/reports/generate")
def generate_report(payload: ReportRequest, store: Store = Depends(get_store)):
    report = reports.generate_report(store, payload.start_date, payload.end_date, payload.sensor_ids)
    return envelope(report)


@router.get("/citizen/area/{area_id}")
def citizen_area(area_id: str, store: Store = Depends(get_store)):
    return envelope(reports.area_status(store, area_id))


@router.get("/health")
def health():
    return envelope(
        {
            "service": config.SERVICE_NAME,
            "version": __version__,
            "timestamp": datetime.utcnow().isoformat(),
        },
        message=f"{config.SERVICE_NAME} is running",
    )
