from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import Annotated, Any, List, Optional, Literal

from .models import Sensor, Alert, Prediction

Status = Literal["healthy", "moderate", "critical"]
Severity = Literal["low", "moderate", "high", "critical"]
Risk = Literal["low", "medium", "high"]

# Readings must be real numbers: no strings, no booleans, no NaN/inf.
# Zero is a valid measurement.
Measurement = Annotated[float, Field(strict=True, allow_inf_nan=False)]


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class Readings(ApiModel):
    ph: Measurement
    turbidity: Measurement
    temperature: Measurement
    dissolved_oxygen: Measurement


class GeoPoint(ApiModel):
    lat: float
    lng: float


class SensorOut(ApiModel):
    sensor_id: str
    name: str
    location: Optional[GeoPoint] = None
    readings: Readings
    status: Status
    timestamp: datetime
    is_active: bool

    @classmethod
    def from_model(cls, sensor: Sensor) -> "SensorOut":
        location = None
        if sensor.lat is not None and sensor.lng is not None:
            location = GeoPoint(lat=sensor.lat, lng=sensor.lng)
        return cls(
            sensor_id=sensor.sensor_id,
            name=sensor.name,
            location=location,
            readings=Readings(
                ph=sensor.ph,
                turbidity=sensor.turbidity,
                temperature=sensor.temperature,
                dissolved_oxygen=sensor.dissolved_oxygen,
            ),
            status=sensor.status,
            timestamp=sensor.timestamp,
            is_active=sensor.is_active,
        )


class AlertOut(ApiModel):
    id: int
    sensor_id: str
    location: str
    severity: Severity
    message: str
    parameters: dict[str, float]
    is_resolved: bool
    timestamp: datetime
    resolved_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, alert: Alert) -> "AlertOut":
        return cls(
            id=alert.id,
            sensor_id=alert.sensor_id,
            location=alert.location,
            severity=alert.severity,
            message=alert.message,
            parameters=alert.parameters,
            is_resolved=alert.is_resolved,
            timestamp=alert.timestamp,
            resolved_at=alert.resolved_at,
        )


class PredictionOut(ApiModel):
    id: Optional[int] = None
    sensor_id: str
    location: str
    predicted_risk: Risk
    confidence: int = Field(..., ge=0, le=100)
    timeframe: str
    predicted_parameters: dict[str, float]
    timestamp: Optional[datetime] = None

    @classmethod
    def from_model(cls, prediction: Prediction) -> "PredictionOut":
        return cls(
            id=prediction.id,
            sensor_id=prediction.sensor_id,
            location=prediction.location,
            predicted_risk=prediction.predicted_risk,
            confidence=prediction.confidence,
            timeframe=prediction.timeframe,
            predicted_parameters=prediction.predicted_parameters,
            timestamp=prediction.timestamp,
        )


class ReportRequest(ApiModel):
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    sensor_ids: Optional[List[str]] = None


def envelope(
    data: Any = None,
    message: Optional[str] = None,
    total: Optional[int] = None,
) -> dict[str, Any]:
    """Uniform success body: {success, data?, message?, total?}."""
    body: dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = data
    if message is not None:
        body["message"] = message
    if total is not None:
        body["total"] = total
    return body


def error_envelope(message: str, error: Optional[str] = None) -> dict[str, Any]:
    body: dict[str, Any] = {"success": False, "message": message}
    if error is not None:
        body["error"] = error
    return body
