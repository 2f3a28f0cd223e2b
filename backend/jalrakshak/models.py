from sqlalchemy import Column, Integer, Float, String, DateTime, Boolean, JSON, Index
from datetime import datetime
from .database import Base

# Alerts and predictions refer to sensors by sensor_id only: no foreign key,
# so deactivating a sensor never touches its history.

class Sensor(Base):
    __tablename__ = "sensors"

    id = Column(Integer, primary_key=True)
    sensor_id = Column(String, nullable=False, unique=True, index=True)
    name = Column(String, nullable=False)

    lat = Column(Float, nullable=True)
    lng = Column(Float, nullable=True)

    ph = Column(Float, nullable=False)
    turbidity = Column(Float, nullable=False)
    temperature = Column(Float, nullable=False)
    dissolved_oxygen = Column(Float, nullable=False)

    status = Column(String, nullable=False)  # healthy | moderate | critical
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    is_active = Column(Boolean, default=True, nullable=False, index=True)

class Alert(Base):
    __tablename__ = "alerts"

    id = Column(Integer, primary_key=True)
    sensor_id = Column(String, nullable=False, index=True)
    location = Column(String, nullable=False)

    severity = Column(String, nullable=False)  # low | moderate | high | critical
    message = Column(String, nullable=False)
    parameters = Column(JSON, nullable=False)
    is_resolved = Column(Boolean, default=False, nullable=False, index=True)

    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    resolved_at = Column(DateTime, nullable=True)

class Prediction(Base):
    __tablename__ = "predictions"

    id = Column(Integer, primary_key=True)
    sensor_id = Column(String, nullable=False, index=True)
    location = Column(String, nullable=False)

    predicted_risk = Column(String, nullable=False)  # low | medium | high
    confidence = Column(Integer, nullable=False)
    timeframe = Column(String, nullable=False)
    predicted_parameters = Column(JSON, nullable=False)

    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

Index("idx_sensors_active_time", Sensor.is_active, Sensor.timestamp)
Index("idx_alerts_open_time", Alert.is_resolved, Alert.timestamp)
