# backend/jalrakshak/config.py
import os

from dotenv import load_dotenv

load_dotenv()

SERVICE_NAME = "JalRakshak API"

DATABASE_URL = os.getenv("DATABASE_URL")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def _parse_origins(raw: str) -> list[str]:
    if not raw:
        return ["*"]
    parts = [p.strip() for p in raw.split(",") if p.strip()]
    return parts or ["*"]


def _parse_flag(raw: str | None, default: bool) -> bool:
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


CORS_ORIGINS = _parse_origins(os.getenv("CORS_ORIGINS", ""))

# Load the demo sensor set at startup when the sensor table is empty
SEED_SENSORS = _parse_flag(os.getenv("SEED_SENSORS"), default=True)

# Upper bound a worker thread waits for a broadcast pass to finish
BROADCAST_TIMEOUT_SEC = float(os.getenv("BROADCAST_TIMEOUT_SEC", "5"))

ALERT_LIST_LIMIT = 50
PREDICTION_LIST_LIMIT = 10
PREDICTION_BATCH_SIZE = 10
PREDICTION_TIMEFRAME = "Next 6 hours"

# Citizen app areas -> sensors covering them
AREA_SENSORS: dict[str, list[str]] = {
    "connaught-place": ["sensor-6"],
    "karol-bagh": ["sensor-7"],
    "lajpat-nagar": ["sensor-8"],
    "dwarka": ["sensor-9"],
}
