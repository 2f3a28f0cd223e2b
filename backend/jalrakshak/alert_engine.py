import logging
from typing import Optional

from .classifier import CRITICAL
from .models import Alert
from .schemas import Readings
from .store import Store

logger = logging.getLogger(__name__)

# Only one tier is emitted today; low/moderate/high exist in the schema only.
ALERT_SEVERITY = "critical"


def _num(x: float) -> str:
    # full precision, whole numbers without a trailing ".0"
    text = repr(float(x))
    return text[:-2] if text.endswith(".0") else text


def alert_message(readings: Readings) -> str:
    return (
        f"Critical water quality detected: pH {_num(readings.ph)}, "
        f"Turbidity {_num(readings.turbidity)} NTU, "
        f"DO {_num(readings.dissolved_oxygen)} mg/L"
    )


def evaluate(
    store: Store,
    sensor_id: str,
    location: str,
    readings: Readings,
    status: str,
) -> Optional[Alert]:
    """
    Open and persist an alert when the reading classified as critical.

    Repeated critical readings are not debounced: each one produces its own
    alert record.
    """
    if status != CRITICAL:
        return None

    alert = Alert(
        sensor_id=sensor_id,
        location=location,
        severity=ALERT_SEVERITY,
        message=alert_message(readings),
        parameters=readings.to_json(),
        is_resolved=False,
    )
    store.insert_alert(alert)
    logger.warning("Alert %s opened for %s: %s", alert.id, sensor_id, alert.message)
    return alert
