from .schemas import Readings

# Moderate band (strict comparisons: a value on the boundary is still healthy)
MODERATE_PH_MIN = 6.5
MODERATE_PH_MAX = 8.5
MODERATE_TURBIDITY_MAX = 25.0
MODERATE_DO_MIN = 5.0

# Critical band, overrides moderate
CRITICAL_PH_MIN = 5.5
CRITICAL_PH_MAX = 9.0
CRITICAL_TURBIDITY_MAX = 35.0
CRITICAL_DO_MIN = 3.0

HEALTHY = "healthy"
MODERATE = "moderate"
CRITICAL = "critical"


def is_moderate_breach(r: Readings) -> bool:
    return (
        r.ph < MODERATE_PH_MIN
        or r.ph > MODERATE_PH_MAX
        or r.turbidity > MODERATE_TURBIDITY_MAX
        or r.dissolved_oxygen < MODERATE_DO_MIN
    )


def is_critical_breach(r: Readings) -> bool:
    return (
        r.ph < CRITICAL_PH_MIN
        or r.ph > CRITICAL_PH_MAX
        or r.turbidity > CRITICAL_TURBIDITY_MAX
        or r.dissolved_oxygen < CRITICAL_DO_MIN
    )


def classify(readings: Readings) -> str:
    """
    Health status of a single reading.
    Both bands are checked; critical wins over moderate.
    Temperature is recorded but plays no part in the status.
    """
    status = HEALTHY
    if is_moderate_breach(readings):
        status = MODERATE
    if is_critical_breach(readings):
        status = CRITICAL
    return status
