import logging

from .classifier import classify
from .schemas import GeoPoint, Readings
from .store import Store

logger = logging.getLogger(__name__)

SEED_SENSORS = [
    {
        "sensor_id": "sensor-1",
        "name": "Yamuna at ITO",
        "location": GeoPoint(lat=28.6280, lng=77.2432),
        "readings": Readings(ph=4.2, turbidity=45.2, temperature=26.1, dissolved_oxygen=2.8),
    },
    {
        "sensor_id": "sensor-2",
        "name": "Hauz Khas Lake",
        "location": GeoPoint(lat=28.5535, lng=77.2073),
        "readings": Readings(ph=5.1, turbidity=38.7, temperature=24.8, dissolved_oxygen=3.2),
    },
    {
        "sensor_id": "sensor-3",
        "name": "Raj Ghat",
        "location": GeoPoint(lat=28.6417, lng=77.2493),
        "readings": Readings(ph=6.2, turbidity=25.3, temperature=25.2, dissolved_oxygen=4.8),
    },
    {
        "sensor_id": "sensor-4",
        "name": "India Gate Lawns",
        "location": GeoPoint(lat=28.6129, lng=77.2295),
        "readings": Readings(ph=7.1, turbidity=8.2, temperature=23.9, dissolved_oxygen=6.5),
    },
    {
        "sensor_id": "sensor-5",
        "name": "Lodhi Gardens",
        "location": GeoPoint(lat=28.5918, lng=77.2273),
        "readings": Readings(ph=7.4, turbidity=6.8, temperature=24.1, dissolved_oxygen=7.2),
    },
]


def seed_sensors(store: Store) -> int:
    """Load the demo sensors if the sensor table is empty. Returns how many were written."""
    if store.has_sensors():
        return 0
    for s in SEED_SENSORS:
        store.upsert_sensor(
            s["sensor_id"],
            s["readings"],
            classify(s["readings"]),
            name=s["name"],
            location=s["location"],
        )
    logger.info("Seeded %d sensors", len(SEED_SENSORS))
    return len(SEED_SENSORS)
