"""
Reading generator for one sensor, posting to the ingestion endpoint.

    jalrakshak-simulate            # or: python -m jalrakshak.simulator

Environment: API_BASE_URL, SENSOR_ID, INTERVAL_SEC, INCIDENT_MODE.
In incident mode dissolved oxygen drains and turbidity climbs until the
sensor crosses into the critical band.
"""
import logging
import os
import random
import time

import requests
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

PH_BASE = 7.4
TURBIDITY_BASE = 8.0
TEMPERATURE_BASE = 24.0
DO_BASE = 7.0


def clamp(x, lo, hi):
    return max(lo, min(hi, x))


def next_reading(t: int, incident_mode: bool, rng: random.Random = random) -> dict:
    if incident_mode:
        do = DO_BASE - (t * 0.05) + rng.uniform(-0.15, 0.15)
        turbidity = TURBIDITY_BASE + (t * 0.4) + rng.uniform(-1.0, 1.0)
        ph = PH_BASE - (t * 0.02) + rng.uniform(-0.05, 0.05)
    else:
        do = DO_BASE + rng.uniform(-0.4, 0.4)
        turbidity = TURBIDITY_BASE + rng.uniform(-3.0, 3.0)
        ph = PH_BASE + rng.uniform(-0.25, 0.25)

    temperature = TEMPERATURE_BASE + rng.uniform(-1.2, 1.2)

    return {
        "ph": round(clamp(ph, 3.0, 11.0), 2),
        "turbidity": round(clamp(turbidity, 0.0, 200.0), 2),
        "temperature": round(clamp(temperature, 5.0, 40.0), 2),
        "dissolvedOxygen": round(clamp(do, 0.5, 12.0), 2),
    }


def main():
    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - simulator - %(message)s")

    api_base = os.getenv("API_BASE_URL", "http://localhost:3000").rstrip("/")
    sensor_id = os.getenv("SENSOR_ID", "sensor-4")
    interval = int(os.getenv("INTERVAL_SEC", "5"))
    incident_mode = os.getenv("INCIDENT_MODE", "1") == "1"

    url = f"{api_base}/api/sensors/{sensor_id}/readings"

    t = 0
    while True:
        t += 1
        payload = next_reading(t, incident_mode)
        try:
            r = requests.post(url, json=payload, timeout=10)
            body = r.json()
            status = (body.get("data") or {}).get("status")
            logger.info("ingest %s: %s %s", r.status_code, status, body.get("message"))
        except requests.RequestException as e:
            logger.error("ingest error: %s", e)

        time.sleep(interval)


if __name__ == "__main__":
    main()
