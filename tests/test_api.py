"""
Tests for the HTTP surface and the real-time channel: envelope shape, status
codes, and the events a websocket viewer receives.
"""
import pytest
from fastapi.testclient import TestClient

from jalrakshak.main import app
from jalrakshak.store import Store

CRITICAL_READING = {"ph": 4.2, "turbidity": 45.2, "temperature": 26.1, "dissolvedOxygen": 2.8}
HEALTHY_READING = {"ph": 7.1, "turbidity": 8.2, "temperature": 23.9, "dissolvedOxygen": 6.5}


def submit(client, sensor_id, payload):
    return client.post(f"/api/sensors/{sensor_id}/readings", json=payload)


class TestReadings:
    """Test POST /api/sensors/{sensor_id}/readings"""

    def test_submit_reading(self, client):
        response = submit(client, "sensor-4", HEALTHY_READING)
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Sensor readings updated successfully"
        assert body["data"]["sensorId"] == "sensor-4"
        assert body["data"]["status"] == "healthy"
        assert body["data"]["readings"] == HEALTHY_READING
        assert body["data"]["isActive"] is True

    def test_missing_field_returns_400(self, client):
        response = submit(client, "sensor-4", {"ph": 7.0, "turbidity": 3.0})
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert "required" in body["message"]
        assert client.get("/api/sensors").json()["total"] == 0

    def test_empty_body_returns_400(self, client):
        response = client.post("/api/sensors/sensor-4/readings")
        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_malformed_json_returns_400(self, client):
        response = client.post(
            "/api/sensors/sensor-4/readings",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_zero_value_is_accepted(self, client):
        response = submit(client, "sensor-4", {**HEALTHY_READING, "turbidity": 0})
        assert response.status_code == 200
        assert response.json()["data"]["readings"]["turbidity"] == 0.0

    def test_critical_reading_opens_alert(self, client):
        submit(client, "sensor-1", CRITICAL_READING)
        alerts = client.get("/api/alerts").json()
        assert alerts["total"] == 1
        alert = alerts["data"][0]
        assert alert["sensorId"] == "sensor-1"
        assert alert["severity"] == "critical"
        assert alert["parameters"] == CRITICAL_READING
        assert "pH 4.2" in alert["message"]


class TestSensors:

    def test_list_sensors(self, client):
        submit(client, "sensor-1", HEALTHY_READING)
        submit(client, "sensor-2", CRITICAL_READING)
        body = client.get("/api/sensors").json()
        assert body["success"] is True
        assert body["total"] == 2
        assert [s["sensorId"] for s in body["data"]] == ["sensor-2", "sensor-1"]

    def test_list_sensors_empty(self, client):
        body = client.get("/api/sensors").json()
        assert body == {"success": True, "data": [], "total": 0}

    def test_get_sensor(self, client):
        submit(client, "sensor-1", HEALTHY_READING)
        response = client.get("/api/sensors/sensor-1")
        assert response.status_code == 200
        assert response.json()["data"]["sensorId"] == "sensor-1"

    def test_get_unknown_sensor_returns_404(self, client):
        response = client.get("/api/sensors/sensor-404")
        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Sensor not found"}

    def test_deactivated_sensor_is_hidden(self, client):
        submit(client, "sensor-1", HEALTHY_READING)
        response = client.put("/api/sensors/sensor-1/deactivate")
        assert response.status_code == 200
        assert response.json()["data"]["isActive"] is False

        assert client.get("/api/sensors/sensor-1").status_code == 404
        assert client.get("/api/sensors").json()["total"] == 0

    def test_deactivate_unknown_sensor_returns_404(self, client):
        assert client.put("/api/sensors/nope/deactivate").status_code == 404


class TestAlerts:

    def test_resolve_alert(self, client):
        submit(client, "sensor-1", CRITICAL_READING)
        alert_id = client.get("/api/alerts").json()["data"][0]["id"]

        response = client.put(f"/api/alerts/{alert_id}/resolve")
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Alert resolved successfully"
        assert body["data"]["isResolved"] is True
        assert client.get("/api/alerts").json()["total"] == 0

    def test_resolve_twice_returns_same_record(self, client):
        submit(client, "sensor-1", CRITICAL_READING)
        alert_id = client.get("/api/alerts").json()["data"][0]["id"]

        first = client.put(f"/api/alerts/{alert_id}/resolve").json()["data"]
        second = client.put(f"/api/alerts/{alert_id}/resolve")
        assert second.status_code == 200
        assert second.json()["data"] == first

    @pytest.mark.parametrize("alert_id", ["9999", "not-an-id"])
    def test_resolve_unknown_alert_returns_404(self, client, alert_id):
        response = client.put(f"/api/alerts/{alert_id}/resolve")
        assert response.status_code == 404
        assert response.json()["message"] == "Alert not found"

    def test_alert_list_capped_at_fifty(self, client):
        for _ in range(55):
            submit(client, "sensor-1", CRITICAL_READING)
        body = client.get("/api/alerts").json()
        assert body["total"] == 50


class TestPredictions:

    def test_generate_and_list(self, client):
        submit(client, "sensor-1", CRITICAL_READING)
        submit(client, "sensor-4", HEALTHY_READING)

        generated = client.post("/api/predictions/generate").json()
        assert generated["success"] is True
        assert generated["message"] == "AI predictions generated successfully"
        risks = {p["sensorId"]: p["predictedRisk"] for p in generated["data"]}
        assert risks == {"sensor-1": "high", "sensor-4": "low"}

        listed = client.get("/api/predictions").json()
        assert len(listed["data"]) == 2
        assert all(p["timeframe"] == "Next 6 hours" for p in listed["data"])

    def test_list_capped_at_ten(self, client):
        for i in range(6):
            submit(client, f"sensor-{i}", HEALTHY_READING)
        client.post("/api/predictions/generate")
        client.post("/api/predictions/generate")
        assert len(client.get("/api/predictions").json()["data"]) == 10


class TestHealth:

    def test_health(self, client):
        body = client.get("/api/health").json()
        assert body["success"] is True
        assert body["message"] == "JalRakshak API is running"
        assert body["data"]["service"] == "JalRakshak API"
        assert body["data"]["version"] == "1.0.0"
        assert "timestamp" in body["data"]


class TestUnexpectedErrors:

    def test_unhandled_exception_uses_error_envelope(self, monkeypatch):
        def broken(self, *args, **kwargs):
            raise ValueError("cursor exploded")

        monkeypatch.setattr(Store, "list_active_sensors", broken)
        with TestClient(app, raise_server_exceptions=False) as client:
            response = client.get("/api/sensors")

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "message": "Internal server error",
            "error": "cursor exploded",
        }


class TestRealtime:
    """Test the /ws channel"""

    def test_ping_pong(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_text("ping")
            assert ws.receive_json() == {"type": "pong"}

    def test_critical_reading_pushes_alert_then_sensor_update(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_text("ping")
            ws.receive_json()

            submit(client, "sensor-1", CRITICAL_READING)

            alert = ws.receive_json()
            update = ws.receive_json()
            assert alert["type"] == "alert"
            assert alert["data"]["sensorId"] == "sensor-1"
            assert update["type"] == "sensor_update"
            assert update["data"]["status"] == "critical"

    def test_resolve_and_predictions_are_pushed(self, client):
        submit(client, "sensor-1", CRITICAL_READING)
        alert_id = client.get("/api/alerts").json()["data"][0]["id"]

        with client.websocket_connect("/ws") as ws:
            ws.send_text("ping")
            ws.receive_json()

            client.put(f"/api/alerts/{alert_id}/resolve")
            resolved = ws.receive_json()
            assert resolved["type"] == "alert_resolved"
            assert resolved["data"]["id"] == alert_id

            client.post("/api/predictions/generate")
            predictions = ws.receive_json()
            assert predictions["type"] == "predictions_updated"
            assert predictions["data"][0]["sensorId"] == "sensor-1"

    def test_every_subscriber_receives_every_event(self, client):
        with client.websocket_connect("/ws") as first, client.websocket_connect("/ws") as second:
            for ws in (first, second):
                ws.send_text("ping")
                ws.receive_json()

            submit(client, "sensor-4", HEALTHY_READING)

            for ws in (first, second):
                event = ws.receive_json()
                assert event["type"] == "sensor_update"
                assert event["data"]["sensorId"] == "sensor-4"

    def test_binary_frames_are_ignored(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_bytes(b"\x00\x01")
            ws.send_text("ping")
            assert ws.receive_json() == {"type": "pong"}
