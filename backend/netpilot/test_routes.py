"""Tests for the HTTP API, backed by the fake tc."""
import pytest
from fastapi.testclient import TestClient

from netpilot.api.routes import get_qos_manager
from netpilot.config import Settings
from netpilot.main import create_app
from netpilot.services.qos_manager import QoSManager


@pytest.fixture
def client(fake_tc, tmp_path):
    app = create_app(Settings(static_dir=str(tmp_path / "missing")))
    app.dependency_overrides[get_qos_manager] = lambda: QoSManager(fake_tc)
    return TestClient(app)


class TestApplyEndpoint:
    """POST /api/qos/rules"""

    def test_apply_cake(self, client, fake_tc):
        response = client.post("/api/qos/rules", json={
            "interface": "eth0",
            "algorithm": "cake",
            "settings": {"bandwidth_mbit": 500},
        })
        assert response.status_code == 200
        assert response.json() == {"message": "QoS rule applied successfully"}
        assert fake_tc.commands("add")[0][-2:] == ["bandwidth", "500mbit"]

    def test_missing_bandwidth_is_client_error(self, client, fake_tc):
        response = client.post("/api/qos/rules", json={"interface": "eth0", "algorithm": "tbf"})
        assert response.status_code == 400
        assert "bandwidth_mbit" in response.json()["detail"]
        assert fake_tc.calls == []

    def test_unsupported_algorithm_is_client_error(self, client):
        response = client.post("/api/qos/rules", json={"interface": "eth0", "algorithm": "htb"})
        assert response.status_code == 400
        assert "unsupported QoS algorithm: htb" in response.json()["detail"]

    def test_invalid_body(self, client):
        response = client.post("/api/qos/rules", json={"algorithm": "cake"})
        assert response.status_code == 400
        assert response.json()["detail"].startswith("Invalid request body")

    def test_command_failure_is_server_error(self, client, fake_tc):
        response = client.post("/api/qos/rules", json={"interface": "eth9", "algorithm": "sfq"})
        assert response.status_code == 500
        assert "Cannot find device" in response.json()["detail"]


class TestGetEndpoint:
    """GET /api/qos/rules"""

    def test_round_trip(self, client):
        client.post("/api/qos/rules", json={
            "interface": "eth0", "algorithm": "cake", "settings": {"bandwidth_mbit": 500},
        })
        response = client.get("/api/qos/rules", params={"interface": "eth0"})

        assert response.status_code == 200
        body = response.json()
        assert body["interface"] == "eth0"
        assert body["algorithm"] == "cake"
        assert body["settings"]["bandwidth"] == "500Mbit"
        assert body["settings"]["bandwidth_mbit"] == 500

    def test_no_rule_is_no_content(self, client):
        response = client.get("/api/qos/rules", params={"interface": "eth9"})
        assert response.status_code == 204
        assert response.content == b""

    def test_missing_interface_parameter(self, client):
        response = client.get("/api/qos/rules")
        assert response.status_code == 400
        assert response.json()["detail"] == "missing interface parameter"


class TestDeleteEndpoint:
    """DELETE /api/qos/rules"""

    def test_delete_twice(self, client):
        for _ in range(2):
            response = client.delete("/api/qos/rules", params={"interface": "eth0"})
            assert response.status_code == 200
            assert response.json() == {"message": "QoS rule deleted successfully"}

    def test_missing_interface_parameter(self, client):
        assert client.delete("/api/qos/rules").status_code == 400


class TestMiscEndpoints:
    """Interfaces, ping, health, CORS and static files"""

    def test_interfaces(self, client):
        response = client.get("/api/interfaces")
        assert response.status_code == 200
        assert response.json() == ["eth0", "veth0"]

    def test_ping(self, client):
        response = client.get("/api/ping")
        assert response.status_code == 200
        assert response.text == "pong\n"

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}

    def test_cors_preflight(self, client):
        response = client.options("/api/qos/rules", headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "DELETE",
            "Access-Control-Request-Headers": "Content-Type",
        })
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] in ("*", "http://localhost:5173")
        assert "DELETE" in response.headers["access-control-allow-methods"]

    def test_static_frontend(self, fake_tc, tmp_path):
        (tmp_path / "index.html").write_text("<h1>NetPilot</h1>")
        app = create_app(Settings(static_dir=str(tmp_path)))
        app.dependency_overrides[get_qos_manager] = lambda: QoSManager(fake_tc)
        client = TestClient(app)

        assert "NetPilot" in client.get("/").text
        assert client.get("/api/ping").text == "pong\n"
