import pytest

from modules.core import views


class TestHealthCheck:
    def test_healthy_when_every_probe_passes(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "timestamp" in data
        assert set(data["services"]) == {"database", "cache"}

    def test_reports_response_times(self, client):
        services = client.get("/health").json()["services"]

        for name in ("database", "cache"):
            assert services[name]["status"] == "up"
            assert "response_time_ms" in services[name]

    def test_failing_probe_returns_503(self, client, monkeypatch):
        def broken_cache():
            raise ConnectionError("redis unreachable")

        monkeypatch.setitem(views.PROBES, "cache", broken_cache)

        response = client.get("/health")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "unhealthy"
        assert data["services"]["cache"] == {"status": "down"}
        assert data["services"]["database"]["status"] == "up"

    def test_is_public(self, api_client):
        assert api_client.get("/health").status_code == 200
