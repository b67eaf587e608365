"""Tests for health check endpoints and application middleware."""

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from catalog_admin.main import create_app


def test_health_check(client: TestClient) -> None:
    """Test health endpoint returns healthy status."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["service"] == "catalog-admin-api"
    assert "version" in data


def test_readiness_check(client: TestClient) -> None:
    """Test readiness endpoint returns ready status."""
    response = client.get("/ready")
    assert response.status_code == 200
    assert response.json() == {"status": "ready"}


def test_readiness_check_database_down(client: TestClient, monkeypatch) -> None:
    """Readiness reports 503 when the database does not answer."""

    async def failing_ping() -> bool:
        raise OperationalError("SELECT 1", {}, Exception("database is down"))

    monkeypatch.setattr(client.app.state.database, "ping", failing_ping)

    response = client.get("/ready")
    assert response.status_code == 503
    assert response.json() == {"status": "unavailable"}


class TestRequestIdMiddleware:
    """Tests for request ID correlation middleware."""

    def test_generates_request_id_if_not_provided(self, client: TestClient) -> None:
        """Should generate request ID if not in request headers."""
        response = client.get("/health")
        assert len(response.headers["X-Request-ID"]) == 36

    def test_uses_provided_request_id(self, client: TestClient) -> None:
        """Should echo the request ID in responses and error bodies."""
        response = client.get("/api/category/missing", headers={"X-Request-ID": "req-42"})
        assert response.headers["X-Request-ID"] == "req-42"
        assert response.json()["request_id"] == "req-42"


class TestApiKeyMiddleware:
    """Tests for optional API key authentication."""

    def test_open_when_no_key_configured(self, client: TestClient) -> None:
        """Without a configured key every endpoint is open."""
        assert client.get("/api/categories").status_code == 200

    def test_key_required_when_configured(self, settings) -> None:
        """Protected endpoints need the bearer key; health stays public."""
        app = create_app(settings.model_copy(update={"admin_api_key": "admin-key"}))

        with TestClient(app) as client:
            assert client.get("/health").status_code == 200

            response = client.get("/api/categories")
            assert response.status_code == 401
            assert response.json()["error_code"] == "UNAUTHORIZED"

            response = client.get(
                "/api/categories", headers={"Authorization": "Bearer wrong"}
            )
            assert response.json()["error_code"] == "INVALID_API_KEY"

            response = client.get(
                "/api/categories", headers={"Authorization": "Bearer admin-key"}
            )
            assert response.status_code == 200
