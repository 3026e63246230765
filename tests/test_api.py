"""
==============================================================================
API Integration Tests
==============================================================================

Tests for health endpoints and the shared error envelope.

==============================================================================
"""

from fastapi.testclient import TestClient


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    def test_health_check(self, client: TestClient):
        """Test health check returns status."""
        response = client.get("/api/v1/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["components"]["database"] == "healthy"
        assert data["components"]["cache"] == "disabled"

    def test_readiness_probe(self, client: TestClient):
        """Test readiness probe."""
        response = client.get("/api/v1/health/ready")
        assert response.status_code == 200
        assert response.json()["ready"] is True

    def test_liveness_probe(self, client: TestClient):
        """Test liveness probe."""
        response = client.get("/api/v1/health/live")
        assert response.status_code == 200
        assert response.json()["alive"] is True


class TestErrorEnvelope:
    """Errors share one JSON shape."""

    def test_validation_error_shape(self, client: TestClient):
        response = client.post("/api/v1/auth/login", json={"email": "x@example.com"})
        assert response.status_code == 422
        error = response.json()["error"]
        assert response.json()["success"] is False
        assert error["code"] == "VALIDATION_ERROR"
        assert "timestamp" in error

    def test_unauthorized_without_token(self, client: TestClient):
        response = client.get("/api/v1/auth/me")
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "TOKEN_INVALID"

    def test_garbage_token_rejected(self, client: TestClient):
        response = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    def test_root(self, client: TestClient):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["docs"] == "/docs"
