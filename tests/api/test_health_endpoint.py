"""
Tests for the root and health endpoints.
"""

from unittest.mock import AsyncMock, patch


def test_root(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["service"] == "CEART Bookings Service"
    assert "X-Process-Time" in response.headers


def test_health_without_redis(client):
    response = client.get("/api/v1/health")

    data = response.json()
    assert response.status_code == 200
    assert data["status"] == "healthy"
    assert data["database_status"] == "healthy"
    assert data["redis_status"] == "disabled"


def test_health_reports_unhealthy_redis(client):
    with patch("ceart_api.api.dependencies.redis_manager.health_check", AsyncMock(return_value=False)):
        response = client.get("/api/v1/health")

    assert response.json()["status"] == "unhealthy"
    assert response.json()["redis_status"] == "unhealthy"


def test_health_check_failure(client):
    with patch("ceart_api.api.v1.router.check_service_health", AsyncMock(side_effect=RuntimeError("boom"))):
        response = client.get("/api/v1/health")

    assert response.status_code == 200
    assert response.json()["status"] == "unhealthy"
    assert response.json()["database_status"] == "unknown"
