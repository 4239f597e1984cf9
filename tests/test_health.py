"""Tests for health endpoints."""

import pytest
from httpx import AsyncClient

from app.api.v1.endpoints import health


async def _up() -> bool:
    return True


async def _down() -> bool:
    return False


@pytest.mark.asyncio
class TestHealthEndpoints:
    """Tests for liveness and readiness probes."""

    async def test_health(self, client: AsyncClient):
        response = await client.get("/api/v1/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["environment"] == "testing"

    async def test_ping(self, client: AsyncClient):
        response = await client.get("/api/v1/ping")

        assert response.json() == {"message": "pong"}

    async def test_detailed_all_up(self, client: AsyncClient, monkeypatch):
        monkeypatch.setattr(health, "check_database_connection", _up)
        monkeypatch.setattr(health, "check_redis_connection", _up)

        response = await client.get("/api/v1/health/detailed")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "healthy"
        assert data["sms_gateway"] in {"configured", "not_configured"}

    async def test_detailed_redis_down_is_degraded(self, client: AsyncClient, monkeypatch):
        monkeypatch.setattr(health, "check_database_connection", _up)
        monkeypatch.setattr(health, "check_redis_connection", _down)

        response = await client.get("/api/v1/health/detailed")

        assert response.status_code == 200
        assert response.json()["status"] == "degraded"

    async def test_detailed_database_down(self, client: AsyncClient, monkeypatch):
        monkeypatch.setattr(health, "check_database_connection", _down)
        monkeypatch.setattr(health, "check_redis_connection", _up)

        response = await client.get("/api/v1/health/detailed")

        assert response.status_code == 503
        assert response.json()["database"] == "unhealthy"
