"""Tests for the health check and root info endpoints."""

import pytest
from unittest.mock import AsyncMock, patch
from pymongo.errors import ServerSelectionTimeoutError

from homegame.config import settings
from homegame.routes.health import _check_database


def _pinging_db(**command_kwargs) -> AsyncMock:
    mock_db = AsyncMock()
    mock_db.command = AsyncMock(**command_kwargs)
    return mock_db


@pytest.mark.asyncio
class TestCheckDatabase:

    async def test_ok_when_ping_answers(self):
        with patch('homegame.routes.health.get_database') as mock_get_db:
            mock_get_db.return_value = _pinging_db(return_value={"ok": 1})
            assert await _check_database() == "ok"
            mock_get_db.return_value.command.assert_awaited_once_with("ping")

    async def test_down_when_not_connected(self):
        with patch('homegame.routes.health.get_database') as mock_get_db:
            mock_get_db.side_effect = RuntimeError("Database not initialized")
            assert await _check_database() == "down"

    async def test_down_when_ping_times_out(self):
        with patch('homegame.routes.health.get_database') as mock_get_db:
            mock_get_db.return_value = _pinging_db(
                side_effect=ServerSelectionTimeoutError("no servers")
            )
            assert await _check_database() == "down"


@pytest.mark.asyncio
class TestHealthEndpoint:
    """Test the /health endpoint behavior."""

    async def test_healthy_when_db_answers(self, client):
        with patch('homegame.routes.health.get_database') as mock_get_db:
            mock_get_db.return_value = _pinging_db(return_value={"ok": 1})

            response = await client.get("/health")

            assert response.status_code == 200
            assert response.json() == {
                "status": "healthy",
                "version": settings.APP_VERSION,
                "checks": {"database": "ok"},
            }

    async def test_degraded_but_200_when_db_is_down(self, client):
        with patch('homegame.routes.health.get_database') as mock_get_db:
            mock_get_db.side_effect = RuntimeError("Database not initialized")

            response = await client.get("/health")

            assert response.status_code == 200
            data = response.json()
            assert data["status"] == "degraded"
            assert data["checks"]["database"] == "down"

    async def test_health_endpoint_at_api_prefix(self, client):
        with patch('homegame.routes.health.get_database') as mock_get_db:
            mock_get_db.return_value = _pinging_db(return_value={"ok": 1})

            response = await client.get("/api/health")

            assert response.status_code == 200
            assert response.json()["status"] == "healthy"

    async def test_root_info(self, client):
        response = await client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["version"] == settings.APP_VERSION
        assert data["health"] == "/health"
