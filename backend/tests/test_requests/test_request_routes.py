"""Integration tests for ledger request route handlers.

Tests the full HTTP stack using HTTPX AsyncClient with the FastAPI app
and mongomock-motor (no real MongoDB required).
"""

import os

os.environ.setdefault("JWT_SECRET", "test-secret-key-for-unit-tests-only")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from jose import jwt
from mongomock_motor import AsyncMongoMockClient

from homegame.auth.jwt import ALGORITHM
from homegame.config import settings
from homegame.dal import database as db_module
from homegame.routes import games as games_route_module
from homegame.routes import requests as requests_route_module
from homegame.routes import settlement as settlement_route_module


def _headers(user_id: str, name: str) -> dict[str, str]:
    token = jwt.encode(
        {"sub": user_id, "name": name}, settings.JWT_SECRET, algorithm=ALGORITHM
    )
    return {"Authorization": f"Bearer {token}"}


HOST = _headers("host-1", "Hannah")
PAT = _headers("p", "Pat")
VERA = _headers("v", "Vera")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def mock_db():
    """Provide an in-memory mock MongoDB database and patch all get_database refs."""
    client = AsyncMongoMockClient()
    db = client["homegame_test"]

    getter = lambda: db
    modules = [db_module, games_route_module, requests_route_module, settlement_route_module]
    originals = [m.get_database for m in modules]
    for module in modules:
        module.get_database = getter

    yield db

    for module, original in zip(modules, originals):
        module.get_database = original
    client.close()


@pytest_asyncio.fixture
async def test_client(mock_db):
    """Async HTTP client wired to the FastAPI app with mocked db."""
    from homegame.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def game_id(test_client):
    resp = await test_client.post("/api/games", json={"title": "Friday"}, headers=HOST)
    assert resp.status_code == 201
    return resp.json()["id"]


async def _submit(test_client, game_id, headers, kind, amount, **extra):
    return await test_client.post(
        f"/api/games/{game_id}/requests",
        json={"kind": kind, "amount": amount, **extra},
        headers=headers,
    )


async def _pending_id(test_client, game_id, user_id):
    resp = await test_client.get(f"/api/games/{game_id}/requests/pending", headers=HOST)
    return next(r["id"] for r in resp.json() if r["user_id"] == user_id)


# ---------------------------------------------------------------------------
# POST /api/games/{game_id}/requests
# ---------------------------------------------------------------------------

class TestSubmitRequest:

    @pytest.mark.asyncio
    async def test_buy_in_request_returns_201(self, test_client, game_id):
        resp = await _submit(test_client, game_id, PAT, "BUY_IN", 10000)
        assert resp.status_code == 201
        request = resp.json()["buy_in_requests"][0]
        assert request["user_id"] == "p"
        assert request["display_name"] == "Pat"
        assert request["amount"] == 10000
        assert request["status"] == "PENDING"
        assert resp.json()["players"] == []

    @pytest.mark.asyncio
    async def test_display_name_override(self, test_client, game_id):
        resp = await _submit(test_client, game_id, PAT, "BUY_IN", 10000, display_name="Patty")
        assert resp.json()["buy_in_requests"][0]["display_name"] == "Patty"

    @pytest.mark.asyncio
    async def test_duplicate_pending_is_409(self, test_client, game_id):
        await _submit(test_client, game_id, PAT, "BUY_IN", 10000)
        resp = await _submit(test_client, game_id, PAT, "BUY_IN", 5000)
        assert resp.status_code == 409
        assert resp.json()["error"] == "ALREADY_PENDING"

    @pytest.mark.asyncio
    async def test_zero_buy_in_is_400(self, test_client, game_id):
        resp = await _submit(test_client, game_id, PAT, "BUY_IN", 0)
        assert resp.status_code == 400
        assert resp.json()["error"] == "INVALID_AMOUNT"

    @pytest.mark.asyncio
    async def test_unknown_kind_is_422(self, test_client, game_id):
        resp = await _submit(test_client, game_id, PAT, "CREDIT", 100)
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_cash_out_without_seat_is_404(self, test_client, game_id):
        resp = await _submit(test_client, game_id, PAT, "CASH_OUT", 100)
        assert resp.status_code == 404


# ---------------------------------------------------------------------------
# GET /api/games/{game_id}/requests/pending
# ---------------------------------------------------------------------------

class TestPendingRequests:

    @pytest.mark.asyncio
    async def test_host_sees_pending_oldest_first(self, test_client, game_id):
        await _submit(test_client, game_id, PAT, "BUY_IN", 10000)
        await _submit(test_client, game_id, VERA, "BUY_IN", 5000)
        resp = await test_client.get(f"/api/games/{game_id}/requests/pending", headers=HOST)
        assert resp.status_code == 200
        assert [r["user_id"] for r in resp.json()] == ["p", "v"]

    @pytest.mark.asyncio
    async def test_player_cannot_list_pending(self, test_client, game_id):
        resp = await test_client.get(f"/api/games/{game_id}/requests/pending", headers=PAT)
        assert resp.status_code == 403


# ---------------------------------------------------------------------------
# Resolving requests
# ---------------------------------------------------------------------------

class TestResolveRequests:

    @pytest.mark.asyncio
    async def test_approve_buy_in_credits_seat(self, test_client, game_id):
        await _submit(test_client, game_id, PAT, "BUY_IN", 10000)
        request_id = await _pending_id(test_client, game_id, "p")

        resp = await test_client.post(
            f"/api/games/{game_id}/requests/{request_id}/approve", headers=HOST
        )
        assert resp.status_code == 200
        game = resp.json()
        assert game["buy_in_requests"][0]["status"] == "APPROVED"
        assert game["players"][0]["current_stack"] == 10000
        assert game["players"][0]["total_buy_in"] == 10000

    @pytest.mark.asyncio
    async def test_player_cannot_approve(self, test_client, game_id):
        await _submit(test_client, game_id, PAT, "BUY_IN", 10000)
        request_id = await _pending_id(test_client, game_id, "p")
        resp = await test_client.post(
            f"/api/games/{game_id}/requests/{request_id}/approve", headers=PAT
        )
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_decline(self, test_client, game_id):
        await _submit(test_client, game_id, PAT, "BUY_IN", 10000)
        request_id = await _pending_id(test_client, game_id, "p")
        resp = await test_client.post(
            f"/api/games/{game_id}/requests/{request_id}/decline", headers=HOST
        )
        assert resp.json()["buy_in_requests"][0]["status"] == "DECLINED"
        assert resp.json()["players"] == []

    @pytest.mark.asyncio
    async def test_cash_out_flow_and_double_process(self, test_client, game_id):
        await _submit(test_client, game_id, PAT, "BUY_IN", 10000)
        buy_in_id = await _pending_id(test_client, game_id, "p")
        await test_client.post(
            f"/api/games/{game_id}/requests/{buy_in_id}/approve", headers=HOST
        )

        resp = await _submit(test_client, game_id, PAT, "CASH_OUT", 12500)
        assert resp.status_code == 201
        cash_out_id = await _pending_id(test_client, game_id, "p")

        resp = await test_client.post(
            f"/api/games/{game_id}/requests/{cash_out_id}/process", headers=HOST
        )
        assert resp.status_code == 200
        seat = resp.json()["players"][0]
        assert seat["status"] == "CASHED_OUT"
        assert seat["current_stack"] == 12500

        resp = await test_client.post(
            f"/api/games/{game_id}/requests/{cash_out_id}/process", headers=HOST
        )
        assert resp.status_code == 409
        assert resp.json()["error"] == "ALREADY_RESOLVED"

    @pytest.mark.asyncio
    async def test_unknown_request_is_404(self, test_client, game_id):
        resp = await test_client.post(
            f"/api/games/{game_id}/requests/nope/approve", headers=HOST
        )
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_process_on_buy_in_is_400(self, test_client, game_id):
        await _submit(test_client, game_id, PAT, "BUY_IN", 10000)
        request_id = await _pending_id(test_client, game_id, "p")
        resp = await test_client.post(
            f"/api/games/{game_id}/requests/{request_id}/process", headers=HOST
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "INVALID_DECISION"
        assert await _pending_id(test_client, game_id, "p") == request_id

    @pytest.mark.asyncio
    async def test_approve_on_cash_out_is_400(self, test_client, game_id):
        await _submit(test_client, game_id, PAT, "BUY_IN", 10000)
        buy_in_id = await _pending_id(test_client, game_id, "p")
        await test_client.post(
            f"/api/games/{game_id}/requests/{buy_in_id}/approve", headers=HOST
        )
        await _submit(test_client, game_id, PAT, "CASH_OUT", 2500)
        cash_out_id = await _pending_id(test_client, game_id, "p")

        resp = await test_client.post(
            f"/api/games/{game_id}/requests/{cash_out_id}/approve", headers=HOST
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "INVALID_DECISION"
        game = (await test_client.get(f"/api/games/{game_id}", headers=HOST)).json()
        assert game["players"][0]["status"] == "ACTIVE"
