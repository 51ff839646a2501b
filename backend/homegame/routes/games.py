"""Game route handlers.

Endpoints:
    POST /api/games                                   -- Create a new game (caller hosts).
    GET  /api/games/active                            -- Active games the caller hosts or plays in.
    GET  /api/games/{game_id}                         -- Get the full game ledger.
    POST /api/games/{game_id}/players                 -- Seat a player with a zero stack.
    GET  /api/games/{game_id}/history                 -- Journal, most recent first.
    GET  /api/games/{game_id}/updates                 -- Long-poll for a newer version.
    POST /api/games/{game_id}/host-buy-in             -- Host buys in without approval.
    POST /api/games/{game_id}/players/{player_id}/cash-out  -- Host cashes a seat out.
    PUT  /api/games/{game_id}/players/{player_id}     -- Host corrects a seat's values.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Path, Query, status
from pydantic import BaseModel, Field

from homegame.auth.dependencies import get_current_user
from homegame.config import settings
from homegame.dal.database import get_database
from homegame.dal.games_dal import GameDAL
from homegame.models.game import Game
from homegame.services.ledger_service import LedgerService

logger = logging.getLogger("homegame.routes.games")

router = APIRouter(prefix="/games", tags=["Games"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _get_service() -> LedgerService:
    """Build a LedgerService wired to the current database."""
    db = get_database()
    return LedgerService(GameDAL(db))


def _to_response(game: Game) -> dict[str, Any]:
    """Serialize a Game for the API (string ids, ISO timestamps)."""
    return game.model_dump(mode="json")


# ---------------------------------------------------------------------------
# Pydantic request schemas
# ---------------------------------------------------------------------------

class InitialPlayer(BaseModel):
    user_id: str = Field(..., min_length=1)
    display_name: str = Field(..., min_length=1, max_length=30)


class CreateGameRequest(BaseModel):
    """Request body for POST /api/games."""
    title: str = Field(default="", max_length=60)
    small_blind: Optional[int] = Field(default=None, description="Cents.")
    big_blind: Optional[int] = Field(default=None, description="Cents.")
    initial_players: list[InitialPlayer] = Field(default_factory=list)


class AddPlayerRequest(BaseModel):
    """Request body for POST /api/games/{game_id}/players.

    Omitting both fields seats the caller.
    """
    user_id: Optional[str] = None
    display_name: Optional[str] = Field(default=None, max_length=30)


class AmountRequest(BaseModel):
    """Request body carrying a single amount in cents."""
    amount: int = Field(..., description="Amount in cents.")


class UpdatePlayerRequest(BaseModel):
    """Request body for PUT /api/games/{game_id}/players/{player_id}."""
    current_stack: int = Field(..., description="New stack in cents.")
    total_buy_in: int = Field(..., description="New buy-in total in cents.")


# ---------------------------------------------------------------------------
# POST /api/games -- Create game
# ---------------------------------------------------------------------------

@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Create a new home game",
)
async def create_game(
    body: CreateGameRequest,
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    """Create a game hosted by the caller."""
    service = _get_service()
    game = await service.create_game(
        creator_id=user["user_id"],
        creator_name=user["display_name"],
        title=body.title,
        small_blind=body.small_blind,
        big_blind=body.big_blind,
        initial_players=[
            (p.user_id, p.display_name) for p in body.initial_players
        ],
    )
    return _to_response(game)


# ---------------------------------------------------------------------------
# GET /api/games/active -- Caller's active games
# ---------------------------------------------------------------------------

@router.get("/active", summary="List the caller's active games")
async def list_active_games(
    user: dict[str, Any] = Depends(get_current_user),
) -> list[dict[str, Any]]:
    service = _get_service()
    games = await service.list_active_games(user["user_id"])
    return [_to_response(g) for g in games]


# ---------------------------------------------------------------------------
# GET /api/games/{game_id} -- Game ledger
# ---------------------------------------------------------------------------

@router.get("/{game_id}", summary="Get a game ledger")
async def get_game(
    game_id: str = Path(...),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    service = _get_service()
    game = await service.get_game(game_id)
    return _to_response(game)


# ---------------------------------------------------------------------------
# POST /api/games/{game_id}/players -- Seat a player
# ---------------------------------------------------------------------------

@router.post("/{game_id}/players", summary="Seat a player with a zero stack")
async def add_player(
    body: AddPlayerRequest,
    game_id: str = Path(...),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    """Seat a player. The host may seat anyone; others may seat themselves."""
    service = _get_service()
    target_id = body.user_id or user["user_id"]
    if body.display_name:
        display_name = body.display_name
    elif target_id == user["user_id"]:
        display_name = user["display_name"]
    else:
        display_name = target_id
    game = await service.add_player(
        game_id, user["user_id"], target_id, display_name
    )
    return _to_response(game)


# ---------------------------------------------------------------------------
# GET /api/games/{game_id}/history -- Journal
# ---------------------------------------------------------------------------

@router.get("/{game_id}/history", summary="Get the game history")
async def get_history(
    game_id: str = Path(...),
    limit: Optional[int] = Query(default=None, ge=1, le=500),
    user: dict[str, Any] = Depends(get_current_user),
) -> list[dict[str, Any]]:
    service = _get_service()
    events = await service.get_history(game_id, limit)
    return [e.model_dump(mode="json") for e in events]


# ---------------------------------------------------------------------------
# GET /api/games/{game_id}/updates -- Long-poll
# ---------------------------------------------------------------------------

@router.get("/{game_id}/updates", summary="Wait for the next committed version")
async def watch_game(
    game_id: str = Path(...),
    after_version: int = Query(default=-1),
    timeout: Optional[float] = Query(default=None, ge=0),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    """Return the game once its version exceeds ``after_version``.

    Responds with the current state when nothing is committed within
    the timeout (capped at WATCH_TIMEOUT_SECONDS).
    """
    service = _get_service()
    wait = settings.WATCH_TIMEOUT_SECONDS
    if timeout is not None:
        wait = min(timeout, wait)
    game = await service.watch(game_id, after_version, wait)
    return _to_response(game)


# ---------------------------------------------------------------------------
# Host-only seat operations
# ---------------------------------------------------------------------------

@router.post("/{game_id}/host-buy-in", summary="Host buys in directly")
async def host_buy_in(
    body: AmountRequest,
    game_id: str = Path(...),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    service = _get_service()
    game = await service.host_buy_in(game_id, user["user_id"], body.amount)
    return _to_response(game)


@router.post(
    "/{game_id}/players/{player_id}/cash-out",
    summary="Host cashes a player out without a request",
)
async def force_cash_out(
    body: AmountRequest,
    game_id: str = Path(...),
    player_id: str = Path(...),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    service = _get_service()
    game = await service.force_cash_out(
        game_id, user["user_id"], player_id, body.amount
    )
    return _to_response(game)


@router.put("/{game_id}/players/{player_id}", summary="Host corrects a seat")
async def update_player(
    body: UpdatePlayerRequest,
    game_id: str = Path(...),
    player_id: str = Path(...),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    service = _get_service()
    game = await service.update_player_values(
        game_id,
        user["user_id"],
        player_id,
        body.current_stack,
        body.total_buy_in,
    )
    return _to_response(game)
