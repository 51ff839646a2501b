"""Settlement route handlers.

Endpoints:
    POST /api/games/{game_id}/end          -- End the game (host) and store its settlement.
    GET  /api/games/{game_id}/settlement   -- Stored settlement, or a preview while active.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Path

from homegame.auth.dependencies import get_current_user
from homegame.dal.database import get_database
from homegame.dal.games_dal import GameDAL
from homegame.models.settlement import SettlementSummary
from homegame.services.ledger_service import LedgerService

logger = logging.getLogger("homegame.routes.settlement")

router = APIRouter(prefix="/games/{game_id}", tags=["Settlement"])


def _get_service() -> LedgerService:
    """Build a LedgerService wired to the current database."""
    db = get_database()
    return LedgerService(GameDAL(db))


@router.post("/end", summary="End the game (host only)")
async def end_game(
    game_id: str = Path(...),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    """Complete the game. Every seat must already be cashed out."""
    service = _get_service()
    game = await service.end_game(game_id, user["user_id"])
    return game.model_dump(mode="json")


@router.get(
    "/settlement",
    response_model=SettlementSummary,
    summary="Get settlement transactions",
)
async def get_settlement(
    game_id: str = Path(...),
    user: dict[str, Any] = Depends(get_current_user),
) -> SettlementSummary:
    service = _get_service()
    return await service.get_settlement(game_id)
