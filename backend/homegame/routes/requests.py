"""Ledger request route handlers.

Endpoints:
    POST /api/games/{game_id}/requests                        -- Submit a buy-in or cash-out request.
    GET  /api/games/{game_id}/requests/pending                -- Pending requests (host).
    POST /api/games/{game_id}/requests/{request_id}/approve   -- Approve a buy-in.
    POST /api/games/{game_id}/requests/{request_id}/decline   -- Decline a request.
    POST /api/games/{game_id}/requests/{request_id}/process   -- Process a cash-out.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Path, status
from pydantic import BaseModel, Field

from homegame.auth.dependencies import get_current_user
from homegame.dal.database import get_database
from homegame.dal.games_dal import GameDAL
from homegame.models.common import RequestDecision, RequestKind
from homegame.services.ledger_service import LedgerService

logger = logging.getLogger("homegame.routes.requests")

router = APIRouter(prefix="/games/{game_id}/requests", tags=["Requests"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _get_service() -> LedgerService:
    """Build a LedgerService wired to the current database."""
    db = get_database()
    return LedgerService(GameDAL(db))


async def _resolve(
    game_id: str, request_id: str, user: dict[str, Any], decision: RequestDecision
) -> dict[str, Any]:
    service = _get_service()
    game = await service.resolve_request(
        game_id, user["user_id"], request_id, decision
    )
    return game.model_dump(mode="json")


# ---------------------------------------------------------------------------
# Pydantic request schemas
# ---------------------------------------------------------------------------

class SubmitRequestBody(BaseModel):
    """Request body for POST /api/games/{game_id}/requests."""
    kind: RequestKind
    amount: int = Field(..., description="Amount in cents.")
    display_name: Optional[str] = Field(
        default=None,
        max_length=30,
        description="Name to show on a buy-in; defaults to the token's name.",
    )


# ---------------------------------------------------------------------------
# POST /api/games/{game_id}/requests -- Submit request
# ---------------------------------------------------------------------------

@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Submit a buy-in, rebuy or cash-out request",
)
async def submit_request(
    body: SubmitRequestBody,
    game_id: str = Path(...),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    """Create a PENDING request for the caller and return the updated game."""
    service = _get_service()
    game = await service.submit_request(
        game_id=game_id,
        user_id=user["user_id"],
        display_name=body.display_name or user["display_name"],
        kind=body.kind,
        amount=body.amount,
    )
    return game.model_dump(mode="json")


# ---------------------------------------------------------------------------
# GET /api/games/{game_id}/requests/pending -- Pending requests (host)
# ---------------------------------------------------------------------------

@router.get("/pending", summary="Get pending requests (host only)")
async def get_pending_requests(
    game_id: str = Path(...),
    user: dict[str, Any] = Depends(get_current_user),
) -> list[dict[str, Any]]:
    service = _get_service()
    requests = await service.get_pending_requests(game_id, user["user_id"])
    return [r.model_dump(mode="json") for r in requests]


# ---------------------------------------------------------------------------
# POST .../requests/{request_id}/{decision} -- Resolve (host)
# ---------------------------------------------------------------------------

@router.post("/{request_id}/approve", summary="Approve a buy-in request (host only)")
async def approve_request(
    game_id: str = Path(...),
    request_id: str = Path(...),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    return await _resolve(game_id, request_id, user, RequestDecision.APPROVE)


@router.post("/{request_id}/decline", summary="Decline a request (host only)")
async def decline_request(
    game_id: str = Path(...),
    request_id: str = Path(...),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    return await _resolve(game_id, request_id, user, RequestDecision.DECLINE)


@router.post("/{request_id}/process", summary="Process a cash-out (host only)")
async def process_request(
    game_id: str = Path(...),
    request_id: str = Path(...),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    return await _resolve(game_id, request_id, user, RequestDecision.PROCESS)
