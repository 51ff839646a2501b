"""Game invite route handlers.

Endpoints:
    POST /api/games/{game_id}/invites                        -- Host invites a user.
    GET  /api/games/{game_id}/invites                        -- All invites of a game (host).
    POST /api/games/{game_id}/invites/{invite_id}/accept     -- Invitee takes a seat.
    POST /api/games/{game_id}/invites/{invite_id}/decline    -- Invitee turns it down.
    GET  /api/invites/pending                                -- Caller's open invites.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Path, status
from pydantic import BaseModel, Field

from homegame.auth.dependencies import get_current_user
from homegame.dal.database import get_database
from homegame.dal.games_dal import GameDAL
from homegame.services.ledger_service import LedgerService

logger = logging.getLogger("homegame.routes.invites")

router = APIRouter(tags=["Invites"])


def _get_service() -> LedgerService:
    """Build a LedgerService wired to the current database."""
    db = get_database()
    return LedgerService(GameDAL(db))


class SendInviteRequest(BaseModel):
    """Request body for POST /api/games/{game_id}/invites."""
    user_id: str = Field(..., min_length=1)
    display_name: str = Field(..., min_length=1, max_length=30)
    message: Optional[str] = Field(default=None, max_length=200)


@router.post(
    "/games/{game_id}/invites",
    status_code=status.HTTP_201_CREATED,
    summary="Invite a user to the game (host only)",
)
async def send_invite(
    body: SendInviteRequest,
    game_id: str = Path(...),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    service = _get_service()
    game = await service.send_invite(
        game_id,
        user["user_id"],
        body.user_id,
        body.display_name,
        body.message,
    )
    return game.model_dump(mode="json")


@router.get("/games/{game_id}/invites", summary="List invites (host only)")
async def get_invites(
    game_id: str = Path(...),
    user: dict[str, Any] = Depends(get_current_user),
) -> list[dict[str, Any]]:
    service = _get_service()
    invites = await service.get_invites(game_id, user["user_id"])
    return [i.model_dump(mode="json") for i in invites]


@router.post(
    "/games/{game_id}/invites/{invite_id}/accept",
    summary="Accept an invite and take a seat",
)
async def accept_invite(
    game_id: str = Path(...),
    invite_id: str = Path(...),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    service = _get_service()
    game = await service.accept_invite(game_id, user["user_id"], invite_id)
    return game.model_dump(mode="json")


@router.post(
    "/games/{game_id}/invites/{invite_id}/decline",
    summary="Decline an invite",
)
async def decline_invite(
    game_id: str = Path(...),
    invite_id: str = Path(...),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    service = _get_service()
    game = await service.decline_invite(game_id, user["user_id"], invite_id)
    return game.model_dump(mode="json")


@router.get("/invites/pending", summary="The caller's open invites")
async def list_pending_invites(
    user: dict[str, Any] = Depends(get_current_user),
) -> list[dict[str, Any]]:
    """Open invites across ACTIVE games, newest game first."""
    service = _get_service()
    pending = await service.list_pending_invites(user["user_id"])
    return [
        {**entry, "invite": entry["invite"].model_dump(mode="json")}
        for entry in pending
    ]
