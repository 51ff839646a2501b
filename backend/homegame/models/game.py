"""Game aggregate model.

One document in the games collection holds the whole ledger for a
session: seats, requests, history and the cached settlement. Players,
requests and events have no lifecycle outside their Game.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field, field_serializer

from homegame.models.common import (
    GameStatus,
    PyObjectId,
    RequestKind,
    serialize_timestamp,
)
from homegame.models.game_event import GameEvent
from homegame.models.game_invite import GameInvite
from homegame.models.ledger_request import LedgerRequest
from homegame.models.player import Player
from homegame.models.settlement import SettlementTransaction


class Game(BaseModel):
    """Represents a home game session stored in the games collection.

    ``version`` is bumped on every committed write and is the token
    the conditional replace in GameDAL checks against.
    """

    model_config = {"populate_by_name": True, "arbitrary_types_allowed": True}

    id: Optional[PyObjectId] = Field(default=None, alias="_id")
    title: str = ""
    creator_id: str
    creator_name: str
    status: GameStatus = GameStatus.ACTIVE
    small_blind: Optional[int] = Field(default=None, ge=0)
    big_blind: Optional[int] = Field(default=None, ge=0)
    players: list[Player] = Field(default_factory=list)
    buy_in_requests: list[LedgerRequest] = Field(default_factory=list)
    cash_out_requests: list[LedgerRequest] = Field(default_factory=list)
    invites: list[GameInvite] = Field(default_factory=list)
    history: list[GameEvent] = Field(default_factory=list)
    settlement_transactions: Optional[list[SettlementTransaction]] = None
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    completed_at: Optional[datetime] = None
    version: int = 0

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        return self.status == GameStatus.ACTIVE

    @property
    def active_players(self) -> list[Player]:
        return [p for p in self.players if p.is_active]

    def is_host(self, user_id: str) -> bool:
        return user_id == self.creator_id

    def get_player(self, player_id: str) -> Optional[Player]:
        """Find a seat by its id."""
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def get_active_player_for_user(self, user_id: str) -> Optional[Player]:
        """Find the user's ACTIVE seat, if any."""
        for player in self.players:
            if player.user_id == user_id and player.is_active:
                return player
        return None

    def requests_of_kind(self, kind: RequestKind) -> list[LedgerRequest]:
        if kind == RequestKind.BUY_IN:
            return self.buy_in_requests
        return self.cash_out_requests

    def get_request(self, request_id: str) -> Optional[LedgerRequest]:
        """Find a buy-in or cash-out request by id."""
        for request in (*self.buy_in_requests, *self.cash_out_requests):
            if request.id == request_id:
                return request
        return None

    def get_pending_request(
        self, user_id: str, kind: RequestKind
    ) -> Optional[LedgerRequest]:
        for request in self.requests_of_kind(kind):
            if request.user_id == user_id and request.is_pending:
                return request
        return None

    @property
    def pending_requests(self) -> list[LedgerRequest]:
        """All pending requests, oldest first."""
        pending = [
            r
            for r in (*self.buy_in_requests, *self.cash_out_requests)
            if r.is_pending
        ]
        return sorted(pending, key=lambda r: r.requested_at)

    def get_invite(self, invite_id: str) -> Optional[GameInvite]:
        for invite in self.invites:
            if invite.id == invite_id:
                return invite
        return None

    def get_pending_invite(self, user_id: str) -> Optional[GameInvite]:
        """Find the open invite addressed to a user, if any."""
        for invite in self.invites:
            if invite.invited_user_id == user_id and invite.is_pending:
                return invite
        return None

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    @field_serializer("id")
    def serialize_id(self, value: Optional[str], _info) -> Optional[str]:
        if value is not None:
            return str(value)
        return value

    @field_serializer("created_at", "completed_at")
    def serialize_datetime(
        self, value: Optional[datetime], _info
    ) -> Optional[str]:
        return serialize_timestamp(value)

    def to_mongo_dict(self) -> dict:
        """Convert model to a MongoDB-insertable dict, excluding None id."""
        data = self.model_dump(by_alias=True, mode="python")
        # Remove _id if None so MongoDB generates one
        if data.get("_id") is None:
            data.pop("_id", None)
        return data
