"""Pydantic models for the home game ledger."""

from homegame.models.common import (
    ErrorKind,
    EventKind,
    GameStatus,
    InviteStatus,
    PlayerStatus,
    PyObjectId,
    RequestDecision,
    RequestKind,
    RequestStatus,
)
from homegame.models.game import Game
from homegame.models.game_event import GameEvent
from homegame.models.game_invite import GameInvite
from homegame.models.ledger_request import LedgerRequest
from homegame.models.player import Player
from homegame.models.settlement import SettlementSummary, SettlementTransaction

__all__ = [
    # Enums and types
    "ErrorKind",
    "EventKind",
    "GameStatus",
    "InviteStatus",
    "PlayerStatus",
    "PyObjectId",
    "RequestDecision",
    "RequestKind",
    "RequestStatus",
    # Aggregate
    "Game",
    # Embedded models
    "GameEvent",
    "GameInvite",
    "LedgerRequest",
    "Player",
    # Settlement
    "SettlementSummary",
    "SettlementTransaction",
]
