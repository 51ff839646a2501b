"""Common enums, shared types, and utilities for the ledger models.

All money values in the ledger are integer cents.
"""

from datetime import datetime
from enum import StrEnum
from typing import Annotated, Any, Optional

from bson import ObjectId
from pydantic import BeforeValidator, PlainSerializer


def _validate_object_id(value: Any) -> str:
    """Validate and convert ObjectId or string to string representation."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, str):
        return value
    raise ValueError(f"Invalid ObjectId value: {value}")


# Annotated type for MongoDB ObjectId fields.
# Accepts ObjectId or string on input, always serializes as string.
PyObjectId = Annotated[
    str,
    BeforeValidator(_validate_object_id),
    PlainSerializer(lambda v: str(v), return_type=str),
]


def serialize_timestamp(value: Optional[datetime]) -> Optional[str]:
    """ISO-8601 rendering shared by every model's datetime serializer."""
    if value is None:
        return None
    return value.isoformat()


class GameStatus(StrEnum):
    """Game lifecycle states."""
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"


class PlayerStatus(StrEnum):
    """Per-seat states. ACTIVE -> CASHED_OUT is one-way."""
    ACTIVE = "ACTIVE"
    CASHED_OUT = "CASHED_OUT"


class RequestKind(StrEnum):
    """Which ledger request collection a request lives in."""
    BUY_IN = "BUY_IN"
    CASH_OUT = "CASH_OUT"


class RequestStatus(StrEnum):
    """Ledger request lifecycle states.

    Buy-in requests resolve to APPROVED or DECLINED, cash-out requests
    to PROCESSED or DECLINED.
    """
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    PROCESSED = "PROCESSED"
    DECLINED = "DECLINED"


class InviteStatus(StrEnum):
    """Game invite lifecycle states.

    Invitees accept or decline; invites still PENDING when the game
    ends become EXPIRED.
    """
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    DECLINED = "DECLINED"
    EXPIRED = "EXPIRED"


class RequestDecision(StrEnum):
    """Host decisions accepted by the resolve command.

    APPROVE applies to buy-ins, PROCESS to cash-outs, DECLINE to both.
    """
    APPROVE = "APPROVE"
    DECLINE = "DECLINE"
    PROCESS = "PROCESS"


class EventKind(StrEnum):
    """Kinds of entries in a game's history journal."""
    CREATED = "CREATED"
    PLAYER_INVITED = "PLAYER_INVITED"
    PLAYER_JOINED = "PLAYER_JOINED"
    PLAYER_LEFT = "PLAYER_LEFT"
    BUY_IN = "BUY_IN"
    CASH_OUT = "CASH_OUT"
    PLAYER_UPDATED = "PLAYER_UPDATED"
    ENDED = "ENDED"


class ErrorKind(StrEnum):
    """Expected failure outcomes of ledger operations."""
    INVALID_AMOUNT = "INVALID_AMOUNT"
    ALREADY_PENDING = "ALREADY_PENDING"
    NOT_FOUND = "NOT_FOUND"
    ALREADY_RESOLVED = "ALREADY_RESOLVED"
    UNAUTHORIZED = "UNAUTHORIZED"
    GAME_CLOSED = "GAME_CLOSED"
    CONFLICT = "CONFLICT"
    PLAYERS_STILL_ACTIVE = "PLAYERS_STILL_ACTIVE"
    INVALID_DECISION = "INVALID_DECISION"
    ALREADY_SEATED = "ALREADY_SEATED"
