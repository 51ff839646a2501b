"""Typed failures raised by ledger operations.

Every failure is an expected outcome the caller branches on. Only
``ErrorKind.CONFLICT`` is ever retried, and only inside LedgerService.
"""

from typing import Optional

from homegame.models.common import ErrorKind

ERROR_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.INVALID_AMOUNT: "Amount must be a positive number of cents",
    ErrorKind.ALREADY_PENDING: "You already have a pending request of this kind",
    ErrorKind.NOT_FOUND: "Not found",
    ErrorKind.ALREADY_RESOLVED: "Request has already been resolved",
    ErrorKind.UNAUTHORIZED: "Only the game host can do that",
    ErrorKind.GAME_CLOSED: "Game has ended and can no longer be changed",
    ErrorKind.CONFLICT: "The game changed while saving, please try again",
    ErrorKind.PLAYERS_STILL_ACTIVE: "Cash out every active player before ending the game",
    ErrorKind.INVALID_DECISION: "That decision does not apply to this kind of request",
    ErrorKind.ALREADY_SEATED: "User is already playing in this game",
}


class LedgerError(Exception):
    """A ledger operation was rejected.

    Attributes:
        kind: The ErrorKind the caller should branch on.
        message: Human-readable text, defaulting to ERROR_MESSAGES[kind].
    """

    def __init__(self, kind: ErrorKind, message: Optional[str] = None) -> None:
        self.kind = kind
        self.message = message or ERROR_MESSAGES[kind]
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"LedgerError({self.kind!s}, {self.message!r})"
