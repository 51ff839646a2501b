"""Pure functions for the game history journal.

No database access, no async. The journal is append-only: entries are
never edited, removed or reordered once written.
"""

from datetime import datetime, timezone
from typing import Optional

from homegame.models.common import EventKind
from homegame.models.game import Game
from homegame.models.game_event import GameEvent


def format_amount(cents: int) -> str:
    """Render an amount in cents for event descriptions, e.g. ``"12.50"``."""
    sign = "-" if cents < 0 else ""
    units, remainder = divmod(abs(cents), 100)
    return f"{sign}{units}.{remainder:02d}"


def new_event(
    kind: EventKind,
    user_id: str,
    user_name: str,
    description: str,
    amount: Optional[int] = None,
    now: Optional[datetime] = None,
) -> GameEvent:
    """Build a journal entry stamped with ``now`` (UTC by default)."""
    return GameEvent(
        timestamp=now or datetime.now(timezone.utc),
        kind=kind,
        user_id=user_id,
        user_name=user_name,
        amount=amount,
        description=description,
    )


def append_event(
    history: list[GameEvent], event: GameEvent
) -> list[GameEvent]:
    """Return a new history list with ``event`` appended."""
    return [*history, event]


def get_history(game: Game, limit: Optional[int] = None) -> list[GameEvent]:
    """Return a game's history, most recent first.

    Events with equal timestamps keep their journal order, the later
    insertion coming first.

    Args:
        game: The game snapshot.
        limit: Maximum number of events to return (all when None).
    """
    indexed = sorted(
        enumerate(game.history),
        key=lambda pair: (pair[1].timestamp, pair[0]),
        reverse=True,
    )
    events = [event for _, event in indexed]
    if limit is not None:
        return events[: max(limit, 0)]
    return events
