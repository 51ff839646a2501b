"""In-process fan-out of committed game states to watchers.

LedgerService publishes every committed Game here; the long-poll route
subscribes before reading so no commit between read and wait is missed.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from homegame.models.game import Game

logger = logging.getLogger("homegame.services.subscription")


class GameWatchers:
    """Per-game registry of subscriber queues."""

    def __init__(self) -> None:
        self._queues: dict[str, set[asyncio.Queue]] = {}

    def subscriber_count(self, game_id: str) -> int:
        return len(self._queues.get(game_id, ()))

    @asynccontextmanager
    async def subscribe(self, game_id: str) -> AsyncIterator[asyncio.Queue]:
        """Register a queue that receives every Game committed for ``game_id``."""
        queue: asyncio.Queue = asyncio.Queue()
        self._queues.setdefault(game_id, set()).add(queue)
        try:
            yield queue
        finally:
            subscribers = self._queues.get(game_id)
            if subscribers is not None:
                subscribers.discard(queue)
                if not subscribers:
                    del self._queues[game_id]

    async def publish(self, game: Game) -> int:
        """Deliver a committed game to its subscribers.

        Returns:
            The number of subscribers notified.
        """
        subscribers = self._queues.get(str(game.id), set())
        for queue in subscribers:
            queue.put_nowait(game)
        if subscribers:
            logger.debug(
                "Published game %s v%d to %d watcher(s)",
                game.id,
                game.version,
                len(subscribers),
            )
        return len(subscribers)

    async def wait_for_version(
        self,
        queue: asyncio.Queue,
        after_version: int,
        timeout: float,
    ) -> Optional[Game]:
        """Wait on a subscribed queue for a game newer than ``after_version``.

        Returns:
            The first newer Game, or None if ``timeout`` seconds pass.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                return None
            try:
                game = await asyncio.wait_for(queue.get(), remaining)
            except asyncio.TimeoutError:
                return None
            if game.version > after_version:
                return game


# Process-wide hub shared by the service layer and routes.
game_watchers = GameWatchers()
