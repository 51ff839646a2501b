"""Game ledger business logic service.

Wraps the pure transitions in ``ledger_transitions`` in an optimistic
concurrency loop against the stored Game document: read, apply the
transition, write the complete next state back only if nobody else
committed in between, and otherwise retry against the fresh document.
Committed states are published to GameWatchers.
"""

import logging
from typing import Any, Callable, Iterable, Optional

from homegame.config import settings
from homegame.dal.games_dal import GameDAL
from homegame.errors import LedgerError
from homegame.models.common import (
    ErrorKind,
    GameStatus,
    RequestDecision,
    RequestKind,
)
from homegame.models.game import Game
from homegame.models.game_event import GameEvent
from homegame.models.game_invite import GameInvite
from homegame.models.ledger_request import LedgerRequest
from homegame.models.settlement import SettlementSummary
from homegame.services import ledger_transitions as transitions
from homegame.services.event_journal import get_history
from homegame.services.settlement_math import compute_totals, summarize_settlement
from homegame.services.subscription_service import GameWatchers, game_watchers

logger = logging.getLogger("homegame.services.ledger")


class LedgerService:
    """Service layer for game ledger operations."""

    def __init__(
        self,
        game_dal: GameDAL,
        watchers: Optional[GameWatchers] = None,
        max_attempts: Optional[int] = None,
        tolerance: Optional[int] = None,
    ) -> None:
        self._game_dal = game_dal
        self._watchers = watchers if watchers is not None else game_watchers
        self._max_attempts = max_attempts or settings.LEDGER_MAX_ATTEMPTS
        self._tolerance = (
            tolerance
            if tolerance is not None
            else settings.SETTLEMENT_TOLERANCE_CENTS
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _get_game_or_404(self, game_id: str) -> Game:
        """Fetch a game by ID, raising NOT_FOUND if missing."""
        game = await self._game_dal.get_by_id(game_id)
        if game is None:
            raise LedgerError(ErrorKind.NOT_FOUND, "Game not found")
        return game

    async def _apply(
        self,
        game_id: str,
        transition: Callable[..., Game],
        *args: Any,
        **kwargs: Any,
    ) -> Game:
        """Run one transition as an atomic read-modify-write.

        Raises:
            LedgerError: Whatever the transition raises, NOT_FOUND for a
                missing game, or CONFLICT once every attempt lost a race.
        """
        for attempt in range(1, self._max_attempts + 1):
            current = await self._get_game_or_404(game_id)
            updated = transition(current, *args, **kwargs)
            if updated is current:
                return current

            updated.version = current.version + 1
            if await self._game_dal.replace_if_version(updated, current.version):
                logger.info(
                    "Committed %s on game %s (v%d)",
                    transition.__name__,
                    game_id,
                    updated.version,
                )
                await self._watchers.publish(updated)
                return updated

            logger.warning(
                "Version conflict applying %s to game %s (attempt %d/%d)",
                transition.__name__,
                game_id,
                attempt,
                self._max_attempts,
            )

        logger.error(
            "Gave up applying %s to game %s after %d attempts",
            transition.__name__,
            game_id,
            self._max_attempts,
        )
        raise LedgerError(ErrorKind.CONFLICT)

    # ------------------------------------------------------------------
    # Create and read
    # ------------------------------------------------------------------

    async def create_game(
        self,
        creator_id: str,
        creator_name: str,
        title: str = "",
        small_blind: Optional[int] = None,
        big_blind: Optional[int] = None,
        initial_players: Iterable[tuple[str, str]] = (),
    ) -> Game:
        """Create and store a new ACTIVE game hosted by ``creator_id``."""
        game = transitions.create_game(
            creator_id=creator_id,
            creator_name=creator_name,
            title=title,
            small_blind=small_blind,
            big_blind=big_blind,
            initial_players=initial_players,
        )
        game = await self._game_dal.create(game)
        logger.info(
            "Game created: id=%s host=%s players=%d",
            game.id, creator_id, len(game.players),
        )
        return game

    async def get_game(self, game_id: str) -> Game:
        return await self._get_game_or_404(game_id)

    async def list_active_games(self, user_id: str) -> list[Game]:
        """ACTIVE games the user hosts or plays in, newest first."""
        return await self._game_dal.list_active_for_user(user_id)

    async def get_history(
        self, game_id: str, limit: Optional[int] = None
    ) -> list[GameEvent]:
        """The game's journal, most recent first."""
        game = await self._get_game_or_404(game_id)
        return get_history(game, limit)

    async def get_pending_requests(
        self, game_id: str, actor_id: str
    ) -> list[LedgerRequest]:
        """Pending buy-in and cash-out requests, oldest first. Host only."""
        game = await self._get_game_or_404(game_id)
        if not game.is_host(actor_id):
            raise LedgerError(ErrorKind.UNAUTHORIZED)
        return game.pending_requests

    async def get_invites(self, game_id: str, actor_id: str) -> list[GameInvite]:
        """Every invite of the game, newest first. Host only."""
        game = await self._get_game_or_404(game_id)
        if not game.is_host(actor_id):
            raise LedgerError(ErrorKind.UNAUTHORIZED)
        return sorted(game.invites, key=lambda i: i.created_at, reverse=True)

    async def list_pending_invites(self, user_id: str) -> list[dict]:
        """Open invites addressed to the user across ACTIVE games."""
        games = await self._game_dal.list_with_pending_invite(user_id)
        pending = []
        for game in games:
            invite = game.get_pending_invite(user_id)
            if invite is None:
                continue
            pending.append(
                {
                    "game_id": game.id,
                    "game_title": game.title,
                    "host_id": game.creator_id,
                    "host_name": game.creator_name,
                    "invite": invite,
                }
            )
        return pending

    async def get_settlement(self, game_id: str) -> SettlementSummary:
        """Settlement for a game.

        Completed games return their cached transactions; active games
        get a preview computed from the current seats.
        """
        game = await self._get_game_or_404(game_id)
        if (
            game.status == GameStatus.COMPLETED
            and game.settlement_transactions is not None
        ):
            return SettlementSummary(
                **compute_totals(game.players),
                transactions=game.settlement_transactions,
            )
        return summarize_settlement(game.players, self._tolerance)

    async def watch(
        self, game_id: str, after_version: int, timeout: float
    ) -> Game:
        """Return the game once its version exceeds ``after_version``.

        Falls back to the current state after ``timeout`` seconds.
        """
        async with self._watchers.subscribe(game_id) as queue:
            game = await self._get_game_or_404(game_id)
            if game.version > after_version:
                return game
            newer = await self._watchers.wait_for_version(
                queue, after_version, timeout
            )
        return newer or await self._get_game_or_404(game_id)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def add_player(
        self, game_id: str, actor_id: str, user_id: str, display_name: str
    ) -> Game:
        return await self._apply(
            game_id, transitions.add_player, actor_id, user_id, display_name
        )

    async def send_invite(
        self,
        game_id: str,
        actor_id: str,
        user_id: str,
        display_name: str,
        message: Optional[str] = None,
    ) -> Game:
        return await self._apply(
            game_id,
            transitions.send_invite,
            actor_id,
            user_id,
            display_name,
            message,
        )

    async def accept_invite(
        self, game_id: str, actor_id: str, invite_id: str
    ) -> Game:
        """Accept an invite and take a zero-stack seat."""
        return await self._apply(
            game_id, transitions.accept_invite, actor_id, invite_id
        )

    async def decline_invite(
        self, game_id: str, actor_id: str, invite_id: str
    ) -> Game:
        return await self._apply(
            game_id, transitions.decline_invite, actor_id, invite_id
        )

    async def submit_request(
        self,
        game_id: str,
        user_id: str,
        display_name: str,
        kind: RequestKind,
        amount: int,
    ) -> Game:
        """Submit a buy-in/rebuy or cash-out request for the acting user."""
        if kind == RequestKind.BUY_IN:
            return await self.request_buy_in(game_id, user_id, display_name, amount)
        return await self.request_cash_out(game_id, user_id, amount)

    async def resolve_request(
        self,
        game_id: str,
        actor_id: str,
        request_id: str,
        decision: RequestDecision,
    ) -> Game:
        """Apply the host's decision to a pending request of either kind."""
        return await self._apply(
            game_id, transitions.resolve_request, actor_id, request_id, decision
        )

    async def request_buy_in(
        self, game_id: str, user_id: str, display_name: str, amount: int
    ) -> Game:
        return await self._apply(
            game_id, transitions.request_buy_in, user_id, display_name, amount
        )

    async def host_buy_in(self, game_id: str, actor_id: str, amount: int) -> Game:
        return await self._apply(game_id, transitions.host_buy_in, actor_id, amount)

    async def approve_buy_in(
        self, game_id: str, actor_id: str, request_id: str
    ) -> Game:
        return await self._apply(
            game_id, transitions.approve_buy_in, actor_id, request_id
        )

    async def decline_buy_in(
        self, game_id: str, actor_id: str, request_id: str
    ) -> Game:
        return await self._apply(
            game_id, transitions.decline_buy_in, actor_id, request_id
        )

    async def request_cash_out(
        self, game_id: str, user_id: str, amount: int
    ) -> Game:
        return await self._apply(
            game_id, transitions.request_cash_out, user_id, amount
        )

    async def process_cash_out(
        self, game_id: str, actor_id: str, request_id: str
    ) -> Game:
        return await self._apply(
            game_id, transitions.process_cash_out, actor_id, request_id
        )

    async def decline_cash_out(
        self, game_id: str, actor_id: str, request_id: str
    ) -> Game:
        return await self._apply(
            game_id, transitions.decline_cash_out, actor_id, request_id
        )

    async def force_cash_out(
        self, game_id: str, actor_id: str, player_id: str, amount: int
    ) -> Game:
        return await self._apply(
            game_id, transitions.force_cash_out, actor_id, player_id, amount
        )

    async def update_player_values(
        self,
        game_id: str,
        actor_id: str,
        player_id: str,
        new_current_stack: int,
        new_total_buy_in: int,
    ) -> Game:
        return await self._apply(
            game_id,
            transitions.update_player_values,
            actor_id,
            player_id,
            new_current_stack,
            new_total_buy_in,
        )

    async def end_game(self, game_id: str, actor_id: str) -> Game:
        """Complete the game and store its settlement."""
        game = await self._apply(
            game_id, transitions.end_game, actor_id, tolerance=self._tolerance
        )
        logger.info(
            "Game %s completed with %d settlement transaction(s)",
            game_id,
            len(game.settlement_transactions or []),
        )
        return game
