"""Pure state-machine transitions for the game ledger.

No database access, no async. Every function takes a Game snapshot,
the acting user's id and the operation's parameters, and returns a new
Game (the input is never modified) or raises LedgerError. Every
mutating transition appends exactly one history event, so LedgerService
can retry a transition freely against a fresh snapshot.

State machines:
    Game:    ACTIVE --end_game--> COMPLETED
    Player:  ACTIVE --process_cash_out / force_cash_out--> CASHED_OUT
    Request: PENDING --approve / process / decline--> terminal
    Invite:  PENDING --accept / decline / end_game--> terminal
"""

from datetime import datetime, timezone
from typing import Iterable, Optional

from homegame.errors import LedgerError
from homegame.models.common import (
    ErrorKind,
    EventKind,
    GameStatus,
    InviteStatus,
    PlayerStatus,
    RequestDecision,
    RequestKind,
    RequestStatus,
)
from homegame.models.game import Game
from homegame.models.game_invite import GameInvite
from homegame.models.ledger_request import LedgerRequest
from homegame.models.player import Player
from homegame.services.event_journal import append_event, format_amount, new_event
from homegame.services.settlement_math import SETTLEMENT_TOLERANCE, compute_settlement


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _now(now: Optional[datetime]) -> datetime:
    return now or datetime.now(timezone.utc)


def _require_active(game: Game) -> None:
    if game.status != GameStatus.ACTIVE:
        raise LedgerError(ErrorKind.GAME_CLOSED)


def _require_host(game: Game, actor_id: str) -> None:
    if not game.is_host(actor_id):
        raise LedgerError(ErrorKind.UNAUTHORIZED)


def _require_pending_request(
    game: Game, request_id: str, kind: RequestKind
) -> LedgerRequest:
    """Find a request of ``kind`` in the (copied) game and check it is PENDING."""
    for request in game.requests_of_kind(kind):
        if request.id == request_id:
            if not request.is_pending:
                raise LedgerError(
                    ErrorKind.ALREADY_RESOLVED,
                    f"Request already resolved (status: {request.status})",
                )
            return request
    raise LedgerError(ErrorKind.NOT_FOUND, "Request not found")


def _resolve(
    request: LedgerRequest,
    new_status: RequestStatus,
    actor_id: str,
    now: datetime,
) -> None:
    request.status = new_status
    request.resolved_at = now
    request.resolved_by = actor_id


def _credit_seat(
    game: Game, user_id: str, display_name: str, amount: int, now: datetime
) -> Player:
    """Add a buy-in to the user's ACTIVE seat, opening a new seat if needed."""
    player = game.get_active_player_for_user(user_id)
    if player is None:
        player = Player(
            user_id=user_id,
            display_name=display_name,
            current_stack=amount,
            total_buy_in=amount,
            joined_at=now,
        )
        game.players.append(player)
    else:
        player.current_stack += amount
        player.total_buy_in += amount
    return player


def _seat(game: Game, user_id: str, display_name: str, now: datetime) -> None:
    """Give the user a zero-stack seat unless they already hold an ACTIVE one."""
    if game.get_active_player_for_user(user_id) is None:
        game.players.append(
            Player(user_id=user_id, display_name=display_name, joined_at=now)
        )
    _record(
        game, EventKind.PLAYER_JOINED, user_id, display_name,
        f"{display_name} joined the game", now,
    )


def _require_pending_invite(
    game: Game, invite_id: str, actor_id: str
) -> GameInvite:
    invite = game.get_invite(invite_id)
    if invite is None:
        raise LedgerError(ErrorKind.NOT_FOUND, "Invite not found")
    if invite.invited_user_id != actor_id:
        raise LedgerError(
            ErrorKind.UNAUTHORIZED, "Only the invited user can answer this invite"
        )
    if not invite.is_pending:
        raise LedgerError(
            ErrorKind.ALREADY_RESOLVED,
            f"Invite already answered (status: {invite.status})",
        )
    return invite


def _cash_out_seat(player: Player, amount: int, now: datetime) -> None:
    player.current_stack = amount
    player.status = PlayerStatus.CASHED_OUT
    player.cashed_out_at = now


def _record(
    game: Game,
    kind: EventKind,
    user_id: str,
    user_name: str,
    description: str,
    now: datetime,
    amount: Optional[int] = None,
) -> None:
    event = new_event(kind, user_id, user_name, description, amount, now)
    game.history = append_event(game.history, event)


# ---------------------------------------------------------------------------
# Game creation and seating
# ---------------------------------------------------------------------------

def create_game(
    creator_id: str,
    creator_name: str,
    title: str = "",
    small_blind: Optional[int] = None,
    big_blind: Optional[int] = None,
    initial_players: Iterable[tuple[str, str]] = (),
    now: Optional[datetime] = None,
) -> Game:
    """Build a new ACTIVE game.

    Args:
        creator_id: The host's user id.
        creator_name: The host's display name.
        title: Free-text title.
        small_blind: Optional stakes metadata in cents.
        big_blind: Optional stakes metadata in cents.
        initial_players: (user_id, display_name) pairs seated with
            zero stacks.

    Raises:
        LedgerError INVALID_AMOUNT: Negative blinds.
    """
    now = _now(now)
    for blind in (small_blind, big_blind):
        if blind is not None and blind < 0:
            raise LedgerError(ErrorKind.INVALID_AMOUNT, "Blinds cannot be negative")

    game = Game(
        title=title,
        creator_id=creator_id,
        creator_name=creator_name,
        small_blind=small_blind,
        big_blind=big_blind,
        created_at=now,
    )
    seen: set[str] = set()
    for user_id, display_name in initial_players:
        if user_id in seen:
            continue
        seen.add(user_id)
        game.players.append(
            Player(user_id=user_id, display_name=display_name, joined_at=now)
        )

    label = title or "home game"
    _record(
        game, EventKind.CREATED, creator_id, creator_name,
        f"Game created: {label}", now,
    )
    return game


def add_player(
    game: Game,
    actor_id: str,
    user_id: str,
    display_name: str,
    now: Optional[datetime] = None,
) -> Game:
    """Seat a user with a zero stack.

    The host may seat anyone; any user may seat themself. Seating a user
    who already has an ACTIVE seat returns ``game`` itself unchanged.

    Raises:
        LedgerError GAME_CLOSED / UNAUTHORIZED.
    """
    _require_active(game)
    if actor_id != user_id:
        _require_host(game, actor_id)
    if game.get_active_player_for_user(user_id) is not None:
        return game

    now = _now(now)
    updated = game.model_copy(deep=True)
    _seat(updated, user_id, display_name, now)
    return updated


# ---------------------------------------------------------------------------
# Invites
# ---------------------------------------------------------------------------

def send_invite(
    game: Game,
    actor_id: str,
    user_id: str,
    display_name: str,
    message: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Game:
    """Host invites a user who has never been seated in this game.

    At most one PENDING invite exists per user; declined or expired
    invites do not block a new one.

    Raises:
        LedgerError GAME_CLOSED / UNAUTHORIZED / ALREADY_SEATED /
        ALREADY_PENDING.
    """
    _require_active(game)
    _require_host(game, actor_id)
    if any(p.user_id == user_id for p in game.players):
        raise LedgerError(ErrorKind.ALREADY_SEATED)
    if game.get_pending_invite(user_id) is not None:
        raise LedgerError(
            ErrorKind.ALREADY_PENDING, "User already has a pending invite"
        )

    now = _now(now)
    updated = game.model_copy(deep=True)
    updated.invites.append(
        GameInvite(
            invited_user_id=user_id,
            invited_display_name=display_name,
            invited_by=actor_id,
            message=message,
            created_at=now,
        )
    )
    _record(
        updated, EventKind.PLAYER_INVITED, user_id, display_name,
        f"{updated.creator_name} invited {display_name}", now,
    )
    return updated


def accept_invite(
    game: Game,
    actor_id: str,
    invite_id: str,
    now: Optional[datetime] = None,
) -> Game:
    """Invitee accepts and is seated with a zero stack, like add_player.

    Raises:
        LedgerError GAME_CLOSED / NOT_FOUND / UNAUTHORIZED / ALREADY_RESOLVED.
    """
    _require_active(game)

    now = _now(now)
    updated = game.model_copy(deep=True)
    invite = _require_pending_invite(updated, invite_id, actor_id)
    invite.status = InviteStatus.ACCEPTED
    invite.responded_at = now
    _seat(updated, invite.invited_user_id, invite.invited_display_name, now)
    return updated


def decline_invite(
    game: Game,
    actor_id: str,
    invite_id: str,
    now: Optional[datetime] = None,
) -> Game:
    """Invitee turns the invite down. No seat changes.

    Raises:
        LedgerError GAME_CLOSED / NOT_FOUND / UNAUTHORIZED / ALREADY_RESOLVED.
    """
    _require_active(game)

    now = _now(now)
    updated = game.model_copy(deep=True)
    invite = _require_pending_invite(updated, invite_id, actor_id)
    invite.status = InviteStatus.DECLINED
    invite.responded_at = now
    _record(
        updated, EventKind.PLAYER_INVITED,
        invite.invited_user_id, invite.invited_display_name,
        f"{invite.invited_display_name} declined the invite", now,
    )
    return updated


# ---------------------------------------------------------------------------
# Buy-ins
# ---------------------------------------------------------------------------

def request_buy_in(
    game: Game,
    user_id: str,
    display_name: str,
    amount: int,
    now: Optional[datetime] = None,
) -> Game:
    """Append a PENDING buy-in (or rebuy) request. Seats are untouched.

    Raises:
        LedgerError GAME_CLOSED / INVALID_AMOUNT / ALREADY_PENDING.
    """
    _require_active(game)
    if amount <= 0:
        raise LedgerError(ErrorKind.INVALID_AMOUNT)
    if game.get_pending_request(user_id, RequestKind.BUY_IN) is not None:
        raise LedgerError(
            ErrorKind.ALREADY_PENDING,
            "You already have a pending buy-in request",
        )

    now = _now(now)
    updated = game.model_copy(deep=True)
    updated.buy_in_requests.append(
        LedgerRequest(
            kind=RequestKind.BUY_IN,
            user_id=user_id,
            display_name=display_name,
            amount=amount,
            requested_at=now,
        )
    )
    _record(
        updated, EventKind.BUY_IN, user_id, display_name,
        f"{display_name} requested buy-in of {format_amount(amount)}",
        now, amount,
    )
    return updated


def host_buy_in(
    game: Game,
    actor_id: str,
    amount: int,
    now: Optional[datetime] = None,
) -> Game:
    """Buy the host in directly, skipping the approval step.

    Raises:
        LedgerError GAME_CLOSED / UNAUTHORIZED / INVALID_AMOUNT.
    """
    _require_active(game)
    _require_host(game, actor_id)
    if amount <= 0:
        raise LedgerError(ErrorKind.INVALID_AMOUNT)

    now = _now(now)
    updated = game.model_copy(deep=True)
    player = _credit_seat(updated, actor_id, updated.creator_name, amount, now)
    _record(
        updated, EventKind.BUY_IN, actor_id, player.display_name,
        f"{player.display_name} (host) bought in for {format_amount(amount)}",
        now, amount,
    )
    return updated


def approve_buy_in(
    game: Game,
    actor_id: str,
    request_id: str,
    now: Optional[datetime] = None,
) -> Game:
    """Approve a pending buy-in and credit the requesting user's seat.

    Raises:
        LedgerError GAME_CLOSED / UNAUTHORIZED / NOT_FOUND / ALREADY_RESOLVED.
    """
    _require_active(game)
    _require_host(game, actor_id)

    now = _now(now)
    updated = game.model_copy(deep=True)
    request = _require_pending_request(updated, request_id, RequestKind.BUY_IN)
    _resolve(request, RequestStatus.APPROVED, actor_id, now)
    _credit_seat(updated, request.user_id, request.display_name, request.amount, now)
    _record(
        updated, EventKind.BUY_IN, request.user_id, request.display_name,
        f"{request.display_name} bought in for {format_amount(request.amount)}",
        now, request.amount,
    )
    return updated


def decline_buy_in(
    game: Game,
    actor_id: str,
    request_id: str,
    now: Optional[datetime] = None,
) -> Game:
    """Decline a pending buy-in. No seat changes.

    Raises:
        LedgerError GAME_CLOSED / UNAUTHORIZED / NOT_FOUND / ALREADY_RESOLVED.
    """
    _require_active(game)
    _require_host(game, actor_id)

    now = _now(now)
    updated = game.model_copy(deep=True)
    request = _require_pending_request(updated, request_id, RequestKind.BUY_IN)
    _resolve(request, RequestStatus.DECLINED, actor_id, now)
    _record(
        updated, EventKind.BUY_IN, request.user_id, request.display_name,
        f"{request.display_name}'s buy-in request of "
        f"{format_amount(request.amount)} was declined",
        now, request.amount,
    )
    return updated


# ---------------------------------------------------------------------------
# Cash-outs
# ---------------------------------------------------------------------------

def request_cash_out(
    game: Game,
    user_id: str,
    amount: int,
    now: Optional[datetime] = None,
) -> Game:
    """Append a PENDING cash-out request for the user's ACTIVE seat.

    ``amount`` may be 0 for a player who lost their whole stack.

    Raises:
        LedgerError GAME_CLOSED / INVALID_AMOUNT / NOT_FOUND / ALREADY_PENDING.
    """
    _require_active(game)
    if amount < 0:
        raise LedgerError(
            ErrorKind.INVALID_AMOUNT, "Cash-out amount cannot be negative"
        )
    player = game.get_active_player_for_user(user_id)
    if player is None:
        raise LedgerError(ErrorKind.NOT_FOUND, "Player not found in this game")
    if game.get_pending_request(user_id, RequestKind.CASH_OUT) is not None:
        raise LedgerError(
            ErrorKind.ALREADY_PENDING,
            "You already have a pending cash-out request",
        )

    now = _now(now)
    updated = game.model_copy(deep=True)
    updated.cash_out_requests.append(
        LedgerRequest(
            kind=RequestKind.CASH_OUT,
            user_id=user_id,
            display_name=player.display_name,
            amount=amount,
            requested_at=now,
        )
    )
    _record(
        updated, EventKind.CASH_OUT, user_id, player.display_name,
        f"{player.display_name} requested cash-out of {format_amount(amount)}",
        now, amount,
    )
    return updated


def process_cash_out(
    game: Game,
    actor_id: str,
    request_id: str,
    now: Optional[datetime] = None,
) -> Game:
    """Confirm a cash-out: freeze the seat at the requested amount.

    Raises:
        LedgerError GAME_CLOSED / UNAUTHORIZED / NOT_FOUND / ALREADY_RESOLVED.
    """
    _require_active(game)
    _require_host(game, actor_id)

    now = _now(now)
    updated = game.model_copy(deep=True)
    request = _require_pending_request(updated, request_id, RequestKind.CASH_OUT)
    player = updated.get_active_player_for_user(request.user_id)
    if player is None:
        raise LedgerError(
            ErrorKind.NOT_FOUND, "Player is no longer active in this game"
        )

    _resolve(request, RequestStatus.PROCESSED, actor_id, now)
    _cash_out_seat(player, request.amount, now)
    _record(
        updated, EventKind.CASH_OUT, request.user_id, request.display_name,
        f"{request.display_name} cashed out {format_amount(request.amount)}",
        now, request.amount,
    )
    return updated


def decline_cash_out(
    game: Game,
    actor_id: str,
    request_id: str,
    now: Optional[datetime] = None,
) -> Game:
    """Decline a pending cash-out; the seat stays ACTIVE.

    Raises:
        LedgerError GAME_CLOSED / UNAUTHORIZED / NOT_FOUND / ALREADY_RESOLVED.
    """
    _require_active(game)
    _require_host(game, actor_id)

    now = _now(now)
    updated = game.model_copy(deep=True)
    request = _require_pending_request(updated, request_id, RequestKind.CASH_OUT)
    _resolve(request, RequestStatus.DECLINED, actor_id, now)
    _record(
        updated, EventKind.CASH_OUT, request.user_id, request.display_name,
        f"{request.display_name}'s cash-out request of "
        f"{format_amount(request.amount)} was declined",
        now, request.amount,
    )
    return updated


def force_cash_out(
    game: Game,
    actor_id: str,
    player_id: str,
    amount: int,
    now: Optional[datetime] = None,
) -> Game:
    """Host cashes a seat out directly, e.g. a player who left without asking.

    Any pending cash-out request from the same user is declined in the
    same step.

    Raises:
        LedgerError GAME_CLOSED / UNAUTHORIZED / INVALID_AMOUNT / NOT_FOUND.
    """
    _require_active(game)
    _require_host(game, actor_id)
    if amount < 0:
        raise LedgerError(
            ErrorKind.INVALID_AMOUNT, "Cash-out amount cannot be negative"
        )

    now = _now(now)
    updated = game.model_copy(deep=True)
    player = updated.get_player(player_id)
    if player is None or not player.is_active:
        raise LedgerError(ErrorKind.NOT_FOUND, "Active player not found")

    pending = updated.get_pending_request(player.user_id, RequestKind.CASH_OUT)
    if pending is not None:
        _resolve(pending, RequestStatus.DECLINED, actor_id, now)

    _cash_out_seat(player, amount, now)
    _record(
        updated, EventKind.CASH_OUT, player.user_id, player.display_name,
        f"{player.display_name} cashed out {format_amount(amount)} (by host)",
        now, amount,
    )
    return updated


def resolve_request(
    game: Game,
    actor_id: str,
    request_id: str,
    decision: RequestDecision,
    now: Optional[datetime] = None,
) -> Game:
    """Apply a host decision to a request of either kind.

    APPROVE accepts a buy-in, PROCESS accepts a cash-out and DECLINE
    rejects either kind. Any other pairing is refused.

    Raises:
        LedgerError GAME_CLOSED / UNAUTHORIZED / NOT_FOUND /
        INVALID_DECISION / ALREADY_RESOLVED.
    """
    _require_active(game)
    _require_host(game, actor_id)
    request = game.get_request(request_id)
    if request is None:
        raise LedgerError(ErrorKind.NOT_FOUND, "Request not found")

    if request.kind == RequestKind.BUY_IN:
        handlers = {
            RequestDecision.APPROVE: approve_buy_in,
            RequestDecision.DECLINE: decline_buy_in,
        }
    else:
        handlers = {
            RequestDecision.PROCESS: process_cash_out,
            RequestDecision.DECLINE: decline_cash_out,
        }
    handler = handlers.get(decision)
    if handler is None:
        raise LedgerError(
            ErrorKind.INVALID_DECISION,
            f"{decision} does not apply to a {request.kind} request",
        )
    return handler(game, actor_id, request_id, now=now)


# ---------------------------------------------------------------------------
# Host corrections
# ---------------------------------------------------------------------------

def update_player_values(
    game: Game,
    actor_id: str,
    player_id: str,
    new_current_stack: int,
    new_total_buy_in: int,
    now: Optional[datetime] = None,
) -> Game:
    """Overwrite a seat's stack and buy-in total.

    Raises:
        LedgerError GAME_CLOSED / UNAUTHORIZED / INVALID_AMOUNT / NOT_FOUND.
    """
    _require_active(game)
    _require_host(game, actor_id)
    if new_current_stack < 0 or new_total_buy_in < 0:
        raise LedgerError(
            ErrorKind.INVALID_AMOUNT, "Stack and buy-in cannot be negative"
        )

    now = _now(now)
    updated = game.model_copy(deep=True)
    player = updated.get_player(player_id)
    if player is None:
        raise LedgerError(ErrorKind.NOT_FOUND, "Player not found in this game")

    old_stack, old_buy_in = player.current_stack, player.total_buy_in
    player.current_stack = new_current_stack
    player.total_buy_in = new_total_buy_in
    _record(
        updated, EventKind.PLAYER_UPDATED, player.user_id, player.display_name,
        f"{player.display_name}'s values updated: "
        f"stack {format_amount(old_stack)} -> {format_amount(new_current_stack)}, "
        f"buy-in {format_amount(old_buy_in)} -> {format_amount(new_total_buy_in)}",
        now,
    )
    return updated


# ---------------------------------------------------------------------------
# Ending the game
# ---------------------------------------------------------------------------

def end_game(
    game: Game,
    actor_id: str,
    tolerance: int = SETTLEMENT_TOLERANCE,
    now: Optional[datetime] = None,
) -> Game:
    """Complete the game and cache its settlement.

    Every seat must already be CASHED_OUT; pending buy-in requests are
    declined and pending invites expire.

    Raises:
        LedgerError GAME_CLOSED / UNAUTHORIZED / PLAYERS_STILL_ACTIVE.
    """
    _require_active(game)
    _require_host(game, actor_id)
    still_active = game.active_players
    if still_active:
        names = ", ".join(p.display_name for p in still_active)
        raise LedgerError(
            ErrorKind.PLAYERS_STILL_ACTIVE,
            f"Cash out every active player before ending the game: {names}",
        )

    now = _now(now)
    updated = game.model_copy(deep=True)
    for request in updated.buy_in_requests:
        if request.is_pending:
            _resolve(request, RequestStatus.DECLINED, actor_id, now)
    for invite in updated.invites:
        if invite.is_pending:
            invite.status = InviteStatus.EXPIRED
            invite.responded_at = now

    updated.status = GameStatus.COMPLETED
    updated.completed_at = now
    updated.settlement_transactions = compute_settlement(updated.players, tolerance)

    label = updated.title or "home game"
    _record(
        updated, EventKind.ENDED, actor_id, updated.creator_name,
        f"Game ended: {label}", now,
    )
    return updated
