"""Pure functions for end-of-game settlement.

No database access, no async. All amounts are integer cents. Given the
final seats of a game, produces the peer-to-peer payments that bring
every seat's realized result to ``current_stack - total_buy_in``, using
few transactions and always the same output for the same input.

The transaction count is a heuristic result (triangle elimination
followed by greedy pairing), not a proven minimum.
"""

from itertools import combinations
from typing import Any, Iterable

from homegame.models.common import PlayerStatus
from homegame.models.player import Player
from homegame.models.settlement import SettlementSummary, SettlementTransaction

# Balances at or below one currency unit are treated as settled.
SETTLEMENT_TOLERANCE = 100


def compute_totals(players: Iterable[Player]) -> dict[str, int]:
    """Compute total buy-ins, total cash-outs and the house difference.

    Only CASHED_OUT seats count towards cash-outs; a seat that never
    cashed out contributes 0.

    Returns:
        Dict with total_buy_ins, total_cash_outs and house_difference.
    """
    players = list(players)
    total_buy_ins = sum(p.total_buy_in for p in players)
    total_cash_outs = sum(
        p.current_stack
        for p in players
        if p.status == PlayerStatus.CASHED_OUT
    )
    return {
        "total_buy_ins": total_buy_ins,
        "total_cash_outs": total_cash_outs,
        "house_difference": total_buy_ins - total_cash_outs,
    }


def compute_balances(
    players: Iterable[Player], tolerance: int = SETTLEMENT_TOLERANCE
) -> list[dict[str, Any]]:
    """Net result per seat, keeping only seats outside the tolerance."""
    balances = []
    for player in players:
        balance = player.current_stack - player.total_buy_in
        if abs(balance) > tolerance:
            balances.append(
                {
                    "player_id": player.id,
                    "name": player.display_name,
                    "balance": balance,
                }
            )
    return balances


def redistribute_house_difference(
    balances: list[dict[str, Any]],
    house_difference: int,
    tolerance: int = SETTLEMENT_TOLERANCE,
) -> list[dict[str, Any]]:
    """Spread the house difference across winners in proportion to winnings.

    A positive difference (the house kept money) shrinks each winner's
    balance, a negative one grows it. Shares are floored to whole cents
    and the leftover cents go one per winner in list order, so the
    shares add up to exactly ``abs(house_difference)``.

    Args:
        balances: Output of compute_balances (not modified).
        house_difference: total_buy_ins - total_cash_outs.
        tolerance: Settled threshold in cents.

    Returns:
        A new list of balances with settled entries dropped.
    """
    adjusted = [dict(b) for b in balances]
    if abs(house_difference) <= tolerance:
        return adjusted

    winners = [b for b in adjusted if b["balance"] > tolerance]
    total_winnings = sum(w["balance"] for w in winners)
    if total_winnings <= 0:
        return adjusted

    magnitude = abs(house_difference)
    shares = [w["balance"] * magnitude // total_winnings for w in winners]
    leftover = magnitude - sum(shares)
    for i in range(leftover):
        shares[i % len(winners)] += 1

    direction = -1 if house_difference > 0 else 1
    for winner, share in zip(winners, shares):
        winner["balance"] += direction * share

    return _drop_settled(adjusted, tolerance)


def compute_settlement(
    players: Iterable[Player], tolerance: int = SETTLEMENT_TOLERANCE
) -> list[SettlementTransaction]:
    """Compute the payments that settle a game.

    Args:
        players: Final seats. Never modified.
        tolerance: Settled threshold in cents.

    Returns:
        Ordered SettlementTransactions, numbered from 1. An empty list
        means everyone is already square.
    """
    players = list(players)
    totals = compute_totals(players)
    balances = compute_balances(players, tolerance)
    balances = redistribute_house_difference(
        balances, totals["house_difference"], tolerance
    )
    if not balances:
        return []

    payments: list[dict[str, Any]] = []
    balances = _eliminate_triangles(balances, payments, tolerance)
    _pair_greedily(balances, payments, tolerance)

    return [
        SettlementTransaction(index=index, **payment)
        for index, payment in enumerate(payments, start=1)
    ]


def summarize_settlement(
    players: Iterable[Player], tolerance: int = SETTLEMENT_TOLERANCE
) -> SettlementSummary:
    """Settlement transactions plus the totals they were derived from."""
    players = list(players)
    totals = compute_totals(players)
    return SettlementSummary(
        **totals,
        transactions=compute_settlement(players, tolerance),
    )


# ---------------------------------------------------------------------------
# Internals -- operate on working copies of the balance dicts
# ---------------------------------------------------------------------------

def _drop_settled(
    balances: list[dict[str, Any]], tolerance: int
) -> list[dict[str, Any]]:
    return [b for b in balances if abs(b["balance"]) > tolerance]


def _record_payment(
    payments: list[dict[str, Any]],
    debtor: dict[str, Any],
    creditor: dict[str, Any],
    amount: int,
) -> None:
    payments.append(
        {
            "from_player_id": debtor["player_id"],
            "from_name": debtor["name"],
            "to_player_id": creditor["player_id"],
            "to_name": creditor["name"],
            "amount": amount,
        }
    )


def _try_triangle(
    trio: list[dict[str, Any]],
    payments: list[dict[str, Any]],
    tolerance: int,
) -> bool:
    """Settle one creditor against two debtors in two payments, if possible."""
    creditors = [b for b in trio if b["balance"] > tolerance]
    debtors = [b for b in trio if b["balance"] < -tolerance]
    if len(creditors) != 1 or len(debtors) != 2:
        return False

    creditor = creditors[0]
    first, second = debtors
    credit = creditor["balance"]
    if credit > -(first["balance"] + second["balance"]):
        return False

    first_share = min(credit, -first["balance"])
    second_share = credit - first_share
    if second_share <= 0 or second_share > -second["balance"]:
        return False

    _record_payment(payments, first, creditor, first_share)
    _record_payment(payments, second, creditor, second_share)
    creditor["balance"] = 0
    first["balance"] += first_share
    second["balance"] += second_share
    return True


def _eliminate_triangles(
    balances: list[dict[str, Any]],
    payments: list[dict[str, Any]],
    tolerance: int,
) -> list[dict[str, Any]]:
    """Repeatedly scan triples until none can be settled in two payments."""
    changed = True
    while changed:
        changed = False
        for i, j, k in combinations(range(len(balances)), 3):
            trio = [balances[i], balances[j], balances[k]]
            if _try_triangle(trio, payments, tolerance):
                changed = True
                break
        if changed:
            # The player set changed; restart the scan from the top.
            balances = _drop_settled(balances, tolerance)
    return balances


def _pair_greedily(
    balances: list[dict[str, Any]],
    payments: list[dict[str, Any]],
    tolerance: int,
) -> None:
    """Pair the first creditor with the first debtor until one side runs out."""
    while True:
        creditor = next((b for b in balances if b["balance"] > tolerance), None)
        debtor = next((b for b in balances if b["balance"] < -tolerance), None)
        if creditor is None or debtor is None:
            return

        amount = min(creditor["balance"], -debtor["balance"])
        _record_payment(payments, debtor, creditor, amount)
        creditor["balance"] -= amount
        debtor["balance"] += amount
        balances = _drop_settled(balances, tolerance)
