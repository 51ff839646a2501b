"""Tests for the Player and LedgerRequest embedded models."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from homegame.models.common import PlayerStatus, RequestKind, RequestStatus
from homegame.models.ledger_request import LedgerRequest
from homegame.models.player import Player

T0 = datetime(2024, 3, 1, 20, 0, tzinfo=timezone.utc)


class TestPlayer:

    def test_defaults(self):
        player = Player(user_id="u1", display_name="Uri")
        assert player.current_stack == 0
        assert player.total_buy_in == 0
        assert player.status == PlayerStatus.ACTIVE
        assert player.is_active
        assert player.cashed_out_at is None
        assert len(player.id) == 36

    def test_each_seat_gets_its_own_id(self):
        a = Player(user_id="u1", display_name="Uri")
        b = Player(user_id="u1", display_name="Uri")
        assert a.id != b.id

    def test_cashed_out_requires_timestamp(self):
        with pytest.raises(ValidationError, match="cashed_out_at"):
            Player(user_id="u1", display_name="Uri", status=PlayerStatus.CASHED_OUT)

    def test_cashed_out_with_timestamp(self):
        player = Player(
            user_id="u1",
            display_name="Uri",
            status=PlayerStatus.CASHED_OUT,
            cashed_out_at=T0,
        )
        assert not player.is_active

    def test_net_result(self):
        player = Player(
            user_id="u1", display_name="Uri", current_stack=7500, total_buy_in=10000
        )
        assert player.net_result == -2500

    def test_timestamps_serialize_to_iso(self):
        player = Player(user_id="u1", display_name="Uri", joined_at=T0)
        data = player.model_dump()
        assert data["joined_at"] == T0.isoformat()
        assert data["cashed_out_at"] is None


class TestLedgerRequest:

    def test_defaults_to_pending(self):
        request = LedgerRequest(
            kind=RequestKind.BUY_IN, user_id="u1", display_name="Uri", amount=5000
        )
        assert request.is_pending
        assert request.resolved_at is None
        assert request.resolved_by is None

    def test_negative_amount_rejected(self):
        with pytest.raises(ValidationError):
            LedgerRequest(
                kind=RequestKind.CASH_OUT, user_id="u1", display_name="Uri", amount=-1
            )

    def test_zero_cash_out_allowed(self):
        request = LedgerRequest(
            kind=RequestKind.CASH_OUT, user_id="u1", display_name="Uri", amount=0
        )
        assert request.amount == 0

    @pytest.mark.parametrize(
        "kind,status",
        [
            (RequestKind.BUY_IN, RequestStatus.PROCESSED),
            (RequestKind.CASH_OUT, RequestStatus.APPROVED),
        ],
    )
    def test_terminal_status_must_match_kind(self, kind, status):
        with pytest.raises(ValidationError):
            LedgerRequest(
                kind=kind, user_id="u1", display_name="Uri", amount=100, status=status
            )

    @pytest.mark.parametrize(
        "kind,status",
        [
            (RequestKind.BUY_IN, RequestStatus.APPROVED),
            (RequestKind.BUY_IN, RequestStatus.DECLINED),
            (RequestKind.CASH_OUT, RequestStatus.PROCESSED),
            (RequestKind.CASH_OUT, RequestStatus.DECLINED),
        ],
    )
    def test_valid_terminal_statuses(self, kind, status):
        request = LedgerRequest(
            kind=kind, user_id="u1", display_name="Uri", amount=100, status=status
        )
        assert not request.is_pending
