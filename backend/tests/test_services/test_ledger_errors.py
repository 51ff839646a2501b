"""Tests for LedgerError and its HTTP mapping."""

import os
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-unit-tests-only")

from homegame.errors import ERROR_MESSAGES, LedgerError
from homegame.main import ERROR_STATUS
from homegame.models.common import ErrorKind


class TestLedgerError:

    def test_every_kind_has_a_message(self):
        assert set(ERROR_MESSAGES) == set(ErrorKind)

    def test_default_message(self):
        error = LedgerError(ErrorKind.GAME_CLOSED)
        assert error.kind == ErrorKind.GAME_CLOSED
        assert error.message == ERROR_MESSAGES[ErrorKind.GAME_CLOSED]
        assert str(error) == error.message

    def test_custom_message(self):
        error = LedgerError(ErrorKind.NOT_FOUND, "Request not found")
        assert error.message == "Request not found"
        assert "NOT_FOUND" in repr(error)

    def test_status_mapping(self):
        assert ERROR_STATUS[ErrorKind.INVALID_AMOUNT] == 400
        assert ERROR_STATUS[ErrorKind.INVALID_DECISION] == 400
        assert ERROR_STATUS[ErrorKind.UNAUTHORIZED] == 403
        assert ERROR_STATUS[ErrorKind.NOT_FOUND] == 404
        assert ErrorKind.CONFLICT not in ERROR_STATUS
        assert ErrorKind.ALREADY_SEATED not in ERROR_STATUS
