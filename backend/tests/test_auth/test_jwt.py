"""Tests for identity token verification and the current-user dependency."""

import os
from datetime import datetime, timedelta, timezone

import pytest
from fastapi import HTTPException
from jose import ExpiredSignatureError, JWTError, jwt

# Ensure test env var is set before app imports
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-unit-tests-only")

from homegame.auth.dependencies import get_current_user
from homegame.auth.jwt import ALGORITHM, decode_token
from homegame.config import settings


def _issue(claims: dict, expires_in: timedelta = timedelta(hours=1)) -> str:
    """Sign a token the way the identity provider does."""
    payload = {**claims, "exp": datetime.now(timezone.utc) + expires_in}
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=ALGORITHM)


class TestDecodeToken:

    def test_returns_claims(self):
        payload = decode_token(_issue({"sub": "u1", "name": "Uri"}))
        assert payload["sub"] == "u1"
        assert payload["name"] == "Uri"

    def test_wrong_secret(self):
        token = jwt.encode({"sub": "u1"}, "some-other-secret", algorithm=ALGORITHM)
        with pytest.raises(JWTError):
            decode_token(token)

    def test_garbage(self):
        with pytest.raises(JWTError):
            decode_token("not.a.jwt")

    def test_expired(self):
        with pytest.raises(ExpiredSignatureError):
            decode_token(_issue({"sub": "u1"}, timedelta(seconds=-10)))

    def test_missing_subject(self):
        with pytest.raises(JWTError):
            decode_token(_issue({"name": "Nobody"}))


class TestGetCurrentUser:

    @pytest.mark.asyncio
    async def test_valid_token(self):
        token = _issue({"sub": "u1", "name": "Uri"})
        user = await get_current_user(authorization=f"Bearer {token}")
        assert user == {"user_id": "u1", "display_name": "Uri"}

    @pytest.mark.asyncio
    async def test_name_falls_back_to_user_id(self):
        token = _issue({"sub": "u1"})
        user = await get_current_user(authorization=f"Bearer {token}")
        assert user["display_name"] == "u1"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("header", [None, "", "Token abc", "Bearer not-a-jwt"])
    async def test_rejects_bad_header(self, header):
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(authorization=header)
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_rejects_expired_token(self):
        token = _issue({"sub": "u1"}, timedelta(seconds=-10))
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(authorization=f"Bearer {token}")
        assert exc_info.value.detail == "Token has expired"

    @pytest.mark.asyncio
    async def test_rejects_token_without_subject(self):
        token = _issue({"name": "Nobody"})
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(authorization=f"Bearer {token}")
        assert exc_info.value.status_code == 401
