"""Verification of identity tokens issued upstream.

The ledger never mints tokens. The identity provider signs HS256
tokens with the shared JWT_SECRET; ``sub`` is the stable user id and
``name`` the display name shown in the journal.
"""

from typing import Any

from jose import jwt

from homegame.config import settings

ALGORITHM = "HS256"


def decode_token(token: str) -> dict[str, Any]:
    """Verify the signature and expiry of ``token`` and return its claims.

    A token without ``sub`` is rejected like a bad signature.

    Raises:
        ExpiredSignatureError: The token has expired.
        JWTError: Malformed token, bad signature or missing ``sub``.
    """
    return jwt.decode(
        token,
        settings.JWT_SECRET,
        algorithms=[ALGORITHM],
        options={"require_sub": True},
    )
