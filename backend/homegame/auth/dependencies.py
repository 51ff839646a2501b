"""FastAPI dependency-injection callables for resolving the acting user.

Authentication itself belongs to the external identity provider; these
callables only verify its token and hand the identity to the routes,
which pass it explicitly into every ledger operation.
"""

import logging
from typing import Any

from fastapi import Header, HTTPException, status
from jose import ExpiredSignatureError, JWTError

from homegame.auth.jwt import decode_token

logger = logging.getLogger("homegame.auth.dependencies")


async def get_current_user(
    authorization: str | None = Header(None),
) -> dict[str, Any]:
    """Validate an identity JWT from the Authorization header.

    Returns:
        A dict ``{"user_id": ..., "display_name": ...}``. The display
        name falls back to the user id when the token has no ``name``.

    Raises:
        HTTPException 401: Missing, expired or invalid token, or no ``sub``.
    """
    if authorization is None or not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid Authorization header",
        )

    token = authorization[len("Bearer "):]

    try:
        payload = decode_token(token)
    except ExpiredSignatureError:
        logger.warning("Expired identity token presented")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
        )
    except JWTError:
        logger.warning("Invalid identity token presented")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        )

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has no subject",
        )

    return {
        "user_id": user_id,
        "display_name": payload.get("name") or user_id,
    }
