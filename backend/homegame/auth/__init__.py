"""Identity token verification."""

from homegame.auth.jwt import decode_token
from homegame.auth.dependencies import get_current_user

__all__ = [
    "decode_token",
    "get_current_user",
]
