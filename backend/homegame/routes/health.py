"""Liveness endpoint for load balancers and uptime checks."""

import logging

from fastapi import APIRouter
from pymongo.errors import PyMongoError

from homegame.config import settings
from homegame.dal.database import get_database

logger = logging.getLogger("homegame.routes.health")
router = APIRouter(tags=["Health"])


async def _check_database() -> str:
    """Ping MongoDB; "ok" when it answers, "down" otherwise."""
    try:
        await get_database().command("ping")
    except (RuntimeError, PyMongoError) as exc:
        logger.warning("MongoDB ping failed: %s", exc)
        return "down"
    return "ok"


@router.get("/health")
async def health_check() -> dict:
    """Always 200; a down database only degrades ``status``."""
    database = await _check_database()
    return {
        "status": "healthy" if database == "ok" else "degraded",
        "version": settings.APP_VERSION,
        "checks": {"database": database},
    }
