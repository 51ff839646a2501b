"""
Home game ledger FastAPI application entry point.

Configures FastAPI, sets up middleware, registers routes, maps ledger
errors to HTTP responses and manages the MongoDB connection lifecycle.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from homegame.config import settings
from homegame.dal.database import connect_to_mongo, close_mongo_connection, ensure_indexes, get_database
from homegame.errors import LedgerError
from homegame.models.common import ErrorKind
from homegame.routes.health import router as health_router
from homegame.routes.games import router as games_router
from homegame.routes.invites import router as invites_router
from homegame.routes.requests import router as requests_router
from homegame.routes.settlement import router as settlement_router

logger = logging.getLogger("homegame.app")

# HTTP status per ledger error; anything unlisted is a 409.
ERROR_STATUS: dict[ErrorKind, int] = {
    ErrorKind.INVALID_AMOUNT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_DECISION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.UNAUTHORIZED: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.
    Handles startup and shutdown events for MongoDB connection.
    """
    try:
        await connect_to_mongo()
        db = get_database()
        await ensure_indexes(db)
        logger.info("Home game ledger v%s started with database connection", settings.APP_VERSION)
    except Exception as e:
        # Start anyway so health checks can report the database as down
        logger.warning(
            "Failed to connect to MongoDB during startup: %s. "
            "Application will start but database operations will fail until connection is established.",
            str(e)
        )
        logger.info("Home game ledger v%s started WITHOUT database connection", settings.APP_VERSION)

    yield

    await close_mongo_connection()
    logger.info("Home game ledger shutdown complete")


# Initialize FastAPI application
app = FastAPI(
    title="Home Game Ledger API",
    description="Buy-ins, cash-outs and settlement for home poker games",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    expose_headers=["X-Request-ID"],
    max_age=600,
)


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    """Render a rejected ledger operation as ``{"detail", "error"}``."""
    status_code = ERROR_STATUS.get(exc.kind, status.HTTP_409_CONFLICT)
    if exc.kind == ErrorKind.CONFLICT:
        logger.warning("%s %s gave up on version conflicts", request.method, request.url.path)
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "error": str(exc.kind)},
    )


# Register routers
app.include_router(health_router)  # Health endpoint at root level
app.include_router(health_router, prefix="/api")
app.include_router(games_router, prefix="/api")
app.include_router(invites_router, prefix="/api")
app.include_router(requests_router, prefix="/api")
app.include_router(settlement_router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint - API information."""
    return {
        "name": "Home Game Ledger API",
        "version": settings.APP_VERSION,
        "status": "operational",
        "docs": "/docs",
        "health": "/health",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "homegame.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info",
    )
