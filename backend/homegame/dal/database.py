"""MongoDB database connection management using Motor async driver.

Includes connection lifecycle and index management for the games
collection, which holds one document per game ledger.
"""

import logging
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from homegame.config import settings

logger = logging.getLogger("homegame.dal.database")

# Global database client and database instances
_client: AsyncIOMotorClient | None = None
_database: AsyncIOMotorDatabase | None = None


async def connect_to_mongo() -> None:
    """Establish connection to MongoDB.

    Called during FastAPI application startup.
    """
    global _client, _database

    _client = AsyncIOMotorClient(
        settings.MONGO_URL,
        serverSelectionTimeoutMS=5000  # 5 second timeout
    )
    _database = _client[settings.DATABASE_NAME]

    # Verify connection by pinging the database
    await _client.admin.command("ping")
    logger.info("Connected to MongoDB: %s", settings.DATABASE_NAME)


async def close_mongo_connection() -> None:
    """Close MongoDB connection.

    Called during FastAPI application shutdown.
    """
    global _client

    if _client:
        _client.close()
        logger.info("Closed MongoDB connection")


def get_database() -> AsyncIOMotorDatabase:
    """Get the MongoDB database instance.

    Returns:
        AsyncIOMotorDatabase: The database instance.

    Raises:
        RuntimeError: If database is not initialized.
    """
    if _database is None:
        raise RuntimeError(
            "Database not initialized. Call connect_to_mongo() first."
        )
    return _database


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    """Create the games collection indexes.

    This is idempotent -- MongoDB silently ignores indexes that already exist.

    Args:
        db: The Motor database instance to create indexes on.
    """
    logger.info("Ensuring indexes for the games collection...")

    games = db.games

    # 1. Status filter for listing queries, newest first.
    await games.create_index(
        [("status", ASCENDING), ("created_at", DESCENDING)],
        name="idx_status_created",
    )

    # 2. Games a user hosts.
    await games.create_index(
        [("creator_id", ASCENDING), ("status", ASCENDING)],
        name="idx_creator_status",
    )

    # 3. Games a user is seated in (multikey over embedded players).
    await games.create_index(
        [("players.user_id", ASCENDING), ("status", ASCENDING)],
        name="idx_player_user_status",
    )

    # 4. Open invites addressed to a user.
    await games.create_index(
        [("invites.invited_user_id", ASCENDING), ("invites.status", ASCENDING)],
        name="idx_invite_user_status",
    )

    logger.info("All indexes ensured successfully.")
