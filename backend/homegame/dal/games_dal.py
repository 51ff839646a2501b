"""Game Data Access Layer -- MongoDB operations for the games collection.

The whole ledger of a game lives in one document. Writes never patch
individual fields: every committed state replaces the complete document,
conditioned on the ``version`` the writer read. All ObjectId handling is
transparent: callers pass/receive strings, the DAL converts as needed.
"""

import logging
from typing import Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from homegame.models.common import GameStatus, InviteStatus
from homegame.models.game import Game

logger = logging.getLogger("homegame.dal.games")

COLLECTION = "games"


class GameDAL:
    """Data access layer for the games collection."""

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._collection = db[COLLECTION]

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create(self, game: Game) -> Game:
        """Insert a new game document and return it with its generated id.

        Args:
            game: A Game model instance (id may be None).

        Returns:
            The Game with its ``id`` populated from the inserted ObjectId.
        """
        doc = game.to_mongo_dict()
        result = await self._collection.insert_one(doc)
        game.id = str(result.inserted_id)
        logger.info("Created game %s for host %s", game.id, game.creator_id)
        return game

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def get_by_id(self, game_id: str) -> Optional[Game]:
        """Find a game by its MongoDB ``_id``.

        Args:
            game_id: String representation of the ObjectId.

        Returns:
            A Game instance, or None if not found.
        """
        if not ObjectId.is_valid(game_id):
            return None
        doc = await self._collection.find_one({"_id": ObjectId(game_id)})
        if doc is None:
            return None
        doc["_id"] = str(doc["_id"])
        return Game(**doc)

    async def list_active_for_user(
        self,
        user_id: str,
        limit: int = 50,
    ) -> list[Game]:
        """List ACTIVE games the user hosts or is seated in, newest first.

        Args:
            user_id: The user's id from the identity provider.
            limit: Maximum number of results (default 50).

        Returns:
            A list of Game instances.
        """
        cursor = (
            self._collection.find(
                {
                    "status": str(GameStatus.ACTIVE),
                    "$or": [
                        {"creator_id": user_id},
                        {"players.user_id": user_id},
                    ],
                }
            )
            .sort("created_at", -1)
            .limit(limit)
        )
        games: list[Game] = []
        async for doc in cursor:
            doc["_id"] = str(doc["_id"])
            games.append(Game(**doc))
        return games

    async def list_with_pending_invite(
        self,
        user_id: str,
        limit: int = 50,
    ) -> list[Game]:
        """List ACTIVE games holding a PENDING invite for the user, newest first."""
        cursor = (
            self._collection.find(
                {
                    "status": str(GameStatus.ACTIVE),
                    "invites": {
                        "$elemMatch": {
                            "invited_user_id": user_id,
                            "status": str(InviteStatus.PENDING),
                        }
                    },
                }
            )
            .sort("created_at", -1)
            .limit(limit)
        )
        games: list[Game] = []
        async for doc in cursor:
            doc["_id"] = str(doc["_id"])
            games.append(Game(**doc))
        return games

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    async def replace_if_version(
        self, game: Game, expected_version: int
    ) -> bool:
        """Replace the stored game only if it is still at ``expected_version``.

        Args:
            game: The complete next state (``game.version`` already bumped).
            expected_version: The version the caller read.

        Returns:
            True if the document was replaced, False if it was missing or
            another writer committed first.
        """
        if game.id is None or not ObjectId.is_valid(game.id):
            return False

        doc = game.to_mongo_dict()
        doc.pop("_id", None)
        result = await self._collection.replace_one(
            {"_id": ObjectId(game.id), "version": expected_version},
            doc,
        )
        if result.matched_count == 0:
            logger.debug(
                "Conditional replace missed for game %s at version %d",
                game.id,
                expected_version,
            )
            return False
        return True
