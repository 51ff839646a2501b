"""Data Access Layer -- MongoDB repository classes and connection management."""

from homegame.dal.database import (
    connect_to_mongo,
    close_mongo_connection,
    ensure_indexes,
    get_database,
)
from homegame.dal.games_dal import GameDAL

__all__ = [
    # Connection management
    "connect_to_mongo",
    "close_mongo_connection",
    "ensure_indexes",
    "get_database",
    # DAL classes
    "GameDAL",
]
