# vitb_energy/core/database.py

import logging
from typing import Optional, Any

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from vitb_energy.core.config import settings

logger = logging.getLogger(__name__)

_client: Optional[AsyncIOMotorClient] = None
_db: Optional[AsyncIOMotorDatabase] = None


def _get_db_name_from_uri(uri: str) -> str:
    # mongodb+srv://host/<dbname>?opts -> dbname, else MONGO_DB_NAME
    after_slash = uri.split("://", 1)[-1]
    if "/" in after_slash:
        name = after_slash.split("/", 1)[1].split("?", 1)[0].strip()
        if name:
            return name
    return settings.MONGO_DB_NAME


async def connect_to_mongo() -> AsyncIOMotorDatabase:
    global _client, _db

    if _client is not None and _db is not None:
        return _db

    mongo_url = settings.get_mongo_uri()
    db_name = _get_db_name_from_uri(mongo_url)
    logger.info(f"Connecting to MongoDB (db={db_name})")

    _client = AsyncIOMotorClient(mongo_url, tz_aware=True)
    _db = _client[db_name]

    await _db.command("ping")
    logger.info("Connected to MongoDB")

    return _db


async def close_mongo_connection() -> None:
    global _client, _db
    if _client:
        _client.close()
    _client = None
    _db = None
    logger.info("MongoDB connection closed")


class _DBProxy:
    """Lets callers do: from vitb_energy.core.database import db; await db.energydatas.find_one(...)"""

    def __getattr__(self, item: str) -> Any:
        if _db is None:
            raise RuntimeError("Database not initialized. Call connect_to_mongo() at startup.")
        return getattr(_db, item)


db = _DBProxy()
