# vitb_energy/services/energy_store.py

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from pymongo.errors import PyMongoError

from vitb_energy.core.database import db
from vitb_energy.core.errors import PersistError, QueryError
from vitb_energy.models.energy_data import COLLECTION_NAME, EnergyRecord

logger = logging.getLogger("energy.store")

ERRORS_COLLECTION = "polling_errors"


def get_energy_collection():
    return getattr(db, COLLECTION_NAME)


def get_errors_collection():
    return getattr(db, ERRORS_COLLECTION)


def _range_query(start: Optional[datetime], end: Optional[datetime]) -> Dict[str, Any]:
    ts: Dict[str, Any] = {}
    if start is not None:
        ts["$gte"] = start
    if end is not None:
        ts["$lt"] = end
    return {"timestamp": ts} if ts else {}


async def find_last_between(start: datetime, end: datetime) -> Optional[Dict[str, Any]]:
    """Latest record with start <= timestamp < end."""
    try:
        return await get_energy_collection().find_one(
            _range_query(start, end), sort=[("timestamp", -1)]
        )
    except (PyMongoError, RuntimeError) as e:
        raise QueryError(f"Query for last record in [{start}, {end}) failed: {e}") from e


async def find_first_since(start: datetime) -> Optional[Dict[str, Any]]:
    """Earliest record with timestamp >= start."""
    try:
        return await get_energy_collection().find_one(
            _range_query(start, None), sort=[("timestamp", 1)]
        )
    except (PyMongoError, RuntimeError) as e:
        raise QueryError(f"Query for first record since {start} failed: {e}") from e


async def insert_record(record: EnergyRecord) -> Any:
    try:
        result = await get_energy_collection().insert_one(record.to_document())
    except (PyMongoError, RuntimeError) as e:
        raise PersistError(f"Insert of record at {record.timestamp.isoformat()} failed: {e}") from e
    logger.debug(f"Stored energy record {result.inserted_id}")
    return result.inserted_id


async def list_records(
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    limit: int = 100,
) -> List[Dict[str, Any]]:
    """Records in [start, end), newest first, without Mongo's _id."""
    try:
        cursor = get_energy_collection().find(_range_query(start, end), {"_id": 0})
        return await cursor.sort("timestamp", -1).limit(limit).to_list(length=limit)
    except (PyMongoError, RuntimeError) as e:
        raise QueryError(f"Listing records failed: {e}") from e


async def latest_record() -> Optional[Dict[str, Any]]:
    try:
        return await get_energy_collection().find_one({}, {"_id": 0}, sort=[("timestamp", -1)])
    except (PyMongoError, RuntimeError) as e:
        raise QueryError(f"Query for latest record failed: {e}") from e


async def delete_between(start: datetime, end: datetime) -> int:
    try:
        result = await get_energy_collection().delete_many(_range_query(start, end))
    except (PyMongoError, RuntimeError) as e:
        raise PersistError(f"Delete of records in [{start}, {end}) failed: {e}") from e
    logger.info(f"Deleted {result.deleted_count} record(s) in [{start}, {end})")
    return result.deleted_count


async def log_polling_error(action: str, error: str, timestamp: datetime, **context: Any) -> None:
    """Record a failed scheduled action for later analysis; never raises."""
    try:
        await get_errors_collection().insert_one({
            "action": action,
            "error": error,
            "timestamp": timestamp,
            **context,
        })
        logger.debug(f"Logged {action} error to database")
    except Exception as e:
        logger.error(f"Failed to log {action} error: {e}")
