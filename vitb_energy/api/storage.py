# vitb_energy/api/storage.py

from datetime import date, datetime
import logging
import os

import aiofiles
import aiofiles.os
from fastapi import APIRouter, HTTPException
from fastapi.responses import PlainTextResponse

from vitb_energy.core.config import settings
from vitb_energy.core.errors import PersistError
from vitb_energy.models.energy_data import EnergyRecord
from vitb_energy.services import energy_store
from vitb_energy.services.file_logger import FILE_PREFIX, FILE_SUFFIX, daily_file_path

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/files")
async def list_daily_files():
    """Daily flat files available in DATA_DIR, oldest first."""
    data_dir = settings.DATA_DIR
    if not await aiofiles.os.path.isdir(data_dir):
        return {"count": 0, "files": []}

    files = []
    for name in sorted(await aiofiles.os.listdir(data_dir)):
        if not (name.startswith(FILE_PREFIX) and name.endswith(FILE_SUFFIX)):
            continue
        path = os.path.join(data_dir, name)
        files.append({
            "name": name,
            "day": name[len(FILE_PREFIX):-len(FILE_SUFFIX)],
            "size_bytes": await aiofiles.os.path.getsize(path),
        })
    return {"count": len(files), "files": files}


@router.get("/files/{day}", response_class=PlainTextResponse)
async def get_daily_file(day: str):
    try:
        parsed = date.fromisoformat(day)
    except ValueError:
        raise HTTPException(status_code=400, detail="day must be YYYY-MM-DD")

    file_path = daily_file_path(parsed)
    if not await aiofiles.os.path.isfile(file_path):
        raise HTTPException(status_code=404, detail=f"No data file for {day}")

    async with aiofiles.open(file_path, "r", encoding="utf-8") as f:
        return await f.read()


@router.post("/energydata", status_code=201)
async def store_energy_data(record: EnergyRecord):
    """Store an energy record supplied by a client."""
    try:
        inserted_id = await energy_store.insert_record(record)
    except PersistError as e:
        logger.error(f"Failed to store energy data: {e}")
        raise HTTPException(status_code=503, detail="Database error")
    return {"id": str(inserted_id), "timestamp": record.timestamp.isoformat()}


@router.delete("/energydata")
async def delete_energy_data(start: datetime, end: datetime):
    if end <= start:
        raise HTTPException(status_code=400, detail="end must be after start")
    try:
        deleted = await energy_store.delete_between(start, end)
    except PersistError as e:
        logger.error(f"Failed to delete energy data: {e}")
        raise HTTPException(status_code=503, detail="Database error")
    return {"deleted": deleted}
