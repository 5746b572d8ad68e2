# vitb_energy/api/energy_data.py

from datetime import datetime
from typing import Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from vitb_energy.api.deps import get_session
from vitb_energy.core.errors import QueryError
from vitb_energy.models.energy_data import METER_IDS, consumption_field
from vitb_energy.services import energy_store
from vitb_energy.services.energy_poller import force_poll
from vitb_energy.services.session import PollerSession

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/energydata")
async def get_energy_data(
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    limit: int = Query(default=100, ge=1, le=5000),
):
    """
    Stored energy records, newest first.

    Parameters:
    - start: inclusive lower bound on timestamp
    - end: exclusive upper bound on timestamp
    - limit: maximum number of records
    """
    try:
        records = await energy_store.list_records(start, end, limit)
    except QueryError as e:
        logger.error(f"Failed to list energy data: {e}")
        raise HTTPException(status_code=503, detail="Database error")
    return {"count": len(records), "records": records}


@router.get("/energydata/latest")
async def get_latest_energy_data():
    try:
        record = await energy_store.latest_record()
    except QueryError as e:
        logger.error(f"Failed to fetch latest energy data: {e}")
        raise HTTPException(status_code=503, detail="Database error")
    if not record:
        raise HTTPException(status_code=404, detail="No energy data stored yet")
    return record


@router.get("/energydata/consumption")
async def get_consumption(session: PollerSession = Depends(get_session)):
    """Latest per-meter consumption since the baseline."""
    try:
        record = await energy_store.latest_record()
    except QueryError as e:
        logger.error(f"Failed to fetch consumption: {e}")
        raise HTTPException(status_code=503, detail="Database error")
    if not record:
        raise HTTPException(status_code=404, detail="No energy data stored yet")

    return {
        "timestamp": record.get("timestamp"),
        "consumption": {f"meter{m}": record.get(consumption_field(m)) for m in METER_IDS},
        "baseline": session.baseline.model_dump() if session.baseline else None,
    }


@router.get("/status")
async def get_poller_status(session: PollerSession = Depends(get_session)):
    return session.snapshot()


@router.post("/force-poll")
async def trigger_force_poll(session: PollerSession = Depends(get_session)):
    """Manually trigger a poll cycle"""
    return await force_poll(session)
