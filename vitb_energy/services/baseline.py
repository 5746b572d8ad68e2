# vitb_energy/services/baseline.py

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from pydantic import ValidationError

from vitb_energy.core.errors import EnergyLoggerError, QueryError
from vitb_energy.core.timeutils import day_boundaries, utc_now
from vitb_energy.models.energy_data import Baseline
from vitb_energy.services import energy_store
from vitb_energy.services.session import PollerSession

logger = logging.getLogger("energy.baseline")


async def select_baseline(now: Optional[datetime] = None):
    """
    Pick the reference record for today's consumption.

    Returns (baseline, source) with source "previous_day" or "today_first",
    or (None, None) when nothing is stored for yesterday or today.
    """
    yesterday, today = day_boundaries(now)

    previous = await energy_store.find_last_between(yesterday, today)
    if previous is not None:
        return _from_document(previous), "previous_day"

    logger.info("No data found for the previous day. Fetching today's first record.")
    first_today = await energy_store.find_first_since(today)
    if first_today is not None:
        return _from_document(first_today), "today_first"

    return None, None


def _from_document(doc) -> Baseline:
    try:
        return Baseline.from_document(doc)
    except ValidationError as e:
        raise QueryError(f"Stored record at {doc.get('timestamp')} has no usable energy counters") from e


async def refresh_baseline(session: PollerSession, now: Optional[datetime] = None) -> Optional[Baseline]:
    """
    Re-derive the session baseline from stored records.

    Never raises: on a database failure the previous baseline is kept.
    """
    logger.info("Initializing initial energy value...")
    try:
        async with session.lock:
            baseline, source = await select_baseline(now)
            if baseline is None:
                logger.info("No data found for today yet.")
                return session.baseline
            session.baseline = baseline
            session.status["baseline_source"] = source
            session.status["last_baseline_refresh"] = (now or utc_now()).isoformat()
    except EnergyLoggerError as e:
        logger.error(f"Error initializing initial energy value: {e}")
        await energy_store.log_polling_error("refresh_baseline", str(e), now or utc_now())
        return session.baseline
    except Exception as e:
        logger.exception(f"Unexpected error initializing initial energy value: {e}")
        await energy_store.log_polling_error(
            "refresh_baseline", str(e), now or utc_now(), error_type=type(e).__name__
        )
        return session.baseline

    logger.info(f"Initial energy value set from {source}: {baseline.model_dump()}")
    return baseline
