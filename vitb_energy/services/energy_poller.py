# vitb_energy/services/energy_poller.py

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from vitb_energy.core.config import settings
from vitb_energy.core.errors import EnergyLoggerError
from vitb_energy.core.timeutils import to_local, utc_now
from vitb_energy.models.energy_data import Baseline, EnergyRecord
from vitb_energy.services import energy_store, file_logger
from vitb_energy.services.baseline import refresh_baseline
from vitb_energy.services.consumption import compute_deltas
from vitb_energy.services.sensor_client import fetch_latest_reading
from vitb_energy.services.session import PollerSession

logger = logging.getLogger("energy.poller")


def _mark_success(session: PollerSession, at: datetime) -> None:
    status = session.status
    status["last_success"] = at.isoformat()
    status["last_error"] = None
    status["consecutive_failures"] = 0
    status["total_successes"] += 1
    status["health"] = "healthy"


def _mark_failure(session: PollerSession, error: str) -> None:
    status = session.status
    status["last_error"] = error
    status["consecutive_failures"] += 1
    status["total_failures"] += 1

    if status["consecutive_failures"] >= 5:
        status["health"] = "offline"
    elif status["consecutive_failures"] >= 2:
        status["health"] = "degraded"
    else:
        status["health"] = "healthy"  # temporary failure


async def _record_failure(session: PollerSession, e: Exception, at: datetime) -> None:
    _mark_failure(session, str(e))
    logger.warning(
        f"Error fetching and storing sensor data: {str(e)[:200]} "
        f"(consecutive: {session.status['consecutive_failures']}, "
        f"health: {session.status['health']})"
    )
    await energy_store.log_polling_error(
        "poll_once",
        str(e),
        at,
        error_type=type(e).__name__,
        consecutive_failures=session.status["consecutive_failures"],
    )


async def poll_once(session: PollerSession, now: Optional[datetime] = None) -> bool:
    """
    Fetch one reading, store it with its consumption deltas and append it
    to today's flat file.

    The record is stamped when the reading arrives unless `now` is given.
    Returns True if the record was stored. Any fetch, compute or persist
    failure drops this cycle's data and is logged; nothing is raised.
    """
    attempt = now or utc_now()
    session.status["last_attempt"] = attempt.isoformat()

    try:
        logger.info("Fetching and storing sensor data...")
        reading = await fetch_latest_reading()
        now = now or utc_now()

        async with session.lock:
            if session.baseline is None:
                session.baseline = Baseline.from_reading(reading)
                session.status["baseline_source"] = "first_poll"
                logger.info(f"Setting initial energy value to the current value: {session.baseline.model_dump()}")
            baseline = session.baseline

        deltas = compute_deltas(reading, baseline)
        record = EnergyRecord.build(reading, deltas, timestamp=now)
        await energy_store.insert_record(record)
        logger.info(f"Sensor data stored successfully at {now.isoformat()}: {deltas.model_dump()}")

    except EnergyLoggerError as e:
        await _record_failure(session, e, attempt)
        return False
    except Exception as e:
        logger.exception(f"Unexpected error in poll cycle: {e}")
        await _record_failure(session, e, attempt)
        return False

    if not session.is_first_data_stored_today:
        session.first_stored_value = Baseline.from_reading(reading)
        session.is_first_data_stored_today = True
        logger.info(f"First stored energy value for today: {session.first_stored_value.model_dump()}")

    _mark_success(session, now)

    file_path = file_logger.daily_file_path(to_local(now).date())
    await file_logger.append_line(reading, file_path, now)
    return True


async def force_poll(session: PollerSession) -> Dict[str, Any]:
    """Run a poll cycle now, outside the schedule."""
    logger.info("Force polling sensor API")
    success = await poll_once(session)
    if success:
        return {"status": "success", "message": "Poll successful", "session": session.snapshot()}
    return {
        "status": "error",
        "message": "Poll failed",
        "error": session.status.get("last_error"),
        "session": session.snapshot(),
    }


def start_energy_scheduler(session: PollerSession) -> AsyncIOScheduler:
    """
    Start the two independent recurring jobs: baseline refresh and poll.

    They share a period but no ordering; each job is limited to one running
    instance so a slow fetch never overlaps itself.
    """
    scheduler = AsyncIOScheduler(timezone=settings.TIMEZONE)

    scheduler.add_job(
        refresh_baseline,
        trigger=IntervalTrigger(seconds=int(settings.BASELINE_REFRESH_INTERVAL_SECONDS)),
        args=[session],
        id="refresh_baseline",
        name="Baseline Refresh",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )

    scheduler.add_job(
        poll_once,
        trigger=IntervalTrigger(seconds=int(settings.POLL_INTERVAL_SECONDS)),
        args=[session],
        id="poll_once",
        name="Sensor Poll",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=30,
    )

    scheduler.start()
    logger.info(
        f"Energy scheduler started: poll every {settings.POLL_INTERVAL_SECONDS}s, "
        f"baseline refresh every {settings.BASELINE_REFRESH_INTERVAL_SECONDS}s. "
        f"Source: {settings.SENSOR_API_URL}"
    )
    return scheduler
