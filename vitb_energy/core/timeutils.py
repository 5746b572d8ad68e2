# vitb_energy/core/timeutils.py

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

from vitb_energy.core.config import settings


def local_tz() -> ZoneInfo:
    return ZoneInfo(settings.TIMEZONE)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_local(moment: Optional[datetime] = None) -> datetime:
    moment = moment or utc_now()
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(local_tz())


def local_midnight_utc(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=local_tz()).astimezone(timezone.utc)


def day_boundaries(now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """(yesterday 00:00, today 00:00) of the local calendar, as UTC datetimes."""
    today = to_local(now).date()
    return local_midnight_utc(today - timedelta(days=1)), local_midnight_utc(today)
