# vitb_energy/services/file_logger.py

from __future__ import annotations

import logging
import math
import os
from datetime import date, datetime
from typing import Optional

import aiofiles
import aiofiles.os

from vitb_energy.core.config import settings
from vitb_energy.core.errors import WriteError
from vitb_energy.core.timeutils import to_local
from vitb_energy.models.energy_data import METER_IDS, QUANTITIES, MeterReading

logger = logging.getLogger("energy.filelog")

FILE_PREFIX = "VITB_"
FILE_SUFFIX = ".txt"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def daily_file_name(day: date) -> str:
    return f"{FILE_PREFIX}{day.strftime('%Y-%m-%d')}{FILE_SUFFIX}"


def daily_file_path(day: date, data_dir: Optional[str] = None) -> str:
    return os.path.join(data_dir or settings.DATA_DIR, daily_file_name(day))


def _fmt(value: Optional[float]) -> str:
    if value is None:
        return ""
    if math.isfinite(value) and float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def format_line(reading: MeterReading, now: Optional[datetime] = None) -> str:
    """
    One CSV line: local timestamp, then the five quantities of meters
    1, 40, 69, 41 in that order. No header, no quoting.
    """
    fields = [to_local(now).strftime(TIMESTAMP_FORMAT)]
    for meter_id in METER_IDS:
        for quantity in QUANTITIES:
            fields.append(_fmt(reading.value(quantity, meter_id)))
    return ",".join(fields) + "\n"


async def _append(file_path: str, line: str) -> None:
    try:
        directory = os.path.dirname(file_path)
        if directory:
            await aiofiles.os.makedirs(directory, exist_ok=True)
        async with aiofiles.open(file_path, "a", encoding="utf-8") as f:
            await f.write(line)
    except OSError as e:
        raise WriteError(f"Append to {file_path} failed: {e}") from e


async def append_line(reading: MeterReading, file_path: str, now: Optional[datetime] = None) -> bool:
    """Append the reading to the daily file; failures are logged, not raised."""
    logger.debug(f"Appending data to file: {file_path}")
    try:
        await _append(file_path, format_line(reading, now))
    except WriteError as e:
        logger.error(f"Error appending data to file: {e}")
        return False
    logger.info(f"Data appended to file: {file_path}")
    return True
