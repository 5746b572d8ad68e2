# vitb_energy/services/sensor_client.py

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from vitb_energy.core.config import settings
from vitb_energy.core.errors import FetchError, SourceUnavailable
from vitb_energy.models.energy_data import MeterReading

logger = logging.getLogger("energy.sensor")


async def _get_json(url: str) -> Any:
    async with httpx.AsyncClient(
        timeout=settings.SENSOR_API_TIMEOUT_SECONDS,
        follow_redirects=True,
        headers={
            "User-Agent": "vitb-energy-logger/1.0",
            "Accept": "application/json",
        },
    ) as client:
        try:
            r = await client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise SourceUnavailable(f"GET {url} failed: {e}") from e

    if r.status_code < 200 or r.status_code >= 300:
        snippet = (r.text or "")[:200].replace("\n", " ")
        raise SourceUnavailable(f"HTTP {r.status_code} from {url}: {snippet}")

    try:
        return r.json()
    except ValueError as e:
        raise FetchError(f"Response from {url} is not JSON") from e


async def fetch_latest_reading(url: Optional[str] = None) -> MeterReading:
    """
    Fetch the sensor feed and return its first reading.

    The endpoint answers with a list of readings, newest first; the rest
    of the list is ignored.
    """
    url = url or settings.SENSOR_API_URL
    logger.debug(f"Fetching sensor data from {url}")
    payload = await _get_json(url)

    if not isinstance(payload, list) or not payload:
        raise FetchError(f"Expected a non-empty list from {url}, got {type(payload).__name__}")

    first = payload[0]
    if not isinstance(first, dict):
        raise FetchError(f"Expected an object as first reading, got {type(first).__name__}")

    try:
        return MeterReading.model_validate(first)
    except ValidationError as e:
        raise FetchError(f"Malformed reading from {url}: {e.error_count()} invalid field(s)") from e
