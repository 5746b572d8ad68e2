# vitb_energy/services/session.py

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from vitb_energy.models.energy_data import Baseline


def _new_status() -> Dict[str, Any]:
    return {
        "last_success": None,
        "last_attempt": None,
        "last_error": None,
        "consecutive_failures": 0,
        "total_failures": 0,
        "total_successes": 0,
        "health": "unknown",  # healthy, degraded, offline
        "last_baseline_refresh": None,
        "baseline_source": None,  # previous_day, today_first, first_poll
    }


@dataclass
class PollerSession:
    """
    In-memory state shared by the baseline refresh and the poll cycle.

    Exactly one baseline is live per process. `lock` serialises every
    read-modify-write of it between the two scheduled jobs.
    """

    baseline: Optional[Baseline] = None
    first_stored_value: Optional[Baseline] = None
    # Never reset at midnight: the first value is captured once per process.
    is_first_data_stored_today: bool = False
    status: Dict[str, Any] = field(default_factory=_new_status)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    def snapshot(self) -> Dict[str, Any]:
        return {
            "baseline": self.baseline.model_dump() if self.baseline else None,
            "first_stored_value": self.first_stored_value.model_dump() if self.first_stored_value else None,
            "is_first_data_stored_today": self.is_first_data_stored_today,
            "status": dict(self.status),
        }
