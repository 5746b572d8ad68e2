# vitb_energy/models/energy_data.py

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

# Fixed meter order: file lines, baselines and deltas all follow it.
METER_IDS: Tuple[int, ...] = (1, 40, 69, 41)

# Per-meter quantities, in file-column order.
QUANTITIES: Tuple[str, ...] = (
    "Total_KW",       # active power
    "TotalNet_KWH",   # cumulative net energy
    "Total_KVA",      # apparent power
    "Avg_PF",         # average power factor
    "TotalNet_KVAH",  # cumulative net reactive energy
)

CUMULATIVE_ENERGY = "TotalNet_KWH"
COLLECTION_NAME = "energydatas"


def field_name(quantity: str, meter_id: int) -> str:
    return f"{quantity}_meter_{meter_id}"


def consumption_field(meter_id: int) -> str:
    return f"energy_consumption_meter_{meter_id}"


def raw_field_names() -> List[str]:
    """All 20 raw reading fields, meter by meter."""
    return [field_name(q, m) for m in METER_IDS for q in QUANTITIES]


class MeterReading(BaseModel):
    """One element of the sensor API response.

    Cumulative energy is required for every meter since baselines and
    deltas are derived from it; the other quantities are carried as-is.
    """

    model_config = ConfigDict(extra="ignore")

    Total_KW_meter_1: Optional[float] = None
    TotalNet_KWH_meter_1: float
    Total_KVA_meter_1: Optional[float] = None
    Avg_PF_meter_1: Optional[float] = None
    TotalNet_KVAH_meter_1: Optional[float] = None

    Total_KW_meter_40: Optional[float] = None
    TotalNet_KWH_meter_40: float
    Total_KVA_meter_40: Optional[float] = None
    Avg_PF_meter_40: Optional[float] = None
    TotalNet_KVAH_meter_40: Optional[float] = None

    Total_KW_meter_69: Optional[float] = None
    TotalNet_KWH_meter_69: float
    Total_KVA_meter_69: Optional[float] = None
    Avg_PF_meter_69: Optional[float] = None
    TotalNet_KVAH_meter_69: Optional[float] = None

    Total_KW_meter_41: Optional[float] = None
    TotalNet_KWH_meter_41: float
    Total_KVA_meter_41: Optional[float] = None
    Avg_PF_meter_41: Optional[float] = None
    TotalNet_KVAH_meter_41: Optional[float] = None

    def value(self, quantity: str, meter_id: int) -> Optional[float]:
        return getattr(self, field_name(quantity, meter_id))

    def cumulative_energy(self, meter_id: int) -> float:
        return getattr(self, field_name(CUMULATIVE_ENERGY, meter_id))

    def raw_fields(self) -> Dict[str, Optional[float]]:
        return {name: getattr(self, name) for name in raw_field_names()}


class _PerMeter(BaseModel):
    meter1: float
    meter40: float
    meter69: float
    meter41: float

    def get(self, meter_id: int) -> float:
        return getattr(self, f"meter{meter_id}")


class Baseline(_PerMeter):
    """Cumulative-energy reference point per meter for today's consumption."""

    @classmethod
    def from_reading(cls, reading: MeterReading) -> "Baseline":
        return cls(**{f"meter{m}": reading.cumulative_energy(m) for m in METER_IDS})

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "Baseline":
        # raises pydantic.ValidationError when a stored record lacks a counter
        return cls(**{f"meter{m}": doc.get(field_name(CUMULATIVE_ENERGY, m)) for m in METER_IDS})


class ConsumptionDeltas(_PerMeter):
    def as_record_fields(self) -> Dict[str, float]:
        return {consumption_field(m): self.get(m) for m in METER_IDS}


class EnergyRecord(MeterReading):
    """Persisted row: timestamp, raw reading and per-meter consumption."""

    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    energy_consumption_meter_1: float
    energy_consumption_meter_40: float
    energy_consumption_meter_69: float
    energy_consumption_meter_41: float

    @classmethod
    def build(
        cls,
        reading: MeterReading,
        deltas: ConsumptionDeltas,
        timestamp: Optional[datetime] = None,
    ) -> "EnergyRecord":
        return cls(
            timestamp=timestamp or datetime.now(timezone.utc),
            **reading.raw_fields(),
            **deltas.as_record_fields(),
        )

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump()
