# vitb_energy/services/consumption.py

from vitb_energy.models.energy_data import (
    METER_IDS,
    Baseline,
    ConsumptionDeltas,
    MeterReading,
)


def compute_deltas(reading: MeterReading, baseline: Baseline) -> ConsumptionDeltas:
    """
    Consumption since the baseline for every meter.

    No clamping: a baseline above the reading (meter reset, counter swap)
    gives a negative delta and it is stored as-is.
    """
    return ConsumptionDeltas(
        **{f"meter{m}": reading.cumulative_energy(m) - baseline.get(m) for m in METER_IDS}
    )
