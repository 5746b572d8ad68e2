# vitb_energy/api/__init__.py

from vitb_energy.api import energy_data
from vitb_energy.api import storage

__all__ = [
    "energy_data",
    "storage",
]
