# vitb_energy/core/errors.py

"""
Failure taxonomy for the polling pipeline.

Each error is raised by the module that touches the failing resource and
caught at the boundary of the scheduled action that triggered it.
"""


class EnergyLoggerError(Exception):
    """Base class for every error raised by the energy pipeline."""


class FetchError(EnergyLoggerError):
    """The remote sensor API answered with something we cannot use."""


class SourceUnavailable(FetchError):
    """The remote sensor API could not be reached or returned a non-2xx status."""


class QueryError(EnergyLoggerError):
    """Reading from the database failed."""


class PersistError(EnergyLoggerError):
    """Writing an energy record to the database failed."""


class WriteError(EnergyLoggerError):
    """Appending to the daily flat file failed."""
