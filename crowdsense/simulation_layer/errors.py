"""
Error types raised by the simulation and persistence layers.
"""

from typing import Optional


class SimulationError(Exception):
    """Base class for every simulator error."""


class InvalidParametersError(SimulationError, ValueError):
    """Simulation parameters failed validation."""


class GenerationError(SimulationError):
    """Mobility or task synthesis failed; the run must not continue."""

    def __init__(self, phase: str, message: str, cause: Optional[BaseException] = None):
        self.phase = phase
        self.cause = cause
        super().__init__(f"{phase}: {message}")


class ComputationError(SimulationError):
    """Candidate matching failed; no results were published."""


class PersistenceError(SimulationError):
    """Reading or writing the on-disk text format failed."""


class SimulationNotFoundError(PersistenceError):
    """A saved run with the requested id does not exist."""

    def __init__(self, run_id: str):
        self.run_id = run_id
        super().__init__(f"Saved simulation not found: {run_id}")


class SimulationBusyError(SimulationError):
    """Another run is already in flight on this session."""
