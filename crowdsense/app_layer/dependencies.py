"""
FastAPI dependency injection providers.
"""

from functools import lru_cache

from crowdsense.simulation_layer.engine import SimulationEngine


@lru_cache
def get_engine() -> SimulationEngine:
    """Process-wide simulation session."""
    return SimulationEngine()
