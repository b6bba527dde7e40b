"""
Data Layer - geometry and persistence.

Provides:
- distance_meters / BoundingBox: great-circle math on WGS84 degrees
- text_format: row-oriented text files for movements, tasks, results
- FileSimulationRepository: saved-run storage
"""

from crowdsense.data_layer.geo import (
    BoundingBox,
    distance_meters,
    distance_meters_array,
)
from crowdsense.data_layer.simulation_repository import (
    FileSimulationRepository,
    SavedSimulation,
    SimulationRepository,
)

__all__ = [
    # Geometry
    "BoundingBox",
    "distance_meters",
    "distance_meters_array",
    # Persistence
    "FileSimulationRepository",
    "SavedSimulation",
    "SimulationRepository",
]
