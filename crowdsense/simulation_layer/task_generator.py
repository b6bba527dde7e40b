"""
Random sensing task placement.
"""

import logging
import random
from typing import List, Optional

from config import get_settings
from crowdsense.data_layer.geo import BoundingBox
from crowdsense.simulation_layer.models import (
    SimulationParameters,
    SimulationWindow,
    Task,
    UserMovementEvent,
)

logger = logging.getLogger(__name__)


def default_task_area() -> BoundingBox:
    """Box used when there are no movements to derive one from."""
    sim = get_settings().simulation
    return BoundingBox.around(
        sim.default_box_lat, sim.default_box_lng, sim.default_box_half_span_deg
    )


def movement_bounds(movements: List[UserMovementEvent]) -> BoundingBox:
    """Tight box around all movement events, or the default area."""
    if not movements:
        return default_task_area()
    return BoundingBox.from_points(
        (m.latitude for m in movements),
        (m.longitude for m in movements),
    )


class TaskGenerator:
    """Places tasks uniformly in time over the window and in space over the movement extent."""

    def __init__(
        self,
        parameters: SimulationParameters,
        rng: Optional[random.Random] = None,
        seed: Optional[int] = None,
    ):
        self.parameters = parameters
        self.rng = rng or random.Random(seed)

    def generate(
        self,
        window: SimulationWindow,
        movements: Optional[List[UserMovementEvent]] = None,
    ) -> List[Task]:
        box = movement_bounds(movements or [])
        params = self.parameters

        tasks = []
        for task_id in range(1, params.number_of_tasks + 1):
            # random() is in [0, 1) so the timestamp stays inside [start, end)
            timestamp = window.start + self.rng.random() * window.duration
            latitude = box.min_lat + self.rng.random() * (box.max_lat - box.min_lat)
            longitude = box.min_lon + self.rng.random() * (box.max_lon - box.min_lon)
            tasks.append(
                Task(
                    task_id=task_id,
                    latitude=latitude,
                    longitude=longitude,
                    timestamp=timestamp,
                    duration=params.task_duration,
                    distance=params.execution_range,
                    timeslots=params.timeslot_duration,
                )
            )

        logger.info(
            "Generated %d tasks in lat [%.5f, %.5f] lng [%.5f, %.5f]",
            len(tasks), box.min_lat, box.max_lat, box.min_lon, box.max_lon,
        )
        return tasks
