"""
Candidate matching: which users can perform a task.

A user is a candidate for a task when at least one of their movement events
falls inside the task's time window and within its execution range.
"""

import logging
from typing import List, Set

import numpy as np

from crowdsense.data_layer.geo import distance_meters_array
from crowdsense.simulation_layer.errors import ComputationError
from crowdsense.simulation_layer.models import SimulationResult, Task, UserMovementEvent

logger = logging.getLogger(__name__)


class MovementIndex:
    """Movement events as time-sorted numpy columns for window lookups."""

    def __init__(self, movements: List[UserMovementEvent]):
        timestamps = np.fromiter((m.timestamp for m in movements), dtype=float, count=len(movements))
        order = np.argsort(timestamps, kind="stable")
        self.timestamps = timestamps[order]
        self.user_ids = np.fromiter(
            (m.user_id for m in movements), dtype=np.int64, count=len(movements)
        )[order]
        self.lats = np.fromiter(
            (m.latitude for m in movements), dtype=float, count=len(movements)
        )[order]
        self.lons = np.fromiter(
            (m.longitude for m in movements), dtype=float, count=len(movements)
        )[order]

    def __len__(self) -> int:
        return len(self.timestamps)

    def eligible_user_ids(self, task: Task) -> np.ndarray:
        """Distinct user ids inside the task's time window and range."""
        window_end = task.timestamp + task.window_seconds
        # Inclusive on both ends
        lo = np.searchsorted(self.timestamps, task.timestamp, side="left")
        hi = np.searchsorted(self.timestamps, window_end, side="right")
        if hi <= lo:
            return np.empty(0, dtype=np.int64)

        distances = distance_meters_array(
            task.latitude, task.longitude, self.lats[lo:hi], self.lons[lo:hi]
        )
        in_range = (distances >= 0) & (distances <= task.distance)
        return np.unique(self.user_ids[lo:hi][in_range])


class CandidateMatcher:
    """Counts distinct eligible users per task."""

    def compute(
        self, movements: List[UserMovementEvent], tasks: List[Task]
    ) -> List[SimulationResult]:
        """One result per task, in task order. All or nothing."""
        try:
            index = MovementIndex(movements)
            results = [
                SimulationResult(
                    task_id=task.task_id,
                    candidates=int(index.eligible_user_ids(task).size),
                )
                for task in tasks
            ]
        except Exception as e:
            raise ComputationError(f"Candidate matching failed: {e}") from e

        logger.info(
            "Computed candidates for %d tasks over %d movement events",
            len(results), len(index),
        )
        return results

    def candidate_user_ids(
        self, task: Task, movements: List[UserMovementEvent]
    ) -> Set[int]:
        """Eligible user ids for a single task."""
        return {int(uid) for uid in MovementIndex(movements).eligible_user_ids(task)}
