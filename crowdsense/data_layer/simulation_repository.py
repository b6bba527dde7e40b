"""
Saved simulation runs.
Current: one directory of text files per run. Future: database-backed storage.
"""

import logging
import shutil
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence

from config import get_settings
from crowdsense.data_layer import text_format
from crowdsense.simulation_layer.errors import PersistenceError, SimulationNotFoundError
from crowdsense.simulation_layer.models import SimulationResult, Task, UserMovementEvent

logger = logging.getLogger(__name__)

MOVEMENTS_FILE = "user_movements.txt"
TASKS_FILE = "tasks.txt"
RESULTS_FILE = "results.txt"


@dataclass
class SavedSimulation:
    """The three collections of a stored run."""

    user_movements: List[UserMovementEvent] = field(default_factory=list)
    tasks: List[Task] = field(default_factory=list)
    results: List[SimulationResult] = field(default_factory=list)


class SimulationRepository(ABC):
    """Abstract base for saved-run storage."""

    @abstractmethod
    def save_simulation(
        self,
        user_movements: Sequence[UserMovementEvent],
        tasks: Sequence[Task],
        results: Sequence[SimulationResult],
    ) -> str:
        """Store a run and return its id."""
        ...

    @abstractmethod
    def load_simulation(self, run_id: str) -> SavedSimulation:
        ...

    @abstractmethod
    def list_simulations(self) -> List[str]:
        ...

    @abstractmethod
    def delete_simulation(self, run_id: str) -> bool:
        ...


class FileSimulationRepository(SimulationRepository):
    """Text-file repository (current implementation)."""

    def __init__(self, root: Optional[Path] = None):
        self.root = Path(root) if root is not None else get_settings().paths.saved_simulations_dir

    def _run_dir(self, run_id: str) -> Path:
        # Ids are directory names; reject anything that would escape the root
        if not run_id or Path(run_id).name != run_id or run_id in (".", ".."):
            raise SimulationNotFoundError(run_id)
        return self.root / run_id

    def _new_run_id(self) -> str:
        base = datetime.now().strftime("%Y%m%d_%H%M%S")
        run_id, n = base, 1
        while (self.root / run_id).exists():
            run_id = f"{base}_{n}"
            n += 1
        return run_id

    def save_simulation(self, user_movements, tasks, results) -> str:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            run_id = self._new_run_id()
            run_dir = self.root / run_id
            run_dir.mkdir()
            text_format.write_movements(run_dir / MOVEMENTS_FILE, user_movements)
            text_format.write_tasks(run_dir / TASKS_FILE, tasks)
            text_format.write_results(run_dir / RESULTS_FILE, results)
        except OSError as e:
            logger.error("Failed to save simulation: %s", e)
            raise PersistenceError(f"Failed to save simulation: {e}") from e

        logger.info("Saved simulation to %s", run_dir)
        return run_id

    def load_simulation(self, run_id: str) -> SavedSimulation:
        run_dir = self._run_dir(run_id)
        if not run_dir.is_dir():
            raise SimulationNotFoundError(run_id)

        try:
            saved = SavedSimulation(
                user_movements=text_format.read_movements(run_dir / MOVEMENTS_FILE),
                tasks=text_format.read_tasks(run_dir / TASKS_FILE),
                results=text_format.read_results(run_dir / RESULTS_FILE),
            )
        except (OSError, ValueError) as e:
            logger.error("Failed to load simulation %s: %s", run_id, e)
            raise PersistenceError(f"Failed to load simulation {run_id}: {e}") from e

        logger.info(
            "Loaded simulation %s: %d movements, %d tasks, %d results",
            run_id, len(saved.user_movements), len(saved.tasks), len(saved.results),
        )
        return saved

    def list_simulations(self) -> List[str]:
        if not self.root.exists():
            return []
        try:
            return sorted(p.name for p in self.root.iterdir() if p.is_dir())
        except OSError as e:
            logger.error("Failed to list saved simulations: %s", e)
            return []

    def delete_simulation(self, run_id: str) -> bool:
        try:
            run_dir = self._run_dir(run_id)
        except SimulationNotFoundError:
            return False
        if not run_dir.is_dir():
            return False
        try:
            shutil.rmtree(run_dir)
        except OSError as e:
            logger.error("Failed to delete simulation %s: %s", run_id, e)
            return False

        logger.info("Deleted simulation %s", run_id)
        return True
