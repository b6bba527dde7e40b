"""
Simulation engine for crowd-sensing scenarios.
Owns one session's parameters and collections and runs the three phases:

1. Mobility: synthetic user trajectories over the simulated days
2. Tasks: sensing tasks placed inside the movement extent
3. Candidates: distinct eligible users per task
"""

import logging
import random
import threading
from contextlib import contextmanager
from dataclasses import asdict
from pathlib import Path
from typing import Callable, List, Optional, Union

import pandas as pd

from config import get_settings
from crowdsense.data_layer import text_format
from crowdsense.data_layer.simulation_repository import (
    FileSimulationRepository,
    SimulationRepository,
)
from crowdsense.simulation_layer.candidate_matcher import CandidateMatcher
from crowdsense.simulation_layer.errors import (
    GenerationError,
    SimulationBusyError,
    SimulationError,
)
from crowdsense.simulation_layer.mobility import MobilityGenerator
from crowdsense.simulation_layer.models import (
    SimulationParameters,
    SimulationResult,
    SimulationState,
    SimulationSummary,
    SimulationWindow,
    Task,
    UserMovementEvent,
)
from crowdsense.simulation_layer.task_generator import TaskGenerator

logger = logging.getLogger(__name__)

Clock = Union[float, Callable[[], float], None]


class SimulationEngine:
    """
    Simulation session.

    One engine holds at most one run in flight. Each phase builds a fresh
    collection and publishes it only when the phase succeeds.
    """

    def __init__(
        self,
        parameters: Optional[SimulationParameters] = None,
        repository: Optional[SimulationRepository] = None,
        seed: Optional[int] = None,
        now: Clock = None,
        output_dir: Optional[Path] = None,
        write_working_files: bool = True,
    ):
        settings = get_settings()
        self.parameters = parameters or SimulationParameters.from_settings()
        self.repository = repository or FileSimulationRepository()
        self.seed = seed if seed is not None else settings.simulation.seed
        self._rng = random.Random(self.seed)
        self._now = now
        self.output_dir = Path(output_dir) if output_dir is not None else settings.paths.output_dir
        self.write_working_files = write_working_files
        self.matcher = CandidateMatcher()

        self.window: Optional[SimulationWindow] = None
        self.state = SimulationState.IDLE
        self.last_error: Optional[SimulationError] = None

        self._user_movements: List[UserMovementEvent] = []
        self._tasks: List[Task] = []
        self._results: List[SimulationResult] = []
        self._run_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Parameters and accessors
    # ------------------------------------------------------------------

    def set_parameters(self, parameters: SimulationParameters) -> None:
        """Replace the parameters. Rejected while a run is in flight."""
        if self.is_running:
            raise SimulationBusyError("Cannot change parameters while a simulation is running")
        self.parameters = parameters

    def get_parameters(self) -> SimulationParameters:
        return self.parameters

    def get_user_movements(self) -> List[UserMovementEvent]:
        return list(self._user_movements)

    def get_tasks(self) -> List[Task]:
        return list(self._tasks)

    def get_results(self) -> List[SimulationResult]:
        return list(self._results)

    @property
    def is_running(self) -> bool:
        return self._run_lock.locked()

    def _current_time(self) -> Optional[float]:
        if callable(self._now):
            return self._now()
        return self._now

    def _new_window(self, params: SimulationParameters) -> SimulationWindow:
        return SimulationWindow.ending_at(params.days, now=self._current_time())

    def _phase_rng(self) -> random.Random:
        """Independent generator per phase, derived from the session seed."""
        return random.Random(self._rng.getrandbits(64))

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def generate_user_movements(self, params: Optional[SimulationParameters] = None) -> bool:
        """Regenerate user trajectories. Returns False on failure (see last_error)."""
        params = params or self.parameters
        self._user_movements = []
        self.last_error = None
        try:
            window = self._new_window(params)
            generator = MobilityGenerator(params, rng=self._phase_rng())
            movements = generator.generate(window)
        except Exception as e:
            self.last_error = GenerationError("user_movements", str(e), cause=e)
            logger.error("Failed to generate user movements: %s", e)
            return False

        self.window = window
        self._user_movements = movements
        self._write_working_file(
            text_format.write_movements, "user_movements.txt", movements
        )
        return True

    def generate_tasks(self, params: Optional[SimulationParameters] = None) -> bool:
        """Regenerate tasks over the current movements. Returns False on failure."""
        params = params or self.parameters
        self._tasks = []
        self.last_error = None
        try:
            window = self.window or self._new_window(params)
            generator = TaskGenerator(params, rng=self._phase_rng())
            tasks = generator.generate(window, self._user_movements)
        except Exception as e:
            self.last_error = GenerationError("tasks", str(e), cause=e)
            logger.error("Failed to generate tasks: %s", e)
            return False

        self.window = window
        self._tasks = tasks
        self._write_working_file(text_format.write_tasks, "tasks.txt", tasks)
        return True

    def compute_candidates_for_tasks(self) -> List[SimulationResult]:
        """Match candidates for every task. Raises ComputationError, publishing nothing."""
        self._results = []
        results = self.matcher.compute(self._user_movements, self._tasks)
        self._results = results
        return list(results)

    def save_results_to_file(self) -> None:
        self._write_working_file(text_format.write_results, "simulation_results.txt", self._results)

    def _write_working_file(self, writer, filename: str, records) -> None:
        """Best-effort write of the current run's files; failures are only logged."""
        if not self.write_working_files:
            return
        path = self.output_dir / filename
        try:
            writer(path, records)
        except Exception as e:
            logger.warning("Failed to write %s: %s", path, e)

    # ------------------------------------------------------------------
    # Full run
    # ------------------------------------------------------------------

    @contextmanager
    def _exclusive(self):
        if not self._run_lock.acquire(blocking=False):
            raise SimulationBusyError("A simulation is already running")
        try:
            yield
        finally:
            self._run_lock.release()

    def run_simulation(self) -> List[SimulationResult]:
        """
        Run all phases in order.

        Returns:
            The per-task results.

        Raises:
            SimulationBusyError: another run is in flight.
            GenerationError: mobility or task generation failed.
            ComputationError: candidate matching failed.
        """
        with self._exclusive():
            # Every phase of this run sees the same parameters
            params = self.parameters
            logger.info(
                "Simulation start: %d days, %d users (%s), %d tasks, platform %s",
                params.days, params.number_of_users,
                params.locomotion_type.name.lower(), params.number_of_tasks,
                params.platform_type.label,
            )
            self._tasks = []
            self._results = []

            self.state = SimulationState.GENERATING_USERS
            if not self.generate_user_movements(params):
                self.state = SimulationState.ERROR
                raise self.last_error

            self.state = SimulationState.GENERATING_TASKS
            if not self.generate_tasks(params):
                self.state = SimulationState.ERROR
                raise self.last_error

            self.state = SimulationState.COMPUTING
            try:
                results = self.compute_candidates_for_tasks()
            except SimulationError as e:
                self.last_error = e
                self.state = SimulationState.ERROR
                raise

            self.save_results_to_file()
            self.state = SimulationState.COMPLETED
            logger.info("Simulation complete: %d results", len(results))
            return results

    # ------------------------------------------------------------------
    # Saved runs
    # ------------------------------------------------------------------

    def save_simulation(self) -> str:
        """Store the current collections. Returns the run id."""
        with self._exclusive():
            self.state = SimulationState.SAVING
            try:
                run_id = self.repository.save_simulation(
                    self._user_movements, self._tasks, self._results
                )
            except SimulationError as e:
                self.last_error = e
                self.state = SimulationState.ERROR
                raise
            self.state = SimulationState.SAVED
            return run_id

    def load_simulation(self, run_id: str) -> None:
        """Replace the current collections with a saved run."""
        with self._exclusive():
            self.state = SimulationState.LOADING
            try:
                saved = self.repository.load_simulation(run_id)
            except SimulationError as e:
                self.last_error = e
                self.state = SimulationState.ERROR
                raise
            self._user_movements = saved.user_movements
            self._tasks = saved.tasks
            self._results = saved.results
            self.window = None
            self.state = SimulationState.COMPLETED

    def list_saved_simulations(self) -> List[str]:
        return self.repository.list_simulations()

    def delete_simulation(self, run_id: str) -> bool:
        return self.repository.delete_simulation(run_id)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def summary(self) -> SimulationSummary:
        return SimulationSummary.from_results(self._results)

    def candidate_user_ids(self, task_id: int) -> List[int]:
        task = next((t for t in self._tasks if t.task_id == task_id), None)
        if task is None:
            raise KeyError(task_id)
        return sorted(self.matcher.candidate_user_ids(task, self._user_movements))

    def to_dataframe(self, kind: str) -> pd.DataFrame:
        """DataFrame of one collection: 'movements', 'tasks' or 'results'."""
        collections = {
            "movements": self._user_movements,
            "tasks": self._tasks,
            "results": self._results,
        }
        if kind not in collections:
            raise ValueError(f"Unknown collection: {kind}")
        return pd.DataFrame([asdict(r) for r in collections[kind]])
