"""
Shared data models for the simulation layer.
"""

import time
from dataclasses import dataclass, field, fields
from enum import Enum, IntEnum
from typing import Dict, List, Optional, Tuple, Union

from config import get_settings
from crowdsense.simulation_layer.errors import InvalidParametersError

SECONDS_PER_DAY = 24 * 60 * 60


class LocomotionType(IntEnum):
    """Movement mode; selects the speed distribution of a user."""

    WALK = 1
    BIKE = 2
    DRIVE = 3

    @property
    def speed_range(self) -> Tuple[float, float]:
        """(min, max) speed in m/s."""
        return LOCOMOTION_SPEEDS[self]

    @classmethod
    def parse(cls, value: Union[int, str, "LocomotionType"]) -> "LocomotionType":
        if isinstance(value, cls):
            return value
        if isinstance(value, str) and not value.isdigit():
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise InvalidParametersError(f"Unknown locomotion type: {value}") from None
        try:
            return cls(int(value))
        except ValueError:
            raise InvalidParametersError(f"Unknown locomotion type: {value}") from None


# walk 3.6-5.4 km/h, bike 10-20 km/h, drive 20-50 km/h
LOCOMOTION_SPEEDS: Dict[LocomotionType, Tuple[float, float]] = {
    LocomotionType.WALK: (1.0, 1.5),
    LocomotionType.BIKE: (2.7, 5.5),
    LocomotionType.DRIVE: (5.5, 13.9),
}


class PlatformType(IntEnum):
    """Sensing platform. Stored with the parameters, unused by the matcher."""

    MCS = 1
    FOG_MCS = 2
    MEC_MCS = 3

    @property
    def label(self) -> str:
        return self.name.replace("_", "-")

    @classmethod
    def parse(cls, value: Union[int, str, "PlatformType"]) -> "PlatformType":
        if isinstance(value, cls):
            return value
        if isinstance(value, str) and not value.isdigit():
            try:
                return cls[value.strip().upper().replace("-", "_")]
            except KeyError:
                raise InvalidParametersError(f"Unknown platform type: {value}") from None
        try:
            return cls(int(value))
        except ValueError:
            raise InvalidParametersError(f"Unknown platform type: {value}") from None


@dataclass(frozen=True)
class SimulationParameters:
    """Input of one simulation run. Replaced wholesale, never edited in place."""

    days: int = 3
    number_of_users: int = 2000
    locomotion_type: LocomotionType = LocomotionType.WALK
    number_of_tasks: int = 30
    execution_range: int = 100  # meters
    task_duration: int = 60  # minutes
    timeslot_duration: int = 60  # minutes
    platform_type: PlatformType = PlatformType.MCS

    def __post_init__(self):
        object.__setattr__(self, "locomotion_type", LocomotionType.parse(self.locomotion_type))
        object.__setattr__(self, "platform_type", PlatformType.parse(self.platform_type))
        for name in (
            "days", "number_of_users", "number_of_tasks",
            "execution_range", "task_duration", "timeslot_duration",
        ):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise InvalidParametersError(f"{name} must be a positive integer, got {value!r}")

    @classmethod
    def from_settings(cls) -> "SimulationParameters":
        sim = get_settings().simulation
        return cls(
            days=sim.days,
            number_of_users=sim.number_of_users,
            locomotion_type=sim.locomotion_type,
            number_of_tasks=sim.number_of_tasks,
            execution_range=sim.execution_range,
            task_duration=sim.task_duration,
            timeslot_duration=sim.timeslot_duration,
            platform_type=sim.platform_type,
        )

    def to_dict(self) -> dict:
        return {
            f.name: int(getattr(self, f.name)) for f in fields(self)
        }


@dataclass(frozen=True)
class SimulationWindow:
    """Time span [start, end) in epoch seconds covered by a run."""

    start: float
    end: float

    @classmethod
    def ending_at(cls, days: int, now: Optional[float] = None) -> "SimulationWindow":
        end = time.time() if now is None else float(now)
        return cls(start=end - SECONDS_PER_DAY * days, end=end)

    @property
    def duration(self) -> float:
        return self.end - self.start


@dataclass(frozen=True)
class UserMovementEvent:
    """One stop along a user's random walk."""

    user_id: int
    latitude: float
    longitude: float
    timestamp: float  # epoch seconds
    day: int  # whole days since the window start
    hour: int
    minute: int
    second: int


@dataclass(frozen=True)
class Task:
    """A sensing task placed in space and time."""

    task_id: int
    latitude: float
    longitude: float
    timestamp: float
    duration: int  # minutes
    distance: int  # meters
    timeslots: int  # minutes

    @property
    def window_seconds(self) -> float:
        """Length of the candidate-matching window."""
        return (self.duration / self.timeslots) * 60.0


@dataclass(frozen=True)
class SimulationResult:
    """Number of distinct candidate users for one task."""

    task_id: int
    candidates: int


class SimulationState(str, Enum):
    IDLE = "idle"
    GENERATING_USERS = "generating_users"
    GENERATING_TASKS = "generating_tasks"
    COMPUTING = "computing"
    COMPLETED = "completed"
    SAVING = "saving"
    SAVED = "saved"
    LOADING = "loading"
    ERROR = "error"


class CoverageLevel(str, Enum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def for_candidates(cls, candidates: int) -> "CoverageLevel":
        if candidates == 0:
            return cls.NONE
        if candidates < 5:
            return cls.LOW
        if candidates < 15:
            return cls.MEDIUM
        return cls.HIGH


@dataclass
class SimulationSummary:
    """Aggregate view of a result set."""

    task_count: int = 0
    average_candidates: float = 0.0
    max_candidates: int = 0
    min_candidates: int = 0
    coverage: Dict[str, int] = field(
        default_factory=lambda: {level.value: 0 for level in CoverageLevel}
    )

    @classmethod
    def from_results(cls, results: List[SimulationResult]) -> "SimulationSummary":
        summary = cls()
        if not results:
            return summary
        counts = [r.candidates for r in results]
        summary.task_count = len(counts)
        summary.average_candidates = sum(counts) / len(counts)
        summary.max_candidates = max(counts)
        summary.min_candidates = min(counts)
        for c in counts:
            summary.coverage[CoverageLevel.for_candidates(c).value] += 1
        return summary
