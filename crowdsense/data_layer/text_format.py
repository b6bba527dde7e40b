"""
Row-oriented text files for movements, tasks and results.

Layout: one header line of column names, then one space-separated line per
record. Floats are written at full precision and read back with pandas'
round-trip parser, so values survive a write/read cycle unchanged.
"""

from dataclasses import astuple, dataclass
from pathlib import Path
from typing import Callable, List, Sequence, Tuple, Union

import pandas as pd

from crowdsense.simulation_layer.models import SimulationResult, Task, UserMovementEvent

PathLike = Union[str, Path]


@dataclass(frozen=True)
class RecordFormat:
    """Column layout of one record type. Columns follow the dataclass field order."""

    columns: Tuple[str, ...]
    int_columns: Tuple[str, ...]
    factory: Callable

    def to_frame(self, records: Sequence) -> pd.DataFrame:
        return pd.DataFrame([astuple(r) for r in records], columns=list(self.columns))

    def from_frame(self, df: pd.DataFrame) -> list:
        df = df.dropna()
        records = []
        for row in df.itertuples(index=False, name=None):
            values = [
                int(v) if col in self.int_columns else float(v)
                for col, v in zip(self.columns, row)
            ]
            records.append(self.factory(*values))
        return records


MOVEMENT_FORMAT = RecordFormat(
    columns=("user_id", "lat", "lon", "timestamp", "day", "hour", "minute", "second"),
    int_columns=("user_id", "day", "hour", "minute", "second"),
    factory=UserMovementEvent,
)

TASK_FORMAT = RecordFormat(
    columns=("id_task", "lat", "lon", "timestamp", "duration", "distance", "timeslots"),
    int_columns=("id_task", "duration", "distance", "timeslots"),
    factory=Task,
)

RESULT_FORMAT = RecordFormat(
    columns=("task_id", "candidates"),
    int_columns=("task_id", "candidates"),
    factory=SimulationResult,
)


def write_records(path: PathLike, records: Sequence, fmt: RecordFormat) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fmt.to_frame(records).to_csv(path, sep=" ", index=False, encoding="utf-8")
    return path


def read_records(path: PathLike, fmt: RecordFormat) -> list:
    """Parse a file; short rows are skipped."""
    try:
        df = pd.read_csv(
            path,
            sep=r"\s+",
            skiprows=1,
            header=None,
            names=list(fmt.columns),
            float_precision="round_trip",
            on_bad_lines="skip",
            encoding="utf-8",
        )
    except pd.errors.EmptyDataError:
        return []
    return fmt.from_frame(df)


def write_movements(path: PathLike, movements: Sequence[UserMovementEvent]) -> Path:
    return write_records(path, movements, MOVEMENT_FORMAT)


def read_movements(path: PathLike) -> List[UserMovementEvent]:
    return read_records(path, MOVEMENT_FORMAT)


def write_tasks(path: PathLike, tasks: Sequence[Task]) -> Path:
    return write_records(path, tasks, TASK_FORMAT)


def read_tasks(path: PathLike) -> List[Task]:
    return read_records(path, TASK_FORMAT)


def write_results(path: PathLike, results: Sequence[SimulationResult]) -> Path:
    return write_records(path, results, RESULT_FORMAT)


def read_results(path: PathLike) -> List[SimulationResult]:
    return read_records(path, RESULT_FORMAT)
