"""
Centralized configuration using pydantic-settings.
Loads from .env file and provides typed access to all constants.
"""

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class SimulationSettings(BaseSettings):
    """Default simulation parameters and the synthetic city geometry."""

    days: int = Field(default=3, description="Simulated days ending at 'now'")
    number_of_users: int = Field(default=2000)
    locomotion_type: int = Field(default=1, description="1=walk, 2=bike, 3=drive")
    number_of_tasks: int = Field(default=30)
    execution_range: int = Field(default=100, description="Task execution radius (m)")
    task_duration: int = Field(default=60, description="Task duration (min)")
    timeslot_duration: int = Field(default=60, description="Timeslot duration (min)")
    platform_type: int = Field(default=1, description="1=MCS, 2=FOG-MCS, 3=MEC-MCS")

    # Users start inside a disk around this point (Pamplona)
    center_lat: float = Field(default=42.8371)
    center_lng: float = Field(default=-1.6389)
    start_radius_deg: float = Field(default=0.05, description="~5 km")

    # Task area used when no movements exist
    default_box_lat: float = Field(default=42.8)
    default_box_lng: float = Field(default=-1.64)
    default_box_half_span_deg: float = Field(default=0.05)

    seed: Optional[int] = Field(default=None, description="Fixed RNG seed (None = system entropy)")

    model_config = {"env_prefix": "SIM_", "env_file": ".env", "extra": "ignore"}


class PathSettings(BaseSettings):
    """File path configuration."""

    project_root: Path = Field(
        default_factory=lambda: Path(__file__).resolve().parent.parent
    )
    data_dir: Optional[Path] = Field(
        default=None,
        description="Output directory (defaults to <project_root>/data/output)"
    )

    model_config = {"env_prefix": "PATH_", "env_file": ".env", "extra": "ignore"}

    @property
    def output_dir(self) -> Path:
        if self.data_dir is not None:
            return self.data_dir
        return self.project_root / "data" / "output"

    @property
    def saved_simulations_dir(self) -> Path:
        return self.output_dir / "saved_simulations"


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field(default="INFO")
    file: Optional[Path] = Field(default=None, description="Optional log file path")

    model_config = {"env_prefix": "LOG_", "env_file": ".env", "extra": "ignore"}


class Settings(BaseSettings):
    """Root settings aggregator."""

    simulation: SimulationSettings = Field(default_factory=SimulationSettings)
    paths: PathSettings = Field(default_factory=PathSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
