import pytest

from config import reset_settings
from crowdsense.data_layer.simulation_repository import FileSimulationRepository
from crowdsense.simulation_layer.engine import SimulationEngine
from crowdsense.simulation_layer.models import LocomotionType, SimulationParameters

from tests.helpers import NOW


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    monkeypatch.setenv("PATH_DATA_DIR", str(tmp_path / "output"))
    monkeypatch.delenv("SIM_SEED", raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def small_params():
    return SimulationParameters(
        days=1,
        number_of_users=8,
        locomotion_type=LocomotionType.BIKE,
        number_of_tasks=12,
        execution_range=500,
        task_duration=60,
        timeslot_duration=30,
    )


@pytest.fixture
def repository(tmp_path):
    return FileSimulationRepository(tmp_path / "saved_simulations")


@pytest.fixture
def engine(small_params, repository, tmp_path):
    return SimulationEngine(
        parameters=small_params,
        repository=repository,
        seed=42,
        now=NOW,
        output_dir=tmp_path / "output",
    )
