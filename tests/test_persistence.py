import random

import pytest

from crowdsense.data_layer import text_format
from crowdsense.data_layer.simulation_repository import FileSimulationRepository
from crowdsense.simulation_layer.errors import PersistenceError, SimulationNotFoundError
from crowdsense.simulation_layer.models import SimulationResult, Task, UserMovementEvent


@pytest.fixture
def movements():
    rng = random.Random(1)
    return [
        UserMovementEvent(
            user_id=uid,
            latitude=42.8 + rng.uniform(-0.05, 0.05),
            longitude=-1.64 + rng.uniform(-0.05, 0.05),
            timestamp=1_700_000_000.0 + rng.uniform(0, 86400),
            day=0,
            hour=rng.randrange(24),
            minute=rng.randrange(60),
            second=rng.randrange(60),
        )
        for uid in range(1, 6)
    ]


@pytest.fixture
def tasks():
    rng = random.Random(2)
    return [
        Task(tid, 42.8 + rng.random() / 10, -1.64 + rng.random() / 10,
             1_700_000_000.0 + rng.random() * 1000, 60, 100, 30)
        for tid in range(1, 4)
    ]


@pytest.fixture
def results():
    return [SimulationResult(1, 0), SimulationResult(2, 4), SimulationResult(3, 17)]


class TestTextFormat:
    def test_header_and_layout(self, tmp_path, tasks):
        path = text_format.write_tasks(tmp_path / "tasks.txt", tasks)
        lines = path.read_text(encoding="utf-8").splitlines()
        assert lines[0] == "id_task lat lon timestamp duration distance timeslots"
        assert len(lines) == len(tasks) + 1
        assert lines[1].split()[0] == "1"
        assert lines[1].split()[4:] == ["60", "100", "30"]

    def test_movement_header(self, tmp_path, movements):
        path = text_format.write_movements(tmp_path / "m.txt", movements)
        header = path.read_text(encoding="utf-8").splitlines()[0]
        assert header == "user_id lat lon timestamp day hour minute second"

    def test_movements_round_trip(self, tmp_path, movements):
        path = text_format.write_movements(tmp_path / "m.txt", movements)
        loaded = text_format.read_movements(path)
        assert len(loaded) == len(movements)
        for a, b in zip(movements, loaded):
            assert b.user_id == a.user_id
            assert b.latitude == pytest.approx(a.latitude, abs=1e-12)
            assert b.longitude == pytest.approx(a.longitude, abs=1e-12)
            assert b.timestamp == pytest.approx(a.timestamp, abs=1e-6)
            assert (b.day, b.hour, b.minute, b.second) == (a.day, a.hour, a.minute, a.second)

    def test_tasks_round_trip(self, tmp_path, tasks):
        loaded = text_format.read_tasks(text_format.write_tasks(tmp_path / "t.txt", tasks))
        assert [t.task_id for t in loaded] == [1, 2, 3]
        for a, b in zip(tasks, loaded):
            assert b.latitude == pytest.approx(a.latitude, abs=1e-12)
            assert (b.duration, b.distance, b.timeslots) == (a.duration, a.distance, a.timeslots)

    def test_results_round_trip(self, tmp_path, results):
        path = text_format.write_results(tmp_path / "r.txt", results)
        assert text_format.read_results(path) == results

    def test_empty_collection(self, tmp_path):
        path = text_format.write_results(tmp_path / "r.txt", [])
        assert path.read_text(encoding="utf-8").strip() == "task_id candidates"
        assert text_format.read_results(path) == []

    def test_reads_hand_written_file(self, tmp_path):
        path = tmp_path / "r.txt"
        path.write_text("task_id candidates\n1   3\n2\t5\n3\n", encoding="utf-8")
        assert text_format.read_results(path) == [SimulationResult(1, 3), SimulationResult(2, 5)]


class TestFileRepository:
    @pytest.fixture
    def repo(self, tmp_path):
        return FileSimulationRepository(tmp_path / "saved")

    def test_list_when_missing(self, repo):
        assert repo.list_simulations() == []

    def test_save_load(self, repo, movements, tasks, results):
        run_id = repo.save_simulation(movements, tasks, results)
        assert repo.list_simulations() == [run_id]
        assert sorted(p.name for p in (repo.root / run_id).iterdir()) == [
            "results.txt", "tasks.txt", "user_movements.txt",
        ]
        saved = repo.load_simulation(run_id)
        assert len(saved.user_movements) == len(movements)
        assert [t.task_id for t in saved.tasks] == [1, 2, 3]
        assert saved.results == results

    def test_ids_unique_within_a_second(self, repo, results):
        first = repo.save_simulation([], [], results)
        second = repo.save_simulation([], [], results)
        assert first != second
        assert len(repo.list_simulations()) == 2

    def test_load_missing(self, repo):
        with pytest.raises(SimulationNotFoundError):
            repo.load_simulation("20000101_000000")

    def test_rejects_path_traversal(self, repo):
        with pytest.raises(SimulationNotFoundError):
            repo.load_simulation("../outside")
        assert repo.delete_simulation("..") is False

    def test_delete(self, repo, results):
        run_id = repo.save_simulation([], [], results)
        assert repo.delete_simulation(run_id) is True
        assert repo.list_simulations() == []
        assert repo.delete_simulation(run_id) is False

    def test_save_failure_raises(self, tmp_path, results):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        repo = FileSimulationRepository(blocker / "saved")
        with pytest.raises(PersistenceError):
            repo.save_simulation([], [], results)
