import math
import random

import numpy as np
import pytest

from crowdsense.data_layer.geo import EARTH_RADIUS_M, distance_meters_array
from crowdsense.simulation_layer import candidate_matcher
from crowdsense.simulation_layer.candidate_matcher import CandidateMatcher
from crowdsense.simulation_layer.errors import ComputationError
from crowdsense.simulation_layer.mobility import MobilityGenerator
from crowdsense.simulation_layer.models import SimulationWindow, Task, UserMovementEvent
from crowdsense.simulation_layer.task_generator import TaskGenerator

from tests.helpers import NOW


def meters_north(meters: float) -> float:
    return meters / (EARTH_RADIUS_M * math.pi / 180)


def event(user_id, lat, lon, timestamp):
    return UserMovementEvent(user_id, lat, lon, timestamp, 0, 0, 0, 0)


def task(task_id=1, lat=0.0, lon=0.0, timestamp=1000.0, duration=60, distance=100, timeslots=60):
    return Task(task_id, lat, lon, timestamp, duration, distance, timeslots)


@pytest.fixture
def matcher():
    return CandidateMatcher()


class TestScenarios:
    def test_user_at_task_location_and_time(self, matcher):
        results = matcher.compute([event(1, 0.0, 0.0, 1000.0)], [task()])
        assert results[0].candidates == 1

    def test_event_before_window(self, matcher):
        results = matcher.compute([event(1, 0.0, 0.0, 1000.0)], [task(timestamp=2000.0)])
        assert results[0].candidates == 0

    def test_only_near_user_counts(self, matcher):
        movements = [
            event(1, meters_north(50), 0.0, 1000.0),
            event(2, meters_north(150), 0.0, 1000.0),
        ]
        assert matcher.compute(movements, [task()])[0].candidates == 1

    def test_window_is_inclusive_on_both_ends(self, matcher):
        movements = [event(1, 0.0, 0.0, 1000.0), event(2, 0.0, 0.0, 1060.0)]
        assert matcher.compute(movements, [task()])[0].candidates == 2
        assert matcher.compute([event(3, 0.0, 0.0, 1060.5)], [task()])[0].candidates == 0

    def test_window_uses_duration_over_timeslots(self, matcher):
        # 60 / 30 * 60 = 120 s
        movements = [event(1, 0.0, 0.0, 1110.0)]
        assert matcher.compute(movements, [task(timeslots=30)])[0].candidates == 1
        assert matcher.compute(movements, [task(timeslots=60)])[0].candidates == 0

    def test_user_counted_once(self, matcher):
        movements = [event(1, 0.0, 0.0, t) for t in (1000.0, 1010.0, 1020.0)]
        assert matcher.compute(movements, [task()])[0].candidates == 1

    def test_distance_boundary_is_inclusive(self, matcher):
        lat = meters_north(100)
        exact = float(distance_meters_array(0.0, 0.0, np.array([lat]), np.array([0.0]))[0])
        movements = [event(1, lat, 0.0, 1000.0)]
        assert matcher.compute(movements, [task(distance=exact)])[0].candidates == 1
        just_short = float(np.nextafter(exact, 0.0))
        assert matcher.compute(movements, [task(distance=just_short)])[0].candidates == 0

    def test_no_movements(self, matcher):
        results = matcher.compute([], [task(1), task(2)])
        assert [(r.task_id, r.candidates) for r in results] == [(1, 0), (2, 0)]

    def test_no_tasks(self, matcher):
        assert matcher.compute([event(1, 0.0, 0.0, 1000.0)], []) == []

    def test_unsorted_movements(self, matcher):
        movements = [
            event(2, 0.0, 0.0, 5000.0),
            event(1, 0.0, 0.0, 1030.0),
            event(3, 0.0, 0.0, 10.0),
        ]
        assert matcher.compute(movements, [task()])[0].candidates == 1

    def test_candidate_user_ids(self, matcher):
        movements = [
            event(4, 0.0, 0.0, 1000.0),
            event(7, meters_north(20), 0.0, 1030.0),
            event(9, meters_north(500), 0.0, 1030.0),
        ]
        assert matcher.candidate_user_ids(task(), movements) == {4, 7}


class TestProperties:
    @pytest.fixture
    def generated(self, small_params):
        window = SimulationWindow.ending_at(small_params.days, now=NOW)
        movements = MobilityGenerator(small_params, seed=11).generate(window)
        tasks = TaskGenerator(small_params, seed=12).generate(window, movements)
        return movements, tasks

    def test_bijection_with_tasks(self, matcher, generated):
        movements, tasks = generated
        results = matcher.compute(movements, tasks)
        assert [r.task_id for r in results] == [t.task_id for t in tasks]

    def test_candidates_bounded(self, matcher, generated, small_params):
        movements, tasks = generated
        for t, r in zip(tasks, matcher.compute(movements, tasks)):
            in_window = {
                m.user_id for m in movements
                if t.timestamp <= m.timestamp <= t.timestamp + t.window_seconds
            }
            assert 0 <= r.candidates <= small_params.number_of_users
            assert r.candidates <= len(in_window)

    def test_matches_brute_force(self, matcher, generated):
        from crowdsense.data_layer.geo import distance_meters

        movements, tasks = generated
        for t, r in zip(tasks, matcher.compute(movements, tasks)):
            expected = {
                m.user_id for m in movements
                if t.timestamp <= m.timestamp <= t.timestamp + t.window_seconds
                and distance_meters(t.latitude, t.longitude, m.latitude, m.longitude) <= t.distance
            }
            assert r.candidates == len(expected)

    def test_pure_function(self, matcher, generated):
        movements, tasks = generated
        assert matcher.compute(movements, tasks) == matcher.compute(movements, tasks)

    def test_dense_population_finds_candidates(self, matcher):
        rng = random.Random(3)
        movements = [
            event(uid, rng.uniform(-0.0005, 0.0005), rng.uniform(-0.0005, 0.0005), 1000.0 + rng.uniform(0, 60))
            for uid in range(1, 51)
        ]
        result = matcher.compute(movements, [task(distance=200)])[0]
        assert result.candidates == 50


class TestFailures:
    def test_wraps_errors_without_partial_results(self, matcher, monkeypatch):
        def boom(*args, **kwargs):
            raise FloatingPointError("bad input")

        monkeypatch.setattr(candidate_matcher, "distance_meters_array", boom)
        with pytest.raises(ComputationError):
            matcher.compute([event(1, 0.0, 0.0, 1000.0)], [task()])
