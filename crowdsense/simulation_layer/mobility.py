"""
Synthetic user mobility.

Each user performs a random walk: start somewhere inside a disk around the
city center, then repeatedly pick a speed, a segment duration and a heading,
and jump to the resulting position. One UserMovementEvent is recorded per stop.
"""

import logging
import math
import random
from datetime import datetime
from typing import List, Optional, Tuple

from config import get_settings
from crowdsense.simulation_layer.models import (
    LOCOMOTION_SPEEDS,
    SECONDS_PER_DAY,
    LocomotionType,
    SimulationParameters,
    SimulationWindow,
    UserMovementEvent,
)

logger = logging.getLogger(__name__)

METERS_PER_DEGREE_LAT = 111000.0

# Segment durations are whole minutes in [5, 15)
MIN_SEGMENT_MINUTES = 5
SEGMENT_MINUTE_CHOICES = 10


class MobilityGenerator:
    """Random-walk trajectory generator parameterized by locomotion speed."""

    def __init__(
        self,
        parameters: SimulationParameters,
        rng: Optional[random.Random] = None,
        seed: Optional[int] = None,
        center: Optional[Tuple[float, float]] = None,
        radius_deg: Optional[float] = None,
    ):
        settings = get_settings()
        self.parameters = parameters
        self.rng = rng or random.Random(seed)
        self.center = center or (
            settings.simulation.center_lat,
            settings.simulation.center_lng,
        )
        self.radius_deg = (
            radius_deg if radius_deg is not None else settings.simulation.start_radius_deg
        )
        self.min_speed, self.max_speed = LOCOMOTION_SPEEDS.get(
            parameters.locomotion_type, LOCOMOTION_SPEEDS[LocomotionType.WALK]
        )

    def _random_start(self) -> Tuple[float, float]:
        """Uniform point inside the start disk."""
        r = self.radius_deg * math.sqrt(self.rng.random())
        theta = self.rng.uniform(0, 2 * math.pi)
        return (
            self.center[0] + r * math.cos(theta),
            self.center[1] + r * math.sin(theta),
        )

    @staticmethod
    def make_event(
        user_id: int, lat: float, lng: float, timestamp: float, window_start: float
    ) -> UserMovementEvent:
        """Build an event, deriving day/hour/minute/second from the timestamp."""
        local = datetime.fromtimestamp(timestamp)
        return UserMovementEvent(
            user_id=user_id,
            latitude=lat,
            longitude=lng,
            timestamp=timestamp,
            day=int((timestamp - window_start) // SECONDS_PER_DAY),
            hour=local.hour,
            minute=local.minute,
            second=local.second,
        )

    def _step(self, lat: float, lng: float) -> Tuple[float, float, float]:
        """Advance one segment. Returns (lat, lng, elapsed_seconds)."""
        speed = self.rng.uniform(self.min_speed, self.max_speed)
        duration = 60.0 * (MIN_SEGMENT_MINUTES + self.rng.randrange(SEGMENT_MINUTE_CHOICES))
        displacement = speed * duration
        heading = self.rng.uniform(0, 2 * math.pi)

        d_lat = displacement * math.cos(heading) / METERS_PER_DEGREE_LAT
        d_lng = displacement * math.sin(heading) / (
            METERS_PER_DEGREE_LAT * math.cos(math.radians(lat))
        )
        return lat + d_lat, lng + d_lng, duration

    def generate_user(self, user_id: int, window: SimulationWindow) -> List[UserMovementEvent]:
        """Trajectory of a single user over the window."""
        lat, lng = self._random_start()
        current_time = window.start
        events = []

        while current_time < window.end:
            events.append(self.make_event(user_id, lat, lng, current_time, window.start))
            lat, lng, elapsed = self._step(lat, lng)
            current_time += elapsed

        return events

    def generate(self, window: SimulationWindow) -> List[UserMovementEvent]:
        """Trajectories of every user, ordered by user id then time."""
        events: List[UserMovementEvent] = []
        for user_id in range(1, self.parameters.number_of_users + 1):
            events.extend(self.generate_user(user_id, window))

        logger.info(
            "Generated %d movement events for %d users (%s)",
            len(events),
            self.parameters.number_of_users,
            self.parameters.locomotion_type.name.lower(),
        )
        return events
