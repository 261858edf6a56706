import matplotlib

matplotlib.use("Agg")

from typing import List, Optional

import pytest

from drive_control.chassis import ChassisSide
from drive_control.geometry import Pose, Translation


class FakeClock:
    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSubsystem:
    """Appends '<name>.<phase>' to a shared event list; optionally costs time or fails."""

    def __init__(
        self,
        name: str,
        events: List[str],
        clock: Optional[FakeClock] = None,
        cost: float = 0.0,
        fail_input: bool = False,
        fail_output: bool = False,
        fail_telemetry: bool = False,
    ):
        self.name = name
        self.events = events
        self.clock = clock
        self.cost = cost
        self.fail_input = fail_input
        self.fail_output = fail_output
        self.fail_telemetry = fail_telemetry

    def _spend(self):
        if self.clock is not None:
            self.clock.advance(self.cost)

    def periodic_input(self):
        self._spend()
        self.events.append(f"{self.name}.input")
        if self.fail_input:
            raise RuntimeError(f"{self.name} input exploded")

    def periodic_output(self):
        self._spend()
        self.events.append(f"{self.name}.output")
        if self.fail_output:
            raise RuntimeError(f"{self.name} output exploded")

    def output_telemetry(self, telemetry):
        if self.fail_telemetry:
            raise RuntimeError(f"{self.name} telemetry exploded")
        telemetry.put_string(f"{self.name} Status", "ok")


class FakeChassis:
    def __init__(self, pose: Pose = Pose(0.0, 0.0, 0.0), width_meters: float = 0.66, stop_error=None):
        self.pose = pose
        self.width_meters = width_meters
        self.stop_error = stop_error
        self.goals: List[Translation] = []
        self.epsilons: List[Translation] = []
        self.front_side: Optional[ChassisSide] = None
        self.max_speed: Optional[float] = None
        self.stop_calls = 0

    def get_pose(self) -> Pose:
        return self.pose

    def set_goal_pose(self, goal: Translation, epsilon: Translation) -> None:
        self.goals.append(goal)
        self.epsilons.append(epsilon)

    def set_front_side(self, side: ChassisSide) -> None:
        self.front_side = side

    def set_max_speed_percent(self, percent: float) -> None:
        self.max_speed = percent

    def stop(self) -> None:
        self.stop_calls += 1
        if self.stop_error is not None:
            raise self.stop_error


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def events():
    return []


@pytest.fixture
def chassis():
    return FakeChassis()
