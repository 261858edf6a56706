"""Differential-drive chassis interface and simulated drivetrain.

The Chassis protocol is the boundary a path-following command drives. The
SimulatedDriveTrain implements it with unicycle kinematics so the control
core can run without hardware; it is also a periodic subsystem, sampling its
odometry in the input phase and applying wheel commands in the output phase.
"""

import enum
import logging
import math
from typing import Optional, Protocol, Tuple

from .config import (
    DEFAULT_MAX_SPEED,
    GOAL_SLOWDOWN_RADIUS,
    HEADING_GAIN,
    LOOPER_PERIOD,
    OMEGA_MAX,
    ROBOT_WIDTH,
    V_MAX,
)
from .follower import pursuit_curvature, wheel_speed_ratio
from .geometry import Pose, Translation, epsilon_equals, wrap_angle
from .telemetry import TelemetrySink


class ChassisSide(enum.Enum):
    """Which physical face of the chassis is the direction of travel."""

    FRONT = "front"
    BACK = "back"


class Chassis(Protocol):
    """Commands a path-following task needs from a drivetrain."""

    width_meters: float

    def get_pose(self) -> Pose: ...

    def set_goal_pose(self, goal: Translation, epsilon: Translation) -> None: ...

    def set_front_side(self, side: ChassisSide) -> None: ...

    def set_max_speed_percent(self, percent: float) -> None: ...

    def stop(self) -> None: ...


def inverse_kinematics(
    v_cmd: float, omega_cmd: float, track_width: float = ROBOT_WIDTH, v_limit: float = V_MAX
) -> Tuple[float, float]:
    """
    Compute wheel velocities from desired linear and angular velocities.

    For a differential drive robot:
        v_left = v - (L/2) * omega
        v_right = v + (L/2) * omega

    where L is the track width.

    Args:
        v_cmd: Desired linear velocity of the robot center (m/s)
        omega_cmd: Desired angular velocity of the robot (rad/s)
                   Positive omega results in counter-clockwise rotation
        track_width: Distance between wheels (m)
        v_limit: Symmetric wheel velocity limit (m/s)

    Returns:
        tuple[float, float]: (v_left, v_right) wheel velocities in m/s,
                            clamped to [-v_limit, v_limit]

    Example:
        >>> v_left, v_right = inverse_kinematics(1.0, 0.5)
        >>> # Robot moves forward at 1 m/s while turning left
    """
    v_left = v_cmd - (track_width / 2.0) * omega_cmd
    v_right = v_cmd + (track_width / 2.0) * omega_cmd

    v_left = max(-v_limit, min(v_limit, v_left))
    v_right = max(-v_limit, min(v_limit, v_right))

    return v_left, v_right


def forward_kinematics(v_left: float, v_right: float, track_width: float = ROBOT_WIDTH) -> Tuple[float, float]:
    """Compute (v, omega) of the robot center from wheel velocities."""
    v = (v_left + v_right) / 2.0
    omega = (v_right - v_left) / track_width
    return v, omega


class SimulatedDriveTrain:
    """Kinematic tank drive that follows a pure pursuit arc to a goal point.

    Attributes:
        name: Subsystem name for diagnostics.
        width_meters: Track width (m).
        period: Integration step, one looper tick (s).
        pose: Latest sampled pose.
        v_left, v_right: Current wheel velocities (m/s).
        goal: Current goal point, or None when stopped.
        goal_epsilon: Axis-wise tolerance for at_goal.
        front_side: Side of the chassis treated as forward.
        max_speed_percent: Output cap as a fraction of V_MAX.
    """

    def __init__(
        self,
        initial_pose: Pose = Pose(0.0, 0.0, 0.0),
        width_meters: float = ROBOT_WIDTH,
        period: float = LOOPER_PERIOD,
        name: str = "DriveTrain",
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if width_meters <= 0:
            raise ValueError(f"Track width must be positive, got {width_meters}")
        if period <= 0:
            raise ValueError(f"Period must be positive, got {period}")

        self.name = name
        self.width_meters = width_meters
        self.period = period
        self.logger = logger or logging.getLogger(__name__)

        self.pose = initial_pose
        self.v_left: float = 0.0
        self.v_right: float = 0.0

        self.goal: Optional[Translation] = None
        self.goal_epsilon = Translation(0.0, 0.0)
        self.front_side = ChassisSide.FRONT
        self.max_speed_percent = DEFAULT_MAX_SPEED

    # ------------------------------------------------------------------
    # Chassis interface
    # ------------------------------------------------------------------

    def get_pose(self) -> Pose:
        return self.pose

    def set_goal_pose(self, goal: Translation, epsilon: Translation) -> None:
        self.goal = goal
        self.goal_epsilon = epsilon

    def set_front_side(self, side: ChassisSide) -> None:
        self.front_side = side

    def set_max_speed_percent(self, percent: float) -> None:
        if not 0.0 < percent <= 1.0:
            raise ValueError(f"Max speed must be in (0, 1], got {percent}")
        self.max_speed_percent = percent

    def stop(self) -> None:
        """Drop the goal and zero the wheels."""
        self.logger.debug(f"{self.name} stopping")
        self.goal = None
        self.v_left = 0.0
        self.v_right = 0.0

    @property
    def at_goal(self) -> bool:
        if self.goal is None:
            return False
        return epsilon_equals(self.pose.translation, self.goal, self.goal_epsilon)

    # ------------------------------------------------------------------
    # Periodic subsystem
    # ------------------------------------------------------------------

    def periodic_input(self) -> None:
        """Integrate odometry over one period with the current wheel speeds."""
        v, omega = forward_kinematics(self.v_left, self.v_right, self.width_meters)
        theta = self.pose.theta
        dt = self.period

        # Integrate along the midpoint heading of the step
        mid_theta = theta + omega * dt / 2.0
        x = self.pose.x + v * math.cos(mid_theta) * dt
        y = self.pose.y + v * math.sin(mid_theta) * dt
        self.pose = Pose(x, y, wrap_angle(theta + omega * dt))

    def periodic_output(self) -> None:
        """Compute wheel commands that steer toward the current goal."""
        if self.goal is None or self.at_goal:
            self.v_left = 0.0
            self.v_right = 0.0
            return

        self.v_left, self.v_right = self.compute_wheel_speeds(self.goal)

    def compute_wheel_speeds(self, goal: Translation) -> Tuple[float, float]:
        """Wheel speeds that drive the pure pursuit arc through a goal.

        The arc curvature is split into wheel ratios for this track width and
        scaled by the speed cap, tapering near the goal. A goal behind the
        driving face is first turned toward in place. Driving with the back
        side as front flips the heading by pi, so the travel-frame left wheel
        is the physical right wheel running backwards.

        Returns:
            Tuple of (v_left, v_right) in m/s.
        """
        dx = goal.x - self.pose.x
        dy = goal.y - self.pose.y
        distance = math.hypot(dx, dy)

        reverse = self.front_side is ChassisSide.BACK
        heading = wrap_angle(self.pose.theta + math.pi) if reverse else self.pose.theta
        heading_error = wrap_angle(math.atan2(dy, dx) - heading)
        speed = V_MAX * self.max_speed_percent

        if math.cos(heading_error) <= 0.0:
            omega_cmd = max(-OMEGA_MAX, min(OMEGA_MAX, HEADING_GAIN * heading_error))
            return inverse_kinematics(0.0, omega_cmd, self.width_meters, speed)

        curvature = pursuit_curvature(Pose(self.pose.x, self.pose.y, heading), goal)
        left, right = wheel_speed_ratio(curvature, self.width_meters)
        speed *= min(1.0, distance / GOAL_SLOWDOWN_RADIUS)

        if reverse:
            return -speed * right, -speed * left
        return speed * left, speed * right

    def output_telemetry(self, telemetry: TelemetrySink) -> None:
        telemetry.put_number(f"{self.name} X", self.pose.x)
        telemetry.put_number(f"{self.name} Y", self.pose.y)
        telemetry.put_number(f"{self.name} Theta", self.pose.degrees)
        telemetry.put_number(f"{self.name} Left Velocity", self.v_left)
        telemetry.put_number(f"{self.name} Right Velocity", self.v_right)
        telemetry.put_boolean(f"{self.name} At Goal", self.at_goal)
