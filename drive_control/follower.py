"""Lookahead path follower.

This module implements pure pursuit goal selection over a Path:
- Intersects a lookahead circle around the robot with the path
- Only ever moves forward along the path (progress never regresses)
- Falls back to the path's final waypoint when no forward intersection exists
- Converts a goal point into arc curvature and wheel speed ratios
"""

import math
from typing import Optional, Tuple

from .config import FOLLOWER_COMPLETION_TOLERANCE, FOLLOWER_LOOKAHEAD, ROBOT_WIDTH
from .geometry import Pose, Translation, wrap_angle
from .path import Path


class Follower:
    """Pure pursuit goal selector with monotonic path progress.

    Progress is tracked as a fractional waypoint index: segment index plus the
    fraction along that segment. Every goal returned by get_next_point lies at
    or beyond the previous one.

    Attributes:
        path: Path being followed.
        lookahead_distance: Radius of the goal search circle (meters).
        completion_tolerance: Distance from the final waypoint at which the
            follower locks onto it (meters).
        track_width: Distance between left and right wheels (meters).
        progress: Fractional waypoint index of the last returned goal.
    """

    def __init__(
        self,
        path: Path,
        lookahead_distance: float = FOLLOWER_LOOKAHEAD,
        completion_tolerance: float = FOLLOWER_COMPLETION_TOLERANCE,
        track_width: float = ROBOT_WIDTH,
    ):
        """Initialize the follower.

        Args:
            path: Path to follow.
            lookahead_distance: Lookahead radius (meters). Must be positive.
            completion_tolerance: Final-waypoint lock radius (meters). Must be
                non-negative.
            track_width: Drivetrain track width (meters). Must be positive.

        Raises:
            ValueError: If any parameter is out of range.
        """
        if completion_tolerance < 0:
            raise ValueError(f"Completion tolerance must be non-negative, got {completion_tolerance}")
        if track_width <= 0:
            raise ValueError(f"Track width must be positive, got {track_width}")

        self.path = path
        self.lookahead_distance = 0.0
        self.set_lookahead_distance(lookahead_distance)
        self.completion_tolerance = completion_tolerance
        self.track_width = track_width

        self.progress: float = 0.0
        self.complete: bool = False

    def set_lookahead_distance(self, lookahead_distance: float) -> None:
        """Change the lookahead radius. Takes effect on the next get_next_point call.

        Larger values trade path fidelity for shortcutting across curves.

        Raises:
            ValueError: If the distance is not positive.
        """
        if not lookahead_distance > 0:
            raise ValueError(f"Lookahead distance must be positive, got {lookahead_distance}")
        self.lookahead_distance = float(lookahead_distance)

    def reset(self) -> None:
        """Clear progress back to the start of the path.

        Call once per following-task initialization, never mid-task.
        """
        self.progress = 0.0
        self.complete = False

    def get_final_pose(self) -> Translation:
        """Return the path's last waypoint. Has no effect on progress."""
        return self.path.final_pose

    def remaining_length(self) -> float:
        """Arc length left between the current progress and the final waypoint (meters)."""
        lengths = self.path.segment_lengths
        if len(lengths) == 0:
            return 0.0
        index = min(int(self.progress), len(lengths) - 1)
        fraction = self.progress - index
        return float(lengths[index] * (1.0 - fraction) + lengths[index + 1 :].sum())

    def _lock_final(self) -> Translation:
        self.progress = float(len(self.path) - 1)
        self.complete = True
        return self.path.final_pose

    def _exit_intersection(self, index: int, center: Translation) -> Optional[float]:
        """Find where segment `index` leaves the lookahead circle.

        Solves |A + t*(B - A) - C|^2 = L^2 and keeps the larger root, which is
        the point where the path exits the circle moving forward.

        Returns:
            Fraction t in [0, 1] along the segment, or None if the segment
            does not leave the circle.
        """
        ax, ay = self.path.points[index]
        bx, by = self.path.points[index + 1]
        dx, dy = bx - ax, by - ay
        fx, fy = ax - center.x, ay - center.y

        a = dx * dx + dy * dy
        if a == 0.0:
            return None
        b = 2.0 * (fx * dx + fy * dy)
        c = fx * fx + fy * fy - self.lookahead_distance**2

        discriminant = b * b - 4.0 * a * c
        if discriminant < 0.0:
            return None

        t = (-b + math.sqrt(discriminant)) / (2.0 * a)
        if 0.0 <= t <= 1.0:
            return float(t)
        return None

    def get_next_point(self, current_pose: Pose) -> Translation:
        """Select the next goal point for the robot.

        Searches forward from the last progress for the first place where the
        path leaves a circle of radius lookahead_distance centered on the
        robot. If there is none (the robot is within lookahead of the end, or
        has lost the path entirely), the final waypoint is returned. Progress
        is only pinned to the end when little path is left; otherwise it is
        kept so following resumes once the robot is back near the path.

        Args:
            current_pose: Current robot pose.

        Returns:
            Goal position on the path.
        """
        if self.complete or len(self.path) == 1:
            return self._lock_final()

        position = current_pose.translation

        # Lock onto the final waypoint once we are close to it and there is
        # little path left
        near_final = position.distance(self.path.final_pose) <= self.completion_tolerance
        if near_final and self.remaining_length() <= self.lookahead_distance + self.completion_tolerance:
            return self._lock_final()

        start_index = int(self.progress)
        for i in range(start_index, len(self.path) - 1):
            t = self._exit_intersection(i, position)
            if t is None:
                continue

            candidate = i + t
            if candidate < self.progress:
                continue

            self.progress = candidate
            return self.path.point_at(candidate)

        if self.remaining_length() <= self.lookahead_distance + self.completion_tolerance:
            return self._lock_final()
        return self.path.final_pose

    def compute_curvature(self, current_pose: Pose, goal: Translation) -> float:
        """Pure pursuit arc curvature from the pose to the goal (1/m)."""
        return pursuit_curvature(current_pose, goal)

    def wheel_speed_ratio(self, curvature: float) -> Tuple[float, float]:
        """Normalized (left, right) wheel ratios for this follower's track width."""
        return wheel_speed_ratio(curvature, self.track_width)


def pursuit_curvature(current_pose: Pose, goal: Translation) -> float:
    """Compute the pure pursuit arc curvature from the pose to the goal.

    Curvature formula: kappa = 2 * sin(alpha) / L
    where alpha is the goal bearing relative to heading and L the distance.

    Args:
        current_pose: Current robot pose.
        goal: Goal position.

    Returns:
        Signed curvature (1/m). Positive turns counter-clockwise.
    """
    dx = goal.x - current_pose.x
    dy = goal.y - current_pose.y
    distance = math.hypot(dx, dy)

    if distance < 1e-6:
        return 0.0

    alpha = wrap_angle(math.atan2(dy, dx) - current_pose.theta)
    return 2.0 * math.sin(alpha) / distance


def wheel_speed_ratio(curvature: float, track_width: float = ROBOT_WIDTH) -> Tuple[float, float]:
    """Convert curvature into normalized (left, right) wheel speed ratios.

    For a differential drive following an arc of curvature kappa:
        left = 1 - kappa * W / 2
        right = 1 + kappa * W / 2
    scaled so the faster wheel is at 1.0.

    Args:
        curvature: Arc curvature (1/m).
        track_width: Distance between left and right wheels (meters).

    Returns:
        Tuple of (left, right) ratios in [-1, 1].
    """
    half_track = track_width / 2.0
    left = 1.0 - curvature * half_track
    right = 1.0 + curvature * half_track
    scale = max(abs(left), abs(right))
    return left / scale, right / scale
