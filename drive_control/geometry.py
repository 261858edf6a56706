"""Planar geometry types shared by the follower, chassis and command."""

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class Translation:
    """A position on the field (meters)."""

    x: float
    y: float

    def distance(self, other: "Translation") -> float:
        return math.hypot(other.x - self.x, other.y - self.y)

    def __sub__(self, other: "Translation") -> "Translation":
        return Translation(self.x - other.x, self.y - other.y)

    def __add__(self, other: "Translation") -> "Translation":
        return Translation(self.x + other.x, self.y + other.y)


@dataclass(frozen=True)
class Pose:
    """Immutable snapshot of the robot's position and heading.

    Attributes:
        x: X position (m)
        y: Y position (m)
        theta: Heading (rad), counter-clockwise from +x
    """

    x: float
    y: float
    theta: float = 0.0

    @property
    def translation(self) -> Translation:
        return Translation(self.x, self.y)

    @property
    def degrees(self) -> float:
        """Heading in degrees."""
        return math.degrees(self.theta)


def wrap_angle(angle: float) -> float:
    """Normalize an angle to [-pi, pi]."""
    return math.atan2(math.sin(angle), math.cos(angle))


def epsilon_equals(a: Translation, b: Translation, epsilon: Translation) -> bool:
    """Axis-wise tolerance check.

    True when |a.x - b.x| <= epsilon.x and |a.y - b.y| <= epsilon.y. This is a
    box test, not a radial one.
    """
    return abs(a.x - b.x) <= epsilon.x and abs(a.y - b.y) <= epsilon.y
