"""Path definition for path following.

A Path is an ordered, immutable sequence of waypoints. It is built once before
a following task starts and never mutated while the task runs. This module
also samples the Lemniscate of Gerono used by the simulation demo.
"""

from typing import Iterable, Iterator, Tuple

import numpy as np
import numpy.typing as npt

from .geometry import Translation


class Path:
    """Immutable polyline of waypoints.

    Waypoints are stored as a read-only (N, 2) float array. The last waypoint
    is the path's final pose.

    Attributes:
        points: (N, 2) array of waypoint coordinates (meters).
        segment_lengths: (N-1,) array of distances between consecutive waypoints.
        length: Total arc length of the polyline (meters).
    """

    def __init__(self, points: npt.ArrayLike) -> None:
        """Build a path from waypoint coordinates.

        Args:
            points: Sequence of (x, y) pairs, or an (N, 2) array.

        Raises:
            ValueError: If the path is empty, badly shaped, or not finite.
        """
        array = np.array(points, dtype=np.float64)
        if array.ndim != 2 or array.shape[1] != 2:
            raise ValueError(f"Path waypoints must have shape (N, 2), got {array.shape}")
        if array.shape[0] == 0:
            raise ValueError("Path must contain at least one waypoint")
        if not np.all(np.isfinite(array)):
            raise ValueError("Path waypoints must be finite")

        array.setflags(write=False)
        self.points: npt.NDArray[np.float64] = array

        lengths = np.hypot(np.diff(array[:, 0]), np.diff(array[:, 1]))
        lengths.setflags(write=False)
        self.segment_lengths: npt.NDArray[np.float64] = lengths
        self.length: float = float(lengths.sum())

    @classmethod
    def from_points(cls, points: Iterable[Tuple[float, float]]) -> "Path":
        """Build a path from any iterable of (x, y) pairs, generators included."""
        return cls(list(points))

    def __len__(self) -> int:
        return int(self.points.shape[0])

    def __getitem__(self, index: int) -> Translation:
        x, y = self.points[index]
        return Translation(float(x), float(y))

    def __iter__(self) -> Iterator[Translation]:
        for i in range(len(self)):
            yield self[i]

    def __repr__(self) -> str:
        return f"Path(waypoints={len(self)}, length={self.length:.3f}m)"

    @property
    def start(self) -> Translation:
        return self[0]

    @property
    def final_pose(self) -> Translation:
        """Last waypoint of the path."""
        return self[len(self) - 1]

    def point_at(self, progress: float) -> Translation:
        """Interpolate the path at a fractional waypoint index.

        Args:
            progress: Segment index plus fraction along that segment,
                clamped to [0, N-1].

        Returns:
            Interpolated position on the path.
        """
        last = len(self) - 1
        progress = max(0.0, min(float(last), progress))
        index = int(progress)
        if index >= last:
            return self.final_pose
        t = progress - index
        x0, y0 = self.points[index]
        x1, y1 = self.points[index + 1]
        return Translation(float(x0 + t * (x1 - x0)), float(y0 + t * (y1 - y0)))


# ============================================================================
# Lemniscate of Gerono (demo reference path)
# ============================================================================


def compute_k(t: float) -> float:
    """Compute the Lemniscate parameter k for time t.

    Args:
        t: Time in seconds

    Returns:
        Path parameter k in radians
    """
    k = np.pi * t / 10.0 - np.pi / 2.0 if t < 20.0 else 3.0 * np.pi / 2.0
    return k


def reference_position(t: float) -> Tuple[float, float]:
    """Compute the Lemniscate of Gerono position at time t.

    The curve is a figure eight defined by:
        x = -2 * sin(k) * cos(k)
        y = 2 * (sin(k) + 1)

    Args:
        t: Time in seconds

    Returns:
        Tuple of (x, y) in meters
    """
    k = compute_k(t)
    x_ref = -2.0 * np.sin(k) * np.cos(k)
    y_ref = 2.0 * (np.sin(k) + 1.0)
    return float(x_ref), float(y_ref)


def lemniscate_path(t_max: float = 20.0, dt: float = 0.1) -> Path:
    """Sample the Lemniscate of Gerono into a Path.

    Args:
        t_max: Parameter span in seconds (default: 20.0, one full figure eight)
        dt: Sampling step in seconds (default: 0.1)

    Returns:
        Path starting and ending at the origin.
    """
    t_array = np.arange(0.0, t_max + dt / 2.0, dt)
    return Path.from_points(reference_position(t) for t in t_array)
