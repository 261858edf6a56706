import numpy as np
import pytest

from drive_control.geometry import Pose, Translation, epsilon_equals, wrap_angle
from drive_control.path import Path, lemniscate_path, reference_position


def test_path_stores_read_only_waypoints():
    path = Path([(0.0, 0.0), (3.0, 4.0)])
    assert len(path) == 2
    assert path.length == pytest.approx(5.0)
    assert path.final_pose == Translation(3.0, 4.0)
    assert path.start == Translation(0.0, 0.0)

    with pytest.raises(ValueError):
        path.points[0, 0] = 1.0


def test_path_copies_input():
    points = np.array([[0.0, 0.0], [1.0, 0.0]])
    path = Path(points)
    points[1, 0] = 5.0
    assert path.final_pose == Translation(1.0, 0.0)


@pytest.mark.parametrize(
    "points",
    [
        [],
        [(0.0, 0.0, 0.0)],
        [(0.0, float("nan"))],
        [(0.0, 0.0), (float("inf"), 1.0)],
    ],
)
def test_invalid_paths_rejected(points):
    with pytest.raises(ValueError):
        Path(points)


def test_from_points_accepts_generator():
    a = Path.from_points((float(i), 2.0 * i) for i in range(2))
    b = Path([(0.0, 0.0), (1.0, 2.0)])
    assert list(a) == list(b)
    assert "waypoints=2" in repr(a)


def test_point_at_interpolates_and_clamps():
    path = Path([(0.0, 0.0), (1.0, 0.0), (1.0, 1.0)])
    assert path.point_at(0.5) == Translation(0.5, 0.0)
    assert path.point_at(1.25) == Translation(1.0, 0.25)
    assert path.point_at(-1.0) == Translation(0.0, 0.0)
    assert path.point_at(7.0) == Translation(1.0, 1.0)


def test_lemniscate_samples():
    path = lemniscate_path(t_max=19.0, dt=0.1)
    assert len(path) == 191
    assert path.start.x == pytest.approx(0.0)
    assert path.start.y == pytest.approx(0.0)
    assert path.final_pose.distance(path.start) > 0.1


def test_lemniscate_top_and_crossing():
    x, y = reference_position(10.0)
    assert (x, y) == pytest.approx((0.0, 4.0))
    x, y = reference_position(5.0)
    assert (x, y) == pytest.approx((0.0, 2.0))


def test_full_lemniscate_closes():
    path = lemniscate_path()
    assert path.final_pose.distance(path.start) == pytest.approx(0.0, abs=1e-9)


def test_epsilon_equals_is_a_box():
    eps = Translation(0.1, 0.1)
    assert epsilon_equals(Translation(0.0, 0.0), Translation(0.09, 0.09), eps)
    assert not epsilon_equals(Translation(0.0, 0.0), Translation(0.0, 0.11), eps)
    assert epsilon_equals(Translation(0.0, 0.0), Translation(0.5, 0.0), Translation(0.5, 0.0))


def test_pose_helpers():
    pose = Pose(1.0, 2.0, np.pi)
    assert pose.translation == Translation(1.0, 2.0)
    assert pose.degrees == pytest.approx(180.0)
    assert wrap_angle(3 * np.pi / 2) == pytest.approx(-np.pi / 2)
    assert Translation(1.0, 1.0) - Translation(0.5, 2.0) == Translation(0.5, -1.0)
