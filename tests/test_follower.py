import math

import pytest

from drive_control.config import ROBOT_WIDTH
from drive_control.follower import Follower, pursuit_curvature, wheel_speed_ratio
from drive_control.geometry import Pose, Translation
from drive_control.path import Path, lemniscate_path


def _line():
    return Path([(0.0, 0.0), (1.0, 0.0), (2.0, 0.0)])


def test_goal_is_lookahead_ahead_on_straight_path():
    follower = Follower(_line(), lookahead_distance=0.2)
    goal = follower.get_next_point(Pose(0.0, 0.0, 0.0))
    assert goal.x == pytest.approx(0.2)
    assert goal.y == pytest.approx(0.0)
    assert follower.progress == pytest.approx(0.2)


def test_goal_tracks_robot_across_segments():
    follower = Follower(_line(), lookahead_distance=0.2)
    follower.get_next_point(Pose(0.5, 0.0, 0.0))
    goal = follower.get_next_point(Pose(0.9, 0.0, 0.0))
    assert goal.x == pytest.approx(1.1)
    assert follower.progress == pytest.approx(1.1)


def test_progress_never_regresses_on_self_crossing_path():
    path = lemniscate_path(t_max=19.0, dt=0.1)
    follower = Follower(path, lookahead_distance=0.2)

    previous = follower.progress
    for i, waypoint in enumerate(path):
        follower.get_next_point(Pose(waypoint.x, waypoint.y, 0.0))
        assert follower.progress >= previous
        previous = follower.progress

        # At the first pass through the crossing the goal must stay on the
        # first lobe, not jump to the second pass
        if i == 50:
            assert follower.progress < 60


def _long_line():
    return Path([(0.0, 0.0), (10.0, 0.0)])


def test_robot_behind_progress_resumes_following():
    follower = Follower(_long_line(), lookahead_distance=0.2)
    assert follower.get_next_point(Pose(1.0, 0.0, 0.0)).x == pytest.approx(1.2)
    progress = follower.progress

    # The path only leaves the lookahead circle behind the last goal
    goal = follower.get_next_point(Pose(0.95, 0.0, 0.0))
    assert goal == Translation(10.0, 0.0)
    assert follower.progress == progress
    assert not follower.complete

    goal = follower.get_next_point(Pose(1.1, 0.0, 0.0))
    assert goal.x == pytest.approx(1.3)
    assert goal.y == pytest.approx(0.0)


def test_lost_robot_heads_for_final_waypoint_until_back_on_path():
    follower = Follower(_long_line(), lookahead_distance=0.2)
    follower.get_next_point(Pose(1.0, 0.0, 0.0))

    assert follower.get_next_point(Pose(1.0, 5.0, 0.0)) == Translation(10.0, 0.0)
    assert follower.progress == pytest.approx(0.12)
    assert not follower.complete

    assert follower.get_next_point(Pose(3.0, 0.0, 0.0)).x == pytest.approx(3.2)


def test_no_intersection_near_the_end_locks_final_waypoint():
    follower = Follower(_line(), lookahead_distance=0.2, completion_tolerance=0.1)
    follower.get_next_point(Pose(1.6, 0.0, 0.0))

    # Final waypoint inside the circle but outside the completion tolerance
    assert follower.get_next_point(Pose(1.85, 0.0, 0.0)) == Translation(2.0, 0.0)
    assert follower.complete
    assert follower.progress == len(_line()) - 1


def test_lookahead_longer_than_path_returns_exact_final_waypoint():
    path = Path([(0.0, 0.0), (0.3, 0.1), (0.5, 0.0)])
    follower = Follower(path, lookahead_distance=2.0)
    assert follower.get_next_point(Pose(0.0, 0.0, 0.0)) == Translation(0.5, 0.0)


def test_single_waypoint_path_always_returns_it():
    follower = Follower(Path([(3.0, 4.0)]), lookahead_distance=0.2)
    assert follower.get_next_point(Pose(0.0, 0.0, 0.0)) == Translation(3.0, 4.0)
    assert follower.get_next_point(Pose(3.0, 4.0, 1.0)) == Translation(3.0, 4.0)
    assert follower.remaining_length() == 0.0


def test_final_waypoint_stays_locked():
    follower = Follower(_line(), lookahead_distance=0.2, completion_tolerance=0.1)
    follower.get_next_point(Pose(1.6, 0.0, 0.0))

    assert follower.get_next_point(Pose(1.95, 0.0, 0.0)) == Translation(2.0, 0.0)
    assert follower.complete

    # Drifting away again does not unlock
    assert follower.get_next_point(Pose(1.0, 0.0, 0.0)) == Translation(2.0, 0.0)


def test_set_lookahead_takes_effect_on_next_call():
    follower = Follower(_line(), lookahead_distance=0.2)
    assert follower.get_next_point(Pose(0.0, 0.0, 0.0)).x == pytest.approx(0.2)

    follower.set_lookahead_distance(0.5)

    assert follower.get_next_point(Pose(0.0, 0.0, 0.0)).x == pytest.approx(0.5)


@pytest.mark.parametrize("lookahead", [0.0, -1.0])
def test_non_positive_lookahead_rejected(lookahead):
    with pytest.raises(ValueError):
        Follower(_line(), lookahead_distance=lookahead)
    follower = Follower(_line())
    with pytest.raises(ValueError):
        follower.set_lookahead_distance(lookahead)


def test_invalid_construction_parameters_rejected():
    with pytest.raises(ValueError):
        Follower(_line(), completion_tolerance=-0.1)
    with pytest.raises(ValueError):
        Follower(_line(), track_width=0.0)


def test_reset_restarts_from_path_start():
    follower = Follower(_line(), lookahead_distance=0.2)
    follower.get_next_point(Pose(1.6, 0.0, 0.0))
    follower.get_next_point(Pose(1.9, 0.0, 0.0))
    assert follower.complete

    follower.reset()

    assert follower.progress == 0.0
    assert not follower.complete
    assert follower.get_next_point(Pose(0.0, 0.0, 0.0)).x == pytest.approx(0.2)


def test_get_final_pose_does_not_touch_progress():
    follower = Follower(_line())
    assert follower.get_final_pose() == Translation(2.0, 0.0)
    assert follower.progress == 0.0


def test_remaining_length():
    follower = Follower(_line(), lookahead_distance=0.2)
    assert follower.remaining_length() == pytest.approx(2.0)
    follower.get_next_point(Pose(0.0, 0.0, 0.0))
    assert follower.remaining_length() == pytest.approx(1.8)


def test_curvature_straight_ahead_is_zero():
    follower = Follower(_line())
    assert follower.compute_curvature(Pose(0.0, 0.0, 0.0), Translation(1.0, 0.0)) == pytest.approx(0.0)


def test_curvature_for_goal_to_the_left():
    follower = Follower(_line())
    kappa = follower.compute_curvature(Pose(0.0, 0.0, 0.0), Translation(0.0, 1.0))
    assert kappa == pytest.approx(2.0)

    kappa = follower.compute_curvature(Pose(0.0, 0.0, math.pi / 2), Translation(0.0, 1.0))
    assert kappa == pytest.approx(0.0, abs=1e-12)


def test_curvature_at_goal_is_zero():
    follower = Follower(_line())
    assert follower.compute_curvature(Pose(1.0, 1.0, 0.3), Translation(1.0, 1.0)) == 0.0


def test_wheel_speed_ratio():
    follower = Follower(_line(), track_width=0.5)

    assert follower.wheel_speed_ratio(0.0) == (1.0, 1.0)

    left, right = follower.wheel_speed_ratio(2.0)
    assert right == pytest.approx(1.0)
    assert left == pytest.approx(0.5 / 1.5)

    left, right = follower.wheel_speed_ratio(-2.0)
    assert left == pytest.approx(1.0)
    assert right < left


def test_track_width_defaults_to_robot_width():
    follower = Follower(_line())
    assert follower.track_width == ROBOT_WIDTH
    assert follower.wheel_speed_ratio(1.0) == wheel_speed_ratio(1.0, ROBOT_WIDTH)


def test_methods_match_module_functions():
    follower = Follower(_line(), track_width=0.4)
    pose = Pose(0.5, -0.2, 0.3)
    goal = Translation(1.0, 0.4)

    kappa = follower.compute_curvature(pose, goal)
    assert kappa == pursuit_curvature(pose, goal)
    assert follower.wheel_speed_ratio(kappa) == wheel_speed_ratio(kappa, 0.4)
