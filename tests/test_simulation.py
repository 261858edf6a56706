import asyncio
import logging
import math

import pytest

from drive_control.chassis import ChassisSide
from drive_control.command import CommandState, PathFollowerConfig
from drive_control.geometry import Pose
from drive_control.path import Path
from drive_control.simulation import (
    CustomFormatter,
    PathFollowingSession,
    initial_pose_for,
    main,
)
from drive_control.telemetry import TelemetryTable


def _straight():
    return Path([(0.0, 0.0), (0.5, 0.0), (1.0, 0.0), (1.5, 0.0), (2.0, 0.0)])


def _corner():
    return Path([(0.0, 0.0), (1.0, 0.0), (1.0, 1.0)])


def test_initial_pose_faces_first_segment():
    pose = initial_pose_for(_corner())
    assert (pose.x, pose.y, pose.theta) == (0.0, 0.0, 0.0)

    pose = initial_pose_for(Path([(1.0, 1.0), (1.0, 2.0)]))
    assert pose.theta == pytest.approx(math.pi / 2)

    assert initial_pose_for(Path([(3.0, 3.0)])).theta == 0.0


def test_session_follows_straight_path_to_completion(tmp_path, caplog):
    caplog.set_level(logging.INFO)
    telemetry = TelemetryTable()
    session = PathFollowingSession(_straight(), eps_radius=0.1, run_dir=tmp_path, telemetry=telemetry)

    result = session.run()

    assert result.completed
    assert result.state is CommandState.COMPLETED
    assert result.sim_time < 10.0
    assert abs(result.final_pose.x - 2.0) <= 0.1
    assert abs(result.final_pose.y) <= 0.1
    assert session.drivetrain.goal is None

    assert result.log_path is not None and result.log_path.parent == tmp_path
    lines = result.log_path.read_text().splitlines()
    assert len(lines) == result.ticks + 1

    assert telemetry.get("PathFollower State") == "completed"
    assert telemetry.get_number("SubsystemLooper DT") is not None
    assert "Robot successfully reached goal pose" in caplog.text


def test_session_turns_corner(tmp_path):
    session = PathFollowingSession(_corner(), eps_radius=0.1, run_dir=tmp_path)
    result = session.run()
    assert result.completed
    assert result.final_pose.y == pytest.approx(1.0, abs=0.1)


def test_reversed_session_drives_backwards(tmp_path):
    path = Path([(0.0, 0.0), (-1.0, 0.0), (-2.0, 0.0)])
    config = PathFollowerConfig(front_side=ChassisSide.BACK, lookahead=0.3)
    session = PathFollowingSession(path, config=config, run_dir=tmp_path, log_progress=False)
    # Back of the robot faces along the path
    session.drivetrain.pose = Pose(0.0, 0.0, 0.0)

    result = session.run()

    assert result.completed
    assert result.log_path is None
    assert abs(result.final_pose.theta) < 0.1


def test_timeout_interrupts_command(tmp_path, caplog):
    session = PathFollowingSession(_straight(), run_dir=tmp_path, timeout=0.1)

    result = session.run()

    assert result.state is CommandState.INTERRUPTED
    assert result.ticks == 5
    assert session.drivetrain.goal is None
    assert "timed out" in caplog.text


def test_stop_flag_ends_run_and_exit_interrupts(tmp_path):
    with PathFollowingSession(_straight(), run_dir=tmp_path) as session:
        session.step()
        session.stop()
        session.run()
        assert session.command.state is CommandState.RUNNING
    assert session.command.state is CommandState.INTERRUPTED


def test_realtime_run_completes(tmp_path):
    session = PathFollowingSession(
        Path([(0.0, 0.0), (0.3, 0.0)]), eps_radius=0.1, run_dir=tmp_path, period=0.02
    )
    result = asyncio.run(session.run_async(realtime=True))
    assert result.completed


def test_main_returns_result(tmp_path, monkeypatch):
    monkeypatch.setenv("RUN_DIR", str(tmp_path / "run"))
    result = asyncio.run(main(_straight(), output_dir=str(tmp_path)))
    assert result.completed
    assert result.log_path.parent == tmp_path / "run"


def test_custom_formatter_hides_info_timestamps():
    formatter = CustomFormatter(datefmt="%Y-%m-%d %H:%M:%S")
    info = logging.LogRecord("x", logging.INFO, __file__, 1, "hello", None, None)
    warning = logging.LogRecord("x", logging.WARNING, __file__, 1, "careful", None, None)

    assert formatter.format(info) == "hello"
    assert formatter.format(warning).endswith(" - WARNING - careful")


def test_async_run_without_pacing(tmp_path):
    session = PathFollowingSession(_straight(), run_dir=tmp_path, log_progress=False)
    result = asyncio.run(session.run_async(realtime=False))
    assert result.completed
