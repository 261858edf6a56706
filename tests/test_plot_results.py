import matplotlib.pyplot as plt
import numpy as np
import pytest

from drive_control.geometry import Pose, Translation
from drive_control.path_log import PathLog
from drive_control.plot_results import (
    find_latest_run,
    find_path_logs,
    list_available_runs,
    parse_path_log,
    plot_path_log,
)
from drive_control.plot_styles import load_csv_to_dict


def _write_log(directory, timestamp=1.0):
    log = PathLog.open(directory, timestamp).log
    log.append(0.0, Pose(0.0, 0.0, 0.0), Translation(0.2, 0.0))
    log.append(0.02, Pose(0.05, 0.01, 0.1), Translation(0.25, 0.0))
    log.close()
    return log.path


def test_load_csv_strips_header_whitespace(tmp_path):
    data = load_csv_to_dict(_write_log(tmp_path))
    assert "Robot X" in data
    np.testing.assert_allclose(data["Goal X"], [0.2, 0.25])


def test_load_csv_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_csv_to_dict(tmp_path / "missing.csv")


def test_parse_path_log(tmp_path):
    log = parse_path_log(_write_log(tmp_path))
    np.testing.assert_allclose(log["t"], [0.0, 0.02])
    np.testing.assert_allclose(log["y"], [0.0, 0.01])
    np.testing.assert_allclose(log["theta"], [0.0, 5.73])


def test_parse_rejects_other_csv(tmp_path):
    other = tmp_path / "other.csv"
    other.write_text("a,b\n1,2\n")
    with pytest.raises(ValueError):
        parse_path_log(other)


def test_plot_path_log_saves_png(tmp_path):
    log = parse_path_log(_write_log(tmp_path))
    save_path = tmp_path / "plot.png"

    fig = plot_path_log(log, title="test", save_path=save_path)

    assert save_path.exists()
    assert len(fig.axes) == 2
    plt.close(fig)


def test_run_discovery(tmp_path):
    with pytest.raises(FileNotFoundError):
        find_latest_run(tmp_path)

    older = tmp_path / "run_20250101_000000"
    newer = tmp_path / "run_20250102_000000"
    older.mkdir()
    newer.mkdir()
    _write_log(newer, 2.0)
    _write_log(newer, 1.0)

    assert find_latest_run(tmp_path) == newer
    assert list_available_runs(tmp_path) == [older, newer]
    assert [p.name for p in find_path_logs(newer)] == [
        "PathFollowCommand_1.00.csv",
        "PathFollowCommand_2.00.csv",
    ]
    assert list_available_runs(tmp_path / "missing") == []
