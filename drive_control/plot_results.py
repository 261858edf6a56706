#!/usr/bin/env python3
"""
Visualize path-follow logs from collected runs.

Loads PathFollowCommand_*.csv files from a run directory and plots the robot
trajectory against the goal points it chased, plus the robot-to-goal distance
over time.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.figure import Figure

from .config import PATH_LOG_PREFIX, RESULTS_DIR, TERM_BLUE, TERM_RESET
from .plot_styles import (
    PLOT_BLUE,
    PLOT_ORANGE,
    add_legend,
    create_figure,
    load_csv_to_dict,
    save_figure,
    style_axis,
)

PATH_LOG_COLUMNS = ["Timestamp (seconds)", "Robot X", "Robot Y", "Robot Theta", "Goal X", "Goal Y"]


def find_latest_run(results_dir: Path) -> Path:
    """Find the most recent run directory.

    Raises:
        FileNotFoundError: If no run directories are found.
    """
    if not results_dir.exists():
        raise FileNotFoundError(f"Results directory not found: {results_dir}")

    run_dirs = sorted(d for d in results_dir.iterdir() if d.is_dir() and d.name.startswith("run_"))
    if not run_dirs:
        raise FileNotFoundError(f"No run directories found in {results_dir}")

    return run_dirs[-1]


def list_available_runs(results_dir: Path) -> List[Path]:
    """Log and return all run directories."""
    if not results_dir.exists():
        logging.error(f"Results directory not found: {results_dir}")
        return []

    run_dirs = sorted(d for d in results_dir.iterdir() if d.is_dir() and d.name.startswith("run_"))
    if not run_dirs:
        logging.info(f"No run directories found in {results_dir}")
        return []

    logging.info("Available runs:")
    for i, run_dir in enumerate(run_dirs, 1):
        logging.info(f"  {i}. {run_dir.name}")
    return run_dirs


def find_path_logs(run_dir: Path) -> List[Path]:
    """Return the path-follow CSV logs in a run directory, oldest first."""
    return sorted(run_dir.glob(f"{PATH_LOG_PREFIX}_*.csv"))


def parse_path_log(filepath: Path) -> Dict[str, np.ndarray]:
    """Load a path-follow log.

    Returns:
        Dictionary with keys 't', 'x', 'y', 'theta', 'goal_x', 'goal_y'.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the header does not match the path-follow format.
    """
    data = load_csv_to_dict(filepath)
    if list(data.keys()) != PATH_LOG_COLUMNS:
        raise ValueError(f"Unexpected path log headers: {list(data.keys())}")

    return {
        "t": data["Timestamp (seconds)"],
        "x": data["Robot X"],
        "y": data["Robot Y"],
        "theta": data["Robot Theta"],
        "goal_x": data["Goal X"],
        "goal_y": data["Goal Y"],
    }


def plot_path_log(log: Dict[str, np.ndarray], title: str = "Path Following", save_path: Optional[Path] = None) -> Figure:
    """Plot robot vs goal trajectory and tracking distance.

    Args:
        log: Parsed path log from parse_path_log.
        title: Figure title.
        save_path: If given, save the figure there.

    Returns:
        The created figure.
    """
    fig, (ax_xy, ax_err) = create_figure(1, 2, figsize=(14, 6), title=title)

    ax_xy.plot(log["goal_x"], log["goal_y"], "--", color=PLOT_BLUE, linewidth=1.5, label="Goal")
    ax_xy.plot(log["x"], log["y"], "-", color=PLOT_ORANGE, linewidth=2, label="Robot")
    if len(log["x"]):
        ax_xy.plot(log["x"][0], log["y"][0], "o", color=PLOT_ORANGE, markersize=8, label="Start")
        ax_xy.plot(log["goal_x"][-1], log["goal_y"][-1], "*", color=PLOT_BLUE, markersize=14, label="Final goal")
    ax_xy.set_aspect("equal", adjustable="datalim")
    style_axis(ax_xy, title="Trajectory", xlabel="X (m)", ylabel="Y (m)")
    add_legend(ax_xy)

    distance = np.hypot(log["goal_x"] - log["x"], log["goal_y"] - log["y"])
    ax_err.plot(log["t"], distance, color=PLOT_ORANGE, linewidth=1.5)
    style_axis(ax_err, title="Distance to Goal", xlabel="Time (s)", ylabel="Distance (m)")

    fig.tight_layout()

    if save_path is not None:
        save_figure(fig, save_path)

    return fig


def main() -> None:
    """Main entry point for the plotting script."""
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    parser = argparse.ArgumentParser(
        description="Visualize path-follow logs from collected runs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Plot the most recent run
  python -m drive_control.plot_results

  # Plot a specific run and save PNGs next to the logs
  python -m drive_control.plot_results --run run_20251114_184704 --save --no-show
        """,
    )
    parser.add_argument("--run", type=str, default=None, help="Run directory name (default: most recent)")
    parser.add_argument(
        "--results-dir", type=str, default=RESULTS_DIR, help=f"Results directory (default: {RESULTS_DIR})"
    )
    parser.add_argument("--save", action="store_true", help="Save plots as PNG files in the run directory")
    parser.add_argument("--no-show", action="store_true", help="Do not display plots interactively")
    parser.add_argument("--list", action="store_true", help="List all available runs and exit")
    args = parser.parse_args()

    results_dir = Path(args.results_dir)

    if args.list:
        list_available_runs(results_dir)
        return

    if args.run:
        run_dir = results_dir / args.run
        if not run_dir.exists():
            logging.error(f"Error: Run directory not found: {run_dir}")
            list_available_runs(results_dir)
            sys.exit(1)
    else:
        try:
            run_dir = find_latest_run(results_dir)
            logging.info(f"{TERM_BLUE}Plotting most recent run: {run_dir.name}{TERM_RESET}")
        except FileNotFoundError as e:
            logging.error(f"Error: {e}")
            sys.exit(1)

    logs = find_path_logs(run_dir)
    if not logs:
        logging.error(f"Error: No {PATH_LOG_PREFIX}_*.csv files in {run_dir}")
        sys.exit(1)

    for log_path in logs:
        try:
            log = parse_path_log(log_path)
        except (FileNotFoundError, ValueError) as e:
            logging.error(f"Skipping {log_path.name}: {e}")
            continue

        save_path = log_path.with_suffix(".png") if args.save else None
        plot_path_log(log, title=log_path.stem, save_path=save_path)
        if save_path is not None:
            logging.info(f"{TERM_BLUE}✓ Saved {save_path.name}{TERM_RESET}")

    if not args.no_show:
        plt.show()


if __name__ == "__main__":
    main()
