"""Shared plotting helpers for path-follow log visualizations.

Loads CSV logs into numpy columns and applies one consistent look to every
figure: orange for what the robot did, blue for what it was asked to do.
"""

import csv
from pathlib import Path
from typing import Dict, List, Tuple

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.axes import Axes

from .config import PLOT_BLUE, PLOT_ORANGE, PLOT_TAUPE

__all__ = [
    "PLOT_ORANGE",
    "PLOT_BLUE",
    "PLOT_TAUPE",
    "load_csv_to_dict",
    "style_axis",
    "add_legend",
    "create_figure",
    "save_figure",
]


# ============================================================================
# CSV Data Loading
# ============================================================================


def load_csv_to_dict(csv_path: Path) -> Dict[str, np.ndarray]:
    """Load a CSV file into a dictionary of numpy columns.

    Path-follow logs separate fields with ", ", so whitespace after each
    delimiter is skipped and "Timestamp (seconds), Robot X" yields the
    column "Robot X". Rows with the wrong field count are dropped; fields
    that are not numbers become NaN.

    Raises:
        FileNotFoundError: If the CSV file does not exist.

    Example:
        >>> data = load_csv_to_dict(Path("PathFollowCommand_12.34.csv"))
        >>> data["Robot X"].shape
        (500,)
    """
    if not csv_path.exists():
        raise FileNotFoundError(f"CSV file not found: {csv_path}")

    with open(csv_path, newline="") as f:
        reader = csv.reader(f, skipinitialspace=True)
        headers = [h.strip() for h in next(reader, [])]
        columns: Dict[str, List[float]] = {h: [] for h in headers}
        for row in reader:
            if len(row) != len(headers):
                continue
            for key, value in zip(headers, row):
                try:
                    columns[key].append(float(value))
                except ValueError:
                    columns[key].append(np.nan)

    return {key: np.array(values) for key, values in columns.items()}


# ============================================================================
# Styling
# ============================================================================


def style_axis(ax: Axes, title: str = "", xlabel: str = "", ylabel: str = "", grid: bool = True) -> None:
    """Set labels and a light dashed grid on one axis. Empty strings are skipped."""
    if title:
        ax.set_title(title, fontweight="bold")
    if xlabel:
        ax.set_xlabel(xlabel)
    if ylabel:
        ax.set_ylabel(ylabel)
    if grid:
        ax.grid(True, alpha=0.3, linestyle="--", linewidth=0.5)


def add_legend(ax: Axes, loc: str = "best", **kwargs) -> None:
    """Draw a legend framed in the neutral guide colour.

    Extra keyword arguments go straight to ax.legend() and win over the
    defaults.
    """
    options = {"loc": loc, "framealpha": 0.9, "edgecolor": PLOT_TAUPE}
    options.update(kwargs)
    ax.legend(**options)


def create_figure(nrows: int = 1, ncols: int = 1, figsize: Tuple[float, float] = (12, 8), title: str = ""):
    """Create a figure and its subplot axes, with an optional bold title.

    Returns:
        Tuple of (figure, axes) as returned by plt.subplots.
    """
    fig, axes = plt.subplots(nrows, ncols, figsize=figsize)
    if title:
        fig.suptitle(title, fontsize=14, fontweight="bold")
    return fig, axes


def save_figure(fig: plt.Figure, filepath: Path, dpi: int = 150) -> None:
    fig.savefig(filepath, dpi=dpi, bbox_inches="tight")
