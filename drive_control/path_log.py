"""Best-effort CSV logging of path-following progress.

Each path-following task writes one CSV file containing the robot pose and the
current goal every tick. The log is advisory: opening it returns an OpenResult
instead of raising, and callers drop the log on any I/O failure.
"""

import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional, TextIO, Union

from .config import PATH_LOG_HEADER, PATH_LOG_PREFIX, RESULTS_DIR
from .geometry import Pose, Translation


def path_log_name(timestamp: float) -> str:
    """Deterministic log file name for a task started at `timestamp` seconds."""
    return f"{PATH_LOG_PREFIX}_{timestamp:.2f}.csv"


def format_row(elapsed: float, pose: Pose, goal: Translation) -> str:
    """Format one log row with two-decimal fixed precision.

    Columns match PATH_LOG_HEADER: elapsed time, robot x, robot y, robot
    heading in degrees, goal x, goal y.
    """
    return (
        f"{elapsed:.2f}, {pose.x:.2f}, {pose.y:.2f}, {pose.degrees:.2f}, "
        f"{goal.x:.2f}, {goal.y:.2f}\n"
    )


def resolve_run_dir(output_dir: Union[str, Path] = ".", run_dir: Optional[Union[str, Path]] = None) -> Path:
    """Determine the directory that receives this run's logs.

    Args:
        output_dir: Base directory for output files (default: current directory).
        run_dir: Optional specific run directory. If None, uses the RUN_DIR
            environment variable, else a timestamped results/run_YYYYMMDD_HHMMSS/.

    Returns:
        Path to the run directory (not created).

    Raises:
        ValueError: If output_dir exists but is not a directory.
    """
    output_path = Path(output_dir)
    if output_path.exists() and not output_path.is_dir():
        raise ValueError(f"Output path exists but is not a directory: {output_dir}")

    if run_dir:
        return Path(run_dir)
    if env_run_dir := os.environ.get("RUN_DIR"):
        return Path(env_run_dir)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return output_path / RESULTS_DIR / f"run_{timestamp}"


class PathLog:
    """Open path-follow CSV log.

    Attributes:
        path: Location of the CSV file.
        rows: Number of data rows written.
    """

    def __init__(self, path: Path, handle: TextIO) -> None:
        self.path = path
        self._handle: Optional[TextIO] = handle
        self.rows = 0

    @classmethod
    def open(cls, directory: Union[str, Path], timestamp: float) -> "OpenResult":
        """Create the log file and write its header.

        Args:
            directory: Directory to create the file in (created if missing).
            timestamp: Task start time in seconds, used for the file name.

        Returns:
            OpenResult holding either the open log or the OSError that
            prevented opening it.
        """
        file_path = Path(directory) / path_log_name(timestamp)
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            handle = open(file_path, "w", newline="")
        except OSError as e:
            return OpenResult(error=e)

        log = cls(file_path, handle)
        try:
            handle.write(PATH_LOG_HEADER + "\n")
        except OSError as e:
            log.close_quietly()
            return OpenResult(error=e)
        return OpenResult(log=log)

    @property
    def closed(self) -> bool:
        return self._handle is None

    def append(self, elapsed: float, pose: Pose, goal: Translation) -> None:
        """Write one data row.

        Raises:
            OSError: If the write fails.
            ValueError: If the log was already closed.
        """
        if self._handle is None:
            raise ValueError(f"Path log {self.path.name} is closed")
        self._handle.write(format_row(elapsed, pose, goal))
        self.rows += 1

    def close(self) -> None:
        """Flush and close the file. Closing twice is a no-op.

        Raises:
            OSError: If flushing or closing fails. The log counts as closed
                either way.
        """
        handle, self._handle = self._handle, None
        if handle is None:
            return
        try:
            handle.flush()
        finally:
            handle.close()

    def close_quietly(self) -> None:
        try:
            self.close()
        except OSError:
            pass


@dataclass(frozen=True)
class OpenResult:
    """Outcome of PathLog.open: exactly one of `log` and `error` is set."""

    log: Optional[PathLog] = None
    error: Optional[OSError] = None

    @property
    def ok(self) -> bool:
        return self.log is not None
