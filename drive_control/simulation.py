#!/usr/bin/env python3
"""
Simulated path-following session.

This module wires the control core together: a SubsystemLooper ticking a
CommandRunner and a SimulatedDriveTrain at a fixed period, with the
PathFollowerCommand logging its progress to a per-run results directory.
The session stops when the robot reaches the path's final pose, when the
simulated timeout expires (the command is interrupted), or on SIGINT/SIGTERM.
"""

import asyncio
import logging
import math
import signal
from dataclasses import dataclass
from pathlib import Path as FilePath
from typing import Any, Optional, Union

from .chassis import SimulatedDriveTrain
from .command import CommandRunner, CommandState, PathFollowerCommand, PathFollowerConfig
from .config import (
    FOLLOWER_EPSILON_RADIUS,
    LOOPER_PERIOD,
    ROBOT_WIDTH,
    SIMULATION_TIMEOUT,
    TERM_BLUE,
    TERM_ORANGE,
    TERM_RESET,
)
from .geometry import Pose
from .looper import SubsystemLooper
from .path import Path
from .path_log import resolve_run_dir
from .telemetry import TelemetrySink, TelemetryTable


class CustomFormatter(logging.Formatter):
    """Custom logging formatter that removes timestamps from INFO messages.

    This formatter provides clean console output by showing INFO messages without
    timestamps while preserving full context for WARNING, ERROR, and DEBUG messages.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record based on its level.

        Args:
            record: The log record to format.

        Returns:
            Formatted log message string.
        """
        if record.levelno == logging.INFO:
            return record.getMessage()
        else:
            return f"{self.formatTime(record, self.datefmt)} - {record.levelname} - {record.getMessage()}"


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity level.

    Args:
        verbose: If True, show all levels with timestamps. If False, show INFO
                 without timestamps and WARNING/ERROR with timestamps.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        handler = logging.StreamHandler()
        formatter = CustomFormatter(datefmt="%Y-%m-%d %H:%M:%S")
        handler.setFormatter(formatter)
        logger = logging.getLogger()
        logger.setLevel(logging.INFO)
        logger.addHandler(handler)


def initial_pose_for(path: Path) -> Pose:
    """Place the robot on the first waypoint facing along the first segment."""
    start = path.start
    if len(path) < 2:
        return Pose(start.x, start.y, 0.0)
    nxt = path[1]
    return Pose(start.x, start.y, math.atan2(nxt.y - start.y, nxt.x - start.x))


@dataclass(frozen=True)
class SessionResult:
    """Summary of a finished session.

    Attributes:
        state: Terminal command state (COMPLETED or INTERRUPTED).
        sim_time: Simulated seconds elapsed.
        ticks: Number of looper ticks run.
        final_pose: Robot pose when the session stopped.
        log_path: CSV log written by the command, if any.
    """

    state: CommandState
    sim_time: float
    ticks: int
    final_pose: Pose
    log_path: Optional[FilePath]

    @property
    def completed(self) -> bool:
        return self.state is CommandState.COMPLETED


class PathFollowingSession:
    """Simulated robot following one path under the subsystem looper.

    Attributes:
        drivetrain: Simulated tank drive.
        command: Path-following command.
        runner: Periodic adapter driving the command.
        looper: Scheduler ticking runner then drivetrain.
        telemetry: Diagnostic channel updated every tick.
        run_dir: Directory receiving the CSV log.
        sim_time: Simulated seconds elapsed.
        ticks: Number of ticks run.
        should_stop: Flag set by stop() or signal handlers.
    """

    def __init__(
        self,
        path: Path,
        eps_radius: float = FOLLOWER_EPSILON_RADIUS,
        config: Optional[PathFollowerConfig] = None,
        output_dir: Union[str, FilePath] = ".",
        run_dir: Optional[Union[str, FilePath]] = None,
        period: float = LOOPER_PERIOD,
        timeout: float = SIMULATION_TIMEOUT,
        telemetry: Optional[TelemetrySink] = None,
        log_progress: bool = True,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        """Initialize the session.

        Args:
            path: Path to follow.
            eps_radius: Completion tolerance around the final waypoint (m).
            config: Command configuration (default: PathFollowerConfig()).
            output_dir: Base directory for results (default: current directory).
            run_dir: Explicit run directory (default: timestamped under results/).
            period: Looper period and simulation step (s).
            timeout: Simulated seconds before the command is interrupted.
            telemetry: Diagnostic sink (default: a fresh TelemetryTable).
            log_progress: Write the command's CSV log.
            logger: Logger for session messages.
        """
        self.logger = logger or logging.getLogger(__name__)
        self.period = period
        self.timeout = timeout
        self.telemetry = telemetry if telemetry is not None else TelemetryTable()
        self.run_dir = resolve_run_dir(output_dir, run_dir) if log_progress else None

        self.sim_time: float = 0.0
        self.ticks: int = 0
        self.should_stop: bool = False

        self.drivetrain = SimulatedDriveTrain(
            initial_pose=initial_pose_for(path), width_meters=ROBOT_WIDTH, period=period
        )
        self.command = PathFollowerCommand(
            self.drivetrain,
            path,
            eps_radius,
            config=config,
            log_dir=self.run_dir,
            clock=lambda: self.sim_time,
        )
        self.runner = CommandRunner(self.command)

        self.looper = SubsystemLooper(period=period)
        self.looper.register(self.runner)
        self.looper.register(self.drivetrain)

    @property
    def done(self) -> bool:
        return self.runner.finished

    def step(self) -> None:
        """Run one looper tick and publish telemetry."""
        self.looper.update()
        self.looper.output_telemetry(self.telemetry)
        self.ticks += 1
        self.sim_time = self.ticks * self.period

        if not self.done and self.sim_time >= self.timeout:
            self.logger.warning(f"Path following timed out after {self.sim_time:.2f}s")
            self.runner.cancel()

    def run(self) -> SessionResult:
        """Tick as fast as possible until the command terminates."""
        while not self.done and not self.should_stop:
            self.step()
        return self.result()

    async def run_async(self, realtime: bool = True) -> SessionResult:
        """Tick until the command terminates, yielding to the event loop every tick.

        Args:
            realtime: Pace ticks at the looper period in wall-clock time. If
                False, tick as fast as possible while still letting signal
                handlers run.
        """
        loop = asyncio.get_running_loop()
        next_tick = loop.time()

        while not self.done and not self.should_stop:
            self.step()
            if realtime:
                next_tick += self.period
                await asyncio.sleep(max(0.0, next_tick - loop.time()))
            else:
                await asyncio.sleep(0)

        return self.result()

    def stop(self) -> None:
        """Signal the session to stop."""
        self.should_stop = True

    def result(self) -> SessionResult:
        return SessionResult(
            state=self.command.state,
            sim_time=self.sim_time,
            ticks=self.ticks,
            final_pose=self.drivetrain.get_pose(),
            log_path=self.command.log_path,
        )

    def __enter__(self) -> "PathFollowingSession":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Interrupt the command if the session stops before it finishes."""
        self.runner.cancel()


async def main(
    path: Path,
    config: Optional[PathFollowerConfig] = None,
    eps_radius: float = FOLLOWER_EPSILON_RADIUS,
    output_dir: str = ".",
    timeout: float = SIMULATION_TIMEOUT,
    realtime: bool = False,
) -> SessionResult:
    """Run a simulated path-following session with graceful shutdown.

    Args:
        path: Path to follow.
        config: Command configuration.
        eps_radius: Completion tolerance (m).
        output_dir: Base directory for results.
        timeout: Simulated timeout (s).
        realtime: Pace ticks at the looper period instead of running flat out.

    Returns:
        SessionResult of the run.
    """
    with PathFollowingSession(
        path, eps_radius=eps_radius, config=config, output_dir=output_dir, timeout=timeout
    ) as session:
        loop = asyncio.get_running_loop()

        def signal_handler() -> None:
            """Handle shutdown signals (SIGINT, SIGTERM)."""
            logging.info("\nShutdown signal received...")
            session.stop()

        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, signal_handler)

        logging.info(f"{TERM_BLUE}✓ Following {path} with {session.command.config}{TERM_RESET}")

        await session.run_async(realtime)

    result = session.result()
    colour = TERM_BLUE if result.completed else TERM_ORANGE
    logging.info(
        f"{colour}→ {result.state.value} after {result.sim_time:.2f}s ({result.ticks} ticks), "
        f"final pose ({result.final_pose.x:.3f}, {result.final_pose.y:.3f}){TERM_RESET}"
    )
    if result.log_path is not None:
        logging.info(f"{TERM_BLUE}✓ Saved path log to {result.log_path}{TERM_RESET}")

    return result
