"""Path-following command and its lifecycle.

A PathFollowerCommand drives one chassis along one path. It moves strictly
forward through its states:

    IDLE -> INITIALIZING -> RUNNING -> COMPLETED | INTERRUPTED

While running it asks the follower for the next goal every tick, hands that
goal to the chassis, and appends a row to an advisory CSV log. It finishes
only when the chassis is within an axis-wise epsilon of the path's final
waypoint, regardless of the goal currently being chased.

CommandRunner adapts a command to the looper's periodic subsystem interface.
"""

import enum
import logging
import time
from dataclasses import dataclass, replace
from pathlib import Path as FilePath
from typing import Callable, Optional, Union

from .chassis import Chassis, ChassisSide
from .config import (
    DEFAULT_MAX_SPEED,
    DRIVE_GOAL_EPSILON,
    FOLLOWER_COMPLETION_TOLERANCE,
    FOLLOWER_LOOKAHEAD,
)
from .follower import Follower
from .geometry import Translation, epsilon_equals
from .path import Path
from .path_log import PathLog
from .telemetry import TelemetrySink


class CommandState(enum.Enum):
    """Lifecycle state of a path-following command."""

    IDLE = "idle"
    INITIALIZING = "initializing"
    RUNNING = "running"
    COMPLETED = "completed"
    INTERRUPTED = "interrupted"

    @property
    def terminal(self) -> bool:
        return self in (CommandState.COMPLETED, CommandState.INTERRUPTED)


class CommandStateError(RuntimeError):
    """Raised when a command is used out of lifecycle order."""


@dataclass(frozen=True)
class PathFollowerConfig:
    """Per-task configuration, fixed once the command initializes.

    Attributes:
        front_side: Chassis side treated as forward for this task.
        lookahead: Follower lookahead radius (meters).
        max_speed: Output cap as a fraction of full speed, in (0, 1].
    """

    front_side: ChassisSide = ChassisSide.FRONT
    lookahead: float = FOLLOWER_LOOKAHEAD
    max_speed: float = DEFAULT_MAX_SPEED

    def __post_init__(self) -> None:
        if not isinstance(self.front_side, ChassisSide):
            raise ValueError(f"Invalid front side: {self.front_side!r}")
        if not self.lookahead > 0:
            raise ValueError(f"Lookahead must be positive, got {self.lookahead}")
        if not 0.0 < self.max_speed <= 1.0:
            raise ValueError(f"Max speed must be in (0, 1], got {self.max_speed}")


class PathFollowerCommand:
    """Follows a path with a chassis and logs progress for later analysis.

    Driver interface: call initialize() once, execute() once per tick,
    check is_finished() each tick, and end(interrupted) exactly once.

    Attributes:
        chassis: Drivetrain being commanded. Exclusively owned while running.
        follower: Goal selector, exclusively owned by this command.
        eps_radius: Axis-wise completion tolerance around the final waypoint (m).
        config: Current task configuration.
        state: Current lifecycle state.
        init_time: Clock reading when initialize() ran.
        last_goal: Goal handed to the chassis on the most recent tick.
    """

    def __init__(
        self,
        chassis: Chassis,
        path: Path,
        eps_radius: float,
        config: Optional[PathFollowerConfig] = None,
        log_dir: Optional[Union[str, FilePath]] = ".",
        clock: Callable[[], float] = time.monotonic,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        """Create a path-following command.

        Args:
            chassis: Drivetrain to control.
            path: Path to follow.
            eps_radius: Radius around the final pose that triggers is_finished().
            config: Initial configuration (default: PathFollowerConfig()).
            log_dir: Directory for the CSV progress log. None disables logging.
            clock: Time source in seconds (default: time.monotonic).
            logger: Logger for lifecycle messages (default: this module's logger).

        Raises:
            ValueError: If eps_radius is negative.
        """
        if eps_radius < 0:
            raise ValueError(f"Epsilon radius must be non-negative, got {eps_radius}")

        self.chassis = chassis
        self.eps_radius = eps_radius
        self.config = config or PathFollowerConfig()
        self.log_dir = log_dir
        self.clock = clock
        self.logger = logger or logging.getLogger(__name__)

        self.follower = Follower(
            path,
            self.config.lookahead,
            FOLLOWER_COMPLETION_TOLERANCE,
            chassis.width_meters,
        )

        self.state = CommandState.IDLE
        self.init_time: Optional[float] = None
        self.last_goal: Optional[Translation] = None
        self.log: Optional[PathLog] = None
        self.log_path: Optional[FilePath] = None

    # ------------------------------------------------------------------
    # Builder-style configuration (IDLE only)
    # ------------------------------------------------------------------

    def _configure(self, **changes) -> "PathFollowerCommand":
        if self.state is not CommandState.IDLE:
            raise CommandStateError(
                f"Cannot reconfigure a path follower in state {self.state.value}"
            )
        self.config = replace(self.config, **changes)
        return self

    def set_front_side(self, front_side: ChassisSide) -> "PathFollowerCommand":
        """Configure which side of the robot is the "front"."""
        return self._configure(front_side=front_side)

    def with_lookahead(self, lookahead_meters: float) -> "PathFollowerCommand":
        """Set the lookahead radius.

        The bigger this is, the more shortcuts will be taken while following.
        """
        return self._configure(lookahead=lookahead_meters)

    def with_max_speed(self, speed_percent: float) -> "PathFollowerCommand":
        """Cap the drivetrain output at a fraction of full speed."""
        return self._configure(max_speed=speed_percent)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def elapsed(self) -> float:
        """Seconds since initialize(), or 0.0 before it."""
        if self.init_time is None:
            return 0.0
        return self.clock() - self.init_time

    def initialize(self) -> None:
        """One-shot setup before the first execute().

        Raises:
            CommandStateError: If the command was already initialized.
        """
        if self.state is not CommandState.IDLE:
            raise CommandStateError(f"Cannot initialize a path follower in state {self.state.value}")
        self.state = CommandState.INITIALIZING

        self.follower.set_lookahead_distance(self.config.lookahead)
        self.follower.reset()
        self.logger.info("Reset path follower")

        self.init_time = self.clock()

        if self.log_dir is not None:
            self.logger.info("Opening a CSV logfile to save path progress to")
            result = PathLog.open(self.log_dir, self.init_time)
            if result.ok:
                self.log = result.log
                self.log_path = result.log.path
            else:
                self.logger.warning(f"Failed to open CSV logfile. Not going to log data: {result.error}")

        self.chassis.set_front_side(self.config.front_side)
        self.chassis.set_max_speed_percent(self.config.max_speed)

        self.state = CommandState.RUNNING

    def execute(self) -> None:
        """Drive one tick toward the follower's current goal.

        Raises:
            CommandStateError: If the command is not running.
        """
        if self.state is not CommandState.RUNNING:
            raise CommandStateError(f"Cannot execute a path follower in state {self.state.value}")

        current_pose = self.chassis.get_pose()
        goal = self.follower.get_next_point(current_pose)

        # Termination is decided by is_finished() against the final pose
        self.chassis.set_goal_pose(goal, Translation(DRIVE_GOAL_EPSILON, DRIVE_GOAL_EPSILON))
        self.last_goal = goal

        if self.log is not None:
            try:
                self.log.append(self.elapsed, current_pose, goal)
            except (OSError, ValueError) as e:
                self.logger.warning(f"Failed to write line to logfile, disabling it: {e}")
                self.log.close_quietly()
                self.log = None

    def is_finished(self) -> bool:
        """True when the chassis is within eps_radius of the final waypoint on both axes."""
        robot_position = self.chassis.get_pose().translation
        goal_position = self.follower.get_final_pose()
        return epsilon_equals(robot_position, goal_position, Translation(self.eps_radius, self.eps_radius))

    def end(self, interrupted: bool) -> None:
        """Stop the chassis and close the log.

        Cleanup is identical for completion and interruption; only the log
        message differs. Calling end() again after termination is a no-op.

        Args:
            interrupted: True if the task was cancelled externally.

        Raises:
            CommandStateError: If the command never initialized.
        """
        if self.state.terminal:
            self.logger.warning(f"Path follower already ended ({self.state.value}), ignoring end()")
            return
        if self.state is CommandState.IDLE:
            raise CommandStateError("Cannot end a path follower that was never initialized")

        if interrupted:
            self.logger.info("Path following was interrupted.")
        else:
            self.logger.info(f"Robot successfully reached goal pose: {self.follower.get_final_pose()}")

        try:
            self.chassis.stop()
        finally:
            self.state = CommandState.INTERRUPTED if interrupted else CommandState.COMPLETED
            self._close_log()

    def _close_log(self) -> None:
        if self.log is None:
            return
        self.logger.info(f"Saving CSV logfile {self.log.path.name}")
        try:
            self.log.close()
        except OSError as e:
            self.logger.warning(f"Failed to close logfile: {e}")
        self.log = None


class CommandRunner:
    """Drives one command from the looper's output pass.

    Register the runner before the chassis so each tick the command reads the
    freshly sampled pose and the chassis applies the new goal in the same pass.
    """

    def __init__(self, command: PathFollowerCommand, name: str = "PathFollower") -> None:
        self.command = command
        self.name = name

    @property
    def finished(self) -> bool:
        return self.command.state.terminal

    def periodic_input(self) -> None:
        pass

    def periodic_output(self) -> None:
        if self.finished:
            return
        if self.command.state is CommandState.IDLE:
            self.command.initialize()

        self.command.execute()
        if self.command.is_finished():
            self.command.end(interrupted=False)

    def cancel(self) -> None:
        """Interrupt the command if it is in flight."""
        if self.command.state in (CommandState.INITIALIZING, CommandState.RUNNING):
            self.command.end(interrupted=True)

    def output_telemetry(self, telemetry: TelemetrySink) -> None:
        telemetry.put_string(f"{self.name} State", self.command.state.value)
        telemetry.put_number(f"{self.name} Progress", self.command.follower.progress)
        if self.command.last_goal is not None:
            telemetry.put_number(f"{self.name} Goal X", self.command.last_goal.x)
            telemetry.put_number(f"{self.name} Goal Y", self.command.last_goal.y)
