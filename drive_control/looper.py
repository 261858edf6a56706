"""Fixed-period subsystem scheduler.

The SubsystemLooper holds an ordered list of periodic subsystems. Each tick
runs every subsystem's input phase, then every subsystem's output phase. A
failing subsystem is logged and skipped for that phase; it never stops the
other subsystems or the loop itself.
"""

import logging
import time
from typing import Callable, List, Optional

from .config import LOOPER_PERIOD
from .subsystem import PeriodicSubsystem
from .telemetry import NullTelemetry, TelemetrySink


class SubsystemLooper:
    """Dual-phase scheduler for periodic subsystems.

    The looper does not own a thread or timer. An external driver calls
    update() once per period.

    Attributes:
        period: Configured tick period (seconds).
        subsystems: Registered subsystems in execution order.
        dt: Combined input and output execution time of the last tick (seconds).
        input_time: Execution time of the last input pass (seconds).
        output_time: Execution time of the last output pass (seconds).
        last_timestamp: Clock reading at the start of the last phase call.
    """

    def __init__(
        self,
        period: float = LOOPER_PERIOD,
        clock: Callable[[], float] = time.perf_counter,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        """Initialize the looper.

        Args:
            period: Tick period in seconds. Must be positive.
            clock: Monotonic time source in seconds (default: time.perf_counter).
            logger: Logger for diagnostics (default: this module's logger).

        Raises:
            ValueError: If period is not positive.
        """
        if not period > 0:
            raise ValueError(f"Looper period must be positive, got {period}")

        self.period = period
        self.clock = clock
        self.logger = logger or logging.getLogger(__name__)

        self.subsystems: List[PeriodicSubsystem] = []
        self.dt: float = 0.0
        self.input_time: float = 0.0
        self.output_time: float = 0.0
        self.last_timestamp: Optional[float] = None

        self.logger.debug("[SubsystemLooper] Constructing")

    def register(self, subsystem: PeriodicSubsystem) -> None:
        """Append a subsystem to the execution order.

        Duplicate registration is not checked; registering the same subsystem
        twice runs it twice per pass.
        """
        self.subsystems.append(subsystem)
        self.logger.info(f"[SubsystemLooper] Registered {subsystem.name}")

    def _run_pass(self, phase: str) -> float:
        """Run one phase for every subsystem and return the summed execution time."""
        elapsed = 0.0

        for subsystem in self.subsystems:
            start = self.clock()
            self.last_timestamp = start

            try:
                if phase == "input":
                    subsystem.periodic_input()
                else:
                    subsystem.periodic_output()
            except Exception as e:
                self.logger.error(
                    f"[SubsystemLooper] {subsystem.name} failed during periodic {phase}: {e}",
                    exc_info=True,
                )

            elapsed += self.clock() - start

        if elapsed > self.period / 2:
            self.logger.warning(
                f"[SubsystemLooper] Subsystem {phase}s are using more than half of the "
                f"allotted looper time ({elapsed * 1000:.2f}ms of {self.period * 1000:.2f}ms)"
            )

        return elapsed

    def update(self) -> None:
        """Execute one tick: every input phase, then every output phase."""
        self.input_time = self._run_pass("input")
        self.output_time = self._run_pass("output")
        self.dt = self.input_time + self.output_time

    tick = update

    def output_telemetry(self, telemetry: Optional[TelemetrySink] = None) -> None:
        """Publish looper timing and ask each subsystem to publish its state.

        Separate from update() and safe to skip. A subsystem whose telemetry
        hook raises is logged and skipped.

        Args:
            telemetry: Destination channel (default: discard).
        """
        sink = telemetry if telemetry is not None else NullTelemetry()

        try:
            sink.put_number("SubsystemLooper DT", self.dt)
        except Exception as e:
            self.logger.warning(f"[SubsystemLooper] Failed to publish looper telemetry: {e}")

        for subsystem in self.subsystems:
            try:
                subsystem.output_telemetry(sink)
            except Exception as e:
                self.logger.warning(
                    f"[SubsystemLooper] {subsystem.name} failed to output telemetry: {e}"
                )
