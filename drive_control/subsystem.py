"""Periodic subsystem capability.

Anything the SubsystemLooper ticks exposes an input-sampling phase, an
output-application phase and a telemetry hook. No base class is required;
any object with these members can be registered.
"""

from typing import Protocol, runtime_checkable

from .telemetry import TelemetrySink


@runtime_checkable
class PeriodicSubsystem(Protocol):
    """Capability interface for looper-driven subsystems.

    Attributes:
        name: Identifier used only in diagnostics.
    """

    name: str

    def periodic_input(self) -> None:
        """Sample sensors and update internal state. Runs in the input pass."""
        ...

    def periodic_output(self) -> None:
        """Apply outputs computed from the latest state. Runs in the output pass."""
        ...

    def output_telemetry(self, telemetry: TelemetrySink) -> None:
        """Publish diagnostic values. Never affects control."""
        ...
