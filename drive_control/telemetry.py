"""Diagnostic telemetry channel.

Subsystems publish named values every telemetry pass. The channel is advisory:
nothing in the control path reads from it, and a sink that drops everything
is a valid implementation.
"""

from typing import Dict, Optional, Protocol, Union

Value = Union[float, str, bool]


class TelemetrySink(Protocol):
    """Write side of the telemetry channel."""

    def put_number(self, key: str, value: float) -> None: ...

    def put_string(self, key: str, value: str) -> None: ...

    def put_boolean(self, key: str, value: bool) -> None: ...


class TelemetryTable:
    """In-memory key/value table holding the latest value per key.

    Example:
        >>> table = TelemetryTable()
        >>> table.put_number("SubsystemLooper DT", 0.004)
        >>> table.get_number("SubsystemLooper DT")
        0.004
    """

    def __init__(self) -> None:
        self._values: Dict[str, Value] = {}

    def put_number(self, key: str, value: float) -> None:
        self._values[key] = float(value)

    def put_string(self, key: str, value: str) -> None:
        self._values[key] = str(value)

    def put_boolean(self, key: str, value: bool) -> None:
        self._values[key] = bool(value)

    def get_number(self, key: str, default: Optional[float] = None) -> Optional[float]:
        value = self._values.get(key, default)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return default
        return float(value)

    def get(self, key: str, default: Optional[Value] = None) -> Optional[Value]:
        return self._values.get(key, default)

    def snapshot(self) -> Dict[str, Value]:
        """Return a copy of every published value."""
        return dict(self._values)

    def clear(self) -> None:
        self._values.clear()


class NullTelemetry:
    """Sink that discards everything."""

    def put_number(self, key: str, value: float) -> None:
        pass

    def put_string(self, key: str, value: str) -> None:
        pass

    def put_boolean(self, key: str, value: bool) -> None:
        pass
