"""Wall-clock and monotonic time access.

The timer engine never calls ``time`` or ``datetime`` directly; it is handed a
time source so tests can drive it with :class:`ManualTimeSource`.
"""
from datetime import datetime, timedelta
from time import monotonic
from typing import Protocol


class TimeSource(Protocol):
    def monotonic(self) -> float:
        """Seconds from an arbitrary, never-decreasing origin."""
        ...

    def now(self) -> datetime:
        """Local wall-clock time."""
        ...


class SystemTimeSource:
    """Time source backed by the process clock."""

    def monotonic(self) -> float:
        return monotonic()

    def now(self) -> datetime:
        return datetime.now()


class ManualTimeSource:
    """Controllable clock: time only moves when :meth:`advance` is called."""

    def __init__(self, start: datetime | None = None, mono: float = 0.0) -> None:
        self._wall = start or datetime(2024, 1, 1, 12, 0, 0)
        self._mono = mono

    def monotonic(self) -> float:
        return self._mono

    def now(self) -> datetime:
        return self._wall

    def advance(self, seconds: float) -> None:
        if seconds < 0:
            raise ValueError("time cannot go backwards")
        self._mono += seconds
        self._wall += timedelta(seconds=seconds)
