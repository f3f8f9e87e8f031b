"""Exception types raised by the clock core."""


class TClockError(Exception):
    """Base class for all clock errors."""


class InvalidTarget(TClockError):
    """A countdown was requested without a positive target duration."""

    def __init__(self, target: float | None) -> None:
        self.target = target
        if target is None:
            msg = "Countdown needs a target duration."
        else:
            msg = f"Countdown target must be positive, got {target:g}s."
        super().__init__(msg)


class Unavailable(TClockError):
    """A notification or audio transport is missing or failed."""

    def __init__(self, transport: str, reason: str = "") -> None:
        self.transport = transport
        self.reason = reason
        super().__init__(f"{transport} unavailable" + (f": {reason}" if reason else ""))
