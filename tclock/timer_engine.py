"""Timer state machine for the clock, countdown and stopwatch modes.

The engine owns :class:`TimerState` and is the only thing that mutates it.
Everything it hands out (``DisplayValue``, ``AlarmEvent``, ``snapshot()``) is
immutable, so the renderer and alarm dispatcher never share state with it.

Time accounting follows the same pattern as a pausable countdown widget:
``accumulated`` holds the banked running time and ``started_at`` is the
monotonic reference of the current running interval. Pausing banks the open
interval first, resuming takes a fresh reference, so paused time never counts.
"""
from __future__ import annotations

import math
import uuid
from datetime import datetime, timedelta
from dataclasses import dataclass, field, replace
from typing import ClassVar, Literal, Optional, Union

from tclock.common import logger
from tclock.errors import InvalidTarget
from tclock.time_source import SystemTimeSource, TimeSource
from tclock.utils import format_duration, split_hms

TimeBar = Union[Literal["minute", "hour", "day"], float]

_BAR_SECONDS = {"minute": 60, "hour": 60 * 60, "day": 24 * 60 * 60}


def bar_length(bar: TimeBar) -> float:
    """Length in seconds of a named time bar, or of a custom one given in seconds."""
    if isinstance(bar, str):
        return float(_BAR_SECONDS[bar])
    if not bar > 0:
        raise ValueError(f"time bar length must be positive, got {bar}")
    return float(bar)


# ---- modes ---------------------------------------------------------------------

@dataclass(frozen=True)
class ClockMode:
    """Mirror the wall clock. Never runs out, ignores pause."""
    name: ClassVar[str] = "clock"


@dataclass(frozen=True)
class CountdownMode:
    """Count down from ``target`` seconds to zero."""
    target: Optional[float] = None
    name: ClassVar[str] = "countdown"


@dataclass(frozen=True)
class StopwatchMode:
    """Count up from zero."""
    name: ClassVar[str] = "stopwatch"


Mode = Union[ClockMode, CountdownMode, StopwatchMode]


def validate_mode(mode: Mode) -> Mode:
    if isinstance(mode, CountdownMode):
        if mode.target is None or not mode.target > 0:
            raise InvalidTarget(mode.target)
    elif isinstance(mode, (ClockMode, StopwatchMode)):
        pass
    else:
        raise TypeError(f"unknown mode: {mode!r}")
    return mode


# ---- snapshots -----------------------------------------------------------------

@dataclass
class TimerState:
    mode: Mode
    running: bool = False
    started_at: Optional[float] = None   # monotonic, only while running
    accumulated: float = 0.0
    expired: bool = False
    expired_at: Optional[float] = None   # monotonic time of expiry


@dataclass(frozen=True)
class DisplayValue:
    """What the clock face should show for one frame."""
    hours: int
    minutes: int
    seconds: int
    negative: bool = False
    caption: str = ""
    progress: Optional[float] = None

    @property
    def text(self) -> str:
        sign = "-" if self.negative else ""
        return f"{sign}{self.hours:02d}:{self.minutes:02d}:{self.seconds:02d}"


@dataclass(frozen=True, eq=False)
class AlarmEvent:
    """One-shot token produced when a countdown expires.

    Equality is identity: two events with the same message are still two
    separate alarms.
    """
    message: str
    sound_id: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])


# ---- engine --------------------------------------------------------------------

class TimerEngine:
    """State machine driving one timer session.

    ``tick(elapsed)`` is the primitive; ``advance()`` measures ``elapsed`` from
    the injected time source and is what the event loop calls each cycle.
    """

    def __init__(
        self,
        mode: Mode | None = None,
        time_source: TimeSource | None = None,
        *,
        time_bar: TimeBar | None = None,
        sound_id: str = "complete",
    ) -> None:
        self.clock = time_source or SystemTimeSource()
        if time_bar is not None:
            bar_length(time_bar)
        self.time_bar = time_bar
        self.sound_id = sound_id
        self._state = TimerState(mode=validate_mode(mode or ClockMode()))
        self._first_start_wall: Optional[datetime] = None
        # custom-length bars restart every length seconds from here
        self._bar_anchor: datetime = self.clock.now()
        logger.debug("TimerEngine created in %s mode", self._state.mode.name)

    # ----- read-only views ------------------------------------------------------

    @property
    def mode(self) -> Mode:
        return self._state.mode

    @property
    def running(self) -> bool:
        return self._state.running

    @property
    def expired(self) -> bool:
        return self._state.expired

    @property
    def accumulated(self) -> float:
        return self._state.accumulated

    def snapshot(self) -> TimerState:
        """Copy of the current state, safe to hand out."""
        return replace(self._state)

    # ----- operations -----------------------------------------------------------

    def tick(self, elapsed: float) -> AlarmEvent | None:
        """Add ``elapsed`` seconds of running time.

        Returns an AlarmEvent on the tick that takes a countdown to its target,
        None on every other tick.
        """
        if elapsed < 0:
            raise ValueError(f"elapsed must be >= 0, got {elapsed}")
        st = self._state
        if isinstance(st.mode, ClockMode) or not st.running:
            return None

        st.accumulated += elapsed

        if isinstance(st.mode, CountdownMode) and not st.expired:
            if st.accumulated >= st.mode.target:
                return self._expire()
        return None

    def advance(self) -> AlarmEvent | None:
        """Tick by the monotonic time elapsed since the last reference point."""
        st = self._state
        if not st.running or st.started_at is None:
            return None
        now = self.clock.monotonic()
        elapsed = max(0.0, now - st.started_at)
        st.started_at = now
        return self.tick(elapsed)

    def start(self) -> AlarmEvent | None:
        """Start running if paused. No-op in clock mode or once expired."""
        if self._state.running:
            return None
        return self.toggle_pause()

    def toggle_pause(self) -> AlarmEvent | None:
        """Pause a running timer or resume a paused one.

        Pausing banks the open running interval, which can itself finish a
        countdown; the resulting AlarmEvent is returned in that case.
        """
        st = self._state
        if isinstance(st.mode, ClockMode):
            logger.debug("Pause ignored in clock mode")
            return None
        if st.expired:
            logger.debug("Pause ignored, countdown already expired")
            return None

        if st.running:
            event = self.advance()
            if st.running:
                st.running = False
                st.started_at = None
                logger.info("Paused at %.3fs", st.accumulated)
            return event

        st.running = True
        st.started_at = self.clock.monotonic()
        if self._first_start_wall is None:
            self._first_start_wall = self.clock.now()
        logger.info("Resumed at %.3fs", st.accumulated)
        return None

    def reset(self) -> None:
        """Back to the mode's initial state: zero, not expired, paused."""
        self._state = TimerState(mode=self._state.mode)
        self._first_start_wall = None
        logger.info("Reset %s", self._state.mode.name)

    def switch_mode(self, new_mode: Mode) -> None:
        """Reset and install ``new_mode``.

        Raises InvalidTarget for a countdown without a positive target; the
        current mode and state are left untouched in that case.
        """
        validate_mode(new_mode)
        old = self._state.mode.name
        self._state = TimerState(mode=new_mode)
        self._first_start_wall = None
        logger.info("Switched mode %s -> %s", old, new_mode.name)

    def highlight_active(self, window: float) -> bool:
        """True during the first ``window`` seconds after expiry."""
        st = self._state
        if not st.expired or st.expired_at is None or window <= 0:
            return False
        return self.clock.monotonic() - st.expired_at < window

    def display_value(self) -> DisplayValue:
        """Project the current state for display. Has no side effects."""
        mode = self._state.mode
        if isinstance(mode, ClockMode):
            return self._clock_display()
        elif isinstance(mode, CountdownMode):
            return self._countdown_display(mode)
        elif isinstance(mode, StopwatchMode):
            return self._stopwatch_display()
        raise TypeError(f"unknown mode: {mode!r}")

    # ----- internals ------------------------------------------------------------

    def _expire(self) -> AlarmEvent:
        st = self._state
        st.expired = True
        st.expired_at = self.clock.monotonic()
        st.running = False
        st.started_at = None
        target = st.mode.target
        logger.info("Countdown of %s expired", format_duration(target))
        return AlarmEvent(
            message=f"Countdown of {format_duration(target)} finished",
            sound_id=self.sound_id,
        )

    def _clock_display(self) -> DisplayValue:
        now = self.clock.now()
        caption = now.strftime("%Y-%m-%d")
        progress = None
        if self.time_bar is not None:
            length = bar_length(self.time_bar)
            last_reset = self._bar_last_reset(now, length)
            elapsed = (now - last_reset).total_seconds()
            until = last_reset + timedelta(seconds=length)
            progress = min(1.0, elapsed / length)
            caption += (f" | {format_duration(elapsed)} / {format_duration(length)}"
                        f" | {last_reset:%H:%M:%S} -> {until:%H:%M:%S}")
        return DisplayValue(
            hours=now.hour,
            minutes=now.minute,
            seconds=now.second,
            caption=caption,
            progress=progress,
        )

    def _bar_last_reset(self, now: datetime, length: float) -> datetime:
        """Start of the time bar period that contains ``now``."""
        if isinstance(self.time_bar, str):
            origin = now.replace(hour=0, minute=0, second=0, microsecond=0)
        else:
            origin = self._bar_anchor
        since = (now - origin).total_seconds()
        return origin + timedelta(seconds=since - since % length)

    def _countdown_display(self, mode: CountdownMode) -> DisplayValue:
        st = self._state
        target = mode.target
        elapsed = min(st.accumulated, target)
        remaining = max(0.0, target - st.accumulated)
        # show 00:00:01 until the last second is actually gone
        whole = 0 if st.expired else math.ceil(round(remaining, 6))
        h, m, s = split_hms(whole)

        label = f"{format_duration(elapsed)} / {format_duration(target)}"
        if st.expired:
            label += " | time's up"
        elif st.running:
            until = self.clock.now() + timedelta(seconds=remaining)
            label += f" | until {until:%H:%M:%S}"
        else:
            label += " | paused"
        return DisplayValue(
            hours=h,
            minutes=m,
            seconds=s,
            caption=label,
            progress=min(1.0, elapsed / target),
        )

    def _stopwatch_display(self) -> DisplayValue:
        st = self._state
        h, m, s = split_hms(math.floor(st.accumulated + 1e-9))
        if self._first_start_wall is None:
            caption = "ready"
        else:
            caption = (f"{self._first_start_wall:%H:%M:%S} + "
                       f"{format_duration(st.accumulated)}")
            if not st.running:
                caption += " | paused"
        return DisplayValue(hours=h, minutes=m, seconds=s, caption=caption)

