"""Refresh loop: input -> timer engine -> renderer -> terminal, expiry -> alarm.

The loop is a single coroutine and the only code that mutates the engine.
Input polling and the refresh deadline share one bounded wait, so the loop
neither spins nor oversleeps a frame.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Protocol, Union

from tclock.alarm import AlarmDispatcher
from tclock.common import logger
from tclock.errors import InvalidTarget
from tclock.renderer import GlyphGrid, Viewport, render
from tclock.timer_engine import AlarmEvent, Mode, TimerEngine


# ---- input events ----------------------------------------------------------------

@dataclass(frozen=True)
class Quit:
    pass


@dataclass(frozen=True)
class PauseToggle:
    pass


@dataclass(frozen=True)
class Reset:
    pass


@dataclass(frozen=True)
class SwitchMode:
    mode: Mode


@dataclass(frozen=True)
class Resize:
    rows: int
    cols: int


InputEvent = Union[Quit, PauseToggle, Reset, SwitchMode, Resize]


# ---- collaborators ---------------------------------------------------------------

class InputSource(Protocol):
    async def poll(self, timeout: float) -> InputEvent | None:
        """Next input event, or None once ``timeout`` seconds pass without one."""
        ...

    def close(self) -> None: ...


class Terminal(Protocol):
    def draw(self, grid: GlyphGrid) -> None: ...

    def viewport(self) -> Viewport: ...

    def report(self, message: str) -> None:
        """Show a short error/status message to the user."""
        ...

    def close(self) -> None:
        """Leave raw display mode."""
        ...


# ---- loop ------------------------------------------------------------------------

class EventLoop:
    """Drive one clock session until Quit.

    Parameters
    ----------
    refresh_interval : float
        Seconds between frames.
    highlight_duration : float
        Seconds the digits stay in alarm style after a countdown expires.
    drain_timeout : float
        How long teardown waits for in-flight alarm deliveries before
        cancelling them.
    """

    def __init__(
        self,
        engine: TimerEngine,
        input_source: InputSource,
        terminal: Terminal,
        dispatcher: AlarmDispatcher,
        *,
        refresh_interval: float = 0.1,
        highlight_duration: float = 10.0,
        drain_timeout: float = 1.0,
    ) -> None:
        if refresh_interval <= 0:
            raise ValueError("refresh_interval must be positive")
        self.engine = engine
        self.input = input_source
        self.terminal = terminal
        self.dispatcher = dispatcher
        self.refresh_interval = refresh_interval
        self.highlight_duration = highlight_duration
        self.drain_timeout = drain_timeout

        self.frames_drawn = 0
        self.alarms: list[AlarmEvent] = []
        self._running = False
        self._next_due = 0.0
        self._last_grid: GlyphGrid | None = None
        self._was_truncated = False

    @property
    def clock(self):
        return self.engine.clock

    @property
    def is_running(self) -> bool:
        return self._running

    async def run(self) -> None:
        logger.info("Event loop starting (mode=%s, refresh=%.3fs)",
                    self.engine.mode.name, self.refresh_interval)
        self._running = True
        try:
            self.refresh(force=True)
            self._next_due = self.clock.monotonic() + self.refresh_interval
            while self._running:
                timeout = max(0.0, self._next_due - self.clock.monotonic())
                event = await self.input.poll(timeout)
                if event is not None:
                    self.handle(event)
                    if not self._running:
                        break
                    if self.clock.monotonic() < self._next_due:
                        continue
                # poll timed out: the refresh deadline has been reached
                self.refresh()
                self._schedule_next()
        finally:
            self._running = False
            await self._teardown()

    def stop(self) -> None:
        """Ask the loop to exit after the current cycle."""
        self._running = False

    def handle(self, event: InputEvent) -> None:
        """Apply one input event to the engine and redraw."""
        logger.debug("Input: %s", event)
        if isinstance(event, Quit):
            self._running = False
            return
        elif isinstance(event, PauseToggle):
            self._alarm(self.engine.toggle_pause())
        elif isinstance(event, Reset):
            self.engine.reset()
        elif isinstance(event, SwitchMode):
            try:
                self.engine.switch_mode(event.mode)
            except InvalidTarget as e:
                logger.warning("Mode switch refused: %s", e)
                self.terminal.report(str(e))
                return
        elif isinstance(event, Resize):
            logger.debug("Terminal resized to %dx%d", event.cols, event.rows)
        else:
            logger.warning("Ignoring unknown input event %r", event)
            return
        self.refresh(force=True)

    def refresh(self, force: bool = False) -> GlyphGrid:
        """Advance the engine, render against the current viewport and draw.

        The grid is only pushed to the terminal when it changed since the last
        draw, unless ``force`` is set.
        """
        self._alarm(self.engine.advance())

        display = self.engine.display_value()
        viewport = self.terminal.viewport()
        highlight = self.engine.highlight_active(self.highlight_duration)
        grid = render(display, viewport, highlight)

        if grid.truncated != self._was_truncated:
            self._was_truncated = grid.truncated
            if grid.truncated:
                logger.info("Viewport %dx%d too small for full digits, drawing compact",
                            viewport[1], viewport[0])

        if force or grid != self._last_grid:
            self.terminal.draw(grid)
            self._last_grid = grid
            self.frames_drawn += 1
        return grid

    # ----- internals ------------------------------------------------------------

    def _alarm(self, event: AlarmEvent | None) -> None:
        if event is None:
            return
        self.alarms.append(event)
        self.dispatcher.fire(event)

    def _schedule_next(self) -> None:
        self._next_due += self.refresh_interval
        now = self.clock.monotonic()
        if self._next_due <= now:
            # a slow frame: skip the missed slots instead of bursting
            self._next_due = now + self.refresh_interval

    async def _teardown(self) -> None:
        logger.info("Event loop stopping after %d frames", self.frames_drawn)
        try:
            await asyncio.wait_for(self.dispatcher.wait_idle(), self.drain_timeout)
        except asyncio.TimeoutError:
            logger.warning("Alarm delivery still pending at exit, cancelling")
        finally:
            await self.dispatcher.aclose()
            for collaborator in (self.input, self.terminal):
                try:
                    collaborator.close()
                except Exception:
                    logger.exception("Error closing %s", type(collaborator).__name__)
