# tclock/clock_ui.py
# =====================================================================================
# PURPOSE
#   Textual front end for the clock:
#     - owns the terminal (raw mode, alternate screen) for the whole run
#     - turns key presses and resizes into InputEvents on an asyncio.Queue
#     - is the draw target for the EventLoop (draw / viewport / report / close)
#     - runs the EventLoop as a worker tied to the app's lifecycle
#
# KEYS
#   q / esc / ctrl+c  quit        space / p  pause/resume     r  reset
#   c  clock                      s  stopwatch                d  countdown
# =====================================================================================

from __future__ import annotations

import asyncio
import signal

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.widgets import Footer

from tclock.alarm import AlarmDispatcher, AudioPlayer, DesktopNotifier, Notifier, SoundPlayer, ToastNotifier
from tclock.common import APP_NAME, APP_VERSION, logger
from tclock.config import Configuration
from tclock.event_loop import EventLoop, InputEvent, PauseToggle, Quit, Reset, Resize, SwitchMode
from tclock.renderer import GlyphGrid, Viewport
from tclock.time_source import TimeSource
from tclock.timer_engine import ClockMode, CountdownMode, Mode, StopwatchMode, TimerEngine
from tclock.widgets.clock_face import ClockFace


class KeyInput:
    """Queue-backed input source for the EventLoop."""

    def __init__(self) -> None:
        self.queue: asyncio.Queue[InputEvent] = asyncio.Queue()
        self.closed = False

    def put(self, event: InputEvent) -> None:
        if self.closed:
            return
        self.queue.put_nowait(event)

    async def poll(self, timeout: float) -> InputEvent | None:
        try:
            return self.queue.get_nowait()
        except asyncio.QueueEmpty:
            pass
        if timeout <= 0:
            return None
        try:
            return await asyncio.wait_for(self.queue.get(), timeout)
        except asyncio.TimeoutError:
            return None

    def close(self) -> None:
        self.closed = True


class TextualTerminal:
    """Draw target backed by the app's ClockFace widget."""

    def __init__(self, app: App) -> None:
        self.app = app

    @property
    def face(self) -> ClockFace:
        return self.app.query_one("#face", ClockFace)

    def draw(self, grid: GlyphGrid) -> None:
        self.face.show(grid)

    def viewport(self) -> Viewport:
        size = self.face.content_size
        return Viewport(size.height, size.width)

    def report(self, message: str) -> None:
        self.app.notify(message, title=APP_NAME, severity="error")

    def close(self) -> None:
        if self.app.is_running:
            self.app.exit()


class ClockApp(App):
    """Big terminal clock / countdown / stopwatch."""

    CSS = """
    Screen {
        align: center middle;
    }

    #frame {
        border: round $accent;
        border-title-align: center;
        border-subtitle-align: center;
        border-title-style: bold;
        padding: 1 2;
        width: 100%;
        height: 1fr;
    }

    #face {
        width: 100%;
        height: 100%;
    }
    """

    BINDINGS = [
        Binding("q", "quit_clock", "Quit"),
        Binding("escape", "quit_clock", "Quit", show=False),
        Binding("ctrl+c", "quit_clock", "Quit", show=False, priority=True),
        Binding("space", "pause", "Pause"),
        Binding("p", "pause", "Pause", show=False),
        Binding("r", "reset", "Reset"),
        Binding("c", "switch('clock')", "Clock"),
        Binding("s", "switch('stopwatch')", "Stopwatch"),
        Binding("d", "switch('countdown')", "Countdown"),
    ]

    def __init__(
        self,
        config: Configuration | None = None,
        *,
        time_source: TimeSource | None = None,
        notifiers: list[Notifier] | None = None,
        audio: AudioPlayer | None = None,
    ) -> None:
        super().__init__()
        self.clock_config = config or Configuration()
        self.title = APP_NAME
        self.keys = KeyInput()

        self.engine = TimerEngine(
            self.clock_config.mode,
            time_source,
            time_bar=self.clock_config.time_bar,
            sound_id=self.clock_config.sound_id,
        )
        if self.clock_config.auto_start:
            self.engine.start()

        if notifiers is None:
            notifiers = [DesktopNotifier(), ToastNotifier(self)] if self.clock_config.notify else []
        if audio is None and self.clock_config.sound:
            audio = SoundPlayer(bell=self.bell)
        self.dispatcher = AlarmDispatcher(notifiers, audio)

        self.clock_loop = EventLoop(
            self.engine,
            self.keys,
            TextualTerminal(self),
            self.dispatcher,
            refresh_interval=self.clock_config.refresh_interval,
            highlight_duration=self.clock_config.alarm_highlight_duration,
        )
        self.loop_worker = None

    def compose(self) -> ComposeResult:
        with Container(id="frame"):
            yield ClockFace(self.clock_config.theme, id="face")
        yield Footer()

    def on_mount(self) -> None:
        frame = self.query_one("#frame", Container)
        frame.border_title = APP_NAME
        frame.border_subtitle = APP_VERSION

        try:
            asyncio.get_running_loop().add_signal_handler(signal.SIGTERM, self.action_quit_clock)
        except (NotImplementedError, RuntimeError):
            logger.debug("SIGTERM handler not supported here")

        self.loop_worker = self.run_worker(
            self.clock_loop.run(),
            name="clock-loop",
            group="clock",
            description="Clock refresh loop",
            exclusive=True,
        )

    def on_unmount(self) -> None:
        try:
            asyncio.get_running_loop().remove_signal_handler(signal.SIGTERM)
        except (NotImplementedError, RuntimeError):
            pass

    # ----- input -> queue -------------------------------------------------------

    def on_clock_face_viewport_changed(self, message: ClockFace.ViewportChanged) -> None:
        self.keys.put(Resize(message.rows, message.cols))

    def action_quit_clock(self) -> None:
        self.keys.put(Quit())

    def action_pause(self) -> None:
        self.keys.put(PauseToggle())

    def action_reset(self) -> None:
        self.keys.put(Reset())

    def action_switch(self, name: str) -> None:
        self.keys.put(SwitchMode(self.mode_for(name)))

    def mode_for(self, name: str) -> Mode:
        if name == "clock":
            return ClockMode()
        if name == "stopwatch":
            return StopwatchMode()
        if name == "countdown":
            return CountdownMode(target=self.clock_config.countdown_target)
        raise ValueError(f"unknown mode {name!r}")
