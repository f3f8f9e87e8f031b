# tests/conftest.py
# Fakes for the clock's collaborators and a manual clock.

import asyncio
from collections import deque
from datetime import datetime

import pytest

from tclock.errors import Unavailable
from tclock.event_loop import Quit
from tclock.renderer import Viewport
from tclock.time_source import ManualTimeSource


class Idle:
    """Script step: let ``seconds`` pass without any input."""

    def __init__(self, seconds: float) -> None:
        self.seconds = seconds


class ScriptedInput:
    """Input source that replays a script against a ManualTimeSource.

    Script items are Idle(seconds), InputEvents, or plain callables run for
    their side effect. Waiting advances the manual clock by the poll timeout,
    so the loop under test sees time pass exactly as it would for real. Once
    the script runs out a Quit is returned.
    """

    def __init__(self, clock: ManualTimeSource, script=()) -> None:
        self.clock = clock
        self.script = deque(script)
        self.closed = False
        self.timeouts: list[float] = []

    async def poll(self, timeout: float):
        self.timeouts.append(timeout)
        await asyncio.sleep(0)
        while self.script:
            item = self.script[0]
            if isinstance(item, Idle):
                step = min(timeout, item.seconds)
                self.clock.advance(step)
                item.seconds -= step
                if item.seconds <= 1e-12:
                    self.script.popleft()
                return None
            self.script.popleft()
            if callable(item):
                item()
                continue
            return item
        return Quit()

    def close(self) -> None:
        self.closed = True


class FakeTerminal:
    def __init__(self, rows: int = 24, cols: int = 80) -> None:
        self.size = Viewport(rows, cols)
        self.grids = []
        self.reports: list[str] = []
        self.closed = False

    def resize(self, rows: int, cols: int) -> None:
        self.size = Viewport(rows, cols)

    def draw(self, grid) -> None:
        self.grids.append(grid)

    def viewport(self) -> Viewport:
        return self.size

    def report(self, message: str) -> None:
        self.reports.append(message)

    def close(self) -> None:
        self.closed = True


class RecordingNotifier:
    def __init__(self) -> None:
        self.messages: list[str] = []

    async def notify(self, message: str) -> None:
        self.messages.append(message)


class RecordingAudio:
    def __init__(self) -> None:
        self.sounds: list[str] = []

    async def play(self, sound_id: str) -> None:
        self.sounds.append(sound_id)


class BrokenNotifier:
    def __init__(self) -> None:
        self.calls = 0

    async def notify(self, message: str) -> None:
        self.calls += 1
        raise Unavailable("desktop notifications", "no daemon")


class BrokenAudio:
    def __init__(self) -> None:
        self.calls = 0

    async def play(self, sound_id: str) -> None:
        self.calls += 1
        raise Unavailable("sound", "no audio device")


@pytest.fixture
def clock():
    return ManualTimeSource(start=datetime(2024, 1, 1, 12, 0, 0))


@pytest.fixture
def terminal():
    return FakeTerminal()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def audio():
    return RecordingAudio()
