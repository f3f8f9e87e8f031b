# tclock/alarm.py
# =====================================================================================
# PURPOSE
#   Deliver a countdown alarm exactly once:
#     - AlarmDispatcher.fire(event) dedupes by event id and schedules delivery
#       as background asyncio tasks, so the refresh loop never waits on them
#     - every transport failure is logged and dropped
#
# TRANSPORTS
#   - DesktopNotifier: `notify-send` (Linux) / `osascript` (macOS)
#   - ToastNotifier:   Textual's in-app toast
#   - SoundPlayer:     `paplay` / `afplay` / `aplay`, terminal bell as fallback
# =====================================================================================

from __future__ import annotations

import asyncio
import shutil
import sys
from pathlib import Path
from typing import Callable, Protocol, Sequence

from tclock.common import APP_NAME, logger
from tclock.errors import Unavailable
from tclock.timer_engine import AlarmEvent


class Notifier(Protocol):
    async def notify(self, message: str) -> None: ...


class AudioPlayer(Protocol):
    async def play(self, sound_id: str) -> None: ...


class AlarmDispatcher:
    """Fire-and-forget delivery of AlarmEvents to notification/audio transports.

    Parameters
    ----------
    notifiers : sequence of Notifier
        Each gets the event message. Empty means notifications are disabled.
    audio : AudioPlayer or None
        Gets the event sound id. None means sound is disabled.
    """

    def __init__(self, notifiers: Sequence[Notifier] = (), audio: AudioPlayer | None = None):
        self.notifiers = list(notifiers)
        self.audio = audio
        self._fired: set[str] = set()
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def fire(self, event: AlarmEvent) -> bool:
        """Schedule delivery of ``event``. Returns False if it was already fired.

        Must be called from inside a running asyncio loop.
        """
        if event.id in self._fired:
            logger.debug("Alarm %s already fired, ignoring", event.id)
            return False
        self._fired.add(event.id)
        logger.info("Alarm %s: %s (sound=%s)", event.id, event.message, event.sound_id)

        for notifier in self.notifiers:
            self._spawn(self._deliver(type(notifier).__name__, notifier.notify, event.message))
        if self.audio is not None:
            self._spawn(self._deliver(type(self.audio).__name__, self.audio.play, event.sound_id))
        return True

    async def wait_idle(self) -> None:
        """Wait until every scheduled delivery has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self) -> None:
        """Cancel deliveries that are still in flight."""
        tasks = list(self._tasks)
        for t in tasks:
            t.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.debug("Cancelled %d pending alarm deliveries", len(tasks))

    # ----- internals ------------------------------------------------------------

    def _spawn(self, coro) -> None:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _deliver(self, name: str, send: Callable, arg: str) -> None:
        try:
            await send(arg)
            logger.debug("%s delivered %r", name, arg)
        except Unavailable as e:
            logger.warning("%s: %s", name, e)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("%s failed while delivering %r", name, arg)


# ---- transports ------------------------------------------------------------------

async def _reap(proc: asyncio.subprocess.Process) -> None:
    """Kill a helper that is still running and wait for it to exit."""
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            pass
    # shielded so a second cancellation cannot leave a zombie behind
    await asyncio.shield(proc.wait())
    logger.debug("helper %s stopped with %s", proc.pid, proc.returncode)


async def _run(argv: list[str], timeout: float, transport: str) -> None:
    """Run an external helper and raise Unavailable unless it exits 0."""
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.DEVNULL,
        )
    except OSError as e:
        raise Unavailable(transport, str(e)) from e
    try:
        rc = await asyncio.wait_for(proc.wait(), timeout)
    except asyncio.TimeoutError:
        await _reap(proc)
        raise Unavailable(transport, f"{argv[0]} timed out after {timeout:g}s")
    except asyncio.CancelledError:
        await _reap(proc)
        raise
    if rc != 0:
        raise Unavailable(transport, f"{argv[0]} exited with {rc}")


class DesktopNotifier:
    """Desktop notification through the platform's command line helper."""

    def __init__(self, title: str = APP_NAME, timeout: float = 5.0) -> None:
        self.title = title
        self.timeout = timeout

    def command(self, message: str) -> list[str]:
        if sys.platform == "darwin" and shutil.which("osascript"):
            script = f'display notification "{_quote(message)}" with title "{_quote(self.title)}"'
            return ["osascript", "-e", script]
        if shutil.which("notify-send"):
            return ["notify-send", "-a", APP_NAME, "-u", "critical", self.title, message]
        raise Unavailable("desktop notifications", "no notify-send or osascript on PATH")

    async def notify(self, message: str) -> None:
        await _run(self.command(message), self.timeout, "desktop notifications")


class ToastNotifier:
    """In-terminal toast using Textual's App.notify."""

    def __init__(self, app, timeout: float = 10.0) -> None:
        self.app = app
        self.timeout = timeout

    async def notify(self, message: str) -> None:
        if self.app is None or not self.app.is_running:
            raise Unavailable("toast", "app is not running")
        self.app.notify(message, title=APP_NAME, severity="warning", timeout=self.timeout)


FREEDESKTOP_SOUNDS = Path("/usr/share/sounds/freedesktop/stereo")
MACOS_SOUNDS = Path("/System/Library/Sounds")
# freedesktop theme names -> closest stock macOS sound
_MACOS_NAMES = {"complete": "Glass", "bell": "Ping", "alarm-clock-elapsed": "Hero"}


class SoundPlayer:
    """Play a sound theme entry (or a file path) with whatever player exists.

    ``bell`` is called when no player or sound file is available; without it
    the player reports Unavailable.
    """

    players = ("paplay", "afplay", "aplay")

    def __init__(self, bell: Callable[[], None] | None = None, timeout: float = 10.0) -> None:
        self.bell = bell
        self.timeout = timeout

    def resolve(self, sound_id: str) -> Path | None:
        candidates = [Path(sound_id).expanduser()]
        if sys.platform == "darwin":
            candidates.append(MACOS_SOUNDS / f"{_MACOS_NAMES.get(sound_id, sound_id)}.aiff")
        candidates += [FREEDESKTOP_SOUNDS / f"{sound_id}.oga", FREEDESKTOP_SOUNDS / f"{sound_id}.wav"]
        for path in candidates:
            if path.is_file():
                return path
        return None

    def player(self) -> str | None:
        for name in self.players:
            if shutil.which(name):
                return name
        return None

    async def play(self, sound_id: str) -> None:
        path = self.resolve(sound_id)
        player = self.player()
        if path is not None and player is not None:
            try:
                await _run([player, str(path)], self.timeout, "sound")
                return
            except Unavailable as e:
                if self.bell is None:
                    raise
                logger.debug("Falling back to terminal bell: %s", e)
        if self.bell is None:
            raise Unavailable("sound", f"cannot play {sound_id!r}")
        self.bell()


def _quote(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')
