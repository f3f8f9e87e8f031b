import pytest

from conftest import BrokenAudio, BrokenNotifier, FakeTerminal, Idle, ScriptedInput
from tclock.alarm import AlarmDispatcher
from tclock.event_loop import EventLoop, PauseToggle, Quit, Reset, Resize, SwitchMode
from tclock.renderer import CellStyle
from tclock.timer_engine import ClockMode, CountdownMode, StopwatchMode, TimerEngine


def make_loop(clock, mode, script, terminal=None, notifiers=(), audio=None,
              start=True, **kwargs):
    engine = TimerEngine(mode, clock)
    if start:
        engine.start()
    terminal = terminal or FakeTerminal()
    source = ScriptedInput(clock, script)
    loop = EventLoop(engine, source, terminal, AlarmDispatcher(notifiers, audio),
                     refresh_interval=kwargs.pop("refresh_interval", 0.1), **kwargs)
    return loop, engine, source, terminal


def has_alarm_style(grid) -> bool:
    return any(c.style is CellStyle.ALARM for row in grid.rows for c in row)


async def test_countdown_fires_exactly_one_alarm(clock, notifier, audio):
    loop, engine, source, terminal = make_loop(
        clock, CountdownMode(target=0.5), [Idle(3.0)], notifiers=[notifier], audio=audio)
    await loop.run()

    assert engine.expired
    assert len(loop.alarms) == 1
    assert notifier.messages == [loop.alarms[0].message]
    assert audio.sounds == ["complete"]
    assert engine.display_value().text == "00:00:00"


async def test_poll_timeout_tracks_refresh_deadline(clock):
    loop, _, source, _ = make_loop(clock, StopwatchMode(), [Idle(1.0)], refresh_interval=0.25)
    await loop.run()
    assert all(0 <= t <= 0.25 + 1e-9 for t in source.timeouts)
    assert source.timeouts[0] == pytest.approx(0.25)


async def test_pause_and_resume_through_input(clock):
    script = [Idle(2.0), PauseToggle(), Idle(5.0), PauseToggle(), Idle(1.0)]
    loop, engine, _, _ = make_loop(clock, StopwatchMode(), script)
    await loop.run()
    assert engine.accumulated == pytest.approx(3.0)


async def test_reset_input(clock):
    loop, engine, _, terminal = make_loop(clock, StopwatchMode(), [Idle(2.0), Reset()])
    await loop.run()
    assert engine.accumulated == 0
    assert not engine.running
    assert engine.display_value().text == "00:00:00"
    assert engine.display_value().caption == "ready"
    assert len(terminal.grids) >= 3


async def test_invalid_countdown_switch_is_reported(clock):
    script = [Idle(0.3), SwitchMode(CountdownMode(target=None)), Idle(0.3)]
    loop, engine, source, terminal = make_loop(clock, StopwatchMode(), script)
    await loop.run()
    assert len(terminal.reports) == 1
    assert "target" in terminal.reports[0]
    assert isinstance(engine.mode, StopwatchMode)
    assert engine.accumulated == pytest.approx(0.6)
    assert source.closed and terminal.closed


async def test_switch_mode_input(clock):
    script = [Idle(0.5), SwitchMode(CountdownMode(target=60))]
    loop, engine, _, terminal = make_loop(clock, ClockMode(), script)
    await loop.run()
    assert isinstance(engine.mode, CountdownMode)
    assert "00:01:00" in engine.display_value().text


async def test_resize_below_minimum_keeps_running(clock):
    terminal = FakeTerminal(24, 80)
    script = [
        Idle(0.5),
        lambda: terminal.resize(3, 20),
        Resize(3, 20),
        Idle(1.5),
    ]
    loop, engine, source, _ = make_loop(clock, StopwatchMode(), script, terminal=terminal)
    await loop.run()

    assert not terminal.grids[0].truncated
    assert terminal.grids[-1].truncated
    assert terminal.grids[-1].lines()[1].strip() == "00:00:02"
    assert terminal.closed


async def test_alarm_transport_failures_do_not_stop_rendering(clock):
    notifier, audio = BrokenNotifier(), BrokenAudio()
    loop, engine, _, terminal = make_loop(
        clock, CountdownMode(target=0.5), [Idle(2.0)],
        notifiers=[notifier], audio=audio, highlight_duration=0.5)
    await loop.run()

    assert notifier.calls == 1 and audio.calls == 1
    flagged = [has_alarm_style(g) for g in terminal.grids]
    assert any(flagged)
    # highlight window passed and frames kept coming
    assert flagged[-1] is False
    assert terminal.closed


async def test_unchanged_frames_are_not_redrawn(clock):
    loop, _, _, terminal = make_loop(clock, StopwatchMode(), [Idle(2.0)], start=False)
    await loop.run()
    assert loop.frames_drawn == 1
    assert len(terminal.grids) == 1


async def test_changed_frames_are_redrawn(clock):
    loop, _, _, terminal = make_loop(clock, StopwatchMode(), [Idle(2.05)])
    await loop.run()
    assert 3 <= loop.frames_drawn <= 4


async def test_quit_tears_down(clock):
    loop, _, source, terminal = make_loop(clock, ClockMode(), [Quit(), Idle(10)])
    await loop.run()
    assert source.closed and terminal.closed
    assert not loop.is_running
    assert clock.monotonic() == 0


async def test_teardown_runs_when_drawing_fails(clock):
    class ExplodingTerminal(FakeTerminal):
        def draw(self, grid):
            super().draw(grid)
            if len(self.grids) == 2:
                raise RuntimeError("terminal gone")

    terminal = ExplodingTerminal()
    loop, _, source, _ = make_loop(clock, StopwatchMode(), [Idle(5.0)], terminal=terminal)
    with pytest.raises(RuntimeError, match="terminal gone"):
        await loop.run()
    assert source.closed and terminal.closed


def test_refresh_interval_must_be_positive(clock):
    with pytest.raises(ValueError):
        make_loop(clock, ClockMode(), [], refresh_interval=0)
