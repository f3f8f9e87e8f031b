from tclock.clock_ui import ClockApp, KeyInput
from tclock.config import DEFAULT_COUNTDOWN, Configuration, Theme
from tclock.event_loop import PauseToggle, Quit
from tclock.renderer import Viewport, render
from tclock.timer_engine import ClockMode, CountdownMode, DisplayValue, StopwatchMode
from tclock.widgets.clock_face import ClockFace, cell_styles, grid_to_text


def quiet(**kwargs) -> Configuration:
    return Configuration(notify=False, sound=False, **kwargs)


async def test_key_input_poll():
    keys = KeyInput()
    assert await keys.poll(0) is None
    assert await keys.poll(0.01) is None
    keys.put(PauseToggle())
    keys.put(Quit())
    assert await keys.poll(0) == PauseToggle()
    assert await keys.poll(1.0) == Quit()
    keys.close()
    keys.put(PauseToggle())
    assert await keys.poll(0) is None


def test_grid_to_text_styles_runs():
    theme = Theme(digits="green")
    grid = render(DisplayValue(0, 0, 7), Viewport(5, 39))
    text = grid_to_text(grid, cell_styles(theme))
    assert text.plain == "\n".join(grid.lines())
    assert any(str(span.style) == "green" for span in text.spans)


async def test_app_draws_and_handles_keys():
    app = ClockApp(quiet(mode=StopwatchMode()))
    async with app.run_test(size=(80, 24)) as pilot:
        await pilot.pause(0.3)
        face = app.query_one(ClockFace)
        assert face.grid is not None
        assert not face.grid.truncated
        assert app.engine.running

        await pilot.press("space")
        await pilot.pause(0.1)
        assert not app.engine.running

        await pilot.press("d")
        await pilot.pause(0.1)
        assert isinstance(app.engine.mode, CountdownMode)
        assert app.engine.mode.target == DEFAULT_COUNTDOWN

        await pilot.press("q")
        await app.workers.wait_for_complete()
    assert app.keys.closed
    assert not app.clock_loop.is_running


async def test_small_terminal_draws_compact_clock():
    app = ClockApp(quiet(mode=ClockMode()))
    async with app.run_test(size=(30, 8)) as pilot:
        await pilot.pause(0.3)
        grid = app.query_one(ClockFace).grid
        assert grid is not None and grid.truncated
        await pilot.press("space")
        await pilot.pause(0.1)
        assert isinstance(app.engine.mode, ClockMode)
        await pilot.press("q")
        await app.workers.wait_for_complete()
