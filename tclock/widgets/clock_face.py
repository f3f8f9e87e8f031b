from itertools import groupby

from rich.text import Text
from textual import events
from textual.message import Message
from textual.widgets import Static

from tclock.config import Theme
from tclock.renderer import CellStyle, GlyphGrid


def cell_styles(theme: Theme) -> dict[CellStyle, str]:
    return {
        CellStyle.NORMAL: theme.digits,
        CellStyle.ALARM: theme.alarm,
        CellStyle.BLINKING: f"blink bold {theme.caption}",
        CellStyle.CAPTION: theme.caption,
        CellStyle.BAR: theme.bar,
        CellStyle.BAR_EMPTY: "dim",
    }


def grid_to_text(grid: GlyphGrid, styles: dict[CellStyle, str]) -> Text:
    """Convert a glyph grid to Rich text, one span per run of equal style."""
    text = Text(no_wrap=True, overflow="crop")
    for i, row in enumerate(grid.rows):
        if i:
            text.append("\n")
        for style, cells in groupby(row, key=lambda c: c.style):
            text.append("".join(c.char for c in cells), style=styles.get(style, ""))
    return text


class ClockFace(Static):
    """Draw target for rendered glyph grids."""

    class ViewportChanged(Message):
        """Posted whenever the face is resized."""

        def __init__(self, rows: int, cols: int) -> None:
            super().__init__()
            self.rows = rows
            self.cols = cols

    def __init__(self, theme: Theme | None = None, **kwargs) -> None:
        super().__init__("", **kwargs)
        self.styles_map = cell_styles(theme or Theme())
        self.grid: GlyphGrid | None = None

    def show(self, grid: GlyphGrid) -> None:
        self.grid = grid
        self.update(grid_to_text(grid, self.styles_map))

    def on_resize(self, event: events.Resize) -> None:
        self.post_message(self.ViewportChanged(event.size.height, event.size.width))
