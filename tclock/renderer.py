"""Turn a DisplayValue into a grid of styled character cells.

``render`` is a pure function of its arguments. The full layout is

    big HH:MM:SS glyphs
    (blank)
    caption line
    time bar

centred in the viewport. Lines below the digits are dropped first when rows
run short. When the digits themselves do not fit, a compact one-line
``HH:MM:SS`` is produced instead and the grid is flagged ``truncated``.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple

from tclock import glyphs
from tclock.timer_engine import DisplayValue


class CellStyle(Enum):
    NORMAL = "normal"
    BLINKING = "blinking"
    ALARM = "alarm"
    CAPTION = "caption"
    BAR = "bar"
    BAR_EMPTY = "bar-empty"


class Cell(NamedTuple):
    char: str
    style: CellStyle = CellStyle.NORMAL


class Viewport(NamedTuple):
    rows: int
    cols: int


@dataclass(frozen=True)
class GlyphGrid:
    rows: tuple[tuple[Cell, ...], ...]
    truncated: bool = False

    @property
    def height(self) -> int:
        return len(self.rows)

    @property
    def width(self) -> int:
        return max((len(r) for r in self.rows), default=0)

    def lines(self) -> list[str]:
        """Plain text of each row, styles dropped."""
        return ["".join(c.char for c in row) for row in self.rows]


BLANK = Cell(" ")
BAR_FILL = "━"
BAR_EMPTY = "─"
MIN_BAR_WIDTH = 10


def min_footprint(text: str) -> Viewport:
    """Smallest viewport that fits ``text`` in full-size glyphs."""
    return Viewport(glyphs.GLYPH_HEIGHT, glyphs.text_width(text))


def render(display: DisplayValue, viewport: Viewport, highlight: bool = False) -> GlyphGrid:
    rows, cols = max(0, viewport[0]), max(0, viewport[1])
    digit_style = CellStyle.ALARM if highlight else CellStyle.NORMAL
    text = display.text

    if rows == 0 or cols == 0:
        return GlyphGrid(rows=(), truncated=True)

    need = min_footprint(text)
    if need.rows > rows or need.cols > cols:
        return _render_compact(display, rows, cols, digit_style)

    lines: list[tuple[Cell, ...]] = [tuple(r) for r in _big_rows(text, digit_style)]

    extra: list[tuple[Cell, ...]] = []
    if display.caption:
        caption_style = CellStyle.BLINKING if highlight else CellStyle.CAPTION
        extra.append(_text_row(display.caption[:cols], caption_style))
    if display.progress is not None and cols >= MIN_BAR_WIDTH:
        bar_width = min(cols, max(MIN_BAR_WIDTH, need.cols))
        extra.append(_bar_row(display.progress, bar_width, highlight))
    # blank spacer row between digits and the rest, when there is room
    if extra and rows >= len(lines) + 1 + len(extra):
        extra.insert(0, ())
    lines.extend(extra[: rows - len(lines)])

    return GlyphGrid(rows=_center(lines, rows, cols))


def _big_rows(text: str, style: CellStyle) -> list[list[Cell]]:
    out: list[list[Cell]] = [[] for _ in range(glyphs.GLYPH_HEIGHT)]
    for i, ch in enumerate(text):
        pattern = glyphs.glyph(ch)
        for y in range(glyphs.GLYPH_HEIGHT):
            if i:
                out[y].extend([BLANK] * glyphs.GLYPH_GAP)
            out[y].extend(Cell(c, style) if c != " " else BLANK for c in pattern[y])
    return out


def _render_compact(display: DisplayValue, rows: int, cols: int, style: CellStyle) -> GlyphGrid:
    text = display.text
    if len(text) > cols:
        # keep the least significant digits, they change
        text = text[-cols:]
    line = tuple(Cell(c, style) for c in text)
    return GlyphGrid(rows=_center([line], rows, cols), truncated=True)


def _text_row(text: str, style: CellStyle) -> tuple[Cell, ...]:
    return tuple(Cell(c, style) for c in text)


def _bar_row(progress: float, width: int, highlight: bool = False) -> tuple[Cell, ...]:
    ratio = min(1.0, max(0.0, progress))
    filled = int(round(ratio * width))
    fill_style = CellStyle.ALARM if highlight else CellStyle.BAR
    return (tuple(Cell(BAR_FILL, fill_style) for _ in range(filled))
            + tuple(Cell(BAR_EMPTY, CellStyle.BAR_EMPTY) for _ in range(width - filled)))


def _center(lines: list[tuple[Cell, ...]], rows: int, cols: int) -> tuple[tuple[Cell, ...], ...]:
    """Pad lines into a rows x cols block with the content centred."""
    lines = lines[:rows]
    top = (rows - len(lines)) // 2
    blank_row = tuple([BLANK] * cols)
    out = [blank_row] * top
    for line in lines:
        line = line[:cols]
        left = (cols - len(line)) // 2
        right = cols - len(line) - left
        out.append(tuple([BLANK] * left) + line + tuple([BLANK] * right))
    out.extend([blank_row] * (rows - len(out)))
    return tuple(out)
