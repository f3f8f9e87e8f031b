# tclock/glyphs.py
# Block-character font for the big clock digits.
#
# Every glyph is GLYPH_HEIGHT rows tall. Rows of a glyph share one width, but
# widths differ between glyphs (the colon is narrow).

GLYPH_HEIGHT = 5
GLYPH_GAP = 1     # blank columns between neighbouring glyphs

FILL = "█"

_FONT: dict[str, tuple[str, ...]] = {
    "0": ("█████",
          "█   █",
          "█   █",
          "█   █",
          "█████"),
    "1": ("  █  ",
          " ██  ",
          "  █  ",
          "  █  ",
          " ███ "),
    "2": ("█████",
          "    █",
          "█████",
          "█    ",
          "█████"),
    "3": ("█████",
          "    █",
          " ████",
          "    █",
          "█████"),
    "4": ("█   █",
          "█   █",
          "█████",
          "    █",
          "    █"),
    "5": ("█████",
          "█    ",
          "█████",
          "    █",
          "█████"),
    "6": ("█████",
          "█    ",
          "█████",
          "█   █",
          "█████"),
    "7": ("█████",
          "    █",
          "   █ ",
          "  █  ",
          "  █  "),
    "8": ("█████",
          "█   █",
          "█████",
          "█   █",
          "█████"),
    "9": ("█████",
          "█   █",
          "█████",
          "    █",
          "█████"),
    ":": (" ",
          "█",
          " ",
          "█",
          " "),
    ".": (" ",
          " ",
          " ",
          " ",
          "█"),
    "-": ("   ",
          "   ",
          "███",
          "   ",
          "   "),
    " ": ("  ",
          "  ",
          "  ",
          "  ",
          "  "),
}

# unknown characters render as a blank digit-sized cell
_BLANK = tuple(" " * 5 for _ in range(GLYPH_HEIGHT))


def glyph(ch: str) -> tuple[str, ...]:
    """Return the rows of the block pattern for a single character."""
    return _FONT.get(ch, _BLANK)


def glyph_width(ch: str) -> int:
    return len(glyph(ch)[0])


def text_width(text: str) -> int:
    """Columns needed to draw ``text`` in big glyphs, gaps included."""
    if not text:
        return 0
    return sum(glyph_width(ch) for ch in text) + GLYPH_GAP * (len(text) - 1)


def supported() -> frozenset[str]:
    return frozenset(_FONT)
