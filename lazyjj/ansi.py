"""ANSI-aware text measurement used by the frame compositor.

Content blocks arrive pre-styled (jj colours its own output). A styled line is
read as a stream of cells: escape sequences occupy no columns, wide characters
occupy two and tabs run to the next stop.
"""

from __future__ import annotations

import re
import unicodedata
from collections.abc import Iterator

ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]")
RESET = "\033[0m"
TAB_STOP = 8


def strip_ansi(text: str) -> str:
    return ANSI_ESCAPE_RE.sub("", text)


def char_display_width(ch: str, col: int) -> int:
    if ch == "\t":
        return TAB_STOP - (col % TAB_STOP)
    if unicodedata.combining(ch):
        return 0
    if unicodedata.east_asian_width(ch) in {"W", "F"}:
        return 2
    return 1


def iter_cells(text: str) -> Iterator[tuple[str, int, int]]:
    """Yield ``(chunk, column, width)`` for each escape sequence or character.

    Escape sequences report width 0. Tabs are yielded as the spaces they
    expand to, so callers never have to re-expand them.
    """
    col = 0
    index = 0
    while index < len(text):
        if text[index] == "\x1b":
            match = ANSI_ESCAPE_RE.match(text, index)
            if match is not None:
                yield match.group(0), col, 0
                index = match.end()
                continue
        ch = text[index]
        width = char_display_width(ch, col)
        yield (" " * width if ch == "\t" else ch), col, width
        col += width
        index += 1


def display_width(text: str) -> int:
    """Return the number of terminal columns ``text`` occupies."""
    end = 0
    for _chunk, col, width in iter_cells(text):
        end = col + width
    return end


def slice_ansi_line(text: str, start_cols: int, max_cols: int) -> str:
    """Return the columns ``[start_cols, start_cols + max_cols)`` of a styled line.

    The last colour set before the window is replayed at its start. A wide
    character cut by the left edge becomes padding; one that would cross the
    right edge is dropped.
    """
    if max_cols <= 0 or not text:
        return ""
    start_cols = max(0, start_cols)
    stop_cols = start_cols + max_cols

    out: list[str] = []
    carried_sgr = ""
    started = False
    for chunk, col, width in iter_cells(text):
        if width == 0 and chunk.startswith("\x1b"):
            if col < start_cols:
                if chunk.endswith("m"):
                    carried_sgr = chunk
            elif col < stop_cols:
                out.append(chunk)
                started = True
            continue
        if col + width <= start_cols:
            continue
        if col + width > stop_cols:
            break
        if not started:
            if carried_sgr:
                out.append(carried_sgr)
            started = True
        if col < start_cols:
            out.append(" " * (col + width - start_cols))
        else:
            out.append(chunk)
    return "".join(out)


def pad_ansi_line(text: str, width: int) -> str:
    """Clip ``text`` to ``width`` columns and right-pad it with spaces."""
    clipped = slice_ansi_line(text, 0, width)
    missing = width - display_width(clipped)
    if "\x1b" in clipped:
        clipped += RESET
    return clipped + " " * max(0, missing)
