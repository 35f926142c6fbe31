"""Common surface behaviour: frame bookkeeping and scrollable lists."""

from __future__ import annotations

from ..ansi import pad_ansi_line
from ..effects import Effect
from ..events import Event
from ..layout import EMPTY_RECT, Rect

SELECTED = "\033[7m"
DIM = "\033[2m"
BOLD = "\033[1m"
RED = "\033[31m"
RESET = "\033[0m"


class Surface:
    """Something that occupies a rectangle of the frame and handles events.

    ``handle`` returns follow-up effects, or ``None`` when the event was not
    for this surface. Surfaces that take every key while focused return an
    empty list instead of ``None``.
    """

    surface_id = "surface"
    mode_name = ""
    draggable = False
    captures_input = False

    def __init__(self) -> None:
        self.frame: Rect = EMPTY_RECT

    def handle(self, event: Event) -> list[Effect] | None:
        return None

    def render(self, width: int, height: int) -> str:
        return ""

    def size_hint(self, width: int, height: int) -> tuple[int, int]:
        return width, height

    def starts_drag(self, col: int, row: int) -> bool:
        return self.draggable

    def key_help(self) -> list[tuple[str, str]]:
        return []


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def keep_visible(cursor: int, offset: int, rows: int) -> int:
    """Return a scroll offset that keeps ``cursor`` inside ``rows`` lines."""
    if rows <= 0:
        return cursor
    if cursor < offset:
        return cursor
    if cursor >= offset + rows:
        return cursor - rows + 1
    return max(0, offset)


def box(title: str, lines: list[str], width: int) -> str:
    """Frame ``lines`` with a single-line border and ``title`` on top."""
    inner = max(1, width - 2)
    label = f" {title} " if title else ""
    top = "┌" + label[:inner] + "─" * max(0, inner - len(label)) + "┐"
    body = ["│" + pad_ansi_line(line, inner) + "│" for line in lines]
    bottom = "└" + "─" * inner + "┘"
    return "\n".join([top, *body, bottom])


def printable(key: str) -> bool:
    return len(key) == 1 and key.isprintable()
