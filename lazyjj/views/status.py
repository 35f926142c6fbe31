"""Footer line: current mode, key help, errors and the quick-search field."""

from __future__ import annotations

from collections.abc import Callable

from ..effects import Effect
from ..events import Event, KeyPress
from ..input.key_registry import Keymap
from .base import BOLD, DIM, RED, RESET, Surface, printable


class StatusView(Surface):
    surface_id = "status"

    def __init__(self, keymap: Keymap, on_search: Callable[[str], list[Effect]] | None = None) -> None:
        super().__init__()
        self._keymap = keymap
        self._on_search = on_search or (lambda _query: [])
        self.focused = False
        self.query = ""
        self.mode = "revisions"
        self.help: list[tuple[str, str]] = []
        self.error = ""

    def start_search(self) -> None:
        self.focused = True
        self.query = ""

    def handle(self, event: Event) -> list[Effect] | None:
        if not self.focused or not isinstance(event, KeyPress):
            return None
        key = event.key
        if key == "ENTER":
            self.focused = False
            return self._on_search(self.query)
        if key in ("ESC", "CTRL_C"):
            self.focused = False
            self.query = ""
        elif key == "BACKSPACE":
            self.query = self.query[:-1]
        elif key == "CTRL_U":
            self.query = ""
        elif printable(key):
            self.query += key
        return []

    def render(self, width: int, height: int) -> str:
        if self.focused:
            return f"{BOLD}/{RESET}{self.query}█"
        if self.error:
            return f"{RED}error: {self.error}{RESET}"
        hints = "  ".join(f"{BOLD}{keys}{RESET} {label}" for keys, label in self.help if keys)
        return f"{BOLD}{self.mode}{RESET}  {DIM}│{RESET} {hints}"
