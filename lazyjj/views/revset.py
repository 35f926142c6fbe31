"""Revset header with an inline editor and history."""

from __future__ import annotations

from ..effects import Effect, Post
from ..events import Event, KeyPress, UpdateRevset
from .base import BOLD, DIM, RESET, Surface, printable

HISTORY_LIMIT = 50


class RevsetView(Surface):
    surface_id = "revset"

    def __init__(self, default_revset: str = "") -> None:
        super().__init__()
        self.default_revset = default_revset
        self.current = default_revset
        self.editing = False
        self.buffer = ""
        self.history: list[str] = []
        self._history_index: int | None = None

    def resolve(self, revset: str) -> str:
        """Empty input means the configured default."""
        revset = revset.strip()
        return revset or self.default_revset

    def set_current(self, revset: str) -> None:
        self.current = revset
        if revset:
            if revset in self.history:
                self.history.remove(revset)
            self.history.insert(0, revset)
            del self.history[HISTORY_LIMIT:]

    def start_editing(self) -> None:
        self.editing = True
        self.buffer = self.current
        self._history_index = None

    def _recall(self, delta: int) -> None:
        if not self.history:
            return
        index = -1 if self._history_index is None else self._history_index
        index = max(0, min(len(self.history) - 1, index + delta))
        self._history_index = index
        self.buffer = self.history[index]

    def handle(self, event: Event) -> list[Effect] | None:
        if not self.editing or not isinstance(event, KeyPress):
            return None
        key = event.key
        if key == "ENTER":
            self.editing = False
            return [Post(UpdateRevset(self.buffer))]
        if key in ("ESC", "CTRL_C"):
            self.editing = False
        elif key == "BACKSPACE":
            self.buffer = self.buffer[:-1]
        elif key == "CTRL_U":
            self.buffer = ""
        elif key == "UP":
            self._recall(1)
        elif key == "DOWN":
            self._recall(-1)
        elif printable(key):
            self.buffer += key
        return []

    def render(self, width: int, height: int) -> str:
        if self.editing:
            return f"{BOLD}revset:{RESET} {self.buffer}█"
        shown = self.current or f"{DIM}(default){RESET}"
        return f"{BOLD}revset:{RESET} {shown}"
