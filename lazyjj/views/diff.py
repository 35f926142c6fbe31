"""Full-screen scrollable diff."""

from __future__ import annotations

from ..effects import Effect, Post
from ..events import Close, Event, KeyPress, MouseEvent, MouseKind
from ..highlight import colorize_diff
from ..input.key_registry import Keymap
from .base import Surface, clamp


class DiffView(Surface):
    surface_id = "diff"
    mode_name = "diff"

    def __init__(self, text: str, keymap: Keymap) -> None:
        super().__init__()
        self._keymap = keymap
        self.lines = colorize_diff(text).split("\n") if text else ["(empty diff)"]
        self.offset = 0

    def _scroll(self, delta: int) -> list[Effect]:
        limit = max(0, len(self.lines) - max(1, self.frame.height))
        self.offset = clamp(self.offset + delta, 0, limit)
        return []

    def handle(self, event: Event) -> list[Effect] | None:
        if isinstance(event, MouseEvent):
            if event.kind is MouseKind.WHEEL_UP:
                return self._scroll(-3)
            if event.kind is MouseKind.WHEEL_DOWN:
                return self._scroll(3)
            return []
        if not isinstance(event, KeyPress):
            return None
        keymap = self._keymap
        page = max(1, self.frame.height - 1)
        if keymap.matches(event.key, "up"):
            return self._scroll(-1)
        if keymap.matches(event.key, "down"):
            return self._scroll(1)
        if keymap.matches(event.key, "page_up"):
            return self._scroll(-page)
        if keymap.matches(event.key, "page_down") or event.key == " ":
            return self._scroll(page)
        if event.key in ("HOME", "g"):
            return self._scroll(-len(self.lines))
        if event.key in ("END", "G"):
            return self._scroll(len(self.lines))
        if keymap.matches(event.key, "cancel") or keymap.matches(event.key, "quit"):
            return [Post(Close())]
        return []

    def render(self, width: int, height: int) -> str:
        offset = clamp(self.offset, 0, max(0, len(self.lines) - height))
        return "\n".join(self.lines[offset : offset + height])

    def key_help(self) -> list[tuple[str, str]]:
        return [(self._keymap.describe("cancel"), "close")]
