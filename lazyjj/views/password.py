"""Masked single-line prompt."""

from __future__ import annotations

from collections.abc import Callable

from ..effects import Effect, Post
from ..events import Event, KeyPress, ModalResult, MouseEvent, TogglePassword
from .base import Surface, box, printable


class PasswordView(Surface):
    surface_id = "password"
    mode_name = "password"

    def __init__(self, prompt: str, reply: Callable[[str | None], None] | None = None) -> None:
        super().__init__()
        self.prompt = prompt
        self._reply = reply
        self.value = ""

    def _finish(self, value: str | None) -> list[Effect]:
        effects: list[Effect] = [Post(TogglePassword(None))]
        if self._reply is not None:
            self._reply(value)
        else:
            effects.append(Post(ModalResult(value)))
        return effects

    def handle(self, event: Event) -> list[Effect] | None:
        if isinstance(event, MouseEvent):
            return []
        if not isinstance(event, KeyPress):
            return None
        key = event.key
        if key == "ENTER":
            return self._finish(self.value)
        if key in ("ESC", "CTRL_C"):
            return self._finish(None)
        if key == "BACKSPACE":
            self.value = self.value[:-1]
        elif key == "CTRL_U":
            self.value = ""
        elif printable(key):
            self.value += key
        return []

    def render(self, width: int, height: int) -> str:
        return box(self.prompt, ["*" * len(self.value)], width)

    def size_hint(self, width: int, height: int) -> tuple[int, int]:
        return min(width, max(30, len(self.prompt) + 6)), min(height, 3)
