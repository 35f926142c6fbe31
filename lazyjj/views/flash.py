"""Stack of transient notifications in the bottom-right corner.

Informational messages expire after ``FLASH_SECONDS``; error messages stay
until dismissed with the cancel key, oldest first.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

from ..ansi import display_width
from ..effects import Effect, Schedule
from ..events import Event, Tick
from .base import RED, RESET, Surface, box

FLASH_SECONDS = 4.0
FLASH_TICK = "flash"
MAX_FLASH_WIDTH = 60


@dataclass(frozen=True)
class FlashMessage:
    id: int
    text: str
    error: bool
    expires_at: float | None


class FlashView(Surface):
    surface_id = "flash"

    def __init__(self, monotonic: Callable[[], float] = time.monotonic) -> None:
        super().__init__()
        self._monotonic = monotonic
        self._next_id = 1
        self.messages: list[FlashMessage] = []

    def any(self) -> bool:
        return bool(self.messages)

    def add(self, text: str, error: bool = False) -> list[Effect]:
        text = " ".join(text.split())
        if not text:
            return []
        expires_at = None if error else self._monotonic() + FLASH_SECONDS
        self.messages.append(FlashMessage(self._next_id, text, error, expires_at))
        self._next_id += 1
        if error:
            return []
        return [Schedule(FLASH_SECONDS, Tick(FLASH_TICK))]

    def delete_oldest(self) -> None:
        if self.messages:
            self.messages.pop(0)

    def expire(self, now: float | None = None) -> None:
        if now is None:
            now = self._monotonic()
        self.messages = [
            message for message in self.messages if message.expires_at is None or message.expires_at > now
        ]

    def handle(self, event: Event) -> list[Effect] | None:
        if isinstance(event, Tick) and event.kind == FLASH_TICK:
            self.expire()
            return []
        return None

    def render(self, width: int, height: int) -> str:
        blocks = []
        inner = max(1, width - 2)
        for message in self.messages:
            text = message.text[:inner]
            blocks.append(box("", [f"{RED}{text}{RESET}" if message.error else text], width))
        return "\n".join(blocks)

    def size_hint(self, width: int, height: int) -> tuple[int, int]:
        if not self.messages:
            return 0, 0
        longest = max(display_width(message.text) for message in self.messages)
        return min(width, MAX_FLASH_WIDTH, longest + 2), min(height, 3 * len(self.messages))
