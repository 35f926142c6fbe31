"""Leader mode: a nested key map that replays keys once a leaf is reached.

The ``leader`` config table maps single keys to nodes. A node may carry a
``help`` label, a ``send`` list of keys to replay, and further single-key
children::

    {"leader": {"b": {"help": "bookmarks", "s": {"help": "set", "send": ["b"]}}}}
"""

from __future__ import annotations

from collections.abc import Mapping

from ..effects import Effect, Post
from ..events import Close, Event, KeyPress, MouseEvent
from ..input.key_registry import Keymap, normalize_key_name
from .base import BOLD, RESET, Surface, box


class LeaderView(Surface):
    surface_id = "leader"
    mode_name = "leader"
    captures_input = True

    def __init__(self, tree: Mapping[str, object], keymap: Keymap) -> None:
        super().__init__()
        self._keymap = keymap
        self.node: Mapping[str, object] = tree
        self.path: list[str] = []

    def _children(self) -> dict[str, Mapping[str, object]]:
        return {
            normalize_key_name(key): value
            for key, value in self.node.items()
            if key not in ("help", "send") and isinstance(value, Mapping)
        }

    def handle(self, event: Event) -> list[Effect] | None:
        if isinstance(event, MouseEvent):
            return []
        if not isinstance(event, KeyPress):
            return None
        if self._keymap.matches(event.key, "cancel"):
            return [Post(Close())]
        child = self._children().get(event.key)
        if child is None:
            return [Post(Close())]
        send = child.get("send")
        if isinstance(send, list):
            keys = [normalize_key_name(key) for key in send if isinstance(key, str)]
            return [Post(Close()), *(Post(KeyPress(key)) for key in keys)]
        self.node = child
        self.path.append(event.key)
        return []

    def render(self, width: int, height: int) -> str:
        lines = []
        for key, child in sorted(self._children().items()):
            label = child.get("help", "")
            lines.append(f"{BOLD}{key}{RESET} {label}")
        title = "leader " + " ".join(self.path) if self.path else "leader"
        return box(title, lines or ["(no bindings)"], width)

    def size_hint(self, width: int, height: int) -> tuple[int, int]:
        entries = len(self._children()) or 1
        return min(width, 32), min(height, entries + 2)
