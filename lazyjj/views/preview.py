"""Side pane with the output of a command for the selected item.

The pane sits right of or below the primary view. Its share of the body is
``percent``; dragging its border or the expand/shrink keys change it.
Contents are fetched asynchronously and a completion for an item that is no
longer selected is dropped.
"""

from __future__ import annotations

import logging

from .. import jj
from ..effects import CommandMode, Effect, Post, RunCommand
from ..errors import ConfigValidationError, LazyJJError
from ..events import Event, Flash, KeyPress, MouseEvent, MouseKind
from ..input.key_registry import Keymap
from ..layout import EMPTY_RECT, Rect
from ..runtime.config import PreviewConfig, PreviewPosition
from ..selection import SelectedFile, SelectedItem, SelectedOperation, SelectedRevision, placeholders
from .base import DIM, RESET, Surface, clamp

logger = logging.getLogger(__name__)

MIN_PERCENT = 10.0
MAX_PERCENT = 95.0


class PreviewView(Surface):
    surface_id = "preview"
    draggable = True

    def __init__(self, keymap: Keymap, config: PreviewConfig) -> None:
        super().__init__()
        self._keymap = keymap
        self._config = config
        self.visible = config.show_at_start
        self.percent = clamp_percent(config.width_percentage)
        self.position = config.position
        self.content = ""
        self.offset = 0
        self.body: Rect = EMPTY_RECT
        self._generation = 0

    # -- geometry -------------------------------------------------------

    def resolved_position(self) -> PreviewPosition:
        try:
            return PreviewPosition(self.position)
        except ValueError:
            return PreviewPosition.AUTO

    def validate_position(self) -> list[Effect]:
        """Report an invalid configured position once and fall back to ``auto``."""
        try:
            PreviewPosition(self.position)
        except ValueError:
            error = ConfigValidationError(
                "preview.position", self.position, tuple(p.value for p in PreviewPosition)
            )
            logger.warning("%s", error)
            self.position = PreviewPosition.AUTO.value
            return [Post(Flash(str(error), error=True))]
        return []

    def at_bottom(self, width: int, height: int) -> bool:
        position = self.resolved_position()
        if position is PreviewPosition.AUTO:
            return height >= width // 2
        return position is PreviewPosition.BOTTOM

    def toggle_bottom(self, width: int, height: int) -> None:
        bottom = self.at_bottom(width, height)
        self.position = PreviewPosition.RIGHT.value if bottom else PreviewPosition.BOTTOM.value

    def expand(self) -> None:
        self.percent = clamp_percent(self.percent + self._config.width_increment_percentage)

    def shrink(self) -> None:
        self.percent = clamp_percent(self.percent - self._config.width_increment_percentage)

    def starts_drag(self, col: int, row: int) -> bool:
        if self.frame.empty:
            return False
        if self.frame.y > self.body.y:
            return row == self.frame.y
        return col == self.frame.x

    def _drag_to(self, col: int, row: int) -> None:
        body = self.body
        if body.empty:
            return
        if self.frame.y > body.y:
            share = (body.y + body.height - row) * 100.0 / body.height
        else:
            share = (body.x + body.width - col) * 100.0 / body.width
        self.percent = clamp_percent(share)

    # -- content --------------------------------------------------------

    def _command_for(self, item: SelectedItem) -> tuple[str, ...]:
        if isinstance(item, SelectedFile):
            template = self._config.file_command
        elif isinstance(item, SelectedOperation):
            template = self._config.oplog_command
        else:
            template = self._config.revision_command
        return template

    def load_for(self, item: SelectedItem | None, *, width: int = 80, revset: str = "") -> list[Effect]:
        """Fetch contents for ``item``; an older pending fetch becomes stale."""
        self._generation += 1
        if item is None or not self.visible:
            return []
        if not isinstance(item, (SelectedRevision, SelectedFile, SelectedOperation)):
            return []
        generation = self._generation
        context = placeholders(item, width=max(1, self.frame.width or width), revset=revset)
        args = jj.with_executable(jj.expand_template(self._command_for(item), context))

        def loaded(output: str, error: LazyJJError | None):
            if generation != self._generation:
                return None
            self.offset = 0
            self.content = output if error is None else f"{DIM}{error}{RESET}"
            return None

        return [RunCommand(args, CommandMode.ASYNC, loaded)]

    def _scroll(self, delta: int) -> list[Effect]:
        total = len(self.content.split("\n")) if self.content else 0
        self.offset = clamp(self.offset + delta, 0, max(0, total - 1))
        return []

    def handle(self, event: Event) -> list[Effect] | None:
        if isinstance(event, MouseEvent):
            if event.kind is MouseKind.MOTION:
                self._drag_to(event.x, event.y)
            elif event.kind is MouseKind.WHEEL_UP:
                self._scroll(-3)
            elif event.kind is MouseKind.WHEEL_DOWN:
                self._scroll(3)
            return []
        if isinstance(event, KeyPress):
            if self._keymap.matches(event.key, "preview.scroll_up"):
                return self._scroll(-1)
            if self._keymap.matches(event.key, "preview.scroll_down"):
                return self._scroll(1)
        return None

    def render(self, width: int, height: int) -> str:
        if width <= 0 or height <= 0:
            return ""
        lines = self.content.split("\n") if self.content else []
        if self.frame.y > self.body.y:
            border = [f"{DIM}{'─' * width}{RESET}"]
            visible = lines[self.offset : self.offset + height - 1]
            return "\n".join(border + visible)
        visible = lines[self.offset : self.offset + height]
        visible += [""] * (height - len(visible))
        return "\n".join(f"{DIM}│{RESET}{line}" for line in visible)


def clamp_percent(value: float) -> float:
    return max(MIN_PERCENT, min(MAX_PERCENT, float(value)))
