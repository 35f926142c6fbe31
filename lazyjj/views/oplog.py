"""Operation log shown in place of the revision log while open."""

from __future__ import annotations

from .. import jj
from ..effects import CommandMode, Effect, Post, RunCommand
from ..errors import LazyJJError
from ..events import Close, Event, KeyPress, MouseEvent, MouseKind, SelectionChanged, ShowDiff
from ..input.key_registry import Keymap
from ..selection import SelectedOperation
from .base import DIM, RESET, SELECTED, Surface, clamp, keep_visible

OPERATION_ID_STYLE = "\033[1;34m"


class OplogView(Surface):
    surface_id = "oplog"
    mode_name = "oplog"

    def __init__(self, keymap: Keymap, limit: int = 0) -> None:
        super().__init__()
        self._keymap = keymap
        self._limit = limit
        self.rows: list[jj.OpRow | str] = []
        self.cursor = 0
        self.offset = 0
        self.loading = False
        self._generation = 0

    def _selectable(self) -> list[int]:
        return [index for index, row in enumerate(self.rows) if isinstance(row, jj.OpRow)]

    @property
    def selected_row(self) -> jj.OpRow | None:
        selectable = self._selectable()
        if not selectable:
            return None
        row = self.rows[selectable[clamp(self.cursor, 0, len(selectable) - 1)]]
        assert isinstance(row, jj.OpRow)
        return row

    def selected_item(self) -> SelectedOperation | None:
        row = self.selected_row
        return SelectedOperation(row.operation_id) if row is not None else None

    def load(self) -> list[Effect]:
        self._generation += 1
        generation = self._generation
        self.loading = True

        def loaded(output: str, error: LazyJJError | None):
            if generation != self._generation:
                return None
            self.loading = False
            if error is not None:
                return None
            self.rows = jj.parse_op_log(output)
            self.cursor = clamp(self.cursor, 0, max(0, len(self._selectable()) - 1))
            return SelectionChanged()

        return [RunCommand(jj.op_log(self._limit), CommandMode.ASYNC, loaded)]

    def _move_to(self, position: int) -> list[Effect]:
        selectable = self._selectable()
        if not selectable:
            return []
        position = clamp(position, 0, len(selectable) - 1)
        if position == self.cursor:
            return []
        self.cursor = position
        self.offset = keep_visible(selectable[position], self.offset, self.frame.height)
        return [Post(SelectionChanged())]

    def _show_operation(self) -> list[Effect]:
        row = self.selected_row
        if row is None:
            return []

        def shown(output: str, error: LazyJJError | None):
            return ShowDiff(output) if error is None else None

        return [RunCommand(jj.op_show(row.operation_id), CommandMode.ASYNC, shown)]

    def handle(self, event: Event) -> list[Effect] | None:
        if isinstance(event, MouseEvent):
            if event.kind is MouseKind.WHEEL_UP:
                return self._move_to(self.cursor - 1)
            if event.kind is MouseKind.WHEEL_DOWN:
                return self._move_to(self.cursor + 1)
            if event.kind is MouseKind.PRESS:
                index = self.offset + event.y - self.frame.y
                selectable = self._selectable()
                if index in selectable:
                    return self._move_to(selectable.index(index))
            return []
        if not isinstance(event, KeyPress):
            return None
        keymap = self._keymap
        key = event.key
        if keymap.matches(key, "up"):
            return self._move_to(self.cursor - 1)
        if keymap.matches(key, "down"):
            return self._move_to(self.cursor + 1)
        if keymap.matches(key, "page_up"):
            return self._move_to(self.cursor - max(1, self.frame.height // 2))
        if keymap.matches(key, "page_down"):
            return self._move_to(self.cursor + max(1, self.frame.height // 2))
        if keymap.matches(key, "diff") or keymap.matches(key, "apply"):
            return self._show_operation()
        if keymap.matches(key, "cancel"):
            return [Post(Close())]
        return None

    def render(self, width: int, height: int) -> str:
        if not self.rows:
            return f"{DIM}loading...{RESET}" if self.loading else ""
        lines: list[str] = []
        position = -1
        for row in self.rows:
            if not isinstance(row, jj.OpRow):
                lines.append(row)
                continue
            position += 1
            text = f"{row.graph}{OPERATION_ID_STYLE}{row.operation_id}{RESET} {DIM}{row.when}{RESET} {row.description}"
            if position == self.cursor:
                text = f"{SELECTED}{text.replace(RESET, RESET + SELECTED)}{RESET}"
            lines.append(text)
        offset = clamp(self.offset, 0, max(0, len(lines) - height))
        return "\n".join(lines[offset : offset + height])

    def key_help(self) -> list[tuple[str, str]]:
        return [(self._keymap.describe("diff"), "show"), (self._keymap.describe("cancel"), "close")]
