"""Revision log: the primary surface.

Rows come from ``jj log`` with a machine-readable template; graph-only lines
are kept so the log shape survives. The view has two operations: ``normal``
browsing and ``details``, which lists the files changed by the selected
revision and runs split, squash, restore and absorb on them. Any operation
other than ``normal`` owns every key while it lasts and blocks quitting.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from .. import jj
from ..effects import CommandMode, Effect, Post, Quit, RunCommand
from ..errors import ConfigValidationError, LazyJJError
from ..events import Event, Flash, KeyPress, MouseEvent, MouseKind, Refresh, SelectionChanged, ShowDiff, UpdateRevset
from ..runtime.config import Config, DiffShow, get_diff_show
from ..selection import SelectedFile, SelectedItem, SelectedRevision
from .base import BOLD, DIM, RESET, SELECTED, Surface, clamp, keep_visible

logger = logging.getLogger(__name__)

NORMAL = "normal"
DETAILS = "details"

CHANGE_ID_STYLE = "\033[1;35m"
BOOKMARK_STYLE = "\033[36m"
FILE_STATUS_STYLES = {"A": "\033[32m", "M": "\033[33m", "D": "\033[31m", "R": "\033[34m"}


def _show_diff(output: str, error: LazyJJError | None):
    if error is not None:
        return None
    return ShowDiff(output)


def _refresh_after(_output: str, error: LazyJJError | None):
    if error is not None:
        return None
    return Refresh(keep_selection=True)


@dataclass
class Confirmation:
    """Inline yes/no prompt shown under the file list.

    ``options`` maps a key to its label and the action run when it is pressed.
    """

    message: str
    options: dict[str, tuple[str, Callable[[], list[Effect]]]]

    def choices(self) -> list[tuple[str, str]]:
        return [(key, label) for key, (label, _action) in self.options.items()] + [("n/esc", "no")]


class RevisionsView(Surface):
    surface_id = "revisions"

    def __init__(
        self,
        config: Config,
        report_error: Callable[[LazyJJError | None], None] | None = None,
    ) -> None:
        super().__init__()
        self._config = config
        self._keymap = config.keymap
        self._report_error = report_error or (lambda _error: None)
        self.rows: list[jj.LogRow | str] = []
        self.cursor = 0
        self.offset = 0
        self.operation = NORMAL
        self.files: list[tuple[str, str]] = []
        self.file_cursor = 0
        self.checked_files: set[str] = set()
        self.confirmation: Confirmation | None = None
        self.revset = ""
        self.loading = False
        self._generation = 0
        self._details_generation = 0

    # -- selection ------------------------------------------------------

    @property
    def mode_name(self) -> str:
        return "details" if self.operation == DETAILS else "revisions"

    @property
    def in_normal_mode(self) -> bool:
        return self.operation == NORMAL

    @property
    def is_editing(self) -> bool:
        return self.operation != NORMAL

    def _selectable(self) -> list[int]:
        return [index for index, row in enumerate(self.rows) if isinstance(row, jj.LogRow)]

    @property
    def selected_row(self) -> jj.LogRow | None:
        selectable = self._selectable()
        if not selectable:
            return None
        row = self.rows[selectable[clamp(self.cursor, 0, len(selectable) - 1)]]
        assert isinstance(row, jj.LogRow)
        return row

    def selected_item(self) -> SelectedItem | None:
        row = self.selected_row
        if row is None:
            return None
        if self.operation == DETAILS and self.files:
            _status, path = self.files[clamp(self.file_cursor, 0, len(self.files) - 1)]
            return SelectedFile(row.change_id, row.commit_id, path)
        return SelectedRevision(row.change_id, row.commit_id)

    def _restore(self, change_id: str | None) -> None:
        selectable = self._selectable()
        self.cursor = 0
        if change_id is None:
            return
        for position, index in enumerate(selectable):
            row = self.rows[index]
            if isinstance(row, jj.LogRow) and row.change_id == change_id:
                self.cursor = position
                return

    def search(self, query: str) -> list[Effect]:
        """Move to the next revision whose text contains ``query``."""
        query = query.strip().lower()
        selectable = self._selectable()
        if not query or not selectable:
            return []
        count = len(selectable)
        for step in range(1, count + 1):
            position = (self.cursor + step) % count
            row = self.rows[selectable[position]]
            assert isinstance(row, jj.LogRow)
            haystack = " ".join((row.change_id, row.author, row.description, *row.bookmarks)).lower()
            if query in haystack:
                return self._move_to(position)
        return [Post(Flash(f"no revision matches {query!r}"))]

    # -- commands -------------------------------------------------------

    def load(self, revset: str, keep_selection: bool = True) -> list[Effect]:
        """Reload the log for ``revset``; stale completions are ignored."""
        self.revset = revset
        self._generation += 1
        generation = self._generation
        row = self.selected_row
        previous = row.change_id if keep_selection and row is not None else None
        self.loading = True

        def loaded(output: str, error: LazyJJError | None):
            if generation != self._generation:
                return None
            self.loading = False
            self._report_error(error)
            if error is not None:
                return None
            self.rows = jj.parse_log(output)
            self._restore(previous)
            current = self.selected_row
            if self.operation == DETAILS and (current is None or current.change_id != previous):
                self._leave_details()
            return SelectionChanged()

        effects: list[Effect] = [
            RunCommand(jj.log(revset, self._config.log_limit), CommandMode.ASYNC, loaded)
        ]
        if self.operation == DETAILS:
            effects.extend(self._load_files(keep_checked=True))
        return effects

    def _load_files(self, keep_checked: bool = False) -> list[Effect]:
        """List the files of the selected revision and switch to details."""
        row = self.selected_row
        if row is None:
            return []
        self._details_generation += 1
        generation = self._details_generation

        def files_loaded(output: str, error: LazyJJError | None):
            if generation != self._details_generation or error is not None:
                return None
            self.files = jj.parse_diff_summary(output)
            if keep_checked:
                self.checked_files.intersection_update(path for _status, path in self.files)
                self.file_cursor = clamp(self.file_cursor, 0, max(0, len(self.files) - 1))
            else:
                self.file_cursor = 0
                self.checked_files.clear()
            self.operation = DETAILS
            return SelectionChanged()

        return [RunCommand(jj.diff_summary(row.change_id), CommandMode.ASYNC, files_loaded)]

    def _leave_details(self) -> None:
        self._details_generation += 1
        self.operation = NORMAL
        self.files = []
        self.file_cursor = 0
        self.checked_files.clear()
        self.confirmation = None

    def _diff_effects(self, files: tuple[str, ...] = ()) -> list[Effect]:
        row = self.selected_row
        if row is None:
            return []
        effects: list[Effect] = []
        try:
            show = get_diff_show(self._config)
        except ConfigValidationError as exc:
            logger.warning("%s", exc)
            effects.append(Post(Flash(str(exc), error=True)))
            show = DiffShow.DIFF
        if show is DiffShow.INTERACTIVE:
            args = jj.with_executable(("diff", "-r", row.change_id, *files))
            effects.append(RunCommand(args, CommandMode.INTERACTIVE))
        else:
            effects.append(RunCommand(jj.diff(row.change_id, files), CommandMode.ASYNC, _show_diff))
        return effects

    # -- events ---------------------------------------------------------

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

    def _move_file(self, delta: int) -> list[Effect]:
        if not self.files:
            return []
        position = clamp(self.file_cursor + delta, 0, len(self.files) - 1)
        if position == self.file_cursor:
            return []
        self.file_cursor = position
        return [Post(SelectionChanged())]

    def _page(self) -> int:
        return max(1, self.frame.height // 2)

    def _current_file(self) -> str | None:
        if not self.files:
            return None
        return self.files[clamp(self.file_cursor, 0, len(self.files) - 1)][1]

    def _target_files(self) -> tuple[str, ...]:
        """Checked files in listing order, or the file under the cursor."""
        if self.checked_files:
            return tuple(path for _status, path in self.files if path in self.checked_files)
        current = self._current_file()
        return (current,) if current is not None else ()

    def _close_details(self, *effects: Effect) -> list[Effect]:
        self._leave_details()
        return [*effects, Post(SelectionChanged())]

    def _confirm(self, message: str, **options: tuple[str, Callable[[], list[Effect]]]) -> list[Effect]:
        self.confirmation = Confirmation(message, dict(options))
        return []

    def _handle_confirmation_key(self, key: str) -> list[Effect]:
        confirmation = self.confirmation
        assert confirmation is not None
        if key in confirmation.options:
            self.confirmation = None
            _label, action = confirmation.options[key]
            return action()
        if key == "n" or self._keymap.matches(key, "cancel"):
            self.confirmation = None
        return []

    def _split(self, parallel: bool) -> list[Effect]:
        row = self.selected_row
        files = self._target_files()
        if row is None or not files:
            return []
        command = RunCommand(jj.split(row.change_id, files, parallel), CommandMode.INTERACTIVE)
        return self._confirm(
            "Split the selected files into a new revision?",
            y=("yes", lambda: self._close_details(command)),
        )

    def _squash(self) -> list[Effect]:
        row = self.selected_row
        files = self._target_files()
        if row is None or not files:
            return []
        command = RunCommand(jj.squash_files(row.change_id, files), CommandMode.INTERACTIVE)
        return self._confirm(
            "Squash the selected files into the parent revision?",
            y=("yes", lambda: self._close_details(command)),
        )

    def _restore_files(self) -> list[Effect]:
        row = self.selected_row
        files = self._target_files()
        if row is None or not files:
            return []
        current = self._current_file() or files[0]
        restore = RunCommand(jj.restore(row.change_id, files), CommandMode.ASYNC, _refresh_after)
        interactive = RunCommand(jj.restore_interactive(row.change_id, current), CommandMode.INTERACTIVE)
        return self._confirm(
            "Restore the selected files?",
            y=("yes", lambda: [restore]),
            i=("interactive", lambda: self._close_details(interactive)),
        )

    def _absorb(self) -> list[Effect]:
        row = self.selected_row
        files = self._target_files()
        if row is None or not files:
            return []
        command = RunCommand(jj.absorb(row.change_id, files), CommandMode.ASYNC, _refresh_after)
        return self._confirm(
            "Absorb changes from the selected files into their parents?",
            y=("yes", lambda: [command]),
        )

    def _handle_details_key(self, key: str) -> list[Effect]:
        if self.confirmation is not None:
            return self._handle_confirmation_key(key)
        keymap = self._keymap
        if keymap.matches(key, "up"):
            return self._move_file(-1)
        if keymap.matches(key, "down"):
            return self._move_file(1)
        if keymap.matches(key, "cancel") or keymap.matches(key, "details.close") or keymap.matches(key, "details"):
            return self._close_details()
        if keymap.matches(key, "quit"):
            return self._close_details(Quit())
        if keymap.matches(key, "refresh"):
            return [Post(Refresh(keep_selection=True))]
        if keymap.matches(key, "select"):
            if self.files:
                _status, path = self.files[self.file_cursor]
                self.checked_files.symmetric_difference_update({path})
                return self._move_file(1)
            return []
        if keymap.matches(key, "diff"):
            return self._diff_effects(self._target_files())
        if keymap.matches(key, "details.split"):
            return self._split(parallel=False)
        if keymap.matches(key, "details.split_parallel"):
            return self._split(parallel=True)
        if keymap.matches(key, "details.squash"):
            return self._squash()
        if keymap.matches(key, "details.restore"):
            return self._restore_files()
        if keymap.matches(key, "details.absorb"):
            return self._absorb()
        if keymap.matches(key, "details.revisions_changing_file"):
            current = self._current_file()
            if current is None:
                return []
            return self._close_details(Post(UpdateRevset(jj.files_revset(current))))
        return []

    def _handle_key(self, key: str) -> list[Effect] | None:
        if self.operation == DETAILS:
            return self._handle_details_key(key)
        keymap = self._keymap
        if keymap.matches(key, "up"):
            return self._move_to(self.cursor - 1)
        if keymap.matches(key, "down"):
            return self._move_to(self.cursor + 1)
        if keymap.matches(key, "page_up"):
            return self._move_to(self.cursor - self._page())
        if keymap.matches(key, "page_down"):
            return self._move_to(self.cursor + self._page())
        if keymap.matches(key, "details"):
            return self._load_files()
        if keymap.matches(key, "diff"):
            return self._diff_effects()
        return None

    def _handle_mouse(self, event: MouseEvent) -> list[Effect]:
        if event.kind is MouseKind.WHEEL_UP:
            return self._move_to(self.cursor - 1)
        if event.kind is MouseKind.WHEEL_DOWN:
            return self._move_to(self.cursor + 1)
        if event.kind is not MouseKind.PRESS:
            return []
        line = self.offset + event.y - self.frame.y
        lines = self._display_lines()
        if not 0 <= line < len(lines):
            return []
        _text, position, file_index = lines[line]
        if file_index is not None:
            return self._move_file(file_index - self.file_cursor)
        if position is not None and self.operation == NORMAL:
            return self._move_to(position)
        return []

    def handle(self, event: Event) -> list[Effect] | None:
        if isinstance(event, KeyPress):
            return self._handle_key(event.key)
        if isinstance(event, MouseEvent):
            return self._handle_mouse(event)
        return None

    # -- rendering ------------------------------------------------------

    def _format_row(self, row: jj.LogRow) -> str:
        parts = [f"{row.graph}{CHANGE_ID_STYLE}{row.change_id}{RESET}"]
        if row.bookmarks:
            parts.append(f"{BOOKMARK_STYLE}{' '.join(row.bookmarks)}{RESET}")
        if row.author:
            parts.append(f"{DIM}{row.author}{RESET}")
        parts.append(row.description)
        return " ".join(parts)

    def _display_lines(self) -> list[tuple[str, int | None, int | None]]:
        """Visible lines as ``(text, revision position, file index)``."""
        lines: list[tuple[str, int | None, int | None]] = []
        position = -1
        for row in self.rows:
            if not isinstance(row, jj.LogRow):
                lines.append((row, None, None))
                continue
            position += 1
            selected = position == self.cursor
            text = self._format_row(row)
            if selected and self.operation == NORMAL:
                text = f"{SELECTED}{text.replace(RESET, RESET + SELECTED)}{RESET}"
            elif selected:
                text = f"{BOLD}{text}{RESET}"
            lines.append((text, position, None))
            if selected and self.operation == DETAILS:
                indent = " " * len(row.graph)
                for index, (status, path) in enumerate(self.files):
                    mark = "✓" if path in self.checked_files else " "
                    style = FILE_STATUS_STYLES.get(status, "")
                    entry = f"{indent}  {mark} {style}{status}{RESET} {path}"
                    if index == self.file_cursor:
                        entry = f"{SELECTED}{entry.replace(RESET, RESET + SELECTED)}{RESET}"
                    lines.append((entry, None, index))
                if self.confirmation is not None:
                    choices = "  ".join(f"{key}: {label}" for key, label in self.confirmation.choices())
                    lines.append((f"{indent}  {BOLD}{self.confirmation.message}{RESET}", None, None))
                    lines.append((f"{indent}  {DIM}{choices}{RESET}", None, None))
        return lines

    def render(self, width: int, height: int) -> str:
        if not self.rows:
            return f"{DIM}loading...{RESET}" if self.loading else ""
        lines = [text for text, _position, _file in self._display_lines()]
        offset = clamp(self.offset, 0, max(0, len(lines) - height))
        return "\n".join(lines[offset : offset + height])

    def key_help(self) -> list[tuple[str, str]]:
        describe = self._keymap.describe
        if self.operation == DETAILS:
            if self.confirmation is not None:
                return self.confirmation.choices()
            return [
                (describe("cancel"), "back"),
                (describe("diff"), "diff"),
                (describe("select"), "select"),
                (describe("details.split"), "split"),
                (describe("details.split_parallel"), "split parallel"),
                (describe("details.squash"), "squash"),
                (describe("details.restore"), "restore"),
                (describe("details.absorb"), "absorb"),
                (describe("details.revisions_changing_file"), "revisions changing file"),
            ]
        return [
            (describe("details"), "details"),
            (describe("diff"), "diff"),
            (describe("revset"), "revset"),
            (describe("oplog.mode"), "oplog"),
            (describe("help"), "help"),
        ]
