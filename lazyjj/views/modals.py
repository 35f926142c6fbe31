"""Centered modal dialogs that occupy the stacked slot.

Only one stacked modal exists at a time; opening another replaces it. List
modals share cursor handling and differ only in what activating an entry
does.
"""

from __future__ import annotations

from collections.abc import Sequence

from .. import jj
from ..ansi import display_width
from ..custom_commands import CustomCommand
from ..effects import CommandMode, Effect, Post, RunCommand
from ..errors import LazyJJError
from ..events import Close, Event, Flash, KeyPress, ModalResult, MouseEvent, MouseKind, Refresh
from ..input.key_registry import Keymap
from ..selection import SelectedItem
from .base import BOLD, DIM, RESET, SELECTED, Surface, box, clamp, keep_visible, printable

MODAL_WIDTH = 60
MODAL_MAX_ROWS = 20


def _refresh_after(_output: str, error: LazyJJError | None):
    return Refresh() if error is None else None


class Modal(Surface):
    surface_id = "stacked"
    mode_name = "modal"
    title = ""
    result_modal = False

    def __init__(self, keymap: Keymap) -> None:
        super().__init__()
        self._keymap = keymap

    def on_open(self) -> list[Effect]:
        return []

    def lines(self) -> list[str]:
        return []

    def render(self, width: int, height: int) -> str:
        body = self.lines()[: max(0, height - 2)]
        return box(self.title, body, width)

    def size_hint(self, width: int, height: int) -> tuple[int, int]:
        content = max((display_width(line) for line in self.lines()), default=0)
        wanted = max(content, display_width(self.title) + 2, 20) + 2
        return min(width, max(wanted, 24), MODAL_WIDTH + 20), min(height, len(self.lines()) + 2)


class ListModal(Modal):
    def __init__(self, keymap: Keymap, title: str = "", items: Sequence[str] = ()) -> None:
        super().__init__(keymap)
        self.title = title
        self.items = list(items)
        self.cursor = 0
        self.offset = 0

    def activate(self, index: int) -> list[Effect]:
        return [Post(Close())]

    def cancel(self) -> list[Effect]:
        return [Post(Close())]

    def handle_other_key(self, key: str) -> list[Effect]:
        return []

    def _move(self, delta: int) -> list[Effect]:
        if self.items:
            self.cursor = clamp(self.cursor + delta, 0, len(self.items) - 1)
            self.offset = keep_visible(self.cursor, self.offset, MODAL_MAX_ROWS)
        return []

    def handle(self, event: Event) -> list[Effect] | None:
        if isinstance(event, MouseEvent):
            if event.kind is MouseKind.WHEEL_UP:
                return self._move(-1)
            if event.kind is MouseKind.WHEEL_DOWN:
                return self._move(1)
            if event.kind is MouseKind.PRESS:
                index = self.offset + event.y - self.frame.y - 1
                if 0 <= index < len(self.items):
                    self.cursor = index
                    return self.activate(index)
            return []
        if not isinstance(event, KeyPress):
            return None
        keymap = self._keymap
        key = event.key
        if keymap.matches(key, "up"):
            return self._move(-1)
        if keymap.matches(key, "down"):
            return self._move(1)
        if keymap.matches(key, "apply"):
            return self.activate(self.cursor) if self.items else []
        if keymap.matches(key, "cancel"):
            return self.cancel()
        return self.handle_other_key(key)

    def lines(self) -> list[str]:
        visible = self.items[self.offset : self.offset + MODAL_MAX_ROWS]
        out = []
        for index, item in enumerate(visible, start=self.offset):
            out.append(f"{SELECTED}{item}{RESET}" if index == self.cursor else item)
        return out or [f"{DIM}(nothing to show){RESET}"]


class ChooseModal(ListModal):
    """Pick one option; the result goes back as ``ModalResult``."""

    result_modal = True

    def activate(self, index: int) -> list[Effect]:
        return [Post(ModalResult(self.items[index]))]

    def cancel(self) -> list[Effect]:
        return [Post(ModalResult(None))]


class InputModal(Modal):
    result_modal = True

    def __init__(self, keymap: Keymap, title: str, prompt: str = "") -> None:
        super().__init__(keymap)
        self.title = title
        self.prompt = prompt
        self.value = ""

    def handle(self, event: Event) -> list[Effect] | None:
        if isinstance(event, MouseEvent):
            return []
        if not isinstance(event, KeyPress):
            return None
        key = event.key
        if key == "ENTER":
            return [Post(ModalResult(self.value))]
        if key in ("ESC", "CTRL_C"):
            return [Post(ModalResult(None))]
        if key == "BACKSPACE":
            self.value = self.value[:-1]
        elif key == "CTRL_U":
            self.value = ""
        elif printable(key):
            self.value += key
        return []

    def lines(self) -> list[str]:
        prefix = f"{DIM}{self.prompt}{RESET} " if self.prompt else ""
        return [f"{prefix}{self.value}█"]


class ConfirmModal(Modal):
    def __init__(self, keymap: Keymap, title: str, message: str, effects: Sequence[Effect]) -> None:
        super().__init__(keymap)
        self.title = title
        self.message = message
        self._effects = list(effects)

    def handle(self, event: Event) -> list[Effect] | None:
        if isinstance(event, MouseEvent):
            return []
        if not isinstance(event, KeyPress):
            return None
        if event.key in ("y", "Y") or self._keymap.matches(event.key, "apply"):
            return [Post(Close()), *self._effects]
        if event.key in ("n", "N") or self._keymap.matches(event.key, "cancel"):
            return [Post(Close())]
        return []

    def lines(self) -> list[str]:
        return [self.message, f"{BOLD}y{RESET}/{BOLD}enter{RESET} yes  {BOLD}n{RESET}/{BOLD}esc{RESET} no"]


def undo_modal(keymap: Keymap) -> ConfirmModal:
    return ConfirmModal(
        keymap, "undo", "Undo the last operation?", [RunCommand(jj.undo(), CommandMode.ASYNC, _refresh_after)]
    )


def redo_modal(keymap: Keymap) -> ConfirmModal:
    return ConfirmModal(
        keymap, "redo", "Redo the last undone operation?", [RunCommand(jj.redo(), CommandMode.ASYNC, _refresh_after)]
    )


class BookmarksModal(ListModal):
    """Move or delete existing bookmarks, or name a new one with ``n``."""

    def __init__(self, keymap: Keymap, change_id: str | None) -> None:
        super().__init__(keymap, "bookmarks")
        self.change_id = change_id
        self.actions: list[tuple[str, str]] = []
        self.naming = False
        self.name = ""

    def on_open(self) -> list[Effect]:
        def loaded(output: str, error: LazyJJError | None):
            if error is not None:
                return None
            self.actions = []
            for name in jj.parse_bookmarks(output):
                if self.change_id:
                    self.actions.append(("set", name))
                self.actions.append(("delete", name))
            self.items = [f"{verb} {name}" for verb, name in self.actions]
            self.cursor = 0
            return None

        return [RunCommand(jj.bookmark_list(), CommandMode.ASYNC, loaded)]

    def activate(self, index: int) -> list[Effect]:
        verb, name = self.actions[index]
        if verb == "set" and self.change_id:
            args = jj.bookmark_set(name, self.change_id)
        else:
            args = jj.bookmark_delete(name)
        return [Post(Close()), RunCommand(args, CommandMode.IMMEDIATE, _refresh_after)]

    def handle(self, event: Event) -> list[Effect] | None:
        if self.naming and isinstance(event, KeyPress):
            key = event.key
            if key == "ENTER":
                self.naming = False
                if not self.name or not self.change_id:
                    return []
                args = jj.bookmark_set(self.name, self.change_id)
                return [Post(Close()), RunCommand(args, CommandMode.IMMEDIATE, _refresh_after)]
            if key in ("ESC", "CTRL_C"):
                self.naming = False
            elif key == "BACKSPACE":
                self.name = self.name[:-1]
            elif printable(key):
                self.name += key
            return []
        return super().handle(event)

    def handle_other_key(self, key: str) -> list[Effect]:
        if key == "n" and self.change_id:
            self.naming = True
            self.name = ""
        return []

    def lines(self) -> list[str]:
        if self.naming:
            return [f"{DIM}new bookmark:{RESET} {self.name}█"]
        return super().lines()


class GitModal(ListModal):
    def __init__(self, keymap: Keymap, change_id: str | None, remote: str) -> None:
        self._commands: list[tuple[str, tuple[str, ...]]] = [
            (f"fetch from {remote}", jj.git_fetch(remote)),
            (f"push to {remote}", jj.git_push(remote)),
        ]
        if change_id:
            self._commands.append((f"push change {change_id} to {remote}", jj.git_push(remote, change_id)))
        super().__init__(keymap, "git", [label for label, _args in self._commands])

    def activate(self, index: int) -> list[Effect]:
        label, args = self._commands[index]

        def done(_output: str, error: LazyJJError | None):
            if error is not None:
                return None
            return [Flash(f"{label}: done"), Refresh()]

        return [Post(Close()), RunCommand(args, CommandMode.ASYNC, done)]


class HelpModal(ListModal):
    def __init__(self, keymap: Keymap) -> None:
        items = [
            f"{keymap.describe(action):<14} {action}"
            for action in sorted(keymap.bindings)
            if keymap.describe(action)
        ]
        super().__init__(keymap, "help", items)

    def activate(self, index: int) -> list[Effect]:
        return []

    def handle_other_key(self, key: str) -> list[Effect]:
        if self._keymap.matches(key, "help") or self._keymap.matches(key, "quit"):
            return [Post(Close())]
        return []


class CustomCommandsModal(ListModal):
    def __init__(
        self,
        keymap: Keymap,
        commands: Sequence[CustomCommand],
        item: SelectedItem | None,
        *,
        width: int = 80,
        revset: str = "",
    ) -> None:
        self._commands = [command for command in commands if command.is_applicable_to(item)]
        self._item = item
        self._width = width
        self._revset = revset
        labels = []
        for command in self._commands:
            keys = " ".join(command.key_sequence or command.key)
            labels.append(f"{command.name} {DIM}{keys}{RESET}" if keys else command.name)
        super().__init__(keymap, "custom commands", labels)

    def activate(self, index: int) -> list[Effect]:
        command = self._commands[index]
        return [Post(Close()), *command.prepare(self._item, width=self._width, revset=self._revset)]
