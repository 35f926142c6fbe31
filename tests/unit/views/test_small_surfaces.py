"""Tests for flash notifications, the revset editor, prompts and modals."""

from __future__ import annotations

import unittest

from lazyjj.effects import CommandMode, Post, RunCommand, Schedule
from lazyjj.events import Close, Flash, KeyPress, ModalResult, Refresh, Tick, TogglePassword, UpdateRevset
from lazyjj.runtime.config import build_config
from lazyjj.views.diff import DiffView
from lazyjj.views.flash import FLASH_SECONDS, FLASH_TICK, FlashView
from lazyjj.views.modals import BookmarksModal, GitModal, InputModal, undo_modal
from lazyjj.views.password import PasswordView
from lazyjj.views.revset import HISTORY_LIMIT, RevsetView

KEYMAP = build_config({}).keymap


class _Clock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


class FlashViewTests(unittest.TestCase):
    def test_info_messages_expire_and_errors_stay(self) -> None:
        clock = _Clock()
        view = FlashView(clock)

        self.assertEqual(view.add("saved"), [Schedule(FLASH_SECONDS, Tick(FLASH_TICK))])
        self.assertEqual(view.add("push failed", error=True), [])

        clock.now += FLASH_SECONDS + 0.1
        self.assertEqual(view.handle(Tick(FLASH_TICK)), [])

        self.assertEqual([m.text for m in view.messages], ["push failed"])

    def test_other_ticks_are_not_for_flash(self) -> None:
        self.assertIsNone(FlashView().handle(Tick("auto_refresh")))

    def test_blank_message_is_ignored_and_oldest_deleted_first(self) -> None:
        view = FlashView()
        view.add("   ")
        view.add("first", error=True)
        view.add("second", error=True)

        view.delete_oldest()

        self.assertEqual([m.text for m in view.messages], ["second"])


class RevsetViewTests(unittest.TestCase):
    def test_empty_input_resolves_to_default(self) -> None:
        view = RevsetView("trunk()..@")

        self.assertEqual(view.resolve("  "), "trunk()..@")
        self.assertEqual(view.resolve(" all() "), "all()")

    def test_editing_submits_buffer(self) -> None:
        view = RevsetView()
        view.start_editing()
        for key in "all()":
            view.handle(KeyPress(key))

        self.assertEqual(view.handle(KeyPress("ENTER")), [Post(UpdateRevset("all()"))])
        self.assertFalse(view.editing)

    def test_history_is_most_recent_first_and_bounded(self) -> None:
        view = RevsetView()
        for index in range(HISTORY_LIMIT + 5):
            view.set_current(f"r{index}")
        view.set_current("r10")

        self.assertEqual(len(view.history), HISTORY_LIMIT)
        self.assertEqual(view.history[0], "r10")
        self.assertEqual(view.history.count("r10"), 1)

    def test_up_recalls_history(self) -> None:
        view = RevsetView()
        view.set_current("a")
        view.set_current("b")
        view.start_editing()
        view.buffer = ""

        view.handle(KeyPress("UP"))
        self.assertEqual(view.buffer, "b")
        view.handle(KeyPress("UP"))
        self.assertEqual(view.buffer, "a")
        view.handle(KeyPress("DOWN"))
        self.assertEqual(view.buffer, "b")

    def test_keys_ignored_when_not_editing(self) -> None:
        self.assertIsNone(RevsetView().handle(KeyPress("a")))


class PromptTests(unittest.TestCase):
    def test_password_without_callback_returns_modal_result(self) -> None:
        view = PasswordView("passphrase")
        for key in "s3cr":
            view.handle(KeyPress(key))
        view.handle(KeyPress("BACKSPACE"))

        effects = view.handle(KeyPress("ENTER"))

        self.assertEqual(effects, [Post(TogglePassword(None)), Post(ModalResult("s3c"))])
        self.assertNotIn("s3c", view.render(30, 3))

    def test_password_with_callback(self) -> None:
        replies: list = []
        view = PasswordView("token", replies.append)

        effects = view.handle(KeyPress("ESC"))

        self.assertEqual(effects, [Post(TogglePassword(None))])
        self.assertEqual(replies, [None])

    def test_input_modal(self) -> None:
        modal = InputModal(KEYMAP, "name")
        modal.handle(KeyPress("x"))

        self.assertEqual(modal.handle(KeyPress("ENTER")), [Post(ModalResult("x"))])
        self.assertEqual(modal.handle(KeyPress("ESC")), [Post(ModalResult(None))])


class ModalTests(unittest.TestCase):
    def test_undo_confirmation(self) -> None:
        modal = undo_modal(KEYMAP)

        self.assertEqual(modal.handle(KeyPress("n")), [Post(Close())])
        close, command = modal.handle(KeyPress("y"))
        self.assertEqual(close, Post(Close()))
        self.assertEqual(command.args[-1], "undo")

    def test_bookmarks_offer_set_and_delete(self) -> None:
        modal = BookmarksModal(KEYMAP, "kxyz")
        (load,) = modal.on_open()
        load.continuation("main\nfeature\n", None)

        self.assertEqual(modal.items, ["set main", "delete main", "set feature", "delete feature"])
        modal.handle(KeyPress("j"))
        close, command = modal.handle(KeyPress("ENTER"))

        self.assertEqual(close, Post(Close()))
        self.assertIs(command.mode, CommandMode.IMMEDIATE)
        self.assertEqual(command.args[-3:], ("bookmark", "delete", "main"))

    def test_bookmarks_name_new_bookmark(self) -> None:
        modal = BookmarksModal(KEYMAP, "kxyz")
        modal.handle(KeyPress("n"))
        for key in "wip":
            modal.handle(KeyPress(key))

        close, command = modal.handle(KeyPress("ENTER"))

        self.assertEqual(close, Post(Close()))
        self.assertIn("wip", command.args)
        self.assertIn("kxyz", command.args)

    def test_git_push_change_reports_and_refreshes(self) -> None:
        modal = GitModal(KEYMAP, "kxyz", "origin")
        self.assertEqual(len(modal.items), 3)

        _close, command = modal.activate(2)

        self.assertIsInstance(command, RunCommand)
        self.assertEqual(command.args[-2:], ("--change", "kxyz"))
        self.assertEqual(
            command.continuation("", None),
            [Flash("push change kxyz to origin: done"), Refresh()],
        )


class DiffViewTests(unittest.TestCase):
    def test_scrolls_and_consumes_keys(self) -> None:
        view = DiffView("\n".join(f"+line {n}" for n in range(100)), KEYMAP)

        self.assertEqual(view.handle(KeyPress("x")), [])
        self.assertEqual(view.handle(KeyPress("q")), [Post(Close())])


if __name__ == "__main__":
    unittest.main()
