"""Tests for the generator-based script engine and the session bridge."""

from __future__ import annotations

import textwrap
import unittest

from lazyjj.errors import CommandError, ScriptError
from lazyjj.events import CommandCompleted, KeyPress, ModalResult, ScriptInstruction, ScriptReply
from lazyjj.runtime.scripting import PythonScriptEngine, ScriptBridge

PICK_SCRIPT = textwrap.dedent(
    """
    def main(jj):
        out = yield jj.run("bookmark", "list")
        choice = yield jj.choose("Bookmark", out.split())
        if choice is not None:
            yield jj.flash("picked " + choice)
    """
)


class _CountingSession:
    def __init__(self) -> None:
        self.closed = 0
        self.done = False

    def handle_event(self, event):
        if event is None:
            return ScriptInstruction("refresh")
        self.done = True
        return None

    def is_done(self) -> bool:
        return self.done

    def close(self) -> None:
        self.closed += 1


class _FixedEngine:
    def __init__(self, session) -> None:
        self.session = session
        self.contexts: list = []

    def start(self, source, context=None):
        self.contexts.append(context)
        return self.session


class PythonScriptEngineTests(unittest.TestCase):
    def test_generator_script_walks_through_replies_and_modals(self) -> None:
        bridge = ScriptBridge()

        first = bridge.start(PICK_SCRIPT)
        self.assertEqual(first, ScriptInstruction("run", ("bookmark", "list")))
        self.assertTrue(bridge.active)

        self.assertIsNone(bridge.deliver(KeyPress("j")))
        choose = bridge.deliver(ScriptReply("main dev\n"))
        self.assertEqual(choose, ScriptInstruction("choose", ("Bookmark", ("main", "dev"))))

        self.assertIsNone(bridge.deliver(ScriptReply("ignored")))
        flash = bridge.deliver(ModalResult("dev"))
        self.assertEqual(flash, ScriptInstruction("flash", ("picked dev", False)))

        self.assertIsNone(bridge.deliver(ScriptReply()))
        self.assertFalse(bridge.active)

    def test_cancelled_modal_resumes_with_none(self) -> None:
        bridge = ScriptBridge()
        bridge.start(PICK_SCRIPT)
        bridge.deliver(ScriptReply("main\n"))

        self.assertIsNone(bridge.deliver(ModalResult(None)))
        self.assertFalse(bridge.active)

    def test_failed_command_is_raised_inside_script(self) -> None:
        source = textwrap.dedent(
            """
            def main(jj):
                try:
                    yield jj.run("git", "push")
                except Exception as exc:
                    yield jj.flash(str(exc), True)
            """
        )
        bridge = ScriptBridge()
        bridge.start(source)
        error = CommandError(("jj", "git", "push"), 1, "rejected")

        reply = bridge.deliver(ScriptReply(error=error))

        self.assertEqual(reply, ScriptInstruction("flash", (str(error), True)))

    def test_script_fault_becomes_failed_completion(self) -> None:
        source = "def main(jj):\n    yield jj.refresh()\n    raise RuntimeError('boom')\n"
        bridge = ScriptBridge()
        bridge.start(source)

        result = bridge.deliver(ScriptReply())

        self.assertIsInstance(result, CommandCompleted)
        self.assertIsInstance(result.error, ScriptError)
        self.assertIn("boom", str(result.error))
        self.assertFalse(bridge.active)

    def test_syntax_error_and_missing_main_fail_to_start(self) -> None:
        bridge = ScriptBridge()

        broken = bridge.start("def main(jj)\n")
        missing = bridge.start("x = 1\n")

        self.assertIsInstance(broken.error, ScriptError)
        self.assertIn("main(jj)", str(missing.error))
        self.assertFalse(bridge.active)

    def test_non_generator_main_finishes_immediately(self) -> None:
        session = PythonScriptEngine().start("def main(jj):\n    return 1\n")

        self.assertTrue(session.is_done())
        self.assertIsNone(session.handle_event(None))

    def test_yielding_a_non_instruction_is_a_fault(self) -> None:
        bridge = ScriptBridge()

        result = bridge.start("def main(jj):\n    yield 42\n")

        self.assertIsInstance(result, CommandCompleted)
        self.assertIn("int", str(result.error))

    def test_context_is_exposed_to_script(self) -> None:
        source = "def main(jj):\n    yield jj.flash(jj.context['change_id'])\n"
        bridge = ScriptBridge()

        first = bridge.start(source, {"change_id": "kxyz"})

        self.assertEqual(first, ScriptInstruction("flash", ("kxyz", False)))


class ScriptBridgeTests(unittest.TestCase):
    def test_new_script_replaces_running_one(self) -> None:
        bridge = ScriptBridge()
        bridge.start(PICK_SCRIPT)

        replacement = bridge.start("def main(jj):\n    yield jj.refresh()\n")

        self.assertEqual(replacement, ScriptInstruction("refresh"))
        self.assertIsNone(bridge.deliver(ScriptReply("main\n")))
        self.assertFalse(bridge.active)

    def test_finished_session_is_released_exactly_once(self) -> None:
        session = _CountingSession()
        bridge = ScriptBridge(_FixedEngine(session))

        bridge.start("ignored")
        bridge.deliver(ScriptReply())
        bridge.deliver(ScriptReply())
        bridge.cancel()

        self.assertEqual(session.closed, 1)
        self.assertFalse(bridge.active)

    def test_cancel_closes_running_session(self) -> None:
        session = _CountingSession()
        bridge = ScriptBridge(_FixedEngine(session))
        bridge.start("ignored", {"width": "80"})

        bridge.cancel()

        self.assertEqual(session.closed, 1)
        self.assertFalse(bridge.active)


if __name__ == "__main__":
    unittest.main()
