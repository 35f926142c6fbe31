from __future__ import annotations

import unittest

from lazyjj.effects import Schedule
from lazyjj.events import SequenceTimeout
from lazyjj.input.sequence import Collecting, Idle, SequenceBinding, SequenceMatcher


def _matcher(*bindings: SequenceBinding, timeout: float = 1.0) -> SequenceMatcher:
    return SequenceMatcher(bindings, timeout_seconds=timeout, monotonic=lambda: 100.0)


class SequenceMatcherTests(unittest.TestCase):
    def test_key_that_starts_no_chord_is_not_consumed(self) -> None:
        matcher = _matcher(SequenceBinding("fetch", ("g", "f")))

        result = matcher.feed("x")

        self.assertFalse(result.consumed)
        self.assertIsNone(result.action)
        self.assertIsInstance(matcher.state, Idle)

    def test_prefix_key_enters_collecting_and_schedules_timeout(self) -> None:
        matcher = _matcher(SequenceBinding("fetch", ("g", "f")), timeout=0.5)

        result = matcher.feed("g", now=10.0)

        self.assertTrue(result.consumed)
        self.assertIsNone(result.action)
        self.assertEqual(result.schedule, Schedule(0.5, SequenceTimeout(matcher.generation)))
        self.assertIsInstance(matcher.state, Collecting)
        self.assertEqual(matcher.state.prefix, ("g",))
        self.assertEqual(matcher.state.deadline, 10.5)

    def test_completed_chord_fires_and_returns_to_idle(self) -> None:
        fetch = SequenceBinding("fetch", ("g", "f"))
        push = SequenceBinding("push", ("g", "p"))
        matcher = _matcher(fetch, push)

        matcher.feed("g")
        result = matcher.feed("p")

        self.assertTrue(result.consumed)
        self.assertIs(result.action, push)
        self.assertIsInstance(matcher.state, Idle)

    def test_unmatched_continuation_is_swallowed(self) -> None:
        matcher = _matcher(SequenceBinding("fetch", ("g", "f")))

        matcher.feed("g")
        result = matcher.feed("z")

        self.assertTrue(result.consumed)
        self.assertIsNone(result.action)
        self.assertIsInstance(matcher.state, Idle)

    def test_first_fully_typed_binding_wins_ties(self) -> None:
        short = SequenceBinding("short", ("g", "g"))
        longer = SequenceBinding("longer", ("g", "g", "x"))
        matcher = _matcher(longer, short)

        matcher.feed("g")
        result = matcher.feed("g")

        self.assertIs(result.action, short)
        self.assertIsInstance(matcher.state, Idle)

    def test_identical_chords_resolve_in_declaration_order(self) -> None:
        first = SequenceBinding("first", ("a", "b"))
        second = SequenceBinding("second", ("a", "b"))
        matcher = _matcher(first, second)

        matcher.feed("a")
        self.assertIs(matcher.feed("b").action, first)

    def test_current_timeout_resets_without_action(self) -> None:
        matcher = _matcher(SequenceBinding("fetch", ("g", "f")))
        result = matcher.feed("g")

        self.assertTrue(matcher.timeout(result.schedule.event.generation))
        self.assertIsInstance(matcher.state, Idle)

    def test_stale_timeout_is_ignored(self) -> None:
        matcher = _matcher(SequenceBinding("three", ("a", "b", "c")))
        first = matcher.feed("a")
        second = matcher.feed("b")

        self.assertFalse(matcher.timeout(first.schedule.event.generation))
        self.assertIsInstance(matcher.state, Collecting)
        self.assertEqual(matcher.state.prefix, ("a", "b"))
        self.assertTrue(matcher.timeout(second.schedule.event.generation))

    def test_timeout_after_completion_is_ignored(self) -> None:
        matcher = _matcher(SequenceBinding("fetch", ("g", "f")))
        pending = matcher.feed("g")
        matcher.feed("f")

        self.assertFalse(matcher.timeout(pending.schedule.event.generation))
        self.assertIsInstance(matcher.state, Idle)

    def test_inapplicable_bindings_are_not_candidates(self) -> None:
        matcher = _matcher(SequenceBinding("fetch", ("g", "f"), applicable=lambda: False))

        self.assertFalse(matcher.feed("g").consumed)
        self.assertIsInstance(matcher.state, Idle)

    def test_pending_candidates_narrow_as_keys_arrive(self) -> None:
        fetch = SequenceBinding("fetch", ("g", "f", "a"))
        push = SequenceBinding("push", ("g", "p", "a"))
        matcher = _matcher(fetch, push)

        matcher.feed("g")
        self.assertEqual(matcher.pending_candidates(), (fetch, push))
        matcher.feed("f")
        self.assertEqual(matcher.pending_candidates(), (fetch,))


if __name__ == "__main__":
    unittest.main()
