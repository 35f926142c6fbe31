from __future__ import annotations

import unittest
from dataclasses import dataclass

from lazyjj.events import (
    _HANDLER_NAMES,
    EVENT_TYPES,
    CommandCompleted,
    Event,
    Flash,
    KeyPress,
    MouseEvent,
    MouseKind,
    Refresh,
    as_event_list,
    handler_name,
    is_input_event,
)
from lazyjj.runtime.router import Router


@dataclass(frozen=True)
class _Stray(Event):
    pass


class EventVariantTests(unittest.TestCase):
    def test_every_variant_has_a_router_handler(self) -> None:
        for event_type in EVENT_TYPES:
            with self.subTest(event=event_type.__name__):
                self.assertTrue(hasattr(Router, "_on_" + _HANDLER_NAMES[event_type]))

    def test_unknown_variant_is_rejected(self) -> None:
        with self.assertRaises(TypeError):
            handler_name(_Stray())

    def test_input_events(self) -> None:
        self.assertTrue(is_input_event(KeyPress("j")))
        self.assertTrue(is_input_event(MouseEvent(MouseKind.PRESS, 0, 0)))
        self.assertFalse(is_input_event(Refresh()))

    def test_continuation_is_ignored_for_equality(self) -> None:
        self.assertEqual(
            CommandCompleted(output="x", continuation=lambda o, e: None),
            CommandCompleted(output="x"),
        )

    def test_as_event_list(self) -> None:
        self.assertEqual(as_event_list(None), [])
        self.assertEqual(as_event_list(Flash("hi")), [Flash("hi")])
        self.assertEqual(as_event_list([Refresh(), Flash("hi")]), [Refresh(), Flash("hi")])


if __name__ == "__main__":
    unittest.main()
