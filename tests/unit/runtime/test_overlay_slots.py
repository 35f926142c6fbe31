from __future__ import annotations

import unittest

from lazyjj.input.key_registry import Keymap
from lazyjj.runtime.overlays import CLOSE_PRECEDENCE, OverlayKind, OverlaySlots
from lazyjj.views.base import Surface
from lazyjj.views.leader import LeaderView
from lazyjj.views.password import PasswordView


class OverlaySlotsTests(unittest.TestCase):
    def test_close_one_follows_precedence(self) -> None:
        slots = OverlaySlots()
        slots.open_oplog(Surface())
        slots.open_stacked(Surface())
        slots.open_diff(Surface())
        slots.open_leader(Surface())

        closed = [slots.close_one() for _ in range(5)]

        self.assertEqual(closed, [*CLOSE_PRECEDENCE, None])
        self.assertEqual(
            closed[:4],
            [OverlayKind.LEADER, OverlayKind.DIFF, OverlayKind.STACKED_MODAL, OverlayKind.OPLOG],
        )

    def test_close_one_leaves_password_and_sequence_alone(self) -> None:
        slots = OverlaySlots()
        slots.open_password(PasswordView("passphrase"))
        slots.open_sequence(Surface())

        self.assertIsNone(slots.close_one())
        self.assertTrue(slots.is_open(OverlayKind.PASSWORD))
        self.assertTrue(slots.is_open(OverlayKind.SEQUENCE_OVERLAY))

    def test_reopening_same_password_prompt_keeps_existing_view(self) -> None:
        slots = OverlaySlots()
        first = PasswordView("passphrase")
        self.assertTrue(slots.open_password(first))

        self.assertFalse(slots.open_password(PasswordView("passphrase")))
        self.assertIs(slots.password, first)

        other = PasswordView("token")
        self.assertTrue(slots.open_password(other))
        self.assertIs(slots.password, other)

    def test_only_leader_captures_input(self) -> None:
        slots = OverlaySlots()
        slots.open_stacked(Surface())
        self.assertIsNone(slots.capturing())

        leader = LeaderView({}, Keymap.from_mapping({}))
        slots.open_leader(leader)

        self.assertIs(slots.capturing(), leader)

    def test_stacked_modal_is_replaced_on_reopen(self) -> None:
        slots = OverlaySlots()
        first, second = Surface(), Surface()
        slots.open_stacked(first)
        slots.open_stacked(second)

        self.assertIs(slots.stacked, second)

    def test_quit_is_unsafe_with_modal_or_oplog_or_busy_primary(self) -> None:
        slots = OverlaySlots()
        self.assertTrue(slots.is_safe_to_quit(True))
        self.assertFalse(slots.is_safe_to_quit(False))

        slots.open_oplog(Surface())
        self.assertFalse(slots.is_safe_to_quit(True))
        slots.close_oplog()

        slots.open_stacked(Surface())
        self.assertFalse(slots.is_safe_to_quit(True))


if __name__ == "__main__":
    unittest.main()
