"""Regression tests for raw terminal decoding.

Covers ESC timing, CSI keys, focus reports and SGR mouse reports.
"""

from __future__ import annotations

import os
import time
import unittest

from lazyjj.events import FocusGained, KeyPress, MouseButton, MouseEvent, MouseKind
from lazyjj.input import reader


class ReadEventRegressionTests(unittest.TestCase):
    def setUp(self) -> None:
        reader._PENDING_BYTES.clear()

    def tearDown(self) -> None:
        reader._PENDING_BYTES.clear()

    def _read_all(self, data: bytes, count: int = 1) -> list:
        read_fd, write_fd = os.pipe()
        try:
            os.write(write_fd, data)
            return [reader.read_event(read_fd, timeout_ms=20) for _ in range(count)]
        finally:
            os.close(read_fd)
            os.close(write_fd)

    def test_single_escape_returns_esc_without_second_keypress(self) -> None:
        started = time.monotonic()
        (event,) = self._read_all(b"\x1b")
        elapsed = time.monotonic() - started

        self.assertEqual(event, KeyPress("ESC"))
        self.assertLess(elapsed, 0.2)

    def test_escape_does_not_swallow_following_printable_key(self) -> None:
        first, second = self._read_all(b"\x1bq", count=2)

        self.assertEqual(first, KeyPress("ESC"))
        self.assertEqual(second, KeyPress("q"))

    def test_arrow_and_tilde_sequences(self) -> None:
        events = self._read_all(b"\x1b[A\x1b[B\x1b[5~\x1b[6~", count=4)

        self.assertEqual(
            events,
            [KeyPress("UP"), KeyPress("DOWN"), KeyPress("PGUP"), KeyPress("PGDOWN")],
        )

    def test_modified_arrow_sequences(self) -> None:
        events = self._read_all(b"\x1b[1;5A\x1b[1;2B", count=2)

        self.assertEqual(events, [KeyPress("CTRL_UP"), KeyPress("SHIFT_DOWN")])

    def test_control_keys_map_to_tokens(self) -> None:
        events = self._read_all(b"\x1a\x10\x0e\r", count=4)

        self.assertEqual(
            events,
            [KeyPress("CTRL_Z"), KeyPress("CTRL_P"), KeyPress("CTRL_N"), KeyPress("ENTER")],
        )

    def test_utf8_character_is_read_whole(self) -> None:
        (event,) = self._read_all("é".encode("utf-8"))

        self.assertEqual(event, KeyPress("é"))

    def test_focus_gained_report(self) -> None:
        (event,) = self._read_all(b"\x1b[I")

        self.assertEqual(event, FocusGained())

    def test_focus_lost_report_produces_no_event(self) -> None:
        (event,) = self._read_all(b"\x1b[O")

        self.assertIsNone(event)

    def test_sgr_mouse_press_and_release(self) -> None:
        press, release = self._read_all(b"\x1b[<0;11;6M\x1b[<0;11;6m", count=2)

        self.assertEqual(press, MouseEvent(MouseKind.PRESS, 10, 5, MouseButton.LEFT))
        self.assertEqual(release, MouseEvent(MouseKind.RELEASE, 10, 5, MouseButton.LEFT))

    def test_sgr_mouse_wheel_and_drag_motion(self) -> None:
        up, down, motion = self._read_all(b"\x1b[<64;3;4M\x1b[<65;3;4M\x1b[<32;7;2M", count=3)

        self.assertEqual(up, MouseEvent(MouseKind.WHEEL_UP, 2, 3, MouseButton.NONE))
        self.assertEqual(down, MouseEvent(MouseKind.WHEEL_DOWN, 2, 3, MouseButton.NONE))
        self.assertEqual(motion, MouseEvent(MouseKind.MOTION, 6, 1, MouseButton.LEFT))

    def test_read_times_out_without_input(self) -> None:
        read_fd, write_fd = os.pipe()
        try:
            event = reader.read_event(read_fd, timeout_ms=10)
        finally:
            os.close(read_fd)
            os.close(write_fd)

        self.assertIsNone(event)


class DecodeSgrMouseTests(unittest.TestCase):
    def test_malformed_payload_is_rejected(self) -> None:
        self.assertIsNone(reader.decode_sgr_mouse("0;x;1", "M"))

    def test_right_button_press(self) -> None:
        self.assertEqual(
            reader.decode_sgr_mouse("2;1;1", "M"),
            MouseEvent(MouseKind.PRESS, 0, 0, MouseButton.RIGHT),
        )


if __name__ == "__main__":
    unittest.main()
