from __future__ import annotations

import unittest

from lazyjj.ansi import RESET, display_width, iter_cells, pad_ansi_line, slice_ansi_line


class DisplayWidthTests(unittest.TestCase):
    def test_escapes_are_free_and_wide_chars_take_two_columns(self) -> None:
        self.assertEqual(display_width("a\x1b[31mb\x1b[0m"), 2)
        self.assertEqual(display_width("日本"), 4)
        self.assertEqual(display_width(""), 0)

    def test_tab_runs_to_next_stop(self) -> None:
        self.assertEqual(display_width("\tx"), 9)
        self.assertEqual([chunk for chunk, _col, _width in iter_cells("ab\t")][-1], " " * 6)


class SliceAnsiLineTests(unittest.TestCase):
    def test_colour_set_before_window_is_replayed(self) -> None:
        self.assertEqual(slice_ansi_line("\x1b[31mhello", 2, 2), "\x1b[31mll")

    def test_wide_char_cut_by_left_edge_becomes_padding(self) -> None:
        self.assertEqual(slice_ansi_line("日x", 1, 2), " x")

    def test_wide_char_crossing_right_edge_is_dropped(self) -> None:
        self.assertEqual(slice_ansi_line("a日", 0, 2), "a")

    def test_empty_window(self) -> None:
        self.assertEqual(slice_ansi_line("abc", 1, 0), "")


class PadAnsiLineTests(unittest.TestCase):
    def test_short_styled_line_is_reset_and_padded(self) -> None:
        self.assertEqual(pad_ansi_line("\x1b[1mab", 4), "\x1b[1mab" + RESET + "  ")

    def test_long_plain_line_is_clipped(self) -> None:
        self.assertEqual(pad_ansi_line("abcdef", 3), "abc")


if __name__ == "__main__":
    unittest.main()
