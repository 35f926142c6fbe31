from __future__ import annotations

import unittest

from lazyjj.ansi import strip_ansi
from lazyjj.highlight import colorize_diff


class ColorizeDiffTests(unittest.TestCase):
    def test_plain_diff_gets_styled_without_changing_text(self) -> None:
        text = "--- a/x\n+++ b/x\n-old\n+new"

        rendered = colorize_diff(text)

        self.assertIn("\x1b[", rendered)
        self.assertEqual(strip_ansi(rendered), text)

    def test_already_colored_output_is_untouched(self) -> None:
        text = "\x1b[32m+new\x1b[0m\n"

        self.assertEqual(colorize_diff(text), text)

    def test_unknown_style_falls_back(self) -> None:
        self.assertEqual(strip_ansi(colorize_diff("+x\n", style="no-such-style")), "+x\n")


if __name__ == "__main__":
    unittest.main()
