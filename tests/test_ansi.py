"""Regression tests for ANSI line-shaping primitives.

Every row the pager, browser and status bar emit goes through these, so
width accounting must agree with what the terminal actually paints.
"""

import unittest

from previewmd import ansi as ansi_mod


class WidthTests(unittest.TestCase):
    def test_escape_sequences_have_no_width(self) -> None:
        self.assertEqual(ansi_mod.visible_width("\x1b[1;31mred\x1b[0m"), 3)
        self.assertEqual(ansi_mod.strip_ansi("\x1b[38;2;1;2;3mx\x1b[?25l"), "x")

    def test_wide_combining_and_tab_widths(self) -> None:
        self.assertEqual(ansi_mod.visible_width("日本"), 4)
        self.assertEqual(ansi_mod.visible_width("é"), 1)
        self.assertEqual(ansi_mod.visible_width("ab\tc"), 9)


class ClipAndPadTests(unittest.TestCase):
    def test_clip_keeps_escapes_and_drops_overflow(self) -> None:
        clipped = ansi_mod.clip_ansi_line("\x1b[1mabcdef\x1b[0m", 3)
        self.assertEqual(clipped, "\x1b[1mabc\x1b[0m")

    def test_clip_never_splits_wide_character(self) -> None:
        self.assertEqual(ansi_mod.strip_ansi(ansi_mod.clip_ansi_line("a日本", 2)), "a")
        self.assertEqual(ansi_mod.clip_ansi_line("abc", 0), "")

    def test_pad_fills_with_style_after_reset(self) -> None:
        padded = ansi_mod.pad_ansi_line("\x1b[1mab", 5, "\x1b[44m")
        self.assertEqual(padded, "\x1b[1mab\x1b[0m\x1b[44m   \x1b[0m")
        self.assertEqual(ansi_mod.pad_ansi_line("ab", 4), "ab  ")
        self.assertEqual(ansi_mod.pad_ansi_line("abcdef", 4), "abcd")


class TruncateTests(unittest.TestCase):
    def test_truncate_end(self) -> None:
        self.assertEqual(ansi_mod.truncate_end("abcdef", 4), "abc…")
        self.assertEqual(ansi_mod.truncate_end("abc", 4), "abc")
        self.assertEqual(ansi_mod.truncate_end("abc", 0), "")

    def test_truncate_start_keeps_tail(self) -> None:
        self.assertEqual(ansi_mod.truncate_start("docs/readme.md", 8), "…adme.md")
        self.assertEqual(ansi_mod.truncate_start("short", 8), "short")
        self.assertEqual(ansi_mod.truncate_start("abcdef", 1), "")


if __name__ == "__main__":
    unittest.main()
