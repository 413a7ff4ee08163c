"""Tests for cell-width measurement and clipping of styled lines.

These protect column layout in list rows, table cells, and the viewer.
"""

import unittest

from simviewer import ansi as ansi_mod


class DisplayWidthTests(unittest.TestCase):
    def test_escapes_are_invisible(self) -> None:
        self.assertEqual(ansi_mod.display_width("\033[31mred\033[0m"), 3)
        self.assertEqual(ansi_mod.strip_ansi("\033[1;38;5;208mhi\033[0m"), "hi")

    def test_wide_and_combining_characters(self) -> None:
        self.assertEqual(ansi_mod.display_width("日本"), 4)
        self.assertEqual(ansi_mod.display_width("é"), 1)

    def test_tabs_advance_to_next_stop(self) -> None:
        self.assertEqual(ansi_mod.display_width("ab\tc"), 9)


class ClipTests(unittest.TestCase):
    def test_clip_keeps_trailing_reset(self) -> None:
        clipped = ansi_mod.clip_ansi_line("\033[31mabcdef\033[0m", 3)
        self.assertEqual(clipped, "\033[31mabc\033[0m")

    def test_wide_character_straddling_edge_is_dropped(self) -> None:
        self.assertEqual(ansi_mod.clip_ansi_line("a日本", 2), "a")
        self.assertEqual(ansi_mod.clip_ansi_line("a日本", 3), "a日")

    def test_non_positive_width(self) -> None:
        self.assertEqual(ansi_mod.clip_ansi_line("abc", 0), "")


class TruncateAndPadTests(unittest.TestCase):
    def test_truncate_adds_ellipsis_only_when_cut(self) -> None:
        self.assertEqual(ansi_mod.truncate_to_width("Documents", 20), "Documents")
        self.assertEqual(ansi_mod.truncate_to_width("Documents", 6), "Doc...")
        self.assertEqual(ansi_mod.truncate_to_width("Documents", 2), "..")

    def test_truncate_counts_wide_cells(self) -> None:
        self.assertEqual(ansi_mod.truncate_to_width("日本語テキスト", 7), "日本...")

    def test_pad(self) -> None:
        self.assertEqual(ansi_mod.pad_to_width("ab", 5), "ab   ")
        self.assertEqual(ansi_mod.pad_to_width("日本", 5), "日本 ")
        self.assertEqual(ansi_mod.pad_to_width("abcdef", 3), "abcdef")


if __name__ == "__main__":
    unittest.main()
