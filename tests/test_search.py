"""Tests for pager text search and match cycling."""

from __future__ import annotations

import unittest

from previewmd.search import SearchEngine, centered_offset_for


def _lines_with_matches(total: int, hits: set[int]) -> list[str]:
    return [f"line {i} \x1b[1mNeedle\x1b[0m" if i in hits else f"line {i}" for i in range(total)]


class SearchEngineTests(unittest.TestCase):
    def test_matches_ignore_case_and_ansi_styling(self) -> None:
        engine = SearchEngine()
        matches = engine.search("needle", _lines_with_matches(12, {2, 5, 9}))
        self.assertEqual(matches, [2, 5, 9])
        self.assertIsNone(engine.current_index)

    def test_query_does_not_match_across_escape_codes(self) -> None:
        engine = SearchEngine()
        self.assertEqual(engine.search("1mneedle", _lines_with_matches(3, {1})), [])

    def test_next_and_prev_wrap_around(self) -> None:
        engine = SearchEngine()
        engine.search("needle", _lines_with_matches(12, {2, 5, 9}))

        self.assertEqual([engine.next() for _ in range(4)], [2, 5, 9, 2])
        self.assertEqual(engine.prev(), 9)
        self.assertEqual(engine.current_line, 9)

    def test_empty_query_and_no_matches_make_navigation_a_no_op(self) -> None:
        engine = SearchEngine()
        self.assertEqual(engine.search("", ["a", "b"]), [])
        self.assertIsNone(engine.next())
        engine.search("zzz", ["a", "b"])
        self.assertIsNone(engine.prev())
        self.assertIsNone(engine.current_index)

    def test_new_search_resets_cursor(self) -> None:
        engine = SearchEngine()
        lines = _lines_with_matches(12, {2, 5, 9})
        engine.search("needle", lines)
        engine.next()
        engine.search("line 1", lines)
        self.assertIsNone(engine.current_index)
        self.assertEqual(engine.matches, [1, 10, 11])

    def test_centered_offset_is_clamped(self) -> None:
        self.assertEqual(centered_offset_for(50, 10, 100), 45)
        self.assertEqual(centered_offset_for(2, 10, 100), 0)
        self.assertEqual(centered_offset_for(99, 10, 100), 90)


if __name__ == "__main__":
    unittest.main()
