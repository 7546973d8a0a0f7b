"""Case-insensitive text search over rendered pager lines."""

from __future__ import annotations

from collections.abc import Sequence

from .ansi import strip_ansi
from .viewport import clamp_offset


class SearchEngine:
    """Ordered match list plus a circular current-match cursor.

    ``matches`` holds strictly increasing line indices. ``current_index`` is
    ``None`` until ``next``/``prev`` picks a match, and stays ``None`` when
    there are no matches at all.
    """

    def __init__(self) -> None:
        self.query = ""
        self.matches: list[int] = []
        self.current_index: int | None = None

    def reset(self) -> None:
        self.query = ""
        self.matches = []
        self.current_index = None

    def search(self, query: str, lines: Sequence[str]) -> list[int]:
        """Replace matches with every line containing ``query``."""
        self.query = query
        self.current_index = None
        if not query:
            self.matches = []
            return self.matches
        needle = query.casefold()
        self.matches = [index for index, line in enumerate(lines) if needle in strip_ansi(line).casefold()]
        return self.matches

    def next(self) -> int | None:
        """Advance to the next match (wrapping) and return its line."""
        if not self.matches:
            return None
        if self.current_index is None:
            self.current_index = 0
        else:
            self.current_index = (self.current_index + 1) % len(self.matches)
        return self.matches[self.current_index]

    def prev(self) -> int | None:
        """Step back to the previous match (wrapping) and return its line."""
        if not self.matches:
            return None
        if self.current_index is None:
            self.current_index = len(self.matches) - 1
        else:
            self.current_index = (self.current_index - 1) % len(self.matches)
        return self.matches[self.current_index]

    @property
    def current_line(self) -> int | None:
        if self.current_index is None or not self.matches:
            return None
        return self.matches[self.current_index]

    @property
    def match_count(self) -> int:
        return len(self.matches)


def centered_offset_for(line: int, viewport_height: int, total_lines: int) -> int:
    """Offset that places ``line`` in the middle of the viewport."""
    return clamp_offset(line - viewport_height // 2, total_lines, viewport_height)
