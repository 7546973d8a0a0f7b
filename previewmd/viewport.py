"""Scroll arithmetic shared by the pager and the browser.

Pure functions over line counts; no state lives here.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TypeVar

T = TypeVar("T")


def max_scroll(total: int, height: int) -> int:
    """Largest valid offset for ``total`` lines in a ``height``-row viewport."""
    return max(0, total - height)


def clamp_offset(offset: int, total: int, height: int) -> int:
    return max(0, min(offset, max_scroll(total, height)))


def visible_slice(lines: Sequence[T], offset: int, height: int) -> list[T]:
    """Return the rows shown at ``offset``; shorter than ``height`` near the end."""
    total = len(lines)
    start = clamp_offset(offset, total, height)
    return list(lines[start : min(start + max(0, height), total)])


def scroll_percent(offset: int, total: int, height: int) -> int:
    """Percent scrolled, 100 whenever everything fits on screen."""
    if total <= height:
        return 100
    return round(offset / max(1, total - height) * 100)


def page_size(height: int) -> int:
    # two rows of overlap between pages
    return max(1, height - 2)


def half_page_size(height: int) -> int:
    return page_size(height) // 2
