"""ANSI-aware text measurement and line shaping utilities.

Provides stripping, width measurement, clipping and padding that preserve
escape sequences. Pager, browser and status bar rows are all shaped here so
every row ends exactly at the terminal edge.
"""

from __future__ import annotations

import re
import unicodedata

ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]")
RESET = "\033[0m"
ELLIPSIS = "…"
TAB_STOP = 8


def strip_ansi(text: str) -> str:
    """Return ``text`` with all CSI escape sequences removed."""
    return ANSI_ESCAPE_RE.sub("", text)


def char_display_width(ch: str, col: int) -> int:
    """Return terminal column width for one character at visual column ``col``.

    Tabs expand to the next 8-column stop, combining marks consume no columns,
    and East Asian wide/fullwidth characters consume two.
    """
    if ch == "\t":
        return TAB_STOP - (col % TAB_STOP)
    if unicodedata.combining(ch):
        return 0
    if unicodedata.east_asian_width(ch) in {"W", "F"}:
        return 2
    return 1


def visible_width(text: str) -> int:
    """Return the number of terminal columns ``text`` occupies once printed."""
    col = 0
    for ch in strip_ansi(text):
        col += char_display_width(ch, col)
    return col


def clip_ansi_line(text: str, max_cols: int) -> str:
    """Trim a styled line to at most ``max_cols`` display columns.

    ANSI escape sequences are preserved verbatim and do not count toward width.
    Tabs are expanded into spaces so clipping aligns with rendered terminal cells.
    """
    if max_cols <= 0 or not text:
        return ""

    out: list[str] = []
    col = 0
    i = 0
    n = len(text)
    while i < n:
        if text[i] == "\x1b":
            match = ANSI_ESCAPE_RE.match(text, i)
            if match:
                out.append(match.group(0))
                i = match.end()
                continue
        if col >= max_cols:
            i += 1
            continue
        ch = text[i]
        w = char_display_width(ch, col)
        if col + w > max_cols:
            i += 1
            col = max_cols
            continue
        out.append(" " * w if ch == "\t" else ch)
        col += w
        i += 1

    return "".join(out)


def pad_ansi_line(text: str, width: int, fill_style: str = "") -> str:
    """Clip ``text`` to ``width`` columns and paint the remainder with ``fill_style``.

    The fill is emitted after a reset so trailing cells never inherit the
    foreground/underline state of the last styled span.
    """
    clipped = clip_ansi_line(text, width)
    pad = max(0, width - visible_width(clipped))
    if pad <= 0:
        return clipped + (RESET if "\x1b" in clipped else "")
    if not fill_style:
        return clipped + (RESET if "\x1b" in clipped else "") + " " * pad
    return f"{clipped}{RESET}{fill_style}{' ' * pad}{RESET}"


def truncate_end(text: str, max_cols: int) -> str:
    """Shorten plain ``text`` to ``max_cols`` columns, ending with an ellipsis."""
    if max_cols <= 0:
        return ""
    if visible_width(text) <= max_cols:
        return text
    out: list[str] = []
    col = 0
    for ch in text:
        w = char_display_width(ch, col)
        if col + w > max_cols - 1:
            break
        out.append(ch)
        col += w
    return "".join(out) + ELLIPSIS


def truncate_start(text: str, max_cols: int) -> str:
    """Shorten plain ``text`` from the left so its tail stays visible."""
    if visible_width(text) <= max_cols:
        return text
    target = max_cols - 1
    if target <= 0:
        return ""
    truncated = text
    while truncated and visible_width(truncated) > target:
        truncated = truncated[1:]
    return ELLIPSIS + truncated
