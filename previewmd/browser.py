"""Markdown file browser: directory scan, filter, sort and item list view.

Entries are discovered once at startup. The view shows three rows per
entry (name, timestamps, spacer) under a two-row header, with either the
filter prompt or a one-line key hint at the bottom.
"""

from __future__ import annotations

import os
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from loguru import logger

from .ansi import pad_ansi_line, truncate_end, visible_width
from .color_scheme import ColorScheme, scheme_from_notification
from .keys import (
    BACKSPACE,
    CTRL_C,
    DOWN,
    END,
    ENTER,
    ESC,
    HOME,
    PAGE_DOWN,
    PAGE_UP,
    UP,
    KeyBinding,
    KeyRegistry,
    is_printable,
)
from .theme import Palette

MD_EXTENSIONS = frozenset({".md", ".markdown", ".mdx"})

HEADER_HEIGHT = 2
ITEM_HEIGHT = 3
FOOTER_HEIGHT = 1

SORT_KEYS = ("path", "created", "updated")
SORT_LABELS = {"path": "name", "created": "created", "updated": "updated"}

MINI_HELP = "  enter open  •  j/k move  •  / filter  •  ? help  •  s cycle sort  •  r reverse sort  •  q quit"

HELP_LINES = (
    "  j / ↓     move down          g / Home    go to top",
    "  k / ↑     move up            G / End     go to bottom",
    "  f / PgDn  page down          /           filter files",
    "  b / PgUp  page up            Esc         clear filter",
    "  Enter     open file          ?           close help",
    "  s           cycle sort         r           reverse sort",
)

NO_MATCHES_MESSAGE = "No files match your filter."
NO_FILES_MESSAGE = "No markdown files found."


@dataclass(frozen=True)
class Entry:
    """One markdown file found by :func:`scan_directory`.

    Timestamps are POSIX seconds; ``0.0`` means unknown.
    """

    absolute_path: Path
    relative_path: str
    created_at: float
    updated_at: float


def has_valid_creation_time(created_at: float, updated_at: float) -> bool:
    """Creation times are best effort; zero or later-than-mtime means unknown."""
    return 0 < created_at <= updated_at


def format_date(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d")


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'' if count == 1 else 's'} ago"


def relative_time(timestamp: float, now: float | None = None) -> str:
    """Describe ``timestamp`` as "N units ago" (30-day months, 365-day years)."""
    current = time.time() if now is None else now
    seconds = int(current - timestamp)
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24
    if seconds < 60:
        return "just now"
    if minutes < 60:
        return _plural(minutes, "minute")
    if hours < 24:
        return _plural(hours, "hour")
    if days < 30:
        return _plural(days, "day")
    if days // 30 < 12:
        return _plural(days // 30, "month")
    return _plural(days // 365, "year")


def _stat_times(st: os.stat_result) -> tuple[float, float]:
    return float(getattr(st, "st_birthtime", 0.0) or 0.0), st.st_mtime


def scan_directory(base_dir: Path, max_depth: int) -> list[Entry]:
    """Collect markdown files under ``base_dir`` sorted by relative path.

    Depth 1 means only files directly inside ``base_dir``; each level below
    adds one. Hidden names are skipped. Symlinked files are included but
    symlinked directories are not descended into; real paths of visited
    directories guard against loops reached through bind mounts or aliases.
    """
    base_dir = Path(base_dir)
    entries: list[Entry] = []
    visited: set[str] = set()

    def add_file(path: Path, st: os.stat_result | None) -> None:
        created_at, updated_at = _stat_times(st) if st is not None else (0.0, 0.0)
        entries.append(
            Entry(
                absolute_path=path,
                relative_path=os.path.relpath(path, base_dir),
                created_at=created_at,
                updated_at=updated_at,
            )
        )

    def recurse(directory: Path, depth: int) -> None:
        if depth > max_depth:
            return
        try:
            real = os.path.realpath(directory)
        except OSError:
            return
        if real in visited:
            return
        visited.add(real)

        try:
            with os.scandir(directory) as items:
                children = list(items)
        except OSError as exc:
            logger.debug("skipping unreadable directory {}: {}", directory, exc)
            return

        for item in children:
            if item.name.startswith("."):
                continue
            path = directory / item.name
            if item.is_symlink():
                try:
                    st = os.stat(path)
                except OSError:
                    continue
                if os.path.isfile(path) and Path(item.name).suffix.lower() in MD_EXTENSIONS:
                    add_file(path, st)
                continue
            try:
                is_dir = item.is_dir(follow_symlinks=False)
                is_file = item.is_file(follow_symlinks=False)
            except OSError:
                continue
            if is_dir:
                recurse(path, depth + 1)
            elif is_file and Path(item.name).suffix.lower() in MD_EXTENSIONS:
                try:
                    st = item.stat(follow_symlinks=False)
                except OSError:
                    st = None
                add_file(path, st)

    recurse(base_dir, 1)
    entries.sort(key=lambda entry: (entry.relative_path.casefold(), entry.relative_path))
    logger.debug("scanned {} markdown files under {} (depth {})", len(entries), base_dir, max_depth)
    return entries


_SORT_KEY_FUNCS: dict[str, Callable[[Entry], object]] = {
    "path": lambda entry: (entry.relative_path.casefold(), entry.relative_path),
    "created": lambda entry: entry.created_at,
    "updated": lambda entry: entry.updated_at,
}


def abbreviate_home(path: str, home: str | None = None) -> str:
    home = os.environ.get("HOME", "") if home is None else home
    if home and path.startswith(home):
        return "~" + path[len(home):]
    return path


@dataclass(frozen=True)
class BrowserCallbacks:
    on_open: Callable[[Entry], None]
    on_quit: Callable[[], None]
    on_color_scheme_change: Callable[[ColorScheme], None] | None = None


class Browser:
    def __init__(
        self,
        entries: list[Entry],
        base_dir: Path | str,
        callbacks: BrowserCallbacks,
        palette: Palette,
    ) -> None:
        self.entries = list(entries)
        self.base_dir = str(base_dir)
        self.callbacks = callbacks
        self.palette = palette
        self.filtered = list(self.entries)
        self.cursor = 0
        self.scroll_offset = 0
        self.viewport_height = 0
        self.filter_query = ""
        self.filtering = False
        self.showing_help = False
        self.sort_key = "path"
        self.sort_descending = False
        self._keys = KeyRegistry(
            KeyBinding((CTRL_C, ESC, "q", "Q"), self.callbacks.on_quit),
            KeyBinding(("/",), self._begin_filter),
            KeyBinding(("s", "S"), self.cycle_sort_key),
            KeyBinding(("r", "R"), self.toggle_sort_direction),
            KeyBinding((ENTER,), self._open_selected),
            KeyBinding((UP, "k"), lambda: self._move_cursor(-1)),
            KeyBinding((DOWN, "j"), lambda: self._move_cursor(1)),
            KeyBinding((HOME, "g"), self._go_top),
            KeyBinding((END, "G"), self._go_bottom),
            KeyBinding((PAGE_UP, "b", "B"), lambda: self._move_cursor(-self.page_size)),
            KeyBinding((PAGE_DOWN, "f", "F", " "), lambda: self._move_cursor(self.page_size)),
        )

    def set_viewport_height(self, height: int) -> None:
        self.viewport_height = max(0, height)

    def update_palette(self, palette: Palette) -> None:
        self.palette = palette

    def invalidate(self) -> None:
        pass

    @property
    def selected(self) -> Entry | None:
        if not self.filtered:
            return None
        return self.filtered[self.cursor]

    # -- geometry ----------------------------------------------------------

    @property
    def list_height(self) -> int:
        if self.showing_help:
            return 0
        return max(0, self.viewport_height - HEADER_HEIGHT - FOOTER_HEIGHT)

    @property
    def visible_item_count(self) -> int:
        return self.list_height // ITEM_HEIGHT

    @property
    def page_size(self) -> int:
        return max(1, self.visible_item_count - 1)

    def ensure_cursor_visible(self) -> None:
        visible = self.visible_item_count
        if visible <= 0:
            return
        if self.cursor < self.scroll_offset:
            self.scroll_offset = self.cursor
        elif self.cursor >= self.scroll_offset + visible:
            self.scroll_offset = self.cursor - visible + 1
        self.scroll_offset = min(max(0, self.scroll_offset), max(0, len(self.filtered) - visible))

    # -- filter / sort -----------------------------------------------------

    def apply_filter(self) -> None:
        """Recompute ``filtered`` from ``entries`` and reset the cursor."""
        if self.filter_query:
            needle = self.filter_query.casefold()
            self.filtered = [entry for entry in self.entries if needle in entry.relative_path.casefold()]
        else:
            self.filtered = list(self.entries)
        self.cursor = 0
        self.scroll_offset = 0

    def apply_sort(self) -> None:
        """Re-sort the master list in place, then re-apply the filter."""
        self.entries.sort(key=_SORT_KEY_FUNCS[self.sort_key], reverse=self.sort_descending)
        self.apply_filter()

    def cycle_sort_key(self) -> None:
        self.sort_key = SORT_KEYS[(SORT_KEYS.index(self.sort_key) + 1) % len(SORT_KEYS)]
        self.apply_sort()

    def toggle_sort_direction(self) -> None:
        self.sort_descending = not self.sort_descending
        self.apply_sort()

    def sort_label(self) -> str:
        arrow = "▼" if self.sort_descending else "▲"
        return f" • {SORT_LABELS[self.sort_key]}{arrow}"

    # -- input -------------------------------------------------------------

    def handle_input(self, key: str) -> None:
        scheme = scheme_from_notification(key)
        if scheme is not None:
            if self.callbacks.on_color_scheme_change is not None:
                self.callbacks.on_color_scheme_change(scheme)
            return

        if self.filtering:
            self._handle_filter_input(key)
            return

        if key == "?":
            self.showing_help = not self.showing_help
            return

        if self.showing_help:
            self.showing_help = False
            return

        self._keys.dispatch(key)

    def _handle_filter_input(self, key: str) -> None:
        if key in {ESC, CTRL_C}:
            self.filtering = False
            self.filter_query = ""
            self.apply_filter()
        elif key == ENTER:
            self.filtering = False
        elif key == BACKSPACE:
            self.filter_query = self.filter_query[:-1]
            self.apply_filter()
        elif is_printable(key):
            self.filter_query += key
            self.apply_filter()

    def _begin_filter(self) -> None:
        self.filtering = True
        self.filter_query = ""
        self.apply_filter()

    def _open_selected(self) -> None:
        entry = self.selected
        if entry is not None:
            self.callbacks.on_open(entry)

    def _move_cursor(self, delta: int) -> None:
        last = max(0, len(self.filtered) - 1)
        self.cursor = max(0, min(last, self.cursor + delta))

    def _go_top(self) -> None:
        self.cursor = 0
        self.scroll_offset = 0

    def _go_bottom(self) -> None:
        self.cursor = max(0, len(self.filtered) - 1)

    # -- rendering ---------------------------------------------------------

    def render(self, width: int) -> list[str]:
        if self.showing_help:
            return self._render_help(width)

        palette = self.palette
        list_height = self.list_height
        empty = pad_ansi_line("", width, palette.background)
        rows = self._render_header(width)

        if not self.filtered:
            message = NO_MATCHES_MESSAGE if self.filter_query else NO_FILES_MESSAGE
            for index in range(list_height):
                if index == list_height // 2:
                    rows.append(pad_ansi_line(f"{palette.dim}  {message}", width, palette.background))
                else:
                    rows.append(empty)
        else:
            self.ensure_cursor_visible()
            start = self.scroll_offset
            end = min(start + self.visible_item_count, len(self.filtered))
            for index in range(start, end):
                rows.extend(self._render_item(self.filtered[index], index == self.cursor, width))
            while len(rows) < HEADER_HEIGHT + list_height:
                rows.append(empty)

        if self.filtering:
            prompt = f"/{self.filter_query}█"
            rows.append(pad_ansi_line(palette.search + prompt, width, palette.search))
        else:
            rows.append(pad_ansi_line(palette.dim + MINI_HELP, width, palette.background))
        return rows

    def _render_header(self, width: int) -> list[str]:
        palette = self.palette
        total = len(self.filtered)
        selected = self.cursor + 1 if total else 0
        filter_label = f" • /{self.filter_query}" if self.filter_query else ""
        left = f" {abbreviate_home(self.base_dir)}{filter_label}{self.sort_label()}"
        right = f" {selected}/{total} docs "
        left = truncate_end(left, max(0, width - visible_width(right)))
        padding = max(0, width - visible_width(left) - visible_width(right))
        return [
            pad_ansi_line(f"{palette.text}{left}{' ' * padding}{right}", width, palette.background),
            pad_ansi_line(palette.dim + "─" * max(0, width), width, palette.background),
        ]

    def _render_item(self, entry: Entry, is_selected: bool, width: int) -> list[str]:
        palette = self.palette
        prefix = ("│ " if is_selected else "  ") + "• "
        name = truncate_end(entry.relative_path, max(0, width - len(prefix)))
        created = (
            format_date(entry.created_at)
            if has_valid_creation_time(entry.created_at, entry.updated_at)
            else "unknown"
        )
        updated = f"{format_date(entry.updated_at)} ({relative_time(entry.updated_at)})"
        meta = f"    c {created}  •  u {updated}"
        if len(meta) >= width:
            meta = truncate_end(meta, width)
        name_style = palette.accent if is_selected else palette.text
        return [
            pad_ansi_line(name_style + prefix + name, width, palette.background),
            pad_ansi_line(palette.dim + meta, width, palette.background),
            pad_ansi_line("", width, palette.background),
        ]

    def _render_help(self, width: int) -> list[str]:
        style = self.palette.help
        empty = pad_ansi_line("", width, style)
        rows = [empty, empty]
        rows.extend(pad_ansi_line(style + line, width, style) for line in HELP_LINES)
        while len(rows) < self.viewport_height:
            rows.append(empty)
        return rows
