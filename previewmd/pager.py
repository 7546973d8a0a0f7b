"""Scrolling document view with search, help overlay and change banner.

The pager owns a rendered line cache for one content width, a scroll offset
and a :class:`~previewmd.search.SearchEngine`. It never touches the terminal:
``render(width)`` returns rows and ``handle_input(key)`` mutates state or
invokes a callback.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from .ansi import RESET, pad_ansi_line
from .color_scheme import ColorScheme, scheme_from_notification
from .keys import (
    BACKSPACE,
    CTRL_C,
    CTRL_Z,
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
from .search import SearchEngine, centered_offset_for
from .theme import Palette
from .viewport import clamp_offset, half_page_size, max_scroll, page_size, scroll_percent

HELP_LINES = (
    "k/↑ up                 g/home  go to top",
    "j/↓ down               G/end   go to bottom",
    "b/pgup  page up        /       search",
    "f/pgdn  page down      n/N     next/prev match",
    "u  ½ page up           r       reload file",
    "d  ½ page down         e       edit in $EDITOR",
    "                       ?       toggle help",
    "                       q/esc   quit",
)

# four digits plus one separating space
LINE_NUMBER_WIDTH = 5
FILE_CHANGED_MESSAGE = " File changed. Press r to reload."
SEARCH_PROMPT = "/"
SEARCH_CURSOR = "█"


class Content(Protocol):
    def render(self, width: int) -> list[str]: ...

    def invalidate(self) -> None: ...


@dataclass(frozen=True)
class PagerCallbacks:
    """Hooks the pager fires; optional ones are simply skipped when unset."""

    on_exit: Callable[[], None]
    on_edit: Callable[[int], None] | None = None
    on_reload: Callable[[], None] | None = None
    on_suspend: Callable[[], None] | None = None
    on_color_scheme_change: Callable[[ColorScheme], None] | None = None


@dataclass(frozen=True)
class ScrollInfo:
    current: int
    total: int
    percent: int


@dataclass(frozen=True)
class SearchInfo:
    query: str
    current: int
    total: int


class Pager:
    def __init__(
        self,
        content: Content,
        callbacks: PagerCallbacks,
        palette: Palette,
        *,
        show_line_numbers: bool = False,
        wrap_width: int = 0,
    ) -> None:
        self.content = content
        self.callbacks = callbacks
        self.palette = palette
        self.show_line_numbers = show_line_numbers
        self.wrap_width = wrap_width
        self.scroll_offset = 0
        self.viewport_height = 0
        self.file_changed = False
        self.showing_help = False
        self.searching = False
        self.search_query = ""
        self.search = SearchEngine()
        self._cached_lines: list[str] = []
        self._cached_width = 0
        self._keys = KeyRegistry(
            KeyBinding(("/",), self._begin_search),
            KeyBinding(("n",), self._next_match),
            KeyBinding(("N",), self._prev_match),
            KeyBinding(("e",), self._edit),
            KeyBinding(("r", "R"), self._reload),
            KeyBinding((CTRL_C, ESC, "q", "Q"), self.callbacks.on_exit),
            KeyBinding((UP, "k"), lambda: self._scroll_by(-1)),
            KeyBinding((DOWN, "j"), lambda: self._scroll_by(1)),
            KeyBinding((PAGE_UP, "b", "B"), lambda: self._scroll_by(-page_size(self.content_height))),
            KeyBinding((PAGE_DOWN, " ", "f", "F"), lambda: self._scroll_by(page_size(self.content_height))),
            KeyBinding((HOME, "g"), self._scroll_to_top),
            KeyBinding((END, "G"), self._scroll_to_bottom),
            KeyBinding(("u", "U"), lambda: self._scroll_by(-half_page_size(self.content_height))),
            KeyBinding(("d", "D"), lambda: self._scroll_by(half_page_size(self.content_height))),
        )

    # -- state setters -----------------------------------------------------

    def set_content(self, content: Content) -> None:
        """Swap in new content; search results refer to the old lines and are dropped."""
        self.content = content
        self.search.reset()
        self.invalidate()

    def set_viewport_height(self, height: int) -> None:
        self.viewport_height = max(0, height)

    def set_file_changed(self, changed: bool) -> None:
        self.file_changed = changed

    def update_palette(self, palette: Palette) -> None:
        self.palette = palette

    def invalidate(self) -> None:
        self.content.invalidate()
        self._cached_lines = []
        self._cached_width = 0

    # -- geometry ----------------------------------------------------------

    @property
    def help_height(self) -> int:
        return len(HELP_LINES) + 1 if self.showing_help else 0

    @property
    def content_height(self) -> int:
        chrome = self.help_height + (1 if self.searching else 0) + (1 if self.file_changed else 0)
        return max(0, self.viewport_height - chrome)

    def content_width(self, width: int) -> int:
        available = width - LINE_NUMBER_WIDTH if self.show_line_numbers else width
        if 0 < self.wrap_width < available:
            return self.wrap_width
        return max(1, available)

    @property
    def total_lines(self) -> int:
        return len(self._cached_lines)

    @property
    def lines(self) -> list[str]:
        return self._cached_lines

    # -- rendering ---------------------------------------------------------

    def _ensure_lines(self, width: int) -> None:
        content_width = self.content_width(width)
        if self._cached_width != content_width or not self._cached_lines:
            self._cached_lines = self.content.render(content_width)
            self._cached_width = content_width

    def render(self, width: int) -> list[str]:
        """Return the pager's rows, each padded to ``width`` columns."""
        self._ensure_lines(width)
        palette = self.palette
        height = self.content_height
        total = len(self._cached_lines)
        self.scroll_offset = clamp_offset(self.scroll_offset, total, height)

        start = self.scroll_offset
        rows: list[str] = []
        for index, line in enumerate(self._cached_lines[start : min(start + height, total)]):
            if self.show_line_numbers:
                line = f"{palette.line_number}{start + index + 1:>4}{RESET}{palette.background} {RESET}{line}"
            rows.append(pad_ansi_line(line, width, palette.background))

        if self.show_line_numbers:
            empty = pad_ansi_line(f"{palette.line_number}{' ' * LINE_NUMBER_WIDTH}", width, palette.background)
        else:
            empty = pad_ansi_line("", width, palette.background)
        while len(rows) < height:
            rows.append(empty)

        if self.file_changed:
            rows.append(pad_ansi_line(palette.help + FILE_CHANGED_MESSAGE, width, palette.help))
        if self.searching:
            prompt = f"{SEARCH_PROMPT}{self.search_query}{SEARCH_CURSOR}"
            rows.append(pad_ansi_line(palette.search + prompt, width, palette.search))
        if self.showing_help:
            rows.extend(self._render_help(width))
        return rows

    def _render_help(self, width: int) -> list[str]:
        style = self.palette.help
        rows = [pad_ansi_line("", width, style)]
        rows.extend(pad_ansi_line(f"{style}  {line}", width, style) for line in HELP_LINES)
        return rows

    # -- input -------------------------------------------------------------

    def handle_input(self, key: str) -> None:
        scheme = scheme_from_notification(key)
        if scheme is not None:
            if self.callbacks.on_color_scheme_change is not None:
                self.callbacks.on_color_scheme_change(scheme)
            return

        if self.searching:
            self._handle_search_input(key)
            return

        if key == CTRL_Z:
            if self.callbacks.on_suspend is not None:
                self.callbacks.on_suspend()
            return

        if key == "?":
            self.showing_help = not self.showing_help
            return

        if self.showing_help:
            self.showing_help = False
            return

        self._keys.dispatch(key)

    def _handle_search_input(self, key: str) -> None:
        if key in {ESC, CTRL_C}:
            self.searching = False
            self.search_query = ""
            self.search.reset()
            return
        if key == ENTER:
            self.searching = False
            if self.search_query:
                self.search.search(self.search_query, self._cached_lines)
                self._next_match()
            return
        if key == BACKSPACE:
            self.search_query = self.search_query[:-1]
            return
        if is_printable(key):
            self.search_query += key

    def _begin_search(self) -> None:
        self.searching = True
        self.search_query = ""

    def _next_match(self) -> None:
        line = self.search.next()
        if line is not None:
            self._scroll_to_line(line)

    def _prev_match(self) -> None:
        line = self.search.prev()
        if line is not None:
            self._scroll_to_line(line)

    def _scroll_to_line(self, line: int) -> None:
        self.scroll_offset = centered_offset_for(line, self.content_height, self.total_lines)

    def _scroll_by(self, delta: int) -> None:
        self.scroll_offset = clamp_offset(self.scroll_offset + delta, self.total_lines, self.content_height)

    def _scroll_to_top(self) -> None:
        self.scroll_offset = 0

    def _scroll_to_bottom(self) -> None:
        self.scroll_offset = max_scroll(self.total_lines, self.content_height)

    def _edit(self) -> None:
        if self.callbacks.on_edit is not None:
            self.callbacks.on_edit(self.scroll_offset + 1)

    def _reload(self) -> None:
        if self.callbacks.on_reload is not None:
            self.callbacks.on_reload()

    # -- queries -----------------------------------------------------------

    def scroll_info(self) -> ScrollInfo:
        total = self.total_lines
        return ScrollInfo(
            current=self.scroll_offset + 1,
            total=total,
            percent=scroll_percent(self.scroll_offset, total, self.content_height),
        )

    def search_info(self) -> SearchInfo | None:
        """Match counter for the status bar; ``None`` when nothing matched."""
        if not self.search.matches:
            return None
        current = 0 if self.search.current_index is None else self.search.current_index + 1
        return SearchInfo(query=self.search.query, current=current, total=self.search.match_count)

    def is_showing_help(self) -> bool:
        return self.showing_help

    def is_searching(self) -> bool:
        return self.searching
