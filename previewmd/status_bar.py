"""One-row status line shown under the pager."""

from __future__ import annotations

from .ansi import pad_ansi_line, truncate_start, visible_width
from .pager import Pager
from .theme import Palette

LEFT_MARGIN = 1


class StatusBar:
    """Filename on the left; match counter, percent and help hint on the right.

    When the row is short the help hint goes first, then the filename is
    shortened from its start so the basename stays visible.
    """

    def __init__(self, filename: str, pager: Pager, palette: Palette) -> None:
        self.filename = filename
        self.pager = pager
        self.palette = palette

    def update_palette(self, palette: Palette) -> None:
        self.palette = palette

    def invalidate(self) -> None:
        pass

    def render(self, width: int) -> list[str]:
        scroll = self.pager.scroll_info()
        search = self.pager.search_info()

        percent_text = f" {scroll.percent}% "
        search_text = f" [{search.current}/{search.total}] " if search is not None else ""
        help_text = " ? Close " if self.pager.is_showing_help() else " ? Help "

        fixed = LEFT_MARGIN + visible_width(percent_text) + visible_width(search_text)
        available = width - fixed - visible_width(help_text)
        show_help = available >= 1
        if not show_help:
            available = width - fixed

        left = f" {truncate_start(self.filename, available)}"
        right = search_text + percent_text + (help_text if show_help else "")
        padding = max(0, width - visible_width(left) - visible_width(right))
        line = left + " " * padding + right
        return [pad_ansi_line(self.palette.status + line, width, self.palette.status)]
