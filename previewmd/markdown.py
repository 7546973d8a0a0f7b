"""Markdown-to-lines rendering backed by Rich.

``MarkdownContent`` is the pager's content object: it renders a markdown
source to ANSI-styled lines for one width and memoizes the result for that
width. Colors come from a :class:`~previewmd.theme.ResolvedTheme`; a theme
change means building a new ``MarkdownContent``, never mutating this one.
"""

from __future__ import annotations

import io

from rich.console import Console
from rich.markdown import Markdown
from rich.padding import Padding
from rich.theme import Theme

from .theme import MarkdownColors, ResolvedTheme

PADDING_X = 1
PADDING_Y = 1


def markdown_styles(colors: MarkdownColors) -> dict[str, str]:
    """Map derived theme colors onto Rich's ``markdown.*`` style names."""
    fg = colors.foreground
    return {
        "markdown.text": fg,
        "markdown.paragraph": fg,
        "markdown.item": fg,
        "markdown.item.bullet": f"bold {colors.list_bullet}",
        "markdown.item.number": f"bold {colors.list_bullet}",
        "markdown.strong": f"bold {fg}",
        "markdown.em": f"italic {fg}",
        "markdown.s": f"strike {fg}",
        "markdown.code": f"bold {colors.code} on {colors.code_block_background}",
        "markdown.code_block": f"{fg} on {colors.code_block_background}",
        "markdown.h1": f"bold {colors.heading}",
        "markdown.h1.border": colors.heading,
        "markdown.h2": f"bold underline {colors.heading}",
        "markdown.h3": f"bold {colors.heading}",
        "markdown.h4": f"italic {colors.heading}",
        "markdown.h5": f"italic {fg}",
        "markdown.h6": f"dim italic {fg}",
        "markdown.link": f"underline {colors.link}",
        "markdown.link_url": f"underline {colors.link_url}",
        "markdown.block_quote": f"italic {colors.quote}",
        "markdown.hr": colors.hr,
        "markdown.table.border": colors.hr,
        "markdown.table.header": f"bold {colors.heading}",
    }


class MarkdownContent:
    """Renderable markdown document with a per-width line cache."""

    def __init__(
        self,
        source: str,
        theme: ResolvedTheme,
        *,
        padding_x: int = PADDING_X,
        padding_y: int = PADDING_Y,
    ) -> None:
        self.source = source
        self.theme = theme
        self.padding_x = padding_x
        self.padding_y = padding_y
        self._cache: dict[int, list[str]] = {}

    def invalidate(self) -> None:
        self._cache.clear()

    def render(self, width: int) -> list[str]:
        """Return styled lines for ``width`` columns (cached per width)."""
        width = max(1, width)
        cached = self._cache.get(width)
        if cached is not None:
            return cached
        lines = self._render_uncached(width)
        self._cache = {width: lines}
        return lines

    def _render_uncached(self, width: int) -> list[str]:
        colors = self.theme.colors
        console = Console(
            file=io.StringIO(),
            width=width,
            force_terminal=True,
            color_system="truecolor",
            legacy_windows=False,
            theme=Theme(markdown_styles(colors)),
        )
        body = Markdown(self.source, code_theme=self.theme.syntax_theme, hyperlinks=False)
        padded = Padding(
            body,
            (self.padding_y, self.padding_x),
            style=f"{colors.foreground} on {colors.background}",
            expand=True,
        )
        with console.capture() as capture:
            console.print(padded)
        text = capture.get()
        lines = text.split("\n")
        if lines and lines[-1] == "":
            lines.pop()
        return lines or [""]


def render_markdown_lines(source: str, theme: ResolvedTheme, width: int) -> list[str]:
    """One-shot render used by the no-pager mode."""
    return MarkdownContent(source, theme, padding_y=0).render(width)
