"""Theme loading and palette derivation.

A theme is a TextMate-style JSON document (``colors`` plus ``tokenColors``).
Resolution turns it into an immutable :class:`ResolvedTheme`: hex colors for
markdown rendering, ANSI SGR strings for the pager/browser chrome, and a
Pygments style name for fenced code. A new object is built on every scheme
change; nothing here is mutated after construction.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from loguru import logger

from .config import DEFAULT_DARK_THEME, DEFAULT_LIGHT_THEME, themes_dir

DEFAULT_DARK_SYNTAX_STYLE = "github-dark"
DEFAULT_LIGHT_SYNTAX_STYLE = "friendly"

_HEX_RE = re.compile(r"^#?([a-fA-F\d]{2})([a-fA-F\d]{2})([a-fA-F\d]{2})$")
_VALID_STYLES: set[str] = set()
_INVALID_STYLES: set[str] = set()

TextMateTheme = dict[str, Any]

JELLYBEANS_DARK: TextMateTheme = {
    "name": "jellybeans-dark",
    "type": "dark",
    "syntaxTheme": DEFAULT_DARK_SYNTAX_STYLE,
    "colors": {"editor.background": "#151515", "editor.foreground": "#e8e8d3"},
    "tokenColors": [
        {"scope": "comment", "settings": {"foreground": "#888888"}},
        {"scope": ["string", "markup.inline.raw"], "settings": {"foreground": "#99ad6a"}},
        {"scope": ["keyword", "keyword.control"], "settings": {"foreground": "#c6b6ee"}},
        {"scope": ["markup.heading", "entity.name.tag"], "settings": {"foreground": "#8fbfdc"}},
        {"scope": "markup.underline.link", "settings": {"foreground": "#8197bf"}},
        {"scope": "constant.numeric", "settings": {"foreground": "#cf6a4c"}},
    ],
}

JELLYBEANS_LIGHT: TextMateTheme = {
    "name": "jellybeans-light",
    "type": "light",
    "syntaxTheme": DEFAULT_LIGHT_SYNTAX_STYLE,
    "colors": {"editor.background": "#f7f3eb", "editor.foreground": "#2d2c2a"},
    "tokenColors": [
        {"scope": "comment", "settings": {"foreground": "#909090"}},
        {"scope": ["string", "markup.inline.raw"], "settings": {"foreground": "#4a6335"}},
        {"scope": ["keyword", "keyword.control"], "settings": {"foreground": "#655683"}},
        {"scope": ["markup.heading", "entity.name.tag"], "settings": {"foreground": "#3c5971"}},
        {"scope": "markup.underline.link", "settings": {"foreground": "#44598a"}},
        {"scope": "constant.numeric", "settings": {"foreground": "#a0452c"}},
    ],
}

BUNDLED_THEMES: dict[str, TextMateTheme] = {
    DEFAULT_DARK_THEME: JELLYBEANS_DARK,
    DEFAULT_LIGHT_THEME: JELLYBEANS_LIGHT,
}


@dataclass(frozen=True)
class MarkdownColors:
    """Hex colors derived from a theme, consumed by every renderer."""

    background: str
    foreground: str
    heading: str
    link: str
    link_url: str
    code: str
    code_block_background: str
    code_block_border: str
    quote: str
    quote_border: str
    hr: str
    list_bullet: str
    line_number: str
    status_bar_bg: str
    status_bar_fg: str
    help_bg: str
    help_fg: str


@dataclass(frozen=True)
class Palette:
    """ANSI SGR prefixes for UI chrome, built once per resolved theme."""

    text: str
    background: str
    accent: str
    dim: str
    line_number: str
    help: str
    search: str
    status: str
    reset: str = "\033[0m"


@dataclass(frozen=True)
class ResolvedTheme:
    """Complete theme: source document, derived colors, palette and syntax style."""

    name: str
    is_dark: bool
    textmate: TextMateTheme
    colors: MarkdownColors
    palette: Palette
    syntax_theme: str


def hex_to_rgb(value: str) -> tuple[int, int, int] | None:
    match = _HEX_RE.match(value.strip())
    if match is None:
        return None
    r, g, b = (int(part, 16) for part in match.groups())
    return r, g, b


def rgb_to_hex(r: int, g: int, b: int) -> str:
    return f"#{r:02x}{g:02x}{b:02x}"


def lighten(value: str, amount: float) -> str:
    """Move ``value`` toward white by ``amount`` (0..1)."""
    rgb = hex_to_rgb(value)
    if rgb is None:
        return value
    return rgb_to_hex(*(min(255, round(c + (255 - c) * amount)) for c in rgb))


def darken(value: str, amount: float) -> str:
    """Move ``value`` toward black by ``amount`` (0..1)."""
    rgb = hex_to_rgb(value)
    if rgb is None:
        return value
    return rgb_to_hex(*(max(0, round(c * (1 - amount))) for c in rgb))


def fg_sgr(value: str) -> str:
    """Return a 24-bit foreground escape for a hex color (empty if invalid)."""
    rgb = hex_to_rgb(value)
    if rgb is None:
        return ""
    return "\033[38;2;{};{};{}m".format(*rgb)


def bg_sgr(value: str) -> str:
    """Return a 24-bit background escape for a hex color (empty if invalid)."""
    rgb = hex_to_rgb(value)
    if rgb is None:
        return ""
    return "\033[48;2;{};{};{}m".format(*rgb)


def _color(value: object, fallback: str) -> str:
    """Normalize a theme color to ``#rrggbb``, dropping an alpha suffix."""
    if isinstance(value, str):
        candidate = value.strip()
        if len(candidate) == 9 and candidate.startswith("#"):
            candidate = candidate[:7]
        rgb = hex_to_rgb(candidate)
        if rgb is not None:
            return rgb_to_hex(*rgb)
    return fallback


def find_color_by_scope(theme: TextMateTheme, *scopes: str) -> str | None:
    """Return the first foreground whose scope equals or nests under ``scopes``.

    Scopes are tried in priority order; a token scope ``markup.heading.1``
    matches the query ``markup.heading``.
    """
    token_colors = theme.get("tokenColors") or []
    for scope in scopes:
        for token in token_colors:
            if not isinstance(token, dict):
                continue
            raw_scope = token.get("scope")
            if isinstance(raw_scope, str):
                token_scopes = [part.strip() for part in raw_scope.split(",")]
            elif isinstance(raw_scope, list):
                token_scopes = [part for part in raw_scope if isinstance(part, str)]
            else:
                token_scopes = []
            for candidate in token_scopes:
                if candidate == scope or candidate.startswith(f"{scope}."):
                    settings = token.get("settings") or {}
                    foreground = settings.get("foreground") if isinstance(settings, dict) else None
                    if isinstance(foreground, str) and foreground:
                        return foreground
    return None


def derive_markdown_colors(theme: TextMateTheme, is_dark: bool | None = None) -> MarkdownColors:
    """Derive the renderer color set from a TextMate theme.

    The theme's own ``type`` wins; ``is_dark`` only fills in when it is absent.
    """
    theme_type = theme.get("type")
    if theme_type in {"dark", "light"}:
        is_dark = theme_type == "dark"
    elif is_dark is None:
        is_dark = False
    editor = theme.get("colors") or {}

    if not isinstance(editor, dict):
        editor = {}

    background = _color(editor.get("editor.background"), "#151515" if is_dark else "#f7f3eb")
    foreground = _color(editor.get("editor.foreground"), "#e8e8d3" if is_dark else "#2d2c2a")
    heading = _color(
        find_color_by_scope(theme, "markup.heading", "entity.name.tag"),
        "#8fbfdc" if is_dark else "#3c5971",
    )
    link = _color(find_color_by_scope(theme, "markup.underline.link", "markup.heading", "entity.name.tag"), heading)
    comment = _color(find_color_by_scope(theme, "comment"), "#888888" if is_dark else "#909090")
    code = _color(find_color_by_scope(theme, "markup.inline.raw", "string"), "#99ad6a" if is_dark else "#4a6335")
    quote = _color(find_color_by_scope(theme, "string", "markup.quote"), "#99ad6a" if is_dark else "#4a6335")
    keyword = _color(find_color_by_scope(theme, "keyword", "keyword.control"), "#c6b6ee" if is_dark else "#655683")

    if is_dark:
        status_bar_bg = lighten(background, 0.1)
        help_bg = lighten(background, 0.05)
        code_block_background = lighten(background, 0.06)
    else:
        status_bar_bg = darken(background, 0.05)
        help_bg = darken(background, 0.02)
        code_block_background = darken(background, 0.04)

    return MarkdownColors(
        background=background,
        foreground=foreground,
        heading=heading,
        link=link,
        link_url=comment,
        code=code,
        code_block_background=code_block_background,
        code_block_border=comment,
        quote=quote,
        quote_border=comment,
        hr=comment,
        list_bullet=keyword,
        line_number=comment,
        status_bar_bg=status_bar_bg,
        status_bar_fg=foreground,
        help_bg=help_bg,
        help_fg=comment,
    )


def build_palette(colors: MarkdownColors) -> Palette:
    """Precompute SGR prefixes for the pager, browser and status bar."""
    bg = bg_sgr(colors.background)
    return Palette(
        text=bg + fg_sgr(colors.foreground),
        background=bg,
        accent=bg + fg_sgr(colors.heading),
        dim=bg + fg_sgr(colors.line_number),
        line_number=bg + fg_sgr(colors.line_number),
        help=bg_sgr(colors.help_bg) + fg_sgr(colors.help_fg),
        search=bg_sgr(colors.status_bar_bg) + fg_sgr(colors.status_bar_fg),
        status=bg_sgr(colors.status_bar_bg) + fg_sgr(colors.status_bar_fg),
    )


def normalize_syntax_style(style: str | None, is_dark: bool) -> str:
    """Return ``style`` if Pygments knows it, else the scheme's default style."""
    fallback = DEFAULT_DARK_SYNTAX_STYLE if is_dark else DEFAULT_LIGHT_SYNTAX_STYLE
    if not style:
        return fallback
    if style in _VALID_STYLES:
        return style
    if style in _INVALID_STYLES:
        return fallback

    from pygments.styles import get_style_by_name
    from pygments.util import ClassNotFound

    try:
        get_style_by_name(style)
    except ClassNotFound:
        _INVALID_STYLES.add(style)
        return fallback
    _VALID_STYLES.add(style)
    return style


def load_theme_from_file(name: str, directory: Path | None = None) -> TextMateTheme | None:
    """Load ``<themes dir>/<name>.json``; ``None`` when missing or malformed."""
    theme_path = (directory if directory is not None else themes_dir()) / f"{name}.json"
    if not theme_path.is_file():
        return None
    try:
        data = json.loads(theme_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.debug("ignoring unreadable theme {}: {}", theme_path, exc)
        return None
    return data if isinstance(data, dict) else None


def load_theme(name: str, directory: Path | None = None) -> TextMateTheme | None:
    """Look a theme up in the user's themes directory, then the bundled set."""
    return load_theme_from_file(name, directory) or BUNDLED_THEMES.get(name)


def default_theme(is_dark: bool) -> tuple[str, TextMateTheme]:
    name = DEFAULT_DARK_THEME if is_dark else DEFAULT_LIGHT_THEME
    return name, BUNDLED_THEMES[name]


def resolve_theme(
    theme_name: str | None,
    is_dark: bool,
    *,
    directory: Path | None = None,
) -> ResolvedTheme:
    """Resolve ``theme_name`` for a scheme; unknown names fall back to the default."""
    loaded = load_theme(theme_name, directory) if theme_name else None
    if loaded is not None and theme_name:
        name, textmate = theme_name, loaded
    else:
        if theme_name:
            logger.debug("theme {!r} not found, using default", theme_name)
        name, textmate = default_theme(is_dark)

    colors = derive_markdown_colors(textmate, is_dark)
    raw_style = textmate.get("syntaxTheme")
    return ResolvedTheme(
        name=name,
        is_dark=is_dark,
        textmate=textmate,
        colors=colors,
        palette=build_palette(colors),
        syntax_theme=normalize_syntax_style(raw_style if isinstance(raw_style, str) else None, is_dark),
    )
