"""Terminal light/dark color-scheme detection.

Asks the terminal for its background color (OSC 11) with a short timeout and
classifies the reply by perceived luminance. When the terminal does not
answer, environment-variable heuristics decide. Also decodes the mode 2031
notifications terminals send when the system theme flips at runtime.
"""

from __future__ import annotations

import os
import re
import select
import sys
import termios
import time
import tty
from collections.abc import Mapping
from enum import Enum

from loguru import logger

from .input import COLOR_SCHEME_DARK_KEY, COLOR_SCHEME_LIGHT_KEY

DETECT_TIMEOUT_MS = 200
OSC11_QUERY = b"\x1b]11;?\x07"
OSC11_REPLY_RE = re.compile(r"\x1b\]11;rgb:([0-9a-fA-F]+)/([0-9a-fA-F]+)/([0-9a-fA-F]+)")

# Mode 2031 notifications (unsolicited, distinct from the OSC 11 reply).
COLOR_SCHEME_DARK_SEQUENCE = "\x1b[?997;1n"
COLOR_SCHEME_LIGHT_SEQUENCE = "\x1b[?997;2n"
ENABLE_COLOR_SCHEME_REPORTING = "\x1b[?2031h"
DISABLE_COLOR_SCHEME_REPORTING = "\x1b[?2031l"


class ColorScheme(str, Enum):
    """Light/dark classification of the terminal background."""

    LIGHT = "light"
    DARK = "dark"

    @property
    def is_dark(self) -> bool:
        return self is ColorScheme.DARK


def parse_osc_rgb(response: str) -> tuple[int, int, int] | None:
    """Extract 8-bit RGB from an ``ESC ] 11 ; rgb:RRRR/GGGG/BBBB`` reply.

    Four-digit channels keep their high byte; shorter ones are scaled.
    """
    match = OSC11_REPLY_RE.search(response)
    if match is None:
        return None
    return tuple(_channel_to_8bit(part[:4]) for part in match.groups())  # type: ignore[return-value]


def _channel_to_8bit(digits: str) -> int:
    value = int(digits, 16)
    if len(digits) == 4:
        return value >> 8
    return value * 255 // (16 ** len(digits) - 1)


def luminance(r: int, g: int, b: int) -> float:
    """Return perceived luminance in ``[0, 1]`` for 8-bit channels."""
    return (0.299 * r + 0.587 * g + 0.114 * b) / 255


def classify_rgb(r: int, g: int, b: int) -> ColorScheme:
    """Classify a background color; exactly 0.5 counts as dark."""
    return ColorScheme.LIGHT if luminance(r, g, b) > 0.5 else ColorScheme.DARK


def detect_from_env(environ: Mapping[str, str] | None = None) -> ColorScheme:
    """Guess the scheme from well-known environment variables.

    Checks ``COLORFGBG`` (last field is the background palette index),
    ``DARKMODE``, ``TERM_PROGRAM`` and ``ITERM_PROFILE`` in that order and
    defaults to dark.
    """
    env = os.environ if environ is None else environ

    color_fg_bg = env.get("COLORFGBG", "")
    parts = color_fg_bg.split(";")
    if len(parts) >= 2:
        try:
            bg = int(parts[-1])
        except ValueError:
            bg = None
        if bg is not None:
            return ColorScheme.DARK if bg < 7 else ColorScheme.LIGHT

    dark_mode = env.get("DARKMODE")
    if dark_mode == "1":
        return ColorScheme.DARK
    if dark_mode == "0":
        return ColorScheme.LIGHT

    if env.get("TERM_PROGRAM") == "Apple_Terminal":
        return ColorScheme.LIGHT

    profile = env.get("ITERM_PROFILE", "").lower()
    if "light" in profile:
        return ColorScheme.LIGHT
    if "dark" in profile:
        return ColorScheme.DARK

    return ColorScheme.DARK


def query_terminal(
    stdin_fd: int,
    stdout_fd: int,
    timeout_ms: int = DETECT_TIMEOUT_MS,
) -> ColorScheme | None:
    """Ask the terminal for its background color via OSC 11.

    Returns ``None`` when either stream is not a tty, the terminal does not
    answer within ``timeout_ms`` or the tty cannot be configured. The prior
    tty attributes are restored on every path.
    """
    if not (os.isatty(stdin_fd) and os.isatty(stdout_fd)):
        logger.debug("color scheme query skipped: not a tty")
        return None

    try:
        saved = termios.tcgetattr(stdin_fd)
    except termios.error as exc:
        logger.debug("color scheme query skipped: {}", exc)
        return None

    buffer = ""
    try:
        tty.setraw(stdin_fd, termios.TCSANOW)
        os.write(stdout_fd, OSC11_QUERY)
        logger.debug("sent OSC 11 query")
        deadline = time.monotonic() + timeout_ms / 1000.0
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                logger.debug("OSC 11 timeout after {}ms, buffer={!r}", timeout_ms, buffer)
                return None
            ready, _, _ = select.select([stdin_fd], [], [], remaining)
            if not ready:
                continue
            chunk = os.read(stdin_fd, 64)
            if not chunk:
                return None
            buffer += chunk.decode("latin-1")
            rgb = parse_osc_rgb(buffer)
            if rgb is not None:
                scheme = classify_rgb(*rgb)
                logger.debug("OSC 11 rgb={} luminance={:.3f} -> {}", rgb, luminance(*rgb), scheme.value)
                return scheme
    except (OSError, termios.error) as exc:
        logger.debug("color scheme query failed: {}", exc)
        return None
    finally:
        try:
            termios.tcsetattr(stdin_fd, termios.TCSANOW, saved)
        except termios.error:
            pass


def detect_color_scheme(
    stdin_fd: int | None = None,
    stdout_fd: int | None = None,
    timeout_ms: int = DETECT_TIMEOUT_MS,
) -> ColorScheme:
    """Detect the scheme, trying the terminal first and env heuristics second."""
    try:
        in_fd = sys.stdin.fileno() if stdin_fd is None else stdin_fd
        out_fd = sys.stdout.fileno() if stdout_fd is None else stdout_fd
    except (OSError, ValueError):
        result = None
    else:
        result = query_terminal(in_fd, out_fd, timeout_ms)
    if result is not None:
        return result
    fallback = detect_from_env()
    logger.debug("color scheme from environment: {}", fallback.value)
    return fallback


def detect_color_scheme_sync() -> ColorScheme:
    """Env-only detection for callers that cannot wait on the terminal."""
    return detect_from_env()


def scheme_from_notification(data: str) -> ColorScheme | None:
    """Decode a mode 2031 notification token or raw sequence, if ``data`` is one."""
    if data == COLOR_SCHEME_DARK_KEY or COLOR_SCHEME_DARK_SEQUENCE in data:
        return ColorScheme.DARK
    if data == COLOR_SCHEME_LIGHT_KEY or COLOR_SCHEME_LIGHT_SEQUENCE in data:
        return ColorScheme.LIGHT
    return None
