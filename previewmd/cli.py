"""Command-line front door for previewmd.

Parses options, picks a mode (browser, pager, or plain output) and wires
config, color-scheme detection and theme resolution into a session.
"""

from __future__ import annotations

import argparse
import os
import shutil
import sys
from pathlib import Path

from loguru import logger

from . import __version__
from .browser import scan_directory
from .color_scheme import ColorScheme, detect_color_scheme
from .completion import SHELLS, completion_script
from .config import load_config, save_default_config
from .logging_config import configure_logging
from .markdown import render_markdown_lines
from .session import STDIN_FILENAME, Session, SessionOptions, load_source
from .terminal import TerminalController
from .theme import resolve_theme

PROG = "pmd"
DEFAULT_WIDTH = 100
DEFAULT_DEPTH = 1


def _non_negative_int(value: str) -> int:
    """argparse type for integer values >= 0."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed < 0:
        raise argparse.ArgumentTypeError("value must be >= 0")
    return parsed


def _depth(value: str) -> int:
    """Depths below 1 mean "top level only"."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    return max(1, parsed)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PROG,
        description="Render markdown in the terminal, with a pager and a file browser.",
        epilog=(
            "With no arguments and a TTY, opens a directory browser at the current "
            "directory. With a file, renders it in the pager. With a directory, "
            "opens the browser there."
        ),
    )
    parser.add_argument("source", nargs="?", default=None, help="Markdown file or directory.")
    parser.add_argument(
        "-d",
        "--depth",
        type=_depth,
        default=DEFAULT_DEPTH,
        help="Directory browser recursion depth (default: 1, top-level only).",
    )
    parser.add_argument("-l", "--line-numbers", action="store_true", help="Show line numbers (pager only).")
    parser.add_argument(
        "-n",
        "--no-pager",
        action="store_true",
        help="Print rendered markdown without the pager (files only).",
    )
    scheme = parser.add_mutually_exclusive_group()
    scheme.add_argument("--light", action="store_true", help="Force light mode.")
    scheme.add_argument("--dark", action="store_true", help="Force dark mode.")
    parser.add_argument(
        "-w",
        "--width",
        type=_non_negative_int,
        default=DEFAULT_WIDTH,
        help="Word-wrap at width (default: 100, 0 to disable).",
    )
    parser.add_argument("--theme", default=None, help="Theme name (overrides the config file).")
    parser.add_argument("--completion", choices=SHELLS, help="Print a shell completion script and exit.")
    parser.add_argument("--init-config", action="store_true", help="Create the default config file and exit.")
    parser.add_argument("--debug-log", metavar="PATH", default=None, help="Write a debug log to PATH.")
    parser.add_argument("-v", "--version", action="version", version=f"{PROG} version {__version__}")
    return parser


def _stdin_is_tty() -> bool:
    try:
        return os.isatty(sys.stdin.fileno())
    except (OSError, ValueError):
        return False


def _stdout_is_tty() -> bool:
    try:
        return os.isatty(sys.stdout.fileno())
    except (OSError, ValueError):
        return False


def _resolve_scheme(args: argparse.Namespace) -> ColorScheme:
    if args.light:
        return ColorScheme.LIGHT
    if args.dark:
        return ColorScheme.DARK
    return detect_color_scheme()


def print_without_pager(source: str, theme_name: str | None, scheme: ColorScheme, wrap_width: int) -> None:
    """Render once at ``min(wrap_width, terminal width)`` and write to stdout."""
    theme = resolve_theme(theme_name, scheme.is_dark)
    columns = shutil.get_terminal_size((80, 24)).columns
    width = min(wrap_width, columns) if wrap_width > 0 else columns
    for line in render_markdown_lines(source, theme, width):
        sys.stdout.write(line + "\n")
    sys.stdout.flush()


def _open_keyboard() -> int | None:
    """Return an fd to read keys from, using the controlling tty when stdin is piped."""
    if _stdin_is_tty():
        return sys.stdin.fileno()
    try:
        return os.open("/dev/tty", os.O_RDONLY)
    except OSError as exc:
        logger.debug("no controlling terminal: {}", exc)
        return None


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and run previewmd.

    Startup problems (missing path, nothing to show) exit non-zero with an
    ``Error:`` message.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.debug_log)

    if args.completion is not None:
        script = completion_script(args.completion)
        sys.stdout.write(script or "")
        return

    if args.init_config:
        try:
            path = save_default_config()
        except OSError as exc:
            raise SystemExit(f"Error: cannot write config file: {exc}") from exc
        print(f"Config file created at: {path}")
        return

    piped_source: str | None = None
    target: Path | None = None
    if args.source is not None:
        target = Path(args.source).expanduser()
        if not target.exists():
            raise SystemExit(f"Error: File not found: {args.source}")
    elif _stdin_is_tty():
        target = Path.cwd()
    else:
        piped_source = sys.stdin.read()

    is_directory = target is not None and target.is_dir()
    if is_directory and args.no_pager:
        raise SystemExit("Error: --no-pager needs a file, not a directory")

    source = piped_source
    if target is not None and not is_directory:
        try:
            source = load_source(target)
        except OSError as exc:
            raise SystemExit(f"Error: cannot read {target}: {exc}") from exc

    config = load_config()
    scheme = _resolve_scheme(args)
    options = SessionOptions(
        show_line_numbers=args.line_numbers or config.show_line_numbers,
        wrap_width=args.width,
        theme_name=args.theme,
    )
    logger.debug("starting: target={} scheme={} options={}", target, scheme.value, options)

    input_fd = None if args.no_pager or not _stdout_is_tty() else _open_keyboard()
    if input_fd is None:
        if source is None:
            raise SystemExit("Error: no terminal available for the browser")
        print_without_pager(source, options.theme_name or config.theme_name(scheme.is_dark), scheme, args.width)
        return

    session = Session(
        config,
        scheme,
        options,
        terminal=TerminalController(input_fd, sys.stdout.fileno()),
        input_fd=input_fd,
    )
    if target is not None and is_directory:
        base_dir = target.resolve()
        session.open_browser(base_dir, scan_directory(base_dir, args.depth))
    elif target is not None:
        session.open_document(source or "", str(args.source), path=target)
    else:
        session.open_document(source or "", STDIN_FILENAME)

    try:
        session.run()
    finally:
        if input_fd != sys.stdin.fileno():
            os.close(input_fd)


if __name__ == "__main__":
    main()
