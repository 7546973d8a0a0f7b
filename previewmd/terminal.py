"""Terminal control for the interactive session.

Owns the raw-mode lifecycle, alternate-screen switching, cursor visibility
and mode 2031 color-scheme reporting. Frames are painted in one write.
"""

from __future__ import annotations

import contextlib
import os
import shutil
import termios
import tty
from collections.abc import Sequence

from .ansi import RESET
from .color_scheme import DISABLE_COLOR_SCHEME_REPORTING, ENABLE_COLOR_SCHEME_REPORTING

ENTER_ALTERNATE_SCREEN = "\x1b[?1049h"
LEAVE_ALTERNATE_SCREEN = "\x1b[?1049l"
HIDE_CURSOR = "\x1b[?25l"
SHOW_CURSOR = "\x1b[?25h"
CURSOR_HOME = "\x1b[H"
CLEAR_TO_END = "\x1b[J"


class TerminalController:
    def __init__(self, stdin_fd: int, stdout_fd: int) -> None:
        self.stdin_fd = stdin_fd
        self.stdout_fd = stdout_fd
        self._saved_tty_state = termios.tcgetattr(stdin_fd)
        self.active = False

    def _write(self, text: str) -> None:
        os.write(self.stdout_fd, text.encode("utf-8", errors="replace"))

    def enable_tui_mode(self) -> None:
        tty.setraw(self.stdin_fd, termios.TCSAFLUSH)
        self._write(ENTER_ALTERNATE_SCREEN + HIDE_CURSOR + ENABLE_COLOR_SCHEME_REPORTING)
        self.active = True

    def disable_tui_mode(self) -> None:
        self._write(DISABLE_COLOR_SCHEME_REPORTING + SHOW_CURSOR + LEAVE_ALTERNATE_SCREEN)
        self.active = False
        termios.tcsetattr(self.stdin_fd, termios.TCSAFLUSH, self._saved_tty_state)

    def size(self) -> tuple[int, int]:
        """Return ``(columns, rows)``, defaulting to 80x24 when unknown."""
        term = shutil.get_terminal_size((80, 24))
        return max(1, term.columns), max(1, term.lines)

    def write_frame(self, rows: Sequence[str]) -> None:
        """Paint ``rows`` from the top-left corner and clear anything below."""
        out = [CURSOR_HOME]
        for index, row in enumerate(rows):
            if index:
                out.append("\r\n")
            out.append(row)
            if "\x1b" in row:
                out.append(RESET)
        out.append(CLEAR_TO_END)
        self._write("".join(out))

    @contextlib.contextmanager
    def raw_mode(self):
        try:
            self.enable_tui_mode()
            yield
        finally:
            self.disable_tui_mode()
