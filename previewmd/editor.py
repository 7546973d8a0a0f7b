"""External editor launch for the pager's ``e`` key.

Picks ``$VISUAL``, then ``$EDITOR``, then the first common editor on
``PATH``, and passes the current line in whatever form that editor takes.
Failures are reported as ``False`` rather than raised.
"""

from __future__ import annotations

import os
import shlex
import shutil
import subprocess
from collections.abc import Callable, Mapping
from pathlib import Path

from loguru import logger

FALLBACK_EDITORS = ("vim", "nvim", "nano", "vi")

_PLUS_LINE_EDITORS = frozenset({"vim", "nvim", "vi", "nano", "emacs", "emacsclient"})
_VSCODE_EDITORS = frozenset({"code", "code-insiders"})
_COLON_LINE_EDITORS = frozenset({"subl", "sublime", "atom", "hx", "helix"})


def find_editor(which: Callable[[str], str | None] = shutil.which) -> str | None:
    for name in FALLBACK_EDITORS:
        if which(name):
            return name
    return None


def resolve_editor_command(environ: Mapping[str, str] | None = None) -> list[str] | None:
    """Return the editor command (program plus its own flags), if any."""
    env = os.environ if environ is None else environ
    for var in ("VISUAL", "EDITOR"):
        value = env.get(var, "").strip()
        if value:
            cmd = shlex.split(value)
            if cmd:
                return cmd
    fallback = find_editor()
    return [fallback] if fallback else None


def build_editor_args(editor: str, path: str, line: int) -> list[str]:
    """Arguments that open ``path`` at ``line`` for the named editor."""
    name = os.path.basename(editor)
    if name in _PLUS_LINE_EDITORS:
        return [f"+{line}", path]
    if name in _VSCODE_EDITORS:
        return ["-g", f"{path}:{line}", "--wait"]
    if name in _COLON_LINE_EDITORS:
        return [f"{path}:{line}"]
    return [path]


def open_in_editor(path: Path, line: int, environ: Mapping[str, str] | None = None) -> bool:
    """Run the editor on ``path`` and block until it exits.

    Returns ``True`` only when an editor was found and exited with status 0.
    """
    cmd = resolve_editor_command(environ)
    if cmd is None:
        logger.debug("no editor available")
        return False
    argv = [*cmd, *build_editor_args(cmd[0], str(path), line)]
    logger.debug("launching editor: {}", argv)
    try:
        result = subprocess.run(argv, check=False)
    except OSError as exc:
        logger.debug("failed to launch editor: {}", exc)
        return False
    return result.returncode == 0
