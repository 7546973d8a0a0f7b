"""Poll-based change detection for the document shown in the pager.

The session loop calls :meth:`FileWatcher.poll` on every idle tick. A stat
signature change arms a single pending deadline; further changes push the
deadline back, so a burst of writes yields one callback.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from pathlib import Path

from loguru import logger

DEBOUNCE_SECONDS = 0.1


Signature = tuple[str, int, int, int]


def path_stat_signature(path: Path) -> Signature:
    """Return a stat tuple describing ``path`` existence, inode, mtime and size."""
    try:
        st = path.stat()
    except FileNotFoundError:
        return ("missing", 0, 0, 0)
    except OSError:
        return ("error", 0, 0, 0)
    return ("ok", st.st_ino, st.st_mtime_ns, st.st_size)


class FileWatcher:
    """Watch one file for content changes.

    Only in-place changes to an existing file count. A disappearing path
    (delete), a new inode under the same name (an editor's
    rename-and-replace save) and the file reappearing all fire nothing.
    """

    def __init__(
        self,
        path: Path,
        on_change: Callable[[], None],
        *,
        debounce_seconds: float = DEBOUNCE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.path = Path(path)
        self.on_change = on_change
        self.debounce_seconds = debounce_seconds
        self._clock = clock
        self._signature: Signature | None = None
        self._pending_deadline: float | None = None
        self.running = False

    def start(self) -> None:
        if self.running:
            return
        self._signature = path_stat_signature(self.path)
        self._pending_deadline = None
        self.running = True

    def stop(self) -> None:
        self.running = False
        self._pending_deadline = None

    def resync(self) -> None:
        """Accept the file's current state as seen, dropping any pending event."""
        self._signature = path_stat_signature(self.path)
        self._pending_deadline = None

    @property
    def pending(self) -> bool:
        return self._pending_deadline is not None

    def poll(self, now: float | None = None) -> bool:
        """Check the file and fire the callback once its deadline passes.

        Returns ``True`` when the callback ran.
        """
        if not self.running:
            return False
        now = self._clock() if now is None else now

        signature = path_stat_signature(self.path)
        if signature != self._signature:
            previous = self._signature
            self._signature = signature
            in_place = previous is not None and previous[0] == signature[0] == "ok" and previous[1] == signature[1]
            if in_place:
                # cancel-and-reschedule
                self._pending_deadline = now + self.debounce_seconds

        if self._pending_deadline is None or now < self._pending_deadline:
            return False
        self._pending_deadline = None
        logger.debug("watched file changed: {}", self.path)
        self.on_change()
        return True
