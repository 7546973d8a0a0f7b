"""Interactive session: views, theme state and the main input loop.

The session owns the single active :class:`~previewmd.theme.ResolvedTheme`
and replaces it wholesale when the terminal reports a new color scheme. Only
the view on screen is rebuilt at that moment; a view that was hidden picks
up the new theme when it is shown again.
"""

from __future__ import annotations

import os
import signal
from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from .browser import Browser, BrowserCallbacks, Entry
from .color_scheme import ColorScheme
from .config import Config
from .editor import open_in_editor
from .input import read_key
from .markdown import MarkdownContent
from .mdx import preprocess_mdx
from .pager import Pager, PagerCallbacks
from .status_bar import StatusBar
from .switcher import BrowserView, PagerView, Switcher
from .terminal import TerminalController
from .theme import ResolvedTheme, resolve_theme
from .watch import FileWatcher

IDLE_TICK_MS = 120
DEFAULT_SIZE = (80, 24)
STDIN_FILENAME = "stdin"


def load_source(path: Path) -> str:
    """Read a markdown file, turning MDX into plain markdown."""
    text = path.read_text(encoding="utf-8", errors="replace")
    if path.suffix.lower() == ".mdx":
        text = preprocess_mdx(text)
    return text


@dataclass(frozen=True)
class SessionOptions:
    show_line_numbers: bool = False
    wrap_width: int = 100
    theme_name: str | None = None


@dataclass
class Document:
    """A document open in the pager, plus what it was last rendered with."""

    path: Path | None
    filename: str
    source: str
    pager: Pager
    status_bar: StatusBar
    watcher: FileWatcher | None
    theme: ResolvedTheme


class Session:
    def __init__(
        self,
        config: Config,
        scheme: ColorScheme,
        options: SessionOptions = SessionOptions(),
        *,
        terminal: TerminalController | None = None,
        input_fd: int | None = None,
    ) -> None:
        self.config = config
        self.options = options
        self.scheme = scheme
        self.theme = self._resolve(scheme)
        self.terminal = terminal
        self.input_fd = input_fd
        self.running = False
        self.needs_render = True
        self.document: Document | None = None
        self.browser: Browser | None = None
        self._browser_theme: ResolvedTheme | None = None
        self.switcher: Switcher | None = None
        self._size = DEFAULT_SIZE

    # -- theme -------------------------------------------------------------

    def theme_name_for(self, is_dark: bool) -> str | None:
        return self.options.theme_name or self.config.theme_name(is_dark)

    def _resolve(self, scheme: ColorScheme) -> ResolvedTheme:
        return resolve_theme(self.theme_name_for(scheme.is_dark), scheme.is_dark)

    def handle_color_scheme_change(self, scheme: ColorScheme) -> bool:
        """Swap to ``scheme``'s theme and rebuild the visible view.

        Returns ``False`` without touching anything when the scheme is the
        one already in use.
        """
        if scheme == self.scheme:
            return False
        logger.debug("color scheme changed: {} -> {}", self.scheme.value, scheme.value)
        self.scheme = scheme
        self.theme = self._resolve(scheme)
        if self.switcher is not None and self.switcher.is_browser:
            self._refresh_browser_theme()
        elif self.document is not None:
            self._rebuild_document(self.document)
        self.force_render()
        return True

    def _refresh_browser_theme(self) -> None:
        if self.browser is not None and self._browser_theme is not self.theme:
            self.browser.update_palette(self.theme.palette)
            self._browser_theme = self.theme

    def _rebuild_document(self, document: Document) -> None:
        """Re-render ``document`` with the current theme, re-reading its file."""
        if document.path is not None:
            try:
                document.source = load_source(document.path)
            except OSError as exc:
                logger.debug("keeping previous text for {}: {}", document.path, exc)
        document.pager.set_content(MarkdownContent(document.source, self.theme))
        document.pager.update_palette(self.theme.palette)
        document.status_bar.update_palette(self.theme.palette)
        document.theme = self.theme

    # -- views -------------------------------------------------------------

    def open_browser(self, base_dir: Path, entries: list[Entry]) -> Browser:
        self.browser = Browser(
            entries,
            base_dir,
            BrowserCallbacks(
                on_open=self.open_entry,
                on_quit=self.stop,
                on_color_scheme_change=self.handle_color_scheme_change,
            ),
            self.theme.palette,
        )
        self._browser_theme = self.theme
        self._show(BrowserView(self.browser))
        return self.browser

    def open_entry(self, entry: Entry) -> None:
        try:
            source = load_source(entry.absolute_path)
        except OSError as exc:
            logger.debug("cannot open {}: {}", entry.absolute_path, exc)
            return
        self.open_document(source, entry.relative_path, path=entry.absolute_path)

    def open_document(self, source: str, filename: str, *, path: Path | None = None) -> Document:
        """Show ``source`` in a new pager; ``path=None`` disables edit and reload."""
        self.close_document()
        has_file = path is not None
        pager = Pager(
            MarkdownContent(source, self.theme),
            PagerCallbacks(
                on_exit=self.close_pager,
                on_edit=self.edit if has_file else None,
                on_reload=self.reload if has_file else None,
                on_suspend=self.suspend,
                on_color_scheme_change=self.handle_color_scheme_change,
            ),
            self.theme.palette,
            show_line_numbers=self.options.show_line_numbers,
            wrap_width=self.options.wrap_width,
        )
        watcher = FileWatcher(path, self._on_file_changed) if has_file else None
        self.document = Document(
            path=path,
            filename=filename,
            source=source,
            pager=pager,
            status_bar=StatusBar(filename, pager, self.theme.palette),
            watcher=watcher,
            theme=self.theme,
        )
        if watcher is not None:
            watcher.start()
        self._show(PagerView(pager, self.document.status_bar))
        return self.document

    def close_document(self) -> None:
        if self.document is not None and self.document.watcher is not None:
            self.document.watcher.stop()
        self.document = None

    def close_pager(self) -> None:
        """Leave the pager: back to the browser if there is one, else quit."""
        self.close_document()
        if self.browser is None:
            self.stop()
            return
        self._refresh_browser_theme()
        self._show(BrowserView(self.browser))

    def _show(self, view: BrowserView | PagerView) -> None:
        if self.switcher is None:
            self.switcher = Switcher(view)
        else:
            self.switcher.show(view)
        self.switcher.set_size(self._size[1])
        self.force_render()

    # -- document actions --------------------------------------------------

    def _on_file_changed(self) -> None:
        if self.document is not None:
            self.document.pager.set_file_changed(True)
            self.force_render()

    def reload(self) -> None:
        document = self.document
        if document is None or document.path is None:
            return
        self.reload_content()
        document.pager.set_file_changed(False)
        if document.watcher is not None:
            document.watcher.resync()

    def reload_content(self) -> None:
        """Re-read the open file; a read failure leaves the old content up."""
        document = self.document
        if document is None or document.path is None:
            return
        try:
            source = load_source(document.path)
        except OSError as exc:
            logger.debug("reload of {} failed: {}", document.path, exc)
            return
        document.source = source
        document.pager.set_content(MarkdownContent(source, self.theme))
        document.theme = self.theme
        self.force_render()

    def edit(self, line: int) -> None:
        document = self.document
        if document is None or document.path is None:
            return
        if self.terminal is not None:
            self.terminal.disable_tui_mode()
        try:
            open_in_editor(document.path, line)
        finally:
            if self.terminal is not None:
                self.terminal.enable_tui_mode()
        self.reload_content()
        if document.watcher is not None:
            document.watcher.resync()
        self.resume()

    def suspend(self) -> None:
        """Hand the terminal back and stop the process until ``SIGCONT``."""
        logger.debug("suspending")
        if self.terminal is not None:
            self.terminal.disable_tui_mode()
        os.kill(os.getpid(), signal.SIGTSTP)
        # execution continues here once the shell resumes the process
        if self.terminal is not None:
            self.terminal.enable_tui_mode()
        self.resume()

    def resume(self) -> None:
        if self.switcher is not None:
            self.switcher.invalidate()
        self.force_render()

    # -- loop --------------------------------------------------------------

    def stop(self) -> None:
        self.running = False
        self.close_document()

    def force_render(self) -> None:
        self.needs_render = True

    def frame(self) -> list[str]:
        if self.switcher is None:
            return []
        columns, rows = self._size
        return self.switcher.render(columns, rows)

    def _sync_size(self) -> None:
        if self.terminal is None:
            return
        size = self.terminal.size()
        if size != self._size:
            self._size = size
            if self.switcher is not None:
                self.switcher.set_size(size[1])
            self.force_render()

    def render(self) -> None:
        self.needs_render = False
        if self.terminal is not None:
            self.terminal.write_frame(self.frame())

    def tick(self) -> None:
        """Idle work between keys: file-change polling."""
        if self.document is not None and self.document.watcher is not None:
            self.document.watcher.poll()

    def run(self) -> None:
        if self.terminal is None or self.input_fd is None or self.switcher is None:
            raise RuntimeError("session is not attached to a terminal")
        self.running = True
        with self.terminal.raw_mode():
            self._size = (0, 0)
            while self.running:
                self._sync_size()
                if self.needs_render:
                    self.render()
                key = read_key(self.input_fd, timeout_ms=IDLE_TICK_MS)
                if not key:
                    self.tick()
                    continue
                self.switcher.handle_input(key)
                self.force_render()
        self.close_document()
