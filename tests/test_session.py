"""Integration-heavy tests for ``previewmd.session`` wiring.

Covers view switching, live theme swaps, file reload, editor handoff,
suspend and the main input loop, with the terminal replaced by mocks.
"""

from __future__ import annotations

import os
import signal
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from previewmd.ansi import strip_ansi
from previewmd.browser import Entry
from previewmd.color_scheme import ColorScheme
from previewmd.config import DEFAULT_CONFIG, Config
from previewmd.session import Session, SessionOptions, load_source


class _TempDocMixin:
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.path = self.root / "doc.md"
        self.path.write_text("# Title\n\nfirst body\n", encoding="utf-8")

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _entry(self) -> Entry:
        return Entry(absolute_path=self.path, relative_path="doc.md", created_at=0.0, updated_at=0.0)


class LoadSourceTests(_TempDocMixin, unittest.TestCase):
    def test_mdx_files_are_preprocessed(self) -> None:
        mdx = self.root / "page.mdx"
        mdx.write_text("import X from 'x'\n\n# Hi\n", encoding="utf-8")
        self.assertTrue(load_source(mdx).startswith("```jsx\nimport X from 'x'\n```"))
        self.assertEqual(load_source(self.path), "# Title\n\nfirst body\n")


class SessionThemeTests(_TempDocMixin, unittest.TestCase):
    def test_same_scheme_is_a_no_op(self) -> None:
        session = Session(DEFAULT_CONFIG, ColorScheme.DARK)
        theme = session.theme
        session.needs_render = False
        self.assertFalse(session.handle_color_scheme_change(ColorScheme.DARK))
        self.assertIs(session.theme, theme)
        self.assertFalse(session.needs_render)

    def test_theme_name_prefers_command_line_over_config(self) -> None:
        config = Config(theme=("dark-one", "light-one"))
        self.assertEqual(Session(config, ColorScheme.DARK).theme_name_for(False), "light-one")
        session = Session(config, ColorScheme.DARK, SessionOptions(theme_name="forced"))
        self.assertEqual(session.theme_name_for(True), "forced")

    def test_scheme_change_rebuilds_visible_pager_and_defers_browser(self) -> None:
        session = Session(DEFAULT_CONFIG, ColorScheme.DARK)
        browser = session.open_browser(self.root, [self._entry()])
        dark_palette = browser.palette
        session.switcher.handle_input("ENTER")
        document = session.document
        self.assertIsNotNone(document)
        self.assertTrue(session.switcher.is_pager)

        self.assertTrue(session.handle_color_scheme_change(ColorScheme.LIGHT))
        self.assertFalse(session.theme.is_dark)
        self.assertEqual(session.theme.name, "jellybeans-light")
        self.assertIs(document.theme, session.theme)
        self.assertIs(document.pager.palette, session.theme.palette)
        self.assertIs(browser.palette, dark_palette)

        session.switcher.handle_input("q")
        self.assertIsNone(session.document)
        self.assertTrue(session.switcher.is_browser)
        self.assertIs(browser.palette, session.theme.palette)

    def test_notification_key_in_pager_swaps_theme(self) -> None:
        session = Session(DEFAULT_CONFIG, ColorScheme.LIGHT)
        session.open_document("hello", "stdin")
        session.switcher.handle_input("COLOR_SCHEME_DARK")
        self.assertIs(session.scheme, ColorScheme.DARK)
        self.assertTrue(session.document.theme.is_dark)

    def test_scheme_change_while_browsing_updates_browser_immediately(self) -> None:
        session = Session(DEFAULT_CONFIG, ColorScheme.DARK)
        browser = session.open_browser(self.root, [self._entry()])
        session.switcher.handle_input("COLOR_SCHEME_LIGHT")
        self.assertIs(browser.palette, session.theme.palette)


class SessionDocumentTests(_TempDocMixin, unittest.TestCase):
    def _open(self, terminal: mock.Mock | None = None) -> Session:
        session = Session(DEFAULT_CONFIG, ColorScheme.DARK, terminal=terminal)
        session.open_document(load_source(self.path), "doc.md", path=self.path)
        return session

    def _text(self, session: Session) -> str:
        return "\n".join(strip_ansi(row) for row in session.frame())

    def test_quitting_pager_without_browser_stops_session(self) -> None:
        session = self._open()
        session.running = True
        session.switcher.handle_input("q")
        self.assertFalse(session.running)
        self.assertIsNone(session.document)

    def test_frame_fills_default_terminal_size(self) -> None:
        session = self._open()
        rows = session.frame()
        self.assertEqual(len(rows), 24)
        self.assertIn("first body", self._text(session))
        self.assertTrue(strip_ansi(rows[-1]).startswith(" doc.md"))

    def test_file_change_sets_banner_and_reload_clears_it(self) -> None:
        session = self._open()
        document = session.document
        self.path.write_text("# Title\n\nsecond body, longer\n", encoding="utf-8")
        document.watcher.poll(now=1.0)
        document.watcher.poll(now=2.0)

        self.assertTrue(document.pager.file_changed)
        self.assertIn("File changed. Press r to reload.", self._text(session))

        session.switcher.handle_input("r")
        self.assertFalse(document.pager.file_changed)
        self.assertIn("second body", self._text(session))

    def test_reload_keeps_old_content_when_file_is_gone(self) -> None:
        session = self._open()
        document = session.document
        self.path.unlink()

        session.reload()

        self.assertEqual(document.source, "# Title\n\nfirst body\n")
        self.assertIn("first body", self._text(session))

    def test_stdin_document_has_no_edit_or_reload(self) -> None:
        session = Session(DEFAULT_CONFIG, ColorScheme.DARK)
        document = session.open_document("piped text", "stdin")
        self.assertIsNone(document.watcher)
        with mock.patch("previewmd.session.open_in_editor") as editor_mock:
            session.switcher.handle_input("e")
        editor_mock.assert_not_called()

    def test_edit_hands_terminal_to_editor_and_reloads(self) -> None:
        terminal = mock.Mock()
        session = self._open(terminal)

        def fake_editor(path: Path, line: int) -> bool:
            path.write_text("edited text\n", encoding="utf-8")
            return True

        with mock.patch("previewmd.session.open_in_editor", side_effect=fake_editor) as editor_mock:
            session.switcher.handle_input("e")

        editor_mock.assert_called_once_with(self.path, 1)
        self.assertEqual(terminal.method_calls, [mock.call.disable_tui_mode(), mock.call.enable_tui_mode()])
        self.assertEqual(session.document.source, "edited text\n")
        self.assertFalse(session.document.watcher.pending)
        self.assertTrue(session.needs_render)

    def test_terminal_is_restored_even_if_editor_raises(self) -> None:
        terminal = mock.Mock()
        session = self._open(terminal)
        with mock.patch("previewmd.session.open_in_editor", side_effect=RuntimeError("boom")):
            with self.assertRaises(RuntimeError):
                session.edit(3)
        terminal.enable_tui_mode.assert_called_once_with()

    def test_ctrl_z_suspends_and_restores(self) -> None:
        terminal = mock.Mock()
        session = self._open(terminal)
        session.needs_render = False
        with mock.patch("previewmd.session.os.kill") as kill_mock:
            session.switcher.handle_input("CTRL_Z")

        kill_mock.assert_called_once_with(os.getpid(), signal.SIGTSTP)
        self.assertEqual(terminal.method_calls, [mock.call.disable_tui_mode(), mock.call.enable_tui_mode()])
        self.assertTrue(session.needs_render)


class SessionLoopTests(_TempDocMixin, unittest.TestCase):
    def test_run_without_terminal_is_an_error(self) -> None:
        session = Session(DEFAULT_CONFIG, ColorScheme.DARK)
        session.open_document("x", "stdin")
        with self.assertRaises(RuntimeError):
            session.run()

    def test_run_renders_dispatches_keys_and_exits(self) -> None:
        terminal = mock.MagicMock()
        terminal.size.return_value = (60, 12)
        session = Session(DEFAULT_CONFIG, ColorScheme.DARK, terminal=terminal, input_fd=0)
        session.open_document("\n\n".join(f"line {i}" for i in range(40)), "stdin")
        pager = session.document.pager
        seen_offsets: list[int] = []

        def keys(fd: int, timeout_ms: int) -> str:
            seen_offsets.append(pager.scroll_offset)
            return ["", "j", "j", "q"][len(seen_offsets) - 1]

        with mock.patch("previewmd.session.read_key", side_effect=keys):
            session.run()

        self.assertFalse(session.running)
        self.assertIsNone(session.document)
        self.assertEqual(seen_offsets, [0, 0, 1, 2])
        self.assertEqual(pager.viewport_height, 11)
        terminal.raw_mode.assert_called_once_with()
        frames = [call.args[0] for call in terminal.write_frame.call_args_list]
        self.assertEqual(len(frames), 3)
        self.assertEqual(len(frames[0]), 12)

    def test_resize_is_picked_up_between_keys(self) -> None:
        terminal = mock.MagicMock()
        sizes = iter([(80, 24), (80, 24), (100, 30)])
        terminal.size.side_effect = lambda: next(sizes)
        session = Session(DEFAULT_CONFIG, ColorScheme.DARK, terminal=terminal, input_fd=0)
        session.open_document("text", "stdin")
        pager = session.document.pager

        with mock.patch("previewmd.session.read_key", side_effect=["", "", "q"]):
            session.run()

        self.assertEqual(pager.viewport_height, 29)
        self.assertEqual(len(terminal.write_frame.call_args_list[-1].args[0]), 30)


if __name__ == "__main__":
    unittest.main()
