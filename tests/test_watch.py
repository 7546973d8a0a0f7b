from __future__ import annotations

import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from previewmd.watch import FileWatcher, path_stat_signature


class StatSignatureTests(unittest.TestCase):
    def test_signature_tracks_existence_and_size(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            target = Path(tmp) / "doc.md"
            self.assertEqual(path_stat_signature(target), ("missing", 0, 0, 0))

            target.write_text("a\n", encoding="utf-8")
            first = path_stat_signature(target)
            target.write_text("bbbb\n", encoding="utf-8")
            second = path_stat_signature(target)

            self.assertEqual(first[0], "ok")
            self.assertEqual(first[3], 2)
            self.assertEqual(first[1], second[1])
            self.assertNotEqual(first, second)


class FileWatcherTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.path = Path(self._tmp.name) / "doc.md"
        self.path.write_text("one\n", encoding="utf-8")
        self.on_change = mock.Mock()
        self.watcher = FileWatcher(self.path, self.on_change, debounce_seconds=0.1)
        self.watcher.start()

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_unchanged_file_never_fires(self) -> None:
        for now in (0.0, 1.0, 2.0):
            self.assertFalse(self.watcher.poll(now=now))
        self.on_change.assert_not_called()

    def test_change_fires_once_after_debounce(self) -> None:
        self.path.write_text("two, longer\n", encoding="utf-8")

        self.assertFalse(self.watcher.poll(now=10.0))
        self.assertTrue(self.watcher.pending)
        self.assertFalse(self.watcher.poll(now=10.05))
        self.assertTrue(self.watcher.poll(now=10.1))
        self.assertFalse(self.watcher.poll(now=11.0))
        self.on_change.assert_called_once_with()

    def test_burst_of_writes_reschedules_deadline(self) -> None:
        self.path.write_text("two!\n", encoding="utf-8")
        self.watcher.poll(now=10.0)
        self.path.write_text("three!!\n", encoding="utf-8")
        self.watcher.poll(now=10.08)

        self.assertFalse(self.watcher.poll(now=10.12))
        self.assertTrue(self.watcher.poll(now=10.2))
        self.assertEqual(self.on_change.call_count, 1)

    def test_delete_and_reappear_are_ignored(self) -> None:
        self.path.unlink()
        self.assertFalse(self.watcher.poll(now=1.0))
        self.assertFalse(self.watcher.pending)

        self.path.write_text("restored with new text\n", encoding="utf-8")
        self.assertFalse(self.watcher.poll(now=2.0))
        self.assertFalse(self.watcher.poll(now=5.0))
        self.on_change.assert_not_called()

    def test_rename_and_replace_save_is_ignored(self) -> None:
        replacement = self.path.with_name("doc.md.tmp")
        replacement.write_text("atomically saved text\n", encoding="utf-8")
        os.replace(replacement, self.path)

        self.assertFalse(self.watcher.poll(now=0.0))
        self.assertFalse(self.watcher.pending)
        self.assertFalse(self.watcher.poll(now=1.0))
        self.on_change.assert_not_called()

        self.path.write_text("then edited in place\n", encoding="utf-8")
        self.watcher.poll(now=2.0)
        self.assertTrue(self.watcher.poll(now=3.0))
        self.on_change.assert_called_once_with()

    def test_resync_drops_pending_change(self) -> None:
        self.path.write_text("edited in place\n", encoding="utf-8")
        self.watcher.poll(now=1.0)
        self.watcher.resync()

        self.assertFalse(self.watcher.pending)
        self.assertFalse(self.watcher.poll(now=2.0))
        self.on_change.assert_not_called()

    def test_stopped_watcher_is_inert(self) -> None:
        self.watcher.stop()
        self.path.write_text("changed after stop\n", encoding="utf-8")
        self.assertFalse(self.watcher.poll(now=1.0))
        self.assertFalse(self.watcher.poll(now=2.0))
        self.on_change.assert_not_called()

    def test_clock_is_used_when_now_is_omitted(self) -> None:
        ticks = iter([5.0, 5.2])
        watcher = FileWatcher(self.path, self.on_change, clock=lambda: next(ticks))
        watcher.start()
        self.path.write_text("clocked change\n", encoding="utf-8")

        self.assertFalse(watcher.poll())
        self.assertTrue(watcher.poll())
        self.on_change.assert_called_once_with()


if __name__ == "__main__":
    unittest.main()
