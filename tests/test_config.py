from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from previewmd import config


class ConfigParsingTests(unittest.TestCase):
    def _write(self, root: Path, payload: object) -> Path:
        path = root / "config.json"
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path

    def test_theme_pair_and_line_numbers(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = self._write(Path(tmp), {"showLineNumbers": True, "theme": {"dark": "a", "light": "b"}})
            loaded = config.load_config_from_path(path)

        self.assertEqual(loaded, config.Config(show_line_numbers=True, theme=("a", "b")))
        self.assertEqual(loaded.theme_name(True), "a")
        self.assertEqual(loaded.theme_name(False), "b")

    def test_single_theme_applies_to_both_schemes(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            loaded = config.load_config_from_path(self._write(Path(tmp), {"theme": " dracula "}))

        self.assertEqual(loaded.theme_name(True), "dracula")
        self.assertEqual(loaded.theme_name(False), "dracula")
        self.assertFalse(loaded.show_line_numbers)

    def test_invalid_values_fall_back_to_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            loaded = config.load_config_from_path(
                self._write(Path(tmp), {"showLineNumbers": "yes", "theme": {"dark": "only-dark"}})
            )

        self.assertEqual(loaded, config.DEFAULT_CONFIG)

    def test_malformed_or_missing_files_yield_none(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            broken = root / "broken.json"
            broken.write_text("{not json", encoding="utf-8")
            listing = self._write(root, ["not", "an", "object"])

            self.assertIsNone(config.load_config_from_path(broken))
            self.assertIsNone(config.load_config_from_path(listing))
            self.assertIsNone(config.load_config_from_path(root / "absent.json"))

    def test_default_theme_names(self) -> None:
        self.assertEqual(config.DEFAULT_CONFIG.theme_name(True), config.DEFAULT_DARK_THEME)
        self.assertEqual(config.DEFAULT_CONFIG.theme_name(False), config.DEFAULT_LIGHT_THEME)
        self.assertIsNone(config.Config(theme=None).theme_name(True))


class ConfigLocationTests(unittest.TestCase):
    def test_local_config_wins_over_global(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            local = root / ".previewmd.json"
            local.write_text(json.dumps({"theme": "local"}), encoding="utf-8")
            (root / "global").mkdir()
            (root / "global" / "config.json").write_text(json.dumps({"theme": "global"}), encoding="utf-8")

            with mock.patch("previewmd.config.local_config_path", return_value=local), mock.patch(
                "previewmd.config.config_dir", return_value=root / "global"
            ):
                self.assertEqual(config.load_config().theme, "local")
                local.unlink()
                self.assertEqual(config.load_config().theme, "global")

    def test_defaults_when_no_file_exists(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            with mock.patch("previewmd.config.local_config_path", return_value=root / "none.json"), mock.patch(
                "previewmd.config.config_dir", return_value=root / "cfg"
            ):
                self.assertIs(config.load_config(), config.DEFAULT_CONFIG)

    def test_save_default_config_round_trips(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            cfg_dir = Path(tmp) / "nested" / "previewmd"
            with mock.patch("previewmd.config.config_dir", return_value=cfg_dir):
                path = config.save_default_config()
                saved = json.loads(path.read_text(encoding="utf-8"))
                reloaded = config.load_config_from_path(path)

            self.assertEqual(path, cfg_dir / "config.json")
            self.assertEqual(saved["$schema"], config.SCHEMA_URL)
            self.assertEqual(reloaded, config.DEFAULT_CONFIG)

    def test_themes_dir_lives_under_config_dir(self) -> None:
        with mock.patch("previewmd.config.config_dir", return_value=Path("/cfg")):
            self.assertEqual(config.themes_dir(), Path("/cfg/themes"))


if __name__ == "__main__":
    unittest.main()
