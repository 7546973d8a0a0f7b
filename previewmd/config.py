"""Persistent JSON config helpers.

Stores the line-number preference and the theme choice (one name, or a
dark/light pair). A ``.previewmd.json`` in the working directory wins over
the per-user config. All access is defensive: malformed or missing config
falls back to defaults.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from loguru import logger
from platformdirs import user_config_dir

APP_NAME = "previewmd"
CONFIG_FILENAME = "config.json"
LOCAL_CONFIG_FILENAME = ".previewmd.json"
THEMES_DIRNAME = "themes"
SCHEMA_URL = "https://raw.githubusercontent.com/aliou/preview-markdown/main/schema.json"
DEFAULT_DARK_THEME = "jellybeans-dark"
DEFAULT_LIGHT_THEME = "jellybeans-light"


def config_dir() -> Path:
    """Return the per-user configuration directory."""
    return Path(user_config_dir(APP_NAME, appauthor=False))


def global_config_path() -> Path:
    return config_dir() / CONFIG_FILENAME


def local_config_path() -> Path:
    return Path.cwd() / LOCAL_CONFIG_FILENAME


def themes_dir() -> Path:
    """Return the directory searched for user TextMate theme files."""
    return config_dir() / THEMES_DIRNAME


@dataclass(frozen=True)
class Config:
    """Validated user preferences."""

    show_line_numbers: bool = False
    theme: str | tuple[str, str] | None = (DEFAULT_DARK_THEME, DEFAULT_LIGHT_THEME)

    def theme_name(self, is_dark: bool) -> str | None:
        """Return the configured theme name for a dark or light scheme."""
        if self.theme is None:
            return None
        if isinstance(self.theme, str):
            return self.theme
        dark, light = self.theme
        return dark if is_dark else light


DEFAULT_CONFIG = Config()


def _coerce_theme(value: object) -> str | tuple[str, str] | None:
    """Normalize the ``theme`` JSON value; anything unusable yields ``None``."""
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    if isinstance(value, dict):
        dark = value.get("dark")
        light = value.get("light")
        if isinstance(dark, str) and isinstance(light, str) and dark.strip() and light.strip():
            return dark.strip(), light.strip()
    return None


def load_config_from_path(path: Path) -> Config | None:
    """Parse one config file, returning ``None`` if missing or malformed."""
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.debug("ignoring unreadable config {}: {}", path, exc)
        return None
    if not isinstance(data, dict):
        return None

    show_line_numbers = data.get("showLineNumbers", DEFAULT_CONFIG.show_line_numbers)
    if not isinstance(show_line_numbers, bool):
        show_line_numbers = DEFAULT_CONFIG.show_line_numbers
    theme = _coerce_theme(data["theme"]) if "theme" in data else DEFAULT_CONFIG.theme
    if theme is None:
        theme = DEFAULT_CONFIG.theme
    return Config(show_line_numbers=show_line_numbers, theme=theme)


def load_config() -> Config:
    """Load the local config, then the global one, then defaults."""
    for path in (local_config_path(), global_config_path()):
        config = load_config_from_path(path)
        if config is not None:
            logger.debug("loaded config from {}", path)
            return config
    return DEFAULT_CONFIG


def save_default_config() -> Path:
    """Write the default config to the per-user location and return its path.

    Unlike the read path this lets ``OSError`` propagate: the caller asked
    for the file explicitly and should see why it could not be written.
    """
    path = global_config_path()
    dark, light = DEFAULT_CONFIG.theme  # type: ignore[misc]
    payload = {
        "$schema": SCHEMA_URL,
        "showLineNumbers": DEFAULT_CONFIG.show_line_numbers,
        "theme": {"dark": dark, "light": light},
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
    return path
