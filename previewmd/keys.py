"""Key tokens and a small key-dispatch table shared by the views."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from .input import COLOR_SCHEME_DARK_KEY, COLOR_SCHEME_LIGHT_KEY, UNKNOWN_KEY

UP = "UP"
DOWN = "DOWN"
PAGE_UP = "PAGE_UP"
PAGE_DOWN = "PAGE_DOWN"
HOME = "HOME"
END = "END"
ENTER = "ENTER"
ESC = "ESC"
BACKSPACE = "BACKSPACE"
CTRL_C = "CTRL_C"
CTRL_Z = "CTRL_Z"

__all__ = [
    "BACKSPACE",
    "COLOR_SCHEME_DARK_KEY",
    "COLOR_SCHEME_LIGHT_KEY",
    "CTRL_C",
    "CTRL_Z",
    "DOWN",
    "END",
    "ENTER",
    "ESC",
    "HOME",
    "KeyBinding",
    "KeyRegistry",
    "PAGE_DOWN",
    "PAGE_UP",
    "UNKNOWN_KEY",
    "UP",
    "is_printable",
]


def is_printable(key: str) -> bool:
    """True for a single typed character (tokens are multi-character)."""
    return len(key) == 1 and key >= " "


@dataclass(frozen=True)
class KeyBinding:
    """One or more key tokens bound to a single action."""

    keys: tuple[str, ...]
    action: Callable[[], None]


class KeyRegistry:
    """Exact-match key table; the last binding registered for a key wins."""

    def __init__(self, *bindings: KeyBinding) -> None:
        self._actions: dict[str, Callable[[], None]] = {}
        for binding in bindings:
            self.bind(binding)

    def bind(self, binding: KeyBinding) -> KeyRegistry:
        for key in binding.keys:
            self._actions[key] = binding.action
        return self

    def __contains__(self, key: str) -> bool:
        return key in self._actions

    def dispatch(self, key: str) -> bool:
        """Run the action bound to ``key``; return whether one existed."""
        action = self._actions.get(key)
        if action is None:
            return False
        action()
        return True
