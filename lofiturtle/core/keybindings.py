"""
Key token to action tag resolution.
User bindings are laid over the built-in defaults, key by key.
"""

import logging
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_KEYBINDINGS: Dict[str, str] = {
    "space": "toggle_play",
    "n": "next_track",
    "p": "previous_track",
    "up": "move_up",
    "down": "move_down",
    "enter": "select",
    "+": "volume_up",
    "-": "volume_down",
    "f1": "help",
    "f2": "switch_layout",
    "f3": "switch_theme",
    "f5": "reload_layout",
    "q": "quit",
    "esc": "quit",
    "/": "search",
    "a": "toggle_art",
}

KNOWN_ACTIONS = frozenset(DEFAULT_KEYBINDINGS.values()) | {
    "tab_next",
    "tab_previous",
    "seek_forward",
    "seek_backward",
    "toggle_shuffle",
    "toggle_repeat",
    "add_to_playlist",
}


class KeybindingError(ValueError):
    """Raised for an unusable key/action pair."""

    def __init__(self, key: str, message: str):
        super().__init__(message)
        self.key = key


def merge_keybindings(overrides: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    """
    Overlays user bindings onto the defaults.
    Unspecified keys keep their default action; specified keys take the user's.
    """
    merged = dict(DEFAULT_KEYBINDINGS)
    if not overrides:
        return merged

    for key, action in overrides.items():
        if not isinstance(key, str) or not key:
            raise KeybindingError(str(key), "Keybinding key cannot be empty")
        if not isinstance(action, str) or not action:
            raise KeybindingError(key, f"Keybinding action for key '{key}' cannot be empty")
        if action not in KNOWN_ACTIONS:
            logger.warning(f"Key '{key}' is bound to unknown action '{action}'.")
        merged[key] = action
    return merged


class KeyMap:
    """Exact-match lookup from a single key token to an action tag."""

    def __init__(self, bindings: Mapping[str, str]):
        self._bindings = dict(bindings)

    def resolve(self, key: str) -> Optional[str]:
        """Returns the bound action, or None when the key is unmapped."""
        return self._bindings.get(key)
