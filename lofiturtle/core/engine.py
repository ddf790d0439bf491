"""
The active layout cell.
Owned by the consumer loop; the only place a descriptor is ever swapped.
"""

import logging
from collections import deque
from typing import Deque, Dict, Optional

from lofiturtle.core.descriptor import LayoutDescriptor, ResponsiveMode, ThemeSpec
from lofiturtle.core.errors import ConfigError
from lofiturtle.core.keybindings import KeyMap
from lofiturtle.core.parser import load_or_default
from lofiturtle.core.solver import Region, solve_layout
from lofiturtle.core.theme import Palette, ResolvedStyle, next_theme_name, resolve_palette, resolve_widget_style
from lofiturtle.core.watcher import ReloadEvent

logger = logging.getLogger(__name__)


class LayoutEngine:
    """
    Holds the active descriptor together with its derived palette and key map.
    Regions are never stored: `resolve()` recomputes them on every call.
    """

    def __init__(self, descriptor: LayoutDescriptor, source_path: Optional[str] = None):
        self.source_path = source_path
        self.width = 0
        self.height = 0
        self.last_error: Optional[ConfigError] = None
        self.history: Deque[ReloadEvent] = deque(maxlen=50)
        self._install(descriptor)

    @classmethod
    def from_path(cls, path: Optional[str]) -> "LayoutEngine":
        """Builds an engine from a layout file, falling back to the embedded default."""
        descriptor, error = load_or_default(path)
        engine = cls(descriptor, source_path=path)
        engine.last_error = error
        return engine

    def _install(self, descriptor: LayoutDescriptor):
        self._descriptor = descriptor
        self._palette = resolve_palette(descriptor.theme)
        self._styles = {
            w.name: resolve_widget_style(w.style, self._palette, w.name) for w in descriptor.widgets
        }
        self._keymap = KeyMap(descriptor.keybindings)

    @property
    def descriptor(self) -> LayoutDescriptor:
        return self._descriptor

    @property
    def palette(self) -> Palette:
        return self._palette

    @property
    def keymap(self) -> KeyMap:
        return self._keymap

    @property
    def responsive_mode(self) -> ResponsiveMode:
        return self._descriptor.responsive_mode(self.width)

    # --- Events ---

    def resize(self, width: int, height: int):
        self.width = max(width, 0)
        self.height = max(height, 0)

    def apply(self, event: ReloadEvent) -> bool:
        """
        Applies a watcher outcome. Only successful reparses swap the descriptor;
        returns True when a swap happened.
        """
        self.history.append(event)
        if not event.ok or event.descriptor is None:
            self.last_error = event.error
            logger.warning(f"Keeping layout '{self._descriptor.name}' after failed reload: {event.error}")
            return False
        self._install(event.descriptor)
        self.last_error = None
        logger.info(f"Layout swapped: {event.previous_id} -> {event.new_id}")
        return True

    def resolve(self) -> Dict[str, Region]:
        """Solves regions for the current descriptor and terminal size."""
        return solve_layout(self._descriptor, self.width, self.height)

    def action_for(self, key: str) -> Optional[str]:
        return self._keymap.resolve(key)

    def style_for(self, name: str) -> ResolvedStyle:
        """Colors for one widget: its own overrides over the active palette."""
        return self._styles[name]

    # --- Local edits ---

    def toggle_widget(self, name: str) -> bool:
        """Flips a widget's visibility via a new descriptor. Returns the new state."""
        widget = self._descriptor.get_widget(name)
        if widget is None:
            raise KeyError(f"Widget '{name}' not found.")
        widgets = tuple(
            w.model_copy(update={"visible": not w.visible}) if w.name == name else w
            for w in self._descriptor.widgets
        )
        self._install(self._descriptor.replace(widgets=widgets))
        return not widget.visible

    def cycle_theme(self) -> str:
        """Switches to the next built-in theme preset and returns its name."""
        name = next_theme_name(self._descriptor.theme.name)
        self._install(self._descriptor.replace(theme=ThemeSpec(name=name)))
        return name
