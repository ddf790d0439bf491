"""
Main application class for the LofiTurtle TUI.
Serializes resize, key and reload handling on one event loop.
"""

import logging
from typing import Optional

from textual import events, work
from textual.app import App, ComposeResult, ScreenStackError
from textual.css.query import NoMatches

from lofiturtle.core.descriptor import WidgetType
from lofiturtle.core.engine import LayoutEngine
from lofiturtle.core.watcher import ConfigWatcher, ReloadEvent
from lofiturtle.ui.widgets import ActionRequested, LayoutView

logger = logging.getLogger(__name__)

# Textual key names that differ from the tokens used in layout files.
KEY_ALIASES = {
    "escape": "esc",
    "plus": "+",
    "minus": "-",
    "slash": "/",
}


class LofiTurtleApp(App):
    """The main LofiTurtle TUI Application."""

    TITLE = "LofiTurtle"

    def __init__(self, layout_path: Optional[str] = None, watch: bool = True):
        super().__init__()
        self.layout_path = layout_path
        self.hot_reload = watch and layout_path is not None
        self.engine = LayoutEngine.from_path(layout_path)
        self.watcher: Optional[ConfigWatcher] = None
        self.last_action: Optional[str] = None

    def compose(self) -> ComposeResult:
        """Composes the main application layout."""
        yield LayoutView(self.engine, id="layout-view")

    async def on_mount(self) -> None:
        """Starts the layout watcher and reports any startup fallback."""
        if self.engine.last_error is not None:
            self.notify(f"{self.engine.last_error}. Using the default layout.", severity="error")

        if self.layout_path is not None:
            self.watcher = ConfigWatcher(
                self.layout_path,
                self.engine.descriptor.settings.debounce_ms,
                active_id=self.engine.descriptor.descriptor_id,
            )
            if self.hot_reload:
                await self.watcher.start()
                if not self.watcher.hot_reload_enabled:
                    self.notify("Hot-reload disabled; press the reload key to reload.", severity="warning")
            self.drain_reload_events()
        self._update_status()

    async def on_unmount(self) -> None:
        if self.watcher is not None:
            await self.watcher.stop()

    @property
    def layout_view(self) -> LayoutView:
        return self.query_one("#layout-view", LayoutView)

    # --- Event Handlers ---

    def on_resize(self, event: events.Resize) -> None:
        """Recomputes regions for the new terminal size."""
        self.engine.resize(event.size.width, event.size.height)
        logger.debug(f"Terminal resized to {event.size.width}x{event.size.height} ({self.engine.responsive_mode.value}).")
        self._update_status()

    async def on_key(self, event: events.Key) -> None:
        """Resolves a key through the layout's bindings and dispatches the action."""
        key = event.key
        action = self.engine.action_for(key)
        if action is None and key in KEY_ALIASES:
            key = KEY_ALIASES[key]
            action = self.engine.action_for(key)
        if action is None and event.character:
            key = event.character
            action = self.engine.action_for(key)
        if action is None:
            return
        event.stop()
        await self.dispatch_layout_action(action, key)

    def on_action_requested(self, message: ActionRequested) -> None:
        self.last_action = message.action
        self._update_status()

    @work(exclusive=True, group="layout-reload")
    async def drain_reload_events(self) -> None:
        """Background worker that applies watcher outcomes in arrival order."""
        while True:
            event = await self.watcher.events.get()
            self._apply_reload(event)

    def _apply_reload(self, event: ReloadEvent):
        if self.engine.apply(event):
            self.notify(f"Layout '{self.engine.descriptor.name}' reloaded.")
        else:
            self.notify(f"Layout reload failed: {event.error}", severity="error")
        self._update_status()

    # --- Actions ---

    async def dispatch_layout_action(self, action: str, key: str):
        """Handles layout actions locally and forwards everything else."""
        if action == "reload_layout":
            await self.action_reload_layout()
        elif action == "switch_theme":
            self.action_switch_theme()
        elif action == "toggle_art":
            self.action_toggle_widget("album_art")
        elif action == "quit":
            self.exit()
        else:
            self.post_message(ActionRequested(action, key))

    async def action_reload_layout(self):
        """Reparses the layout file immediately, bypassing the debounce."""
        if self.watcher is None:
            self.notify("No layout file to reload; using the default layout.", severity="warning")
            return
        # The event is queued and applied by drain_reload_events.
        await self.watcher.reload_now()

    def action_switch_theme(self):
        name = self.engine.cycle_theme()
        self._sync_watcher()
        self.notify(f"Theme set to '{name}'.")
        self._update_status()

    def action_toggle_widget(self, name: str):
        try:
            visible = self.engine.toggle_widget(name)
        except KeyError as e:
            self.notify(str(e), severity="warning")
            return
        self._sync_watcher()
        self._update_status()
        logger.info(f"Widget '{name}' {'shown' if visible else 'hidden'}.")

    # --- UI Helpers ---

    def _sync_watcher(self):
        if self.watcher is not None:
            self.watcher.mark_active(self.engine.descriptor.descriptor_id)

    def _update_status(self):
        """Writes layout state into the status bar region, if the layout has one."""
        descriptor = self.engine.descriptor
        status = f"{descriptor.name} | {self.engine.responsive_mode.value} {self.engine.width}x{self.engine.height}"
        if self.last_action:
            status += f" | {self.last_action}"
        try:
            view = self.layout_view
        except (NoMatches, ScreenStackError):
            return
        for widget in descriptor.widgets:
            if widget.widget_type == WidgetType.STATUS_BAR:
                view.set_label(widget.name, status)
        view.redraw()


def run(layout_path: Optional[str] = None, watch: bool = True):
    """Entry point to start the LofiTurtle TUI application."""
    app = LofiTurtleApp(layout_path=layout_path, watch=watch)
    app.run()
