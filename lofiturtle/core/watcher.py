"""
Hot-reload of the layout file.

A watchdog observer thread reports file changes to the asyncio loop; a
debounce task turns each burst of changes into one reparse and publishes a
ReloadEvent on `events`. The watcher never touches the active descriptor:
the consumer drains `events` and decides whether to swap.
"""

import asyncio
import datetime
import logging
import os
from typing import Callable, Optional

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from lofiturtle.core.descriptor import LayoutDescriptor
from lofiturtle.core.errors import ConfigError, WatchError
from lofiturtle.core.parser import load_layout

logger = logging.getLogger(__name__)


class ReloadEvent:
    """Outcome of one reparse attempt."""
    OK = "ok"
    ERR = "err"

    def __init__(
        self,
        outcome: str,
        previous_id: Optional[str],
        new_id: Optional[str] = None,
        descriptor: Optional[LayoutDescriptor] = None,
        error: Optional[ConfigError] = None,
        reason: str = "watch",
    ):
        self.outcome = outcome
        self.previous_id = previous_id
        self.new_id = new_id
        self.descriptor = descriptor
        self.error = error
        self.reason = reason
        self.timestamp = datetime.datetime.now()

    @property
    def ok(self) -> bool:
        return self.outcome == self.OK

    def __repr__(self) -> str:
        detail = self.new_id if self.ok else self.error
        return f"ReloadEvent({self.outcome}, {self.previous_id} -> {detail}, reason={self.reason})"


class _LayoutFileHandler(FileSystemEventHandler):
    """Forwards events that concern the layout file. Runs on the observer thread."""

    def __init__(self, file_path: str, callback: Callable[[], None]):
        self.file_path = file_path
        self.callback = callback

    def _matches(self, path) -> bool:
        if isinstance(path, bytes):
            path = os.fsdecode(path)
        return bool(path) and os.path.abspath(path) == self.file_path

    def on_modified(self, event):
        if not event.is_directory and self._matches(event.src_path):
            self.callback()

    def on_created(self, event):
        if not event.is_directory and self._matches(event.src_path):
            self.callback()

    def on_moved(self, event):
        # Editors that save by writing a temp file and renaming it over the original.
        if not event.is_directory and self._matches(getattr(event, "dest_path", "")):
            self.callback()


class ConfigWatcher:
    """Watches a layout file and publishes debounced ReloadEvents."""

    def __init__(
        self,
        path: str,
        debounce_ms: int,
        active_id: Optional[str] = None,
        loader: Callable[[str], LayoutDescriptor] = load_layout,
    ):
        self.path = os.path.abspath(path)
        self.debounce_ms = debounce_ms
        self.loader = loader
        self.events: "asyncio.Queue[ReloadEvent]" = asyncio.Queue()
        self.hot_reload_enabled = False
        self._active_id = active_id
        self._signals: "asyncio.Queue[None]" = asyncio.Queue()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._observer = None
        self._task: Optional[asyncio.Task] = None
        self._stopped = False

    async def start(self):
        """Starts the debounce task and the filesystem subscription."""
        self._loop = asyncio.get_running_loop()
        self._task = asyncio.create_task(self._debounce_loop())
        try:
            self._start_observer()
            self.hot_reload_enabled = True
            logger.info(f"Watching {self.path} for layout changes.")
        except WatchError as e:
            logger.warning(f"{e}. Hot-reload disabled; manual reload remains available.")

    def _start_observer(self):
        directory = os.path.dirname(self.path)
        try:
            observer = Observer()
            observer.schedule(_LayoutFileHandler(self.path, self.notify_change), directory, recursive=False)
            observer.start()
        except Exception as e:
            raise WatchError(f"Could not watch {directory}: {e}") from e
        self._observer = observer

    def notify_change(self):
        """Thread-safe change signal; called from the observer thread."""
        if self._stopped or self._loop is None:
            return
        try:
            self._loop.call_soon_threadsafe(self._signal)
        except RuntimeError:
            # The loop closed between the check above and the call.
            logger.debug("Dropped a change signal after the event loop closed.")

    def _signal(self):
        if not self._stopped:
            self._signals.put_nowait(None)

    async def _debounce_loop(self):
        """Trailing-edge debounce: reparse once the burst has been quiet for debounce_ms."""
        while True:
            await self._signals.get()
            while True:
                try:
                    await asyncio.wait_for(self._signals.get(), timeout=self.debounce_ms / 1000)
                    logger.debug("Layout change within debounce window; restarting timer.")
                except asyncio.TimeoutError:
                    break
            if self._stopped:
                return
            self._reparse(reason="watch")

    async def reload_now(self) -> ReloadEvent:
        """Reparses immediately, bypassing the debounce timer."""
        return self._reparse(reason="manual")

    def _reparse(self, reason: str) -> ReloadEvent:
        try:
            descriptor = self.loader(self.path)
        except ConfigError as e:
            logger.warning(f"Layout reload rejected ({reason}): {e}")
            event = ReloadEvent(ReloadEvent.ERR, self._active_id, error=e, reason=reason)
        else:
            event = ReloadEvent(
                ReloadEvent.OK,
                self._active_id,
                new_id=descriptor.descriptor_id,
                descriptor=descriptor,
                reason=reason,
            )
            self._active_id = descriptor.descriptor_id
            self.debounce_ms = descriptor.settings.debounce_ms
            logger.info(f"Layout '{descriptor.name}' reparsed ({reason}).")
        self.events.put_nowait(event)
        return event

    def mark_active(self, descriptor_id: str):
        """Records a descriptor swapped in by the consumer outside of this watcher."""
        self._active_id = descriptor_id

    async def stop(self):
        """Stops the observer and the debounce task; no reparse fires afterwards."""
        self._stopped = True
        if self._observer is not None:
            self._observer.stop()
            await asyncio.get_running_loop().run_in_executor(None, self._observer.join, 2.0)
            self._observer = None
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        self.hot_reload_enabled = False
        logger.info("Layout watcher stopped.")
