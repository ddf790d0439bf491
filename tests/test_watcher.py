import asyncio
import time

import pytest

from lofiturtle.core.defaults import DEFAULT_LAYOUT_TOML
from lofiturtle.core.engine import LayoutEngine
from lofiturtle.core.errors import ConfigIOError, ValidationError
from lofiturtle.core.parser import load_layout
from lofiturtle.core.watcher import ConfigWatcher, ReloadEvent

DUPLICATE_TOML = DEFAULT_LAYOUT_TOML.replace('name = "album_art"', 'name = "sidebar"')
ALBUM_ART_BLOCK = """\
[[widgets]]
name = "album_art"
type = "album_art"
position = "right"
size = { percentage = 25 }
visible = true
border = true
title = "Visuals"

"""
NO_ART_TOML = DEFAULT_LAYOUT_TOML.replace(ALBUM_ART_BLOCK, "")


class CountingLoader:
    """Wraps load_layout and records when each reparse happened."""

    def __init__(self):
        self.calls = []

    def __call__(self, path):
        self.calls.append(time.monotonic())
        return load_layout(path)


@pytest.fixture
def layout_file(tmp_path):
    path = tmp_path / "layout.toml"
    path.write_text(DEFAULT_LAYOUT_TOML)
    return path


# --- Debounce Tests ---

@pytest.mark.asyncio
async def test_burst_triggers_single_reparse(layout_file):
    """N signals within the debounce window produce one reparse, timed from the last."""
    loader = CountingLoader()
    watcher = ConfigWatcher(str(layout_file), debounce_ms=100, loader=loader)
    await watcher.start()
    try:
        for i in range(5):
            if i:
                await asyncio.sleep(0.02)
            watcher.notify_change()
            last_signal = time.monotonic()

        event = await asyncio.wait_for(watcher.events.get(), timeout=2.0)
        await asyncio.sleep(0.3)

        assert event.ok
        assert len(loader.calls) == 1
        assert loader.calls[0] - last_signal >= 0.09
        assert watcher.events.empty()
    finally:
        await watcher.stop()


@pytest.mark.asyncio
async def test_separate_bursts_reparse_separately(layout_file):
    loader = CountingLoader()
    watcher = ConfigWatcher(str(layout_file), debounce_ms=30, loader=loader)
    await watcher.start()
    try:
        watcher.notify_change()
        await asyncio.wait_for(watcher.events.get(), timeout=2.0)
        watcher.notify_change()
        await asyncio.wait_for(watcher.events.get(), timeout=2.0)
        assert len(loader.calls) == 2
    finally:
        await watcher.stop()


@pytest.mark.asyncio
async def test_manual_reload_bypasses_debounce(layout_file):
    loader = CountingLoader()
    watcher = ConfigWatcher(str(layout_file), debounce_ms=10_000, loader=loader)
    event = await watcher.reload_now()
    assert event.ok
    assert event.reason == "manual"
    assert len(loader.calls) == 1
    assert watcher.events.get_nowait() is event


@pytest.mark.asyncio
async def test_no_reparse_after_stop(layout_file):
    loader = CountingLoader()
    watcher = ConfigWatcher(str(layout_file), debounce_ms=30, loader=loader)
    await watcher.start()
    watcher.notify_change()
    await watcher.stop()
    watcher.notify_change()
    await asyncio.sleep(0.15)
    assert loader.calls == []
    assert watcher.events.empty()


@pytest.mark.asyncio
async def test_file_modification_is_detected(layout_file):
    """A real write to the file reaches the consumer through the observer thread."""
    watcher = ConfigWatcher(str(layout_file), debounce_ms=50)
    await watcher.start()
    if not watcher.hot_reload_enabled:
        await watcher.stop()
        pytest.skip("Filesystem notifications unavailable in this environment")
    try:
        layout_file.write_text(DEFAULT_LAYOUT_TOML.replace('"Lofi Night"', '"Edited"'))
        event = await asyncio.wait_for(watcher.events.get(), timeout=5.0)
        assert event.ok
        assert event.descriptor.name == "Edited"
    finally:
        await watcher.stop()


# --- Outcome Tests ---

@pytest.mark.asyncio
async def test_successful_reparse_chains_ids(layout_file):
    watcher = ConfigWatcher(str(layout_file), debounce_ms=10, active_id="initial")
    first = await watcher.reload_now()
    second = await watcher.reload_now()
    assert first.previous_id == "initial"
    assert second.previous_id == first.new_id
    assert first.new_id == first.descriptor.descriptor_id


@pytest.mark.asyncio
async def test_failed_reparse_emits_error(layout_file):
    watcher = ConfigWatcher(str(layout_file), debounce_ms=10, active_id="initial")
    layout_file.write_text(DUPLICATE_TOML)
    event = await watcher.reload_now()
    assert not event.ok
    assert event.outcome == ReloadEvent.ERR
    assert isinstance(event.error, ValidationError)
    assert event.error.widget == "sidebar"
    assert event.new_id is None
    assert event.descriptor is None


@pytest.mark.asyncio
async def test_reparse_picks_up_new_debounce(layout_file):
    watcher = ConfigWatcher(str(layout_file), debounce_ms=10)
    layout_file.write_text(DEFAULT_LAYOUT_TOML.replace("debounce_ms = 300", "debounce_ms = 75"))
    await watcher.reload_now()
    assert watcher.debounce_ms == 75


@pytest.mark.asyncio
async def test_watch_failure_degrades_to_manual(tmp_path):
    missing = tmp_path / "no-such-dir" / "layout.toml"
    watcher = ConfigWatcher(str(missing), debounce_ms=10)
    await watcher.start()
    try:
        assert watcher.hot_reload_enabled is False
        event = await watcher.reload_now()
        assert isinstance(event.error, ConfigIOError)
    finally:
        await watcher.stop()


# --- Consumer Swap Tests ---

@pytest.mark.asyncio
async def test_rejected_reload_keeps_descriptor_and_regions(layout_file):
    engine = LayoutEngine.from_path(str(layout_file))
    engine.resize(120, 40)
    before_descriptor = engine.descriptor
    before_regions = engine.resolve()

    watcher = ConfigWatcher(str(layout_file), debounce_ms=10, active_id=before_descriptor.descriptor_id)
    layout_file.write_text(DUPLICATE_TOML)
    event = await watcher.reload_now()

    assert engine.apply(event) is False
    assert engine.descriptor is before_descriptor
    assert engine.resolve() == before_regions
    assert isinstance(engine.last_error, ValidationError)


@pytest.mark.asyncio
async def test_accepted_reload_drops_removed_widget(layout_file):
    engine = LayoutEngine.from_path(str(layout_file))
    engine.resize(120, 40)
    before_regions = engine.resolve()
    watcher = ConfigWatcher(str(layout_file), debounce_ms=10, active_id=engine.descriptor.descriptor_id)

    layout_file.write_text(NO_ART_TOML)
    event = await watcher.reload_now()

    assert engine.apply(event) is True
    assert engine.descriptor.descriptor_id == event.new_id
    regions = engine.resolve()
    assert "album_art" not in regions
    assert engine.descriptor.get_widget("album_art") is None
    for name in ("sidebar", "progress", "status"):
        assert regions[name] == before_regions[name]
