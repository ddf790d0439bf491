import pytest

from lofiturtle.core.descriptor import ResponsiveMode
from lofiturtle.core.engine import LayoutEngine
from lofiturtle.core.errors import ParseError
from lofiturtle.core.parser import default_descriptor
from lofiturtle.core.theme import parse_color
from lofiturtle.core.watcher import ReloadEvent


def test_missing_file_uses_default(tmp_path):
    engine = LayoutEngine.from_path(str(tmp_path / "layout.toml"))
    assert engine.descriptor.name == "Lofi Night"
    assert engine.last_error is None


def test_broken_file_reports_error(tmp_path):
    path = tmp_path / "layout.toml"
    path.write_text("[[widgets]\n")
    engine = LayoutEngine.from_path(str(path))
    assert engine.descriptor.name == "Lofi Night"
    assert isinstance(engine.last_error, ParseError)


def test_default_layout_resolves_every_visible_widget():
    engine = LayoutEngine(default_descriptor())
    engine.resize(120, 40)
    regions = engine.resolve()
    assert set(regions) == {w.name for w in engine.descriptor.visible_widgets()}
    assert engine.responsive_mode == ResponsiveMode.NORMAL


def test_resolve_tracks_resize():
    engine = LayoutEngine(default_descriptor())
    engine.resize(120, 40)
    wide = engine.resolve()
    engine.resize(60, 40)
    narrow = engine.resolve()
    assert "sidebar" in wide
    assert "sidebar" not in narrow
    assert narrow["playlist"].width == 60


def test_palette_and_keymap_follow_descriptor():
    engine = LayoutEngine(default_descriptor())
    assert engine.palette.primary == parse_color("#bd93f9")
    assert engine.action_for("space") == "toggle_play"
    assert engine.action_for("f3") == "switch_theme"
    assert engine.action_for("ctrl+z") is None


def test_apply_swaps_only_on_success():
    engine = LayoutEngine(default_descriptor())
    original = engine.descriptor
    failed = ReloadEvent(ReloadEvent.ERR, original.descriptor_id, error=ParseError("bad"))
    assert engine.apply(failed) is False
    assert engine.descriptor is original

    replacement = default_descriptor()
    ok = ReloadEvent(ReloadEvent.OK, original.descriptor_id, replacement.descriptor_id, replacement)
    assert engine.apply(ok) is True
    assert engine.descriptor is replacement
    assert list(engine.history) == [failed, ok]


def test_toggle_widget_builds_new_descriptor():
    engine = LayoutEngine(default_descriptor())
    engine.resize(120, 40)
    original = engine.descriptor

    assert engine.toggle_widget("album_art") is False
    assert engine.descriptor is not original
    assert engine.descriptor.descriptor_id != original.descriptor_id
    assert original.is_widget_visible("album_art")
    assert "album_art" not in engine.resolve()
    assert engine.descriptor.get_widget("album_art") is not None

    assert engine.toggle_widget("album_art") is True
    assert "album_art" in engine.resolve()


def test_toggle_unknown_widget():
    engine = LayoutEngine(default_descriptor())
    with pytest.raises(KeyError):
        engine.toggle_widget("waveform")


def test_cycle_theme_changes_palette():
    engine = LayoutEngine(default_descriptor())
    assert engine.cycle_theme() == "gruvbox"
    assert engine.palette.primary == parse_color("#fabd2f")
    assert engine.cycle_theme() == "dark"


def test_style_for_follows_theme_changes():
    engine = LayoutEngine(default_descriptor())
    assert engine.style_for("sidebar").border == engine.palette.border
    engine.cycle_theme()
    assert engine.style_for("sidebar").border == parse_color("#928374")
