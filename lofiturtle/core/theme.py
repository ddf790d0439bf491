"""
Resolves theme color tokens into a concrete eight-slot palette.
Bad tokens are cosmetic: they fall back to a default and never raise.
"""

import logging
from typing import Any, Dict, List, NamedTuple, Optional

from rich.color import Color, ColorParseError

from lofiturtle.core.descriptor import ThemeSpec, WidgetStyle

logger = logging.getLogger(__name__)

PALETTE_SLOTS = (
    "primary",
    "secondary",
    "background",
    "foreground",
    "border",
    "highlight",
    "error",
    "success",
)

# Terminal-safe names mapped onto rich's ANSI color names.
NAMED_COLORS: Dict[str, str] = {
    "black": "black",
    "red": "red",
    "green": "green",
    "yellow": "yellow",
    "blue": "blue",
    "magenta": "magenta",
    "cyan": "cyan",
    "gray": "white",
    "grey": "white",
    "dark_gray": "bright_black",
    "dark_grey": "bright_black",
    "white": "bright_white",
    "reset": "default",
}
for _name in ("red", "green", "yellow", "blue", "magenta", "cyan"):
    NAMED_COLORS[f"light_{_name}"] = f"bright_{_name}"
    NAMED_COLORS[f"bright_{_name}"] = f"bright_{_name}"

DEFAULT_COLORS: Dict[str, str] = {
    "primary": "cyan",
    "secondary": "yellow",
    "background": "black",
    "foreground": "white",
    "border": "gray",
    "highlight": "bright_cyan",
    "error": "red",
    "success": "green",
}

BUILTIN_THEMES: Dict[str, Dict[str, str]] = {
    "dark": dict(DEFAULT_COLORS),
    "light": {
        "primary": "blue",
        "secondary": "magenta",
        "background": "white",
        "foreground": "black",
        "border": "dark_gray",
        "highlight": "bright_blue",
        "error": "red",
        "success": "green",
    },
    "synthwave": {
        "primary": "#ff00ff",
        "secondary": "#00ffff",
        "background": "#0a0a0a",
        "foreground": "#ffffff",
        "border": "#ff00ff",
        "highlight": "#ffff00",
        "error": "#ff0080",
        "success": "#00ff80",
    },
    "forest": {
        "primary": "#228b22",
        "secondary": "#daa520",
        "background": "#0f1419",
        "foreground": "#e6e6e6",
        "border": "#556b2f",
        "highlight": "#32cd32",
        "error": "#dc143c",
        "success": "#90ee90",
    },
    "dracula": {
        "primary": "#bd93f9",
        "secondary": "#ff79c6",
        "background": "#282a36",
        "foreground": "#f8f8f2",
        "border": "#6272a4",
        "highlight": "#8be9fd",
        "error": "#ff5555",
        "success": "#50fa7b",
    },
    "gruvbox": {
        "primary": "#fabd2f",
        "secondary": "#fe8019",
        "background": "#282828",
        "foreground": "#ebdbb2",
        "border": "#928374",
        "highlight": "#83a598",
        "error": "#cc241d",
        "success": "#b8bb26",
    },
}


def parse_color(token: Any) -> Optional[Color]:
    """
    Parses a color token: a terminal-safe name, `#rrggbb`, or an index 0-255.
    Returns None when the token is not recognised.
    """
    if not isinstance(token, str):
        return None
    value = token.strip().lower()

    if value in NAMED_COLORS:
        return Color.parse(NAMED_COLORS[value])

    if value.startswith("#"):
        if len(value) != 7:
            return None
        try:
            return Color.parse(value)
        except ColorParseError:
            return None

    if value.isdigit():
        index = int(value)
        if index <= 255:
            return Color.from_ansi(index)
    return None


class Palette(NamedTuple):
    """Eight resolved color slots handed to the renderer."""

    primary: Color
    secondary: Color
    background: Color
    foreground: Color
    border: Color
    highlight: Color
    error: Color
    success: Color

    def get(self, slot: str) -> Color:
        return getattr(self, slot)


def resolve_palette(theme: ThemeSpec) -> Palette:
    """
    Resolves each slot from the explicit token, then the named preset, then the default.
    """
    preset = BUILTIN_THEMES.get(theme.name.lower(), {})
    resolved = {}
    for slot in PALETTE_SLOTS:
        color = None
        token = theme.colors.get(slot)
        if token is not None:
            color = parse_color(token)
            if color is None:
                logger.warning(f"Invalid color '{token}' for theme slot '{slot}'; using fallback.")
        if color is None and slot in preset:
            color = parse_color(preset[slot])
        if color is None:
            color = parse_color(DEFAULT_COLORS[slot])
        resolved[slot] = color
    return Palette(**resolved)


# Palette slot each per-widget style field falls back to.
WIDGET_STYLE_FALLBACKS: Dict[str, str] = {
    "fg_color": "foreground",
    "bg_color": "background",
    "border_color": "border",
    "highlight_color": "primary",
    "selected_color": "secondary",
}


class ResolvedStyle(NamedTuple):
    """Concrete colors for one widget's frame and body."""

    fg: Color
    bg: Color
    border: Color
    highlight: Color
    selected: Color


def resolve_widget_style(style: WidgetStyle, palette: Palette, widget_name: str = "") -> ResolvedStyle:
    """Resolves a widget's style overrides, falling back to palette slots per field."""
    resolved = []
    for field, slot in WIDGET_STYLE_FALLBACKS.items():
        token = getattr(style, field)
        color = parse_color(token) if token is not None else None
        if token is not None and color is None:
            logger.warning(f"Invalid color '{token}' for widget '{widget_name}' style.{field}; using theme {slot}.")
        resolved.append(color or palette.get(slot))
    return ResolvedStyle(*resolved)


def theme_names() -> List[str]:
    return list(BUILTIN_THEMES)


def next_theme_name(current: str) -> str:
    """Cycles through the built-in presets; unknown names restart at the first."""
    names = theme_names()
    try:
        idx = names.index(current.lower())
    except ValueError:
        return names[0]
    return names[(idx + 1) % len(names)]
