"""
Immutable data model for a parsed layout file.
A reload never edits a descriptor; it builds a new one and swaps it in.
"""

import uuid
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def new_descriptor_id() -> str:
    return uuid.uuid4().hex[:12]


class Position(str, Enum):
    """Which bucket a widget is placed into."""
    TOP = "top"
    BOTTOM = "bottom"
    LEFT = "left"
    RIGHT = "right"
    CENTER = "center"


class WidgetType(str, Enum):
    SIDEBAR = "sidebar"
    PLAYLIST_VIEW = "playlist_view"
    NOW_PLAYING = "now_playing"
    PROGRESS_BAR = "progress_bar"
    STATUS_BAR = "status_bar"
    ALBUM_ART = "album_art"
    SEARCH_BOX = "search_box"


class ResponsiveMode(str, Enum):
    """Terminal width class derived from the responsive breakpoints."""
    COMPACT = "compact"
    NARROW = "narrow"
    NORMAL = "normal"
    WIDE = "wide"


class Percentage(BaseModel):
    model_config = ConfigDict(frozen=True)
    percentage: int = Field(..., ge=0, le=100)


class Length(BaseModel):
    model_config = ConfigDict(frozen=True)
    length: int = Field(..., ge=0)


class Fill(BaseModel):
    model_config = ConfigDict(frozen=True)


SizeSpec = Union[Percentage, Length, Fill]


def coerce_size(value: Any) -> SizeSpec:
    """Converts the TOML forms `{percentage = N}`, `{length = N}` and `"fill"`."""
    if isinstance(value, (Percentage, Length, Fill)):
        return value
    if value == "fill":
        return Fill()
    if isinstance(value, dict) and len(value) == 1:
        kind, amount = next(iter(value.items()))
        if kind in ("percentage", "length"):
            if isinstance(amount, bool) or not isinstance(amount, int):
                raise ValueError(f"{kind} must be an integer, got {amount!r}")
            if kind == "percentage":
                if not 0 <= amount <= 100:
                    raise ValueError(f"percentage must lie in 0..=100, got {amount}")
                return Percentage(percentage=amount)
            if amount < 0:
                raise ValueError(f"length must not be negative, got {amount}")
            return Length(length=amount)
    raise ValueError(f'expected {{percentage = N}}, {{length = N}} or "fill", got {value!r}')


class WidgetStyle(BaseModel):
    """Per-widget color overrides; unset or unreadable tokens fall back to the palette."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    fg_color: Optional[str] = None
    bg_color: Optional[str] = None
    border_color: Optional[str] = None
    highlight_color: Optional[str] = None
    selected_color: Optional[str] = None


class WidgetSpec(BaseModel):
    """One declared widget. `type` and `position` are independent fields."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    name: str = Field(..., min_length=1)
    widget_type: WidgetType = Field(..., alias="type")
    position: Position
    size: SizeSpec = Field(default_factory=Fill)
    visible: bool = True
    border: bool = True
    title: Optional[str] = None
    style: WidgetStyle = Field(default_factory=WidgetStyle)

    @field_validator("size", mode="before")
    @classmethod
    def _coerce_size(cls, value: Any) -> SizeSpec:
        return coerce_size(value)


class ThemeSpec(BaseModel):
    """Raw theme tokens; resolution into colors happens in the theme module."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str = "default"
    colors: Dict[str, Any] = Field(default_factory=dict)


class ResponsiveBreakpoints(BaseModel):
    model_config = ConfigDict(frozen=True)

    small_width: int = Field(80, ge=0)
    medium_width: int = Field(120, ge=0)
    large_width: int = Field(160, ge=0)
    collapse_sidebars: bool = True

    @model_validator(mode="after")
    def _check_ascending(self) -> "ResponsiveBreakpoints":
        if not self.small_width < self.medium_width < self.large_width:
            raise ValueError(
                "breakpoints must be strictly ascending: "
                f"small_width={self.small_width}, medium_width={self.medium_width}, "
                f"large_width={self.large_width}"
            )
        return self


class SettingsBlock(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    auto_save: bool = True
    debounce_ms: int = Field(300, ge=0)
    responsive: ResponsiveBreakpoints = Field(default_factory=ResponsiveBreakpoints)


class LayoutDescriptor(BaseModel):
    """A fully parsed and validated layout snapshot."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    version: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    theme: ThemeSpec = Field(default_factory=ThemeSpec)
    widgets: Tuple[WidgetSpec, ...] = ()
    keybindings: Dict[str, str] = Field(default_factory=dict)
    settings: SettingsBlock = Field(default_factory=SettingsBlock)
    descriptor_id: str = Field(default_factory=new_descriptor_id)

    def get_widget(self, name: str) -> Optional[WidgetSpec]:
        return next((w for w in self.widgets if w.name == name), None)

    def is_widget_visible(self, name: str) -> bool:
        widget = self.get_widget(name)
        return widget is not None and widget.visible

    def visible_widgets(self) -> List[WidgetSpec]:
        return [w for w in self.widgets if w.visible]

    def widgets_by_position(self, position: Position) -> List[WidgetSpec]:
        return [w for w in self.widgets if w.visible and w.position == position]

    def responsive_mode(self, terminal_width: int) -> ResponsiveMode:
        """Classifies a terminal width against the configured breakpoints."""
        bp = self.settings.responsive
        if terminal_width < bp.small_width:
            return ResponsiveMode.COMPACT
        if terminal_width < bp.medium_width:
            return ResponsiveMode.NARROW
        if terminal_width < bp.large_width:
            return ResponsiveMode.NORMAL
        return ResponsiveMode.WIDE

    def replace(self, **changes: Any) -> "LayoutDescriptor":
        """Returns a copy with `changes` applied and a fresh descriptor id."""
        changes["descriptor_id"] = new_descriptor_id()
        return self.model_copy(update=changes)
