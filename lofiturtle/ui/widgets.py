"""
Custom Textual widgets for the LofiTurtle TUI.
Includes the LayoutView that places one framed box per resolved region.
"""

from typing import Dict, Optional

from rich.style import Style
from rich.text import Text
from textual import events
from textual.color import Color
from textual.message import Message
from textual.widget import Widget
from textual.widgets import Static

from lofiturtle.core.descriptor import WidgetSpec
from lofiturtle.core.engine import LayoutEngine
from lofiturtle.core.solver import Region
from lofiturtle.core.theme import ResolvedStyle


class ActionRequested(Message):
    """Posted for bound actions that are handled outside the layout engine."""

    def __init__(self, action: str, key: str):
        super().__init__()
        self.action = action
        self.key = key


class RegionBox(Static):
    """One widget's region: a framed, titled box positioned inside the LayoutView."""

    DEFAULT_CSS = """
    RegionBox {
        position: absolute;
        padding: 0 1;
    }
    """

    def __init__(self, widget_name: str, **kwargs):
        super().__init__("", **kwargs)
        self.widget_name = widget_name

    def place(self, spec: WidgetSpec, region: Region, style: ResolvedStyle, label: Optional[str] = None):
        """Applies the region's geometry and the widget's colors."""
        self.display = region.width > 0 and region.height > 0
        self.styles.offset = (region.x, region.y)
        self.styles.width = region.width
        self.styles.height = region.height
        self.styles.color = Color.from_rich_color(style.fg)
        self.styles.background = Color.from_rich_color(style.bg)

        if spec.border:
            self.styles.border = ("round", Color.from_rich_color(style.border))
            self.border_title = spec.title
            self.styles.border_title_color = Color.from_rich_color(style.highlight)
            self.styles.border_title_style = "bold"
        else:
            self.styles.border = ("none", Color.from_rich_color(style.border))
            self.border_title = None

        body = Text(no_wrap=True, overflow="crop")
        if spec.title and not spec.border:
            body.append(spec.title, style=Style(color=style.highlight, bold=True))
            if label:
                body.append("\n")
        if label:
            body.append(label, style=Style(color=style.selected))
        self.update(body)


class LayoutView(Widget):
    """Full-screen container holding a RegionBox for every resolved region."""

    DEFAULT_CSS = """
    LayoutView {
        width: 100%;
        height: 100%;
        overflow: hidden hidden;
    }
    """

    def __init__(self, engine: LayoutEngine, **kwargs):
        super().__init__(**kwargs)
        self.engine = engine
        self.boxes: Dict[str, RegionBox] = {}
        self.labels: Dict[str, str] = {}

    def on_mount(self) -> None:
        self.redraw()

    def on_resize(self, event: events.Resize) -> None:
        self.engine.resize(event.size.width, event.size.height)
        self.redraw()

    def set_label(self, widget_name: str, text: Optional[str]):
        """Sets the one-line body shown inside a region."""
        if text is None:
            self.labels.pop(widget_name, None)
        else:
            self.labels[widget_name] = text

    def redraw(self):
        """Re-solves regions and syncs the boxes: drops stale ones, places the rest."""
        if not self.is_attached:
            return
        regions = self.engine.resolve()
        descriptor = self.engine.descriptor
        for name in list(self.boxes):
            if name not in regions:
                self.boxes.pop(name).remove()

        new_boxes = []
        for name, region in regions.items():
            box = self.boxes.get(name)
            if box is None:
                box = self.boxes[name] = RegionBox(name)
                new_boxes.append(box)
            box.place(descriptor.get_widget(name), region, self.engine.style_for(name), self.labels.get(name))
        if new_boxes:
            self.mount_all(new_boxes)
