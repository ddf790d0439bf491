"""
Groups visible widgets into position buckets ahead of region solving.
"""

from typing import Dict, Iterable, List

from lofiturtle.core.descriptor import Position, WidgetSpec

BUCKET_ORDER = (Position.TOP, Position.BOTTOM, Position.LEFT, Position.CENTER, Position.RIGHT)
_BUCKET_RANK = {position: rank for rank, position in enumerate(BUCKET_ORDER)}


class LayoutTree:
    """Five ordered buckets of visible widgets, keyed by position."""

    def __init__(self, buckets: Dict[Position, List[WidgetSpec]]):
        self.buckets = {position: list(buckets.get(position, [])) for position in BUCKET_ORDER}

    def __getitem__(self, position: Position) -> List[WidgetSpec]:
        return self.buckets[position]

    @property
    def top(self) -> List[WidgetSpec]:
        return self.buckets[Position.TOP]

    @property
    def bottom(self) -> List[WidgetSpec]:
        return self.buckets[Position.BOTTOM]

    @property
    def left(self) -> List[WidgetSpec]:
        return self.buckets[Position.LEFT]

    @property
    def center(self) -> List[WidgetSpec]:
        return self.buckets[Position.CENTER]

    @property
    def right(self) -> List[WidgetSpec]:
        return self.buckets[Position.RIGHT]

    def has_middle(self) -> bool:
        """True when any of the left/center/right buckets holds a widget."""
        return bool(self.left or self.center or self.right)

    def without_sides(self) -> "LayoutTree":
        """Returns a tree with the left and right buckets emptied."""
        buckets = dict(self.buckets)
        buckets[Position.LEFT] = []
        buckets[Position.RIGHT] = []
        return LayoutTree(buckets)

    def widget_names(self) -> List[str]:
        return [w.name for position in BUCKET_ORDER for w in self.buckets[position]]


def build_layout_tree(widgets: Iterable[WidgetSpec]) -> LayoutTree:
    """
    Filters to visible widgets and buckets them by position.
    Declaration order is preserved inside every bucket.
    """
    indexed = [(idx, w) for idx, w in enumerate(widgets) if w.visible]
    indexed.sort(key=lambda item: (_BUCKET_RANK[item[1].position], item[0]))

    buckets: Dict[Position, List[WidgetSpec]] = {position: [] for position in BUCKET_ORDER}
    for _, widget in indexed:
        buckets[widget.position].append(widget)
    return LayoutTree(buckets)
