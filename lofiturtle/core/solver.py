"""
Region solver: partitions the terminal rectangle among visible widgets.

The vertical axis is split first (top bucket, middle band, bottom bucket),
then the middle band is split horizontally (left, center, right). Along each
axis sizes are assigned in three passes:

1. Length sizes are reserved. If they oversubscribe the axis they are scaled
   down proportionally to fit exactly.
2. Percentage sizes take their share of what remains after step 1. A bucket
   whose percentages sum past 100 is scaled back to 100, and the axis as a
   whole is capped at 100 the same way.
3. Fill sizes split whatever is left evenly. On the vertical axis the
   middle band only gets the rows that top and bottom leave over.

Rounding uses largest-remainder apportionment so totals are exact and
deterministic; ties go to the earlier entry.
"""

import logging
import math
from fractions import Fraction
from typing import Dict, List, NamedTuple, Sequence, Tuple

from lofiturtle.core.descriptor import (
    Fill,
    LayoutDescriptor,
    Length,
    Percentage,
    ResponsiveMode,
    WidgetSpec,
)
from lofiturtle.core.tree import LayoutTree, build_layout_tree

logger = logging.getLogger(__name__)


class Rect(NamedTuple):
    x: int
    y: int
    width: int
    height: int


class Region(NamedTuple):
    """A resolved rectangle owned by one widget for the current frame."""
    x: int
    y: int
    width: int
    height: int
    widget: str

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height


def _apportion(target: int, shares: Sequence[Fraction]) -> List[int]:
    """Rounds `shares` down, then hands out `target - sum` units by largest remainder."""
    floors = [math.floor(s) for s in shares]
    leftover = target - sum(floors)
    order = sorted(range(len(shares)), key=lambda i: (floors[i] - shares[i], i))
    for i in order[:max(leftover, 0)]:
        floors[i] += 1
    return floors


def _even_split(total: int, count: int) -> List[int]:
    if count <= 0:
        return []
    base, extra = divmod(total, count)
    return [base + 1 if i < extra else base for i in range(count)]


def allocate_axis(groups: Sequence[Sequence[WidgetSpec]], total: int) -> List[List[int]]:
    """Sizes every widget in `groups` along one axis of length `total`."""
    total = max(total, 0)
    sizes = [[0] * len(group) for group in groups]
    entries = [(g, i, w.size) for g, group in enumerate(groups) for i, w in enumerate(group)]

    # 1. Fixed lengths, clamped proportionally when they oversubscribe.
    lengths = [(g, i, s.length) for g, i, s in entries if isinstance(s, Length)]
    requested = sum(amount for _, _, amount in lengths)
    if requested > total:
        logger.debug(f"Length sizes oversubscribe axis ({requested} > {total}); clamping.")
        granted = _apportion(total, [Fraction(total * amount, requested) for _, _, amount in lengths])
    else:
        granted = [amount for _, _, amount in lengths]
    for (g, i, _), amount in zip(lengths, granted):
        sizes[g][i] = amount
    remaining = total - sum(granted)

    # 2. Percentages of the remainder.
    percents = [(g, i, Fraction(s.percentage)) for g, i, s in entries if isinstance(s, Percentage)]
    if percents:
        for g in range(len(groups)):
            group_sum = sum(p for pg, _, p in percents if pg == g)
            if group_sum > 100:
                percents = [(pg, i, p * 100 / group_sum if pg == g else p) for pg, i, p in percents]
        axis_sum = sum(p for _, _, p in percents)
        if axis_sum > 100:
            percents = [(g, i, p * 100 / axis_sum) for g, i, p in percents]
            axis_sum = Fraction(100)
        shares = [remaining * p / 100 for _, _, p in percents]
        granted = _apportion(math.floor(remaining * axis_sum / 100), shares)
        for (g, i, _), amount in zip(percents, granted):
            sizes[g][i] = amount
        remaining -= sum(granted)

    # 3. Fill entries split the rest evenly.
    fills = [(g, i) for g, i, s in entries if isinstance(s, Fill)]
    for (g, i), amount in zip(fills, _even_split(remaining, len(fills))):
        sizes[g][i] = amount
    return sizes


def _stack(widgets: Sequence[WidgetSpec], sizes: Sequence[int], start: int) -> List[Tuple[WidgetSpec, int, int]]:
    """Lays sizes end to end from `start`; returns (widget, offset, size)."""
    placed = []
    offset = start
    for widget, size in zip(widgets, sizes):
        placed.append((widget, offset, size))
        offset += size
    return placed


def is_collapsed(descriptor: LayoutDescriptor, width: int) -> bool:
    """True when `width` is compact and the layout collapses its side buckets."""
    responsive = descriptor.settings.responsive
    return responsive.collapse_sidebars and descriptor.responsive_mode(width) == ResponsiveMode.COMPACT


def effective_tree(descriptor: LayoutDescriptor, width: int) -> LayoutTree:
    """The bucket tree after the compact-width collapse rule is applied."""
    tree = build_layout_tree(descriptor.widgets)
    if is_collapsed(descriptor, width):
        if tree.left or tree.right:
            logger.debug(f"Width {width} is compact; collapsing left/right buckets.")
        return tree.without_sides()
    return tree


def solve_layout(descriptor: LayoutDescriptor, width: int, height: int) -> Dict[str, Region]:
    """
    Resolves a region for every visible, non-collapsed widget.
    Keys follow the descriptor's declaration order.
    """
    width = max(width, 0)
    height = max(height, 0)
    tree = effective_tree(descriptor, width)
    placed: Dict[str, Region] = {}

    # Phase 1: vertical split. The middle band takes what top and bottom leave.
    top_sizes, bottom_sizes = allocate_axis([tree.top, tree.bottom], height)
    top_total = sum(top_sizes)
    bottom_total = sum(bottom_sizes)
    for widget, y, h in _stack(tree.top, top_sizes, 0):
        placed[widget.name] = Region(0, y, width, h, widget.name)
    # Bottom is reserved from the lower edge but drawn in declared order.
    for widget, y, h in _stack(tree.bottom, bottom_sizes, height - bottom_total):
        placed[widget.name] = Region(0, y, width, h, widget.name)

    # Phase 2: horizontal split of the middle band.
    if tree.has_middle():
        middle = Rect(0, top_total, width, height - top_total - bottom_total)
        left_sizes, center_sizes, right_sizes = allocate_axis(
            [tree.left, tree.center, tree.right], middle.width
        )
        if tree.center and is_collapsed(descriptor, width):
            # Space freed by the collapsed sides goes to the center bucket.
            spare = middle.width - sum(center_sizes)
            center_sizes = [s + extra for s, extra in zip(center_sizes, _even_split(spare, len(center_sizes)))]
        left_total = sum(left_sizes)
        right_total = sum(right_sizes)
        columns = (
            _stack(tree.left, left_sizes, middle.x)
            + _stack(tree.center, center_sizes, middle.x + left_total)
            + _stack(tree.right, right_sizes, middle.x + middle.width - right_total)
        )
        for widget, x, w in columns:
            placed[widget.name] = Region(x, middle.y, w, middle.height, widget.name)

    return {w.name: placed[w.name] for w in descriptor.widgets if w.name in placed}
