"""
Overlap evaluation between axis-aligned rectangles.

The ratio is taken relative to BOTH boxes: a small box fully inside a large
one scores low, because the overlap is small relative to the large box.
"""

from __future__ import annotations

from objdet.core.contracts import Rectangle


def overlap_ratio(a: Rectangle, b: Rectangle) -> float:
    """
    Overlap of two rectangles in [0, 1].

    Returns min(intersection / area(a), intersection / area(b)), or 0.0 when
    the boxes are disjoint or either one has zero area.
    """
    area_a = a.area
    area_b = b.area
    if area_a <= 0 or area_b <= 0:
        return 0.0

    intersection = a.intersection(b)
    if intersection <= 0:
        return 0.0

    # min of the two ratios == intersection over the larger area
    return float(intersection) / float(max(area_a, area_b))


def meets_threshold(a: Rectangle, b: Rectangle, min_overlap_percent: int) -> bool:
    """
    Check overlap_ratio(a, b) * 100 >= min_overlap_percent without rounding.

    Identical boxes always pass, including at 100%.
    """
    if min_overlap_percent <= 0:
        return boxes_touch(a, b)

    larger_area = max(a.area, b.area)
    if larger_area <= 0:
        return False

    return a.intersection(b) * 100 >= min_overlap_percent * larger_area


def boxes_touch(a: Rectangle, b: Rectangle) -> bool:
    """True when the rectangles overlap or share at least an edge point."""
    x_left = max(a.x, b.x)
    y_top = max(a.y, b.y)
    x_right = min(a.x + a.width, b.x + b.width)
    y_bottom = min(a.y + a.height, b.y + b.height)
    return x_right >= x_left and y_bottom >= y_top
