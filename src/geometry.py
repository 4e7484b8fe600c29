"""
Geometry Primitives

Positioned text fragments and the rectangle arithmetic used to reconstruct
rows and field regions from them. Coordinates are page points with the
origin at the top-left corner and y increasing downward.
"""

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class Rectangle:
    """An axis-aligned rectangle. Unbounded sides use math.inf."""
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def area(self) -> float:
        return self.width * self.height


@dataclass(frozen=True)
class TextFragment(Rectangle):
    """One positioned run of text as reported by the fragment source."""
    text: str


ZERO_RECTANGLE = Rectangle(0, 0, 0, 0)

# Fragments starting further left than this share of the origin's width
# (measured back from its right edge) are not considered to be "to the right"
_HORIZONTAL_OVERLAP_FACTOR = 0.2


def intersect(rectangle1: Rectangle, rectangle2: Rectangle) -> Rectangle:
    """
    Intersect two rectangles.

    Args:
        rectangle1: First rectangle (or fragment)
        rectangle2: Second rectangle (or fragment)

    Returns:
        The overlapping rectangle, or ZERO_RECTANGLE when they do not overlap
    """
    x1 = max(rectangle1.x, rectangle2.x)
    y1 = max(rectangle1.y, rectangle2.y)
    x2 = min(rectangle1.right, rectangle2.right)
    y2 = min(rectangle1.bottom, rectangle2.bottom)

    if x2 >= x1 and y2 >= y1:
        return Rectangle(x1, y1, x2 - x1, y2 - y1)
    return ZERO_RECTANGLE


def is_vertical_overlap(rectangle1: Rectangle, rectangle2: Rectangle) -> bool:
    """Return True if the two rectangles share some vertical extent."""
    return rectangle2.y < rectangle1.bottom and rectangle2.bottom > rectangle1.y


def vertical_overlap_percentage(rectangle1: Rectangle, rectangle2: Rectangle) -> float:
    """
    Percentage of rectangle2's height that overlaps rectangle1 vertically.

    Asymmetric: a tall rectangle2 spanning several rows only partly overlaps
    a single row, which is how tall "shadow" fragments get rejected.

    Returns:
        A value from 0 (no overlap) to 100 (rectangle2 fully within the
        vertical extent of rectangle1)
    """
    if rectangle2.height <= 0:
        return 0.0

    y1 = max(rectangle1.y, rectangle2.y)
    y2 = min(rectangle1.bottom, rectangle2.bottom)
    if y2 < y1:
        return 0.0
    return ((y2 - y1) * 100) / rectangle2.height


def distance_squared(fragment1: Rectangle, fragment2: Rectangle) -> float:
    """
    Squared distance from the right-middle of fragment1 to the left-middle
    of fragment2.

    Returns math.inf when fragment2 starts too far back inside fragment1
    (more than 20% of fragment1's width before its right edge).
    """
    x1 = fragment1.right
    y1 = fragment1.y + fragment1.height / 2
    x2 = fragment2.x
    y2 = fragment2.y + fragment2.height / 2

    if x2 < x1 - fragment1.width * _HORIZONTAL_OVERLAP_FACTOR:
        return math.inf
    return (x2 - x1) * (x2 - x1) + (y2 - y1) * (y2 - y1)


def sort_reading_order(fragments: list[TextFragment]) -> list[TextFragment]:
    """Sort fragments top-to-bottom, then left-to-right."""
    return sorted(fragments, key=lambda fragment: (fragment.y, fragment.x))
