"""
Field Region Extraction Module

Reads the value of a field from the fragments that fall inside a rectangle
delineated by labels: the field's own label marks the top-left corner and
two neighbouring labels (optional) bound the right and bottom sides.
"""

import math
from typing import Optional, Sequence, Union

from common import collapse_whitespace
from geometry import Rectangle, TextFragment, intersect, sort_reading_order
from locate_labels import find_label, find_label_match

# A boundary is a label, a sequence of alternative labels (first found
# wins), or None for an unbounded side.
Boundary = Union[str, Sequence[str], None]


def _find_boundary(fragments: list[TextFragment], boundary: Boundary) -> Optional[TextFragment]:
    if boundary is None:
        return None
    if isinstance(boundary, str):
        return find_label(fragments, boundary, prefer_rightmost=False)

    for label in boundary:
        element = find_label(fragments, label, prefer_rightmost=False)
        if element is not None:
            return element
    return None


def _collect_text(fragments: list[TextFragment], bounds: Rectangle) -> Optional[str]:
    """
    Join the text of every fragment more than 50% inside bounds.

    Fragments with no area never qualify and a lone ":" is punctuation
    from the label, not part of the value.
    """
    inside = []
    for fragment in fragments:
        fragment_area = fragment.area
        if fragment_area <= 0:
            continue
        if intersect(fragment, bounds).area * 2 <= fragment_area:
            continue
        if fragment.text.strip() == ":":
            continue
        inside.append(fragment)

    if not inside:
        return None

    return collapse_whitespace(" ".join(f.text for f in sort_reading_order(inside)))


def _bounds(x: float, y: float, right: Optional[TextFragment],
            bottom: Optional[TextFragment]) -> Rectangle:
    width = math.inf if right is None else right.x - x
    height = math.inf if bottom is None else bottom.y - y
    return Rectangle(x, y, width, height)


def text_to_right_of(fragments: list[TextFragment], top_left_label: str,
                     right_label: Boundary = None,
                     bottom_label: Boundary = None) -> Optional[str]:
    """
    Get the text printed to the right of a label.

    The region starts at the label's right edge, level with the label's
    top, and extends to the left edge of right_label and the top of
    bottom_label (unbounded where those labels are absent).

    Args:
        fragments: Fragments of the record
        top_left_label: Label of the field, e.g. "Property Street"
        right_label: Label bounding the region on the right
        bottom_label: Label bounding the region below

    Returns:
        The joined text in reading order, or None if the label is not
        found or nothing lies inside the region
    """
    top_left = find_label(fragments, top_left_label, prefer_rightmost=True)
    if top_left is None:
        return None

    right = _find_boundary(fragments, right_label)
    bottom = _find_boundary(fragments, bottom_label)

    bounds = _bounds(top_left.right, top_left.y, right, bottom)
    return _collect_text(fragments, bounds)


def text_below(fragments: list[TextFragment], top_label: str,
               right_label: Boundary = None,
               bottom_label: Boundary = None) -> Optional[str]:
    """
    Get the text printed below a label.

    Same as text_to_right_of, except the region starts at the label's left
    edge, level with the label's bottom edge. A label split over several
    fragments starts at its first fragment.
    """
    match = find_label_match(fragments, top_label)
    if match is None:
        return None

    right = _find_boundary(fragments, right_label)
    bottom = _find_boundary(fragments, bottom_label)

    bounds = _bounds(match.element.x, match.rightmost_element.bottom, right, bottom)
    return _collect_text(fragments, bounds)
