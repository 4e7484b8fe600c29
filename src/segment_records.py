"""
Record Segmentation Module

Splits the fragments of a page into one group per development application.
A page usually holds one to three applications, each starting with an
"Application No" label; a record owns every fragment from the top of its
label's row down to the top of the next record's row.
"""

import logging
import math
from dataclasses import dataclass, field

from geometry import Rectangle, TextFragment, is_vertical_overlap, sort_reading_order, vertical_overlap_percentage
from locate_labels import MIN_ROW_OVERLAP, find_application_anchors

logger = logging.getLogger(__name__)


@dataclass
class RecordGroup:
    """The fragments of a page attributed to one development application."""
    start_fragment: TextFragment
    fragments: list[TextFragment] = field(default_factory=list)


def get_row_top(fragments: list[TextFragment], start: Rectangle) -> float:
    """
    Get the highest y of the row containing start.

    Only fragments overlapping start by more than half their height count,
    so very tall fragments cannot pull every row up to the same top.
    """
    top = start.y
    for fragment in fragments:
        if not is_vertical_overlap(start, fragment):
            continue
        if vertical_overlap_percentage(start, fragment) <= MIN_ROW_OVERLAP:
            continue
        if fragment.y < top:
            top = fragment.y
    return top


def _raised(anchor: TextFragment) -> Rectangle:
    # A field in the same row may sit a little higher than the label itself
    return Rectangle(anchor.x, anchor.y - anchor.height / 2, anchor.width, anchor.height)


def segment_page(fragments: list[TextFragment]) -> list[RecordGroup]:
    """
    Group the fragments of a page by development application.

    Args:
        fragments: All fragments of one page

    Returns:
        One RecordGroup per "Application No" label, top to bottom. A page
        without such labels (a cover page, say) yields an empty list.
    """
    fragments = sort_reading_order(fragments)
    anchors = find_application_anchors(fragments)
    if not anchors:
        return []

    row_tops = [get_row_top(fragments, _raised(anchor)) for anchor in anchors]

    groups = []
    for index, anchor in enumerate(anchors):
        row_top = row_tops[index]
        next_row_top = row_tops[index + 1] if index + 1 < len(row_tops) else math.inf
        members = [f for f in fragments if row_top <= f.y < next_row_top]
        groups.append(RecordGroup(start_fragment=anchor, fragments=members))

    logger.debug(f"Segmented page into {len(groups)} record group(s)")
    return groups
