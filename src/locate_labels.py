"""
Label Locator Module

Finds the fragments that make up a field label on a page. A single printed
label is usually split over several fragments and is frequently mangled by
the text layer ("N0" for "No"), so labels are matched by chaining fragments
to the right and comparing the condensed text with an edit-distance
tolerance of up to two characters.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from common import (
    APPLICATION_NO_MISREADINGS,
    LABEL_APPLICATION_NO,
    closest_match,
    normalize_label_text,
)
from geometry import TextFragment, distance_squared, is_vertical_overlap, vertical_overlap_percentage

logger = logging.getLogger(__name__)

# Largest horizontal gap (in points) between words of the same text run
MAX_NEIGHBOR_GAP = 30
# Minimum share of a neighbour's height that must overlap the origin row
MIN_ROW_OVERLAP = 50
# Longest run of fragments joined while looking for a label
MAX_CHAIN_LENGTH = 5
# Slack (in characters) allowed between a chain's text and the label
LENGTH_TOLERANCE = 2

_ANCHOR_TEXT = normalize_label_text(LABEL_APPLICATION_NO)
_ANCHOR_MIN_LENGTH = 13
_ANCHOR_MAX_LENGTH = 16


@dataclass
class LabelMatch:
    """A run of fragments whose joined text matches a label."""
    element: TextFragment
    rightmost_element: TextFragment
    text_found_so_far: str
    edit_distance_threshold: int


# =============================================================================
# Lateral neighbours
# =============================================================================

def right_neighbor(fragments: list[TextFragment], origin: TextFragment) -> Optional[TextFragment]:
    """
    Get the fragment that continues the text of origin to its right.

    Candidates must overlap origin's row by more than 50% of their own
    height, start strictly right of origin's right edge and less than
    MAX_NEIGHBOR_GAP points away from it. The closest candidate wins.

    Args:
        fragments: All fragments on the page (or in a record group)
        origin: Fragment to look to the right of

    Returns:
        The closest qualifying fragment, or None
    """
    closest = None
    closest_distance = None

    for fragment in fragments:
        if not is_vertical_overlap(origin, fragment):
            continue
        if vertical_overlap_percentage(origin, fragment) <= MIN_ROW_OVERLAP:
            continue
        if fragment.x <= origin.right:
            continue
        if fragment.x - origin.right >= MAX_NEIGHBOR_GAP:
            continue

        distance = distance_squared(origin, fragment)
        if closest is None or distance < closest_distance:
            closest = fragment
            closest_distance = distance

    return closest


def _walk_right(fragments: list[TextFragment], start: TextFragment):
    """Yield the growing chain of fragments read rightward from start."""
    chain = []
    current = start
    while current is not None and len(chain) < MAX_CHAIN_LENGTH:
        chain.append(current)
        yield chain
        current = right_neighbor(fragments, current)


def _score(text: str, target: str) -> Optional[int]:
    """Return 0 for an exact match, 1 or 2 for a fuzzy match, else None."""
    if text == target:
        return 0
    for threshold in (1, 2):
        if closest_match(text, [target], threshold) is not None:
            return threshold
    return None


def _best_match(matches: list[LabelMatch], target: str) -> Optional[LabelMatch]:
    """Lowest threshold first, then the length closest to the target."""
    if not matches:
        return None
    return min(
        matches,
        key=lambda m: (m.edit_distance_threshold, abs(len(m.text_found_so_far) - len(target))),
    )


# =============================================================================
# Label search
# =============================================================================

def find_label_match(fragments: list[TextFragment], text: str) -> Optional[LabelMatch]:
    """
    Find the run of fragments that most closely matches a label.

    Every fragment starting with the label's first character is the start
    of a chain of up to five rightward neighbours. Whenever the chain's
    condensed text is within two characters of the label's length it is
    scored: exact match, or edit distance 1, or edit distance 2.

    Args:
        fragments: Fragments to search
        text: Label text, e.g. "Property Street"

    Returns:
        The best LabelMatch, or None
    """
    target = normalize_label_text(text)
    if not target:
        return None

    first_character = target[0]
    matches = []

    for start in fragments:
        if not start.text.strip().lower().startswith(first_character):
            continue

        for chain in _walk_right(fragments, start):
            current_text = normalize_label_text("".join(f.text for f in chain))
            if len(current_text) > len(target) + LENGTH_TOLERANCE:
                break
            if len(current_text) < len(target) - LENGTH_TOLERANCE:
                continue

            threshold = _score(current_text, target)
            if threshold is not None:
                matches.append(LabelMatch(
                    element=chain[0],
                    rightmost_element=chain[-1],
                    text_found_so_far=current_text,
                    edit_distance_threshold=threshold,
                ))

    return _best_match(matches, target)


def find_label(fragments: list[TextFragment], text: str,
               prefer_rightmost: bool = False) -> Optional[TextFragment]:
    """
    Find the leftmost (or, with prefer_rightmost, the rightmost) fragment
    of the run that most closely matches a label.
    """
    best = find_label_match(fragments, text)
    if best is None:
        return None
    return best.rightmost_element if prefer_rightmost else best.element


def _condense_anchor_text(chain: list[TextFragment]) -> str:
    text = normalize_label_text("".join(f.text for f in chain))
    for misreading, replacement in APPLICATION_NO_MISREADINGS:
        text = text.replace(misreading, replacement)
    return text


def find_application_anchors(fragments: list[TextFragment]) -> list[TextFragment]:
    """
    Find every "Application No" label on a page.

    Each development application on a page begins with this label, so the
    returned fragments mark where records start. Common misreadings of "No"
    ("N0", "N°", quote-prefixed forms) are accepted.

    Args:
        fragments: All fragments on the page

    Returns:
        The last fragment of each matching label ("No"), sorted top to bottom
    """
    anchors = []

    for start in fragments:
        if not start.text.strip().lower().startswith(_ANCHOR_TEXT[0]):
            continue

        matches = []
        for chain in _walk_right(fragments, start):
            current_text = _condense_anchor_text(chain)
            if len(current_text) >= _ANCHOR_MAX_LENGTH:
                break
            if len(current_text) < _ANCHOR_MIN_LENGTH:
                continue

            threshold = _score(current_text, _ANCHOR_TEXT)
            if threshold is not None:
                matches.append(LabelMatch(
                    element=chain[0],
                    rightmost_element=chain[-1],
                    text_found_so_far=current_text,
                    edit_distance_threshold=threshold,
                ))

        best = _best_match(matches, _ANCHOR_TEXT)
        if best is not None:
            anchors.append(best.rightmost_element)

    anchors.sort(key=lambda fragment: fragment.y)
    logger.debug(f"Found {len(anchors)} application anchor(s)")
    return anchors


def has_literal_label(fragments: list[TextFragment], literal: str) -> bool:
    """
    Check (case-sensitively) whether a label is printed verbatim.

    The label may be a single fragment or a run of neighbouring fragments
    that read as the literal when joined by single spaces.
    """
    first_word = literal.split(" ")[0]

    for start in fragments:
        if start.text.strip() == literal:
            return True
        if not start.text.strip().startswith(first_word):
            continue

        for chain in _walk_right(fragments, start):
            joined = " ".join(f.text.strip() for f in chain)
            if joined == literal:
                return True
            if len(joined) > len(literal):
                break

    return False
