"""
Common Utilities and Constants

Shared label literals, placeholders and text helpers used across the
layout-reconstruction and record-parsing modules.
"""

import re
from typing import Iterable, Optional

from rapidfuzz import process
from rapidfuzz.distance import Levenshtein


# Field labels printed on the development application register
LABEL_APPLICATION_NO = "Application No"
LABEL_APPLICATION_DATE = "Application Date"
LABEL_APPLICANTS_NAME = "Applicants Name"
LABEL_APPLICATION_RECEIVED = "Application Received"
LABEL_APPLICATION_RECEIVED_LOWER = "Application received"
LABEL_PLANNING_APPROVAL = "Planning Approval"
LABEL_LAND_DIVISION_APPROVAL = "Land Division Approval"
LABEL_BUILDING_APPLICATION = "Building Application"
LABEL_HOUSE_NO = "Property House No"
LABEL_STREET = "Property Street"
LABEL_SUBURB = "Property Suburb"
LABEL_PLANNING_CONDITIONS = "Planning Conditions"
LABEL_LOT = "Lot"
LABEL_TITLE = "Title"
LABEL_DEVELOPMENT_DESCRIPTION = "Development Description"
LABEL_RELEVANT_AUTHORITY = "Relevant Authority"
LABEL_PRIVATE_CERTIFIER_NAME = "Private Certifier Name"

# Two addresses recorded in one field are joined by this glyph
ADDRESS_SEPARATOR = "ü"

NO_DESCRIPTION = "No Description Provided"
COMMENT_URL = "mailto:bbc@bbc.sa.gov.au"

# Characters ignored when comparing label text
_LABEL_NOISE_RE = re.compile(r"[\s,\-_]")
_MULTI_SPACE_RE = re.compile(r"\s\s+")

# OCR misreadings of "No" seen in front of application numbers
APPLICATION_NO_MISREADINGS = [
    ("n0", "no"),
    ("n°", "no"),
    ('"o', "no"),
    ('"0', "no"),
    ('"°', "no"),
    ("“°", "no"),
    ("”o", "no"),
]


def normalize_label_text(text: str) -> str:
    """
    Condense label text for comparison.

    Removes whitespace, commas, hyphens and underscores and lowercases
    the result, so that "Application No" and "application-no" compare equal.

    Args:
        text: Raw label or fragment text

    Returns:
        Condensed lowercase text
    """
    return _LABEL_NOISE_RE.sub("", text or "").lower()


def collapse_whitespace(text: str) -> str:
    """Trim text and collapse runs of whitespace to a single space."""
    return _MULTI_SPACE_RE.sub(" ", (text or "").strip())


def closest_match(text: str, candidates: Iterable[str], max_distance: int) -> Optional[str]:
    """
    Find the candidate closest to text by edit distance.

    Comparison ignores case and surrounding whitespace. The lowest distance
    within max_distance wins; ties go to the earliest candidate.

    Args:
        text: Text to look up
        candidates: Known strings to compare against
        max_distance: Largest edit distance accepted

    Returns:
        The matching candidate, or None if none is close enough
    """
    if text is None:
        return None

    match = process.extractOne(
        text,
        candidates,
        scorer=Levenshtein.distance,
        processor=lambda s: s.strip().lower(),
        score_cutoff=max_distance,
    )
    if match is None:
        return None
    return match[0]


def summarize_fragments(fragments: list) -> str:
    """Render fragment texts as "[a][b][c]" for log messages."""
    return "".join(f"[{fragment.text}]" for fragment in fragments)
