"""
Reference Data Module

Loads the street and suburb name catalogues used to untangle merged
addresses and to normalise suburb spelling. Catalogues are loaded once per
run and passed explicitly to the parsing functions.

File formats (one entry per line, upper-cased and trimmed on load):
- streetnames.txt: STREET NAME,SUBURB (a street may be listed per suburb)
- suburbnames.txt: RAW SUBURB TOKEN,CANONICAL SUBURB NAME
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from common import closest_match

logger = logging.getLogger(__name__)

# Largest edit distance accepted when matching a street name
STREET_MATCH_DISTANCE = 2


@dataclass(frozen=True)
class ReferenceCatalogues:
    """Known street names (with their suburbs) and canonical suburb names."""
    street_names: dict = field(default_factory=dict)
    suburb_names: dict = field(default_factory=dict)

    def match_street_name(self, street_name: str,
                          max_distance: int = STREET_MATCH_DISTANCE) -> Optional[str]:
        """Return the closest known street name, or None."""
        if not self.street_names:
            return None
        return closest_match(street_name, list(self.street_names), max_distance)

    def canonical_suburb(self, suburb_name: str) -> str:
        """Map a suburb token to its canonical name (case-insensitive)."""
        return self.suburb_names.get(suburb_name.strip().upper(), suburb_name)


EMPTY_CATALOGUES = ReferenceCatalogues()


def _read_pairs(path: Path) -> list[tuple[str, str]]:
    """Read "FIRST,SECOND" lines, skipping blank or malformed ones."""
    pairs = []
    with open(path, "r", encoding="utf-8") as f:
        for line_number, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            tokens = line.upper().split(",")
            if len(tokens) < 2:
                logger.warning(f"{path.name}:{line_number}: expected two comma separated values")
                continue
            pairs.append((tokens[0].strip(), tokens[1].strip()))
    return pairs


def load_street_names(path: str | Path) -> dict[str, tuple[str, ...]]:
    """
    Load the street name catalogue.

    Args:
        path: Path to streetnames.txt

    Returns:
        Mapping of street name to the suburbs it is known in
    """
    path = Path(path)
    if not path.exists():
        logger.warning(f"Street name file not found: {path}")
        return {}

    street_names: dict[str, list[str]] = {}
    for street_name, suburb_name in _read_pairs(path):
        street_names.setdefault(street_name, []).append(suburb_name)

    logger.debug(f"Loaded {len(street_names)} street names from {path}")
    return {name: tuple(suburbs) for name, suburbs in street_names.items()}


def load_suburb_names(path: str | Path) -> dict[str, str]:
    """
    Load the suburb name catalogue.

    Args:
        path: Path to suburbnames.txt

    Returns:
        Mapping of raw (upper-case) suburb token to canonical suburb name
    """
    path = Path(path)
    if not path.exists():
        logger.warning(f"Suburb name file not found: {path}")
        return {}

    suburb_names = dict(_read_pairs(path))
    logger.debug(f"Loaded {len(suburb_names)} suburb names from {path}")
    return suburb_names


def load_reference_catalogues(street_names_path: Optional[str | Path],
                              suburb_names_path: Optional[str | Path]) -> ReferenceCatalogues:
    """Load both catalogues; a missing path gives an empty catalogue."""
    street_names = load_street_names(street_names_path) if street_names_path else {}
    suburb_names = load_suburb_names(suburb_names_path) if suburb_names_path else {}
    return ReferenceCatalogues(street_names=street_names, suburb_names=suburb_names)
