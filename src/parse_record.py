"""
Record Parsing Module

Turns the fragments of one record group into a development application:
application number, address, description and received date. Each field is
read from the region delineated by its label and two neighbouring labels.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from common import (
    ADDRESS_SEPARATOR,
    COMMENT_URL,
    LABEL_APPLICANTS_NAME,
    LABEL_APPLICATION_DATE,
    LABEL_APPLICATION_NO,
    LABEL_APPLICATION_RECEIVED,
    LABEL_APPLICATION_RECEIVED_LOWER,
    LABEL_BUILDING_APPLICATION,
    LABEL_DEVELOPMENT_DESCRIPTION,
    LABEL_HOUSE_NO,
    LABEL_LAND_DIVISION_APPROVAL,
    LABEL_LOT,
    LABEL_PLANNING_APPROVAL,
    LABEL_PLANNING_CONDITIONS,
    LABEL_PRIVATE_CERTIFIER_NAME,
    LABEL_RELEVANT_AUTHORITY,
    LABEL_STREET,
    LABEL_SUBURB,
    LABEL_TITLE,
    NO_DESCRIPTION,
    collapse_whitespace,
    summarize_fragments,
)
from extract_fields import text_below, text_to_right_of
from locate_labels import has_literal_label
from reference_data import EMPTY_CATALOGUES, ReferenceCatalogues
from segment_records import RecordGroup

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParsedRecord:
    """A development application as stored and reported."""
    application_number: str
    address: str
    description: str
    information_url: str
    comment_url: str
    scrape_date: str
    received_date: str


# Label triples (field label, right boundary, bottom boundary)
APPLICATION_NUMBER_LABELS = (
    LABEL_APPLICATION_NO,
    LABEL_APPLICATION_DATE,
    (LABEL_APPLICANTS_NAME, LABEL_HOUSE_NO, LABEL_STREET),
)
HOUSE_NUMBER_LABELS = (LABEL_HOUSE_NO, LABEL_PLANNING_CONDITIONS, LABEL_LOT)
STREET_LABELS = (LABEL_STREET, LABEL_PLANNING_CONDITIONS, LABEL_SUBURB)
SUBURB_LABELS = (LABEL_SUBURB, LABEL_PLANNING_CONDITIONS, LABEL_TITLE)
DESCRIPTION_LABELS = (LABEL_DEVELOPMENT_DESCRIPTION, LABEL_RELEVANT_AUTHORITY, LABEL_PRIVATE_CERTIFIER_NAME)

# Received date label variants: literal printed on the page -> (primary, fallback)
RECEIVED_DATE_LABELS = {
    LABEL_APPLICATION_RECEIVED: (
        (LABEL_APPLICATION_RECEIVED, LABEL_PLANNING_APPROVAL, LABEL_LAND_DIVISION_APPROVAL),
        (LABEL_APPLICATION_DATE, LABEL_PLANNING_APPROVAL, LABEL_APPLICATION_RECEIVED),
    ),
    LABEL_APPLICATION_RECEIVED_LOWER: (
        (LABEL_APPLICATION_RECEIVED_LOWER, LABEL_PLANNING_APPROVAL, LABEL_BUILDING_APPLICATION),
        (LABEL_APPLICATION_DATE, LABEL_PLANNING_APPROVAL, LABEL_APPLICATION_RECEIVED_LOWER),
    ),
}

# OCR confuses the "/" in application numbers with these characters
_SLASH_CONFUSIONS_RE = re.compile(r"[Il,]")
_RECEIVED_DATE_RE = re.compile(r"\d{1,2}/\d{2}/\d{4}")
_HOUSE_NUMBER_RE = re.compile(r"\d+[a-zA-Z]?")
_HUNDRED_PREFIX_RE = re.compile(r"^HD ")


def parse_received_date(text: Optional[str]) -> str:
    """
    Parse a received date printed as D/MM/YYYY.

    Returns:
        The date as YYYY-MM-DD, or "" if the text is absent or not a
        valid date in exactly that form
    """
    if not text:
        return ""

    text = text.strip()
    if not _RECEIVED_DATE_RE.fullmatch(text):
        return ""
    try:
        return datetime.strptime(text, "%d/%m/%Y").date().isoformat()
    except ValueError:
        return ""


def _extract_received_date_text(fragments: list) -> Optional[str]:
    for literal, (primary, fallback) in RECEIVED_DATE_LABELS.items():
        if not has_literal_label(fragments, literal):
            continue
        text = text_to_right_of(fragments, *primary)
        if text is None:
            text = text_to_right_of(fragments, *fallback)
        return text
    return None


def _split_street_name(street_name: str, catalogues: ReferenceCatalogues) -> tuple[str, str]:
    """
    Split a street field holding two street names.

    Two separators mean "NAME1üNAME2 TYPE1üTYPE2": the middle token holds
    the second street's name followed by the first street's type, and the
    word boundary between them has to be guessed when the middle token has
    more than one space.
    """
    tokens = street_name.split(ADDRESS_SEPARATOR)

    if len(tokens) == 1:
        return street_name, street_name
    if len(tokens) == 2:
        return tokens[0], tokens[1]
    if len(tokens) > 3:
        return tokens[0], tokens[-1]

    prefix, middle, suffix = tokens
    words = middle.split(" ")

    if len(words) == 1:
        return prefix, f"{middle} {suffix}"
    if len(words) == 2:
        # "OLIVEüTUCKER PARADEüROAD" -> "OLIVE PARADE", "TUCKER ROAD"
        return f"{prefix} {words[1]}", f"{words[0]} {suffix}"
    if len(words) > 3:
        return f"{prefix} {' '.join(words[1:])}", f"{words[0]} {suffix}"

    # "ROSSLYNüSWIFT WINGS ROADüSTREET" is either "ROSSLYN WINGS ROAD" and
    # "SWIFT STREET", or "ROSSLYN ROAD" and "SWIFT WINGS STREET"
    street_name1 = f"{prefix} {words[1]} {words[2]}"
    street_name2 = f"{words[0]} {suffix}"
    if (catalogues.match_street_name(street_name1) is None
            and catalogues.match_street_name(street_name2) is None):
        street_name1 = f"{prefix} {words[2]}"
        street_name2 = f"{words[0]} {words[1]} {suffix}"
    return street_name1, street_name2


def _strip_hundred(suburb_name: str) -> str:
    return _HUNDRED_PREFIX_RE.sub("", suburb_name.strip())


def _looks_like_house_number(house_number: str) -> bool:
    return bool(house_number) and _HOUSE_NUMBER_RE.match(house_number.strip()) is not None


def split_merged_address(house_number: str, street_name: str, suburb_name: str,
                         catalogues: ReferenceCatalogues = EMPTY_CATALOGUES) -> str:
    """
    Build a single address from house number, street and suburb fields.

    Two addresses (typically the two frontages of a corner block) are
    sometimes recorded in the same fields, joined by a separator glyph:

        House Number: 79ü4
              Street: ROSSLYNüSWIFT WINGS ROADüROAD
              Suburb: WALLAROOüWALLAROO

    In that case the fields are split into two addresses and the one with
    a house number is preferred (the first when both or neither have one).

    Args:
        house_number: House number field ("" when absent)
        street_name: Street field
        suburb_name: Suburb field
        catalogues: Known street and suburb names

    Returns:
        Address formatted as "NUMBER STREET, SUBURB"
    """
    fields = (house_number, street_name, suburb_name)
    if not any(ADDRESS_SEPARATOR in value for value in fields):
        suburb_name = catalogues.canonical_suburb(_strip_hundred(suburb_name))
        return collapse_whitespace(f"{house_number} {street_name}, {suburb_name}")

    house_numbers = house_number.split(ADDRESS_SEPARATOR)
    house_number1 = house_numbers[0]
    house_number2 = house_numbers[1] if len(house_numbers) > 1 else ""

    street_name1, street_name2 = _split_street_name(street_name, catalogues)

    suburb_names = suburb_name.split(ADDRESS_SEPARATOR)
    suburb_name1 = _strip_hundred(suburb_names[0])
    suburb_name2 = _strip_hundred(suburb_names[1] if len(suburb_names) > 1 else suburb_names[0])

    if _looks_like_house_number(house_number1):
        chosen = (house_number1, street_name1, suburb_name1)
    elif _looks_like_house_number(house_number2):
        chosen = (house_number2, street_name2, suburb_name2)
    else:
        chosen = (house_number1, street_name1, suburb_name1)

    number, street, suburb = chosen
    return collapse_whitespace(f"{number} {street}, {catalogues.canonical_suburb(suburb)}")


def parse_record(group: RecordGroup, information_url: str,
                 catalogues: ReferenceCatalogues = EMPTY_CATALOGUES,
                 comment_url: str = COMMENT_URL,
                 scrape_date: Optional[str] = None) -> Optional[ParsedRecord]:
    """
    Parse the development application in a record group.

    Args:
        group: Fragments of one record
        information_url: URL of the source document
        catalogues: Known street and suburb names
        comment_url: Contact address reported with every application
        scrape_date: Date of the run (YYYY-MM-DD), defaults to today

    Returns:
        The parsed application, or None if the group has no application
        number, street name or suburb name
    """
    fragments = group.fragments

    application_number = text_to_right_of(fragments, *APPLICATION_NUMBER_LABELS)
    if not application_number:
        logger.info(
            "Could not find the application number for a record; it will be ignored. "
            f"Elements: {summarize_fragments(fragments)}"
        )
        return None
    application_number = _SLASH_CONFUSIONS_RE.sub("/", application_number)
    logger.debug(f"Found application \"{application_number}\"")

    received_date = parse_received_date(_extract_received_date_text(fragments))

    house_number = text_to_right_of(fragments, *HOUSE_NUMBER_LABELS)
    if house_number is None or house_number == "0":
        house_number = ""

    street_name = text_to_right_of(fragments, *STREET_LABELS)
    if not street_name or street_name == "0":
        logger.info(
            f"Application {application_number} will be ignored because there is no street name. "
            f"Elements: {summarize_fragments(fragments)}"
        )
        return None

    suburb_name = text_to_right_of(fragments, *SUBURB_LABELS)
    if not suburb_name or suburb_name == "0":
        logger.info(
            f"Application {application_number} will be ignored because there is no suburb name "
            f"for street \"{street_name}\". Elements: {summarize_fragments(fragments)}"
        )
        return None

    address = split_merged_address(house_number, street_name, suburb_name, catalogues)

    description = text_below(fragments, *DESCRIPTION_LABELS)
    if not description:
        description = NO_DESCRIPTION

    return ParsedRecord(
        application_number=application_number,
        address=address,
        description=description,
        information_url=information_url,
        comment_url=comment_url,
        scrape_date=scrape_date or date.today().isoformat(),
        received_date=received_date,
    )
