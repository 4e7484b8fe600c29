"""
Development Application Extraction Module

Walks the pages of a council PDF, segments each page into record groups
and parses every group into a development application. Pages are handled
strictly in order because application numbers are made unique across the
whole document.
"""

import logging
from dataclasses import replace
from pathlib import Path
from typing import Iterable, Optional

import pdfplumber

from common import COMMENT_URL
from classify_document import classify_document
from config import Config, get_config
from extract_electronic import extract_page_fragments
from extract_scanned import extract_page_fragments_ocr
from geometry import TextFragment
from parse_record import ParsedRecord, parse_record
from reference_data import EMPTY_CATALOGUES, ReferenceCatalogues
from segment_records import segment_page

logger = logging.getLogger(__name__)

# Upper bound on pages read from one document, whatever it claims to hold
MAX_PAGES_PER_DOCUMENT = 500


def parse_page(fragments: list[TextFragment], information_url: str,
               catalogues: ReferenceCatalogues = EMPTY_CATALOGUES,
               comment_url: str = COMMENT_URL,
               scrape_date: Optional[str] = None) -> tuple[list[ParsedRecord], int]:
    """
    Parse every development application on one page.

    Args:
        fragments: All fragments of the page
        information_url: URL of the source document
        catalogues: Known street and suburb names
        comment_url: Contact address reported with every application
        scrape_date: Date of the run (YYYY-MM-DD), defaults to today

    Returns:
        Tuple of (parsed records, number of record groups found)
    """
    groups = segment_page(fragments)
    records = []
    for group in groups:
        record = parse_record(group, information_url, catalogues, comment_url, scrape_date)
        if record is not None:
            records.append(record)
    return records, len(groups)


def add_unique_record(records: list[ParsedRecord], record: ParsedRecord) -> ParsedRecord:
    """
    Append a record, suffixing its application number if already present.

    The same number turning up twice in one document means some digits
    were misread, so the second record is kept as "NUMBER (1)", the third
    as "NUMBER (2)" and so on.

    Returns:
        The record as appended
    """
    existing = {r.application_number for r in records}
    application_number = record.application_number
    suffix = 0
    while record.application_number in existing:
        suffix += 1
        record = replace(record, application_number=f"{application_number} ({suffix})")

    if suffix:
        logger.debug(f"Application number {application_number} repeated; stored as {record.application_number}")
    records.append(record)
    return record


def parse_pages(pages: Iterable[list[TextFragment]], information_url: str,
                catalogues: ReferenceCatalogues = EMPTY_CATALOGUES,
                max_pages: int = MAX_PAGES_PER_DOCUMENT,
                comment_url: str = COMMENT_URL,
                scrape_date: Optional[str] = None) -> list[ParsedRecord]:
    """
    Parse the development applications of a whole document.

    Args:
        pages: Fragments of each page, in page order
        information_url: URL of the source document
        catalogues: Known street and suburb names
        max_pages: Stop after this many pages
        comment_url: Contact address reported with every application
        scrape_date: Date of the run (YYYY-MM-DD), defaults to today

    Returns:
        Records with unique application numbers, in document order
    """
    records: list[ParsedRecord] = []
    for page_index, fragments in enumerate(pages):
        if page_index >= max_pages:
            logger.warning(f"Stopped after {max_pages} pages of {information_url}")
            break
        page_records, _ = parse_page(fragments, information_url, catalogues, comment_url, scrape_date)
        for record in page_records:
            add_unique_record(records, record)
    return records


def extract_development_applications(pdf_path: str | Path, information_url: Optional[str] = None,
                                     catalogues: ReferenceCatalogues = EMPTY_CATALOGUES,
                                     config: Optional[Config] = None) -> dict:
    """
    Extract the development applications from a PDF file.

    The document is classified first. Electronic pages are read from the
    text layer; scanned pages are read with OCR when it is available and
    skipped otherwise.

    Args:
        pdf_path: Path to the PDF file
        information_url: URL reported for every application (defaults to
            the file's URI)
        catalogues: Known street and suburb names
        config: Pipeline configuration (defaults to the global one)

    Returns:
        Dictionary with:
        - success: True if at least one application was parsed
        - applications: List of ParsedRecord
        - document_type: 'electronic', 'scanned', 'hybrid' or 'unknown'
        - page_count, pages_processed, pages_skipped
        - record_groups_found, record_groups_rejected
        - extraction_methods: Fragment sources used
        - error: Present if the PDF could not be read

    Raises:
        FileNotFoundError: If pdf_path does not exist
    """
    pdf_path = Path(pdf_path)
    config = config or get_config()
    information_url = information_url or pdf_path.resolve().as_uri()
    max_pages = min(config.extraction.max_pages_per_document, MAX_PAGES_PER_DOCUMENT)

    result = {
        "success": False,
        "applications": [],
        "document_type": "unknown",
        "page_count": 0,
        "pages_processed": [],
        "pages_skipped": [],
        "record_groups_found": 0,
        "record_groups_rejected": 0,
        "extraction_methods": [],
    }

    document_type, classification = classify_document(pdf_path, config.extraction.min_chars_per_page, max_pages)
    result["document_type"] = document_type
    if "error" in classification:
        result["error"] = classification["error"]
        return result

    image_pages = set(classification["image_pages"])
    records: list[ParsedRecord] = []

    try:
        with pdfplumber.open(pdf_path) as pdf:
            result["page_count"] = len(pdf.pages)

            for page_index in range(min(len(pdf.pages), max_pages)):
                page = pdf.pages[page_index]
                page_number = page_index + 1

                if page_number not in image_pages:
                    fragments = extract_page_fragments(page)
                    method = "pdfplumber"
                else:
                    fragments = extract_page_fragments_ocr(
                        pdf_path,
                        page_number,
                        dpi=config.ocr.dpi,
                        min_confidence=config.ocr.min_confidence,
                        page_segmentation_mode=config.ocr.page_segmentation_mode,
                        preprocess=config.ocr.preprocess,
                    )
                    method = "ocr_pytesseract"

                # Release the page's parsed objects before moving on
                page.flush_cache()

                if fragments is None:
                    logger.warning(f"{pdf_path.name}: page {page_number} has no text layer and could not be OCRed")
                    result["pages_skipped"].append(page_number)
                    continue

                logger.debug(f"Reading and parsing applications from page {page_number} of {len(pdf.pages)}")
                page_records, group_count = parse_page(
                    fragments,
                    information_url,
                    catalogues,
                    comment_url=config.extraction.comment_url,
                )
                del fragments

                result["record_groups_found"] += group_count
                result["record_groups_rejected"] += group_count - len(page_records)
                for record in page_records:
                    add_unique_record(records, record)

                result["pages_processed"].append(page_number)
                if method not in result["extraction_methods"]:
                    result["extraction_methods"].append(method)

            if len(pdf.pages) > max_pages:
                logger.warning(f"{pdf_path.name}: stopped after {max_pages} of {len(pdf.pages)} pages")

    except Exception as e:
        logger.error(f"Error extracting from {pdf_path}: {e}")
        result["error"] = str(e)

    result["applications"] = records
    result["success"] = len(records) > 0
    return result
