"""
Page Classification Module

Decides, page by page, whether text can be read from the PDF's text layer
('electronic') or has to be recognised from the page image ('scanned').
A register mixing both kinds of page is 'hybrid'.
"""

import logging
from pathlib import Path
from typing import Literal, Optional

import pdfplumber

logger = logging.getLogger(__name__)

PageType = Literal["electronic", "scanned"]
DocumentType = Literal["electronic", "scanned", "hybrid", "unknown"]


def classify_page(page, min_chars_per_page: int = 50) -> PageType:
    """A page is electronic when its text layer holds at least min_chars_per_page characters."""
    text = (page.extract_text() or "").strip()
    return "electronic" if len(text) >= min_chars_per_page else "scanned"


def document_type_from_pages(electronic_pages: list, image_pages: list) -> DocumentType:
    if electronic_pages and image_pages:
        return "hybrid"
    if electronic_pages:
        return "electronic"
    if image_pages:
        return "scanned"
    return "unknown"


def classify_document(pdf_path: str | Path, min_chars_per_page: int = 50,
                      max_pages: Optional[int] = None) -> tuple[DocumentType, dict]:
    """
    Classify every page of a PDF.

    Args:
        pdf_path: Path to the PDF file
        min_chars_per_page: Minimum characters of text for an electronic page
        max_pages: Classify only this many leading pages (all when None)

    Returns:
        Tuple of (document type, metadata) where metadata lists the
        1-indexed 'electronic_pages' and 'image_pages' and the 'page_count',
        or holds an 'error' if the PDF could not be read

    Raises:
        FileNotFoundError: If pdf_path does not exist
    """
    pdf_path = Path(pdf_path)
    if not pdf_path.exists():
        raise FileNotFoundError(f"PDF not found: {pdf_path}")

    pages: dict[PageType, list[int]] = {"electronic": [], "scanned": []}
    try:
        with pdfplumber.open(pdf_path) as pdf:
            for page in pdf.pages[:max_pages]:
                pages[classify_page(page, min_chars_per_page)].append(page.page_number)
                page.flush_cache()
            page_count = len(pdf.pages)
    except Exception as e:
        logger.error(f"Could not classify {pdf_path.name}: {e}")
        return "unknown", {"error": str(e)}

    metadata = {
        "page_count": page_count,
        "electronic_pages": pages["electronic"],
        "image_pages": pages["scanned"],
    }
    return document_type_from_pages(pages["electronic"], pages["scanned"]), metadata
