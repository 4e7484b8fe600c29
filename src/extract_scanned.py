"""
Scanned Page Extraction Module

Produces positioned text fragments for pages without a text layer. The page
is rendered with pdf2image (Poppler), optionally cleaned up with OpenCV, and
read with Tesseract through pytesseract. Word boxes come back in image pixels
and are scaled to PDF points so the layout thresholds used for electronic
pages apply unchanged.
"""

import logging
import os
import shutil
from pathlib import Path
from typing import Optional

from geometry import TextFragment

logger = logging.getLogger(__name__)

# OpenCV is only needed for the optional binarisation step
try:
    import cv2
    import numpy as np
    CV2_AVAILABLE = True
except ImportError:
    CV2_AVAILABLE = False

try:
    import pytesseract
    from pdf2image import convert_from_path
    OCR_AVAILABLE = True
except ImportError:
    OCR_AVAILABLE = False

PDF_POINTS_PER_INCH = 72


def find_poppler_bin(search_paths: list, program_files: Optional[str] = None) -> Optional[str]:
    """
    Find a directory holding Poppler's pdftoppm.

    Versioned installs (poppler-*/Library/bin or poppler-*/bin under
    Program Files, newest name first) are tried before search_paths.
    """
    program_files = program_files or os.environ.get("ProgramFiles", r"C:\Program Files")
    candidates = []
    for poppler_dir in sorted(Path(program_files).glob("poppler-*"), reverse=True):
        candidates.extend([poppler_dir / "Library" / "bin", poppler_dir / "bin"])
    candidates.extend(Path(p) for p in search_paths)

    for directory in candidates:
        if (directory / "pdftoppm.exe").exists() or (directory / "pdftoppm").exists():
            return str(directory)
    return None


def configure_ocr_binaries(tesseract_paths: list, poppler_paths: list) -> None:
    """
    Point pytesseract at Tesseract and put Poppler on PATH when either is
    not already found on PATH.

    Runs in the parent and again in every worker process, since workers
    started with spawn do not inherit pytesseract's settings.
    """
    if OCR_AVAILABLE and not shutil.which("tesseract"):
        candidate = next((p for p in tesseract_paths if os.path.exists(p)), None)
        if candidate:
            pytesseract.pytesseract.tesseract_cmd = candidate
            logger.debug(f"Tesseract binary: {candidate}")

    if not shutil.which("pdftoppm"):
        poppler_bin = find_poppler_bin(poppler_paths)
        path = os.environ.get("PATH", "")
        if poppler_bin and poppler_bin not in path.split(os.pathsep):
            os.environ["PATH"] = poppler_bin + os.pathsep + path
            logger.debug(f"Poppler binaries: {poppler_bin}")


def check_ocr_available() -> dict:
    """
    Report whether scanned pages can be read.

    Returns:
        Dictionary with 'available' (all of pdf2image, pytesseract, the
        tesseract binary and Poppler's pdftoppm found) and 'errors'
    """
    errors = []
    tesseract_found = False

    if OCR_AVAILABLE:
        try:
            version = pytesseract.get_tesseract_version()
            tesseract_found = True
            logger.debug(f"Tesseract {version}")
        except Exception as e:
            errors.append(f"Tesseract binary not usable: {e}")
    else:
        errors.append("pytesseract and pdf2image are required for scanned pages")

    poppler_found = shutil.which("pdftoppm") is not None
    if not poppler_found:
        errors.append("Poppler (pdftoppm) not found in PATH")

    return {
        "available": OCR_AVAILABLE and tesseract_found and poppler_found,
        "pytesseract": OCR_AVAILABLE,
        "tesseract_binary": tesseract_found,
        "poppler_binary": poppler_found,
        "preprocessing": CV2_AVAILABLE,
        "errors": errors,
    }


def _binarize(image):
    """
    Greyscale conversion followed by adaptive thresholding and a median blur.

    Returns the image unchanged when OpenCV is missing or fails.
    """
    if not CV2_AVAILABLE:
        return image

    try:
        from PIL import Image

        pixels = np.asarray(image)
        if pixels.ndim == 3:
            pixels = cv2.cvtColor(pixels, cv2.COLOR_RGB2GRAY)
        pixels = cv2.adaptiveThreshold(
            pixels, 255, cv2.ADAPTIVE_THRESH_GAUSSIAN_C, cv2.THRESH_BINARY, 11, 2
        )
        return Image.fromarray(cv2.medianBlur(pixels, 3))
    except Exception as e:
        logger.debug(f"Skipping OCR preprocessing: {e}")
        return image


def ocr_data_to_fragments(data: dict, dpi: int, min_confidence: int = 20) -> list[TextFragment]:
    """
    Convert pytesseract.image_to_data() output into text fragments.

    Args:
        data: Output dictionary of image_to_data (Output.DICT)
        dpi: Resolution the page image was rendered at
        min_confidence: Words below this confidence are dropped

    Returns:
        One fragment per recognised word, in PDF points
    """
    scale = PDF_POINTS_PER_INCH / dpi
    fragments = []

    for i in range(len(data["text"])):
        text = str(data["text"][i]).strip()
        try:
            conf = float(data["conf"][i])
        except (TypeError, ValueError):
            conf = -1

        if not text or conf < min_confidence:
            continue

        fragments.append(TextFragment(
            x=data["left"][i] * scale,
            y=data["top"][i] * scale,
            width=data["width"][i] * scale,
            height=data["height"][i] * scale,
            text=text,
        ))

    return fragments


def extract_page_fragments_ocr(pdf_path: str | Path, page_number: int, dpi: int = 200,
                               min_confidence: int = 20, page_segmentation_mode: int = 6,
                               preprocess: bool = True) -> Optional[list[TextFragment]]:
    """
    OCR one page of a PDF into text fragments.

    Args:
        pdf_path: Path to the PDF file
        page_number: 1-indexed page number
        dpi: Rendering resolution
        min_confidence: Minimum Tesseract word confidence
        page_segmentation_mode: Tesseract --psm value
        preprocess: Binarise the page image before OCR

    Returns:
        Fragments in PDF points, or None if OCR is unavailable or failed
    """
    if not OCR_AVAILABLE:
        logger.warning(f"Cannot OCR page {page_number}: pytesseract/pdf2image not installed")
        return None

    try:
        rendered = convert_from_path(str(pdf_path), dpi=dpi, first_page=page_number, last_page=page_number)
        if not rendered:
            return None

        page_image = _binarize(rendered[0]) if preprocess else rendered[0]
        data = pytesseract.image_to_data(
            page_image,
            config=f"--psm {page_segmentation_mode}",
            output_type=pytesseract.Output.DICT,
        )
    except Exception as e:
        logger.warning(f"OCR failed for page {page_number} of {Path(pdf_path).name}: {e}")
        return None

    fragments = ocr_data_to_fragments(data, dpi, min_confidence)
    logger.debug(f"Page {page_number}: {len(fragments)} fragments from OCR")
    return fragments
