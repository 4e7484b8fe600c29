"""
Electronic PDF Extraction Module

Produces the positioned text fragments of an electronically generated PDF
page using pdfplumber. Characters are grouped into text runs the way a PDF
viewer reports them: a run continues across spaces and ends at a real gap
or a change of font. The height of a run is the rendered font size of its
glyphs, because the heights reported from the font metrics are exaggerated
in some of the council's documents.
"""

import logging

import pdfplumber

from geometry import TextFragment

logger = logging.getLogger(__name__)

# Largest gap (in points) between characters of the same text run
RUN_X_TOLERANCE = 3


def glyph_height(char: dict) -> float:
    """
    Rendered height of a glyph.

    pdfplumber's char 'size' is the font size scaled by the text and
    current transformation matrices. The char 'matrix' alone omits the font
    size, so an identity text matrix gives 1.0 there for text of any size.
    """
    return float(char["size"])


def words_to_fragments(words: list[dict]) -> list[TextFragment]:
    """
    Convert pdfplumber words (text runs) into text fragments.

    Args:
        words: Output of page.extract_words(return_chars=True)

    Returns:
        One fragment per non-blank run with trailing blanks removed. Runs
        without size information keep their bounding box height.
    """
    fragments = []
    for word in words:
        text = word.get("text", "")
        if not text.strip():
            continue

        # Blanks kept inside a run must not widen it at either end
        glyphs = [c for c in word.get("chars") or [] if c.get("text", "").strip()]
        if glyphs:
            x0 = min(c["x0"] for c in glyphs)
            x1 = max(c["x1"] for c in glyphs)
            top = min(c["top"] for c in glyphs)
        else:
            x0, x1, top = word["x0"], word["x1"], word["top"]

        sizes = [glyph_height(c) for c in glyphs if c.get("size")]
        height = max(sizes) if sizes else word["bottom"] - word["top"]

        fragments.append(TextFragment(
            x=float(x0),
            y=float(top),
            width=float(x1 - x0),
            height=float(height),
            text=text.strip(),
        ))
    return fragments


def extract_page_fragments(page: pdfplumber.page.Page) -> list[TextFragment]:
    """
    Extract the text fragments of an electronic page.

    Args:
        page: pdfplumber page

    Returns:
        Fragments in page coordinates (points, y increasing downward)
    """
    words = page.extract_words(
        x_tolerance=RUN_X_TOLERANCE,
        keep_blank_chars=True,
        use_text_flow=True,
        extra_attrs=["fontname", "size"],
        return_chars=True,
    )
    fragments = words_to_fragments(words)
    logger.debug(f"Page {page.page_number}: {len(fragments)} fragments from text layer")
    return fragments
