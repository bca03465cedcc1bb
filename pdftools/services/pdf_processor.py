import logging
import math
from typing import Dict, Iterable

import fitz  # PyMuPDF

from pdftools.errors import ToolInputError
from pdftools.models import RedactionArea, RedactionColor

logger = logging.getLogger(__name__)


def to_page_space(area: RedactionArea, page_height: float, scale: float = 1.0) -> fitz.Rect:
    """
    Convert a top-left origin screen rectangle into PDF user space.

    PDF pages have their origin at the bottom-left, so the rectangle's
    bottom edge lands at ``page_height - y - height``. ``scale`` is the
    number of screen pixels per PDF point on the canvas the rectangle
    was drawn on.
    """
    x = area.x / scale
    y = area.y / scale
    width = area.width / scale
    height = area.height / scale
    pdf_y = page_height - y - height
    return fitz.Rect(x, pdf_y, x + width, pdf_y + height)


def redact_pdf(
    pdf_bytes: bytes,
    areas: Iterable[RedactionArea],
    color: RedactionColor = RedactionColor.BLACK,
    scale: float = 1.0,
    remove_content: bool = False,
) -> bytes:
    if not math.isfinite(scale) or scale <= 0:
        raise ToolInputError("Canvas scale must be a finite number greater than zero")

    fill = color.rgb
    doc = fitz.open(stream=pdf_bytes, filetype="pdf")
    try:
        purged_pages: Dict[int, fitz.Page] = {}
        for area in areas:
            page_index = area.page - 1
            if page_index < 0 or page_index >= len(doc):
                logger.warning("Page %s not found, skipping redaction.", area.page)
                continue
            page = doc[page_index]
            pdf_rect = to_page_space(area, page.mediabox.height, scale)
            # PyMuPDF draws in a top-left origin space
            rect = pdf_rect * page.transformation_matrix
            if remove_content:
                page.add_redact_annot(rect, fill=fill)
                purged_pages[page_index] = page
            else:
                page.draw_rect(rect, color=None, fill=fill, width=0, fill_opacity=1, overlay=True)

        # apply once per page after all annotations are in place
        for page in purged_pages.values():
            page.apply_redactions(images=fitz.PDF_REDACT_IMAGE_NONE)

        return doc.tobytes(garbage=3, deflate=True)
    finally:
        doc.close()

