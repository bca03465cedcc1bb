"""
PDF tools - one function per route, bytes in, bytes out.
"""
import io
import logging
import zipfile
from typing import Dict, Iterable, List, Optional, Tuple

import fitz  # PyMuPDF

from pdftools.errors import ToolInputError
from pdftools.models import SplitRange

logger = logging.getLogger(__name__)

GRAY = (0.5, 0.5, 0.5)
BLACK = (0, 0, 0)


def _open(pdf_bytes: bytes) -> fitz.Document:
    return fitz.open(stream=pdf_bytes, filetype="pdf")


def _save(doc: fitz.Document, **options) -> bytes:
    return doc.tobytes(garbage=3, deflate=True, **options)


def _zip(entries: Iterable[Tuple[str, bytes]]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        for name, content in entries:
            archive.writestr(name, content)
    return buffer.getvalue()


def _single_pages(doc: fitz.Document, page_numbers: Iterable[int], name_width: int = 0):
    for page_number in page_numbers:
        part = fitz.open()
        try:
            part.insert_pdf(doc, from_page=page_number - 1, to_page=page_number - 1)
            yield f"page_{str(page_number).zfill(name_width)}.pdf", _save(part)
        finally:
            part.close()


def count_pages(pdf_bytes: bytes) -> int:
    doc = _open(pdf_bytes)
    try:
        return len(doc)
    finally:
        doc.close()


def rotate_pages(
    pdf_bytes: bytes,
    angle: int = 90,
    page_numbers: Optional[List[int]] = None,
    all_pages: bool = False,
) -> bytes:
    """Add ``angle`` degrees to the rotation of the selected pages."""
    if angle % 90 != 0:
        raise ToolInputError("Rotation angle must be a multiple of 90 degrees")
    if not all_pages and not page_numbers:
        raise ToolInputError("No pages selected for rotation")

    doc = _open(pdf_bytes)
    try:
        if all_pages:
            targets = range(len(doc))
        else:
            targets = [n - 1 for n in page_numbers if 1 <= n <= len(doc)]
        for index in targets:
            page = doc[index]
            page.set_rotation((page.rotation + angle) % 360)
        return _save(doc)
    finally:
        doc.close()


def add_watermark(
    pdf_bytes: bytes,
    text: str,
    opacity: float = 0.5,
    font_size: int = 50,
    rotation: int = -45,
) -> bytes:
    if not text:
        raise ToolInputError("Watermark text is required")
    if not 0 <= opacity <= 1:
        raise ToolInputError("Watermark opacity must be between 0 and 1")

    doc = _open(pdf_bytes)
    try:
        for page in doc:
            center = fitz.Point(page.rect.width / 2, page.rect.height / 2)
            # counter-clockwise angles in PDF space are clockwise on screen
            page.insert_text(
                center,
                text,
                fontname="helv",
                fontsize=font_size,
                color=GRAY,
                fill_opacity=opacity,
                stroke_opacity=opacity,
                morph=(center, fitz.Matrix(-rotation)),
            )
        return _save(doc)
    finally:
        doc.close()


def page_number_position(
    position: str,
    page_width: float,
    page_height: float,
    text_width: float,
    font_size: float,
) -> Tuple[float, float]:
    """Baseline start of a page label in PDF space (origin bottom-left)."""
    margin = font_size
    if "left" in position:
        x = margin
    elif "right" in position:
        x = page_width - text_width - margin
    else:
        x = (page_width - text_width) / 2

    if "top" in position:
        y = page_height - margin - font_size
    else:
        y = margin
    return x, y


def add_page_numbers(
    pdf_bytes: bytes,
    start_number: int = 1,
    position: str = "bottom-center",
    prefix: str = "",
    suffix: str = "",
    font_size: int = 12,
) -> bytes:
    if font_size <= 0:
        raise ToolInputError("Font size must be greater than zero")

    doc = _open(pdf_bytes)
    try:
        for index, page in enumerate(doc):
            label = f"{prefix}{start_number + index}{suffix}"
            text_width = fitz.get_text_length(label, fontname="helv", fontsize=font_size)
            x, y = page_number_position(
                position, page.mediabox.width, page.mediabox.height, text_width, font_size
            )
            point = fitz.Point(x, y) * page.transformation_matrix
            page.insert_text(point, label, fontname="helv", fontsize=font_size, color=BLACK)
        return _save(doc)
    finally:
        doc.close()


def remove_pages(pdf_bytes: bytes, pages_to_remove: List[int]) -> bytes:
    doc = _open(pdf_bytes)
    try:
        if not pages_to_remove:
            raise ToolInputError("No valid pages specified to remove")
        if len(set(pages_to_remove)) >= len(doc):
            raise ToolInputError("Cannot remove all pages from the PDF")
        removed = set(pages_to_remove)
        doc.select([i for i in range(len(doc)) if i + 1 not in removed])
        return _save(doc)
    finally:
        doc.close()


def extract_pages(pdf_bytes: bytes, page_numbers: List[int]) -> bytes:
    if not page_numbers:
        raise ToolInputError("No valid pages specified in page range")
    doc = _open(pdf_bytes)
    try:
        doc.select([n - 1 for n in page_numbers])
        return _save(doc)
    finally:
        doc.close()


def extract_pages_archive(pdf_bytes: bytes, page_numbers: List[int]) -> bytes:
    """One single-page PDF per requested page, zipped."""
    if not page_numbers:
        raise ToolInputError("No valid pages specified in page range")
    doc = _open(pdf_bytes)
    try:
        width = len(str(len(page_numbers)))
        return _zip(_single_pages(doc, page_numbers, width))
    finally:
        doc.close()


def merge_pdfs(documents: Iterable[Tuple[str, bytes]]) -> bytes:
    merged = fitz.open()
    try:
        for filename, content in documents:
            try:
                source = _open(content)
            except Exception:
                logger.warning("Error processing file %s, skipping it", filename, exc_info=True)
                continue
            try:
                merged.insert_pdf(source)
            finally:
                source.close()

        if len(merged) == 0:
            raise ToolInputError("No valid PDF files to merge")
        return _save(merged)
    finally:
        merged.close()


def split_pdf(pdf_bytes: bytes, method: str, ranges: Optional[List[SplitRange]] = None) -> bytes:
    if method not in ("single", "range"):
        raise ToolInputError("Invalid split method")

    doc = _open(pdf_bytes)
    try:
        if method == "single":
            return _zip(_single_pages(doc, range(1, len(doc) + 1)))

        entries = []
        for item in ranges or []:
            if item.start < 1 or item.end > len(doc) or item.start > item.end:
                logger.info("Skipping split range %s-%s", item.start, item.end)
                continue
            part = fitz.open()
            try:
                part.insert_pdf(doc, from_page=item.start - 1, to_page=item.end - 1)
                entries.append((f"range_{item.start}-{item.end}.pdf", _save(part)))
            finally:
                part.close()
        return _zip(entries)
    finally:
        doc.close()


def protect_pdf(
    pdf_bytes: bytes,
    user_password: str = "",
    owner_password: str = "",
    can_print: bool = False,
    can_modify: bool = False,
    can_copy: bool = False,
    can_annotate: bool = False,
) -> bytes:
    if not user_password and not owner_password:
        raise ToolInputError("At least one password (user or owner) is required")

    permissions = fitz.PDF_PERM_ACCESSIBILITY
    if can_print:
        permissions |= fitz.PDF_PERM_PRINT | fitz.PDF_PERM_PRINT_HQ
    if can_modify:
        permissions |= fitz.PDF_PERM_MODIFY | fitz.PDF_PERM_ASSEMBLE
    if can_copy:
        permissions |= fitz.PDF_PERM_COPY
    if can_annotate:
        permissions |= fitz.PDF_PERM_ANNOTATE | fitz.PDF_PERM_FORM

    doc = _open(pdf_bytes)
    try:
        return _save(
            doc,
            encryption=fitz.PDF_ENCRYPT_AES_256,
            user_pw=user_password,
            owner_pw=owner_password or user_password,
            permissions=permissions,
        )
    finally:
        doc.close()


def unlock_pdf(pdf_bytes: bytes, password: str) -> bytes:
    if not password:
        raise ToolInputError("Password is required to unlock the PDF")

    doc = _open(pdf_bytes)
    try:
        if not doc.needs_pass or not doc.authenticate(password):
            raise ToolInputError("Incorrect password or the PDF is not encrypted")
        return _save(doc, encryption=fitz.PDF_ENCRYPT_NONE)
    finally:
        doc.close()


def extract_text(pdf_bytes: bytes, page_numbers: List[int]) -> Dict[str, str]:
    """Plain text of each requested page, keyed ``page_<n>``."""
    if not page_numbers:
        raise ToolInputError("Invalid page range provided")
    doc = _open(pdf_bytes)
    try:
        return {f"page_{n}": doc[n - 1].get_text() for n in page_numbers}
    finally:
        doc.close()
