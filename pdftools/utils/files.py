import os
import re


def is_pdf_filename(filename: str) -> bool:
    return (filename or "").lower().endswith(".pdf")


def pdf_stem(filename: str) -> str:
    """Base name of an uploaded file without directories or the .pdf suffix."""
    name = os.path.basename(filename or "") or "document.pdf"
    stem = re.sub(r"\.pdf$", "", name, flags=re.IGNORECASE)
    # keep the Content-Disposition header well formed
    return re.sub(r'["\\\r\n]', "", stem) or "document"
