"""
Shared request handling for the tool routes:
upload -> validated options -> PyMuPDF call -> streamed response.
"""
import io
import json
import logging
from contextlib import contextmanager
from typing import Any, Optional
from urllib.parse import quote

from fastapi import HTTPException, UploadFile
from fastapi.responses import StreamingResponse

from pdftools.config import MAX_UPLOAD_BYTES, MAX_UPLOAD_MB
from pdftools.errors import ToolInputError
from pdftools.utils.files import is_pdf_filename

logger = logging.getLogger(__name__)

PDF_MEDIA_TYPE = "application/pdf"


async def read_pdf(upload: Optional[UploadFile], missing_message: str = "No PDF file uploaded") -> bytes:
    if upload is None or not upload.filename:
        raise ToolInputError(missing_message)
    if not is_pdf_filename(upload.filename) and upload.content_type != PDF_MEDIA_TYPE:
        raise ToolInputError("Only PDF files are accepted")

    content = await upload.read()
    if not content:
        raise ToolInputError("Uploaded PDF file is empty")
    if len(content) > MAX_UPLOAD_BYTES:
        raise ToolInputError(f"File exceeds the {MAX_UPLOAD_MB}MB upload limit")
    return content


def parse_json_field(raw: Optional[str], default: Any) -> Any:
    """Decode a JSON-encoded form field; a missing field yields ``default``."""
    if raw is None or raw == "":
        return default
    return json.loads(raw)


@contextmanager
def tool_errors(action: str):
    """
    Translate failures inside a tool route into HTTP errors.

    ToolInputError -> 400 with its message
    anything else  -> 500 "Failed to <action>"
    """
    try:
        yield
    except HTTPException:
        raise
    except ToolInputError as e:
        logger.info("Rejected request to %s: %s", action, e)
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.exception("Error trying to %s", action)
        raise HTTPException(status_code=500, detail=f"Failed to {action}")


def content_disposition(filename: str) -> str:
    """
    Attachment header value for ``filename``.

    Header values are latin-1, so non-ASCII names get an ASCII fallback
    plus the RFC 5987 ``filename*`` form carrying the real name.
    """
    fallback = filename.encode("ascii", "ignore").decode("ascii")
    if fallback == filename:
        return f'attachment; filename="{filename}"'
    if not fallback or fallback[0] in "._":
        fallback = "document" + fallback
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"


def file_response(content: bytes, media_type: str, filename: str) -> StreamingResponse:
    return StreamingResponse(
        io.BytesIO(content),
        media_type=media_type,
        headers={"Content-Disposition": content_disposition(filename)},
    )


def pdf_response(content: bytes, filename: str) -> StreamingResponse:
    return file_response(content, PDF_MEDIA_TYPE, filename)


def zip_response(content: bytes, filename: str) -> StreamingResponse:
    return file_response(content, "application/zip", filename)
