import logging
from typing import List, Optional

from fastapi import APIRouter, File, Form, UploadFile
from fastapi.responses import JSONResponse

from pdftools.errors import ToolInputError
from pdftools.models import RedactionArea, RedactionColor, SplitRange, ToolInfo, ToolList
from pdftools.services import tools
from pdftools.services.pdf_processor import redact_pdf
from pdftools.services.pipeline import (
    file_response,
    parse_json_field,
    pdf_response,
    read_pdf,
    tool_errors,
    zip_response,
)
from pdftools.utils.files import pdf_stem
from pdftools.utils.pages import parse_page_range

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/pdf", tags=["PDF"])

TOOLS = [
    ToolInfo(name="redact", path="/api/pdf/redact", description="Paint opaque boxes over page regions"),
    ToolInfo(name="rotate", path="/api/pdf/rotate", description="Rotate some or all pages"),
    ToolInfo(name="watermark", path="/api/pdf/watermark", description="Stamp text across every page"),
    ToolInfo(name="add-page-numbers", path="/api/pdf/add-page-numbers", description="Label every page with its number"),
    ToolInfo(name="remove-pages", path="/api/pdf/remove-pages", description="Drop pages by range"),
    ToolInfo(name="extract-pages", path="/api/pdf/extract-pages", description="Keep only the pages in a range"),
    ToolInfo(name="merge", path="/api/pdf/merge", description="Join several PDFs into one"),
    ToolInfo(name="split", path="/api/pdf/split", description="Split a PDF into pages or ranges"),
    ToolInfo(name="protect", path="/api/pdf/protect", description="Encrypt with user/owner passwords"),
    ToolInfo(name="unlock", path="/api/pdf/unlock", description="Remove password protection"),
    ToolInfo(name="extract-text", path="/api/pdf/extract-text", description="Pull plain text out of pages"),
]


@router.get("/tools", response_model=ToolList)
def list_tools():
    return ToolList(tools=TOOLS)


@router.post("/redact")
async def redact(
    pdf: Optional[UploadFile] = File(None),
    redaction_areas: Optional[str] = Form(None, alias="redactionAreas"),
    redaction_color: str = Form("black", alias="redactionColor"),
    canvas_scale: float = Form(1.0, alias="canvasScale"),
    remove_content: bool = Form(False, alias="removeContent"),
):
    with tool_errors("redact PDF"):
        content = await read_pdf(pdf)
        areas = [RedactionArea(**item) for item in parse_json_field(redaction_areas, [])]
        if not areas:
            raise ToolInputError("No redaction areas provided")
        logger.info("Redacting %d area(s) in %s", len(areas), pdf.filename)
        result = redact_pdf(
            content,
            areas,
            color=RedactionColor(redaction_color),
            scale=canvas_scale,
            remove_content=remove_content,
        )
    return pdf_response(result, "redacted.pdf")


@router.post("/rotate")
async def rotate(
    pdf: Optional[UploadFile] = File(None),
    rotation_angle: int = Form(90, alias="rotationAngle"),
    page_numbers: Optional[str] = Form(None, alias="pageNumbers"),
    all_pages: bool = Form(False, alias="allPages"),
):
    with tool_errors("rotate PDF"):
        content = await read_pdf(pdf)
        pages = [int(n) for n in parse_json_field(page_numbers, [])]
        result = tools.rotate_pages(content, rotation_angle, pages, all_pages)
    return pdf_response(result, "rotated.pdf")


@router.post("/watermark")
async def watermark(
    file: Optional[UploadFile] = File(None),
    watermark_text: str = Form("", alias="watermarkText"),
    watermark_opacity: float = Form(0.5, alias="watermarkOpacity"),
    watermark_size: int = Form(50, alias="watermarkSize"),
    watermark_rotation: int = Form(-45, alias="watermarkRotation"),
):
    with tool_errors("add watermark to PDF"):
        content = await read_pdf(file)
        result = tools.add_watermark(
            content,
            watermark_text,
            opacity=watermark_opacity,
            font_size=watermark_size,
            rotation=watermark_rotation,
        )
    return pdf_response(result, "watermarked.pdf")


@router.post("/add-page-numbers")
async def add_page_numbers(
    pdf: Optional[UploadFile] = File(None),
    start_number: int = Form(1, alias="startNumber"),
    position: str = Form("bottom-center"),
    prefix: str = Form(""),
    suffix: str = Form(""),
    font_size: int = Form(12, alias="fontSize"),
):
    with tool_errors("add page numbers to PDF"):
        content = await read_pdf(pdf)
        result = tools.add_page_numbers(
            content,
            start_number=start_number,
            position=position or "bottom-center",
            prefix=prefix,
            suffix=suffix,
            font_size=font_size,
        )
    return pdf_response(result, "numbered.pdf")


@router.post("/remove-pages")
async def remove_pages(
    pdf: Optional[UploadFile] = File(None),
    page_range: str = Form("", alias="pageRange"),
):
    with tool_errors("remove pages from PDF"):
        content = await read_pdf(pdf, "No PDF file provided")
        if not page_range.strip():
            raise ToolInputError("No page range provided")
        pages = parse_page_range(page_range, tools.count_pages(content))
        result = tools.remove_pages(content, pages)

    filename = pdf_stem(pdf.filename)
    if len(pages) == 1:
        filename += f"_removed_page{pages[0]}"
    else:
        filename += f"_removed_{len(pages)}_pages"
    return pdf_response(result, f"{filename}.pdf")


@router.post("/extract-pages")
async def extract_pages(
    pdf: Optional[UploadFile] = File(None),
    page_range: str = Form("", alias="pageRange"),
    output_option: str = Form("single", alias="outputOption"),
):
    with tool_errors("extract pages from PDF"):
        content = await read_pdf(pdf, "No PDF file provided")
        if not page_range.strip():
            raise ToolInputError("No page range provided")
        pages = parse_page_range(page_range, tools.count_pages(content))
        if output_option == "multiple" and len(pages) > 1:
            archive = tools.extract_pages_archive(content, pages)
            return zip_response(archive, f"{pdf_stem(pdf.filename)}_pages.zip")
        result = tools.extract_pages(content, pages)

    filename = pdf_stem(pdf.filename)
    if len(pages) == 1:
        filename += f"_page{pages[0]}"
    else:
        filename += f"_pages{len(pages)}"
    return pdf_response(result, f"{filename}.pdf")


@router.post("/merge")
async def merge(pdfs: Optional[List[UploadFile]] = File(None)):
    with tool_errors("merge PDFs"):
        uploads = [upload for upload in pdfs or [] if upload is not None and upload.filename]
        if not uploads:
            raise ToolInputError("No PDF files uploaded")
        documents = []
        for upload in uploads:
            try:
                documents.append((upload.filename, await read_pdf(upload)))
            except ToolInputError as e:
                logger.warning("Skipping %s: %s", upload.filename, e)
        result = tools.merge_pdfs(documents)
    return pdf_response(result, "merged.pdf")


@router.post("/split")
async def split(
    pdf: Optional[UploadFile] = File(None),
    split_method: str = Form("", alias="splitMethod"),
    ranges: Optional[str] = Form(None),
):
    with tool_errors("split PDF"):
        content = await read_pdf(pdf)
        split_ranges = [SplitRange(**item) for item in parse_json_field(ranges, [])]
        result = tools.split_pdf(content, split_method, split_ranges)
    return zip_response(result, "split_pdfs.zip")


@router.post("/protect")
async def protect(
    pdf: Optional[UploadFile] = File(None),
    user_password: str = Form("", alias="userPassword"),
    owner_password: str = Form("", alias="ownerPassword"),
    can_print: bool = Form(False, alias="canPrint"),
    can_modify: bool = Form(False, alias="canModify"),
    can_copy: bool = Form(False, alias="canCopy"),
    can_annotate: bool = Form(False, alias="canAnnotate"),
):
    with tool_errors("protect PDF"):
        content = await read_pdf(pdf)
        result = tools.protect_pdf(
            content,
            user_password=user_password,
            owner_password=owner_password,
            can_print=can_print,
            can_modify=can_modify,
            can_copy=can_copy,
            can_annotate=can_annotate,
        )
    return pdf_response(result, "protected.pdf")


@router.post("/unlock")
async def unlock(
    pdf: Optional[UploadFile] = File(None),
    password: str = Form(""),
):
    with tool_errors("process PDF"):
        content = await read_pdf(pdf)
        result = tools.unlock_pdf(content, password)
    return pdf_response(result, "unlocked.pdf")


@router.post("/extract-text")
async def extract_text(
    pdf: Optional[UploadFile] = File(None),
    page_range: str = Form("all", alias="pageRange"),
    output_format: str = Form("text", alias="format"),
):
    with tool_errors("extract text from PDF"):
        content = await read_pdf(pdf, "No PDF file provided")
        pages = parse_page_range(page_range or "all", tools.count_pages(content), strict=False)
        result = tools.extract_text(content, pages)

    if output_format == "json":
        return JSONResponse(result)
    full_text = "".join(text + "\n\n" for text in result.values())
    return file_response(
        full_text.encode("utf-8"),
        "text/plain; charset=utf-8",
        f"{pdf_stem(pdf.filename)}_text.txt",
    )
