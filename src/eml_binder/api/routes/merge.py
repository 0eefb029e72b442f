"""
Merge endpoints - combine PDF attachments into one downloadable document.
"""

from typing import Sequence

from fastapi import APIRouter, File, HTTPException, UploadFile
from fastapi.responses import Response
import structlog

from ...config import settings
from ...errors import FileDecodeError, MergeEmptyError
from ...importer import decode_file
from ...models.api_models import MergeRequest
from ...models.email_document import Attachment, AttachmentKind
from ...pdf import merge_pdf_attachments, safe_file_name
from ...pdf.delivery import PDF_MIME_TYPE
from .ingest import read_upload

logger = structlog.get_logger(__name__)
router = APIRouter()


def _merge_response(attachments: Sequence[Attachment], filename: str) -> Response:
    try:
        result = merge_pdf_attachments(attachments)
    except MergeEmptyError as e:
        raise HTTPException(
            status_code=422,
            detail={
                "error": e.message,
                "failures": [f.model_dump() for f in e.failures],
            },
        )

    name = safe_file_name(filename, default=settings.merged_pdf_filename)
    return Response(
        content=result.pdf_bytes,
        media_type=PDF_MIME_TYPE,
        headers={
            "Content-Disposition": f'attachment; filename="{name}"',
            "X-Merged-Count": str(result.merged_count),
            "X-Failed-Count": str(result.failed_count),
            "X-Page-Count": str(result.page_count),
        },
    )


@router.post("")
async def merge_attachments(request: MergeRequest) -> Response:
    """
    Merge the pdf attachments of the request, in request order.

    Returns:
        The merged PDF as an attachment download; 422 if nothing could be merged
    """
    pdf_attachments = [a for a in request.attachments if a.kind == AttachmentKind.PDF]
    logger.info(
        "Merge requested",
        attachments=len(request.attachments),
        pdf_attachments=len(pdf_attachments),
    )
    return _merge_response(pdf_attachments, request.filename or settings.merged_pdf_filename)


@router.post("/eml")
async def merge_file_attachments(
    file: UploadFile = File(..., description=".eml or .msg file whose PDFs to merge"),
) -> Response:
    """Decode one mail file and merge all of its PDF attachments."""
    data = await read_upload(file)

    try:
        message = decode_file(file.filename, data)
    except FileDecodeError as e:
        raise HTTPException(status_code=422, detail={"error": e.message, "failures": []})

    return _merge_response(message.pdf_attachments(), settings.merged_pdf_filename)
