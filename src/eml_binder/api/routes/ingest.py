"""
Ingestion endpoints - decode uploaded .eml/.msg files into messages.
"""

from typing import List, Optional

from fastapi import APIRouter, File, HTTPException, Query, UploadFile
import structlog

from ...config import settings
from ...errors import FileDecodeError
from ...importer import UploadRegistry, decode_file, import_files, resolve_file_kind
from ...logging_config import file_log_context
from ...models.api_models import BatchIngestResponse, IngestResponse
from ...models.email_document import AttachmentKind, FileKind
from ...models.merge import ImportFailure

logger = structlog.get_logger(__name__)
router = APIRouter()


def size_limit_error(data: bytes) -> Optional[str]:
    """Describe why ``data`` exceeds the configured size limit, or None."""
    size_mb = len(data) / (1024 * 1024)
    if size_mb > settings.max_email_size_mb:
        return f"File size ({size_mb:.1f}MB) exceeds maximum ({settings.max_email_size_mb}MB)"
    return None


async def read_upload(file: UploadFile) -> bytes:
    """
    Read an uploaded mail file, enforcing type and size limits.

    Raises:
        HTTPException: 400 for unsupported types, 413 for oversized files
    """
    if resolve_file_kind(file.filename or "") == FileKind.UNSUPPORTED:
        raise HTTPException(status_code=400, detail="File must be .eml or .msg format")

    data = await file.read()

    error = size_limit_error(data)
    if error:
        raise HTTPException(status_code=413, detail=error)
    return data


@router.post("/file", response_model=IngestResponse)
async def ingest_file(
    file: UploadFile = File(..., description=".eml or .msg file to decode"),
    pdf_only: bool = Query(default=False, description="Keep only PDF attachments"),
) -> IngestResponse:
    """
    Decode a single mail file.

    Returns:
        IngestResponse with the decoded message, or the decode error
    """
    data = await read_upload(file)

    logger.info("Starting file ingestion", filename=file.filename, size_bytes=len(data))

    try:
        with file_log_context(file.filename):
            message = decode_file(file.filename, data)
    except FileDecodeError as e:
        return IngestResponse(success=False, error=e.message)

    attachments = message.attachments
    if pdf_only:
        attachments = [a for a in attachments if a.kind == AttachmentKind.PDF]
    if len(attachments) > settings.max_attachments:
        logger.warning(
            "Too many attachments",
            count=len(attachments),
            limit=settings.max_attachments,
        )
        attachments = attachments[: settings.max_attachments]

    message = message.model_copy(update={"attachments": attachments})
    return IngestResponse(success=True, message=message)


@router.post("/batch", response_model=BatchIngestResponse)
async def ingest_batch(
    files: List[UploadFile] = File(..., description=".eml or .msg files to decode"),
    pdf_only: bool = Query(default=False, description="Keep only PDF attachments"),
) -> BatchIngestResponse:
    """
    Decode several mail files at once.

    Per-file failures, oversized files included, are listed in ``failures``;
    repeated files in ``duplicates``.
    """
    payloads = []
    oversized = []
    for file in files:
        name = file.filename or ""
        data = await file.read()
        error = size_limit_error(data)
        if error:
            logger.warning("Skipping oversized upload", filename=name, size_bytes=len(data))
            oversized.append(
                ImportFailure(file_name=name, error_code="file_too_large", error=error)
            )
            continue
        payloads.append((name, data))

    result = import_files(payloads, registry=UploadRegistry(), pdf_only=pdf_only)

    return BatchIngestResponse(
        messages=result.messages,
        failures=oversized + result.failures,
        duplicates=result.duplicates,
    )
