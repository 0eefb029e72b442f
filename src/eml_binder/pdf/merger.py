"""
PDF merge engine.

Concatenates the pages of several PDF attachments into one document. Inputs are
processed strictly in order; an input that cannot be loaded is recorded and
skipped without affecting the others.
"""

import io
from typing import List, Sequence

import structlog
from pypdf import PageObject, PdfReader, PdfWriter

from ..errors import DecodeError, MergeEmptyError, PdfLoadError
from ..models.email_document import Attachment, AttachmentKind
from ..models.merge import MergeFailure, MergeResult
from ..parsing.attachments import decode_attachment_payload

logger = structlog.get_logger(__name__)


def load_pdf_pages(data: bytes) -> List[PageObject]:
    """
    Open a PDF buffer and return its pages in document order.

    Encrypted documents are tried with an empty password.

    Raises:
        PdfLoadError: If the buffer is not a readable PDF
    """
    try:
        reader = PdfReader(io.BytesIO(data))
        if reader.is_encrypted and not reader.decrypt(""):
            raise PdfLoadError("PDF is password-protected")
        pages = list(reader.pages)
        for page in pages:
            # Force page tree resolution before anything is copied
            _ = page.mediabox
    except PdfLoadError:
        raise
    except Exception as e:
        raise PdfLoadError(f"Not a readable PDF: {e}") from e
    return pages


def _load_attachment_pages(attachment: Attachment) -> List[PageObject]:
    if attachment.kind != AttachmentKind.PDF:
        raise PdfLoadError(f"Not a pdf attachment (kind: {attachment.kind.value})")
    try:
        data = decode_attachment_payload(attachment)
    except DecodeError as e:
        raise PdfLoadError(f"Payload could not be decoded: {e.message}") from e
    return load_pdf_pages(data)


def merge_pdf_attachments(attachments: Sequence[Attachment]) -> MergeResult:
    """
    Merge PDF attachments into a single document.

    Pages of each input are appended in their original order, inputs in the
    order given. Inputs that fail to load are reported in ``failures``.

    Args:
        attachments: Attachments of kind pdf, in the desired order

    Returns:
        MergeResult with the serialized document and per-item accounting

    Raises:
        MergeEmptyError: If no page could be collected from any input
    """
    writer = PdfWriter()
    failures: List[MergeFailure] = []
    merged_count = 0
    page_count = 0

    for index, attachment in enumerate(attachments):
        try:
            pages = _load_attachment_pages(attachment)
        except PdfLoadError as e:
            logger.warning("Failed to load PDF", name=attachment.name, index=index, error=e.message)
            failures.append(MergeFailure(index=index, name=attachment.name, reason=e.message))
            continue

        if not pages:
            failures.append(
                MergeFailure(index=index, name=attachment.name, reason="PDF has no pages")
            )
            continue

        for page in pages:
            writer.add_page(page)

        merged_count += 1
        page_count += len(pages)
        del pages

    if page_count == 0:
        logger.warning("Nothing to merge", inputs=len(attachments), failures=len(failures))
        raise MergeEmptyError("No PDF pages to merge", failures=failures)

    buffer = io.BytesIO()
    writer.write(buffer)

    logger.info(
        "PDFs merged",
        inputs=len(attachments),
        merged=merged_count,
        failed=len(failures),
        pages=page_count,
    )

    return MergeResult(
        pdf_bytes=buffer.getvalue(),
        page_count=page_count,
        merged_count=merged_count,
        failures=failures,
    )
