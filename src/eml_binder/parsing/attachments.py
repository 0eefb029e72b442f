"""
Attachment extraction from raw multipart message text.

Attachments are isolated by their Content-Disposition header and kept in their
transfer representation; payloads are decoded to bytes only on demand.
"""

import math
import os
from typing import List

import structlog

from ..errors import StructuralParseError
from ..models.email_document import Attachment, AttachmentKind, TransferEncoding
from .mime_utils import get_header_value, iter_leaf_parts, locate_content, split_mime_parts
from .transfer_encoding import WHITESPACE, decode_base64_to_bytes, decode_quoted_printable

logger = structlog.get_logger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"
UNKNOWN_SIZE = "Unknown"

KIND_BY_EXTENSION = {
    **{ext: AttachmentKind.IMAGE for ext in ("jpg", "jpeg", "png", "gif", "bmp", "svg", "webp")},
    "pdf": AttachmentKind.PDF,
    **{ext: AttachmentKind.DOCUMENT for ext in ("doc", "docx", "txt", "rtf")},
    **{ext: AttachmentKind.SPREADSHEET for ext in ("xls", "xlsx", "csv")},
    **{ext: AttachmentKind.ARCHIVE for ext in ("zip", "rar", "7z", "tar", "gz")},
}


def get_file_kind(filename: str) -> AttachmentKind:
    """
    Classify a file by its extension (case-insensitive).

    Args:
        filename: File name, possibly without extension

    Returns:
        AttachmentKind, ``file`` for unknown or missing extensions
    """
    if not filename:
        return AttachmentKind.FILE
    ext = os.path.splitext(filename)[1].lstrip(".").lower()
    return KIND_BY_EXTENSION.get(ext, AttachmentKind.FILE)


def estimate_decoded_size(base64_text: str) -> int:
    """Approximate decoded byte count of a base64 payload: ceil(len * 3 / 4)."""
    cleaned_length = len(WHITESPACE.sub("", base64_text))
    return math.ceil(cleaned_length * 3 / 4)


def format_size(num_bytes: int) -> str:
    """
    Render a byte count as B, KB or MB (1024 scaling, two decimals above bytes).

    Examples:
        >>> format_size(512)
        '512 B'
        >>> format_size(2048)
        '2.00 KB'
    """
    if num_bytes < 1024:
        return f"{num_bytes} B"
    if num_bytes < 1024 * 1024:
        return f"{num_bytes / 1024:.2f} KB"
    return f"{num_bytes / (1024 * 1024):.2f} MB"


def extract_attachments(text: str) -> List[Attachment]:
    """
    Extract attachments from the full raw message text.

    A part qualifies when it declares ``Content-Disposition: attachment``, or any
    Content-Disposition together with a ``filename=`` parameter. Parts without a
    filename or without a CRLF-CRLF header separator are skipped.

    Args:
        text: Full raw message text, headers included

    Returns:
        Attachments in order of appearance
    """
    try:
        parts = split_mime_parts(text)
    except StructuralParseError:
        return []

    attachments = []
    for part in iter_leaf_parts(parts):
        if not part.is_attachment:
            continue

        filename = part.filename
        if not filename:
            logger.debug("Attachment part without filename", index=part.index)
            continue

        content_start = locate_content(part.raw, allow_lf_fallback=False)
        if content_start is None:
            logger.debug("Attachment part without CRLF separator", filename=filename)
            continue

        # Keep the declared type's original case
        header_block = part.raw[:content_start]
        mime_type = get_header_value(header_block, "Content-Type") or DEFAULT_MIME_TYPE
        encoding = TransferEncoding.from_header(
            get_header_value(header_block, "Content-Transfer-Encoding")
        )
        content = part.raw[content_start:].strip()

        if encoding == TransferEncoding.BASE64:
            declared_size = format_size(estimate_decoded_size(content))
        else:
            declared_size = UNKNOWN_SIZE

        attachments.append(
            Attachment(
                name=filename,
                declared_size=declared_size,
                kind=get_file_kind(filename),
                mime_type=mime_type,
                transfer_encoding=encoding,
                payload=content,
            )
        )

    return attachments


def decode_attachment_payload(attachment: Attachment) -> bytes:
    """
    Decode an attachment payload to bytes.

    Base64 payloads are decoded, quoted-printable payloads are unescaped and
    returned byte-for-character, anything else is returned as UTF-8 text.

    Raises:
        DecodeError: If a base64 payload is malformed
    """
    if attachment.transfer_encoding == TransferEncoding.BASE64:
        return decode_base64_to_bytes(attachment.payload)
    if attachment.transfer_encoding == TransferEncoding.QUOTED_PRINTABLE:
        return decode_quoted_printable(attachment.payload).encode("latin-1", errors="replace")
    return attachment.payload.encode("utf-8")
