"""
Email parser for .eml files (RFC5322/MIME format).

Best-effort, tolerant decoding: recognized headers are read from the leading
header block, the body is resolved from MIME parts (plain text preferred over
HTML over a raw-text fallback), and attachments are isolated from the full text.
"""

import re
from pathlib import Path
from typing import List, Optional, Tuple

import charset_normalizer
import structlog

from ..canonicalization import clean_email_body, looks_like_html, strip_html
from ..errors import DecodeError, FileDecodeError, StructuralParseError
from ..models.email_document import NO_READABLE_CONTENT, EmailHeaders, EmailMessage, FileKind
from .attachments import extract_attachments
from .mime_utils import (
    ATTACHMENT_DISPOSITION,
    MimePart,
    decode_text_bytes,
    find_boundary,
    get_charset,
    get_header_value,
    iter_leaf_parts,
    split_mime_parts,
    truncate_at_boundary,
)
from .transfer_encoding import decode_base64_to_bytes, decode_quoted_printable

logger = structlog.get_logger(__name__)

# Header prefix (case-sensitive) -> EmailHeaders field
HEADER_FIELDS = {
    "From:": "sender",
    "To:": "recipients",
    "Subject:": "subject",
    "Date:": "sent_at",
}

MULTIPART_MARKERS = ("Content-Type: multipart/", "--_")

# Outlook-style boundary tokens used by the raw fallback extractor
RAW_BOUNDARY_TOKEN = re.compile(r"--_([A-Z0-9_]+)")
RAW_SEGMENT_CONTENT = re.compile(r"\r?\n\r?\n(.*?)(?=\r?\n--|$)", re.DOTALL)


def bytes_to_text(eml_bytes: bytes) -> str:
    """
    Decode raw file bytes to text.

    UTF-8 is tried first, then charset detection, then UTF-8 with replacement.
    """
    try:
        return eml_bytes.decode("utf-8")
    except UnicodeDecodeError:
        detected = charset_normalizer.from_bytes(eml_bytes).best()
        if detected:
            return str(detected)
        return eml_bytes.decode("utf-8", errors="replace")


def extract_headers(lines: List[str]) -> Tuple[EmailHeaders, int]:
    """
    Read recognized headers from the top of a message.

    Scanning stops at the first blank line. Unrecognized headers are ignored;
    when a header repeats, the last occurrence wins.

    Args:
        lines: Message split into lines

    Returns:
        Tuple of (headers, index of the first body line). The body index is 0
        when the message has no blank line separating headers from body.
    """
    values = {}
    body_start = 0

    for i, line in enumerate(lines):
        if line.strip() == "":
            body_start = i + 1
            break
        for prefix, field in HEADER_FIELDS.items():
            if line.startswith(prefix):
                values[field] = line[len(prefix):].strip()
                break

    # Empty values fall back to model defaults
    return EmailHeaders(**{k: v for k, v in values.items() if v}), body_start


def decode_part_content(
    content: str,
    content_type: str,
    encoding: str,
    charset: Optional[str] = None,
) -> str:
    """
    Decode the body of an inline text part according to its transfer encoding.

    Quoted-printable is always decoded; base64 only for ``text/*`` types. A
    malformed base64 body is left undecoded.
    """
    if encoding == "quoted-printable":
        decoded = decode_quoted_printable(content)
        if charset:
            try:
                return decode_text_bytes(decoded.encode("latin-1"), charset)
            except UnicodeEncodeError:
                return decoded
        return decoded

    if encoding == "base64" and "text/" in content_type:
        try:
            return decode_text_bytes(decode_base64_to_bytes(content), charset)
        except DecodeError as e:
            logger.warning("Failed to decode base64 text part", error=str(e))

    return content


def _is_body_candidate(part: MimePart) -> bool:
    trimmed = part.raw.strip()
    if not trimmed or ("--" in trimmed and len(trimmed) < 10):
        return False
    return not ATTACHMENT_DISPOSITION.search(part.header_block)


def parse_multipart_content(text: str, boundary: Optional[str] = None) -> str:
    """
    Resolve the readable body of multipart text.

    The last non-empty ``text/plain`` part is preferred, then the last
    ``text/html`` part reduced with ``strip_html``, then the raw fallback
    extractor over the whole text.

    Args:
        text: Multipart text (with or without top-level headers)
        boundary: Boundary token; located in ``text`` when omitted

    Returns:
        Resolved body text (not yet cleaned)
    """
    try:
        parts = split_mime_parts(text, boundary)
    except StructuralParseError:
        logger.debug("No boundary in multipart text, using raw extraction")
        return extract_content_from_raw_multipart(text)

    plain_text = ""
    html_text = ""

    for part in iter_leaf_parts(parts):
        if not _is_body_candidate(part):
            continue

        content_type = part.content_type
        if not content_type:
            continue

        body = part.body_block
        if body is None:
            continue

        content = truncate_at_boundary(body).strip()
        content = decode_part_content(content, content_type, part.transfer_encoding, part.charset)

        if "text/plain" in content_type:
            plain_text = content
        elif "text/html" in content_type:
            html_text = content

    if plain_text.strip():
        return plain_text.strip()
    if html_text.strip():
        return strip_html(html_text)

    logger.debug("No inline text part found, using raw extraction", parts=len(parts))
    return extract_content_from_raw_multipart(text)


def extract_content_from_raw_multipart(text: str) -> str:
    """
    Fallback body extraction over Outlook-style ``--_XXXX`` boundaries.

    Every segment between two consecutive boundary tokens that mentions a text
    content type is a candidate; its content after the first blank line is
    quoted-printable decoded when it contains ``=``. The longest candidate wins.

    Returns:
        Best candidate, or the input text unchanged if none qualifies
    """
    tokens = list(RAW_BOUNDARY_TOKEN.finditer(text))
    best_content = ""

    for current, following in zip(tokens, tokens[1:]):
        segment = text[current.end():following.start()]
        if "text/plain" not in segment and "text/html" not in segment:
            continue

        match = RAW_SEGMENT_CONTENT.search(segment)
        if not match:
            continue

        content = match.group(1).strip()
        if "=" in content:
            content = decode_quoted_printable(content)
        content = RAW_BOUNDARY_TOKEN.sub("", content).strip()

        if len(content) > len(best_content):
            best_content = content

    return best_content or text


def is_multipart_text(text: str) -> bool:
    """Whether text shows signs of MIME multipart structure."""
    return any(marker in text for marker in MULTIPART_MARKERS)


def extract_email_body(text: str, boundary: Optional[str] = None) -> str:
    """
    Resolve and clean the readable body of a message.

    Args:
        text: Body text of the message (after the top-level headers)
        boundary: Top-level boundary declared in the headers, if any

    Returns:
        Clean plain text; never empty
    """
    body = text

    if boundary or is_multipart_text(text):
        body = parse_multipart_content(text, boundary)

    if looks_like_html(body):
        body = strip_html(body)

    body = clean_email_body(body)

    return body or NO_READABLE_CONTENT


def _decode_single_part_body(header_block: str, body_text: str) -> str:
    """Apply the top-level transfer encoding of a non-multipart message."""
    encoding = (get_header_value(header_block, "Content-Transfer-Encoding") or "7bit").lower()
    if encoding not in ("quoted-printable", "base64"):
        return body_text
    content_type = (get_header_value(header_block, "Content-Type") or "text/plain").lower()
    return decode_part_content(body_text.strip(), content_type, encoding, get_charset(header_block))


def decode_eml_bytes(
    eml_bytes: bytes,
    file_name: str = "",
    file_size: Optional[int] = None,
) -> EmailMessage:
    """
    Decode one .eml file into an EmailMessage.

    Args:
        eml_bytes: Raw .eml file bytes
        file_name: Original file name
        file_size: File size in bytes (defaults to ``len(eml_bytes)``)

    Returns:
        Decoded EmailMessage

    Raises:
        FileDecodeError: If anything unexpected fails while decoding
    """
    try:
        text = bytes_to_text(eml_bytes)
        lines = text.split("\n")

        headers, body_start = extract_headers(lines)
        header_block = "\n".join(lines[:body_start])
        body_text = "\n".join(lines[body_start:])

        boundary = find_boundary(header_block) if body_start else None
        if boundary is None and not is_multipart_text(body_text):
            body_text = _decode_single_part_body(header_block, body_text)

        body = extract_email_body(body_text, boundary)
        attachments = extract_attachments(text)

    except Exception as e:
        logger.error("EML decoding failed", file_name=file_name, error=str(e), exc_info=True)
        raise FileDecodeError(f"Failed to parse EML file: {e}", file_name=file_name) from e

    logger.info(
        "EML decoded",
        file_name=file_name,
        subject=headers.subject,
        attachments_count=len(attachments),
    )

    return EmailMessage(
        sender=headers.sender,
        recipients=headers.recipients,
        subject=headers.subject,
        sent_at=headers.sent_at,
        body=body,
        attachments=attachments,
        source_file_name=file_name,
        source_file_size=len(eml_bytes) if file_size is None else file_size,
        source_format=FileKind.EML,
    )


def decode_eml_file(eml_path: str) -> EmailMessage:
    """
    Decode an .eml file from disk.

    Raises:
        FileNotFoundError: If the file doesn't exist
        FileDecodeError: If the content cannot be decoded
    """
    path = Path(eml_path)
    eml_bytes = path.read_bytes()
    return decode_eml_bytes(eml_bytes, file_name=path.name)
