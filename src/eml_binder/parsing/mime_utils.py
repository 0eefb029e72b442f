"""
MIME utility functions for splitting raw multipart message text.

Parsing here is deliberately tolerant: boundaries and headers are located by
pattern scanning rather than a validating grammar.
"""

import re
from dataclasses import dataclass
from typing import Iterator, List, Optional

import charset_normalizer
import structlog

from ..errors import StructuralParseError

logger = structlog.get_logger(__name__)

BOUNDARY_PARAM = re.compile(r"boundary=([^;\r\n]+)", re.IGNORECASE)
CHARSET_PARAM = re.compile(r"charset=\"?([^\";\s]+)", re.IGNORECASE)
FILENAME_PARAM = re.compile(r"filename=([^;\r\n]+)", re.IGNORECASE)
ATTACHMENT_DISPOSITION = re.compile(r"Content-Disposition:\s*attachment", re.IGNORECASE)
ANY_DISPOSITION = re.compile(r"Content-Disposition:", re.IGNORECASE)

# A whole line that looks like a boundary delimiter ("--abc123", "------=_Part_1")
LEAKED_BOUNDARY_LINE = re.compile(r"^--[^\s]*[A-Za-z0-9][^\s]*[ \t]*\r?$", re.MULTILINE)


def find_boundary(text: str) -> Optional[str]:
    """
    Find the first ``boundary=`` parameter in text.

    Args:
        text: Raw message or header text

    Returns:
        Boundary token with quotes removed, or None if absent
    """
    match = BOUNDARY_PARAM.search(text or "")
    if not match:
        return None
    boundary = match.group(1).replace('"', "").strip()
    return boundary or None


def locate_content(fragment: str, allow_lf_fallback: bool = True) -> Optional[int]:
    """
    Find where the body of a part starts.

    Looks for a CRLF-CRLF separator and, if allowed, an LF-LF separator.

    Returns:
        Index of the first body character, or None if there is no separator
    """
    index = fragment.find("\r\n\r\n")
    if index != -1:
        return index + 4
    if allow_lf_fallback:
        index = fragment.find("\n\n")
        if index != -1:
            return index + 2
    return None


def get_header_value(header_block: str, name: str) -> Optional[str]:
    """
    Return the first value of a header, up to the first ``;`` or line end.

    Header names match case-insensitively at the start of a line.
    """
    pattern = re.compile(rf"^{re.escape(name)}:\s*([^;\r\n]+)", re.IGNORECASE | re.MULTILINE)
    match = pattern.search(header_block)
    if not match:
        return None
    return match.group(1).strip()


def get_charset(header_block: str) -> Optional[str]:
    """Return the lower-cased ``charset=`` parameter of a header block, if any."""
    match = CHARSET_PARAM.search(header_block)
    return match.group(1).lower() if match else None


def truncate_at_boundary(content: str) -> str:
    """Cut content at the first line that looks like a boundary delimiter."""
    match = LEAKED_BOUNDARY_LINE.search(content)
    if match:
        return content[: match.start()]
    return content


@dataclass
class MimePart:
    """One raw part of a multipart message, as delimited by its boundary."""

    index: int
    raw: str

    @property
    def content_start(self) -> Optional[int]:
        return locate_content(self.raw)

    @property
    def header_block(self) -> str:
        start = self.content_start
        return self.raw if start is None else self.raw[:start]

    @property
    def body_block(self) -> Optional[str]:
        start = self.content_start
        return None if start is None else self.raw[start:]

    @property
    def content_type(self) -> Optional[str]:
        """Declared Content-Type, lower-cased, without parameters."""
        value = get_header_value(self.header_block, "Content-Type")
        return value.lower() if value else None

    @property
    def transfer_encoding(self) -> str:
        """Declared Content-Transfer-Encoding, lower-cased, ``7bit`` when absent."""
        value = get_header_value(self.header_block, "Content-Transfer-Encoding")
        return value.lower() if value else "7bit"

    @property
    def charset(self) -> Optional[str]:
        return get_charset(self.header_block)

    @property
    def filename(self) -> Optional[str]:
        """Verbatim ``filename=`` parameter with quotes stripped."""
        match = FILENAME_PARAM.search(self.header_block)
        if not match:
            return None
        name = match.group(1).replace('"', "").strip()
        return name or None

    @property
    def is_attachment(self) -> bool:
        headers = self.header_block
        if ATTACHMENT_DISPOSITION.search(headers):
            return True
        return bool(ANY_DISPOSITION.search(headers)) and "filename=" in headers.lower()


def split_mime_parts(text: str, boundary: Optional[str] = None) -> List[MimePart]:
    """
    Split raw multipart text into its parts.

    The text before the first delimiter (preamble or top-level headers) and the
    closing ``--`` fragment are not parts and are dropped. Empty fragments are
    skipped. Order of appearance is preserved.

    Args:
        text: Raw message text
        boundary: Boundary token; located in ``text`` when omitted

    Returns:
        Parts in order of appearance

    Raises:
        StructuralParseError: If no boundary can be found
    """
    boundary = boundary or find_boundary(text)
    if not boundary:
        raise StructuralParseError("No multipart boundary found")

    fragments = text.split(f"--{boundary}")
    parts = []
    for fragment in fragments[1:]:
        if not fragment.strip():
            continue
        if fragment.startswith("--"):
            # Closing delimiter; whatever follows is epilogue
            break
        parts.append(MimePart(index=len(parts), raw=fragment))

    return parts


def iter_leaf_parts(parts: List[MimePart]) -> Iterator[MimePart]:
    """
    Yield non-container parts, descending into nested ``multipart/*`` parts.

    Nested parts are yielded in place, so document order is preserved.
    """
    for part in parts:
        content_type = part.content_type or ""
        if content_type.startswith("multipart/"):
            inner_boundary = find_boundary(part.header_block)
            if inner_boundary:
                try:
                    yield from iter_leaf_parts(split_mime_parts(part.raw, inner_boundary))
                except StructuralParseError:
                    logger.debug("Nested multipart without parts", index=part.index)
                continue
        yield part


def decode_text_bytes(payload: bytes, charset: Optional[str] = None) -> str:
    """
    Decode text bytes with the declared charset, falling back to detection.

    Args:
        payload: Raw bytes of a text part
        charset: Declared charset, if any

    Returns:
        Decoded string content
    """
    if not payload:
        return ""

    for candidate in (charset, "utf-8"):
        if not candidate:
            continue
        try:
            return payload.decode(candidate)
        except (UnicodeDecodeError, LookupError):
            pass

    detected = charset_normalizer.from_bytes(payload).best()
    if detected:
        return str(detected)

    return payload.decode("utf-8", errors="replace")
