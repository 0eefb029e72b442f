"""
Decoder for legacy Outlook .msg containers.

Reading the binary structured-storage format is delegated to a reader
capability (``extract-msg`` by default). When the reader cannot open a file,
decoding degrades to a placeholder message instead of failing, so every
uploaded file still yields a row.
"""

import mimetypes
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import List, Optional, Protocol

import extract_msg
import structlog

from ..canonicalization import html_to_text
from ..config import settings
from ..errors import UnsupportedFormatError
from ..models.email_document import (
    NO_READABLE_CONTENT,
    Attachment,
    EmailMessage,
    FileKind,
    TransferEncoding,
)
from .attachments import DEFAULT_MIME_TYPE, format_size, get_file_kind
from .transfer_encoding import encode_base64

logger = structlog.get_logger(__name__)

PLACEHOLDER_SENDER = "MSG file - conversion to EML recommended"
PLACEHOLDER_RECIPIENTS = "Recipient information not available"
PLACEHOLDER_BODY = (
    "For full MSG file parsing, please convert to EML format "
    "or use a specialized MSG parser library."
)


@dataclass
class LegacyAttachmentRecord:
    """Raw attachment as delivered by a legacy reader."""

    filename: str
    mime_type: Optional[str]
    content: bytes


@dataclass
class LegacyRecord:
    """Fields read out of a legacy container; any of them may be missing."""

    sender: Optional[str] = None
    recipients: Optional[str] = None
    subject: Optional[str] = None
    timestamp: Optional[str] = None
    body: Optional[str] = None
    html_body: Optional[str] = None
    attachments: List[LegacyAttachmentRecord] = field(default_factory=list)


class LegacyContainerReader(Protocol):
    """Capability that opens a legacy container from its raw bytes."""

    def read(self, data: bytes) -> LegacyRecord:
        """Raise UnsupportedFormatError when the bytes cannot be opened."""
        ...


def _first_attr(obj, names):
    """Return the first present, non-failing attribute from ``names``."""
    for name in names:
        if hasattr(obj, name):
            try:
                value = getattr(obj, name)
                return value() if callable(value) else value
            except Exception:
                continue
    return None


def _ensure_str(value) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray)):
        return value.decode("utf-8", errors="replace")
    return str(value)


def _as_iso8601(value) -> Optional[str]:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return _ensure_str(value)


def _coerce_recipients(value) -> Optional[str]:
    """Normalize list-like recipient values to a comma-joined string."""
    if value is None:
        return None
    if isinstance(value, (list, tuple, set)):
        parts = [p for p in (_ensure_str(item) for item in value) if p]
        return ", ".join(parts) if parts else None
    return _ensure_str(value)


class ExtractMsgReader:
    """Legacy reader backed by the extract-msg library."""

    def read(self, data: bytes) -> LegacyRecord:
        msg = None
        try:
            msg = extract_msg.Message(data)

            attachments = []
            for att in getattr(msg, "attachments", None) or []:
                content = _first_attr(att, ["data"])
                if isinstance(content, str):
                    content = content.encode("utf-8", errors="replace")
                if not isinstance(content, (bytes, bytearray)):
                    # Embedded messages and other non-binary attachments
                    continue
                filename = (
                    _first_attr(att, ["longFilename", "shortFilename", "name"]) or "attachment"
                )
                attachments.append(
                    LegacyAttachmentRecord(
                        filename=str(filename),
                        mime_type=_ensure_str(_first_attr(att, ["mimetype", "mimeType"])),
                        content=bytes(content),
                    )
                )

            return LegacyRecord(
                sender=_ensure_str(_first_attr(msg, ["sender", "senderEmail"])),
                recipients=_coerce_recipients(_first_attr(msg, ["to", "recipients"])),
                subject=_ensure_str(_first_attr(msg, ["subject"])),
                timestamp=_as_iso8601(_first_attr(msg, ["date", "receivedTime"])),
                body=_ensure_str(_first_attr(msg, ["body"])),
                html_body=_ensure_str(_first_attr(msg, ["htmlBody"])),
                attachments=attachments,
            )
        except Exception as e:
            raise UnsupportedFormatError(f"Cannot open MSG container: {e}") from e
        finally:
            if msg is not None:
                try:
                    msg.close()
                except Exception:
                    pass


def read_with_timeout(reader: LegacyContainerReader, data: bytes, timeout: float) -> LegacyRecord:
    """
    Run ``reader.read`` bounded by ``timeout`` seconds.

    Raises:
        UnsupportedFormatError: If the reader fails or does not finish in time
    """
    executor = ThreadPoolExecutor(max_workers=1)
    try:
        future = executor.submit(reader.read, data)
        return future.result(timeout=timeout)
    except FutureTimeoutError as e:
        raise UnsupportedFormatError(f"Legacy reader timed out after {timeout}s") from e
    except UnsupportedFormatError:
        raise
    except Exception as e:
        raise UnsupportedFormatError(f"Legacy reader failed: {e}") from e
    finally:
        executor.shutdown(wait=False)


def build_placeholder_message(file_name: str, file_size: int) -> EmailMessage:
    """Placeholder returned when a legacy container cannot be read."""
    subject = file_name[:-4] if file_name.lower().endswith(".msg") else file_name
    return EmailMessage(
        sender=PLACEHOLDER_SENDER,
        recipients=PLACEHOLDER_RECIPIENTS,
        subject=subject or "No Subject",
        sent_at=datetime.now(timezone.utc).isoformat(),
        body=PLACEHOLDER_BODY,
        attachments=[],
        source_file_name=file_name,
        source_file_size=file_size,
        source_format=FileKind.MSG,
    )


def _to_attachment(record: LegacyAttachmentRecord) -> Attachment:
    mime_type = record.mime_type or mimetypes.guess_type(record.filename)[0] or DEFAULT_MIME_TYPE
    return Attachment(
        name=record.filename,
        declared_size=format_size(len(record.content)),
        kind=get_file_kind(record.filename),
        mime_type=mime_type,
        transfer_encoding=TransferEncoding.BASE64,
        payload=encode_base64(record.content),
    )


def decode_msg_bytes(
    msg_bytes: bytes,
    file_name: str = "",
    file_size: Optional[int] = None,
    reader: Optional[LegacyContainerReader] = None,
    timeout: Optional[float] = None,
) -> EmailMessage:
    """
    Decode a legacy .msg container into an EmailMessage.

    Never fails on unreadable input: a placeholder message is returned instead.

    Args:
        msg_bytes: Raw container bytes
        file_name: Original file name
        file_size: File size in bytes (defaults to ``len(msg_bytes)``)
        reader: Reader capability (defaults to ExtractMsgReader)
        timeout: Read bound in seconds (defaults to settings)

    Returns:
        Decoded or placeholder EmailMessage
    """
    size = len(msg_bytes) if file_size is None else file_size
    reader = reader or ExtractMsgReader()
    timeout = settings.legacy_reader_timeout_seconds if timeout is None else timeout

    try:
        record = read_with_timeout(reader, msg_bytes, timeout)
    except UnsupportedFormatError as e:
        logger.warning(
            "MSG container unreadable, using placeholder",
            file_name=file_name,
            error=e.message,
        )
        return build_placeholder_message(file_name, size)

    body = (record.body or "").strip()
    if not body and record.html_body:
        body = html_to_text(record.html_body)

    attachments = [_to_attachment(a) for a in record.attachments]

    logger.info(
        "MSG decoded",
        file_name=file_name,
        subject=record.subject,
        attachments_count=len(attachments),
    )

    return EmailMessage(
        sender=record.sender or "Unknown",
        recipients=record.recipients or "Unknown",
        subject=record.subject or "No Subject",
        sent_at=record.timestamp or datetime.now(timezone.utc).isoformat(),
        body=body or NO_READABLE_CONTENT,
        attachments=attachments,
        source_file_name=file_name,
        source_file_size=size,
        source_format=FileKind.MSG,
    )
