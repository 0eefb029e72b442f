"""
Message model - normalized representation of one decoded mail file.

This module defines the core data structures produced by the EML and legacy decoders.
"""

from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, Field

# Substituted whenever no body text can be extracted
NO_READABLE_CONTENT = "No readable content found."


class FileKind(str, Enum):
    """Input container format, resolved once from the file extension."""

    EML = "eml"
    MSG = "msg"
    UNSUPPORTED = "unsupported"


class AttachmentKind(str, Enum):
    """Coarse file classification derived from the attachment filename."""

    IMAGE = "image"
    PDF = "pdf"
    DOCUMENT = "document"
    SPREADSHEET = "spreadsheet"
    ARCHIVE = "archive"
    FILE = "file"


class TransferEncoding(str, Enum):
    """Content-Transfer-Encoding of an attachment payload."""

    BASE64 = "base64"
    QUOTED_PRINTABLE = "quoted-printable"
    SEVEN_BIT = "7bit"
    OTHER = "other"

    @classmethod
    def from_header(cls, value: Optional[str]) -> "TransferEncoding":
        """Normalize a raw header value; absent means 7bit, unknown means other."""
        if not value:
            return cls.SEVEN_BIT
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.OTHER


class Attachment(BaseModel):
    """
    One attachment isolated from a message.

    The payload is kept in its transfer representation (base64 text or raw
    decoded text); use ``parsing.decode_attachment_payload`` to get bytes.
    The name is the original filename and must be sanitized before use as a path.
    """

    name: str = Field(description="Original filename (not sanitized)")
    declared_size: Union[str, int] = Field(
        description="Human-readable size estimate or byte count"
    )
    kind: AttachmentKind = Field(description="Kind derived from the filename extension")
    mime_type: str = Field(
        default="application/octet-stream", description="Declared content type"
    )
    transfer_encoding: TransferEncoding = Field(
        default=TransferEncoding.SEVEN_BIT, description="Transfer encoding of payload"
    )
    payload: str = Field(default="", description="Base64 text or raw text payload")

    model_config = {"frozen": True}


class EmailHeaders(BaseModel):
    """Recognized top-level header fields, kept as raw strings."""

    sender: str = Field(default="Unknown", description="From header")
    recipients: str = Field(
        default="Unknown", description="To header (raw, comma-joined)"
    )
    subject: str = Field(default="No Subject", description="Subject header")
    sent_at: str = Field(
        default="Unknown Date", description="Date header, not parsed into a datetime"
    )


class EmailMessage(BaseModel):
    """
    Decoded message representation.

    Built once per input file by a decoder and immutable afterwards. ``message_id``
    is left unset by the decoders and assigned by the import layer.
    """

    sender: str = Field(description="Sender")
    recipients: str = Field(description="Recipients (raw, comma-joined)")
    subject: str = Field(description="Subject")
    sent_at: str = Field(description="Send date as found in the source")
    body: str = Field(
        default=NO_READABLE_CONTENT, description="Decoded plain text body"
    )
    attachments: List[Attachment] = Field(
        default_factory=list, description="Attachments in original order"
    )
    source_file_name: str = Field(default="", description="Input file name")
    source_file_size: int = Field(default=0, description="Input file size in bytes")
    source_format: FileKind = Field(
        default=FileKind.EML, description="Container format of the input"
    )
    message_id: Optional[str] = Field(
        None, description="Identity assigned by the import layer"
    )

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "example": {
                "sender": "billing@example.com",
                "recipients": "accounts@company.com",
                "subject": "Invoices March",
                "sent_at": "Wed, 12 Feb 2026 10:30:00 +0100",
                "body": "Please find the invoices attached.",
                "attachments": [
                    {
                        "name": "invoice-001.pdf",
                        "declared_size": "12.50 KB",
                        "kind": "pdf",
                        "mime_type": "application/pdf",
                        "transfer_encoding": "base64",
                        "payload": "JVBERi0xLjQK...",
                    }
                ],
                "source_file_name": "invoices.eml",
                "source_file_size": 18342,
                "source_format": "eml",
                "message_id": None,
            }
        },
    }

    def pdf_attachments(self) -> List[Attachment]:
        """Attachments of kind pdf, in original order."""
        return [a for a in self.attachments if a.kind == AttachmentKind.PDF]
