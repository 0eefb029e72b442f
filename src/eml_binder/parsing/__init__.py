# Message parsers for EML (MIME text) and legacy MSG containers

from .attachments import (
    decode_attachment_payload,
    estimate_decoded_size,
    extract_attachments,
    format_size,
    get_file_kind,
)
from .eml_parser import (
    decode_eml_bytes,
    decode_eml_file,
    extract_content_from_raw_multipart,
    extract_email_body,
    extract_headers,
    parse_multipart_content,
)
from .mime_utils import MimePart, find_boundary, locate_content, split_mime_parts
from .msg_parser import (
    ExtractMsgReader,
    LegacyAttachmentRecord,
    LegacyContainerReader,
    LegacyRecord,
    build_placeholder_message,
    decode_msg_bytes,
)
from .transfer_encoding import (
    decode_base64_to_bytes,
    decode_quoted_printable,
    encode_base64,
    encode_quoted_printable,
)

__all__ = [
    "decode_attachment_payload",
    "estimate_decoded_size",
    "extract_attachments",
    "format_size",
    "get_file_kind",
    "decode_eml_bytes",
    "decode_eml_file",
    "extract_content_from_raw_multipart",
    "extract_email_body",
    "extract_headers",
    "parse_multipart_content",
    "MimePart",
    "find_boundary",
    "locate_content",
    "split_mime_parts",
    "ExtractMsgReader",
    "LegacyAttachmentRecord",
    "LegacyContainerReader",
    "LegacyRecord",
    "build_placeholder_message",
    "decode_msg_bytes",
    "decode_base64_to_bytes",
    "decode_quoted_printable",
    "encode_base64",
    "encode_quoted_printable",
]
