# Data models for message extraction and PDF merging

from .email_document import (
    NO_READABLE_CONTENT,
    Attachment,
    AttachmentKind,
    EmailHeaders,
    EmailMessage,
    FileKind,
    TransferEncoding,
)
from .merge import (
    ImportBatchResult,
    ImportFailure,
    MergeFailure,
    MergeResult,
)
from .api_models import (
    BatchIngestResponse,
    HealthResponse,
    IngestResponse,
    MergeRequest,
    VersionResponse,
)

__all__ = [
    "NO_READABLE_CONTENT",
    "Attachment",
    "AttachmentKind",
    "EmailHeaders",
    "EmailMessage",
    "FileKind",
    "TransferEncoding",
    "ImportBatchResult",
    "ImportFailure",
    "MergeFailure",
    "MergeResult",
    "BatchIngestResponse",
    "HealthResponse",
    "IngestResponse",
    "MergeRequest",
    "VersionResponse",
]
