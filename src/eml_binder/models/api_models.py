"""
API request and response models for FastAPI endpoints.

This module defines the Pydantic models used for API request/response validation.
"""

from typing import Dict, List, Optional
from pydantic import BaseModel, Field

from .email_document import Attachment, EmailMessage
from .merge import ImportFailure


class IngestResponse(BaseModel):
    """Response model for single-file ingestion."""

    success: bool = Field(description="Whether decoding succeeded")
    message: Optional[EmailMessage] = Field(None, description="Decoded message")
    error: Optional[str] = Field(None, description="Error message if failed")


class BatchIngestResponse(BaseModel):
    """Response model for multi-file ingestion."""

    messages: List[EmailMessage] = Field(default_factory=list)
    failures: List[ImportFailure] = Field(default_factory=list)
    duplicates: List[str] = Field(default_factory=list)


class MergeRequest(BaseModel):
    """Attachments to merge, in the desired page order."""

    attachments: List[Attachment] = Field(
        description="Attachments to merge; non-pdf kinds are ignored"
    )
    filename: Optional[str] = Field(
        None, description="Suggested download name for the merged document"
    )


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(description="Service status", examples=["healthy"])
    version: str = Field(description="API version", examples=["1.0.0"])
    uptime_seconds: float = Field(description="Service uptime")


class VersionResponse(BaseModel):
    """Version information response."""

    api_version: str = Field(description="API version")
    components: Dict[str, str] = Field(description="Component versions")
