"""
Merge and batch-import result structures.
"""

from dataclasses import dataclass, field
from typing import List

from pydantic import BaseModel, Field

from .email_document import EmailMessage


class MergeFailure(BaseModel):
    """One merge input that was excluded from the merged document."""

    index: int = Field(description="Position of the attachment in the merge request")
    name: str = Field(description="Attachment name")
    reason: str = Field(description="Why the attachment could not be merged")


@dataclass
class MergeResult:
    """Finalized merged document plus per-item accounting."""

    pdf_bytes: bytes
    page_count: int
    merged_count: int
    failures: List[MergeFailure] = field(default_factory=list)

    @property
    def failed_count(self) -> int:
        return len(self.failures)


class ImportFailure(BaseModel):
    """A file that produced no message during a batch import."""

    file_name: str = Field(description="Input file name")
    error_code: str = Field(description="Machine-readable failure code")
    error: str = Field(description="Failure description")


class ImportBatchResult(BaseModel):
    """Outcome of importing several files at once."""

    messages: List[EmailMessage] = Field(
        default_factory=list, description="Decoded messages, in input order"
    )
    failures: List[ImportFailure] = Field(
        default_factory=list, description="Files that could not be decoded"
    )
    duplicates: List[str] = Field(
        default_factory=list, description="Files skipped as already imported"
    )
