"""
File-kind dispatch and batch import.

Each file is decoded independently; a batch fans out over a thread pool and
results are gathered back into input order. Duplicate detection uses an
explicit ``UploadRegistry`` owned by the caller.
"""

import hashlib
import os
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence, Set, Tuple

import structlog

from ..config import settings
from ..errors import EmlBinderError, FileDecodeError
from ..logging_config import file_log_context
from ..models.email_document import AttachmentKind, EmailMessage, FileKind
from ..models.merge import ImportBatchResult, ImportFailure
from ..parsing.eml_parser import decode_eml_bytes
from ..parsing.msg_parser import LegacyContainerReader, decode_msg_bytes

logger = structlog.get_logger(__name__)

EXTENSION_KINDS = {
    ".eml": FileKind.EML,
    ".msg": FileKind.MSG,
}


def resolve_file_kind(file_name: str) -> FileKind:
    """Resolve the container format from a file name's extension."""
    ext = os.path.splitext(file_name or "")[1].lower()
    return EXTENSION_KINDS.get(ext, FileKind.UNSUPPORTED)


def decode_file(
    file_name: str,
    data: bytes,
    reader: Optional[LegacyContainerReader] = None,
) -> EmailMessage:
    """
    Decode one file, dispatching on its FileKind.

    Raises:
        FileDecodeError: If the file kind is unsupported or EML decoding fails
    """
    kind = resolve_file_kind(file_name)

    if kind == FileKind.EML:
        return decode_eml_bytes(data, file_name=file_name)
    if kind == FileKind.MSG:
        return decode_msg_bytes(data, file_name=file_name, reader=reader)

    raise FileDecodeError(
        f"Unsupported file type: {file_name}",
        file_name=file_name,
        error_code="unsupported_file",
    )


def compute_message_id(data: bytes, timestamp: datetime) -> str:
    """
    Compute an identity for an imported message.

    SHA-256 over the raw bytes plus the import timestamp, prefixed with 'msg-'.
    """
    content = data + timestamp.isoformat().encode()
    return f"msg-{hashlib.sha256(content).hexdigest()[:32]}"


class UploadRegistry:
    """Files already imported in a session, keyed on (name, size)."""

    def __init__(self, entries: Iterable[Tuple[str, int]] = ()):
        self._seen: Set[Tuple[str, int]] = set(entries)

    def __len__(self) -> int:
        return len(self._seen)

    def register(self, file_name: str, file_size: int) -> None:
        self._seen.add((file_name, file_size))

    def is_duplicate(self, file_name: str, file_size: int) -> bool:
        return (file_name, file_size) in self._seen


def _decode_one(
    file_name: str,
    data: bytes,
    reader: Optional[LegacyContainerReader],
) -> Tuple[Optional[EmailMessage], Optional[ImportFailure]]:
    try:
        with file_log_context(file_name):
            return decode_file(file_name, data, reader=reader), None
    except EmlBinderError as e:
        return None, ImportFailure(file_name=file_name, error_code=e.error_code, error=e.message)
    except Exception as e:
        logger.error("Unexpected import failure", file_name=file_name, error=str(e), exc_info=True)
        return None, ImportFailure(
            file_name=file_name, error_code="file_decode_error", error=str(e)
        )


def import_files(
    files: Sequence[Tuple[str, bytes]],
    registry: Optional[UploadRegistry] = None,
    pdf_only: bool = False,
    workers: Optional[int] = None,
    reader: Optional[LegacyContainerReader] = None,
) -> ImportBatchResult:
    """
    Decode a batch of files.

    Files already in ``registry`` (or repeated earlier in the same batch) are
    skipped as duplicates. Failures are reported per file and never abort the
    batch. Successfully decoded files are added to ``registry``.

    Args:
        files: (file name, raw bytes) pairs
        registry: Session accumulator for duplicate detection
        pdf_only: Keep only pdf attachments on each message
        workers: Thread pool size (defaults to settings)
        reader: Legacy reader passed to the MSG decoder

    Returns:
        ImportBatchResult with messages in input order
    """
    registry = registry if registry is not None else UploadRegistry()
    timestamp = datetime.now(timezone.utc)

    pending: List[Tuple[str, bytes]] = []
    duplicates: List[str] = []
    batch_keys: Set[Tuple[str, int]] = set()

    for file_name, data in files:
        key = (file_name, len(data))
        if registry.is_duplicate(*key) or key in batch_keys:
            logger.info("Skipping duplicate file", file_name=file_name)
            duplicates.append(file_name)
            continue
        batch_keys.add(key)
        pending.append((file_name, data))

    max_workers = max(1, workers or settings.import_workers)
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        outcomes = list(
            executor.map(lambda item: _decode_one(item[0], item[1], reader), pending)
        )

    messages: List[EmailMessage] = []
    failures: List[ImportFailure] = []

    for (file_name, data), (message, failure) in zip(pending, outcomes):
        if failure is not None:
            failures.append(failure)
            continue

        update = {"message_id": compute_message_id(data, timestamp)}
        if pdf_only:
            update["attachments"] = [
                a for a in message.attachments if a.kind == AttachmentKind.PDF
            ]
        messages.append(message.model_copy(update=update))
        registry.register(file_name, len(data))

    logger.info(
        "Batch import completed",
        total=len(files),
        imported=len(messages),
        failed=len(failures),
        duplicates=len(duplicates),
    )

    return ImportBatchResult(messages=messages, failures=failures, duplicates=duplicates)
