"""
Collaborator seams for handing bytes to the outside world.

Downloads go through a ``DownloadSink`` (bytes, suggested name, MIME type);
printing goes through a ``PrintPrimitive`` whose completion is bounded and
normalized to a single ``PrintOutcome``.
"""

import subprocess
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from enum import Enum
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import Callable, Optional, Protocol

import structlog

from ..config import settings
from ..models.email_document import Attachment
from ..models.merge import MergeResult
from ..parsing.attachments import decode_attachment_payload

logger = structlog.get_logger(__name__)

PDF_MIME_TYPE = "application/pdf"


class DownloadSink(Protocol):
    """Receives a byte buffer together with a suggested name and MIME type."""

    def emit(self, data: bytes, suggested_name: str, mime_type: str) -> None:
        ...


def safe_file_name(name: str, default: str = "attachment") -> str:
    """Reduce an untrusted name to a bare file name without directory parts."""
    base = PureWindowsPath(PurePosixPath(name or "").name).name
    base = base.strip().lstrip(".")
    return base or default


class DirectoryDownloadSink:
    """
    Writes emitted buffers into a directory.

    Existing files are kept and the new file gets a numeric suffix, unless
    ``overwrite`` is set.
    """

    def __init__(self, directory: Optional[str] = None, overwrite: bool = False):
        self.directory = Path(directory or settings.download_dir)
        self.overwrite = overwrite
        self.written = []

    def emit(self, data: bytes, suggested_name: str, mime_type: str) -> Path:
        self.directory.mkdir(parents=True, exist_ok=True)
        name = safe_file_name(suggested_name)
        target = self.directory / name
        counter = 1
        while target.exists() and not self.overwrite:
            target = self.directory / f"{Path(name).stem}-{counter}{Path(name).suffix}"
            counter += 1
        target.write_bytes(data)
        self.written.append(target)
        logger.info("File written", path=str(target), mime_type=mime_type, size_bytes=len(data))
        return target


def download_attachment(attachment: Attachment, sink: DownloadSink) -> None:
    """
    Decode one attachment and emit it.

    Raises:
        DecodeError: If the payload cannot be decoded
    """
    data = decode_attachment_payload(attachment)
    sink.emit(data, attachment.name, attachment.mime_type)


def download_merged(
    result: MergeResult,
    sink: DownloadSink,
    filename: Optional[str] = None,
) -> None:
    """Emit a merged document under ``filename`` or the configured default."""
    sink.emit(result.pdf_bytes, filename or settings.merged_pdf_filename, PDF_MIME_TYPE)


class PrintOutcome(str, Enum):
    """Normalized end state of a print request."""

    COMPLETED = "completed"
    TIMED_OUT = "timed_out"
    FAILED = "failed"


# Blocks until the native print flow returns
PrintPrimitive = Callable[[bytes], None]


class LprPrinter:
    """Print primitive that pipes the document into the system print command."""

    def __init__(self, command: Optional[str] = None):
        self.command = command or settings.print_command

    def __call__(self, pdf_bytes: bytes) -> None:
        subprocess.run([self.command], input=pdf_bytes, capture_output=True, check=True)


def print_pdf(
    pdf_bytes: bytes,
    printer: PrintPrimitive,
    timeout: Optional[float] = None,
) -> PrintOutcome:
    """
    Hand a document to the print primitive and wait at most ``timeout`` seconds.

    The primitive gives no reliable cancellation signal, so success, failure and
    timeout all resolve to an outcome; this function never raises.

    Args:
        pdf_bytes: Document to print
        printer: Print primitive
        timeout: Ceiling in seconds (defaults to settings)

    Returns:
        PrintOutcome
    """
    timeout = settings.print_timeout_seconds if timeout is None else timeout
    executor = ThreadPoolExecutor(max_workers=1)
    try:
        future = executor.submit(printer, pdf_bytes)
        future.result(timeout=timeout)
        outcome = PrintOutcome.COMPLETED
    except FutureTimeoutError:
        outcome = PrintOutcome.TIMED_OUT
    except Exception as e:
        logger.error("Print failed", error=str(e))
        outcome = PrintOutcome.FAILED
    finally:
        executor.shutdown(wait=False)

    logger.info("Print finished", outcome=outcome.value, size_bytes=len(pdf_bytes))
    return outcome
