# PDF merging and delivery

from .delivery import (
    DirectoryDownloadSink,
    DownloadSink,
    LprPrinter,
    PrintOutcome,
    PrintPrimitive,
    download_attachment,
    download_merged,
    print_pdf,
    safe_file_name,
)
from .merger import load_pdf_pages, merge_pdf_attachments

__all__ = [
    "DirectoryDownloadSink",
    "DownloadSink",
    "LprPrinter",
    "PrintOutcome",
    "PrintPrimitive",
    "download_attachment",
    "download_merged",
    "print_pdf",
    "safe_file_name",
    "load_pdf_pages",
    "merge_pdf_attachments",
]
