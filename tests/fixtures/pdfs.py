"""
PDF builders for merge tests.

Each document is made of blank pages; the page width identifies where a page
came from once documents are merged.
"""

import io
from typing import List

from pypdf import PdfReader, PdfWriter


def make_pdf(*widths: float, height: float = 200) -> bytes:
    """Build a PDF with one blank page per width."""
    writer = PdfWriter()
    for width in widths:
        writer.add_blank_page(width=width, height=height)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


def page_widths(pdf_bytes: bytes) -> List[int]:
    """Widths of all pages of a PDF, in page order."""
    reader = PdfReader(io.BytesIO(pdf_bytes))
    return [round(float(page.mediabox.width)) for page in reader.pages]


CORRUPT_PDF = b"%PDF-1.4\nthis is not really a pdf document\n"
