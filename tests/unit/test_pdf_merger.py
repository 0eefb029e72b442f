"""
Unit tests for the PDF merge engine (merger.py).

Page widths identify the source document of every merged page.
"""

import io

import pytest
from pypdf import PdfWriter

from eml_binder.errors import MergeEmptyError, PdfLoadError
from eml_binder.models.email_document import Attachment, AttachmentKind, TransferEncoding
from eml_binder.parsing.transfer_encoding import encode_base64
from eml_binder.pdf.merger import load_pdf_pages, merge_pdf_attachments
from tests.fixtures.pdfs import CORRUPT_PDF, make_pdf, page_widths


def _pdf_attachment(name: str, data: bytes) -> Attachment:
    return Attachment(
        name=name,
        declared_size=len(data),
        kind=AttachmentKind.PDF,
        mime_type="application/pdf",
        transfer_encoding=TransferEncoding.BASE64,
        payload=encode_base64(data),
    )


def _encrypted_pdf(user_password: str) -> bytes:
    writer = PdfWriter()
    writer.add_blank_page(width=150, height=200)
    writer.encrypt(user_password=user_password, owner_password="owner-secret")
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


class TestMergePdfAttachments:
    """Tests for merge_pdf_attachments() function."""

    @pytest.mark.unit
    def test_merge_preserves_input_order(self, pdf_attachment_factory):
        """Test documents are appended in the order given."""
        attachments = [
            pdf_attachment_factory("a.pdf", 100),
            pdf_attachment_factory("b.pdf", 200),
            pdf_attachment_factory("c.pdf", 300),
        ]

        result = merge_pdf_attachments(attachments)

        assert page_widths(result.pdf_bytes) == [100, 200, 300]
        assert result.merged_count == 3
        assert result.page_count == 3
        assert result.failed_count == 0

    @pytest.mark.unit
    def test_merge_preserves_page_order(self, pdf_attachment_factory):
        """Test pages within one document keep their order."""
        attachments = [
            pdf_attachment_factory("first.pdf", 110, 120, 130),
            pdf_attachment_factory("second.pdf", 210),
        ]
        result = merge_pdf_attachments(attachments)
        assert page_widths(result.pdf_bytes) == [110, 120, 130, 210]
        assert result.page_count == 4

    @pytest.mark.unit
    def test_partial_failures_are_reported(self, pdf_attachment_factory):
        """Test failing inputs are skipped without affecting the others."""
        broken_payload = pdf_attachment_factory("bad-b64.pdf", 100).model_copy(
            update={"payload": "###not base64###"}
        )
        attachments = [
            pdf_attachment_factory("ok-1.pdf", 100),
            _pdf_attachment("corrupt.pdf", CORRUPT_PDF),
            pdf_attachment_factory("ok-2.pdf", 200),
            broken_payload,
        ]

        result = merge_pdf_attachments(attachments)

        assert page_widths(result.pdf_bytes) == [100, 200]
        assert result.merged_count == 2
        assert result.failed_count == 2
        assert [f.index for f in result.failures] == [1, 3]
        assert [f.name for f in result.failures] == ["corrupt.pdf", "bad-b64.pdf"]

    @pytest.mark.unit
    def test_non_pdf_kind_is_a_failure(self, pdf_attachment_factory):
        """Test attachments of another kind are not merged."""
        image = pdf_attachment_factory("scan.png", 100).model_copy(
            update={"kind": AttachmentKind.IMAGE}
        )
        result = merge_pdf_attachments([image, pdf_attachment_factory("doc.pdf", 200)])
        assert page_widths(result.pdf_bytes) == [200]
        assert result.failures[0].name == "scan.png"

    @pytest.mark.unit
    def test_all_failing_raises(self):
        """Test MergeEmptyError carries the per-item failures."""
        with pytest.raises(MergeEmptyError) as exc_info:
            merge_pdf_attachments(
                [_pdf_attachment("x.pdf", CORRUPT_PDF), _pdf_attachment("y.pdf", b"")]
            )
        assert exc_info.value.error_code == "nothing_to_merge"
        assert len(exc_info.value.failures) == 2

    @pytest.mark.unit
    def test_empty_input_raises(self):
        """Test merging nothing raises MergeEmptyError."""
        with pytest.raises(MergeEmptyError) as exc_info:
            merge_pdf_attachments([])
        assert exc_info.value.failures == []

    @pytest.mark.unit
    def test_encrypted_with_empty_user_password(self):
        """Test documents openable with an empty password are merged."""
        result = merge_pdf_attachments([_pdf_attachment("locked.pdf", _encrypted_pdf(""))])
        assert page_widths(result.pdf_bytes) == [150]

    @pytest.mark.unit
    def test_password_protected_is_a_failure(self, pdf_attachment_factory):
        """Test documents needing a password are reported and skipped."""
        attachments = [
            _pdf_attachment("secret.pdf", _encrypted_pdf("user-secret")),
            pdf_attachment_factory("open.pdf", 100),
        ]
        result = merge_pdf_attachments(attachments)
        assert page_widths(result.pdf_bytes) == [100]
        assert result.failures[0].name == "secret.pdf"


class TestLoadPdfPages:
    """Tests for load_pdf_pages() function."""

    @pytest.mark.unit
    def test_pages_in_order(self):
        """Test all pages are returned in document order."""
        pages = load_pdf_pages(make_pdf(100, 200))
        assert [round(float(p.mediabox.width)) for p in pages] == [100, 200]

    @pytest.mark.unit
    @pytest.mark.parametrize("data", [b"", b"plain text", CORRUPT_PDF])
    def test_unreadable_raises(self, data):
        """Test unreadable buffers raise PdfLoadError."""
        with pytest.raises(PdfLoadError):
            load_pdf_pages(data)
