"""
Unit tests for file-kind dispatch and batch import (batch.py).
"""

import re
from datetime import datetime, timezone

import pytest

from eml_binder.errors import FileDecodeError, UnsupportedFormatError
from eml_binder.importer.batch import (
    UploadRegistry,
    compute_message_id,
    decode_file,
    import_files,
    resolve_file_kind,
)
from eml_binder.models.email_document import AttachmentKind, FileKind
from eml_binder.parsing.msg_parser import PLACEHOLDER_SENDER
from tests.fixtures.emails import SAMPLE_EMAILS, pdf_and_png_eml


class FailingReader:
    def read(self, data: bytes):
        raise UnsupportedFormatError("not an OLE2 container")


def _eml(subject: str) -> bytes:
    return f"From: a@example.com\nSubject: {subject}\n\nBody of {subject}\n".encode("utf-8")


class TestResolveFileKind:
    """Tests for resolve_file_kind() function."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "file_name,expected",
        [
            ("mail.eml", FileKind.EML),
            ("MAIL.EML", FileKind.EML),
            ("outlook.msg", FileKind.MSG),
            ("notes.txt", FileKind.UNSUPPORTED),
            ("eml", FileKind.UNSUPPORTED),
            ("", FileKind.UNSUPPORTED),
        ],
    )
    def test_resolve(self, file_name, expected):
        """Test container format from the extension."""
        assert resolve_file_kind(file_name) == expected


class TestDecodeFile:
    """Tests for decode_file() function."""

    @pytest.mark.unit
    def test_dispatch_eml(self, sample_eml_bytes):
        """Test .eml files go to the EML decoder."""
        message = decode_file("a.eml", sample_eml_bytes)
        assert message.source_format == FileKind.EML
        assert message.subject == "Test Email"

    @pytest.mark.unit
    def test_dispatch_msg(self):
        """Test .msg files go to the legacy decoder."""
        message = decode_file("a.msg", b"junk", reader=FailingReader())
        assert message.source_format == FileKind.MSG
        assert message.sender == PLACEHOLDER_SENDER

    @pytest.mark.unit
    def test_unsupported(self):
        """Test other extensions raise FileDecodeError."""
        with pytest.raises(FileDecodeError) as exc_info:
            decode_file("notes.txt", b"text")
        assert exc_info.value.error_code == "unsupported_file"
        assert exc_info.value.file_name == "notes.txt"


class TestComputeMessageId:
    """Tests for compute_message_id() function."""

    @pytest.mark.unit
    def test_deterministic(self):
        """Test same bytes and timestamp give the same id."""
        ts = datetime(2026, 2, 12, 10, 30, tzinfo=timezone.utc)
        assert compute_message_id(b"abc", ts) == compute_message_id(b"abc", ts)
        assert re.fullmatch(r"msg-[0-9a-f]{32}", compute_message_id(b"abc", ts))

    @pytest.mark.unit
    def test_changes_with_input(self):
        """Test bytes and timestamp both affect the id."""
        ts = datetime(2026, 2, 12, 10, 30, tzinfo=timezone.utc)
        later = datetime(2026, 2, 12, 10, 31, tzinfo=timezone.utc)
        assert compute_message_id(b"abc", ts) != compute_message_id(b"abd", ts)
        assert compute_message_id(b"abc", ts) != compute_message_id(b"abc", later)


class TestUploadRegistry:
    """Tests for UploadRegistry."""

    @pytest.mark.unit
    def test_duplicate_on_name_and_size(self):
        """Test duplicates need both the same name and size."""
        registry = UploadRegistry([("a.eml", 10)])
        assert registry.is_duplicate("a.eml", 10)
        assert not registry.is_duplicate("a.eml", 11)
        assert not registry.is_duplicate("b.eml", 10)
        registry.register("b.eml", 10)
        assert registry.is_duplicate("b.eml", 10)
        assert len(registry) == 2


class TestImportFiles:
    """Tests for import_files() function."""

    @pytest.mark.unit
    def test_order_preserved_with_workers(self):
        """Test messages come back in input order regardless of pool size."""
        files = [(f"m{i}.eml", _eml(f"subject {i}")) for i in range(8)]
        result = import_files(files, workers=4)
        assert [m.subject for m in result.messages] == [f"subject {i}" for i in range(8)]
        assert result.failures == []

    @pytest.mark.unit
    def test_message_ids_assigned(self):
        """Test each imported message gets a distinct id."""
        result = import_files([("a.eml", _eml("a")), ("b.eml", _eml("b"))])
        ids = [m.message_id for m in result.messages]
        assert all(re.fullmatch(r"msg-[0-9a-f]{32}", i) for i in ids)
        assert len(set(ids)) == 2

    @pytest.mark.unit
    def test_duplicates_skipped(self):
        """Test files repeated in the batch or in the registry are skipped."""
        registry = UploadRegistry([("old.eml", len(_eml("old")))])
        files = [
            ("old.eml", _eml("old")),
            ("new.eml", _eml("new")),
            ("new.eml", _eml("new")),
        ]

        result = import_files(files, registry=registry)

        assert [m.subject for m in result.messages] == ["new"]
        assert result.duplicates == ["old.eml", "new.eml"]
        assert registry.is_duplicate("new.eml", len(_eml("new")))

    @pytest.mark.unit
    def test_failures_do_not_abort_batch(self):
        """Test unsupported files are reported and others still imported."""
        registry = UploadRegistry()
        files = [("a.txt", b"text"), ("b.eml", _eml("b"))]

        result = import_files(files, registry=registry)

        assert [m.subject for m in result.messages] == ["b"]
        assert result.failures[0].file_name == "a.txt"
        assert result.failures[0].error_code == "unsupported_file"
        assert not registry.is_duplicate("a.txt", 4)

    @pytest.mark.unit
    def test_decode_errors_reported(self, monkeypatch):
        """Test EML decoding failures become ImportFailure entries."""

        def explode(text):
            raise RuntimeError("boom")

        monkeypatch.setattr("eml_binder.parsing.eml_parser.extract_attachments", explode)
        result = import_files([("bad.eml", SAMPLE_EMAILS["simple_plain_text"])])
        assert result.messages == []
        assert result.failures[0].error_code == "file_decode_error"

    @pytest.mark.unit
    def test_pdf_only(self):
        """Test pdf_only keeps only pdf attachments."""
        result = import_files([("a.eml", pdf_and_png_eml())], pdf_only=True)
        attachments = result.messages[0].attachments
        assert [a.name for a in attachments] == ["report.pdf"]
        assert all(a.kind == AttachmentKind.PDF for a in attachments)

    @pytest.mark.unit
    def test_msg_placeholder_is_imported(self):
        """Test unreadable .msg files still produce a message."""
        result = import_files([("x.msg", b"junk")], reader=FailingReader())
        assert result.messages[0].sender == PLACEHOLDER_SENDER
        assert result.failures == []
