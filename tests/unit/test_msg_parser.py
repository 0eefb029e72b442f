"""
Unit tests for the legacy .msg decoder (msg_parser.py).

Readers are stubbed so tests do not depend on real Outlook files.
"""

import time

import pytest

from eml_binder.errors import UnsupportedFormatError
from eml_binder.models.email_document import NO_READABLE_CONTENT, AttachmentKind, FileKind
from eml_binder.parsing.msg_parser import (
    PLACEHOLDER_BODY,
    PLACEHOLDER_RECIPIENTS,
    PLACEHOLDER_SENDER,
    ExtractMsgReader,
    LegacyAttachmentRecord,
    LegacyRecord,
    build_placeholder_message,
    decode_msg_bytes,
    read_with_timeout,
)
from eml_binder.parsing.transfer_encoding import decode_base64_to_bytes


class StaticReader:
    """Reader returning a fixed record."""

    def __init__(self, record: LegacyRecord):
        self.record = record
        self.calls = 0

    def read(self, data: bytes) -> LegacyRecord:
        self.calls += 1
        return self.record


class FailingReader:
    """Reader that cannot open anything."""

    def read(self, data: bytes) -> LegacyRecord:
        raise UnsupportedFormatError("not an OLE2 container")


class CrashingReader:
    """Reader that fails with an unexpected error."""

    def read(self, data: bytes) -> LegacyRecord:
        raise RuntimeError("reader crashed")


class SlowReader:
    """Reader that never finishes within test timeouts."""

    def read(self, data: bytes) -> LegacyRecord:
        time.sleep(1.0)
        return LegacyRecord(subject="too late")


class TestDecodeMsgBytes:
    """Tests for decode_msg_bytes() function."""

    @pytest.mark.unit
    def test_decode_with_reader(self):
        """Test fields and attachments are taken from the reader record."""
        record = LegacyRecord(
            sender="Alice <alice@example.com>",
            recipients="bob@example.com",
            subject="Quarterly report",
            timestamp="2026-02-12T10:30:00+01:00",
            body="  Report attached.  ",
            attachments=[
                LegacyAttachmentRecord(filename="q1.pdf", mime_type=None, content=b"%PDF-1.4 q1"),
                LegacyAttachmentRecord(filename="raw.bin", mime_type=None, content=b"\x00\x01"),
            ],
        )

        message = decode_msg_bytes(b"msg-bytes", file_name="report.msg", reader=StaticReader(record))

        assert message.sender == "Alice <alice@example.com>"
        assert message.recipients == "bob@example.com"
        assert message.subject == "Quarterly report"
        assert message.sent_at == "2026-02-12T10:30:00+01:00"
        assert message.body == "Report attached."
        assert message.source_format == FileKind.MSG
        assert message.source_file_size == len(b"msg-bytes")

        pdf, raw = message.attachments
        assert pdf.kind == AttachmentKind.PDF
        assert pdf.mime_type == "application/pdf"
        assert pdf.declared_size == "11 B"
        assert decode_base64_to_bytes(pdf.payload) == b"%PDF-1.4 q1"
        assert raw.mime_type == "application/octet-stream"
        assert raw.kind == AttachmentKind.FILE

    @pytest.mark.unit
    def test_html_body_used_when_plain_missing(self):
        """Test HTML body is converted when there is no plain body."""
        record = LegacyRecord(subject="s", html_body="<p>Hello <b>there</b></p>")
        message = decode_msg_bytes(b"x", file_name="a.msg", reader=StaticReader(record))
        assert message.body == "Hello there"

    @pytest.mark.unit
    def test_missing_fields_use_defaults(self):
        """Test an empty record falls back to defaults."""
        message = decode_msg_bytes(b"x", file_name="a.msg", reader=StaticReader(LegacyRecord()))
        assert message.sender == "Unknown"
        assert message.recipients == "Unknown"
        assert message.subject == "No Subject"
        assert message.body == NO_READABLE_CONTENT
        assert message.sent_at

    @pytest.mark.unit
    def test_unreadable_container_gives_placeholder(self):
        """Test reader failure degrades to the placeholder message."""
        message = decode_msg_bytes(b"junk", file_name="Invoice March.msg", reader=FailingReader())
        assert message.sender == PLACEHOLDER_SENDER
        assert message.recipients == PLACEHOLDER_RECIPIENTS
        assert message.body == PLACEHOLDER_BODY
        assert message.subject == "Invoice March"
        assert message.attachments == []
        assert message.source_format == FileKind.MSG

    @pytest.mark.unit
    def test_crashing_reader_gives_placeholder(self):
        """Test an unexpected reader error degrades to the placeholder message."""
        message = decode_msg_bytes(b"xx", file_name="a.msg", reader=CrashingReader())
        assert message.body == PLACEHOLDER_BODY
        assert message.subject == "a"
        assert message.attachments == []

    @pytest.mark.unit
    def test_reader_timeout_gives_placeholder(self):
        """Test a reader that does not finish in time degrades to the placeholder."""
        message = decode_msg_bytes(b"junk", file_name="slow.msg", reader=SlowReader(), timeout=0.05)
        assert message.sender == PLACEHOLDER_SENDER
        assert message.subject == "slow"

    @pytest.mark.unit
    def test_default_reader_on_garbage(self):
        """Test the extract-msg reader rejects non-OLE data and the decoder degrades."""
        message = decode_msg_bytes(b"definitely not an outlook file", file_name="garbage.msg")
        assert message.body == PLACEHOLDER_BODY


class TestReadWithTimeout:
    """Tests for read_with_timeout() function."""

    @pytest.mark.unit
    def test_returns_record(self):
        """Test the record is returned when the reader finishes."""
        reader = StaticReader(LegacyRecord(subject="ok"))
        assert read_with_timeout(reader, b"x", timeout=5).subject == "ok"
        assert reader.calls == 1

    @pytest.mark.unit
    def test_timeout_raises_unsupported(self):
        """Test timeouts surface as UnsupportedFormatError."""
        with pytest.raises(UnsupportedFormatError):
            read_with_timeout(SlowReader(), b"x", timeout=0.05)

    @pytest.mark.unit
    def test_reader_error_raises_unsupported(self):
        """Test unexpected reader errors surface as UnsupportedFormatError."""
        with pytest.raises(UnsupportedFormatError) as exc_info:
            read_with_timeout(CrashingReader(), b"x", timeout=5)
        assert "reader crashed" in exc_info.value.message
        assert isinstance(exc_info.value.__cause__, RuntimeError)


class TestExtractMsgReader:
    """Tests for ExtractMsgReader."""

    @pytest.mark.unit
    def test_invalid_data_raises_unsupported(self):
        """Test non-OLE bytes raise UnsupportedFormatError."""
        with pytest.raises(UnsupportedFormatError) as exc_info:
            ExtractMsgReader().read(b"\x00" * 2048)
        assert exc_info.value.error_code == "unsupported_format"


class TestBuildPlaceholderMessage:
    """Tests for build_placeholder_message() function."""

    @pytest.mark.unit
    def test_extension_stripped_case_insensitive(self):
        """Test the subject is the file name without .msg."""
        assert build_placeholder_message("REPORT.MSG", 10).subject == "REPORT"
        assert build_placeholder_message("notes", 10).subject == "notes"

    @pytest.mark.unit
    def test_size_and_timestamp(self):
        """Test file size is kept and a timestamp is set."""
        message = build_placeholder_message("a.msg", 42)
        assert message.source_file_size == 42
        assert message.sent_at
