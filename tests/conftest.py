"""
Global pytest fixtures and configuration for test suite.

This module provides reusable fixtures for:
- HTTP clients
- Sample email data and PDF attachments
- Temporary files
"""

import os
from typing import AsyncGenerator, Generator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from eml_binder.api.app import app
from eml_binder.models.email_document import Attachment, AttachmentKind, TransferEncoding
from eml_binder.parsing.transfer_encoding import encode_base64
from .fixtures.emails import SAMPLE_EMAILS, pdf_and_png_eml
from .fixtures.pdfs import make_pdf


@pytest_asyncio.fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    """
    Create async HTTP client for testing FastAPI endpoints.

    Yields:
        AsyncClient instance
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def sample_eml_bytes() -> bytes:
    """Simple plain text email bytes for basic tests."""
    return SAMPLE_EMAILS["simple_plain_text"]


@pytest.fixture
def multipart_alternative_eml() -> bytes:
    """Multipart email with both HTML and plain text parts."""
    return SAMPLE_EMAILS["multipart_alternative"]


@pytest.fixture
def html_only_eml() -> bytes:
    """Multipart email with a single HTML part."""
    return SAMPLE_EMAILS["html_only"]


@pytest.fixture
def attachment_eml() -> bytes:
    """Email with a PDF and a PNG attachment."""
    return pdf_and_png_eml()


@pytest.fixture
def tmp_eml_file(tmp_path) -> Generator[str, None, None]:
    """
    Create temporary .eml file for file-based tests.

    Args:
        tmp_path: pytest's temporary directory fixture

    Yields:
        Path to temporary .eml file
    """
    eml_path = tmp_path / "test_email.eml"
    eml_path.write_bytes(SAMPLE_EMAILS["simple_plain_text"])
    yield str(eml_path)


def make_pdf_attachment(name: str, *widths: float) -> Attachment:
    """Attachment of kind pdf holding a blank-page document."""
    data = make_pdf(*widths)
    return Attachment(
        name=name,
        declared_size=len(data),
        kind=AttachmentKind.PDF,
        mime_type="application/pdf",
        transfer_encoding=TransferEncoding.BASE64,
        payload=encode_base64(data),
    )


@pytest.fixture
def pdf_attachment_factory():
    """Factory building pdf attachments: ``factory(name, *page_widths)``."""
    return make_pdf_attachment


@pytest.fixture(autouse=True)
def reset_env_vars():
    """
    Reset environment variables before each test.

    This prevents test pollution from env var changes.
    """
    original_env = os.environ.copy()
    yield
    os.environ.clear()
    os.environ.update(original_env)


# Configuration for pytest-asyncio
def pytest_configure(config):
    """
    Configure pytest with custom markers and settings.
    """
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (API, end-to-end)"
    )
    config.addinivalue_line(
        "markers", "slow: Slow tests that may take longer to run"
    )
