"""
Error taxonomy for message decoding and PDF merging.

Each error carries a stable ``error_code`` so API and CLI layers can report
failures without matching on message text.
"""

from typing import List, Optional


class EmlBinderError(Exception):
    """Base class for all extraction and merge errors."""

    default_code = "error"

    def __init__(self, message: str, error_code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code


class DecodeError(EmlBinderError):
    """A base64 or quoted-printable unit could not be decoded."""

    default_code = "decode_error"


class StructuralParseError(EmlBinderError):
    """No boundary or no header/body separator was found."""

    default_code = "structural_parse_error"


class UnsupportedFormatError(EmlBinderError):
    """A legacy container could not be opened by the available reader."""

    default_code = "unsupported_format"


class PdfLoadError(EmlBinderError):
    """An attachment is not a loadable PDF document."""

    default_code = "pdf_load_error"


class MergeEmptyError(EmlBinderError):
    """No pages were collected across all merge inputs."""

    default_code = "nothing_to_merge"

    def __init__(self, message: str, failures: Optional[List] = None):
        super().__init__(message)
        self.failures = list(failures or [])


class FileDecodeError(EmlBinderError):
    """Decoding a single input file failed as a whole."""

    default_code = "file_decode_error"

    def __init__(self, message: str, file_name: str = "", error_code: Optional[str] = None):
        super().__init__(message, error_code)
        self.file_name = file_name
