# Text cleanup and HTML reduction

from .html_converter import html_to_text, looks_like_html, strip_html
from .text_normalizer import (
    clean_email_body,
    normalize_line_endings,
    normalize_whitespace,
    remove_excessive_newlines,
)

__all__ = [
    "html_to_text",
    "looks_like_html",
    "strip_html",
    "clean_email_body",
    "normalize_line_endings",
    "normalize_whitespace",
    "remove_excessive_newlines",
]
