"""
Body text cleanup.

Final pass applied to every resolved message body: strips header lines and MIME
artifacts that leaked into the text and normalizes whitespace.
"""

import re

# Header-looking lines that leak into bodies of forwarded or badly split messages
STRAY_HEADER_LINES = re.compile(
    r"^(From|To|Subject|Date|Sent):.*$", re.IGNORECASE | re.MULTILINE
)

# Outlook-style boundary tokens ("--_000_...")
BOUNDARY_ARTIFACT = re.compile(r"--_([A-Z0-9_]+)")

MIME_HEADER_LINES = [
    re.compile(r"Content-Type:.*?(\n|$)", re.IGNORECASE),
    re.compile(r"Content-Transfer-Encoding:.*?(\n|$)", re.IGNORECASE),
]


def normalize_line_endings(text: str) -> str:
    """Convert CRLF and lone CR line endings to LF."""
    return text.replace("\r\n", "\n").replace("\r", "\n")


def normalize_whitespace(text: str) -> str:
    """
    Collapse runs of spaces and tabs, drop indentation and trailing blanks.

    Line breaks are kept; use ``remove_excessive_newlines`` for blank-line runs.
    """
    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r"^ +| +$", "", text, flags=re.MULTILINE)
    return text


def remove_excessive_newlines(text: str) -> str:
    """Collapse three or more consecutive newlines into one blank line."""
    return re.sub(r"\n{3,}", "\n\n", text)


def clean_email_body(body: str) -> str:
    """
    Clean a resolved message body.

    Steps:
    1. Normalize line endings
    2. Remove stray From/To/Subject/Date/Sent lines
    3. Remove boundary artifacts and Content-Type/Content-Transfer-Encoding lines
    4. Collapse whitespace and blank-line runs

    Args:
        body: Resolved body text

    Returns:
        Cleaned text, possibly empty
    """
    if not body:
        return ""

    text = normalize_line_endings(body)
    text = STRAY_HEADER_LINES.sub("", text)
    text = BOUNDARY_ARTIFACT.sub("", text)
    for pattern in MIME_HEADER_LINES:
        text = pattern.sub("", text)

    text = normalize_whitespace(text)
    text = remove_excessive_newlines(text)

    return text.strip()
