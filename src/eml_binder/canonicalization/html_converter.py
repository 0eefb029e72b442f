"""
HTML to text conversion module.

``strip_html`` is the heuristic reducer used for message bodies; ``html_to_text``
uses html2text for HTML bodies delivered by legacy containers.
"""

import re
import html2text

SCRIPT_BLOCK = re.compile(r"<script\b[^>]*>.*?</script\s*>", re.DOTALL | re.IGNORECASE)
STYLE_BLOCK = re.compile(r"<style\b[^>]*>.*?</style\s*>", re.DOTALL | re.IGNORECASE)
ANY_TAG = re.compile(r"<[^>]+>")

# Closing/void tags mapped to the text that replaces them, applied in order
BLOCK_REPLACEMENTS = [
    (re.compile(r"</p\s*>", re.IGNORECASE), "\n\n"),
    (re.compile(r"</div\s*>", re.IGNORECASE), "\n"),
    (re.compile(r"</h[1-6]\s*>", re.IGNORECASE), "\n\n"),
    (re.compile(r"<br\s*/?>", re.IGNORECASE), "\n"),
    (re.compile(r"</td\s*>", re.IGNORECASE), " "),
    (re.compile(r"</tr\s*>", re.IGNORECASE), "\n"),
    (re.compile(r"</table\s*>", re.IGNORECASE), "\n"),
    (re.compile(r"<li\b[^>]*>", re.IGNORECASE), "\n• "),
]

ENTITIES = [
    ("&nbsp;", " "),
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
    ("&apos;", "'"),
]

HTML_MARKERS = ("<html", "<body", "<div", "<p>")


def looks_like_html(text: str) -> bool:
    """Whether text still carries markup that should be reduced to plain text."""
    if not text:
        return False
    lowered = text.lower()
    return any(marker in lowered for marker in HTML_MARKERS)


def strip_html(html: str) -> str:
    """
    Reduce HTML to readable plain text.

    Script and style blocks are dropped, block-level tags become line breaks,
    list items become bullet lines, remaining tags are removed and the common
    entities unescaped. Paragraphs end up separated by one blank line.

    Args:
        html: HTML content

    Returns:
        Plain text
    """
    if not html:
        return ""

    text = SCRIPT_BLOCK.sub("", html)
    text = STYLE_BLOCK.sub("", text)

    # Source line breaks carry no meaning in HTML
    text = re.sub(r"\s*\r?\n\s*", " ", text)

    for pattern, replacement in BLOCK_REPLACEMENTS:
        text = pattern.sub(replacement, text)

    text = ANY_TAG.sub("", text)

    for entity, char in ENTITIES:
        text = text.replace(entity, char)

    text = re.sub(r"[ \t\f\v]+", " ", text)
    text = re.sub(r" *\n *", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)

    return text.strip()


def html_to_text(html: str, preserve_links: bool = False) -> str:
    """
    Convert a full HTML document to plain text with html2text.

    Args:
        html: HTML content
        preserve_links: Whether to keep links as markdown [text](url)

    Returns:
        Plain text representation
    """
    if not html or not html.strip():
        return ""

    h = html2text.HTML2Text()
    h.ignore_links = not preserve_links
    h.ignore_images = True
    h.ignore_emphasis = True
    h.body_width = 0  # Don't wrap lines
    h.unicode_snob = True

    try:
        text = h.handle(html)
        return text.strip()
    except Exception:
        # html2text chokes on some malformed documents
        return strip_html(html)
