"""
Content-Transfer-Encoding codecs.

Pure string/bytes transformations for quoted-printable and base64 payloads.
Quoted-printable escapes are mapped byte-for-character (latin-1 semantics);
charset handling is left to the caller.
"""

import base64
import binascii
import re

from ..errors import DecodeError

SOFT_LINE_BREAK = re.compile(r"=\r?\n")
HEX_ESCAPE = re.compile(r"=([0-9A-Fa-f]{2})")
WHITESPACE = re.compile(r"\s+")

# RFC 2045 limit is 76 including the trailing "=" of a soft break
QP_MAX_LINE = 75


def decode_quoted_printable(text: str) -> str:
    """
    Decode quoted-printable text.

    Soft line breaks are removed first, then every ``=XX`` escape becomes the
    character with that code point. Malformed escapes pass through unchanged.

    Args:
        text: Quoted-printable encoded text

    Returns:
        Decoded text
    """
    if not text:
        return ""

    text = SOFT_LINE_BREAK.sub("", text)
    return HEX_ESCAPE.sub(lambda m: chr(int(m.group(1), 16)), text)


def _escape(char: str) -> str:
    if ord(char) > 0xFF:
        return "".join(f"={b:02X}" for b in char.encode("utf-8"))
    return f"={ord(char):02X}"


def _needs_escape(char: str) -> bool:
    code = ord(char)
    return char == "=" or code > 126 or (code < 32 and char not in "\t")


def encode_quoted_printable(text: str) -> str:
    """
    Encode text as quoted-printable.

    ``=``, control characters and non-ASCII characters become ``=XX`` escapes
    (characters above U+00FF are written as their UTF-8 bytes). Lines longer
    than 76 characters are wrapped with soft line breaks. Trailing spaces and
    tabs before a line break are escaped.
    """
    out_lines = []
    for line in text.split("\n"):
        tokens = []
        for i, char in enumerate(line):
            is_last = i == len(line) - 1
            if _needs_escape(char) or (is_last and char in " \t"):
                tokens.append(_escape(char))
            else:
                tokens.append(char)

        wrapped = []
        current = ""
        for token in tokens:
            if len(current) + len(token) > QP_MAX_LINE:
                wrapped.append(current + "=")
                current = ""
            current += token
        wrapped.append(current)
        out_lines.append("\n".join(wrapped))

    return "\n".join(out_lines)


def decode_base64_to_bytes(text: str) -> bytes:
    """
    Decode base64 text to bytes after removing all whitespace.

    Args:
        text: Base64 text, possibly wrapped over several lines

    Returns:
        Decoded bytes

    Raises:
        DecodeError: If the text has an invalid alphabet or padding
    """
    cleaned = WHITESPACE.sub("", text or "")
    try:
        return base64.b64decode(cleaned, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"Invalid base64 payload: {e}") from e


def encode_base64(data: bytes) -> str:
    """Encode bytes as a single-line base64 string."""
    return base64.b64encode(data).decode("ascii")
