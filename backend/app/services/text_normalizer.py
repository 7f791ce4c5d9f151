"""
Text normalization for decrypted payloads.

Turns the raw plaintext bytes into text and provides the character-level
cleanups the JSON recovery strategies build on. Each strategy picks its own
cleanup, so nothing here is applied automatically.
"""

import re
from typing import Union

# Every C0 and C1 control character
_CONTROL_CHARS_RE = re.compile(r"[\x00-\x1F\x7F-\x9F]")

# Controls left over once CR, LF and TAB have been escaped
_RESIDUAL_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F-\x9F]")

_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")
_LINE_BREAK_RUN_RE = re.compile(r"[\r\n]+")


def normalize(raw: Union[bytes, bytearray, str]) -> str:
    """
    Decode decrypted plaintext as UTF-8.

    Never raises: invalid byte sequences become U+FFFD. Text that is already
    decoded is returned unchanged.
    """
    if isinstance(raw, str):
        return raw
    return bytes(raw).decode("utf-8", errors="replace")


def strip_control_characters(text: str) -> str:
    """Remove every C0/C1 control character, including CR, LF and TAB."""
    return _CONTROL_CHARS_RE.sub("", text)


def escape_control_characters(text: str) -> str:
    """
    Make raw line breaks and tabs legal inside JSON string literals.

    CRLF, CR and LF become the two-character escape ``\\n``, TAB becomes
    ``\\t``, and every other control character is dropped.

    Examples:
        'a\\r\\nb'   -> 'a\\\\nb'
        'a\\tb\\x01' -> 'a\\\\tb'
    """
    escaped = _LINE_BREAK_RE.sub(r"\\n", text)
    escaped = escaped.replace("\t", "\\t")
    return _RESIDUAL_CONTROL_CHARS_RE.sub("", escaped)


def collapse_newlines(text: str) -> str:
    """Replace each run of CR/LF characters with a single space."""
    return _LINE_BREAK_RUN_RE.sub(" ", text)
