"""
Post-parse cleanup of decrypted messages.
"""

import re
from typing import Any

# Free-form text fields of a message
TEXT_FIELDS = ("text", "content", "caption")

# C0 controls except TAB and LF, plus DEL
_MESSAGE_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0B-\x1F\x7F]")


def clean_text(value: str) -> str:
    """Drop control characters (keeping tabs and newlines) and trim."""
    return _MESSAGE_CONTROL_CHARS_RE.sub("", value).strip()


def sanitize(value: Any) -> Any:
    """
    Clean the text fields of every message in a parsed payload.

    Lists are walked element by element and dict elements have their
    ``text``, ``content`` and ``caption`` strings cleaned in place. Other
    fields, non-dict elements and non-list payloads are returned unchanged.
    Running it twice gives the same result as running it once.
    """
    if not isinstance(value, list):
        return value

    for message in value:
        if not isinstance(message, dict):
            continue
        for name in TEXT_FIELDS:
            field_value = message.get(name)
            if isinstance(field_value, str):
                message[name] = clean_text(field_value)

    return value


def message_count(value: Any) -> int:
    """Number of messages, or 0 when the payload is not a list."""
    return len(value) if isinstance(value, list) else 0
