"""
Decryption pipeline: JWE -> plaintext -> recovered JSON -> cleaned messages.

handle_decrypt() is the main entry point used by POST /decrypt. The
analyze_* helpers back the debug endpoints and never run the recovery
engine.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from app import config
from app.errors import MissingInput
from app.models.decrypt import (
    CharacterInfo,
    DecryptAnalysis,
    ErrorContext,
    ErrorPositionAnalysis,
)
from app.services.json_recovery import context_window, recover_json
from app.services.jwe_adapter import decrypt, import_key
from app.services.message_sanitizer import message_count, sanitize
from app.services.text_normalizer import normalize

logger = logging.getLogger(__name__)

ERROR_POSITION_SUGGESTION = "Look for unescaped quotes, raw line breaks or special characters"


@dataclass
class DecryptOutcome:
    messages: Any
    count: int
    strategy: str


def decrypt_to_text(jwe: Optional[str], private_key: Optional[dict]) -> str:
    """
    Validate inputs, decrypt, and decode the plaintext.

    Raises:
        MissingInput: jwe or private_key is missing or empty.
        KeyImportError / DecryptionError: from the adapter.
    """
    if not jwe or not private_key:
        raise MissingInput("Both 'jwe' and 'privateKey' are required")

    alg = private_key.get("alg") if isinstance(private_key, dict) else None
    logger.info("Importing JWK (alg=%s)", alg)
    key = import_key(private_key, alg)

    logger.info("Decrypting JWE (%d chars)", len(jwe))
    plaintext = decrypt(jwe, key)

    text = normalize(plaintext)
    logger.info("Decoded plaintext, length: %d", len(text))
    return text


def handle_decrypt(
    jwe: Optional[str],
    private_key: Optional[dict],
    *,
    log: Optional[logging.Logger] = None,
) -> DecryptOutcome:
    """
    Full pipeline for POST /decrypt.

    Returns:
        DecryptOutcome with the sanitized messages, their count (0 when the
        payload is not a list) and the name of the recovery strategy used.

    Raises:
        MissingInput, KeyImportError, DecryptionError, JsonRecoveryFailed
    """
    text = decrypt_to_text(jwe, private_key)

    result = recover_json(text, log=log or logger, window_radius=config.SAMPLE_RADIUS)

    messages = sanitize(result.value)
    count = message_count(messages)

    if isinstance(messages, list):
        logger.info("Parsed %d messages (strategy: %s)", count, result.strategy)
    else:
        logger.info("Parsed payload is not an array (strategy: %s)", result.strategy)

    return DecryptOutcome(messages=messages, count=count, strategy=result.strategy)


# ---------------------------------------------------------------------------
# Diagnostics
# ---------------------------------------------------------------------------

def _character_type(code: int) -> str:
    if code < 32:
        return "control"
    if code > 126:
        return "extended"
    return "normal"


def describe_character(text: str, position: int, printable_only: bool = False) -> CharacterInfo:
    """Describe the character at ``position``; non-printables shown as [code] if asked."""
    char = text[position]
    code = ord(char)
    if printable_only and not 32 <= code <= 126:
        char = f"[{code}]"
    return CharacterInfo(
        position=position,
        char=char,
        code=code,
        hex=hex(code),
        type=_character_type(code),
    )


def analyze_plaintext(text: str, start: int = 220, end: int = 240) -> DecryptAnalysis:
    """Length, head, tail and per-character codes for ``[start, end)``."""
    start = max(0, start)
    end = min(len(text), end)
    return DecryptAnalysis(
        length=len(text),
        first_chars=text[:100],
        last_chars=text[-100:] if text else "",
        char_codes=[describe_character(text, i) for i in range(start, end)],
    )


def analyze_error_position(text: str, position: int = 6801) -> ErrorPositionAnalysis:
    """
    Context and character breakdown around a suspected parse error.

    Positions outside the text are clamped, never an error.
    """
    position = max(0, position)
    window = context_window(text, position, 200)
    pattern = context_window(text, position, 50)

    first = max(0, position - 10)
    last = min(len(text), position + 10)

    return ErrorPositionAnalysis(
        total_length=len(text),
        error_position=position,
        context=ErrorContext(before=window.before, at=window.at, after=window.after),
        character_analysis=[
            describe_character(text, i, printable_only=True) for i in range(first, last)
        ],
        json_pattern=pattern.sample,
        suggestion=ERROR_POSITION_SUGGESTION,
    )
