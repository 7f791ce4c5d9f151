"""
Tolerant JSON recovery for decrypted message payloads.

The upstream producer emits a JSON array of message objects, but its output
is regularly broken: raw line breaks inside string literals, stray control
characters, trailing commas, and backtick pairs used as paragraph
separators. recover_json() runs an ordered list of repair-and-parse
strategies over the text and returns the first one that parses.

Strategy order (first success is final, no scoring):
  1. direct                parse as-is
  2. control_normalized    escape CR/LF/TAB, drop other controls
  3. whitespace_collapsed  CR/LF runs -> single space
  4. reescaped_strings     re-escape the content of every string literal
  5. extracted_array       first '[' .. last ']', drop controls, fix commas
  6. quoted_document       parse the whole text as a string-encoded document
  7. salvaged_objects      parse flat {...} objects one by one, drop failures

Known limitation: salvaged_objects only sees objects without nested braces.
Nested objects do not match its pattern and are dropped, never repaired.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Callable, List, NamedTuple, Optional, Sequence, Tuple

from app import config
from app.errors import JsonRecoveryFailed
from app.services.text_normalizer import (
    collapse_newlines,
    escape_control_characters,
    strip_control_characters,
)

logger = logging.getLogger(__name__)

# A JSON string literal, written as an unrolled loop so it stays linear
_STRING_LITERAL_RE = re.compile(r'"([^"\\]*(?:\\.[^"\\]*)*)"', re.DOTALL)

# An object with no nested braces
_FLAT_OBJECT_RE = re.compile(r"\{[^{}]*\}")

_DUPLICATE_COMMA_RE = re.compile(r",(?:\s*,)+")
_TRAILING_COMMA_RE = re.compile(r",\s*\]")
_LEADING_COMMA_RE = re.compile(r"\[\s*,")

_LINE_BREAK_RUN_RE = re.compile(r"[\r\n]+")
_TAB_RUN_RE = re.compile(r"\t+")

# \n, \t or \r escapes whose backslash is not itself escaped
_ESCAPED_WHITESPACE_RE = re.compile(r"(?<!\\)((?:\\\\)*)\\[ntr]")


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DelimiterRule:
    """A named text substitution applied to salvage candidates."""

    name: str
    pattern: "re.Pattern[str]"
    replacement: str

    def apply(self, text: str) -> str:
        return self.pattern.sub(self.replacement, text)


# The producer separates paragraphs with a quote followed by two backticks
BACKTICK_PARAGRAPH = DelimiterRule(
    name="backtick_paragraph",
    pattern=re.compile(r'"\s*`\s*`'),
    replacement=r"\\n",
)

DEFAULT_DELIMITER_RULES: Tuple[DelimiterRule, ...] = (BACKTICK_PARAGRAPH,)


class RecoveryStrategy(NamedTuple):
    rank: int
    name: str
    parse: Callable[[str], Any]


@dataclass
class RecoveryResult:
    """Parsed value plus the strategy that produced it."""

    value: Any
    strategy: str
    rank: int


@dataclass
class ContextWindow:
    """
    Slice of text around an offset.

    start and end are clamped to [0, len(text)]. When the offset is at or
    beyond the end of the text, ``at`` and ``after`` are empty.
    """

    start: int
    end: int
    before: str
    at: str
    after: str
    sample: str


@dataclass
class ParseFailure:
    """Diagnostics for a payload no strategy could parse."""

    message: str
    position: int
    window: ContextWindow
    char_code: Optional[int]
    length: int
    attempts: List[Tuple[str, str]] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _reject_constant(name: str) -> Any:
    raise ValueError(f"Invalid JSON constant: {name}")


def strict_loads(text: str) -> Any:
    """json.loads without the NaN/Infinity extensions."""
    return json.loads(text, parse_constant=_reject_constant)


def context_window(text: str, offset: int, radius: int) -> ContextWindow:
    """
    Return the text within ``radius`` characters of ``offset``.

    Offsets past the end of the text never raise; they produce an empty
    ``after`` (and an empty sample once the offset is more than ``radius``
    characters out).
    """
    length = len(text)
    offset = max(0, offset)
    radius = max(0, radius)

    start = min(max(0, offset - radius), length)
    end = max(start, min(length, offset + radius))
    pivot = min(offset, length)

    return ContextWindow(
        start=start,
        end=end,
        before=text[start:pivot],
        at=text[pivot:pivot + 1] if pivot < end else "",
        after=text[pivot + 1:end] if pivot < end else "",
        sample=text[start:end],
    )


def _array_slice(text: str) -> str:
    start = text.find("[")
    end = text.rfind("]")
    if start == -1 or end == -1 or end < start:
        raise ValueError("No JSON array found in decrypted data")
    return text[start:end + 1]


def _reescape_literal(match: "re.Match[str]") -> str:
    content = strip_control_characters(match.group(1))
    content = content.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{content}"'


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

def parse_direct(text: str) -> Any:
    return strict_loads(text)


def parse_control_normalized(text: str) -> Any:
    return strict_loads(escape_control_characters(text))


def parse_whitespace_collapsed(text: str) -> Any:
    # Loses intentional line breaks inside string values
    return strict_loads(collapse_newlines(text))


def parse_reescaped_strings(text: str) -> Any:
    """
    Re-escape the content of every string literal inside the array.

    Aimed at payloads whose structure is valid but whose string contents
    carry raw control characters.
    """
    array_text = _array_slice(text)
    return strict_loads(_STRING_LITERAL_RE.sub(_reescape_literal, array_text))


def parse_extracted_array(text: str) -> Any:
    """Cut out the outermost array and repair its separators."""
    array_text = strip_control_characters(_array_slice(text))
    array_text = _DUPLICATE_COMMA_RE.sub(",", array_text)
    array_text = _TRAILING_COMMA_RE.sub("]", array_text)
    array_text = _LEADING_COMMA_RE.sub("[", array_text)
    return strict_loads(array_text)


def parse_quoted_document(text: str) -> Any:
    """
    Treat the whole payload as the body of a JSON string, then parse the
    decoded string as JSON.

    Only useful when the producer double-encoded the document.
    """
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    escaped = _LINE_BREAK_RUN_RE.sub(r"\\n", escaped)
    escaped = _TAB_RUN_RE.sub(r"\\t", escaped)
    document = strict_loads(f'"{escaped}"')
    return strict_loads(document)


def salvage_objects(
    text: str,
    delimiter_rules: Sequence[DelimiterRule] = DEFAULT_DELIMITER_RULES,
    log: Optional[logging.Logger] = None,
) -> List[Any]:
    """
    Parse every flat ``{...}`` object on its own and keep the ones that parse.

    Candidates that still fail after cleanup are dropped. Raises ValueError
    when no candidate could be parsed.
    """
    log = log or logger
    candidates = _FLAT_OBJECT_RE.findall(text)

    recovered: List[Any] = []
    for index, candidate in enumerate(candidates):
        cleaned = strip_control_characters(candidate)
        cleaned = _ESCAPED_WHITESPACE_RE.sub(r"\1 ", cleaned)
        for rule in delimiter_rules:
            cleaned = rule.apply(cleaned)
        try:
            recovered.append(strict_loads(cleaned))
        except (ValueError, RecursionError) as exc:
            log.debug("salvage: dropped candidate %d: %s", index, exc)

    log.info("Object salvage recovered %d of %d objects", len(recovered), len(candidates))

    if not recovered:
        raise ValueError("No parseable objects found in decrypted data")

    return recovered


def build_strategies(
    delimiter_rules: Optional[Sequence[DelimiterRule]] = None,
    log: Optional[logging.Logger] = None,
) -> Tuple[RecoveryStrategy, ...]:
    """
    Return the ordered strategy list.

    ``delimiter_rules`` defaults to DEFAULT_DELIMITER_RULES, or to no rules
    when BACKTICK_PARAGRAPH_RULE is switched off.
    """
    if delimiter_rules is None:
        delimiter_rules = DEFAULT_DELIMITER_RULES if config.BACKTICK_PARAGRAPH_RULE else ()

    steps: List[Tuple[str, Callable[[str], Any]]] = [
        ("direct", parse_direct),
        ("control_normalized", parse_control_normalized),
        ("whitespace_collapsed", parse_whitespace_collapsed),
        ("reescaped_strings", parse_reescaped_strings),
        ("extracted_array", parse_extracted_array),
        ("quoted_document", parse_quoted_document),
        (
            "salvaged_objects",
            partial(salvage_objects, delimiter_rules=tuple(delimiter_rules), log=log),
        ),
    ]
    return tuple(
        RecoveryStrategy(rank=rank, name=name, parse=parse)
        for rank, (name, parse) in enumerate(steps, start=1)
    )


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

def build_parse_failure(
    text: str,
    errors: Sequence[Tuple[RecoveryStrategy, Exception]],
    diagnostic_offset: Optional[int] = None,
    window_radius: int = 100,
) -> ParseFailure:
    """
    Describe a total failure using the first strategy's error.

    The offset is ``diagnostic_offset`` when given, else the position the
    first parse error reported, else config.DIAGNOSTIC_OFFSET.
    """
    first_error = errors[0][1] if errors else None
    message = str(first_error) if first_error is not None else "No recovery strategies configured"

    position = diagnostic_offset
    if position is None:
        reported = getattr(first_error, "pos", None)
        position = reported if isinstance(reported, int) else config.DIAGNOSTIC_OFFSET
    position = max(0, position)

    char_code = ord(text[position]) if position < len(text) else None

    return ParseFailure(
        message=message,
        position=position,
        window=context_window(text, position, window_radius),
        char_code=char_code,
        length=len(text),
        attempts=[(strategy.name, str(exc)) for strategy, exc in errors],
    )


def recover_json(
    text: str,
    *,
    log: Optional[logging.Logger] = None,
    strategies: Optional[Sequence[RecoveryStrategy]] = None,
    diagnostic_offset: Optional[int] = None,
    window_radius: int = 100,
) -> RecoveryResult:
    """
    Parse ``text`` with the first strategy that succeeds.

    Args:
        text: Decrypted plaintext.
        log: Logger receiving per-strategy diagnostics (module logger if None).
        strategies: Ordered strategies; build_strategies() if None.
        diagnostic_offset: Offset to report on total failure.
        window_radius: Characters on each side of the offset in the sample.

    Returns:
        RecoveryResult with the parsed value and the winning strategy.

    Raises:
        JsonRecoveryFailed: every strategy failed. Carries a ParseFailure
            built from the first strategy's error.
    """
    log = log or logger
    if strategies is None:
        strategies = build_strategies(log=log)

    errors: List[Tuple[RecoveryStrategy, Exception]] = []
    for strategy in strategies:
        log.info("Trying strategy %d (%s)...", strategy.rank, strategy.name)
        try:
            value = strategy.parse(text)
        except Exception as exc:
            log.info("Strategy %d (%s) failed: %s", strategy.rank, strategy.name, exc)
            errors.append((strategy, exc))
            continue

        log.info("Strategy %d (%s) succeeded", strategy.rank, strategy.name)
        return RecoveryResult(value=value, strategy=strategy.name, rank=strategy.rank)

    failure = build_parse_failure(text, errors, diagnostic_offset, window_radius)

    log.error("All recovery strategies failed (%d tried)", len(errors))
    log.error(
        "Sample around position %d: %r",
        failure.position,
        failure.window.sample,
    )
    if failure.char_code is not None:
        log.error(
            "Character at position %d: code %d (0x%x)",
            failure.position,
            failure.char_code,
            failure.char_code,
        )

    raise JsonRecoveryFailed(failure.message, failure)
