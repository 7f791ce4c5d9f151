"""
Unit tests for plaintext decoding and the character-level cleanups used by
the JSON recovery strategies.
"""

import pytest
from app.services.text_normalizer import (
    normalize,
    strip_control_characters,
    escape_control_characters,
    collapse_newlines,
)


# ---------------------------------------------------------------------------
# normalize
# ---------------------------------------------------------------------------

class TestNormalize:
    """Tests for bytes -> text decoding."""

    def test_ascii_bytes(self):
        assert normalize(b'[{"text":"hi"}]') == '[{"text":"hi"}]'

    def test_utf8_multibyte(self):
        assert normalize("Olá, coração".encode("utf-8")) == "Olá, coração"

    def test_invalid_bytes_are_replaced_not_raised(self):
        result = normalize(b"\xff\xfeabc")
        assert "�" in result
        assert result.endswith("abc")

    def test_empty_bytes(self):
        assert normalize(b"") == ""

    def test_bytearray_accepted(self):
        assert normalize(bytearray(b"abc")) == "abc"

    def test_text_passes_through(self):
        assert normalize("already text") == "already text"


# ---------------------------------------------------------------------------
# strip_control_characters
# ---------------------------------------------------------------------------

class TestStripControlCharacters:

    def test_removes_c0_and_c1(self):
        assert strip_control_characters("a\x00b\nc\td\x7fe\x9ff") == "abcdef"

    def test_removes_line_breaks_and_tabs(self):
        assert strip_control_characters("a\r\n\tb") == "ab"

    def test_printable_text_unchanged(self):
        text = 'Olá "mundo" \\ {}[]'
        assert strip_control_characters(text) == text


# ---------------------------------------------------------------------------
# escape_control_characters
# ---------------------------------------------------------------------------

class TestEscapeControlCharacters:

    def test_crlf_becomes_single_escape(self):
        assert escape_control_characters("a\r\nb") == "a\\nb"

    def test_lone_cr_and_lf(self):
        assert escape_control_characters("a\rb\nc") == "a\\nb\\nc"

    def test_tab_escaped(self):
        assert escape_control_characters("a\tb") == "a\\tb"

    def test_other_controls_dropped(self):
        # \x85 is a C1 control
        assert escape_control_characters("a\x01b\x0bc\x85d") == "abcd"

    def test_consecutive_line_breaks_each_escaped(self):
        assert escape_control_characters("a\n\nb") == "a\\n\\nb"


# ---------------------------------------------------------------------------
# collapse_newlines
# ---------------------------------------------------------------------------

class TestCollapseNewlines:

    def test_runs_become_single_space(self):
        assert collapse_newlines("a\r\n\r\nb\nc") == "a b c"

    def test_tabs_untouched(self):
        assert collapse_newlines("a\tb") == "a\tb"

    @pytest.mark.parametrize("text", ["", "no breaks here"])
    def test_text_without_breaks_unchanged(self, text):
        assert collapse_newlines(text) == text
