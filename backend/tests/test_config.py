"""
Tests for environment-driven configuration helpers.
"""

import pytest
from app.config import _env_bool, _env_int, get_cors_origins


class TestGetCorsOrigins:

    def test_defaults_to_wildcard(self, monkeypatch):
        monkeypatch.delenv("CORS_ORIGINS", raising=False)
        assert get_cors_origins() == ["*"]

    def test_comma_separated_list(self, monkeypatch):
        monkeypatch.setenv("CORS_ORIGINS", "https://a.example.com, https://b.example.com")
        assert get_cors_origins() == ["https://a.example.com", "https://b.example.com"]

    def test_duplicates_removed_in_order(self, monkeypatch):
        monkeypatch.setenv("CORS_ORIGINS", "https://b.example.com,https://a.example.com,https://b.example.com")
        assert get_cors_origins() == ["https://b.example.com", "https://a.example.com"]

    def test_only_separators_falls_back_to_wildcard(self, monkeypatch):
        monkeypatch.setenv("CORS_ORIGINS", " , ,")
        assert get_cors_origins() == ["*"]


class TestEnvHelpers:

    @pytest.mark.parametrize("raw,expected", [
        ("true", True), ("1", True), ("YES", True), ("on", True),
        ("false", False), ("0", False), ("no", False),
    ])
    def test_env_bool(self, monkeypatch, raw, expected):
        monkeypatch.setenv("SOME_FLAG", raw)
        assert _env_bool("SOME_FLAG", not expected) is expected

    def test_env_bool_default(self, monkeypatch):
        monkeypatch.delenv("SOME_FLAG", raising=False)
        assert _env_bool("SOME_FLAG", True) is True

    def test_env_int(self, monkeypatch):
        monkeypatch.setenv("SOME_NUMBER", "42")
        assert _env_int("SOME_NUMBER", 1) == 42

    def test_env_int_default(self, monkeypatch):
        monkeypatch.delenv("SOME_NUMBER", raising=False)
        assert _env_int("SOME_NUMBER", 7) == 7

    def test_env_int_invalid(self, monkeypatch):
        monkeypatch.setenv("SOME_NUMBER", "lots")
        with pytest.raises(ValueError, match="SOME_NUMBER"):
            _env_int("SOME_NUMBER", 7)

    @pytest.mark.parametrize("raw,expected", [
        ("50", 100), ("100", 100), ("150", 150), ("200", 200), ("5000", 200),
    ])
    def test_env_int_clamped(self, monkeypatch, raw, expected):
        monkeypatch.setenv("SAMPLE_RADIUS", raw)
        assert _env_int("SAMPLE_RADIUS", 100, minimum=100, maximum=200) == expected

    def test_env_int_default_clamped(self, monkeypatch):
        monkeypatch.delenv("SOME_NUMBER", raising=False)
        assert _env_int("SOME_NUMBER", 7, minimum=10) == 10
