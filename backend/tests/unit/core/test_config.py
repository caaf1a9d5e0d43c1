"""Tests for settings."""

import pytest
from pydantic import ValidationError

from ledgerstate.core.config import Settings


def test_defaults(monkeypatch):
    """Test default settings."""
    monkeypatch.delenv("LEDGERSTATE_LOG_LEVEL", raising=False)
    monkeypatch.delenv("LEDGERSTATE_DEFAULT_RESOLVE_DEPTH", raising=False)

    settings = Settings(_env_file=None)

    assert settings.LOG_LEVEL == "INFO"
    assert settings.DEFAULT_RESOLVE_DEPTH is None


def test_reads_prefixed_environment(monkeypatch):
    """Test that settings come from LEDGERSTATE_ variables."""
    monkeypatch.setenv("LEDGERSTATE_LOG_LEVEL", "warning")
    monkeypatch.setenv("LEDGERSTATE_DEFAULT_RESOLVE_DEPTH", "3")

    settings = Settings(_env_file=None)

    assert settings.LOG_LEVEL == "WARNING"
    assert settings.DEFAULT_RESOLVE_DEPTH == 3


def test_rejects_unknown_log_level(monkeypatch):
    """Test that log levels are validated."""
    monkeypatch.setenv("LEDGERSTATE_LOG_LEVEL", "chatty")

    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_rejects_negative_depth(monkeypatch):
    """Test that the default depth cannot be negative."""
    monkeypatch.setenv("LEDGERSTATE_DEFAULT_RESOLVE_DEPTH", "-1")

    with pytest.raises(ValidationError):
        Settings(_env_file=None)
