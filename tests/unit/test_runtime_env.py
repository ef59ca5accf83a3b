"""Runtime .env loading tests."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from puckcoach.runtime_env import dotenv_disabled, load_runtime_env, read_secret


def _write_env(path: Path, content: str) -> None:
    path.write_text(content, encoding="utf-8")


def test_load_runtime_env_reads_dotenv(monkeypatch, tmp_path: Path) -> None:  # type: ignore[no-untyped-def]
    """Runtime loader should populate env vars from .env when present."""
    _write_env(
        tmp_path / ".env",
        "GEMINI_API_KEY=from-dotenv\nLANGFUSE_HOST=http://localhost:3000\n",
    )
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("LANGFUSE_HOST", raising=False)
    monkeypatch.delenv("PUCKCOACH_DISABLE_DOTENV", raising=False)

    loaded = load_runtime_env()

    assert loaded is True
    assert os.environ["GEMINI_API_KEY"] == "from-dotenv"
    assert os.environ["LANGFUSE_HOST"] == "http://localhost:3000"


def test_load_runtime_env_does_not_override_existing(monkeypatch, tmp_path: Path) -> None:  # type: ignore[no-untyped-def]
    """Runtime loader should preserve already-exported process env values."""
    _write_env(tmp_path / ".env", "GEMINI_API_KEY=from-dotenv\n")
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("GEMINI_API_KEY", "from-shell")
    monkeypatch.delenv("PUCKCOACH_DISABLE_DOTENV", raising=False)

    loaded = load_runtime_env()

    assert loaded is True
    assert os.environ["GEMINI_API_KEY"] == "from-shell"


def test_load_runtime_env_can_be_disabled(monkeypatch, tmp_path: Path) -> None:  # type: ignore[no-untyped-def]
    """Runtime loader should no-op when explicit disable flag is set."""
    _write_env(tmp_path / ".env", "GEMINI_API_KEY=from-dotenv\n")
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("PUCKCOACH_DISABLE_DOTENV", "true")
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)

    loaded = load_runtime_env()

    assert loaded is False
    assert "GEMINI_API_KEY" not in os.environ
    assert dotenv_disabled({"PUCKCOACH_DISABLE_DOTENV": "0"}) is False


def test_read_secret_uses_fallbacks_and_skips_blanks() -> None:
    """Blank values are ignored and fallbacks are tried in order."""
    env = {"GEMINI_API_KEY": "  ", "GOOGLE_API_KEY": "google-key"}
    assert read_secret("GEMINI_API_KEY", env, fallbacks=("GOOGLE_API_KEY",)) == "google-key"
    with pytest.raises(ValueError, match="GEMINI_API_KEY"):
        read_secret("GEMINI_API_KEY", env)
