"""Process environment helpers: .env loading and secret lookup."""

from __future__ import annotations

import os
from typing import Mapping

from dotenv import find_dotenv, load_dotenv

_DISABLE_FLAG = "PUCKCOACH_DISABLE_DOTENV"
_TRUTHY = {"1", "true", "yes", "on"}


def dotenv_disabled(env: Mapping[str, str] | None = None) -> bool:
    """Return whether .env loading has been switched off for this process."""
    active_env = os.environ if env is None else env
    return active_env.get(_DISABLE_FLAG, "").strip().lower() in _TRUTHY


def load_runtime_env(*, filename: str = ".env") -> bool:
    """Load the nearest .env upward from cwd; exported variables always win."""
    if dotenv_disabled():
        return False

    located = find_dotenv(filename=filename, usecwd=True)
    if not located:
        return False
    return bool(load_dotenv(dotenv_path=located, override=False))


def read_secret(
    name: str,
    env: Mapping[str, str] | None = None,
    *,
    fallbacks: tuple[str, ...] = (),
) -> str:
    """Return the first non-blank value among ``name`` and ``fallbacks``."""
    active_env = os.environ if env is None else env
    for candidate in (name, *fallbacks):
        value = active_env.get(candidate, "").strip()
        if value:
            return value
    raise ValueError(f"Missing API key env var: {name}")
