"""Configuration loading and override resolution."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from puckcoach.config.models import AppConfig

DEFAULT_CONFIG_PATH = Path("config/settings.yaml")

_ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "PUCKCOACH_GEMINI_MODEL": ("gemini", "model"),
    "GEMINI_BASE_URL": ("gemini", "base_url"),
    "GEMINI_UPLOAD_URL": ("gemini", "upload_url"),
    "PUCKCOACH_DB_PATH": ("storage", "db_path"),
}


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError("Configuration file must deserialize to a mapping")
    return data


def _set_nested(merged: dict[str, Any], section: str, key: str, value: Any) -> None:
    block = merged.get(section)
    if not isinstance(block, dict):
        block = {}
    else:
        block = dict(block)
    block[key] = value
    merged[section] = block


def apply_overrides(
    raw_config: dict[str, Any],
    env: Mapping[str, str],
    cli_overrides: Mapping[str, Any] | None,
) -> dict[str, Any]:
    """Apply precedence: CLI > env > YAML defaults.

    CLI overrides use dotted keys, e.g. ``{"gemini.model": "gemini-2.5-pro"}``.
    """
    merged = dict(raw_config)
    for env_name, (section, key) in _ENV_OVERRIDES.items():
        value = env.get(env_name)
        if value:
            _set_nested(merged, section, key, value)

    for dotted, value in (cli_overrides or {}).items():
        if value is None:
            continue
        section, _, key = dotted.partition(".")
        if not key:
            raise ValueError(f"CLI override must be 'section.key': {dotted}")
        _set_nested(merged, section, key, value)
    return merged


def load_app_config(
    config_path: Path | None = None,
    *,
    env: Mapping[str, str] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> AppConfig:
    """Load and validate central application config.

    Without an explicit path, a missing default file falls back to built-in
    defaults so the library is usable outside a checkout.
    """
    active_env = os.environ if env is None else env
    if config_path is None and not DEFAULT_CONFIG_PATH.exists():
        raw: dict[str, Any] = {}
    else:
        raw = _load_yaml(config_path or DEFAULT_CONFIG_PATH)
    merged = apply_overrides(raw, active_env, cli_overrides)
    return AppConfig.model_validate(merged)
