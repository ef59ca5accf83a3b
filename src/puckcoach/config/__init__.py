"""Configuration exports."""

from puckcoach.config.loader import DEFAULT_CONFIG_PATH, load_app_config
from puckcoach.config.models import AppConfig

__all__ = ["AppConfig", "DEFAULT_CONFIG_PATH", "load_app_config"]
