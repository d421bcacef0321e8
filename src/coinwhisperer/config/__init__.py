"""Configuration management module."""

from coinwhisperer.config.loader import load_yaml_config
from coinwhisperer.config.settings import Settings, get_settings, reset_settings

__all__ = [
    "Settings",
    "get_settings",
    "load_yaml_config",
    "reset_settings",
]
