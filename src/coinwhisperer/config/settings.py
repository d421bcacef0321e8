"""Global settings management."""

import logging
from functools import cached_property
from pathlib import Path

import yaml
from dotenv import load_dotenv

from coinwhisperer.config.loader import ConfigLoader
from coinwhisperer.config.schemas import (
    CoinsConfig,
    EventsConfig,
    IngestionConfig,
    LoggingConfig,
    ServerConfig,
    SettingsConfig,
    StorageConfig,
    TradingDefaults,
)

logger = logging.getLogger(__name__)

# Default config directory (relative to the working directory)
DEFAULT_CONFIG_DIR = Path("config")


class Settings:
    """
    Central settings manager.

    Loads and validates settings.yaml and coins.yaml lazily, falling back to
    defaults for any file that is missing.
    """

    def __init__(self, config_dir: Path | str = DEFAULT_CONFIG_DIR):
        """
        Initialize settings from configuration directory.

        Args:
            config_dir: Path to configuration directory
        """
        self.config_dir = Path(config_dir)
        self._loader = ConfigLoader(self.config_dir)

    @classmethod
    def from_config(
        cls,
        config: SettingsConfig,
        coins: CoinsConfig | None = None,
    ) -> "Settings":
        """Build settings from already validated objects (tests, embedding)."""
        settings = cls(config_dir=Path("."))
        settings.__dict__["settings"] = config
        settings.__dict__["coins"] = coins or CoinsConfig()
        return settings

    def _load_section(self, name: str) -> dict | None:
        if not self.config_dir.exists():
            logger.warning(
                f"Config directory not found: {self.config_dir}. "
                "Using default settings."
            )
            return None
        try:
            return self._loader.load(name)
        except FileNotFoundError:
            logger.info(f"No {name}.yaml found, using defaults")
            return None

    @cached_property
    def settings(self) -> SettingsConfig:
        """Get global settings."""
        raw = self._load_section("settings")
        return SettingsConfig(**raw) if raw else SettingsConfig()

    @cached_property
    def coins(self) -> CoinsConfig:
        """Get seed coin configuration."""
        raw = self._load_section("coins")
        return CoinsConfig(**raw) if raw else CoinsConfig()

    @property
    def storage(self) -> StorageConfig:
        return self.settings.storage

    @property
    def logging_config(self) -> LoggingConfig:
        return self.settings.logging

    @property
    def server(self) -> ServerConfig:
        return self.settings.server

    @property
    def trading(self) -> TradingDefaults:
        return self.settings.trading

    @property
    def ingestion(self) -> IngestionConfig:
        return self.settings.ingestion

    @property
    def events(self) -> EventsConfig:
        return self.settings.events

    def validate(self) -> list[str]:
        """Load every file eagerly and return the problems found."""
        problems = []
        for name in ("settings", "coins"):
            try:
                getattr(self, name)
            except (yaml.YAMLError, ValueError) as e:
                problems.append(f"{name}: {e}")
        return problems

    def reload(self) -> None:
        """Reload all configuration from disk."""
        self._loader.clear_cache()
        self.__dict__.pop("settings", None)
        self.__dict__.pop("coins", None)
        logger.info("Configuration reloaded")

    def setup_logging(self) -> None:
        """Configure logging based on settings."""
        config = self.logging_config
        logging.basicConfig(
            level=getattr(logging, config.level.upper()),
            format=config.format,
            filename=config.file,
        )


# Global settings instance
_settings: Settings | None = None


def get_settings(config_dir: Path | str | None = None) -> Settings:
    """
    Get the process-wide settings instance.

    ``.env`` is read on first call so its values take part in ``${VAR}``
    substitution.

    Args:
        config_dir: Optional config directory (only used on first call)
    """
    global _settings
    if _settings is None:
        load_dotenv()
        _settings = Settings(config_dir or DEFAULT_CONFIG_DIR)
    return _settings


def reset_settings() -> None:
    """Reset global settings (mainly for testing)."""
    global _settings
    _settings = None
