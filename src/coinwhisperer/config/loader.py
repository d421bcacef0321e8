"""YAML config files with ${ENV} substitution."""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

# ${VAR_NAME} or ${VAR_NAME:default_value}
ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::([^}]*))?\}")


def substitute_env_vars(value: Any) -> Any:
    """
    Recursively replace ``${VAR}`` and ``${VAR:default}`` references.

    Missing variables without a default become an empty string.
    """
    if isinstance(value, str):

        def replacer(match: re.Match) -> str:
            env_value = os.environ.get(match.group(1))
            if env_value is not None:
                return env_value
            return match.group(2) if match.group(2) is not None else ""

        return ENV_VAR_PATTERN.sub(replacer, value)

    if isinstance(value, dict):
        return {k: substitute_env_vars(v) for k, v in value.items()}

    if isinstance(value, list):
        return [substitute_env_vars(item) for item in value]

    return value


def load_yaml_config(path: Path | str) -> dict[str, Any]:
    """
    Load one YAML file and substitute environment variables.

    Raises:
        FileNotFoundError: If the file doesn't exist
        yaml.YAMLError: If the YAML is invalid
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        raw_config = yaml.safe_load(f)

    if raw_config is None:
        return {}
    if not isinstance(raw_config, dict):
        raise ValueError(f"Top level of {path} must be a mapping")

    return substitute_env_vars(raw_config)


class ConfigLoader:
    """Loads and caches ``<name>.yaml`` / ``<name>.yml`` from one directory."""

    def __init__(self, config_dir: Path | str = "config"):
        self.config_dir = Path(config_dir)
        self._cache: dict[str, dict[str, Any]] = {}

    def load(self, name: str, *, reload: bool = False) -> dict[str, Any]:
        """
        Load a configuration file by name (without extension).

        Raises:
            FileNotFoundError: If neither extension exists
        """
        if not reload and name in self._cache:
            return self._cache[name]

        for suffix in (".yaml", ".yml"):
            path = self.config_dir / f"{name}{suffix}"
            if path.exists():
                config = load_yaml_config(path)
                logger.debug(f"Loaded config {path}")
                break
        else:
            raise FileNotFoundError(
                f"Config '{name}' not found in {self.config_dir}"
            )

        self._cache[name] = config
        return config

    def clear_cache(self) -> None:
        """Clear the configuration cache."""
        self._cache.clear()
