"""Tests for configuration system."""

from decimal import Decimal
from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError as PydanticValidationError

from coinwhisperer.config.loader import ConfigLoader, load_yaml_config, substitute_env_vars
from coinwhisperer.config.schemas import (
    CoinSeed,
    CoinsConfig,
    IngestionConfig,
    SettingsConfig,
    StorageConfig,
    TradingDefaults,
)
from coinwhisperer.config.settings import Settings, get_settings
from coinwhisperer.core.types import RiskLevel
from coinwhisperer.storage import MemoryStore, create_store


class TestEnvVarSubstitution:
    """Tests for environment variable substitution."""

    def test_simple_substitution(self, monkeypatch):
        """Test simple env var substitution."""
        monkeypatch.setenv("TEST_VAR", "test_value")
        assert substitute_env_vars("${TEST_VAR}") == "test_value"

    def test_default_value(self, monkeypatch):
        """Test default value when env var not set."""
        monkeypatch.delenv("NONEXISTENT_VAR", raising=False)
        assert substitute_env_vars("${NONEXISTENT_VAR:default}") == "default"

    def test_default_with_colon(self, monkeypatch):
        """Defaults may themselves contain colons, e.g. URLs."""
        monkeypatch.delenv("DB_URL", raising=False)
        result = substitute_env_vars("${DB_URL:sqlite+aiosqlite:///x.db}")
        assert result == "sqlite+aiosqlite:///x.db"

    def test_missing_without_default(self, monkeypatch):
        monkeypatch.delenv("NONEXISTENT_VAR", raising=False)
        assert substitute_env_vars("${NONEXISTENT_VAR}") == ""

    def test_nested_substitution(self, monkeypatch):
        """Test substitution in nested dicts and lists."""
        monkeypatch.setenv("NESTED_VAR", "nested_value")
        data = {"level1": {"level2": "${NESTED_VAR}"}, "items": ["${NESTED_VAR}", 3]}

        result = substitute_env_vars(data)

        assert result["level1"]["level2"] == "nested_value"
        assert result["items"] == ["nested_value", 3]


class TestYAMLLoader:
    """Tests for YAML configuration loading."""

    def test_load_yaml_with_env_vars(self, tmp_path, monkeypatch):
        """Test loading YAML with env var substitution."""
        monkeypatch.setenv("YAML_TEST", "from_env")
        path = tmp_path / "test.yaml"
        path.write_text(yaml.dump({"value": "${YAML_TEST}", "nested": {"inner": 123}}))

        config = load_yaml_config(path)

        assert config["value"] == "from_env"
        assert config["nested"]["inner"] == 123

    def test_load_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_yaml_config(path) == {}

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError):
            load_yaml_config(path)

    def test_load_nonexistent_file(self):
        """Test loading a non-existent file."""
        with pytest.raises(FileNotFoundError):
            load_yaml_config("/nonexistent/path.yaml")

    def test_config_loader_cache(self, tmp_path):
        """Loaded files are cached until reload is requested."""
        path = tmp_path / "settings.yml"
        path.write_text("a: 1\n")
        loader = ConfigLoader(tmp_path)

        assert loader.load("settings") == {"a": 1}
        path.write_text("a: 2\n")
        assert loader.load("settings") == {"a": 1}
        assert loader.load("settings", reload=True) == {"a": 2}

    def test_config_loader_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ConfigLoader(tmp_path).load("nothing")


class TestConfigSchemas:
    """Tests for Pydantic config schemas."""

    def test_settings_defaults(self):
        config = SettingsConfig()

        assert config.storage.backend == "memory"
        assert config.trading.default_buy_threshold == 0.65
        assert config.trading.base_amount == Decimal("100")
        assert config.events.subscriber_queue_size == 100

    def test_unknown_backend_rejected(self):
        with pytest.raises(PydanticValidationError):
            StorageConfig(backend="redis")

    def test_threshold_range(self):
        with pytest.raises(PydanticValidationError):
            TradingDefaults(default_buy_threshold=1.2)

    def test_batch_range(self):
        with pytest.raises(PydanticValidationError):
            IngestionConfig(min_batch=4, max_batch=2)

    def test_initial_config(self):
        """Defaults become the first trading config."""
        config = TradingDefaults(default_sell_threshold=0.3, default_risk_level="High").initial_config()

        assert config.sell_threshold == 0.3
        assert config.risk_level is RiskLevel.HIGH

    def test_coin_seed(self):
        coin = CoinSeed(symbol="wif", name="Wif", current_price="0.5").to_coin()
        assert coin.symbol == "WIF"
        assert coin.current_price == Decimal("0.5")

    def test_default_seed_coins(self):
        assert [c.symbol for c in CoinsConfig().to_coins()] == ["DOGE", "SHIB", "PEPE"]


class TestSettings:
    """Tests for the settings manager."""

    def test_loads_files(self, tmp_path):
        (tmp_path / "settings.yaml").write_text(
            "server:\n  port: 5001\ntrading:\n  default_buy_threshold: 0.7\n"
        )
        (tmp_path / "coins.yaml").write_text(
            "coins:\n  - symbol: WIF\n    name: dogwifhat\n"
        )

        settings = Settings(tmp_path)

        assert settings.server.port == 5001
        assert settings.trading.default_buy_threshold == 0.7
        assert settings.storage.backend == "memory"
        assert [c.symbol for c in settings.coins.to_coins()] == ["WIF"]

    def test_missing_directory_uses_defaults(self, tmp_path):
        settings = Settings(tmp_path / "missing")
        assert settings.server.port == 8000
        assert len(settings.coins.coins) == 3

    def test_validate_reports_problems(self, tmp_path):
        (tmp_path / "settings.yaml").write_text("storage:\n  backend: redis\n")
        problems = Settings(tmp_path).validate()

        assert len(problems) == 1
        assert problems[0].startswith("settings:")

    def test_reload(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("server:\n  port: 5001\n")
        settings = Settings(tmp_path)
        assert settings.server.port == 5001

        path.write_text("server:\n  port: 5002\n")
        settings.reload()
        assert settings.server.port == 5002

    def test_env_override(self, tmp_path, monkeypatch):
        monkeypatch.setenv("COINWHISPERER_STORAGE", "sql")
        (tmp_path / "settings.yaml").write_text(
            "storage:\n  backend: ${COINWHISPERER_STORAGE:memory}\n"
        )
        assert Settings(tmp_path).storage.backend == "sql"

    def test_get_settings_singleton(self, tmp_path):
        first = get_settings(tmp_path)
        assert get_settings() is first
        assert first.config_dir == tmp_path


class TestCreateStore:
    """Tests for building the configured store."""

    def test_memory_backend(self):
        settings = Settings.from_config(SettingsConfig())
        store = create_store(settings)

        assert isinstance(store, MemoryStore)
        assert [c.symbol for c in store.seed_coins] == ["DOGE", "SHIB", "PEPE"]

    def test_seeding_disabled(self):
        settings = Settings.from_config(
            SettingsConfig(storage=StorageConfig(seed_defaults=False))
        )
        assert create_store(settings).seed_coins == []

    def test_sql_backend(self, tmp_path):
        from coinwhisperer.storage.sql import SqlStore

        url = f"sqlite+aiosqlite:///{tmp_path / 'x.db'}"
        settings = Settings.from_config(
            SettingsConfig(storage=StorageConfig(backend="sql", sql_url=url))
        )
        store = create_store(settings)

        assert isinstance(store, SqlStore)
        assert store.database.url == url
        assert store.database.is_sqlite

    def test_trading_defaults_passed(self):
        settings = Settings.from_config(
            SettingsConfig(trading=TradingDefaults(default_buy_threshold=0.8))
        )
        assert create_store(settings).trading.default_buy_threshold == 0.8


def test_log_level_from_environment(tmp_path, monkeypatch):
    """Environment values feed ${VAR} references in settings.yaml."""
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    (tmp_path / "settings.yaml").write_text("logging:\n  level: ${LOG_LEVEL:INFO}\n")
    assert Settings(tmp_path).logging_config.level == "DEBUG"


def test_shipped_settings_persist_by_default(monkeypatch):
    """The bundled settings keep CLI changes in a SQLite file."""
    monkeypatch.delenv("COINWHISPERER_STORAGE", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    config_dir = Path(__file__).resolve().parents[1] / "config"

    settings = Settings(config_dir)

    assert settings.storage.backend == "sql"
    assert settings.storage.sql_url == "sqlite+aiosqlite:///coinwhisperer.db"
