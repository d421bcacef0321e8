"""Pydantic schemas for configuration validation."""

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from coinwhisperer.core.types import Coin, RiskLevel, TradingConfig


# =============================================================================
# Storage Configuration
# =============================================================================


class StorageConfig(BaseModel):
    """Which backend holds the dashboard data, and how to reach it."""

    backend: Literal["memory", "document", "sql"] = "memory"
    sql_url: str = "sqlite+aiosqlite:///coinwhisperer.db"
    sql_echo: bool = False
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_database: str = "coinwhisperer"
    seed_defaults: bool = True


# =============================================================================
# Logging Configuration
# =============================================================================


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: str | None = None


# =============================================================================
# Server Configuration
# =============================================================================


class ServerConfig(BaseModel):
    """HTTP server settings."""

    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1, le=65535)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])


# =============================================================================
# Trading Configuration
# =============================================================================


class TradingDefaults(BaseModel):
    """Defaults for the lazily created trading config, plus sizing constants."""

    default_buy_threshold: float = Field(default=0.65, ge=0, le=1)
    default_sell_threshold: float = Field(default=0.40, ge=0, le=1)
    default_auto_trading: bool = True
    default_notifications: bool = True
    default_risk_level: RiskLevel = RiskLevel.MEDIUM
    base_amount: Decimal = Field(default=Decimal("100"), gt=0)
    sentiment_window: int = Field(default=100, ge=1)

    def initial_config(self) -> TradingConfig:
        """Trading config a fresh store starts with."""
        return TradingConfig(
            buy_threshold=self.default_buy_threshold,
            sell_threshold=self.default_sell_threshold,
            auto_trading=self.default_auto_trading,
            notifications=self.default_notifications,
            risk_level=self.default_risk_level,
        )


# =============================================================================
# Ingestion Configuration
# =============================================================================


class IngestionConfig(BaseModel):
    """Mock post feed batch sizing and the analysis timeout."""

    min_batch: int = Field(default=1, ge=0)
    max_batch: int = Field(default=3, ge=0)
    latency_seconds: float = Field(default=1.0, ge=0)
    timeout_seconds: float = Field(default=30.0, gt=0)

    @model_validator(mode="after")
    def check_batch_range(self) -> "IngestionConfig":
        if self.max_batch < self.min_batch:
            raise ValueError("max_batch must be >= min_batch")
        return self


class EventsConfig(BaseModel):
    """Push channel buffering."""

    subscriber_queue_size: int = Field(default=100, ge=1)


# =============================================================================
# Settings (Root Config)
# =============================================================================


class SettingsConfig(BaseModel):
    """Root settings configuration (settings.yaml)."""

    storage: StorageConfig = Field(default_factory=StorageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    trading: TradingDefaults = Field(default_factory=TradingDefaults)
    ingestion: IngestionConfig = Field(default_factory=IngestionConfig)
    events: EventsConfig = Field(default_factory=EventsConfig)


# =============================================================================
# Seed Coins (coins.yaml)
# =============================================================================


class CoinSeed(BaseModel):
    """A coin created when a store starts empty."""

    symbol: str = Field(min_length=1, max_length=10)
    name: str
    current_price: Decimal = Decimal("0")
    price_change_percentage: Decimal = Decimal("0")
    image: str | None = None
    is_tracked: bool = True

    @field_validator("symbol")
    @classmethod
    def upper_symbol(cls, v: str) -> str:
        return v.strip().upper()

    def to_coin(self) -> Coin:
        return Coin(**self.model_dump())


DEFAULT_SEED_COINS: list[CoinSeed] = [
    CoinSeed(
        symbol="DOGE",
        name="Dogecoin",
        current_price=Decimal("0.07382"),
        price_change_percentage=Decimal("5.6"),
        image="https://cryptologos.cc/logos/dogecoin-doge-logo.png",
    ),
    CoinSeed(
        symbol="SHIB",
        name="Shiba Inu",
        current_price=Decimal("0.00000819"),
        price_change_percentage=Decimal("-2.3"),
        image="https://cryptologos.cc/logos/shiba-inu-shib-logo.png",
    ),
    CoinSeed(
        symbol="PEPE",
        name="Pepe",
        current_price=Decimal("0.00000104"),
        price_change_percentage=Decimal("12.4"),
        image="https://cryptologos.cc/logos/pepe-pepe-logo.png",
    ),
]


class CoinsConfig(BaseModel):
    """Seed coin list."""

    coins: list[CoinSeed] = Field(
        default_factory=lambda: [seed.model_copy() for seed in DEFAULT_SEED_COINS]
    )

    def to_coins(self) -> list[Coin]:
        return [seed.to_coin() for seed in self.coins]
