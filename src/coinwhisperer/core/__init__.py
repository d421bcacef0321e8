"""Core module - domain types, errors and the backend registry."""

from coinwhisperer.core.errors import (
    CoinWhispererError,
    ConflictError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from coinwhisperer.core.types import (
    Coin,
    Post,
    RiskLevel,
    SentimentLabel,
    Stats,
    Trade,
    TradeType,
    TradingConfig,
    User,
)

__all__ = [
    "Coin",
    "CoinWhispererError",
    "ConflictError",
    "NotFoundError",
    "Post",
    "RiskLevel",
    "SentimentLabel",
    "Stats",
    "StorageError",
    "Trade",
    "TradeType",
    "TradingConfig",
    "User",
    "ValidationError",
]
