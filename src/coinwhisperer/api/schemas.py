"""Pydantic schemas for API requests."""

from decimal import Decimal
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field

from coinwhisperer.core.types import RiskLevel, TradeType


class PatchRequest(BaseModel):
    """Partial update body. Unknown fields are rejected."""

    model_config = ConfigDict(extra="forbid")

    # Fields where an explicit null means "clear the value"
    nullable_fields: ClassVar[frozenset[str]] = frozenset()

    def changes(self) -> dict:
        """The fields the client actually sent, minus nulls that cannot clear anything."""
        return {
            name: value
            for name, value in self.model_dump(exclude_unset=True).items()
            if value is not None or name in self.nullable_fields
        }


class CoinCreateRequest(BaseModel):
    """Request model for adding a coin."""

    symbol: str = Field(..., min_length=1, max_length=10, description="Coin symbol")


class CoinUpdateRequest(PatchRequest):
    """Request model for updating a coin."""

    nullable_fields: ClassVar[frozenset[str]] = frozenset({"image"})

    name: str | None = None
    current_price: Decimal | None = Field(default=None, ge=0)
    price_change_percentage: Decimal | None = None
    image: str | None = None
    is_tracked: bool | None = None


class TradeCreateRequest(BaseModel):
    """Request model for a manual trade."""

    coin_symbol: str = Field(..., min_length=1, description="Symbol of the coin")
    type: TradeType
    amount: Decimal = Field(..., gt=0, description="Amount in currency units")


class ConfigUpdateRequest(PatchRequest):
    """Request model for updating the trading config."""

    buy_threshold: float | None = Field(default=None, ge=0, le=1)
    sell_threshold: float | None = Field(default=None, ge=0, le=1)
    auto_trading: bool | None = None
    notifications: bool | None = None
    risk_level: RiskLevel | None = None


class StatsUpdateRequest(PatchRequest):
    """
    Request model for patching the stats.

    Trade and coin counts and the sentiment label are derived by the store,
    so only the score and the profit/loss figures are accepted.
    """

    overall_sentiment: float | None = Field(default=None, ge=0, le=1)
    profit_loss: Decimal | None = None
    profit_loss_percentage: Decimal | None = None
