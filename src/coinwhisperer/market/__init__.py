"""Market module - coin management and price refresh."""

from coinwhisperer.market.coins import CoinService
from coinwhisperer.market.prices import (
    PriceFeed,
    PriceQuote,
    StaticPriceFeed,
    refresh_prices,
)

__all__ = [
    "CoinService",
    "PriceFeed",
    "PriceQuote",
    "StaticPriceFeed",
    "refresh_prices",
]
