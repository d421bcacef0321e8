"""Price feed protocol and coin price refresh."""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping, Protocol, runtime_checkable

from coinwhisperer.core.types import Coin, to_decimal
from coinwhisperer.storage.base import Store

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PriceQuote:
    """Latest price and 24h change for one symbol."""

    symbol: str
    price: Decimal
    change_percentage: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, "symbol", self.symbol.strip().upper())
        object.__setattr__(self, "price", to_decimal(self.price))
        object.__setattr__(self, "change_percentage", to_decimal(self.change_percentage))


@runtime_checkable
class PriceFeed(Protocol):
    """Price feed protocol - implement this to plug in real market data."""

    async def fetch_quotes(self, symbols: list[str]) -> list[PriceQuote]:
        """
        Fetch quotes for the given symbols.

        Symbols the feed does not know are left out of the result.
        """
        ...


class StaticPriceFeed:
    """Feed that answers from a fixed table of quotes."""

    def __init__(self, quotes: Mapping[str, PriceQuote] | list[PriceQuote] = ()):
        if isinstance(quotes, Mapping):
            quotes = list(quotes.values())
        self._quotes = {q.symbol: q for q in quotes}

    def set_quote(self, quote: PriceQuote) -> None:
        self._quotes[quote.symbol] = quote

    async def fetch_quotes(self, symbols: list[str]) -> list[PriceQuote]:
        return [
            self._quotes[s.upper()] for s in symbols if s.upper() in self._quotes
        ]


async def refresh_prices(store: Store, feed: PriceFeed) -> list[Coin]:
    """
    Apply the feed's latest quotes to every stored coin.

    Args:
        store: Store holding the coins
        feed: Source of quotes

    Returns:
        Coins whose price or change was updated
    """
    coins = await store.list_coins()
    quotes = await feed.fetch_quotes([c.symbol for c in coins])
    known = {c.symbol for c in coins}

    updated = []
    for quote in quotes:
        if quote.symbol not in known:
            logger.debug(f"Ignoring quote for unknown coin {quote.symbol}")
            continue
        updated.append(
            await store.update_coin(
                quote.symbol,
                {
                    "current_price": quote.price,
                    "price_change_percentage": quote.change_percentage,
                },
            )
        )
    logger.info(f"Refreshed prices for {len(updated)} coins")
    return updated
