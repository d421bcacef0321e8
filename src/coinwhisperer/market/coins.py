"""Coin management on top of the store."""

import logging
from decimal import Decimal
from typing import Any, Mapping

from coinwhisperer.core.errors import ConflictError, ValidationError
from coinwhisperer.core.types import Coin
from coinwhisperer.storage.base import Store

logger = logging.getLogger(__name__)

MAX_SYMBOL_LENGTH = 10
NEW_COIN_PRICE = Decimal("0.0001")
LOGO_URL = "https://cryptologos.cc/logos/{slug}-{slug}-logo.png"


class CoinService:
    """Adds coins with derived display fields and applies coin updates."""

    def __init__(self, store: Store):
        self.store = store

    async def list_coins(self, tracked_only: bool = False) -> list[Coin]:
        return await self.store.list_coins(tracked_only=tracked_only)

    async def add_coin(self, symbol: str) -> Coin:
        """
        Create a tracked coin from a bare symbol.

        The display name is the capitalised symbol and the image points at the
        public logo CDN. Price starts at a nominal 0.0001 with no change.

        Raises:
            ValidationError: Symbol empty or longer than 10 characters
            ConflictError: A coin with the symbol exists (any case)
        """
        symbol = symbol.strip()
        if not 1 <= len(symbol) <= MAX_SYMBOL_LENGTH:
            raise ValidationError(
                f"Symbol must be 1-{MAX_SYMBOL_LENGTH} characters, got {symbol!r}"
            )
        if await self.store.get_coin_by_symbol(symbol):
            raise ConflictError(f"Coin with symbol {symbol.upper()} already exists")

        coin = await self.store.create_coin(
            Coin(
                symbol=symbol.upper(),
                name=symbol.capitalize(),
                current_price=NEW_COIN_PRICE,
                price_change_percentage=Decimal("0"),
                image=LOGO_URL.format(slug=symbol.lower()),
                is_tracked=True,
            )
        )
        logger.info(f"Added coin {coin.symbol} (id {coin.id})")
        return coin

    async def update_coin(self, key: int | str, changes: Mapping[str, Any]) -> Coin:
        """Partial update of a coin by id or symbol. Raises NotFoundError."""
        return await self.store.update_coin(key, changes)

    async def set_tracked(self, key: int | str, tracked: bool) -> Coin:
        return await self.store.update_coin(key, {"is_tracked": tracked})
