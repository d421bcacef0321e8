"""Store interface shared by every persistence backend.

Backends implement the primitive reads and writes. Derived statistics,
lazy singleton creation, partial-update merging and seeding live here, so the
bookkeeping rules are written once:

- creating a coin, or changing a coin's tracked flag, recomputes
  ``Stats.tracked_coins``
- creating a trade recomputes ``Stats.active_trades``
- reading the stats stamps ``last_updated``
- the overall sentiment label is derived from the overall sentiment
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Any, Mapping, Sequence

from coinwhisperer.config.schemas import TradingDefaults
from coinwhisperer.core.errors import NotFoundError, ValidationError
from coinwhisperer.core.types import (
    Coin,
    Post,
    Stats,
    Trade,
    TradingConfig,
    User,
    utcnow,
)
from coinwhisperer.sentiment.scorer import label_for_score

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 50

# Recomputed from the live records, never set by callers
DERIVED_STATS_FIELDS = frozenset({"active_trades", "tracked_coins", "overall_sentiment_label"})


class Store(ABC):
    """
    Persistence interface for users, posts, coins, trades, config and stats.

    Reads by key return None for a missing record. Updates by key raise
    NotFoundError. Backend failures surface as StorageError.
    """

    name: str = "base"

    def __init__(
        self,
        trading: TradingDefaults | None = None,
        seed_coins: Sequence[Coin] = (),
    ):
        """
        Args:
            trading: Defaults used when the config singleton is first created
            seed_coins: Coins created on connect when the store has none
        """
        self.trading = trading or TradingDefaults()
        self.seed_coins = list(seed_coins)
        # One writer at a time per store: mutation plus its stats recompute
        self._write_lock = asyncio.Lock()

    # ==========================================================================
    # Lifecycle
    # ==========================================================================

    async def connect(self) -> None:
        """Open the backend, create schema, seed an empty store."""
        await self._open()
        await self.seed()
        logger.info(f"[{self.name}] store ready")

    async def close(self) -> None:
        """Release backend resources."""
        await self._close()
        logger.info(f"[{self.name}] store closed")

    async def __aenter__(self) -> "Store":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def seed(self) -> None:
        """Create seed coins when none exist and materialise the singletons."""
        if self.seed_coins and not await self.list_coins():
            for coin in self.seed_coins:
                await self.create_coin(coin)
            logger.info(f"[{self.name}] seeded {len(self.seed_coins)} coins")
        await self.get_config()
        await self.get_stats()

    async def _open(self) -> None:
        """Backend hook for connect()."""

    async def _close(self) -> None:
        """Backend hook for close()."""

    # ==========================================================================
    # Users
    # ==========================================================================

    @abstractmethod
    async def create_user(self, user: User) -> User:
        """Store a user. Raises ConflictError for a taken username."""

    @abstractmethod
    async def get_user(self, user_id: int) -> User | None:
        ...

    @abstractmethod
    async def get_user_by_username(self, username: str) -> User | None:
        ...

    # ==========================================================================
    # Posts
    # ==========================================================================

    @abstractmethod
    async def create_post(self, post: Post) -> Post:
        """Store a post. Raises ConflictError for a known external id."""

    @abstractmethod
    async def get_post(self, post_id: int) -> Post | None:
        ...

    @abstractmethod
    async def get_post_by_external_id(self, external_id: str) -> Post | None:
        ...

    @abstractmethod
    async def list_posts(
        self,
        limit: int = DEFAULT_LIST_LIMIT,
        coin_symbol: str | None = None,
    ) -> list[Post]:
        """Newest first, optionally only posts about one coin."""

    # ==========================================================================
    # Coins
    # ==========================================================================

    @abstractmethod
    async def _insert_coin(self, coin: Coin) -> Coin:
        """Persist a new coin and return it with its id."""

    @abstractmethod
    async def _replace_coin(self, coin: Coin) -> Coin:
        """Overwrite the stored coin with the same id."""

    @abstractmethod
    async def get_coin(self, coin_id: int) -> Coin | None:
        ...

    @abstractmethod
    async def get_coin_by_symbol(self, symbol: str) -> Coin | None:
        """Case-insensitive lookup."""

    @abstractmethod
    async def list_coins(self, tracked_only: bool = False) -> list[Coin]:
        ...

    @abstractmethod
    async def count_tracked_coins(self) -> int:
        ...

    async def create_coin(self, coin: Coin) -> Coin:
        """
        Store a new coin and refresh the tracked coin count.

        Raises:
            ConflictError: If the symbol already exists
        """
        async with self._write_lock:
            created = await self._insert_coin(coin)
            await self._merge_stats(
                {"tracked_coins": await self.count_tracked_coins()}
            )
        return created

    async def resolve_coin(self, key: int | str) -> Coin | None:
        """Find a coin by symbol, falling back to a numeric id."""
        if isinstance(key, int):
            return await self.get_coin(key)
        coin = await self.get_coin_by_symbol(key)
        if coin is None and key.isdigit():
            coin = await self.get_coin(int(key))
        return coin

    async def update_coin(self, key: int | str, changes: Mapping[str, Any]) -> Coin:
        """
        Apply a partial update to a coin identified by id or symbol.

        Raises:
            NotFoundError: If no coin matches ``key``
            ValidationError: If a field is unknown or has the wrong type
        """
        async with self._write_lock:
            coin = await self.resolve_coin(key)
            if coin is None:
                raise NotFoundError(f"Coin {key} not found")

            updated = await self._replace_coin(coin.with_changes(changes))
            if updated.is_tracked != coin.is_tracked:
                await self._merge_stats(
                    {"tracked_coins": await self.count_tracked_coins()}
                )
        return updated

    # ==========================================================================
    # Trades
    # ==========================================================================

    @abstractmethod
    async def _insert_trade(self, trade: Trade) -> Trade:
        """Persist a new trade and return it with its id."""

    @abstractmethod
    async def get_trade(self, trade_id: int) -> Trade | None:
        ...

    @abstractmethod
    async def list_trades(self, limit: int = DEFAULT_LIST_LIMIT) -> list[Trade]:
        """Newest first."""

    @abstractmethod
    async def count_trades(self) -> int:
        ...

    async def create_trade(self, trade: Trade) -> Trade:
        """Store a trade and refresh the active trade count."""
        async with self._write_lock:
            created = await self._insert_trade(trade)
            await self._merge_stats({"active_trades": await self.count_trades()})
        logger.info(
            f"[{self.name}] trade #{created.id} {created.type} "
            f"{created.amount} {created.coin_symbol} @ {created.price}"
        )
        return created

    # ==========================================================================
    # Config singleton
    # ==========================================================================

    @abstractmethod
    async def _load_config(self) -> TradingConfig | None:
        ...

    @abstractmethod
    async def _save_config(self, config: TradingConfig) -> None:
        ...

    async def _current_config(self) -> TradingConfig:
        config = await self._load_config()
        if config is None:
            config = self.trading.initial_config()
            await self._save_config(config)
            logger.info(f"[{self.name}] created default trading config")
        return config

    async def get_config(self) -> TradingConfig:
        """Return the config, creating it with defaults on first read."""
        async with self._write_lock:
            return await self._current_config()

    async def update_config(self, changes: Mapping[str, Any]) -> TradingConfig:
        """Merge a partial update; unspecified fields keep their value."""
        async with self._write_lock:
            config = (await self._current_config()).with_changes(changes)
            await self._save_config(config)
        return config

    # ==========================================================================
    # Stats singleton
    # ==========================================================================

    @abstractmethod
    async def _load_stats(self) -> Stats | None:
        ...

    @abstractmethod
    async def _save_stats(self, stats: Stats) -> None:
        ...

    async def _current_stats(self) -> Stats:
        stats = await self._load_stats()
        if stats is None:
            stats = Stats(tracked_coins=await self.count_tracked_coins())
            await self._save_stats(stats)
        return stats

    async def _merge_stats(self, changes: Mapping[str, Any]) -> Stats:
        stats = (await self._current_stats()).with_changes(changes)
        await self._save_stats(stats)
        return stats

    async def get_stats(self) -> Stats:
        """Return the stats, creating them on first read. Stamps last_updated."""
        async with self._write_lock:
            stats = replace(await self._current_stats(), last_updated=utcnow())
            await self._save_stats(stats)
        return stats

    async def update_stats(self, changes: Mapping[str, Any]) -> Stats:
        """
        Merge a partial update and stamp last_updated.

        Only ``overall_sentiment`` and the profit/loss placeholders can be
        set. The sentiment label always follows the score.

        Raises:
            ValidationError: If a derived field or a bad value is supplied
        """
        derived = DERIVED_STATS_FIELDS & set(changes)
        if derived:
            raise ValidationError(f"Derived stats fields cannot be set: {sorted(derived)}")

        async with self._write_lock:
            stats = (await self._current_stats()).with_changes(changes)
            if "overall_sentiment" in changes:
                stats = replace(
                    stats, overall_sentiment_label=label_for_score(stats.overall_sentiment)
                )
            await self._save_stats(stats)
        return stats

    async def refresh_stats(self) -> Stats:
        """Recompute tracked coin and trade counts from the live records."""
        async with self._write_lock:
            return await self._merge_stats(
                {
                    "tracked_coins": await self.count_tracked_coins(),
                    "active_trades": await self.count_trades(),
                }
            )
