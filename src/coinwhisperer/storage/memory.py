"""In-process store backed by dictionaries. Data lives as long as the object."""

import itertools
from dataclasses import replace

from coinwhisperer.core.errors import ConflictError
from coinwhisperer.core.types import Coin, Post, Stats, Trade, TradingConfig, User
from coinwhisperer.storage.base import DEFAULT_LIST_LIMIT, Store
from coinwhisperer.storage.registry import store_registry


@store_registry.register("memory", description="In-process dictionaries")
class MemoryStore(Store):
    """Store that keeps every collection in a dict keyed by id."""

    name = "memory"

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._ids = {
            name: itertools.count(1) for name in ("users", "posts", "coins", "trades")
        }
        self._users: dict[int, User] = {}
        self._posts: dict[int, Post] = {}
        self._coins: dict[int, Coin] = {}
        self._trades: dict[int, Trade] = {}
        self._config: TradingConfig | None = None
        self._stats: Stats | None = None

    # Users

    async def create_user(self, user: User) -> User:
        if await self.get_user_by_username(user.username):
            raise ConflictError(f"User {user.username} already exists")
        created = replace(user, id=next(self._ids["users"]))
        self._users[created.id] = created
        return created

    async def get_user(self, user_id: int) -> User | None:
        return self._users.get(user_id)

    async def get_user_by_username(self, username: str) -> User | None:
        return next(
            (u for u in self._users.values() if u.username == username), None
        )

    # Posts

    async def create_post(self, post: Post) -> Post:
        if await self.get_post_by_external_id(post.external_id):
            raise ConflictError(f"Post {post.external_id} already exists")
        created = replace(post, id=next(self._ids["posts"]))
        self._posts[created.id] = created
        return created

    async def get_post(self, post_id: int) -> Post | None:
        return self._posts.get(post_id)

    async def get_post_by_external_id(self, external_id: str) -> Post | None:
        return next(
            (p for p in self._posts.values() if p.external_id == external_id),
            None,
        )

    async def list_posts(
        self,
        limit: int = DEFAULT_LIST_LIMIT,
        coin_symbol: str | None = None,
    ) -> list[Post]:
        posts = list(self._posts.values())
        if coin_symbol:
            posts = [p for p in posts if p.coin_symbol == coin_symbol.upper()]
        posts.sort(key=lambda p: (p.created_at, p.id), reverse=True)
        return posts[:limit]

    # Coins

    async def _insert_coin(self, coin: Coin) -> Coin:
        if await self.get_coin_by_symbol(coin.symbol):
            raise ConflictError(f"Coin with symbol {coin.symbol} already exists")
        created = replace(coin, id=next(self._ids["coins"]))
        self._coins[created.id] = created
        return created

    async def _replace_coin(self, coin: Coin) -> Coin:
        self._coins[coin.id] = coin
        return coin

    async def get_coin(self, coin_id: int) -> Coin | None:
        return self._coins.get(coin_id)

    async def get_coin_by_symbol(self, symbol: str) -> Coin | None:
        symbol = symbol.upper()
        return next((c for c in self._coins.values() if c.symbol == symbol), None)

    async def list_coins(self, tracked_only: bool = False) -> list[Coin]:
        coins = list(self._coins.values())
        if tracked_only:
            coins = [c for c in coins if c.is_tracked]
        return coins

    async def count_tracked_coins(self) -> int:
        return sum(1 for c in self._coins.values() if c.is_tracked)

    # Trades

    async def _insert_trade(self, trade: Trade) -> Trade:
        created = replace(trade, id=next(self._ids["trades"]))
        self._trades[created.id] = created
        return created

    async def get_trade(self, trade_id: int) -> Trade | None:
        return self._trades.get(trade_id)

    async def list_trades(self, limit: int = DEFAULT_LIST_LIMIT) -> list[Trade]:
        trades = sorted(
            self._trades.values(),
            key=lambda t: (t.timestamp, t.id),
            reverse=True,
        )
        return trades[:limit]

    async def count_trades(self) -> int:
        return len(self._trades)

    # Singletons

    async def _load_config(self) -> TradingConfig | None:
        return self._config

    async def _save_config(self, config: TradingConfig) -> None:
        self._config = config

    async def _load_stats(self) -> Stats | None:
        return self._stats

    async def _save_stats(self, stats: Stats) -> None:
        self._stats = stats
