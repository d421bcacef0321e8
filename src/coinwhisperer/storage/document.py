"""MongoDB-backed store using the motor asyncio driver.

Documents use sequential integer ``_id`` values drawn from a ``counters``
collection. Decimal fields are stored as strings to keep exact precision.
"""

import logging
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import Any, AsyncIterator

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import PyMongoError

from coinwhisperer.core.errors import ConflictError, StorageError
from coinwhisperer.core.types import (
    Coin,
    Post,
    RiskLevel,
    SentimentLabel,
    Stats,
    Trade,
    TradingConfig,
    User,
    as_utc,
)
from coinwhisperer.storage.base import DEFAULT_LIST_LIMIT, Store
from coinwhisperer.storage.registry import store_registry

logger = logging.getLogger(__name__)

DUPLICATE_KEY_ERROR = 11000
SINGLETON_ID = 1


@store_registry.register("document", description="MongoDB via motor")
class DocumentStore(Store):
    """Store backed by a MongoDB database, one collection per entity."""

    name = "document"

    def __init__(
        self,
        uri: str = "mongodb://localhost:27017",
        database: str = "coinwhisperer",
        client: Any | None = None,
        **kwargs: Any,
    ):
        """
        Args:
            uri: MongoDB connection string
            database: Database name
            client: Pre-built motor-compatible client; the store won't close it
        """
        super().__init__(**kwargs)
        self._uri = uri
        self._database_name = database
        self._client = client
        self._owns_client = client is None

    @property
    def db(self) -> AsyncIOMotorDatabase:
        if self._client is None:
            self._client = AsyncIOMotorClient(self._uri, serverSelectionTimeoutMS=5000)
            logger.info(f"MongoDB client created for database '{self._database_name}'")
        return self._client[self._database_name]

    @asynccontextmanager
    async def _guard(self, action: str) -> AsyncIterator[None]:
        """Translate driver errors into store errors."""
        try:
            yield
        except PyMongoError as e:
            if getattr(e, "code", None) == DUPLICATE_KEY_ERROR:
                raise ConflictError(f"Cannot {action}: duplicate key") from e
            logger.error(f"Document store failed to {action}: {e}")
            raise StorageError(f"Document store failed to {action}: {e}") from e

    async def _open(self) -> None:
        async with self._guard("create indexes"):
            await self.db.users.create_index("username", unique=True)
            await self.db.posts.create_index("external_id", unique=True)
            await self.db.posts.create_index([("created_at", DESCENDING)])
            await self.db.coins.create_index("symbol", unique=True)
            await self.db.trades.create_index([("timestamp", DESCENDING)])

    async def _close(self) -> None:
        if self._owns_client and self._client is not None:
            self._client.close()
            self._client = None

    async def _next_id(self, collection: str) -> int:
        counter = await self.db.counters.find_one_and_update(
            {"_id": collection},
            {"$inc": {"seq": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return counter["seq"]

    async def _find_many(
        self,
        collection: str,
        query: dict[str, Any],
        sort: list[tuple[str, int]] | None = None,
        limit: int = 0,
    ) -> list[dict[str, Any]]:
        async with self._guard(f"read {collection}"):
            cursor = self.db[collection].find(query, sort=sort, limit=limit)
            return await cursor.to_list(length=None)

    async def _find_one(self, collection: str, query: dict[str, Any]) -> dict | None:
        async with self._guard(f"read {collection}"):
            return await self.db[collection].find_one(query)

    async def _count(self, collection: str, query: dict[str, Any]) -> int:
        async with self._guard(f"count {collection}"):
            return await self.db[collection].count_documents(query)

    async def _insert(self, collection: str, doc: dict[str, Any]) -> int:
        async with self._guard(f"insert into {collection}"):
            doc["_id"] = await self._next_id(collection)
            await self.db[collection].insert_one(doc)
        return doc["_id"]

    async def _put(self, collection: str, doc_id: int, doc: dict[str, Any]) -> None:
        async with self._guard(f"write {collection}"):
            await self.db[collection].replace_one({"_id": doc_id}, doc, upsert=True)

    # ==========================================================================
    # Users
    # ==========================================================================

    async def create_user(self, user: User) -> User:
        doc = {
            "username": user.username,
            "password_hash": user.password_hash,
            "email": user.email,
            "created_at": user.created_at,
        }
        return _user_from_doc({**doc, "_id": await self._insert("users", doc)})

    async def get_user(self, user_id: int) -> User | None:
        doc = await self._find_one("users", {"_id": user_id})
        return _user_from_doc(doc) if doc else None

    async def get_user_by_username(self, username: str) -> User | None:
        doc = await self._find_one("users", {"username": username})
        return _user_from_doc(doc) if doc else None

    # ==========================================================================
    # Posts
    # ==========================================================================

    async def create_post(self, post: Post) -> Post:
        doc = _post_to_doc(post)
        return _post_from_doc({**doc, "_id": await self._insert("posts", doc)})

    async def get_post(self, post_id: int) -> Post | None:
        doc = await self._find_one("posts", {"_id": post_id})
        return _post_from_doc(doc) if doc else None

    async def get_post_by_external_id(self, external_id: str) -> Post | None:
        doc = await self._find_one("posts", {"external_id": external_id})
        return _post_from_doc(doc) if doc else None

    async def list_posts(
        self,
        limit: int = DEFAULT_LIST_LIMIT,
        coin_symbol: str | None = None,
    ) -> list[Post]:
        query = {"coin_symbol": coin_symbol.upper()} if coin_symbol else {}
        docs = await self._find_many(
            "posts",
            query,
            sort=[("created_at", DESCENDING), ("_id", DESCENDING)],
            limit=limit,
        )
        return [_post_from_doc(d) for d in docs]

    # ==========================================================================
    # Coins
    # ==========================================================================

    async def _insert_coin(self, coin: Coin) -> Coin:
        doc = _coin_to_doc(coin)
        return _coin_from_doc({**doc, "_id": await self._insert("coins", doc)})

    async def _replace_coin(self, coin: Coin) -> Coin:
        await self._put("coins", coin.id, _coin_to_doc(coin))
        return coin

    async def get_coin(self, coin_id: int) -> Coin | None:
        doc = await self._find_one("coins", {"_id": coin_id})
        return _coin_from_doc(doc) if doc else None

    async def get_coin_by_symbol(self, symbol: str) -> Coin | None:
        doc = await self._find_one("coins", {"symbol": symbol.strip().upper()})
        return _coin_from_doc(doc) if doc else None

    async def list_coins(self, tracked_only: bool = False) -> list[Coin]:
        query = {"is_tracked": True} if tracked_only else {}
        docs = await self._find_many("coins", query, sort=[("_id", 1)])
        return [_coin_from_doc(d) for d in docs]

    async def count_tracked_coins(self) -> int:
        return await self._count("coins", {"is_tracked": True})

    # ==========================================================================
    # Trades
    # ==========================================================================

    async def _insert_trade(self, trade: Trade) -> Trade:
        doc = _trade_to_doc(trade)
        return _trade_from_doc({**doc, "_id": await self._insert("trades", doc)})

    async def get_trade(self, trade_id: int) -> Trade | None:
        doc = await self._find_one("trades", {"_id": trade_id})
        return _trade_from_doc(doc) if doc else None

    async def list_trades(self, limit: int = DEFAULT_LIST_LIMIT) -> list[Trade]:
        docs = await self._find_many(
            "trades",
            {},
            sort=[("timestamp", DESCENDING), ("_id", DESCENDING)],
            limit=limit,
        )
        return [_trade_from_doc(d) for d in docs]

    async def count_trades(self) -> int:
        return await self._count("trades", {})

    # ==========================================================================
    # Singletons
    # ==========================================================================

    async def _load_config(self) -> TradingConfig | None:
        doc = await self._find_one("config", {"_id": SINGLETON_ID})
        if doc is None:
            return None
        return TradingConfig(
            buy_threshold=doc["buy_threshold"],
            sell_threshold=doc["sell_threshold"],
            auto_trading=doc["auto_trading"],
            notifications=doc["notifications"],
            risk_level=RiskLevel(doc["risk_level"]),
        )

    async def _save_config(self, config: TradingConfig) -> None:
        await self._put("config", SINGLETON_ID, config.to_dict())

    async def _load_stats(self) -> Stats | None:
        doc = await self._find_one("stats", {"_id": SINGLETON_ID})
        if doc is None:
            return None
        return Stats(
            overall_sentiment=doc["overall_sentiment"],
            overall_sentiment_label=SentimentLabel(doc["overall_sentiment_label"]),
            active_trades=doc["active_trades"],
            tracked_coins=doc["tracked_coins"],
            profit_loss=Decimal(doc["profit_loss"]),
            profit_loss_percentage=Decimal(doc["profit_loss_percentage"]),
            last_updated=as_utc(doc["last_updated"]),
        )

    async def _save_stats(self, stats: Stats) -> None:
        doc = stats.to_dict()
        doc["profit_loss"] = str(stats.profit_loss)
        doc["profit_loss_percentage"] = str(stats.profit_loss_percentage)
        await self._put("stats", SINGLETON_ID, doc)


# =============================================================================
# Document mapping
# =============================================================================


def _user_from_doc(doc: dict[str, Any]) -> User:
    return User(
        id=doc["_id"],
        username=doc["username"],
        password_hash=doc["password_hash"],
        email=doc.get("email"),
        created_at=as_utc(doc["created_at"]),
    )


def _post_to_doc(post: Post) -> dict[str, Any]:
    doc = post.to_dict()
    doc.pop("id")
    return doc


def _post_from_doc(doc: dict[str, Any]) -> Post:
    return Post(
        id=doc["_id"],
        external_id=doc["external_id"],
        content=doc["content"],
        author_name=doc["author_name"],
        author_username=doc["author_username"],
        author_profile_image=doc.get("author_profile_image"),
        coin_symbol=doc["coin_symbol"],
        sentiment_score=doc["sentiment_score"],
        sentiment_label=SentimentLabel(doc["sentiment_label"]),
        created_at=as_utc(doc["created_at"]),
        likes=doc.get("likes", 0),
        retweets=doc.get("retweets", 0),
    )


def _coin_to_doc(coin: Coin) -> dict[str, Any]:
    return {
        "symbol": coin.symbol,
        "name": coin.name,
        "current_price": str(coin.current_price),
        "price_change_percentage": str(coin.price_change_percentage),
        "image": coin.image,
        "is_tracked": coin.is_tracked,
    }


def _coin_from_doc(doc: dict[str, Any]) -> Coin:
    return Coin(
        id=doc["_id"],
        symbol=doc["symbol"],
        name=doc["name"],
        current_price=Decimal(doc["current_price"]),
        price_change_percentage=Decimal(doc["price_change_percentage"]),
        image=doc.get("image"),
        is_tracked=doc["is_tracked"],
    )


def _trade_to_doc(trade: Trade) -> dict[str, Any]:
    return {
        "type": trade.type.value,
        "coin_symbol": trade.coin_symbol,
        "amount": str(trade.amount),
        "price": str(trade.price),
        "sentiment_score": trade.sentiment_score,
        "threshold": trade.threshold,
        "timestamp": trade.timestamp,
    }


def _trade_from_doc(doc: dict[str, Any]) -> Trade:
    return Trade(
        id=doc["_id"],
        type=doc["type"],
        coin_symbol=doc["coin_symbol"],
        amount=Decimal(doc["amount"]),
        price=Decimal(doc["price"]),
        sentiment_score=doc["sentiment_score"],
        threshold=doc.get("threshold"),
        timestamp=as_utc(doc["timestamp"]),
    )
