"""Relational store on SQLAlchemy's asyncio extension."""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

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
from coinwhisperer.storage.sql.database import Database
from coinwhisperer.storage.sql.models import (
    CoinModel,
    PostModel,
    StatsModel,
    TradeModel,
    TradingConfigModel,
    UserModel,
)

logger = logging.getLogger(__name__)

SINGLETON_ID = 1


@store_registry.register("sql", description="SQLAlchemy (PostgreSQL or SQLite)")
class SqlStore(Store):
    """Store backed by a relational database, one table per entity."""

    name = "sql"

    def __init__(
        self,
        url: str = "sqlite+aiosqlite:///coinwhisperer.db",
        echo: bool = False,
        **kwargs: Any,
    ):
        """
        Args:
            url: SQLAlchemy async database URL
            echo: Log every SQL statement
        """
        super().__init__(**kwargs)
        self.database = Database(url, echo=echo)

    @asynccontextmanager
    async def _session(self, action: str) -> AsyncIterator[AsyncSession]:
        """Session whose driver errors come out as store errors."""
        try:
            async with self.database.session() as session:
                yield session
        except IntegrityError as e:
            raise ConflictError(f"Cannot {action}: {e.orig}") from e
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"SQL store failed to {action}: {e}")
            raise StorageError(f"SQL store failed to {action}: {e}") from e

    async def _open(self) -> None:
        try:
            await self.database.create_all()
        except (SQLAlchemyError, OSError) as e:
            raise StorageError(f"Cannot initialise database: {e}") from e

    async def _close(self) -> None:
        await self.database.close()

    async def _add(self, model: Any, action: str) -> Any:
        async with self._session(action) as session:
            session.add(model)
            await session.flush()
        return model

    async def _first(self, stmt: Any, action: str) -> Any:
        async with self._session(action) as session:
            return (await session.execute(stmt)).scalars().first()

    async def _all(self, stmt: Any, action: str) -> list[Any]:
        async with self._session(action) as session:
            return list((await session.execute(stmt)).scalars().all())

    async def _scalar(self, stmt: Any, action: str) -> Any:
        async with self._session(action) as session:
            return (await session.execute(stmt)).scalar_one()

    # ==========================================================================
    # Users
    # ==========================================================================

    async def create_user(self, user: User) -> User:
        row = await self._add(
            UserModel(
                username=user.username,
                password_hash=user.password_hash,
                email=user.email,
                created_at=user.created_at,
            ),
            f"create user {user.username}",
        )
        return _user_from_row(row)

    async def get_user(self, user_id: int) -> User | None:
        row = await self._first(
            select(UserModel).where(UserModel.id == user_id), "read user"
        )
        return _user_from_row(row) if row else None

    async def get_user_by_username(self, username: str) -> User | None:
        row = await self._first(
            select(UserModel).where(UserModel.username == username), "read user"
        )
        return _user_from_row(row) if row else None

    # ==========================================================================
    # Posts
    # ==========================================================================

    async def create_post(self, post: Post) -> Post:
        row = await self._add(
            PostModel(
                external_id=post.external_id,
                content=post.content,
                author_name=post.author_name,
                author_username=post.author_username,
                author_profile_image=post.author_profile_image,
                coin_symbol=post.coin_symbol,
                sentiment_score=post.sentiment_score,
                sentiment_label=post.sentiment_label.value,
                created_at=post.created_at,
                likes=post.likes,
                retweets=post.retweets,
            ),
            f"create post {post.external_id}",
        )
        return _post_from_row(row)

    async def get_post(self, post_id: int) -> Post | None:
        row = await self._first(
            select(PostModel).where(PostModel.id == post_id), "read post"
        )
        return _post_from_row(row) if row else None

    async def get_post_by_external_id(self, external_id: str) -> Post | None:
        row = await self._first(
            select(PostModel).where(PostModel.external_id == external_id),
            "read post",
        )
        return _post_from_row(row) if row else None

    async def list_posts(
        self,
        limit: int = DEFAULT_LIST_LIMIT,
        coin_symbol: str | None = None,
    ) -> list[Post]:
        stmt = select(PostModel)
        if coin_symbol:
            stmt = stmt.where(PostModel.coin_symbol == coin_symbol.upper())
        stmt = stmt.order_by(PostModel.created_at.desc(), PostModel.id.desc()).limit(
            limit
        )
        return [_post_from_row(r) for r in await self._all(stmt, "list posts")]

    # ==========================================================================
    # Coins
    # ==========================================================================

    async def _insert_coin(self, coin: Coin) -> Coin:
        row = await self._add(
            CoinModel(
                symbol=coin.symbol,
                name=coin.name,
                current_price=coin.current_price,
                price_change_percentage=coin.price_change_percentage,
                image=coin.image,
                is_tracked=coin.is_tracked,
            ),
            f"create coin {coin.symbol}",
        )
        return _coin_from_row(row)

    async def _replace_coin(self, coin: Coin) -> Coin:
        async with self._session(f"update coin {coin.symbol}") as session:
            row = await session.get(CoinModel, coin.id)
            row.name = coin.name
            row.current_price = coin.current_price
            row.price_change_percentage = coin.price_change_percentage
            row.image = coin.image
            row.is_tracked = coin.is_tracked
        return coin

    async def get_coin(self, coin_id: int) -> Coin | None:
        row = await self._first(
            select(CoinModel).where(CoinModel.id == coin_id), "read coin"
        )
        return _coin_from_row(row) if row else None

    async def get_coin_by_symbol(self, symbol: str) -> Coin | None:
        row = await self._first(
            select(CoinModel).where(CoinModel.symbol == symbol.strip().upper()),
            "read coin",
        )
        return _coin_from_row(row) if row else None

    async def list_coins(self, tracked_only: bool = False) -> list[Coin]:
        stmt = select(CoinModel)
        if tracked_only:
            stmt = stmt.where(CoinModel.is_tracked.is_(True))
        rows = await self._all(stmt.order_by(CoinModel.id), "list coins")
        return [_coin_from_row(r) for r in rows]

    async def count_tracked_coins(self) -> int:
        return await self._scalar(
            select(func.count())
            .select_from(CoinModel)
            .where(CoinModel.is_tracked.is_(True)),
            "count coins",
        )

    # ==========================================================================
    # Trades
    # ==========================================================================

    async def _insert_trade(self, trade: Trade) -> Trade:
        row = await self._add(
            TradeModel(
                type=trade.type.value,
                coin_symbol=trade.coin_symbol,
                amount=trade.amount,
                price=trade.price,
                sentiment_score=trade.sentiment_score,
                threshold=trade.threshold,
                timestamp=trade.timestamp,
            ),
            f"create trade for {trade.coin_symbol}",
        )
        return _trade_from_row(row)

    async def get_trade(self, trade_id: int) -> Trade | None:
        row = await self._first(
            select(TradeModel).where(TradeModel.id == trade_id), "read trade"
        )
        return _trade_from_row(row) if row else None

    async def list_trades(self, limit: int = DEFAULT_LIST_LIMIT) -> list[Trade]:
        stmt = (
            select(TradeModel)
            .order_by(TradeModel.timestamp.desc(), TradeModel.id.desc())
            .limit(limit)
        )
        return [_trade_from_row(r) for r in await self._all(stmt, "list trades")]

    async def count_trades(self) -> int:
        return await self._scalar(
            select(func.count()).select_from(TradeModel), "count trades"
        )

    # ==========================================================================
    # Singletons
    # ==========================================================================

    async def _load_config(self) -> TradingConfig | None:
        async with self._session("read config") as session:
            row = await session.get(TradingConfigModel, SINGLETON_ID)
        if row is None:
            return None
        return TradingConfig(
            buy_threshold=row.buy_threshold,
            sell_threshold=row.sell_threshold,
            auto_trading=row.auto_trading,
            notifications=row.notifications,
            risk_level=RiskLevel(row.risk_level),
        )

    async def _save_config(self, config: TradingConfig) -> None:
        async with self._session("save config") as session:
            await session.merge(TradingConfigModel(id=SINGLETON_ID, **config.to_dict()))

    async def _load_stats(self) -> Stats | None:
        async with self._session("read stats") as session:
            row = await session.get(StatsModel, SINGLETON_ID)
        if row is None:
            return None
        return Stats(
            overall_sentiment=row.overall_sentiment,
            overall_sentiment_label=SentimentLabel(row.overall_sentiment_label),
            active_trades=row.active_trades,
            tracked_coins=row.tracked_coins,
            profit_loss=row.profit_loss,
            profit_loss_percentage=row.profit_loss_percentage,
            last_updated=as_utc(row.last_updated),
        )

    async def _save_stats(self, stats: Stats) -> None:
        async with self._session("save stats") as session:
            await session.merge(StatsModel(id=SINGLETON_ID, **stats.to_dict()))


# =============================================================================
# Row mapping
# =============================================================================


def _user_from_row(row: UserModel) -> User:
    return User(
        id=row.id,
        username=row.username,
        password_hash=row.password_hash,
        email=row.email,
        created_at=as_utc(row.created_at),
    )


def _post_from_row(row: PostModel) -> Post:
    return Post(
        id=row.id,
        external_id=row.external_id,
        content=row.content,
        author_name=row.author_name,
        author_username=row.author_username,
        author_profile_image=row.author_profile_image,
        coin_symbol=row.coin_symbol,
        sentiment_score=row.sentiment_score,
        sentiment_label=SentimentLabel(row.sentiment_label),
        created_at=as_utc(row.created_at),
        likes=row.likes,
        retweets=row.retweets,
    )


def _coin_from_row(row: CoinModel) -> Coin:
    return Coin(
        id=row.id,
        symbol=row.symbol,
        name=row.name,
        current_price=row.current_price,
        price_change_percentage=row.price_change_percentage,
        image=row.image,
        is_tracked=row.is_tracked,
    )


def _trade_from_row(row: TradeModel) -> Trade:
    return Trade(
        id=row.id,
        type=row.type,
        coin_symbol=row.coin_symbol,
        amount=row.amount,
        price=row.price,
        sentiment_score=row.sentiment_score,
        threshold=row.threshold,
        timestamp=as_utc(row.timestamp),
    )
