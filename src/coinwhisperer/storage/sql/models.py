"""SQLAlchemy models for the Coin Whisperer store."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    Float,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    TypeDecorator,
)
from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# SQLite only autoincrements INTEGER PRIMARY KEY columns
Id = BigInteger().with_variant(Integer(), "sqlite")


class DecimalText(TypeDecorator):
    """Decimal stored as text. SQLite has no exact numeric type."""

    impl = String(64)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else Decimal(value)


def Amount(precision: int, scale: int):
    return Numeric(precision, scale).with_variant(DecimalText(), "sqlite")


class Base(AsyncAttrs, DeclarativeBase):
    """Base class for all models."""

    pass


class UserModel(Base):
    """Dashboard user."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Id, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class PostModel(Base):
    """
    Scored social post.

    ``external_id`` is the source's identifier and makes ingestion idempotent.
    """

    __tablename__ = "posts"

    id: Mapped[int] = mapped_column(Id, primary_key=True, autoincrement=True)
    external_id: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    author_name: Mapped[str] = mapped_column(String(255), nullable=False)
    author_username: Mapped[str] = mapped_column(String(255), nullable=False)
    author_profile_image: Mapped[str | None] = mapped_column(String(500))
    coin_symbol: Mapped[str] = mapped_column(String(20), nullable=False)
    sentiment_score: Mapped[float] = mapped_column(Float, nullable=False)
    sentiment_label: Mapped[str] = mapped_column(String(10), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    likes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    retweets: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        Index("ix_posts_created_at", "created_at"),
        Index("ix_posts_coin_symbol", "coin_symbol"),
    )


class CoinModel(Base):
    """Coin known to the dashboard."""

    __tablename__ = "coins"

    id: Mapped[int] = mapped_column(Id, primary_key=True, autoincrement=True)
    symbol: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    current_price: Mapped[Decimal] = mapped_column(Amount(30, 18), nullable=False)
    price_change_percentage: Mapped[Decimal] = mapped_column(
        Amount(12, 4), nullable=False
    )
    image: Mapped[str | None] = mapped_column(String(500))
    is_tracked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class TradeModel(Base):
    """Simulated trade."""

    __tablename__ = "trades"

    id: Mapped[int] = mapped_column(Id, primary_key=True, autoincrement=True)
    type: Mapped[str] = mapped_column(String(4), nullable=False)
    coin_symbol: Mapped[str] = mapped_column(String(20), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Amount(30, 8), nullable=False)
    price: Mapped[Decimal] = mapped_column(Amount(30, 18), nullable=False)
    sentiment_score: Mapped[float] = mapped_column(Float, nullable=False)
    threshold: Mapped[float | None] = mapped_column(Float)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (Index("ix_trades_timestamp", "timestamp"),)


class TradingConfigModel(Base):
    """Single-row trading configuration."""

    __tablename__ = "trading_config"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    buy_threshold: Mapped[float] = mapped_column(Float, nullable=False)
    sell_threshold: Mapped[float] = mapped_column(Float, nullable=False)
    auto_trading: Mapped[bool] = mapped_column(Boolean, nullable=False)
    notifications: Mapped[bool] = mapped_column(Boolean, nullable=False)
    risk_level: Mapped[str] = mapped_column(String(10), nullable=False)


class StatsModel(Base):
    """Single-row dashboard aggregates."""

    __tablename__ = "stats"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    overall_sentiment: Mapped[float] = mapped_column(Float, nullable=False)
    overall_sentiment_label: Mapped[str] = mapped_column(String(10), nullable=False)
    active_trades: Mapped[int] = mapped_column(Integer, nullable=False)
    tracked_coins: Mapped[int] = mapped_column(Integer, nullable=False)
    profit_loss: Mapped[Decimal] = mapped_column(Amount(30, 8), nullable=False)
    profit_loss_percentage: Mapped[Decimal] = mapped_column(
        Amount(12, 4), nullable=False
    )
    last_updated: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
