"""Behaviour every store backend must share (memory, sql, document)."""

import asyncio
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from coinwhisperer.core.errors import ConflictError, NotFoundError, ValidationError
from coinwhisperer.core.types import (
    Coin,
    Post,
    RiskLevel,
    SentimentLabel,
    Stats,
    Trade,
    TradeType,
    User,
)

BASE_TIME = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_post(external_id: str, minutes: int = 0, coin_symbol: str = "DOGE", score: float = 0.8) -> Post:
    return Post(
        external_id=external_id,
        content=f"post {external_id}",
        author_name="Tester",
        author_username="tester",
        coin_symbol=coin_symbol,
        sentiment_score=score,
        sentiment_label=SentimentLabel.POSITIVE,
        created_at=BASE_TIME + timedelta(minutes=minutes),
        likes=3,
        retweets=1,
    )


def make_trade(minutes: int = 0, amount: str = "80", trade_type: TradeType = TradeType.BUY) -> Trade:
    return Trade(
        type=trade_type,
        coin_symbol="SHIB",
        amount=Decimal(amount),
        price=Decimal("0.00000819"),
        sentiment_score=0.8,
        threshold=0.65,
        timestamp=BASE_TIME + timedelta(minutes=minutes),
    )


class TestSeeding:
    """Tests for connect-time seeding and singletons."""

    async def test_seed_coins_created(self, store):
        """An empty store is seeded with the configured coins."""
        coins = await store.list_coins()

        assert [c.symbol for c in coins] == ["DOGE", "SHIB", "PEPE"]
        assert len({c.id for c in coins}) == 3
        assert all(c.id is not None for c in coins)

    async def test_seed_is_idempotent(self, store):
        """Seeding a store that already has coins does nothing."""
        await store.seed()
        assert len(await store.list_coins()) == 3

    async def test_stats_after_seed(self, store):
        """Seeding counts tracked coins; no trades yet."""
        stats = await store.get_stats()

        assert stats.tracked_coins == 3
        assert stats.active_trades == 0
        assert stats.overall_sentiment == 0.5
        assert stats.overall_sentiment_label == SentimentLabel.NEUTRAL

    async def test_default_config(self, store):
        """The config singleton starts from the defaults."""
        config = await store.get_config()

        assert config.buy_threshold == 0.65
        assert config.sell_threshold == 0.40
        assert config.auto_trading is True
        assert config.risk_level is RiskLevel.MEDIUM


class TestCoins:
    """Tests for coin storage."""

    async def test_lookup_by_symbol_is_case_insensitive(self, store):
        coin = await store.get_coin_by_symbol("doge")
        assert coin is not None
        assert coin.symbol == "DOGE"
        assert coin.current_price == Decimal("0.07382")

    async def test_missing_coin(self, store):
        """Missing records read as None."""
        assert await store.get_coin_by_symbol("NOPE") is None
        assert await store.get_coin(9999) is None

    async def test_decimal_precision_preserved(self, store):
        """Tiny prices come back exactly."""
        shib = await store.get_coin_by_symbol("SHIB")
        assert shib.current_price == Decimal("0.00000819")
        assert shib.price_change_percentage == Decimal("-2.3")

    async def test_duplicate_symbol_conflicts(self, store):
        """Symbols are unique regardless of case."""
        with pytest.raises(ConflictError):
            await store.create_coin(Coin(symbol="doge", name="Another Doge"))
        assert len(await store.list_coins()) == 3

    async def test_create_coin_updates_tracked_count(self, store):
        await store.create_coin(Coin(symbol="WIF", name="Wif"))
        stats = await store.get_stats()
        assert stats.tracked_coins == 4

    async def test_update_by_symbol_and_id(self, store):
        """Coins are addressable by symbol or numeric id."""
        doge = await store.get_coin_by_symbol("DOGE")

        by_symbol = await store.update_coin("doge", {"current_price": "0.08"})
        by_id = await store.update_coin(str(doge.id), {"name": "Doge"})

        assert by_symbol.current_price == Decimal("0.08")
        assert by_id.name == "Doge"
        assert by_id.current_price == Decimal("0.08")
        assert (await store.get_coin(doge.id)).name == "Doge"

    async def test_untracking_updates_stats(self, store):
        """Changing the tracked flag recomputes tracked_coins."""
        await store.update_coin("PEPE", {"is_tracked": False})

        tracked = await store.list_coins(tracked_only=True)
        stats = await store.get_stats()

        assert [c.symbol for c in tracked] == ["DOGE", "SHIB"]
        assert stats.tracked_coins == 2

    async def test_update_missing_coin(self, store):
        with pytest.raises(NotFoundError):
            await store.update_coin("NOPE", {"name": "Nope"})

    async def test_update_unknown_field(self, store):
        """A rejected update leaves the coin unchanged."""
        with pytest.raises(ValidationError):
            await store.update_coin("DOGE", {"symbol": "WOOF"})
        assert await store.get_coin_by_symbol("DOGE") is not None


class TestPosts:
    """Tests for post storage."""

    async def test_create_and_get(self, store):
        created = await store.create_post(make_post("p1"))
        fetched = await store.get_post_by_external_id("p1")

        assert created.id is not None
        assert fetched.id == created.id
        assert fetched.content == "post p1"
        assert fetched.sentiment_label == SentimentLabel.POSITIVE
        assert fetched.created_at.tzinfo is not None
        assert fetched.likes == 3
        assert (await store.get_post(created.id)).external_id == "p1"

    async def test_duplicate_external_id(self, store):
        """A known external id is rejected."""
        await store.create_post(make_post("p1"))
        with pytest.raises(ConflictError):
            await store.create_post(make_post("p1", minutes=5))
        assert len(await store.list_posts()) == 1

    async def test_list_newest_first(self, store):
        for i, minutes in enumerate([10, 30, 20]):
            await store.create_post(make_post(f"p{i}", minutes=minutes))

        posts = await store.list_posts()
        assert [p.external_id for p in posts] == ["p1", "p2", "p0"]

    async def test_list_limit(self, store):
        for i in range(5):
            await store.create_post(make_post(f"p{i}", minutes=i))

        posts = await store.list_posts(limit=2)
        assert [p.external_id for p in posts] == ["p4", "p3"]

    async def test_filter_by_coin(self, store):
        await store.create_post(make_post("d", coin_symbol="DOGE"))
        await store.create_post(make_post("s", coin_symbol="SHIB", minutes=1))

        posts = await store.list_posts(coin_symbol="shib")
        assert [p.external_id for p in posts] == ["s"]


class TestTrades:
    """Tests for trade storage."""

    async def test_create_trade_counts(self, store):
        """Every stored trade bumps active_trades."""
        first = await store.create_trade(make_trade())
        await store.create_trade(make_trade(minutes=1))

        assert first.id is not None
        assert (await store.get_stats()).active_trades == 2
        assert await store.count_trades() == 2

    async def test_trade_round_trip(self, store):
        created = await store.create_trade(make_trade(amount="80.12345678"))
        fetched = await store.get_trade(created.id)

        assert fetched.type is TradeType.BUY
        assert fetched.amount == Decimal("80.12345678")
        assert fetched.price == Decimal("0.00000819")
        assert fetched.threshold == 0.65
        assert fetched.timestamp.tzinfo is not None

    async def test_manual_trade_without_threshold(self, store):
        trade = Trade(
            type=TradeType.SELL,
            coin_symbol="DOGE",
            amount=Decimal("5"),
            price=Decimal("0.07382"),
            sentiment_score=0.5,
            threshold=None,
        )
        created = await store.create_trade(trade)
        assert (await store.get_trade(created.id)).threshold is None

    async def test_list_newest_first(self, store):
        await store.create_trade(make_trade(minutes=1, trade_type=TradeType.SELL))
        await store.create_trade(make_trade(minutes=5))
        await store.create_trade(make_trade(minutes=3))

        trades = await store.list_trades(limit=2)
        assert [t.timestamp for t in trades] == [
            BASE_TIME + timedelta(minutes=5),
            BASE_TIME + timedelta(minutes=3),
        ]


class TestConfig:
    """Tests for the trading config singleton."""

    async def test_partial_update_persists(self, store):
        """Unspecified fields keep their value across reads."""
        await store.update_config({"buy_threshold": 0.7, "auto_trading": False})
        config = await store.get_config()

        assert config.buy_threshold == 0.7
        assert config.auto_trading is False
        assert config.sell_threshold == 0.40
        assert config.notifications is True

    async def test_invalid_update_changes_nothing(self, store):
        with pytest.raises(ValidationError):
            await store.update_config({"buy_threshold": 2})
        assert (await store.get_config()).buy_threshold == 0.65


class TestStats:
    """Tests for the stats singleton."""

    async def test_update_stats(self, store):
        before = await store.get_stats()
        updated = await store.update_stats({"profit_loss": "12.50", "overall_sentiment": 0.8})
        fetched = await store.get_stats()

        assert updated.last_updated >= before.last_updated
        assert fetched.profit_loss == Decimal("12.50")
        assert fetched.overall_sentiment == 0.8
        assert fetched.overall_sentiment_label == SentimentLabel.POSITIVE
        assert fetched.tracked_coins == 3

    async def test_label_follows_score(self, store):
        stats = await store.update_stats({"overall_sentiment": 0.4})
        assert stats.overall_sentiment_label == SentimentLabel.NEGATIVE

        stats = await store.update_stats({"profit_loss": "1"})
        assert stats.overall_sentiment_label == SentimentLabel.NEGATIVE

    @pytest.mark.parametrize(
        "changes",
        [
            {"active_trades": 7},
            {"tracked_coins": 0},
            {"overall_sentiment_label": "Negative"},
            {"overall_sentiment": 0.9, "overall_sentiment_label": "Negative"},
        ],
    )
    async def test_derived_fields_rejected(self, store, changes):
        await store.create_trade(make_trade())

        with pytest.raises(ValidationError):
            await store.update_stats(changes)

        stats = await store.get_stats()
        assert stats.active_trades == 1
        assert stats.tracked_coins == 3
        assert stats.overall_sentiment == 0.5

    @pytest.mark.parametrize("value", ["high", 1.5, -0.1, float("nan")])
    async def test_invalid_overall_sentiment(self, store, value):
        with pytest.raises(ValidationError):
            await store.update_stats({"overall_sentiment": value})

    async def test_refresh_recounts(self, store):
        """refresh_stats recomputes counts that went stale."""
        await store.create_trade(make_trade())
        await store._save_stats(Stats(active_trades=0, tracked_coins=0))

        stats = await store.refresh_stats()
        assert stats.active_trades == 1
        assert stats.tracked_coins == 3

    async def test_concurrent_writes_keep_counts(self, store):
        """Concurrent trades and tracking toggles leave exact counts behind."""
        trades = [store.create_trade(make_trade()) for _ in range(20)]
        toggles = [
            store.update_coin(symbol, {"is_tracked": tracked})
            for tracked in (False, True, False)
            for symbol in ("DOGE", "SHIB", "PEPE")
        ]

        await asyncio.gather(*trades, *toggles)

        stats = await store.get_stats()
        assert stats.active_trades == 20 == await store.count_trades()
        assert stats.tracked_coins == await store.count_tracked_coins()


class TestUsers:
    """Tests for user storage."""

    async def test_create_and_lookup(self, store):
        created = await store.create_user(User(username="alice", password_hash="h"))
        fetched = await store.get_user_by_username("alice")

        assert fetched.id == created.id
        assert fetched.password_hash == "h"
        assert (await store.get_user(created.id)).username == "alice"

    async def test_username_taken(self, store):
        await store.create_user(User(username="alice"))
        with pytest.raises(ConflictError):
            await store.create_user(User(username="alice"))


async def test_untracked_seed_coin_not_counted():
    """Seeding DOGE and SHIB tracked with PEPE untracked counts two tracked coins."""
    from coinwhisperer.storage import MemoryStore

    seeds = [
        Coin(symbol="DOGE", name="Dogecoin"),
        Coin(symbol="SHIB", name="Shiba Inu"),
        Coin(symbol="PEPE", name="Pepe", is_tracked=False),
    ]
    async with MemoryStore(seed_coins=seeds) as store:
        assert len(await store.list_coins()) == 3
        stats = await store.refresh_stats()
        assert stats.tracked_coins == 2
