"""Pytest configuration and fixtures."""

from decimal import Decimal

import pytest
from mongomock_motor import AsyncMongoMockClient

from coinwhisperer.core.types import Coin, utcnow
from coinwhisperer.ingestion import FeedPost
from coinwhisperer.storage import MemoryStore
from coinwhisperer.storage.document import DocumentStore
from coinwhisperer.storage.sql import SqlStore


@pytest.fixture(autouse=True)
def reset_settings():
    """Reset settings singleton between tests."""
    from coinwhisperer.config.settings import reset_settings
    reset_settings()
    yield
    reset_settings()


def make_seed_coins() -> list[Coin]:
    return [
        Coin(
            symbol="DOGE",
            name="Dogecoin",
            current_price=Decimal("0.07382"),
            price_change_percentage=Decimal("5.6"),
        ),
        Coin(
            symbol="SHIB",
            name="Shiba Inu",
            current_price=Decimal("0.00000819"),
            price_change_percentage=Decimal("-2.3"),
        ),
        Coin(
            symbol="PEPE",
            name="Pepe",
            current_price=Decimal("0.00000104"),
            price_change_percentage=Decimal("12.4"),
        ),
    ]


@pytest.fixture
def seed_coins():
    """DOGE, SHIB and PEPE, all tracked."""
    return make_seed_coins()


@pytest.fixture(params=["memory", "sql", "document"])
async def store(request, tmp_path, seed_coins):
    """A connected, seeded store for every backend."""
    if request.param == "memory":
        backend = MemoryStore(seed_coins=seed_coins)
    elif request.param == "sql":
        backend = SqlStore(
            url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
            seed_coins=seed_coins,
        )
    else:
        backend = DocumentStore(
            client=AsyncMongoMockClient(),
            database="coinwhisperer_test",
            seed_coins=seed_coins,
        )

    await backend.connect()
    yield backend
    await backend.close()


@pytest.fixture
async def memory_store(seed_coins):
    """A connected, seeded in-memory store."""
    async with MemoryStore(seed_coins=seed_coins) as backend:
        yield backend


class StaticFeed:
    """Post feed returning a fixed batch on every fetch."""

    def __init__(self, posts=()):
        self.posts = list(posts)
        self.calls = 0

    async def fetch(self) -> list[FeedPost]:
        self.calls += 1
        return list(self.posts)


class FailingFeed:
    """Post feed whose fetch always raises."""

    async def fetch(self) -> list[FeedPost]:
        raise ConnectionError("feed unavailable")


def feed_post(external_id: str, content: str, coin_symbol: str = "DOGE", **kwargs) -> FeedPost:
    """Build a complete FeedPost with sensible defaults."""
    values = {
        "author_name": "Tester",
        "author_username": "tester",
        "created_at": utcnow(),
    }
    values.update(kwargs)
    return FeedPost(
        external_id=external_id,
        content=content,
        coin_symbol=coin_symbol,
        **values,
    )
