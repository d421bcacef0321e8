"""Persistence backends for users, posts, coins, trades, config and stats."""

from coinwhisperer.storage.base import DEFAULT_LIST_LIMIT, Store
from coinwhisperer.storage.memory import MemoryStore
from coinwhisperer.storage.registry import create_store, store_registry

__all__ = [
    "DEFAULT_LIST_LIMIT",
    "MemoryStore",
    "Store",
    "create_store",
    "store_registry",
]
