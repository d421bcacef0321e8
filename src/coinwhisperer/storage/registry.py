"""Store registry for selecting a persistence backend from configuration."""

import logging
from typing import Any

from coinwhisperer.config.settings import Settings
from coinwhisperer.core.registry import Registry
from coinwhisperer.storage.base import Store

logger = logging.getLogger(__name__)


class StoreRegistry(Registry[Store]):
    """
    Registry for store backends.

    Example:
        @store_registry.register("memory")
        class MemoryStore(Store):
            ...

        store = store_registry.create_from_settings(settings)
    """

    def create_from_settings(self, settings: Settings, **overrides: Any) -> Store:
        """
        Create the configured backend.

        Args:
            settings: Application settings (storage, trading, coins sections)
            **overrides: Extra constructor arguments, e.g. a test client

        Returns:
            Unconnected Store instance
        """
        storage = settings.storage
        params: dict[str, Any] = {
            "trading": settings.trading,
            "seed_coins": settings.coins.to_coins() if storage.seed_defaults else [],
        }
        if storage.backend == "sql":
            params.update(url=storage.sql_url, echo=storage.sql_echo)
        elif storage.backend == "document":
            params.update(uri=storage.mongo_uri, database=storage.mongo_database)
        params.update(overrides)

        logger.info(f"Creating '{storage.backend}' store")
        return self.create(storage.backend, **params)


# Global store registry instance
store_registry = StoreRegistry("storage")


def create_store(settings: Settings, **overrides: Any) -> Store:
    """Convenience function: import every backend and build the configured one."""
    # Importing the backends runs their @register decorators
    from coinwhisperer.storage import document, memory  # noqa: F401
    from coinwhisperer.storage.sql import store  # noqa: F401

    return store_registry.create_from_settings(settings, **overrides)
