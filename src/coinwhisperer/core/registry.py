"""Name -> class registry used to pick pluggable backends from configuration."""

import logging
from typing import Any, Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Registry(Generic[T]):
    """
    Maps configuration names to implementation classes.

    Example:
        store_registry = Registry[Store]("storage")

        @store_registry.register("memory", description="In-process dicts")
        class MemoryStore(Store):
            ...

        store = store_registry.create("memory", seed_coins=coins)
    """

    def __init__(self, name: str):
        self.name = name
        self._classes: dict[str, type[T]] = {}
        self._info: dict[str, dict[str, Any]] = {}

    def register(
        self,
        name: str,
        *,
        description: str = "",
        **metadata: Any,
    ) -> Callable[[type[T]], type[T]]:
        """
        Class decorator adding the class under ``name``.

        Args:
            name: Key used in configuration files
            description: One-line summary shown by the CLI
            **metadata: Extra details kept alongside the class

        Returns:
            The decorator; it returns the class unchanged
        """

        def decorator(klass: type[T]) -> type[T]:
            if name in self._classes:
                logger.warning(f"[{self.name}] '{name}' registered twice, keeping {klass.__name__}")
            self._classes[name] = klass
            self._info[name] = {
                "description": description,
                "class": klass.__name__,
                "module": klass.__module__,
                **metadata,
            }
            logger.debug(f"[{self.name}] {name} -> {klass.__name__}")
            return klass

        return decorator

    def get(self, name: str) -> type[T]:
        """
        Look up the class registered as ``name``.

        Raises:
            KeyError: If nothing is registered under that name
        """
        try:
            return self._classes[name]
        except KeyError:
            known = ", ".join(sorted(self._classes)) or "none"
            raise KeyError(f"[{self.name}] unknown '{name}' (known: {known})") from None

    def create(self, name: str, **params: Any) -> T:
        """Instantiate the class registered as ``name`` with ``params``."""
        return self.get(name)(**params)

    def list(self) -> list[str]:
        """Registered names in registration order."""
        return list(self._classes)

    def list_with_metadata(self) -> dict[str, dict[str, Any]]:
        return {name: dict(self._info[name]) for name in self._classes}

    def __contains__(self, name: str) -> bool:
        return name in self._classes

    def __len__(self) -> int:
        return len(self._classes)
