"""Exception hierarchy shared by stores, services and the HTTP boundary."""


class CoinWhispererError(Exception):
    """Base class for all application errors."""


class ValidationError(CoinWhispererError):
    """Input has the wrong shape or is out of range. Raised before any mutation."""


class NotFoundError(CoinWhispererError):
    """A referenced coin, trade, post or user does not exist."""


class ConflictError(CoinWhispererError):
    """A unique key (coin symbol, post external id, username) is already taken."""


class StorageError(CoinWhispererError):
    """Unexpected backend failure. Never retried by the core."""
