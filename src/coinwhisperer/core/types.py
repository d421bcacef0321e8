"""Core domain types.

All entities are frozen dataclasses: a change produces a new record via
``with_changes`` and the store replaces the old one.
"""

from dataclasses import dataclass, field, fields, replace
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Callable, Mapping

from coinwhisperer.core.errors import ValidationError


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes coming back from a backend."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_decimal(value: Any) -> Decimal:
    """Convert a number or numeric string to Decimal without float artifacts."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValidationError(f"Expected a number, got {value!r}")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValidationError(f"Expected a number, got {value!r}") from e


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    raise ValidationError(f"Expected a boolean, got {value!r}")


def _to_unit_float(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal, str)):
        raise ValidationError(f"Expected a number in [0, 1], got {value!r}")
    try:
        number = float(value)
    except ValueError as e:
        raise ValidationError(f"Expected a number in [0, 1], got {value!r}") from e
    if not 0.0 <= number <= 1.0:
        raise ValidationError(f"Value {number} is outside [0, 1]")
    return number


def _to_count(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(f"Expected a non-negative integer, got {value!r}")
    return value


def _apply_changes(
    record: Any,
    changes: Mapping[str, Any],
    coercers: Mapping[str, Callable[[Any], Any]],
) -> Any:
    """Merge ``changes`` into a frozen record, validating every field."""
    unknown = set(changes) - set(coercers)
    if unknown:
        raise ValidationError(
            f"Cannot update field(s) {', '.join(sorted(unknown))} "
            f"on {type(record).__name__}"
        )
    return replace(
        record,
        **{name: coercers[name](value) for name, value in changes.items()},
    )


# =============================================================================
# Enums
# =============================================================================


class SentimentLabel(str, Enum):
    """Three-way sentiment classification."""

    POSITIVE = "Positive"
    NEUTRAL = "Neutral"
    NEGATIVE = "Negative"

    def __str__(self) -> str:
        return self.value


class TradeType(str, Enum):
    """Trade direction."""

    BUY = "BUY"
    SELL = "SELL"

    def __str__(self) -> str:
        return self.value


class RiskLevel(str, Enum):
    """User-selected risk appetite. Stored, not yet used by the decision rule."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    def __str__(self) -> str:
        return self.value


def _to_enum(enum_cls: type[Enum]) -> Callable[[Any], Any]:
    def convert(value: Any) -> Any:
        try:
            return enum_cls(value)
        except ValueError as e:
            allowed = ", ".join(m.value for m in enum_cls)
            raise ValidationError(
                f"Invalid {enum_cls.__name__} {value!r}. Allowed: {allowed}"
            ) from e

    return convert


# =============================================================================
# Entities
# =============================================================================


@dataclass(frozen=True)
class User:
    """A dashboard user. Authentication lives outside the core."""

    username: str
    password_hash: str = ""
    email: str | None = None
    created_at: datetime = field(default_factory=utcnow)
    id: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Public view, never includes the password hash."""
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "created_at": self.created_at,
        }


@dataclass(frozen=True)
class Coin:
    """A coin the dashboard knows about. Identity is the upper-case symbol."""

    symbol: str
    name: str
    current_price: Decimal = Decimal("0")
    price_change_percentage: Decimal = Decimal("0")
    image: str | None = None
    is_tracked: bool = True
    id: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "symbol", self.symbol.strip().upper())
        object.__setattr__(self, "current_price", to_decimal(self.current_price))
        object.__setattr__(
            self, "price_change_percentage", to_decimal(self.price_change_percentage)
        )

    def with_changes(self, changes: Mapping[str, Any]) -> "Coin":
        """Return a copy with display fields, prices or the tracked flag changed."""
        return _apply_changes(
            self,
            changes,
            {
                "name": str,
                "current_price": to_decimal,
                "price_change_percentage": to_decimal,
                "image": lambda v: None if v is None else str(v),
                "is_tracked": _to_bool,
            },
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class Post:
    """A scored social post about a coin. Never mutated once stored."""

    external_id: str
    content: str
    author_name: str
    author_username: str
    coin_symbol: str
    sentiment_score: float
    sentiment_label: SentimentLabel
    created_at: datetime = field(default_factory=utcnow)
    author_profile_image: str | None = None
    likes: int = 0
    retweets: int = 0
    id: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "coin_symbol", self.coin_symbol.strip().upper())
        object.__setattr__(self, "sentiment_label", SentimentLabel(self.sentiment_label))
        if self.likes < 0 or self.retweets < 0:
            raise ValidationError("Engagement counters must be non-negative")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["sentiment_label"] = self.sentiment_label.value
        return data


@dataclass(frozen=True)
class Trade:
    """
    A simulated trade.

    ``threshold`` is the configured boundary that was crossed, or None for
    manual trades where no threshold was involved.
    """

    type: TradeType
    coin_symbol: str
    amount: Decimal
    price: Decimal
    sentiment_score: float
    threshold: float | None = None
    timestamp: datetime = field(default_factory=utcnow)
    id: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", TradeType(self.type))
        object.__setattr__(self, "coin_symbol", self.coin_symbol.strip().upper())
        object.__setattr__(self, "amount", to_decimal(self.amount))
        object.__setattr__(self, "price", to_decimal(self.price))
        if self.amount <= 0:
            raise ValidationError(f"Trade amount must be positive, got {self.amount}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["type"] = self.type.value
        return data


@dataclass(frozen=True)
class TradingConfig:
    """
    Singleton trading configuration.

    ``sell_threshold < buy_threshold`` is expected but not enforced.
    """

    buy_threshold: float = 0.65
    sell_threshold: float = 0.40
    auto_trading: bool = True
    notifications: bool = True
    risk_level: RiskLevel = RiskLevel.MEDIUM

    def with_changes(self, changes: Mapping[str, Any]) -> "TradingConfig":
        """Merge a partial update. Unspecified fields keep their value."""
        return _apply_changes(
            self,
            changes,
            {
                "buy_threshold": _to_unit_float,
                "sell_threshold": _to_unit_float,
                "auto_trading": _to_bool,
                "notifications": _to_bool,
                "risk_level": _to_enum(RiskLevel),
            },
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "buy_threshold": self.buy_threshold,
            "sell_threshold": self.sell_threshold,
            "auto_trading": self.auto_trading,
            "notifications": self.notifications,
            "risk_level": self.risk_level.value,
        }


@dataclass(frozen=True)
class Stats:
    """
    Derived dashboard aggregates.

    ``active_trades`` counts every trade ever created. ``profit_loss`` and
    ``profit_loss_percentage`` are placeholders: nothing derives them from
    trade history yet, they only change through an explicit update.
    """

    overall_sentiment: float = 0.5
    overall_sentiment_label: SentimentLabel = SentimentLabel.NEUTRAL
    active_trades: int = 0
    tracked_coins: int = 0
    profit_loss: Decimal = Decimal("0")
    profit_loss_percentage: Decimal = Decimal("0")
    last_updated: datetime = field(default_factory=utcnow)

    def with_changes(self, changes: Mapping[str, Any]) -> "Stats":
        """Merge a partial update and stamp ``last_updated``."""
        updated = _apply_changes(
            self,
            changes,
            {
                "overall_sentiment": _to_unit_float,
                "overall_sentiment_label": _to_enum(SentimentLabel),
                "active_trades": _to_count,
                "tracked_coins": _to_count,
                "profit_loss": to_decimal,
                "profit_loss_percentage": to_decimal,
            },
        )
        return replace(updated, last_updated=utcnow())

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["overall_sentiment_label"] = self.overall_sentiment_label.value
        return data
