"""Tests for core types."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from coinwhisperer.core.errors import ValidationError
from coinwhisperer.core.types import (
    Coin,
    Post,
    RiskLevel,
    SentimentLabel,
    Stats,
    Trade,
    TradeType,
    TradingConfig,
    User,
    as_utc,
    to_decimal,
)


class TestEnums:
    """Tests for enum values."""

    def test_trade_type_str(self):
        """Test trade type string representation."""
        assert str(TradeType.BUY) == "BUY"
        assert TradeType("SELL") is TradeType.SELL

    def test_sentiment_label_values(self):
        """Test sentiment label values."""
        assert SentimentLabel.POSITIVE.value == "Positive"
        assert str(SentimentLabel.NEUTRAL) == "Neutral"

    def test_risk_level_values(self):
        """Test risk level values."""
        assert [r.value for r in RiskLevel] == ["Low", "Medium", "High"]


class TestToDecimal:
    """Tests for decimal conversion."""

    def test_float_has_no_artifacts(self):
        """Floats convert through their string form."""
        assert to_decimal(0.1) == Decimal("0.1")

    def test_numeric_string(self):
        assert to_decimal("0.00000819") == Decimal("0.00000819")

    def test_rejects_garbage(self):
        """Non-numeric input raises ValidationError."""
        with pytest.raises(ValidationError):
            to_decimal("abc")
        with pytest.raises(ValidationError):
            to_decimal(True)


class TestCoin:
    """Tests for Coin dataclass."""

    def test_symbol_normalised(self):
        """Symbols are stored upper-case."""
        coin = Coin(symbol=" doge ", name="Dogecoin", current_price="0.07382")
        assert coin.symbol == "DOGE"
        assert coin.current_price == Decimal("0.07382")

    def test_with_changes(self):
        """Partial updates leave other fields untouched."""
        coin = Coin(symbol="DOGE", name="Dogecoin", id=1)
        updated = coin.with_changes({"current_price": "0.08", "is_tracked": False})

        assert updated.current_price == Decimal("0.08")
        assert updated.is_tracked is False
        assert updated.name == "Dogecoin"
        assert updated.id == 1
        assert coin.is_tracked is True

    def test_symbol_is_immutable(self):
        """The symbol cannot be changed through an update."""
        coin = Coin(symbol="DOGE", name="Dogecoin")
        with pytest.raises(ValidationError):
            coin.with_changes({"symbol": "WOOF"})

    def test_tracked_flag_must_be_bool(self):
        coin = Coin(symbol="DOGE", name="Dogecoin")
        with pytest.raises(ValidationError):
            coin.with_changes({"is_tracked": "yes"})


class TestPost:
    """Tests for Post dataclass."""

    def test_to_dict(self):
        """Labels serialise to their value."""
        post = Post(
            external_id="1",
            content="moon",
            author_name="A",
            author_username="a",
            coin_symbol="doge",
            sentiment_score=1.0,
            sentiment_label="Positive",
        )
        data = post.to_dict()

        assert data["coin_symbol"] == "DOGE"
        assert data["sentiment_label"] == "Positive"
        assert post.sentiment_label is SentimentLabel.POSITIVE

    def test_negative_engagement_rejected(self):
        with pytest.raises(ValidationError):
            Post(
                external_id="1",
                content="moon",
                author_name="A",
                author_username="a",
                coin_symbol="DOGE",
                sentiment_score=1.0,
                sentiment_label=SentimentLabel.POSITIVE,
                likes=-1,
            )


class TestTrade:
    """Tests for Trade dataclass."""

    def test_trade_creation(self):
        """Test trade creation."""
        trade = Trade(
            type="BUY",
            coin_symbol="pepe",
            amount="75",
            price="0.00000104",
            sentiment_score=0.75,
            threshold=0.65,
        )

        assert trade.type is TradeType.BUY
        assert trade.coin_symbol == "PEPE"
        assert trade.amount == Decimal("75")
        assert trade.timestamp.tzinfo is not None
        assert trade.to_dict()["type"] == "BUY"

    def test_amount_must_be_positive(self):
        """Zero or negative amounts are rejected."""
        with pytest.raises(ValidationError):
            Trade(
                type=TradeType.SELL,
                coin_symbol="DOGE",
                amount=Decimal("0"),
                price=Decimal("0.07"),
                sentiment_score=0.1,
            )


class TestTradingConfig:
    """Tests for the trading config singleton type."""

    def test_defaults(self):
        config = TradingConfig()
        assert config.buy_threshold == 0.65
        assert config.sell_threshold == 0.40
        assert config.auto_trading is True
        assert config.notifications is True
        assert config.risk_level is RiskLevel.MEDIUM

    def test_partial_update(self):
        """Unspecified fields keep their value."""
        config = TradingConfig().with_changes({"buy_threshold": 0.7, "risk_level": "High"})

        assert config.buy_threshold == 0.7
        assert config.sell_threshold == 0.40
        assert config.risk_level is RiskLevel.HIGH

    @pytest.mark.parametrize(
        "changes",
        [
            {"buy_threshold": 1.5},
            {"sell_threshold": -0.1},
            {"buy_threshold": "high"},
            {"auto_trading": 1},
            {"risk_level": "Extreme"},
            {"max_position": 10},
        ],
    )
    def test_invalid_update(self, changes):
        """Out-of-range, mistyped or unknown fields are rejected."""
        with pytest.raises(ValidationError):
            TradingConfig().with_changes(changes)


class TestStats:
    """Tests for Stats dataclass."""

    def test_update_stamps_last_updated(self):
        """Every update refreshes last_updated."""
        old = Stats(last_updated=datetime.now(timezone.utc) - timedelta(hours=1))
        updated = old.with_changes({"profit_loss": "12.5"})

        assert updated.profit_loss == Decimal("12.5")
        assert updated.last_updated > old.last_updated

    def test_counts_must_be_non_negative(self):
        with pytest.raises(ValidationError):
            Stats().with_changes({"active_trades": -1})

    @pytest.mark.parametrize("value", ["bullish", float("nan"), 1.2, True])
    def test_overall_sentiment_validated(self, value):
        with pytest.raises(ValidationError):
            Stats().with_changes({"overall_sentiment": value})

    def test_to_dict_label(self):
        assert Stats().to_dict()["overall_sentiment_label"] == "Neutral"


class TestUser:
    """Tests for User dataclass."""

    def test_public_view_hides_password(self):
        user = User(username="alice", password_hash="secret")
        assert "password_hash" not in user.to_dict()


def test_as_utc_attaches_timezone():
    """Naive datetimes are treated as UTC."""
    naive = datetime(2024, 1, 1, 12, 0)
    assert as_utc(naive).tzinfo is timezone.utc
    aware = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
    assert as_utc(aware) is aware
