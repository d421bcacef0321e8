"""Sentiment threshold trade decision rule."""

from datetime import datetime
from decimal import Decimal

from coinwhisperer.core.types import Coin, Trade, TradeType, utcnow

BASE_TRADE_AMOUNT = Decimal("100")
AMOUNT_QUANTUM = Decimal("0.00000001")


def decide_trade(
    coin: Coin,
    sentiment_score: float,
    buy_threshold: float,
    sell_threshold: float,
    *,
    base_amount: Decimal = BASE_TRADE_AMOUNT,
    now: datetime | None = None,
) -> Trade | None:
    """
    Decide whether a sentiment score warrants a trade.

    BUY when the score reaches the buy threshold, otherwise SELL when it is at
    or below the sell threshold. The amount scales the base amount by the
    score (BUY) or by its complement (SELL). The trade executes at the coin's
    current price and is not persisted here.

    Args:
        coin: Coin being traded
        sentiment_score: Score in [0, 1]
        buy_threshold: Upper boundary
        sell_threshold: Lower boundary
        base_amount: Currency units per full-conviction trade
        now: Trade timestamp (defaults to current UTC time)

    Returns:
        Unsaved Trade, or None when the score sits between the thresholds
    """
    if sentiment_score >= buy_threshold:
        trade_type = TradeType.BUY
        multiplier = sentiment_score
        threshold = buy_threshold
    elif sentiment_score <= sell_threshold:
        trade_type = TradeType.SELL
        multiplier = 1 - sentiment_score
        threshold = sell_threshold
    else:
        return None

    amount = (base_amount * Decimal(str(multiplier))).quantize(AMOUNT_QUANTUM)
    # Zero thresholds at the extremes would produce an empty order
    if amount <= 0:
        return None

    return Trade(
        type=trade_type,
        coin_symbol=coin.symbol,
        amount=amount,
        price=coin.current_price,
        sentiment_score=sentiment_score,
        threshold=threshold,
        timestamp=now or utcnow(),
    )
