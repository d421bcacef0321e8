"""Trade execution: persist decided or manual trades and announce them."""

import logging
from decimal import Decimal
from typing import Any

from coinwhisperer.core.errors import NotFoundError, ValidationError
from coinwhisperer.core.types import Coin, Trade, TradeType, TradingConfig, to_decimal
from coinwhisperer.events import NEW_TRADE, Broadcaster
from coinwhisperer.storage.base import Store
from coinwhisperer.trading.decision import BASE_TRADE_AMOUNT, decide_trade

logger = logging.getLogger(__name__)


class TradeService:
    """Creates simulated trades in the store and broadcasts each one."""

    def __init__(
        self,
        store: Store,
        broadcaster: Broadcaster | None = None,
        base_amount: Decimal = BASE_TRADE_AMOUNT,
    ):
        self.store = store
        self.broadcaster = broadcaster or Broadcaster()
        self.base_amount = base_amount

    async def execute_decision(
        self,
        coin: Coin,
        sentiment_score: float,
        config: TradingConfig,
    ) -> Trade | None:
        """
        Run the decision rule for a coin and persist the resulting trade.

        Args:
            coin: Tracked coin the sentiment is about
            sentiment_score: Score in [0, 1]
            config: Current trading config (thresholds)

        Returns:
            Stored trade, or None when the score is between the thresholds
        """
        trade = decide_trade(
            coin,
            sentiment_score,
            config.buy_threshold,
            config.sell_threshold,
            base_amount=self.base_amount,
        )
        if trade is None:
            return None
        return await self._record(trade)

    async def place_manual_trade(
        self,
        symbol: str,
        trade_type: TradeType | str,
        amount: Any,
    ) -> Trade:
        """
        Execute a user-requested trade at the coin's current price.

        The trade carries the current overall sentiment and no threshold.

        Raises:
            ValidationError: Unknown trade type or non-positive amount
            NotFoundError: No coin with that symbol
        """
        try:
            trade_type = TradeType(str(trade_type).upper())
        except ValueError as e:
            raise ValidationError(
                f"Invalid trade type {trade_type!r}. Allowed: BUY, SELL"
            ) from e
        amount = to_decimal(amount)
        if amount <= 0:
            raise ValidationError(f"Trade amount must be positive, got {amount}")

        coin = await self.store.get_coin_by_symbol(symbol)
        if coin is None:
            raise NotFoundError(f"Coin with symbol {symbol} not found")

        stats = await self.store.get_stats()
        trade = Trade(
            type=trade_type,
            coin_symbol=coin.symbol,
            amount=amount,
            price=coin.current_price,
            sentiment_score=stats.overall_sentiment,
            threshold=None,
        )
        return await self._record(trade)

    async def _record(self, trade: Trade) -> Trade:
        created = await self.store.create_trade(trade)
        self.broadcaster.publish({"type": NEW_TRADE, "trade": created.to_dict()})
        return created
