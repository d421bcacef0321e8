"""Trading module - sentiment decision rule and simulated execution."""

from coinwhisperer.trading.decision import BASE_TRADE_AMOUNT, decide_trade
from coinwhisperer.trading.service import TradeService

__all__ = ["BASE_TRADE_AMOUNT", "TradeService", "decide_trade"]
