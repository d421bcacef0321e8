"""
Coin Whisperer

A crypto social sentiment dashboard: scores posts about coins, trades on the
sentiment in simulation and keeps dashboard statistics current.
"""

__version__ = "0.1.0"

# Public API
from coinwhisperer.config.settings import get_settings, Settings
from coinwhisperer.core.types import Coin, Post, Trade, TradeType, TradingConfig, Stats
from coinwhisperer.sentiment import score_text, label_for_score
from coinwhisperer.trading import decide_trade, TradeService
from coinwhisperer.storage import Store, store_registry, create_store
from coinwhisperer.ingestion import AnalysisService, MockPostFeed
from coinwhisperer.market import CoinService

__all__ = [
    # Version
    "__version__",
    # Config
    "get_settings",
    "Settings",
    # Types
    "Coin",
    "Post",
    "Trade",
    "TradeType",
    "TradingConfig",
    "Stats",
    # Sentiment and trading
    "score_text",
    "label_for_score",
    "decide_trade",
    "TradeService",
    # Storage
    "Store",
    "store_registry",
    "create_store",
    # Services
    "AnalysisService",
    "MockPostFeed",
    "CoinService",
]


def main() -> None:
    """Main entry point - runs the CLI."""
    from coinwhisperer.cli import cli
    cli()


if __name__ == "__main__":
    main()
