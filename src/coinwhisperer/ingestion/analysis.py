"""Analysis step: fetch posts, score them, trade on them, refresh sentiment."""

import asyncio
import logging
from dataclasses import asdict, dataclass

from coinwhisperer.core.errors import CoinWhispererError, ConflictError
from coinwhisperer.core.types import Post, SentimentLabel, Stats
from coinwhisperer.events import NEW_TWEET, Broadcaster
from coinwhisperer.ingestion.feed import FeedPost, PostFeed
from coinwhisperer.market.prices import PriceFeed, refresh_prices
from coinwhisperer.sentiment import score_text
from coinwhisperer.storage.base import Store
from coinwhisperer.trading.service import TradeService

logger = logging.getLogger(__name__)

DEFAULT_SENTIMENT_WINDOW = 100


@dataclass
class AnalysisReport:
    """Outcome of one analysis batch."""

    fetched: int = 0
    stored: int = 0
    skipped: int = 0
    invalid: int = 0
    trades: int = 0
    failures: int = 0
    overall_sentiment: float | None = None
    overall_sentiment_label: SentimentLabel | None = None

    def to_dict(self) -> dict:
        data = asdict(self)
        if self.overall_sentiment_label is not None:
            data["overall_sentiment_label"] = self.overall_sentiment_label.value
        return data


async def update_overall_sentiment(
    store: Store,
    window: int = DEFAULT_SENTIMENT_WINDOW,
) -> Stats | None:
    """
    Average the most recent posts' scores into the stats singleton.

    Args:
        store: Store to read posts from and write stats to
        window: Number of most recent posts to average

    Returns:
        Updated stats, or None when there are no posts yet
    """
    posts = await store.list_posts(limit=window)
    if not posts:
        return None

    average = sum(p.sentiment_score for p in posts) / len(posts)
    return await store.update_stats({"overall_sentiment": average})


class AnalysisService:
    """
    Runs the analysis step on demand.

    One run fetches a batch from the post feed, stores every new post with
    its sentiment, lets the trade service act on posts about tracked coins
    when auto-trading is on, then refreshes the overall sentiment. A failing
    post is logged and counted; the rest of the batch still runs and
    everything already stored is kept.
    """

    def __init__(
        self,
        store: Store,
        feed: PostFeed,
        trades: TradeService | None = None,
        broadcaster: Broadcaster | None = None,
        prices: PriceFeed | None = None,
        sentiment_window: int = DEFAULT_SENTIMENT_WINDOW,
    ):
        """
        Args:
            store: Persistence store
            feed: Source of social posts
            trades: Trade service (one sharing ``broadcaster`` is built if omitted)
            broadcaster: Channel for new post events
            prices: Optional price feed applied before trading
            sentiment_window: Posts averaged into the overall sentiment
        """
        self.store = store
        self.feed = feed
        self.broadcaster = broadcaster or Broadcaster()
        self.trades = trades or TradeService(store, self.broadcaster)
        self.prices = prices
        self.sentiment_window = sentiment_window

    async def run_once(self, timeout: float | None = None) -> AnalysisReport:
        """
        Run one analysis batch.

        Args:
            timeout: Seconds before the run is abandoned (None waits forever)

        Returns:
            AnalysisReport with per-batch counters

        Raises:
            CoinWhispererError: If the run times out
        """
        try:
            return await asyncio.wait_for(self._run(), timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"Analysis run timed out after {timeout}s")
            raise CoinWhispererError(f"Analysis timed out after {timeout}s") from e

    async def _run(self) -> AnalysisReport:
        report = AnalysisReport()

        if self.prices is not None:
            await refresh_prices(self.store, self.prices)

        batch = await self.feed.fetch()
        report.fetched = len(batch)

        for item in batch:
            if not item.is_complete():
                logger.warning(f"Skipping invalid post: {item}")
                report.invalid += 1
                continue
            try:
                await self._process(item, report)
            except ConflictError:
                report.skipped += 1
            except CoinWhispererError as e:
                logger.error(f"Failed to process post {item.external_id}: {e}")
                report.failures += 1
            except Exception as e:
                logger.error(
                    f"Unexpected error processing post {item.external_id}: {e}",
                    exc_info=True,
                )
                report.failures += 1

        # Nothing new stored means nothing to re-average
        if report.stored:
            stats = await update_overall_sentiment(self.store, self.sentiment_window)
            if stats is not None:
                report.overall_sentiment = stats.overall_sentiment
                report.overall_sentiment_label = stats.overall_sentiment_label

        logger.info(
            f"Analysis: fetched={report.fetched} stored={report.stored} "
            f"skipped={report.skipped} invalid={report.invalid} "
            f"trades={report.trades} failures={report.failures}"
        )
        return report

    async def _process(self, item: FeedPost, report: AnalysisReport) -> None:
        if await self.store.get_post_by_external_id(item.external_id):
            report.skipped += 1
            return

        sentiment = score_text(item.content)
        post = await self.store.create_post(
            Post(
                external_id=item.external_id,
                content=item.content,
                author_name=item.author_name,
                author_username=item.author_username,
                author_profile_image=item.author_profile_image,
                coin_symbol=item.coin_symbol,
                sentiment_score=sentiment.score,
                sentiment_label=sentiment.label,
                created_at=item.created_at,
                likes=item.likes,
                retweets=item.retweets,
            )
        )
        report.stored += 1
        self.broadcaster.publish({"type": NEW_TWEET, "tweet": post.to_dict()})

        config = await self.store.get_config()
        if not config.auto_trading:
            return

        coin = await self.store.get_coin_by_symbol(post.coin_symbol)
        if coin is None or not coin.is_tracked:
            return

        trade = await self.trades.execute_decision(coin, post.sentiment_score, config)
        if trade is not None:
            report.trades += 1
