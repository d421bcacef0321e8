"""Social post feed protocol and the demo feed."""

import asyncio
import logging
import random
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Callable, Protocol, runtime_checkable

from coinwhisperer.core.types import utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeedPost:
    """An unscored post as delivered by a feed. Fields may be missing."""

    external_id: str | None
    content: str | None
    author_name: str | None
    coin_symbol: str | None
    created_at: datetime | None
    author_username: str = ""
    author_profile_image: str | None = None
    likes: int = 0
    retweets: int = 0

    def is_complete(self) -> bool:
        """True when every field needed to store the post is present."""
        return bool(
            self.external_id
            and self.content
            and self.author_name
            and self.coin_symbol
            and self.created_at
        )


@runtime_checkable
class PostFeed(Protocol):
    """
    Post feed protocol - implement this to plug in a real social source.

    ``fetch`` returns a small batch of recent posts. It may raise; the
    analysis step reports the failure without storing anything.
    """

    async def fetch(self) -> list[FeedPost]:
        ...


def _avatar(photo: str) -> str:
    return (
        f"https://images.unsplash.com/photo-{photo}"
        "?auto=format&fit=crop&w=100&h=100"
    )


DEMO_POSTS: list[FeedPost] = [
    FeedPost(
        external_id="1234567890",
        content=(
            "$DOGE is showing huge potential right now! The community is "
            "stronger than ever and with new developments coming, we could see "
            "3x gains soon! 🚀🌙 #Dogecoin #tothemoon"
        ),
        author_name="CryptoWhale",
        author_username="whale_crypto",
        author_profile_image=_avatar("1599566150163-29194dcaad36"),
        coin_symbol="DOGE",
        created_at=None,
        likes=234,
        retweets=56,
    ),
    FeedPost(
        external_id="2345678901",
        content=(
            "$SHIB looks like it's about to collapse again. All hype, no "
            "substance. Classic pump and dump scheme. I'd stay away if I were "
            "you. #Shibatoken #cryptowarning"
        ),
        author_name="CryptoSceptic",
        author_username="sceptic_crypto",
        author_profile_image=_avatar("1603415526960-f7e0328c63b1"),
        coin_symbol="SHIB",
        created_at=None,
        likes=43,
        retweets=12,
    ),
    FeedPost(
        external_id="3456789012",
        content=(
            "$PEPE trading volume is up 24% in the last 24 hours. The price "
            "remains stable despite market fluctuations. Interesting to watch "
            "how this develops. #PEPE #memecoin"
        ),
        author_name="CryptoAnalyst",
        author_username="analyst_crypto",
        author_profile_image=_avatar("1607746882042-944635dfe10e"),
        coin_symbol="PEPE",
        created_at=None,
        likes=87,
        retweets=21,
    ),
    FeedPost(
        external_id="4567890123",
        content=(
            "Just bought more $DOGE at the dip! This is the future of digital "
            "payments, mark my words! So many new developments coming. "
            "#Dogecoin #CryptoGems 💎🙌"
        ),
        author_name="DogeEnthusiast",
        author_username="doge_hodler",
        author_profile_image=_avatar("1570295999919-56ceb5ecca61"),
        coin_symbol="DOGE",
        created_at=None,
        likes=129,
        retweets=45,
    ),
    FeedPost(
        external_id="5678901234",
        content=(
            "$SHIB just announced a new partnership that could drive real "
            "utility. This might be a game changer for the token if implemented "
            "properly. #SHIB #ShibaArmy"
        ),
        author_name="TokenNews",
        author_username="token_news",
        author_profile_image=_avatar("1535713875002-d1d0cf377fde"),
        coin_symbol="SHIB",
        created_at=None,
        likes=312,
        retweets=98,
    ),
    FeedPost(
        external_id="6789012345",
        content=(
            "I'm selling all my $PEPE before it crashes further. The market "
            "seems to be losing interest in meme tokens. Time to focus on real "
            "projects with utility. #crypto"
        ),
        author_name="RealCryptoTrader",
        author_username="real_crypto",
        author_profile_image=_avatar("1527980965255-d3b416303d12"),
        coin_symbol="PEPE",
        created_at=None,
        likes=56,
        retweets=14,
    ),
]


class MockPostFeed:
    """
    Demo feed that replays a handful of canned posts.

    Every fetch picks between ``min_batch`` and ``max_batch`` posts at random,
    gives each a fresh external id and stamps it with the current time.
    """

    def __init__(
        self,
        posts: list[FeedPost] | None = None,
        min_batch: int = 1,
        max_batch: int = 3,
        latency_seconds: float = 1.0,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        """
        Args:
            posts: Post templates (defaults to DEMO_POSTS)
            min_batch: Smallest batch size
            max_batch: Largest batch size
            latency_seconds: Simulated network delay per fetch
            rng: Random source, seed it for reproducible batches
            clock: Timestamp source for fetched posts
        """
        self.posts = list(DEMO_POSTS if posts is None else posts)
        self.min_batch = min_batch
        self.max_batch = max_batch
        self.latency_seconds = latency_seconds
        self.rng = rng or random.Random()
        self.clock = clock

    async def fetch(self) -> list[FeedPost]:
        if self.latency_seconds:
            await asyncio.sleep(self.latency_seconds)

        count = min(self.rng.randint(self.min_batch, self.max_batch), len(self.posts))
        batch = [
            replace(
                template,
                external_id=f"{template.external_id}-{self.rng.getrandbits(32):08x}",
                created_at=self.clock(),
            )
            for template in self.rng.sample(self.posts, count)
        ]
        logger.debug(f"Mock feed returned {len(batch)} posts")
        return batch
