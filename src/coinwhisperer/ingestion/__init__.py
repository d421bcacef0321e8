"""Ingestion module - post feeds and the analysis step."""

from coinwhisperer.ingestion.analysis import (
    AnalysisReport,
    AnalysisService,
    update_overall_sentiment,
)
from coinwhisperer.ingestion.feed import DEMO_POSTS, FeedPost, MockPostFeed, PostFeed

__all__ = [
    "AnalysisReport",
    "AnalysisService",
    "DEMO_POSTS",
    "FeedPost",
    "MockPostFeed",
    "PostFeed",
    "update_overall_sentiment",
]
