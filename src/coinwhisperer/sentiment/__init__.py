"""Sentiment scoring."""

from coinwhisperer.sentiment.scorer import (
    SentimentResult,
    label_for_score,
    score_text,
)

__all__ = [
    "SentimentResult",
    "label_for_score",
    "score_text",
]
