"""Keyword-based sentiment scoring.

A deliberately naive scorer: the score is the share of positive keywords
among all keywords present in the text. Each keyword counts once no matter
how often it appears (membership, not frequency). Word keywords must start a
word, so "up" is found in "upside" but not in "dump"; emoji match anywhere.
This is stricter than plain substring matching: a keyword glued to the end
of another word is missed, so "#tothemoon" does not count "moon".
"""

import re
from dataclasses import dataclass

from coinwhisperer.core.types import SentimentLabel

POSITIVE_THRESHOLD = 0.6
NEGATIVE_THRESHOLD = 0.4
NEUTRAL_SCORE = 0.5

POSITIVE_KEYWORDS: tuple[str, ...] = (
    "bullish", "moon", "gains", "profit", "up", "rising", "soar", "skyrocket",
    "great", "good", "excellent", "amazing", "awesome", "fantastic", "wonderful",
    "incredible", "potential", "opportunity", "strong", "growth", "buy", "hodl",
    "hold", "diamond hands", "green", "rally", "support", "success", "winning",
    "breakthrough", "surge", "rocket", "🚀", "💎", "👍", "💪", "🔥", "💰",
)

# "bearish" is listed once; duplicates would double-count under membership scoring.
NEGATIVE_KEYWORDS: tuple[str, ...] = (
    "bearish", "crash", "dump", "fall", "drop", "plummet", "collapse", "tank",
    "bad", "terrible", "horrible", "awful", "disappointing", "weak", "sell",
    "selling", "sold", "scam", "fraud", "fake", "ponzi", "bubble", "fear",
    "worried", "worry", "concern", "red", "loss", "losing", "fail", "failure",
    "down", "bear", "death", "broke", "worthless", "👎", "😱", "💩",
)


@dataclass(frozen=True)
class SentimentResult:
    """Score in [0, 1] and its label."""

    score: float
    label: SentimentLabel


def label_for_score(score: float) -> SentimentLabel:
    """Map a [0, 1] score to a label: >= 0.6 positive, <= 0.4 negative."""
    if score >= POSITIVE_THRESHOLD:
        return SentimentLabel.POSITIVE
    if score <= NEGATIVE_THRESHOLD:
        return SentimentLabel.NEGATIVE
    return SentimentLabel.NEUTRAL


def _matcher(keyword: str) -> re.Pattern[str]:
    if keyword[0].isalnum():
        return re.compile(r"(?<!\w)" + re.escape(keyword))
    return re.compile(re.escape(keyword))


_POSITIVE_PATTERNS = tuple(_matcher(k) for k in POSITIVE_KEYWORDS)
_NEGATIVE_PATTERNS = tuple(_matcher(k) for k in NEGATIVE_KEYWORDS)


def count_keywords(text: str, patterns: tuple[re.Pattern[str], ...]) -> int:
    """Count distinct keywords present in ``text`` (case-insensitive)."""
    lowered = text.lower()
    return sum(1 for pattern in patterns if pattern.search(lowered))


def score_text(text: str) -> SentimentResult:
    """
    Score a piece of text.

    Args:
        text: Post body

    Returns:
        SentimentResult; (0.5, Neutral) when no keyword matches
    """
    positive = count_keywords(text, _POSITIVE_PATTERNS)
    negative = count_keywords(text, _NEGATIVE_PATTERNS)
    total = positive + negative

    if total == 0:
        return SentimentResult(NEUTRAL_SCORE, SentimentLabel.NEUTRAL)

    score = positive / total
    return SentimentResult(score, label_for_score(score))
