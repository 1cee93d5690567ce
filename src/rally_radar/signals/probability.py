"""Additive rally-likelihood scoring table."""

from __future__ import annotations

MOMENTUM_POINTS = {"increasing": 20, "stable": 10, "decreasing": 0}


def calculate_rally_probability(
    news_count: int,
    bullish_ratio: float,
    momentum_trend: str,
    institutional_activity: bool,
    historical_match: bool,
) -> int:
    """Score 0-100 from news volume, sentiment, momentum and corroborating flags.

    Breakpoints are fixed so scores stay comparable with predictions already on file.
    """

    probability = 0

    if news_count >= 10:
        probability += 30
    elif news_count >= 5:
        probability += 20
    elif news_count >= 3:
        probability += 10

    if bullish_ratio >= 0.8:
        probability += 25
    elif bullish_ratio >= 0.6:
        probability += 15
    elif bullish_ratio >= 0.5:
        probability += 5

    probability += MOMENTUM_POINTS.get(momentum_trend, 0)

    if institutional_activity:
        probability += 15
    if historical_match:
        probability += 10

    return min(100, probability)
