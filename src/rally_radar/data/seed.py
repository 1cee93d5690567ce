"""Built-in historical rally records used to teach the forecaster what early signals look like."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List

from loguru import logger

from rally_radar.data.prediction_store import PredictionRepository
from rally_radar.forecasting.base import HistoricalRally


def _date(value: str) -> datetime:
    return datetime.strptime(value, "%Y-%m-%d").replace(tzinfo=timezone.utc)


HISTORICAL_RALLIES: List[HistoricalRally] = [
    HistoricalRally(
        sector="ai",
        name="AI Stock Rally 2023-2025 (ChatGPT Era)",
        start_date=_date("2022-11-30"),
        peak_date=_date("2024-06-30"),
        description=(
            "Rally in AI stocks triggered by the ChatGPT release and the following build-out of AI "
            "infrastructure, led by NVIDIA, Microsoft and Google."
        ),
        catalysts=[
            "ChatGPT release (Nov 30, 2022)",
            "Microsoft $10B OpenAI investment (Jan 2023)",
            "Google Bard announcement (Feb 2023)",
            "NVIDIA H100 chip demand surge (Q1 2023)",
            "AI mentioned in 80%+ of earnings calls (Q1 2023)",
        ],
        key_stocks=["NVDA", "MSFT", "GOOGL", "META", "AMZN", "SMCI"],
        early_signals=[
            "Surge in AI product news coverage",
            "Hyperscaler capex guidance raised",
            "Data-center GPU backlog reports",
        ],
        performance={"avgGain": "64%", "nvidiaGain": "979%", "timeframe": "Nov 2022 - Nov 2025"},
    ),
    HistoricalRally(
        sector="metals",
        name="Gold & Silver Rally 2024-2025",
        start_date=_date("2023-10-01"),
        description=(
            "Precious metals rally driven by central bank buying, geopolitical instability, inflation "
            "concerns and a weakening dollar."
        ),
        catalysts=[
            "Central bank gold accumulation (2022-2023)",
            "China record gold buying",
            "Ukraine war and geopolitical tensions",
            "Inflation and currency devaluation fears",
            "Federal Reserve rate cut expectations",
            "Weakening U.S. dollar",
        ],
        key_stocks=["GLD", "SLV", "NEM", "GOLD", "AEM", "WPM"],
        early_signals=[
            "Central bank purchase headlines",
            "Rate cut expectations building",
            "Dollar index breaking lower",
        ],
        performance={"avgGain": "40%", "timeframe": "Oct 2023 - 2025"},
    ),
    HistoricalRally(
        sector="quantum",
        name="Quantum Computing Rally 2024-2025",
        start_date=_date("2024-11-01"),
        peak_date=_date("2025-01-06"),
        description=(
            "Speculative rally in quantum computing names after error-correction breakthroughs and "
            "large-cap announcements."
        ),
        catalysts=[
            "Google Willow chip error-correction milestone (Dec 2024)",
            "Government quantum funding announcements",
            "Retail inflows into small-cap quantum names",
        ],
        key_stocks=["IONQ", "RGTI", "QBTS", "QUBT"],
        early_signals=[
            "Breakthrough research announcements",
            "Rising retail options volume",
            "Multiple small caps in sector moving together",
        ],
        performance={"avgGain": "300%+", "timeframe": "Nov 2024 - Jan 2025"},
    ),
]


def seed_historical_rallies(store: PredictionRepository) -> int:
    """Insert the built-in rallies when the table is empty; returns the number inserted."""

    if store.count_historical_rallies():
        logger.info("Historical rallies already seeded")
        return 0
    for rally in HISTORICAL_RALLIES:
        store.insert_historical_rally(rally)
    logger.info("Seeded historical rallies", count=len(HISTORICAL_RALLIES))
    return len(HISTORICAL_RALLIES)
