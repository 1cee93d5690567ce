"""Rule-based early signal tests."""

from datetime import datetime, timedelta, timezone

from rally_radar.forecasting.base import HistoricalPattern, HistoricalRally, NewsSignal
from rally_radar.signals import (
    build_sector_signal_map,
    detect_early_signals,
    extract_historical_patterns,
    momentum_trend,
    summarize_sector,
)

NOW = datetime(2025, 3, 10, 12, tzinfo=timezone.utc)


def make_news(sector="AI", sentiment="bullish", stocks=("NVDA",), rally=None, hours_ago=1):
    return NewsSignal(
        title=f"{sector} headline",
        summary="Summary text",
        sentiment=sentiment,
        sectors=[sector],
        mentioned_stocks=list(stocks),
        rally_indicator=rally,
        published_at=NOW - timedelta(hours=hours_ago),
    )


def test_detect_early_signals_emits_all_four_signals() -> None:
    news = [
        make_news(stocks=("NVDA",), rally="strong"),
        make_news(stocks=("AMD",), rally="moderate"),
        make_news(stocks=("SMCI",)),
        make_news(stocks=("NVDA",), sentiment="neutral"),
        make_news(sector="Energy", stocks=("XOM",)),
    ]

    signals = detect_early_signals("AI", news)

    assert signals == [
        "4 news articles in 7 days",
        "75% bullish sentiment",
        "2 articles showing rally indicators",
        "3 different stocks gaining attention",
    ]


def test_detect_early_signals_thresholds_are_independent() -> None:
    news = [make_news(sentiment="bearish", stocks=("NVDA",)) for _ in range(3)]

    assert detect_early_signals("AI", news) == ["3 news articles in 7 days"]
    assert detect_early_signals("Biotech", news) == []


def test_bullish_percentage_rounds_half_up() -> None:
    news = [make_news(sentiment="bullish") for _ in range(5)] + [
        make_news(sentiment="neutral") for _ in range(3)
    ]

    signals = detect_early_signals("AI", news)

    # 5 / 8 = 62.5%
    assert "63% bullish sentiment" in signals


def test_build_sector_signal_map_keys_every_sector() -> None:
    news = [make_news(sector="AI"), make_news(sector="Quantum Computing")]

    signal_map = build_sector_signal_map(news)

    assert list(signal_map) == ["AI", "Quantum Computing"]


def test_momentum_trend_compares_window_halves() -> None:
    recent_heavy = [make_news(hours_ago=h) for h in (1, 2, 3, 100)]
    older_heavy = [make_news(hours_ago=h) for h in (1, 100, 110, 120)]

    assert momentum_trend(recent_heavy, now=NOW) == "increasing"
    assert momentum_trend(older_heavy, now=NOW) == "decreasing"
    assert momentum_trend([make_news(hours_ago=1), make_news(hours_ago=100)], now=NOW) == "stable"
    assert momentum_trend([]) == "stable"


def test_summarize_sector_scores_probability() -> None:
    news = [make_news(stocks=(ticker,)) for ticker in ("NVDA", "AMD", "SMCI", "MSFT", "GOOGL")]
    patterns = [HistoricalPattern(sector="ai")]

    summary = summarize_sector("AI", news, patterns=patterns, institutional_tickers=["nvda"], now=NOW)

    assert summary.news_count == 5
    assert summary.bullish_ratio == 1.0
    assert summary.momentum_trend == "increasing"
    # 20 volume + 25 sentiment + 20 momentum + 15 institutional + 10 historical
    assert summary.rally_probability == 90


def test_extract_historical_patterns_reads_performance() -> None:
    rallies = [
        HistoricalRally(
            sector="metals",
            early_signals='["Central bank buying"]',
            catalysts=["Rate cuts"],
            performance='{"avgGain": "40%"}',
        ),
        HistoricalRally(sector="ai", performance={}, is_historical=False),
    ]

    patterns = extract_historical_patterns(rallies)

    assert len(patterns) == 1
    assert patterns[0].sector == "metals"
    assert patterns[0].early_signals == ["Central bank buying"]
    assert patterns[0].time_to_rally == 21
    assert patterns[0].avg_gain == "40%"
