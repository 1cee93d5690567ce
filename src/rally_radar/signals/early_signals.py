"""Rule-based early warning signals and historical pattern extraction."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Sequence

from rally_radar.forecasting.base import (
    HistoricalPattern,
    HistoricalRally,
    NewsSignal,
    parse_json_list,
    parse_json_object,
)
from rally_radar.signals.probability import calculate_rally_probability
from rally_radar.utils.numbers import round_half_up

DEFAULT_TIME_TO_RALLY = 21
RALLY_STRENGTHS = {"strong", "moderate"}


@dataclass
class SectorSummary:
    """Aggregate view of one sector's recent coverage."""

    sector: str
    news_count: int
    bullish_ratio: float
    momentum_trend: str
    signals: List[str] = field(default_factory=list)
    rally_probability: int = 0


def extract_historical_patterns(historical_rallies: Iterable[HistoricalRally]) -> List[HistoricalPattern]:
    """Turn historical rally records into patterns the forecaster can learn from."""

    patterns: List[HistoricalPattern] = []
    for rally in historical_rallies:
        if not rally.is_historical:
            continue
        performance = parse_json_object(rally.performance)
        avg_gain = performance.get("avgGain") or performance.get("avg_gain") or "unknown"
        patterns.append(
            HistoricalPattern(
                sector=rally.sector or "",
                early_signals=parse_json_list(rally.early_signals),
                time_to_rally=DEFAULT_TIME_TO_RALLY,
                catalysts=parse_json_list(rally.catalysts),
                avg_gain=str(avg_gain),
            )
        )
    return patterns


def _sector_news(sector: str, news: Iterable[NewsSignal]) -> List[NewsSignal]:
    return [item for item in news if sector in item.sectors]


def _bullish_ratio(items: Sequence[NewsSignal]) -> float:
    if not items:
        return 0.0
    return sum(1 for item in items if item.sentiment == "bullish") / len(items)


def detect_early_signals(sector: str, recent_news: Iterable[NewsSignal], window_days: int = 7) -> List[str]:
    """Return human-readable signals for ``sector``; each threshold fires independently."""

    signals: List[str] = []
    sector_news = _sector_news(sector, recent_news)

    if len(sector_news) >= 3:
        signals.append(f"{len(sector_news)} news articles in {window_days} days")

    if sector_news:
        ratio = _bullish_ratio(sector_news)
        if ratio >= 0.6:
            signals.append(f"{round_half_up(ratio * 100)}% bullish sentiment")

    rally_count = sum(1 for item in sector_news if item.rally_indicator in RALLY_STRENGTHS)
    if rally_count >= 2:
        signals.append(f"{rally_count} articles showing rally indicators")

    tickers = {ticker for item in sector_news for ticker in item.mentioned_stocks}
    if len(tickers) >= 3:
        signals.append(f"{len(tickers)} different stocks gaining attention")

    return signals


def build_sector_signal_map(news: Sequence[NewsSignal], window_days: int = 7) -> Dict[str, List[str]]:
    """Signals for every sector referenced by ``news``, in order of first appearance."""

    signal_map: Dict[str, List[str]] = {}
    for item in news:
        for sector in item.sectors:
            if sector not in signal_map:
                signal_map[sector] = detect_early_signals(sector, news, window_days)
    return signal_map


def momentum_trend(news: Sequence[NewsSignal], window_days: int = 7, now: Optional[datetime] = None) -> str:
    """Compare coverage in the newer half of the window against the older half."""

    stamped = [
        ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)
        for ts in (item.published_at for item in news)
        if ts is not None
    ]
    if not stamped:
        return "stable"
    reference = now or max(stamped)
    if reference.tzinfo is None:
        reference = reference.replace(tzinfo=timezone.utc)
    half = timedelta(days=window_days / 2)
    recent = sum(1 for ts in stamped if reference - half <= ts <= reference)
    older = sum(1 for ts in stamped if reference - 2 * half <= ts < reference - half)
    if recent > older:
        return "increasing"
    if recent < older:
        return "decreasing"
    return "stable"


def summarize_sector(
    sector: str,
    news: Sequence[NewsSignal],
    *,
    patterns: Sequence[HistoricalPattern] = (),
    institutional_tickers: Iterable[str] = (),
    window_days: int = 7,
    now: Optional[datetime] = None,
) -> SectorSummary:
    sector_news = _sector_news(sector, news)
    ratio = _bullish_ratio(sector_news)
    trend = momentum_trend(sector_news, window_days, now)
    institutional = {ticker.upper() for ticker in institutional_tickers}
    mentioned = {ticker for item in sector_news for ticker in item.mentioned_stocks}
    historical_match = any(pattern.sector.lower() == sector.lower() for pattern in patterns)
    return SectorSummary(
        sector=sector,
        news_count=len(sector_news),
        bullish_ratio=ratio,
        momentum_trend=trend,
        signals=detect_early_signals(sector, news, window_days),
        rally_probability=calculate_rally_probability(
            len(sector_news),
            ratio,
            trend,
            bool(institutional & mentioned),
            historical_match,
        ),
    )
