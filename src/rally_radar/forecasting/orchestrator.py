"""Forecast orchestration: condense news, ask the reasoning service, validate and correct."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence

from loguru import logger

from rally_radar.clients.base import ReasoningService
from rally_radar.clients.reasoning_client import extract_json
from rally_radar.errors import FailureKind, RallyRadarError
from rally_radar.forecasting.base import (
    DEFAULT_TIMEFRAME,
    TIMEFRAMES,
    HistoricalPattern,
    NewsSignal,
    RallyPrediction,
    parse_json_list,
)
from rally_radar.forecasting.prompts import (
    DEFAULT_PRIORITY_SECTORS,
    PREDICTIONS_SCHEMA,
    build_forecast_system_prompt,
    build_forecast_user_prompt,
)
from rally_radar.signals.early_signals import SectorSummary, summarize_sector
from rally_radar.utils.numbers import round_half_up

BEARISH_KEYWORDS = (
    "bearish", "downside", "decline", "downgrade", "weakness", "weak",
    "negative", "shutdown", "risk-off", "puts", "short", "shorting",
    "falling", "drop", "crash", "sell", "exits", "failure", "worst",
    "headwind", "threat", "investigation", "warning", "cut", "breakdown",
)

BULLISH_KEYWORDS = (
    "bullish", "upside", "rally", "upgrade", "strength", "strong",
    "positive", "breakthrough", "buying", "breakout", "surge", "gain",
    "approval", "rising", "growth", "opportunity", "momentum",
)

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


@dataclass
class ForecastConfig:
    news_limit: int = 100
    min_analyzed_articles: int = 10
    max_prompt_articles: int = 40
    summary_chars: int = 200
    min_confidence: int = 40
    signal_window_days: int = 7
    priority_sectors: Sequence[str] = DEFAULT_PRIORITY_SECTORS


@dataclass
class ForecastResult:
    predictions: List[RallyPrediction] = field(default_factory=list)
    failure: Optional[FailureKind] = None
    rejected: int = 0


def keyword_counts(text: str) -> tuple[int, int]:
    """Return (bearish, bullish) counts of distinct keywords present in ``text``."""

    lowered = text.lower()
    bearish = sum(1 for keyword in BEARISH_KEYWORDS if keyword in lowered)
    bullish = sum(1 for keyword in BULLISH_KEYWORDS if keyword in lowered)
    return bearish, bullish


def correct_direction(prediction: RallyPrediction) -> RallyPrediction:
    """Relabel call/put when the prediction's own wording clearly points the other way."""

    combined = f"{prediction.reasoning} {' '.join(prediction.early_signals)}"
    bearish, bullish = keyword_counts(combined)
    if bearish > bullish and prediction.opportunity_type == "call":
        logger.info(
            "Auto-correcting CALL to PUT",
            sector=prediction.sector,
            bearish=bearish,
            bullish=bullish,
        )
        prediction.opportunity_type = "put"
        prediction.direction = "down"
    elif bullish > bearish and prediction.opportunity_type == "put":
        logger.info(
            "Auto-correcting PUT to CALL",
            sector=prediction.sector,
            bearish=bearish,
            bullish=bullish,
        )
        prediction.opportunity_type = "call"
        prediction.direction = "up"
    return prediction


def _coerce_confidence(value: Any) -> Optional[float]:
    try:
        confidence = float(value)
    except (TypeError, ValueError):
        return None
    # NaN and infinities slip past the threshold comparison.
    return confidence if math.isfinite(confidence) else None


def _normalize_timeframe(value: Any) -> str:
    text = str(value or "").strip()
    if not text:
        return DEFAULT_TIMEFRAME
    for timeframe in TIMEFRAMES:
        if timeframe in text.lower():
            return timeframe
    return text


def validate_candidate(payload: Any, min_confidence: int = 40) -> RallyPrediction:
    """Build a RallyPrediction or raise VALIDATION_REJECTED."""

    if not isinstance(payload, dict):
        raise RallyRadarError("Candidate is not an object", kind=FailureKind.VALIDATION_REJECTED)
    sector = str(payload.get("sector") or "").strip()
    opportunity_type = str(payload.get("opportunityType") or "").strip().lower()
    confidence = _coerce_confidence(payload.get("confidence"))
    stocks = payload.get("recommendedStocks")
    if isinstance(stocks, str) and not stocks.strip().startswith("["):
        stocks = stocks.split(",")
    tickers = list(dict.fromkeys(ticker.upper() for ticker in parse_json_list(stocks)))

    if not sector:
        raise RallyRadarError("Missing sector", kind=FailureKind.VALIDATION_REJECTED)
    if opportunity_type not in {"call", "put"}:
        raise RallyRadarError("Missing opportunity type", kind=FailureKind.VALIDATION_REJECTED)
    if confidence is None or confidence < min_confidence:
        raise RallyRadarError("Confidence below threshold", kind=FailureKind.VALIDATION_REJECTED)
    if not tickers:
        raise RallyRadarError("No recommended stocks", kind=FailureKind.VALIDATION_REJECTED)

    signals = payload.get("earlySignals")
    if isinstance(signals, str) and not signals.strip().startswith("["):
        signals = [signals]
    return RallyPrediction(
        sector=sector,
        opportunity_type=opportunity_type,
        direction="up" if opportunity_type == "call" else "down",
        confidence=max(0, min(100, round_half_up(confidence))),
        timeframe=_normalize_timeframe(payload.get("timeframe")),
        recommended_stocks=tickers,
        early_signals=parse_json_list(signals),
        reasoning=str(payload.get("reasoning") or ""),
        entry_timing=str(payload.get("entryTiming") or ""),
        exit_strategy=str(payload.get("exitStrategy") or ""),
    )


class RallyForecaster:
    """Turns analyzed news and historical patterns into validated rally predictions."""

    def __init__(self, reasoning: ReasoningService, config: Optional[ForecastConfig] = None) -> None:
        self.reasoning = reasoning
        self.config = config or ForecastConfig()

    def _most_recent(self, news: Iterable[NewsSignal], limit: int) -> List[NewsSignal]:
        ordered = sorted(news, key=lambda item: item.published_at or _OLDEST, reverse=True)
        return ordered[:limit]

    def _condense(self, news: Sequence[NewsSignal]) -> List[Dict[str, Any]]:
        return [
            {
                "title": item.title,
                "summary": item.effective_summary[: self.config.summary_chars],
                "sentiment": item.sentiment,
                "sectors": list(item.sectors),
                "stocks": list(item.mentioned_stocks),
            }
            for item in news[: self.config.max_prompt_articles]
        ]

    def _sector_summaries(
        self,
        news: Sequence[NewsSignal],
        patterns: Sequence[HistoricalPattern],
        institutional_tickers: Iterable[str],
    ) -> Dict[str, SectorSummary]:
        institutional = list(institutional_tickers)
        summaries: Dict[str, SectorSummary] = {}
        for item in news:
            for sector in item.sectors:
                if sector not in summaries:
                    summaries[sector] = summarize_sector(
                        sector,
                        news,
                        patterns=patterns,
                        institutional_tickers=institutional,
                        window_days=self.config.signal_window_days,
                    )
        return summaries

    def _merge_rule_signals(self, prediction: RallyPrediction, summaries: Dict[str, SectorSummary]) -> None:
        summary = summaries.get(prediction.sector)
        if summary is None:
            lowered = prediction.sector.lower()
            summary = next((s for name, s in summaries.items() if name.lower() == lowered), None)
        if summary is None or not summary.signals:
            return
        prediction.early_signals = list(dict.fromkeys([*summary.signals, *prediction.early_signals]))

    def forecast(
        self,
        recent_news: Iterable[NewsSignal],
        patterns: Sequence[HistoricalPattern],
        *,
        institutional_tickers: Iterable[str] = (),
    ) -> ForecastResult:
        candidates = self._most_recent(recent_news, self.config.news_limit)
        analyzed = [item for item in candidates if item.is_analyzed]
        logger.info("Forecast starting", articles=len(candidates), analyzed=len(analyzed))
        if len(analyzed) < self.config.min_analyzed_articles:
            logger.info("Not enough analyzed articles for predictions", analyzed=len(analyzed))
            return ForecastResult(failure=FailureKind.INSUFFICIENT_DATA)

        news_data = self._condense(analyzed)
        summaries = self._sector_summaries(analyzed, patterns, institutional_tickers)
        try:
            raw = self.reasoning.complete(
                build_forecast_system_prompt(patterns, self.config.priority_sectors),
                build_forecast_user_prompt(news_data, summaries),
                PREDICTIONS_SCHEMA,
            )
            payload = extract_json(raw)
        except Exception as exc:
            logger.warning("Reasoning service failed; returning no predictions", error=str(exc))
            return ForecastResult(failure=FailureKind.UPSTREAM_FAILURE)

        items = payload.get("predictions") if isinstance(payload, dict) else None
        if not isinstance(items, list):
            logger.warning("Reasoning service returned no predictions array")
            return ForecastResult(failure=FailureKind.UPSTREAM_FAILURE)

        predictions: List[RallyPrediction] = []
        rejected = 0
        for item in items:
            try:
                prediction = validate_candidate(item, self.config.min_confidence)
            except RallyRadarError:
                rejected += 1
                continue
            correct_direction(prediction)
            self._merge_rule_signals(prediction, summaries)
            predictions.append(prediction)

        logger.info("Forecast complete", predictions=len(predictions), rejected=rejected)
        return ForecastResult(predictions=predictions, rejected=rejected)

    def predict_upcoming_rallies(
        self,
        recent_news: Iterable[NewsSignal],
        patterns: Sequence[HistoricalPattern],
    ) -> List[RallyPrediction]:
        return self.forecast(recent_news, patterns).predictions
