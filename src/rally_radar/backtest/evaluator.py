"""Backtest evaluator: re-price pending predictions once their window elapses and label the outcome."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

import numpy as np
import pandas as pd
from loguru import logger

from rally_radar.clients.base import QuoteProvider
from rally_radar.data.prediction_store import PredictionRepository
from rally_radar.errors import FailureKind
from rally_radar.forecasting.base import PredictionRecord

DURATION_PATTERN = re.compile(r"(\d+)\s*(day|week|month)s?", re.IGNORECASE)

SUCCESS = "success"
FAILURE = "failure"
NEUTRAL = "neutral"


@dataclass
class EvaluatorConfig:
    # Empirical threshold; tunable policy rather than an invariant.
    success_threshold: float = 0.02


@dataclass
class BacktestSummary:
    evaluated: int = 0
    skipped: int = 0
    errors: int = 0
    outcomes: Dict[int, str] = field(default_factory=dict)
    failures: List[Tuple[int, FailureKind]] = field(default_factory=list)


def evaluation_date(start_date: datetime, timeframe: str) -> Optional[datetime]:
    """Add the first "<N> day|week|month(s)" found in ``timeframe`` to ``start_date``."""

    match = DURATION_PATTERN.search(timeframe or "")
    if not match:
        return None
    value = int(match.group(1))
    unit = match.group(2).lower()
    if unit == "day":
        offset = pd.DateOffset(days=value)
    elif unit == "week":
        offset = pd.DateOffset(days=value * 7)
    else:
        offset = pd.DateOffset(months=value)
    return (pd.Timestamp(start_date) + offset).to_pydatetime()


def classify_outcome(avg_return: float, is_up: bool, threshold: float = 0.02) -> str:
    if is_up and avg_return > threshold:
        return SUCCESS
    if not is_up and avg_return < -threshold:
        return SUCCESS
    if abs(avg_return) <= threshold:
        return NEUTRAL
    return FAILURE


def format_performance(avg_return: float) -> str:
    return f"{avg_return * 100:.2f}%"


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare against stored start dates."""

    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


class BacktestEvaluator:
    """Walks pending predictions and moves each to ``completed`` exactly once."""

    def __init__(
        self,
        repository: PredictionRepository,
        quote_provider: QuoteProvider,
        config: Optional[EvaluatorConfig] = None,
    ) -> None:
        self.repository = repository
        self.quote_provider = quote_provider
        self.config = config or EvaluatorConfig()

    def average_return(self, record: PredictionRecord) -> Optional[float]:
        """Mean return across tickers with both an initial price and a current quote."""

        tickers = record.prediction.recommended_stocks
        quotes = self.quote_provider.get_quotes(tickers)
        returns: List[float] = []
        for ticker in tickers:
            initial = record.initial_prices.get(ticker)
            quote = quotes.get(ticker)
            if not initial or quote is None or not quote.price:
                continue
            returns.append((quote.price - initial) / initial)
        if not returns:
            return None
        return float(np.mean(returns))

    def _finish(self, record: PredictionRecord, outcome: str, performance: Optional[str]) -> bool:
        changed = self.repository.complete(record.id, outcome, performance)
        if not changed:
            logger.debug("Prediction already completed by another run", prediction_id=record.id)
        return changed

    def evaluate_record(self, record: PredictionRecord, now: datetime) -> Optional[str]:
        """Return the stored outcome, or None when the record stays pending (or was already done)."""

        if record.is_completed:
            return None
        due = evaluation_date(as_utc(record.start_date), record.prediction.timeframe)
        if due is None or as_utc(now) < due:
            return None

        if not record.prediction.recommended_stocks:
            return NEUTRAL if self._finish(record, NEUTRAL, None) else None

        avg_return = self.average_return(record)
        if avg_return is None:
            return NEUTRAL if self._finish(record, NEUTRAL, None) else None

        outcome = classify_outcome(avg_return, record.prediction.direction == "up", self.config.success_threshold)
        performance = format_performance(avg_return)
        if not self._finish(record, outcome, performance):
            return None
        logger.info(
            "Evaluated prediction",
            prediction_id=record.id,
            sector=record.prediction.sector,
            outcome=outcome,
            avg_return=performance,
        )
        return outcome

    def run(self, now: Optional[datetime] = None) -> BacktestSummary:
        now = as_utc(now) if now else datetime.now(timezone.utc)
        summary = BacktestSummary()
        pending = self.repository.list_pending()
        if not pending:
            logger.info("No pending predictions to evaluate")
            return summary

        logger.info("Backtest starting", pending=len(pending))
        for record in pending:
            try:
                outcome = self.evaluate_record(record, now)
            except Exception:
                logger.exception("Error evaluating prediction; marking neutral", prediction_id=record.id)
                summary.errors += 1
                summary.failures.append((record.id, FailureKind.EVALUATION_ERROR))
                try:
                    if self._finish(record, NEUTRAL, None):
                        summary.outcomes[record.id] = NEUTRAL
                except Exception:
                    logger.exception("Could not mark prediction completed", prediction_id=record.id)
                continue
            if outcome is None:
                summary.skipped += 1
                continue
            summary.evaluated += 1
            summary.outcomes[record.id] = outcome

        logger.info(
            "Backtest finished",
            evaluated=summary.evaluated,
            skipped=summary.skipped,
            errors=summary.errors,
        )
        return summary
