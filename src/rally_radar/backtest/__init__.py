"""Backtesting utilities."""

from rally_radar.backtest.evaluator import (
    BacktestEvaluator,
    BacktestSummary,
    EvaluatorConfig,
    classify_outcome,
    evaluation_date,
)
from rally_radar.backtest.stats import summarize_performance

__all__ = [
    "BacktestEvaluator",
    "BacktestSummary",
    "EvaluatorConfig",
    "classify_outcome",
    "evaluation_date",
    "summarize_performance",
]
