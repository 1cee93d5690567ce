"""Aggregate backtest outcomes into accuracy statistics."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List

import pandas as pd

from rally_radar.forecasting.base import PENDING, PredictionRecord

OUTCOMES = ("success", "failure", "neutral")


def _accuracy(success: int, failure: int) -> float:
    decided = success + failure
    return round(success / decided * 100, 2) if decided else 0.0


def records_frame(records: Iterable[PredictionRecord]) -> pd.DataFrame:
    rows: List[Dict[str, Any]] = [
        {
            "id": record.id,
            "sector": record.prediction.sector,
            "opportunity_type": record.prediction.opportunity_type,
            "status": record.backtest_status,
            "outcome": record.prediction_outcome,
        }
        for record in records
    ]
    return pd.DataFrame(rows, columns=["id", "sector", "opportunity_type", "status", "outcome"])


def summarize_performance(records: Iterable[PredictionRecord]) -> Dict[str, Any]:
    """Counts per outcome, accuracy ``success / (success + failure)`` and a per-sector breakdown."""

    frame = records_frame(records)
    completed = frame[frame["status"] != PENDING]
    counts = completed["outcome"].value_counts()
    success = int(counts.get("success", 0))
    failure = int(counts.get("failure", 0))
    neutral = int(counts.get("neutral", 0))

    by_sector: Dict[str, Dict[str, Any]] = {}
    if not completed.empty:
        table = (
            completed.groupby(["sector", "outcome"]).size().unstack(fill_value=0).reindex(columns=list(OUTCOMES), fill_value=0)
        )
        for sector, row in table.iterrows():
            sector_success = int(row["success"])
            sector_failure = int(row["failure"])
            by_sector[str(sector)] = {
                "success": sector_success,
                "failure": sector_failure,
                "neutral": int(row["neutral"]),
                "accuracy": _accuracy(sector_success, sector_failure),
            }

    return {
        "total": int(len(completed)),
        "success": success,
        "failure": failure,
        "neutral": neutral,
        "pending": int((frame["status"] == PENDING).sum()),
        "accuracy": _accuracy(success, failure),
        "by_sector": by_sector,
    }
