#!/usr/bin/env python3
"""Evaluate due predictions in a prediction database and print the running accuracy."""

from __future__ import annotations

import argparse

from rally_radar.core.pipeline import RallyPipeline
from rally_radar.settings import get_settings


def run_backtest(db_path: str | None) -> None:
    settings = get_settings()
    if db_path:
        settings = settings.model_copy(update={"prediction_db_path": db_path})
    pipeline = RallyPipeline(settings)
    summary = pipeline.run_backtest()
    print(f"Evaluated: {summary.evaluated}  skipped: {summary.skipped}  errors: {summary.errors}")
    for record_id, outcome in summary.outcomes.items():
        print(f"  #{record_id}: {outcome}")

    stats = pipeline.performance()
    print(
        f"Accuracy: {stats['accuracy']:.2f}% "
        f"({stats['success']} success / {stats['failure']} failure / {stats['neutral']} neutral, "
        f"{stats['pending']} pending)"
    )
    for sector, row in stats["by_sector"].items():
        print(f"  {sector}: {row['accuracy']:.2f}% over {row['success'] + row['failure'] + row['neutral']}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the backtest evaluator once.")
    parser.add_argument("--db", default=None, help="Prediction database path (defaults to PREDICTION_DB_PATH).")
    args = parser.parse_args()
    run_backtest(args.db)


if __name__ == "__main__":
    main()
