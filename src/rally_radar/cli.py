"""Command-line interface for RallyRadar."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

import orjson
from loguru import logger

from rally_radar.core.pipeline import RallyPipeline
from rally_radar.forecasting.news_loader import load_news_file
from rally_radar.settings import get_settings


def _print_json(payload: Any) -> None:
    print(orjson.dumps(payload, option=orjson.OPT_INDENT_2, default=str).decode())


def configure_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


def command_check_config(args: argparse.Namespace) -> None:
    """Print active configuration."""

    settings = get_settings()
    print("RallyRadar configuration")
    print(f"Reasoning model: {settings.reasoning_model}")
    print(f"Reasoning configured: {bool(settings.anthropic_api_key)}")
    print(f"Quote provider: {settings.quote_provider}")
    print(f"Tradier configured: {bool(settings.tradier_api_key)}")
    print(f"Prediction DB: {settings.prediction_db_path}")
    print(f"Priority sectors: {settings.priority_sectors or 'built-in'}")
    print(f"Log level: {settings.log_level}")


def command_seed_history(args: argparse.Namespace) -> None:
    pipeline = RallyPipeline(get_settings())
    inserted = pipeline.seed_history()
    print(f"Inserted {inserted} historical rallies.")


def command_generate(args: argparse.Namespace) -> None:
    """Forecast from a news file and store the accepted predictions."""

    news = load_news_file(args.news)
    pipeline = RallyPipeline(get_settings())
    report = pipeline.generate(news, institutional_tickers=args.institutional or ())
    _print_json(report.to_dict())


def command_backtest(args: argparse.Namespace) -> None:
    pipeline = RallyPipeline(get_settings())
    if args.loop:
        pipeline.run_backtest_loop(args.interval)
        return
    summary = pipeline.run_backtest()
    _print_json(
        {
            "evaluated": summary.evaluated,
            "skipped": summary.skipped,
            "errors": summary.errors,
            "outcomes": {str(key): value for key, value in summary.outcomes.items()},
            "failures": [{"id": record_id, "kind": kind.value} for record_id, kind in summary.failures],
        }
    )


def command_recommend(args: argparse.Namespace) -> None:
    pipeline = RallyPipeline(get_settings())
    recommendation = pipeline.recommend(args.prediction_id)
    if recommendation is None:
        print(f"Prediction {args.prediction_id} not found.")
        raise SystemExit(1)
    _print_json(recommendation.to_dict())


def command_performance(args: argparse.Namespace) -> None:
    pipeline = RallyPipeline(get_settings())
    _print_json(pipeline.performance())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="RallyRadar command-line tools.")
    sub = parser.add_subparsers(dest="command", required=True)

    check = sub.add_parser("check-config", help="Print active configuration.")
    check.set_defaults(func=command_check_config)

    seed = sub.add_parser("seed-history", help="Load the built-in historical rallies into an empty store.")
    seed.set_defaults(func=command_seed_history)

    generate = sub.add_parser("generate", help="Forecast sector rallies from analyzed news and store them.")
    generate.add_argument("--news", type=Path, required=True, help="JSON file of analyzed news articles.")
    generate.add_argument(
        "--institutional",
        nargs="*",
        default=None,
        help="Tickers with recent institutional buying (boosts rally probability).",
    )
    generate.set_defaults(func=command_generate)

    backtest = sub.add_parser("backtest", help="Evaluate pending predictions whose window has elapsed.")
    backtest.add_argument("--loop", action="store_true", help="Continuously run until interrupted.")
    backtest.add_argument("--interval", type=int, default=None, help="Sleep seconds between loops when --loop is set.")
    backtest.set_defaults(func=command_backtest)

    recommend = sub.add_parser("recommend", help="Recommend an option contract for a stored prediction.")
    recommend.add_argument("prediction_id", type=int, help="Identifier of the stored prediction.")
    recommend.set_defaults(func=command_recommend)

    performance = sub.add_parser("performance", help="Summarize backtest outcomes.")
    performance.set_defaults(func=command_performance)

    return parser


def run(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(get_settings().log_level)
    args.func(args)


if __name__ == "__main__":
    run()
