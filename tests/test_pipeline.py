"""RallyPipeline wiring tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import orjson

from rally_radar.clients.base import OptionContract, OptionExpiration, StockQuote
from rally_radar.clients.tradier_client import TradierClient
from rally_radar.core.pipeline import RallyPipeline
from rally_radar.data import PredictionStore
from rally_radar.errors import FailureKind
from rally_radar.forecasting.base import NewsSignal
from rally_radar.settings import Settings

START = datetime(2025, 1, 1, tzinfo=timezone.utc)


class DummyQuotes:
    def __init__(self, prices) -> None:
        self.prices = prices

    def get_quote(self, ticker):
        return self.get_quotes([ticker]).get(ticker)

    def get_quotes(self, tickers):
        return {t: StockQuote(symbol=t, price=self.prices[t]) for t in tickers if t in self.prices}


class DummyOptions:
    def get_expirations(self, ticker):
        return [OptionExpiration("2025-01-24", 23)]

    def get_chain(self, ticker, expiration, with_greeks=True):
        return [
            OptionContract(
                symbol="NVDA250124C00100000",
                strike=100.0,
                option_type="call",
                expiration=expiration,
                bid=1.0,
                ask=1.4,
                open_interest=500,
                delta=0.5,
            )
        ]


class DummyReasoning:
    def __init__(self, payload) -> None:
        self.payload = payload

    def complete(self, system_prompt, user_prompt, response_schema=None):
        return orjson.dumps(self.payload).decode()


def build_pipeline(monkeypatch, tmp_path, payload, prices):
    monkeypatch.setenv("PREDICTION_DB_PATH", str(tmp_path / "predictions.duckdb"))
    settings = Settings(_env_file=None)
    return RallyPipeline(
        settings,
        quote_provider=DummyQuotes(prices),
        options_provider=DummyOptions(),
        reasoning=DummyReasoning(payload),
    )


def news(count=12):
    return [
        NewsSignal(
            title=f"AI story {index}",
            summary="Chip demand is climbing.",
            sentiment="bullish",
            sectors=["AI"],
            mentioned_stocks=["NVDA"],
            published_at=START - timedelta(hours=index),
        )
        for index in range(count)
    ]


PREDICTION = {
    "predictions": [
        {
            "sector": "AI",
            "opportunityType": "call",
            "confidence": 70,
            "timeframe": "2-3 weeks",
            "recommendedStocks": ["NVDA"],
            "reasoning": "Bullish demand",
        }
    ]
}


def test_generate_backtest_recommend_and_report(monkeypatch, tmp_path) -> None:
    pipeline = build_pipeline(monkeypatch, tmp_path, PREDICTION, {"NVDA": 100.0})
    assert isinstance(pipeline.repository, PredictionStore)
    assert pipeline.seed_history() == 3

    report = pipeline.generate(news(), now=START)

    assert report.failure is None
    record = report.records[0]
    assert record.initial_prices == {"NVDA": 100.0}

    pipeline.quote_provider.prices["NVDA"] = 108.0
    summary = pipeline.run_backtest(now=START + timedelta(days=30))
    assert summary.outcomes == {record.id: "success"}

    recommendation = pipeline.recommend(record.id)
    assert recommendation.contract.strike == 100.0
    assert recommendation.probability_of_profit == 50
    assert pipeline.recommend(999) is None

    stats = pipeline.performance()
    assert stats["success"] == 1
    assert stats["accuracy"] == 100.0


def test_generate_reports_insufficient_data(monkeypatch, tmp_path) -> None:
    pipeline = build_pipeline(monkeypatch, tmp_path, PREDICTION, {})

    report = pipeline.generate(news(count=3))

    assert report.records == []
    assert report.failure == FailureKind.INSUFFICIENT_DATA
    assert report.to_dict()["failure"] == "insufficient_data"


def test_default_clients_use_tradier(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("PREDICTION_DB_PATH", str(tmp_path / "predictions.duckdb"))
    monkeypatch.setenv("QUOTE_PROVIDER", "tradier")

    pipeline = RallyPipeline(Settings(_env_file=None), reasoning=DummyReasoning(PREDICTION))

    assert isinstance(pipeline.quote_provider, TradierClient)
    assert pipeline.options_provider is pipeline.quote_provider
