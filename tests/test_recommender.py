"""OptionsRecommender tests with fake market data and reasoning."""

from __future__ import annotations

from datetime import datetime, timezone

import orjson
import pytest

from rally_radar.clients.base import APIClientError, OptionContract, OptionExpiration, StockQuote
from rally_radar.errors import FailureKind
from rally_radar.forecasting.base import PredictionRecord, RallyPrediction
from rally_radar.options import OptionsRecommender


class DummyQuotes:
    def __init__(self, price: float | None = 100.0) -> None:
        self.price = price

    def get_quote(self, ticker):
        if self.price is None:
            return None
        return StockQuote(symbol=ticker, price=self.price, change_percent=1.25)

    def get_quotes(self, tickers):
        if self.price is None:
            return {}
        return {t: self.get_quote(t) for t in tickers}


class DummyOptions:
    def __init__(self, expirations=None, chain=None, error=None) -> None:
        self.expirations = expirations if expirations is not None else [
            OptionExpiration("2025-01-17", 16),
            OptionExpiration("2025-01-24", 23),
            OptionExpiration("2025-02-21", 51),
        ]
        self.chain = chain if chain is not None else [
            OptionContract(
                symbol=f"NVDA250124C{strike:05d}000",
                strike=float(strike),
                option_type="call",
                expiration="2025-01-24",
                bid=2.0,
                ask=2.4,
                last=2.1,
                open_interest=400 - abs(strike - 100) * 10,
                volume=50,
                delta=0.55 if strike == 100 else None,
                theta=-0.04,
                implied_volatility=0.42,
            )
            for strike in range(90, 111, 5)
        ]
        self.error = error
        self.chain_requests = []

    def get_expirations(self, ticker):
        if self.error is not None:
            raise self.error
        return self.expirations

    def get_chain(self, ticker, expiration, with_greeks=True):
        self.chain_requests.append((ticker, expiration, with_greeks))
        return self.chain


class DummyReasoning:
    def __init__(self, response=None, error=None) -> None:
        self.response = response
        self.error = error
        self.prompts = []

    def complete(self, system_prompt, user_prompt, response_schema=None):
        self.prompts.append(user_prompt)
        if self.error is not None:
            raise self.error
        return orjson.dumps(self.response).decode()


def make_record(tickers=("NVDA",), confidence=80, opportunity="call"):
    return PredictionRecord(
        prediction=RallyPrediction(
            sector="AI",
            opportunity_type=opportunity,
            direction="up" if opportunity == "call" else "down",
            confidence=confidence,
            timeframe="2-3 weeks",
            recommended_stocks=list(tickers),
            early_signals=["12 news articles in 7 days"],
            reasoning="Demand keeps rising",
            entry_timing="Buy the open",
            exit_strategy="Sell at +50%",
        ),
        start_date=datetime(2025, 1, 1, tzinfo=timezone.utc),
        id=7,
    )


NARRATION = {
    "optionsStrategy": "Buy the at-the-money call.",
    "suggestedStrike": "$100",
    "suggestedExpiration": "2025-01-24",
    "entryStrategy": "Enter on strength.",
    "exitStrategy": "Exit at +50%.",
    "riskAssessment": "Moderate.",
}


def test_recommend_prices_selected_contract() -> None:
    options = DummyOptions()
    reasoning = DummyReasoning(NARRATION)
    recommender = OptionsRecommender(DummyQuotes(), options, reasoning)

    result = recommender.recommend(make_record())

    assert result.live_data is True
    assert result.fallback_reason is None
    assert result.contract.strike == 100.0
    assert options.chain_requests == [("NVDA", "2025-01-24", True)]
    assert result.premium == pytest.approx(2.2)
    assert result.cost == pytest.approx(220.0)
    assert result.break_even == pytest.approx(102.2)
    assert result.probability_of_profit == 55
    assert result.days_to_expiration == 23
    assert [c.strike for c in result.alternative_contracts] == [95.0, 105.0, 90.0, 110.0]
    assert result.narration.options_strategy == "Buy the at-the-money call."
    assert "Premium: $2.20 ($220 per contract)" in reasoning.prompts[0]


def test_narration_failure_keeps_computed_numbers() -> None:
    reasoning = DummyReasoning(error=APIClientError("overloaded"))
    recommender = OptionsRecommender(DummyQuotes(), DummyOptions(), reasoning)

    result = recommender.recommend(make_record())

    assert result.live_data is True
    assert result.fallback_reason == FailureKind.UPSTREAM_FAILURE
    assert result.contract.strike == 100.0
    assert result.probability_of_profit == 55
    assert "$220" in result.narration.risk_assessment


def test_partial_narration_falls_back_per_field() -> None:
    reasoning = DummyReasoning({"optionsStrategy": "Custom strategy", "riskAssessment": ""})
    result = OptionsRecommender(DummyQuotes(), DummyOptions(), reasoning).recommend(make_record())

    assert result.narration.options_strategy == "Custom strategy"
    assert result.narration.suggested_strike == "$100.0"
    assert result.narration.risk_assessment.startswith("Max loss per contract: $220")


def test_missing_quote_returns_templated_fallback() -> None:
    result = OptionsRecommender(DummyQuotes(price=None), DummyOptions(), DummyReasoning(NARRATION)).recommend(
        make_record()
    )

    assert result.live_data is False
    assert result.contract is None
    assert result.premium is None
    assert result.fallback_reason == FailureKind.UPSTREAM_FAILURE
    assert "Live market data unavailable" in result.narration.options_strategy
    assert "Risk level: Low-Moderate" in result.narration.risk_assessment


def test_no_tickers_returns_fallback() -> None:
    result = OptionsRecommender(DummyQuotes(), DummyOptions()).recommend(make_record(tickers=()))

    assert result.ticker is None
    assert result.fallback_reason == FailureKind.INSUFFICIENT_DATA


def test_no_expirations_returns_fallback() -> None:
    result = OptionsRecommender(DummyQuotes(), DummyOptions(expirations=[])).recommend(make_record())

    assert result.fallback_reason == FailureKind.INSUFFICIENT_DATA


def test_illiquid_chain_returns_fallback() -> None:
    options = DummyOptions()
    for option in options.chain:
        option.open_interest = 10

    result = OptionsRecommender(DummyQuotes(), options).recommend(make_record())

    assert result.contract is None
    assert result.fallback_reason == FailureKind.INSUFFICIENT_DATA


def test_provider_error_returns_fallback() -> None:
    options = DummyOptions(error=APIClientError("Tradier API key not configured"))

    result = OptionsRecommender(DummyQuotes(), options).recommend(make_record())

    assert result.fallback_reason == FailureKind.UPSTREAM_FAILURE


def test_to_dict_includes_contract_details() -> None:
    result = OptionsRecommender(DummyQuotes(), DummyOptions()).recommend(make_record())

    payload = result.to_dict()

    assert payload["liveData"] is True
    assert payload["contract"]["strike"] == 100.0
    assert payload["breakEven"] == 102.2
    assert payload["probabilityOfProfit"] == 55
    assert "fallbackReason" not in payload
