"""TradierClient parsing and batching tests."""

from datetime import datetime, timezone

import pytest
import requests

from rally_radar.clients import tradier_client
from rally_radar.clients.base import APIClientError
from rally_radar.clients.tradier_client import TradierClient, days_until
from rally_radar.settings import Settings


class DummyResponse:
    def __init__(self, payload, status_error=None) -> None:
        self.payload = payload
        self.status_error = status_error

    def raise_for_status(self) -> None:
        if self.status_error is not None:
            raise self.status_error

    def json(self):
        return self.payload


class DummySession:
    def __init__(self, responses) -> None:
        self.responses = list(responses)
        self.calls = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append({"url": url, "params": params, "headers": headers, "timeout": timeout})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def build_settings(monkeypatch, api_key="token"):
    if api_key:
        monkeypatch.setenv("TRADIER_API_KEY", api_key)
    else:
        monkeypatch.delenv("TRADIER_API_KEY", raising=False)
    monkeypatch.setenv("TRADIER_BASE_URL", "https://sandbox.tradier.com/v1/")
    monkeypatch.setenv("QUOTE_BATCH_SIZE", "2")
    monkeypatch.setenv("QUOTE_BATCH_DELAY_SECONDS", "0.5")
    return Settings(_env_file=None)


def test_get_quote_parses_single_object(monkeypatch) -> None:
    session = DummySession(
        [DummyResponse({"quotes": {"quote": {"symbol": "NVDA", "last": 140.25, "change_percentage": 1.5, "volume": 1000}}})]
    )
    client = TradierClient(build_settings(monkeypatch), session=session)

    quote = client.get_quote("nvda")

    assert quote.symbol == "NVDA"
    assert quote.price == 140.25
    assert quote.change_percent == 1.5
    call = session.calls[0]
    assert call["url"] == "https://sandbox.tradier.com/v1/markets/quotes"
    assert call["params"]["symbols"] == "NVDA"
    assert call["headers"]["Authorization"] == "Bearer token"
    assert call["timeout"] == 10.0


def test_get_quote_returns_none_without_data(monkeypatch) -> None:
    session = DummySession([DummyResponse({"quotes": {"unmatched_symbols": {"symbol": "ZZZZ"}}})])
    client = TradierClient(build_settings(monkeypatch), session=session)

    assert client.get_quote("ZZZZ") is None


def test_get_quotes_batches_and_skips_failed_batch(monkeypatch) -> None:
    sleeps = []
    monkeypatch.setattr(tradier_client.time, "sleep", lambda seconds: sleeps.append(seconds))
    session = DummySession(
        [
            DummyResponse(
                {"quotes": {"quote": [{"symbol": "NVDA", "last": 140.0}, {"symbol": "AMD", "last": 0, "close": 120.0}]}}
            ),
            requests.ConnectionError("reset"),
            DummyResponse({"quotes": {"quote": {"symbol": "XOM", "last": 110.0}}}),
        ]
    )
    client = TradierClient(build_settings(monkeypatch), session=session)

    quotes = client.get_quotes(["NVDA", "AMD", "SMCI", "IONQ", "XOM", "nvda"])

    assert {symbol: quote.price for symbol, quote in quotes.items()} == {"NVDA": 140.0, "AMD": 120.0, "XOM": 110.0}
    assert [call["params"]["symbols"] for call in session.calls] == ["NVDA,AMD", "SMCI,IONQ", "XOM"]
    assert sleeps == [0.5, 0.5]


def test_missing_api_key_raises(monkeypatch) -> None:
    client = TradierClient(build_settings(monkeypatch, api_key=None), session=DummySession([]))

    with pytest.raises(APIClientError):
        client.get_expirations("NVDA")


def test_http_error_becomes_client_error(monkeypatch) -> None:
    session = DummySession([DummyResponse({}, status_error=requests.HTTPError("401 Unauthorized"))])
    client = TradierClient(build_settings(monkeypatch), session=session)

    with pytest.raises(APIClientError):
        client.get_quote("NVDA")


def test_get_expirations_computes_days(monkeypatch) -> None:
    session = DummySession([DummyResponse({"expirations": {"date": ["2025-01-17", "2025-02-21"]}})])
    client = TradierClient(build_settings(monkeypatch), session=session)

    expirations = client.get_expirations("NVDA", now=datetime(2025, 1, 1, tzinfo=timezone.utc))

    assert [(e.date, e.days_to_expiration) for e in expirations] == [("2025-01-17", 16), ("2025-02-21", 51)]


def test_get_chain_reads_greeks(monkeypatch) -> None:
    payload = {
        "options": {
            "option": [
                {
                    "symbol": "NVDA250117C00140000",
                    "strike": 140,
                    "option_type": "call",
                    "expiration_date": "2025-01-17",
                    "bid": 3.1,
                    "ask": 3.3,
                    "last": 3.2,
                    "open_interest": 1200,
                    "volume": 85,
                    "greeks": {"delta": 0.52, "theta": -0.08, "smv_vol": 0.45},
                },
                {"symbol": "NVDA250117P00140000", "strike": 140, "option_type": "put", "greeks": None},
            ]
        }
    }
    session = DummySession([DummyResponse(payload)])
    client = TradierClient(build_settings(monkeypatch), session=session)

    chain = client.get_chain("NVDA", "2025-01-17")

    call, put = chain
    assert call.strike == 140.0
    assert call.open_interest == 1200
    assert call.delta == 0.52
    assert call.implied_volatility == 0.45
    assert put.option_type == "put"
    assert put.delta is None
    assert put.expiration == "2025-01-17"
    assert session.calls[0]["params"]["greeks"] == "true"


def test_days_until_rounds_up() -> None:
    assert days_until("2025-01-02", datetime(2025, 1, 1, 6, tzinfo=timezone.utc)) == 1
    assert days_until("2025-01-01", datetime(2025, 1, 1, tzinfo=timezone.utc)) == 0
