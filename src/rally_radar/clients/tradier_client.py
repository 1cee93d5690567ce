"""Tradier market data client for stock quotes and option chains."""

from __future__ import annotations

import math
import time
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

import requests
from loguru import logger

from rally_radar.clients.base import APIClientError, BaseClient, OptionContract, OptionExpiration, StockQuote
from rally_radar.settings import Settings


def _as_list(value: Any) -> List[Any]:
    # Tradier collapses single-element arrays into a bare object.
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value) if value is not None else default
    except (TypeError, ValueError):
        return default


def _optional_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def days_until(date_str: str, now: datetime | None = None) -> int:
    """Whole days (rounded up) from ``now`` until midnight UTC of ``date_str``."""

    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    expiration = datetime.strptime(date_str, "%Y-%m-%d").replace(tzinfo=timezone.utc)
    return math.ceil((expiration - now).total_seconds() / 86400)


class TradierClient(BaseClient):
    """REST client for Tradier's market data endpoints."""

    def __init__(self, settings: Settings, *, session: requests.Session | None = None) -> None:
        super().__init__("tradier")
        self._api_key = settings.tradier_api_key
        self._base_url = settings.tradier_base_url.rstrip("/")
        self._timeout = settings.http_timeout_seconds
        self._batch_size = max(1, settings.quote_batch_size)
        self._batch_delay = max(0.0, settings.quote_batch_delay_seconds)
        self._session = session or requests.Session()
        if not self._api_key:
            logger.warning("Tradier API key is not configured; live quotes and option chains will be unavailable.")

    def _get(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        if not self._api_key:
            raise APIClientError("Tradier API key not configured")
        headers = {"Authorization": f"Bearer {self._api_key}", "Accept": "application/json"}
        try:
            response = self._session.get(
                f"{self._base_url}{path}",
                params=params,
                headers=headers,
                timeout=self._timeout,
            )
            response.raise_for_status()
            return response.json() or {}
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Tradier request failed", path=path, error=str(exc))
            raise APIClientError(f"Tradier API error: {exc}") from exc

    # ------------------------------------------------------------------- quotes

    def _parse_quote(self, payload: Dict[str, Any]) -> Optional[StockQuote]:
        price = _float(payload.get("last")) or _float(payload.get("close"))
        if not payload.get("symbol") or price <= 0:
            return None
        return StockQuote(
            symbol=str(payload["symbol"]).upper(),
            price=price,
            change=_float(payload.get("change")),
            change_percent=_float(payload.get("change_percentage")),
            volume=_float(payload.get("volume")),
        )

    def get_quote(self, ticker: str) -> Optional[StockQuote]:
        """Fetch the latest quote for a single ticker, or None if Tradier has no data."""

        data = self._get("/markets/quotes", {"symbols": ticker.upper(), "greeks": "false"})
        for payload in _as_list((data.get("quotes") or {}).get("quote")):
            quote = self._parse_quote(payload)
            if quote:
                self._log("Fetched quote", ticker=ticker, price=quote.price)
                return quote
        logger.warning("No Tradier quote data", ticker=ticker)
        return None

    def get_quotes(self, tickers: Iterable[str]) -> Dict[str, StockQuote]:
        """Fetch quotes in serialized batches, sleeping between batches to respect rate limits."""

        symbols = list(dict.fromkeys(t.strip().upper() for t in tickers if t and t.strip()))
        quotes: Dict[str, StockQuote] = {}
        for start in range(0, len(symbols), self._batch_size):
            if start:
                time.sleep(self._batch_delay)
            batch = symbols[start : start + self._batch_size]
            try:
                data = self._get("/markets/quotes", {"symbols": ",".join(batch), "greeks": "false"})
            except APIClientError:
                logger.warning("Skipping quote batch after Tradier failure", tickers=batch)
                continue
            for payload in _as_list((data.get("quotes") or {}).get("quote")):
                quote = self._parse_quote(payload)
                if quote and quote.symbol in batch:
                    quotes[quote.symbol] = quote
        self._log("Fetched quotes", requested=len(symbols), returned=len(quotes))
        return quotes

    # ------------------------------------------------------------------ options

    def get_expirations(self, ticker: str, *, now: datetime | None = None) -> List[OptionExpiration]:
        data = self._get(
            "/markets/options/expirations",
            {"symbol": ticker.upper(), "includeAllRoots": "true", "strikes": "false"},
        )
        dates = _as_list((data.get("expirations") or {}).get("date"))
        expirations = [OptionExpiration(date=str(value), days_to_expiration=days_until(str(value), now)) for value in dates]
        self._log("Fetched expirations", ticker=ticker, count=len(expirations))
        return expirations

    def get_chain(self, ticker: str, expiration: str, with_greeks: bool = True) -> List[OptionContract]:
        data = self._get(
            "/markets/options/chains",
            {"symbol": ticker.upper(), "expiration": expiration, "greeks": "true" if with_greeks else "false"},
        )
        contracts: List[OptionContract] = []
        for option in _as_list((data.get("options") or {}).get("option")):
            if not isinstance(option, dict) or option.get("strike") is None:
                continue
            greeks = option.get("greeks") or {}
            contracts.append(
                OptionContract(
                    symbol=str(option.get("symbol") or ""),
                    strike=_float(option.get("strike")),
                    option_type=str(option.get("option_type") or "").lower(),
                    expiration=str(option.get("expiration_date") or expiration),
                    bid=_float(option.get("bid")),
                    ask=_float(option.get("ask")),
                    last=_float(option.get("last")),
                    open_interest=int(_float(option.get("open_interest"))),
                    volume=int(_float(option.get("volume"))),
                    delta=_optional_float(greeks.get("delta")),
                    gamma=_optional_float(greeks.get("gamma")),
                    theta=_optional_float(greeks.get("theta")),
                    vega=_optional_float(greeks.get("vega")),
                    rho=_optional_float(greeks.get("rho")),
                    implied_volatility=_optional_float(greeks.get("smv_vol")),
                )
            )
        self._log("Fetched option chain", ticker=ticker, expiration=expiration, count=len(contracts))
        return contracts
