"""Adapter around Alpaca's market data API used as an alternate quote provider."""

from __future__ import annotations

import time
from typing import Any, Dict, Iterable, Optional

from alpaca.data.enums import DataFeed
from alpaca.data.historical import StockHistoricalDataClient
from alpaca.data.requests import StockLatestTradeRequest
from loguru import logger

from rally_radar.clients.base import APIClientError, BaseClient, StockQuote
from rally_radar.settings import Settings


class AlpacaQuoteClient(BaseClient):
    """Latest-trade quotes from Alpaca's IEX feed."""

    def __init__(self, settings: Settings, *, equity_client: Any | None = None) -> None:
        super().__init__("alpaca", {"feed": "iex"})
        if equity_client is None and not (settings.alpaca_api_key_id and settings.alpaca_api_secret_key):
            raise APIClientError("Alpaca API credentials not configured")
        self._equity_client = equity_client or StockHistoricalDataClient(
            api_key=settings.alpaca_api_key_id,
            secret_key=settings.alpaca_api_secret_key,
        )
        self._batch_size = max(1, settings.quote_batch_size)
        self._batch_delay = max(0.0, settings.quote_batch_delay_seconds)

    def _latest_trades(self, symbols: list[str]) -> Dict[str, Any]:
        request = StockLatestTradeRequest(symbol_or_symbols=symbols, feed=DataFeed.IEX)
        try:
            return self._equity_client.get_stock_latest_trade(request)
        except Exception as exc:
            logger.exception("Failed to fetch latest trades from Alpaca", symbols=symbols)
            raise APIClientError(f"Alpaca latest trade error: {exc}") from exc

    def get_quote(self, ticker: str) -> Optional[StockQuote]:
        return self.get_quotes([ticker]).get(ticker.strip().upper())

    def get_quotes(self, tickers: Iterable[str]) -> Dict[str, StockQuote]:
        symbols = list(dict.fromkeys(t.strip().upper() for t in tickers if t and t.strip()))
        quotes: Dict[str, StockQuote] = {}
        for start in range(0, len(symbols), self._batch_size):
            if start:
                time.sleep(self._batch_delay)
            batch = symbols[start : start + self._batch_size]
            try:
                trades = self._latest_trades(batch)
            except APIClientError:
                continue
            for symbol, trade in (trades or {}).items():
                price = getattr(trade, "price", None)
                if price is None and isinstance(trade, dict):
                    price = trade.get("price")
                if price and float(price) > 0:
                    quotes[str(symbol).upper()] = StockQuote(symbol=str(symbol).upper(), price=float(price))
        self._log("Fetched latest trades", requested=len(symbols), returned=len(quotes))
        return quotes
