"""Accepts validated predictions and freezes their entry-price snapshot on insert."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from loguru import logger

from rally_radar.clients.base import APIClientError, QuoteProvider
from rally_radar.data.prediction_store import PredictionRepository
from rally_radar.forecasting.base import PENDING, PredictionRecord, RallyPrediction


class PredictionLifecycle:
    """Creates pending PredictionRecords with an immutable ``initial_prices`` snapshot."""

    def __init__(self, repository: PredictionRepository, quote_provider: QuoteProvider) -> None:
        self.repository = repository
        self.quote_provider = quote_provider

    def snapshot_prices(self, tickers: Iterable[str]) -> Dict[str, float]:
        """Current prices for ``tickers``; tickers without a usable quote are left out."""

        symbols = list(dict.fromkeys(tickers))
        if not symbols:
            return {}
        try:
            quotes = self.quote_provider.get_quotes(symbols)
        except APIClientError:
            logger.warning("Quote provider unavailable; storing empty price snapshot", tickers=symbols)
            return {}
        prices: Dict[str, float] = {}
        for symbol in symbols:
            quote = quotes.get(symbol)
            if quote is not None and quote.price and quote.price > 0:
                prices[symbol] = float(quote.price)
        missing = [symbol for symbol in symbols if symbol not in prices]
        if missing:
            logger.debug("Omitting tickers without quotes from snapshot", tickers=missing)
        return prices

    def record(self, prediction: RallyPrediction, *, now: Optional[datetime] = None) -> PredictionRecord:
        start = now or datetime.now(timezone.utc)
        record = PredictionRecord(
            prediction=prediction,
            start_date=start,
            initial_prices=self.snapshot_prices(prediction.recommended_stocks),
            backtest_status=PENDING,
            prediction_outcome=None,
            performance=None,
        )
        stored = self.repository.insert(record)
        logger.info(
            "Prediction recorded",
            prediction_id=stored.id,
            sector=prediction.sector,
            type=prediction.opportunity_type,
            priced=len(stored.initial_prices),
        )
        return stored

    def record_all(self, predictions: Iterable[RallyPrediction], *, now: Optional[datetime] = None) -> List[PredictionRecord]:
        return [self.record(prediction, now=now) for prediction in predictions]
