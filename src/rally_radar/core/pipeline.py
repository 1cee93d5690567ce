"""High-level facade wiring clients, forecaster, store, evaluator and recommender together."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from loguru import logger

from rally_radar.backtest import BacktestEvaluator, BacktestSummary, EvaluatorConfig, summarize_performance
from rally_radar.clients import AlpacaQuoteClient, ReasoningClient, TradierClient
from rally_radar.clients.base import OptionsProvider, QuoteProvider, ReasoningService
from rally_radar.core.lifecycle import PredictionLifecycle
from rally_radar.data import PredictionRepository, PredictionStore, seed_historical_rallies
from rally_radar.errors import FailureKind
from rally_radar.forecasting.base import NewsSignal, PredictionRecord
from rally_radar.forecasting.orchestrator import ForecastConfig, RallyForecaster
from rally_radar.forecasting.prompts import DEFAULT_PRIORITY_SECTORS
from rally_radar.options import OptionRecommendation, OptionsRecommender, RecommenderConfig
from rally_radar.settings import Settings
from rally_radar.signals import extract_historical_patterns


@dataclass
class GenerationReport:
    records: List[PredictionRecord] = field(default_factory=list)
    failure: Optional[FailureKind] = None
    rejected: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "predictions": [record.to_dict() for record in self.records],
            "failure": self.failure.value if self.failure else None,
            "rejected": self.rejected,
        }


class RallyPipeline:
    """Facade for the CLI: generate, backtest, recommend and report."""

    def __init__(
        self,
        settings: Settings,
        *,
        repository: Optional[PredictionRepository] = None,
        quote_provider: Optional[QuoteProvider] = None,
        options_provider: Optional[OptionsProvider] = None,
        reasoning: Optional[ReasoningService] = None,
        forecast_config: Optional[ForecastConfig] = None,
        evaluator_config: Optional[EvaluatorConfig] = None,
        recommender_config: Optional[RecommenderConfig] = None,
    ) -> None:
        self.settings = settings
        self.repository = repository or PredictionStore(settings.prediction_db_path)
        tradier: Optional[TradierClient] = None
        if options_provider is None or quote_provider is None:
            tradier = TradierClient(settings)
        self.options_provider = options_provider or tradier
        if quote_provider is None:
            quote_provider = AlpacaQuoteClient(settings) if settings.quote_provider == "alpaca" else tradier
        self.quote_provider = quote_provider
        self.reasoning = reasoning or ReasoningClient(settings)

        config = forecast_config or ForecastConfig(
            priority_sectors=tuple(settings.priority_sectors) or DEFAULT_PRIORITY_SECTORS
        )
        self.forecaster = RallyForecaster(self.reasoning, config)
        self.lifecycle = PredictionLifecycle(self.repository, self.quote_provider)
        self.evaluator = BacktestEvaluator(self.repository, self.quote_provider, evaluator_config)
        self.recommender = OptionsRecommender(
            self.quote_provider, self.options_provider, self.reasoning, recommender_config
        )

    def seed_history(self) -> int:
        return seed_historical_rallies(self.repository)

    def generate(
        self,
        news: Iterable[NewsSignal],
        *,
        institutional_tickers: Iterable[str] = (),
        now: Optional[datetime] = None,
    ) -> GenerationReport:
        """Forecast from ``news`` and store every accepted prediction as pending."""

        patterns = extract_historical_patterns(self.repository.list_historical_rallies())
        result = self.forecaster.forecast(news, patterns, institutional_tickers=institutional_tickers)
        if result.failure is not None:
            return GenerationReport(failure=result.failure, rejected=result.rejected)
        records = self.lifecycle.record_all(result.predictions, now=now)
        return GenerationReport(records=records, rejected=result.rejected)

    def run_backtest(self, now: Optional[datetime] = None) -> BacktestSummary:
        return self.evaluator.run(now)

    def run_backtest_loop(self, interval_seconds: Optional[int] = None) -> None:
        """Continuously evaluate pending predictions until interrupted."""

        interval = interval_seconds or self.settings.backtest_interval_seconds
        logger.info("Backtest loop starting", interval_seconds=interval)
        while True:
            self.run_backtest()
            time.sleep(max(1, interval))

    def recommend(self, prediction_id: int) -> Optional[OptionRecommendation]:
        record = self.repository.get(prediction_id)
        if record is None:
            logger.warning("Prediction not found", prediction_id=prediction_id)
            return None
        return self.recommender.recommend(record)

    def performance(self) -> Dict[str, Any]:
        return summarize_performance(self.repository.list_all())
