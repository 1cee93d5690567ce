"""Core data types flowing through forecasting, persistence and backtesting."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import orjson

TIMEFRAMES = ("2-3 weeks", "1-2 months", "3-6 months")
DEFAULT_TIMEFRAME = "2-3 weeks"

PENDING = "pending"
COMPLETED = "completed"


def parse_json_list(value: Any) -> List[str]:
    """Coerce a list or JSON-encoded list into a list of strings; anything else is empty."""

    if value is None:
        return []
    if isinstance(value, str):
        if not value.strip():
            return []
        try:
            value = orjson.loads(value)
        except orjson.JSONDecodeError:
            return []
    if isinstance(value, (list, tuple, set)):
        return [str(item).strip() for item in value if item is not None and str(item).strip()]
    return []


def parse_json_object(value: Any) -> Dict[str, Any]:
    if value is None:
        return {}
    if isinstance(value, str):
        try:
            value = orjson.loads(value) if value.strip() else {}
        except orjson.JSONDecodeError:
            return {}
    return dict(value) if isinstance(value, dict) else {}


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse ISO strings / datetimes into timezone-aware UTC datetimes."""

    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


@dataclass
class NewsSignal:
    """One analyzed article produced by the ingestion layer."""

    title: str
    summary: str = ""
    ai_summary: str = ""
    sentiment: Optional[str] = None  # "bullish", "bearish", "neutral"
    sectors: List[str] = field(default_factory=list)
    mentioned_stocks: List[str] = field(default_factory=list)
    rally_indicator: Optional[str] = None  # "strong", "moderate", "weak", "none"
    published_at: Optional[datetime] = None

    @property
    def effective_summary(self) -> str:
        return self.ai_summary or self.summary or ""

    @property
    def is_analyzed(self) -> bool:
        return self.sentiment is not None and bool(self.effective_summary.strip())

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "NewsSignal":
        sentiment = payload.get("sentiment")
        rally = payload.get("rally_indicator", payload.get("rallyIndicator"))
        return cls(
            title=str(payload.get("title") or ""),
            summary=str(payload.get("summary") or payload.get("description") or ""),
            ai_summary=str(payload.get("ai_summary") or payload.get("aiSummary") or ""),
            sentiment=str(sentiment).lower() if sentiment else None,
            sectors=parse_json_list(payload.get("sectors")),
            mentioned_stocks=[s.upper() for s in parse_json_list(payload.get("mentioned_stocks", payload.get("mentionedStocks")))],
            rally_indicator=str(rally).lower() if rally else None,
            published_at=parse_timestamp(payload.get("published_at", payload.get("publishedAt"))),
        )


@dataclass
class HistoricalRally:
    """Repository record describing a past (or predicted) rally."""

    sector: str
    name: str = ""
    start_date: Optional[datetime] = None
    peak_date: Optional[datetime] = None
    description: str = ""
    catalysts: Any = None
    key_stocks: Any = None
    early_signals: Any = None
    performance: Any = None
    is_historical: bool = True
    id: Optional[int] = None


@dataclass
class HistoricalPattern:
    sector: str
    early_signals: List[str] = field(default_factory=list)
    time_to_rally: int = 21
    catalysts: List[str] = field(default_factory=list)
    avg_gain: str = "unknown"


@dataclass
class RallyPrediction:
    """Validated forecast for a sector move."""

    sector: str
    opportunity_type: str  # "call" or "put"
    direction: str  # "up" or "down"
    confidence: int
    timeframe: str
    recommended_stocks: List[str]
    early_signals: List[str] = field(default_factory=list)
    reasoning: str = ""
    entry_timing: str = ""
    exit_strategy: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sector": self.sector,
            "opportunityType": self.opportunity_type,
            "direction": self.direction,
            "confidence": self.confidence,
            "timeframe": self.timeframe,
            "earlySignals": list(self.early_signals),
            "recommendedStocks": list(self.recommended_stocks),
            "reasoning": self.reasoning,
            "entryTiming": self.entry_timing,
            "exitStrategy": self.exit_strategy,
        }


@dataclass
class PredictionRecord:
    """A persisted prediction with its frozen entry-price snapshot."""

    prediction: RallyPrediction
    start_date: datetime
    initial_prices: Dict[str, float] = field(default_factory=dict)
    backtest_status: str = PENDING
    prediction_outcome: Optional[str] = None
    performance: Optional[str] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None

    @property
    def is_completed(self) -> bool:
        return self.backtest_status == COMPLETED

    def with_id(self, record_id: int) -> "PredictionRecord":
        return replace(self, id=record_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            **self.prediction.to_dict(),
            "startDate": self.start_date.isoformat(),
            "initialPrices": dict(self.initial_prices),
            "backtestStatus": self.backtest_status,
            "predictionOutcome": self.prediction_outcome,
            "performance": self.performance,
        }
