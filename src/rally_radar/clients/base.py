"""Shared infrastructure and collaborator interfaces for API clients."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol

from loguru import logger

from rally_radar.errors import FailureKind, RallyRadarError


class APIClientError(RallyRadarError):
    """Raised when a client-level error occurs."""

    kind = FailureKind.UPSTREAM_FAILURE


@dataclass
class StockQuote:
    """Latest price snapshot for an equity."""

    symbol: str
    price: float
    change: float = 0.0
    change_percent: float = 0.0
    volume: float = 0.0


@dataclass
class OptionExpiration:
    date: str  # YYYY-MM-DD
    days_to_expiration: int


@dataclass
class OptionContract:
    """Single listed option with quote and greeks."""

    symbol: str
    strike: float
    option_type: str  # "call" or "put"
    expiration: str
    bid: float = 0.0
    ask: float = 0.0
    last: float = 0.0
    open_interest: int = 0
    volume: int = 0
    delta: Optional[float] = None
    gamma: Optional[float] = None
    theta: Optional[float] = None
    vega: Optional[float] = None
    rho: Optional[float] = None
    implied_volatility: Optional[float] = None


class ReasoningService(Protocol):
    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        response_schema: Optional[Dict[str, Any]] = None,
    ) -> str: ...


class QuoteProvider(Protocol):
    def get_quote(self, ticker: str) -> Optional[StockQuote]: ...

    def get_quotes(self, tickers: Iterable[str]) -> Dict[str, StockQuote]: ...


class OptionsProvider(Protocol):
    def get_expirations(self, ticker: str) -> List[OptionExpiration]: ...

    def get_chain(self, ticker: str, expiration: str, with_greeks: bool = True) -> List[OptionContract]: ...


class BaseClient:
    """Base functionality for API client implementations."""

    def __init__(self, name: str, extra_context: Mapping[str, Any] | None = None) -> None:
        self.name = name
        self._context = dict(extra_context or {})

    def _log(self, message: str, **kwargs: Any) -> None:
        """Convenience logger hook."""

        logger.bind(client=self.name, **self._context, **kwargs).debug(message)
