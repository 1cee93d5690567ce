"""Client adapters for external market data and reasoning providers."""

from rally_radar.clients.alpaca_client import AlpacaQuoteClient
from rally_radar.clients.base import (
    APIClientError,
    OptionContract,
    OptionExpiration,
    OptionsProvider,
    QuoteProvider,
    ReasoningService,
    StockQuote,
)
from rally_radar.clients.reasoning_client import ReasoningClient, ReasoningServiceError
from rally_radar.clients.tradier_client import TradierClient

__all__ = [
    "APIClientError",
    "AlpacaQuoteClient",
    "OptionContract",
    "OptionExpiration",
    "OptionsProvider",
    "QuoteProvider",
    "ReasoningClient",
    "ReasoningService",
    "ReasoningServiceError",
    "StockQuote",
    "TradierClient",
]
