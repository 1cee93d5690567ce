"""Persistence adapters."""

from rally_radar.data.prediction_store import PredictionRepository, PredictionStore
from rally_radar.data.seed import HISTORICAL_RALLIES, seed_historical_rallies

__all__ = ["HISTORICAL_RALLIES", "PredictionRepository", "PredictionStore", "seed_historical_rallies"]
