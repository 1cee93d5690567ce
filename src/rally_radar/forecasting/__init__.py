"""Forecasting layer exports with lazy imports to avoid import cycles with the signal layer."""

from __future__ import annotations

from typing import Any

__all__ = ["ForecastConfig", "ForecastResult", "RallyForecaster", "load_news_file"]


def __getattr__(name: str) -> Any:
    if name in {"ForecastConfig", "ForecastResult", "RallyForecaster"}:
        from rally_radar.forecasting import orchestrator

        return getattr(orchestrator, name)
    if name == "load_news_file":
        from rally_radar.forecasting.news_loader import load_news_file

        return load_news_file
    raise AttributeError(f"module 'rally_radar.forecasting' has no attribute '{name}'")
