"""Rule-derived sector signals and rally scoring."""

from rally_radar.signals.early_signals import (
    SectorSummary,
    build_sector_signal_map,
    detect_early_signals,
    extract_historical_patterns,
    momentum_trend,
    summarize_sector,
)
from rally_radar.signals.probability import calculate_rally_probability

__all__ = [
    "SectorSummary",
    "build_sector_signal_map",
    "calculate_rally_probability",
    "detect_early_signals",
    "extract_historical_patterns",
    "momentum_trend",
    "summarize_sector",
]
