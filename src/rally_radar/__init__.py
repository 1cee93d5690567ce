"""RallyRadar package root exports with lazy imports to avoid heavy deps at import time."""

from __future__ import annotations

from typing import Any

__all__ = ["RallyPipeline", "Settings", "get_settings"]


def __getattr__(name: str) -> Any:
    if name == "RallyPipeline":
        from rally_radar.core.pipeline import RallyPipeline

        return RallyPipeline
    if name == "Settings":
        from rally_radar.settings import Settings

        return Settings
    if name == "get_settings":
        from rally_radar.settings import get_settings

        return get_settings
    raise AttributeError(f"module 'rally_radar' has no attribute '{name}'")
