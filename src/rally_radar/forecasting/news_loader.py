"""Helpers to load NewsSignal objects from ingestion-layer JSON exports."""

from __future__ import annotations

from pathlib import Path
from typing import Any, List

import orjson

from rally_radar.forecasting.base import NewsSignal


def news_from_payload(payload: Any) -> List[NewsSignal]:
    if isinstance(payload, dict):
        payload = payload.get("articles") or payload.get("news") or []
    if not isinstance(payload, list):
        return []
    return [NewsSignal.from_payload(item) for item in payload if isinstance(item, dict)]


def load_news_file(path: str | Path) -> List[NewsSignal]:
    payload = orjson.loads(Path(path).read_bytes())
    return news_from_payload(payload)
