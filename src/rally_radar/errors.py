"""Typed failure taxonomy shared by the forecasting, backtest and options layers."""

from __future__ import annotations

from enum import Enum


class FailureKind(str, Enum):
    """Why an operation produced a degraded result."""

    INSUFFICIENT_DATA = "insufficient_data"
    UPSTREAM_FAILURE = "upstream_failure"
    VALIDATION_REJECTED = "validation_rejected"
    EVALUATION_ERROR = "evaluation_error"


class RallyRadarError(Exception):
    """Base error carrying a FailureKind so callers can branch on cause."""

    kind: FailureKind = FailureKind.UPSTREAM_FAILURE

    def __init__(self, message: str, *, kind: FailureKind | None = None) -> None:
        super().__init__(message)
        if kind is not None:
            self.kind = kind
