"""Settings tests."""

import pytest
from pydantic import ValidationError

from rally_radar.settings import Settings


def test_settings_parses_priority_sectors(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ANTHROPIC_API_KEY", "anthropic")
    monkeypatch.setenv("TRADIER_API_KEY", "tradier")
    monkeypatch.setenv("PRIORITY_SECTORS", '["Quantum Computing", " Nuclear Energy ", ""]')

    settings = Settings()

    assert settings.priority_sectors == ["Quantum Computing", "Nuclear Energy"]
    assert settings.tradier_api_key == "tradier"


def test_settings_parses_comma_separated_sectors(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PRIORITY_SECTORS", "Quantum Computing, Nuclear Energy,,")

    settings = Settings(_env_file=None)

    assert settings.priority_sectors == ["Quantum Computing", "Nuclear Energy"]


def test_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("QUOTE_PROVIDER", "QUOTE_BATCH_SIZE", "PREDICTION_DB_PATH", "BACKTEST_INTERVAL_SECONDS"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)

    assert settings.quote_provider == "tradier"
    assert settings.quote_batch_size == 10
    assert settings.prediction_db_path == "data/predictions.duckdb"
    assert settings.backtest_interval_seconds == 3600


def test_settings_normalizes_quote_provider(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("QUOTE_PROVIDER", " Alpaca ")

    assert Settings().quote_provider == "alpaca"


def test_settings_rejects_unknown_quote_provider(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("QUOTE_PROVIDER", "bloomberg")

    with pytest.raises(ValidationError):
        Settings()
