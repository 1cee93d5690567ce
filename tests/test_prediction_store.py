"""DuckDB prediction store tests."""

from datetime import datetime, timezone

from rally_radar.data import HISTORICAL_RALLIES, PredictionStore, seed_historical_rallies
from rally_radar.forecasting.base import COMPLETED, PENDING, PredictionRecord, RallyPrediction


def make_record(sector="AI", tickers=("NVDA", "AMD")):
    return PredictionRecord(
        prediction=RallyPrediction(
            sector=sector,
            opportunity_type="call",
            direction="up",
            confidence=72,
            timeframe="2-3 weeks",
            recommended_stocks=list(tickers),
            early_signals=["12 news articles in 7 days"],
            reasoning="Demand is strong",
        ),
        start_date=datetime(2025, 1, 1, 15, 30, tzinfo=timezone.utc),
        initial_prices={"NVDA": 140.5, "AMD": 120.0},
    )


def test_insert_round_trips_prediction(tmp_path) -> None:
    store = PredictionStore(tmp_path / "predictions.duckdb")

    stored = store.insert(make_record())
    loaded = store.get(stored.id)

    assert stored.id is not None
    assert loaded is not None
    assert loaded.prediction == stored.prediction
    assert loaded.initial_prices == {"NVDA": 140.5, "AMD": 120.0}
    assert loaded.start_date == datetime(2025, 1, 1, 15, 30, tzinfo=timezone.utc)
    assert loaded.backtest_status == PENDING
    assert loaded.created_at is not None


def test_complete_is_conditional_on_pending(tmp_path) -> None:
    store = PredictionStore(tmp_path / "predictions.duckdb")
    first = store.insert(make_record())
    second = store.insert(make_record(sector="Energy"))

    assert store.complete(first.id, "success", "3.50%") is True
    assert store.complete(first.id, "failure", "-9.00%") is False

    completed = store.get(first.id)
    assert completed.backtest_status == COMPLETED
    assert completed.prediction_outcome == "success"
    assert completed.performance == "3.50%"
    assert [record.id for record in store.list_pending()] == [second.id]
    assert [record.id for record in store.list_all()] == [first.id, second.id]


def test_get_missing_returns_none(tmp_path) -> None:
    store = PredictionStore(tmp_path / "predictions.duckdb")

    assert store.get(999) is None


def test_seed_historical_rallies_only_once(tmp_path) -> None:
    store = PredictionStore(tmp_path / "predictions.duckdb")

    assert seed_historical_rallies(store) == len(HISTORICAL_RALLIES)
    assert seed_historical_rallies(store) == 0

    rallies = store.list_historical_rallies()
    assert [rally.sector for rally in rallies] == ["ai", "metals", "quantum"]
    assert rallies[0].performance["avgGain"] == "64%"
    assert "NVDA" in rallies[0].key_stocks
    assert rallies[1].peak_date is None
