"""DuckDB-backed repository for predictions and historical rally records."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional, Protocol, Sequence

import duckdb
import orjson
from loguru import logger

from rally_radar.forecasting.base import (
    COMPLETED,
    PENDING,
    HistoricalRally,
    PredictionRecord,
    RallyPrediction,
    parse_json_list,
    parse_json_object,
)


class PredictionRepository(Protocol):
    def insert(self, record: PredictionRecord) -> PredictionRecord: ...

    def get(self, record_id: int) -> Optional[PredictionRecord]: ...

    def list_pending(self) -> List[PredictionRecord]: ...

    def list_all(self) -> List[PredictionRecord]: ...

    def complete(self, record_id: int, outcome: str, performance: Optional[str]) -> bool: ...

    def insert_historical_rally(self, rally: HistoricalRally) -> int: ...

    def list_historical_rallies(self) -> List[HistoricalRally]: ...

    def count_historical_rallies(self) -> int: ...


def _to_db_time(value: Optional[datetime]) -> Optional[datetime]:
    # Stored as naive UTC.
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _from_db_time(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


def _dump(value: Any) -> str:
    return orjson.dumps(value, default=str).decode()


_PREDICTION_COLUMNS = (
    "id, sector, opportunity_type, direction, confidence, timeframe, early_signals, "
    "recommended_stocks, reasoning, entry_timing, exit_strategy, start_date, initial_prices, "
    "backtest_status, prediction_outcome, performance, created_at"
)


class PredictionStore:
    """Persist predictions and historical rallies in a DuckDB database."""

    def __init__(self, db_path: str | Path = "data/predictions.duckdb") -> None:
        self.db_path = Path(db_path)
        if str(db_path) != ":memory:":
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = duckdb.connect(str(db_path))
        self._ensure_tables()

    def close(self) -> None:
        self.conn.close()

    def _ensure_tables(self) -> None:
        self.conn.execute("CREATE SEQUENCE IF NOT EXISTS prediction_id_seq START 1")
        self.conn.execute("CREATE SEQUENCE IF NOT EXISTS rally_id_seq START 1")
        self.conn.execute(
            """
            CREATE TABLE IF NOT EXISTS predictions (
                id INTEGER PRIMARY KEY DEFAULT nextval('prediction_id_seq'),
                sector TEXT NOT NULL,
                opportunity_type TEXT NOT NULL,
                direction TEXT NOT NULL,
                confidence INTEGER NOT NULL,
                timeframe TEXT NOT NULL,
                early_signals TEXT,
                recommended_stocks TEXT,
                reasoning TEXT,
                entry_timing TEXT,
                exit_strategy TEXT,
                start_date TIMESTAMP NOT NULL,
                initial_prices TEXT,
                backtest_status TEXT NOT NULL DEFAULT 'pending',
                prediction_outcome TEXT,
                performance TEXT,
                created_at TIMESTAMP NOT NULL
            )
            """
        )
        self.conn.execute(
            """
            CREATE TABLE IF NOT EXISTS historical_rallies (
                id INTEGER PRIMARY KEY DEFAULT nextval('rally_id_seq'),
                sector TEXT NOT NULL,
                name TEXT NOT NULL,
                start_date TIMESTAMP,
                peak_date TIMESTAMP,
                description TEXT,
                catalysts TEXT,
                key_stocks TEXT,
                early_signals TEXT,
                performance TEXT,
                is_historical BOOLEAN NOT NULL DEFAULT TRUE
            )
            """
        )

    # ---------------------------------------------------------------- predictions

    def insert(self, record: PredictionRecord) -> PredictionRecord:
        """Insert one prediction, price snapshot included, in a single statement."""

        prediction = record.prediction
        created_at = record.created_at or datetime.now(timezone.utc)
        row = self.conn.execute(
            """
            INSERT INTO predictions (
                sector, opportunity_type, direction, confidence, timeframe, early_signals,
                recommended_stocks, reasoning, entry_timing, exit_strategy, start_date,
                initial_prices, backtest_status, prediction_outcome, performance, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            RETURNING id
            """,
            (
                prediction.sector,
                prediction.opportunity_type,
                prediction.direction,
                prediction.confidence,
                prediction.timeframe,
                _dump(prediction.early_signals),
                _dump(prediction.recommended_stocks),
                prediction.reasoning,
                prediction.entry_timing,
                prediction.exit_strategy,
                _to_db_time(record.start_date),
                _dump(record.initial_prices),
                record.backtest_status,
                record.prediction_outcome,
                record.performance,
                _to_db_time(created_at),
            ),
        ).fetchone()
        record_id = int(row[0])
        logger.debug("Inserted prediction", prediction_id=record_id, sector=prediction.sector)
        stored = record.with_id(record_id)
        stored.created_at = created_at
        return stored

    def _row_to_record(self, row: Sequence[Any]) -> PredictionRecord:
        (
            record_id, sector, opportunity_type, direction, confidence, timeframe, early_signals,
            recommended_stocks, reasoning, entry_timing, exit_strategy, start_date, initial_prices,
            backtest_status, prediction_outcome, performance, created_at,
        ) = row
        prices = {
            str(ticker): float(price)
            for ticker, price in parse_json_object(initial_prices).items()
            if price is not None
        }
        return PredictionRecord(
            prediction=RallyPrediction(
                sector=sector,
                opportunity_type=opportunity_type,
                direction=direction,
                confidence=int(confidence),
                timeframe=timeframe,
                recommended_stocks=parse_json_list(recommended_stocks),
                early_signals=parse_json_list(early_signals),
                reasoning=reasoning or "",
                entry_timing=entry_timing or "",
                exit_strategy=exit_strategy or "",
            ),
            start_date=_from_db_time(start_date),
            initial_prices=prices,
            backtest_status=backtest_status,
            prediction_outcome=prediction_outcome,
            performance=performance,
            id=int(record_id),
            created_at=_from_db_time(created_at),
        )

    def get(self, record_id: int) -> Optional[PredictionRecord]:
        row = self.conn.execute(
            f"SELECT {_PREDICTION_COLUMNS} FROM predictions WHERE id = ?", (record_id,)
        ).fetchone()
        return self._row_to_record(row) if row else None

    def list_pending(self) -> List[PredictionRecord]:
        rows = self.conn.execute(
            f"SELECT {_PREDICTION_COLUMNS} FROM predictions WHERE backtest_status = ? ORDER BY id",
            (PENDING,),
        ).fetchall()
        return [self._row_to_record(row) for row in rows]

    def list_all(self) -> List[PredictionRecord]:
        rows = self.conn.execute(f"SELECT {_PREDICTION_COLUMNS} FROM predictions ORDER BY id").fetchall()
        return [self._row_to_record(row) for row in rows]

    def complete(self, record_id: int, outcome: str, performance: Optional[str]) -> bool:
        """Move a pending record to completed; returns False if it was already completed."""

        rows = self.conn.execute(
            """
            UPDATE predictions
            SET backtest_status = ?, prediction_outcome = ?, performance = ?
            WHERE id = ? AND backtest_status = ?
            RETURNING id
            """,
            (COMPLETED, outcome, performance, record_id, PENDING),
        ).fetchall()
        return bool(rows)

    # ---------------------------------------------------------- historical rallies

    def insert_historical_rally(self, rally: HistoricalRally) -> int:
        row = self.conn.execute(
            """
            INSERT INTO historical_rallies (
                sector, name, start_date, peak_date, description, catalysts,
                key_stocks, early_signals, performance, is_historical
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            RETURNING id
            """,
            (
                rally.sector,
                rally.name,
                _to_db_time(rally.start_date),
                _to_db_time(rally.peak_date),
                rally.description,
                _dump(parse_json_list(rally.catalysts)),
                _dump(parse_json_list(rally.key_stocks)),
                _dump(parse_json_list(rally.early_signals)),
                _dump(parse_json_object(rally.performance)),
                rally.is_historical,
            ),
        ).fetchone()
        return int(row[0])

    def list_historical_rallies(self) -> List[HistoricalRally]:
        rows = self.conn.execute(
            """
            SELECT id, sector, name, start_date, peak_date, description, catalysts,
                   key_stocks, early_signals, performance, is_historical
            FROM historical_rallies
            WHERE is_historical
            ORDER BY id
            """
        ).fetchall()
        rallies: List[HistoricalRally] = []
        for row in rows:
            record_id, sector, name, start, peak, description, catalysts, stocks, signals, performance, historical = row
            rallies.append(
                HistoricalRally(
                    id=int(record_id),
                    sector=sector,
                    name=name,
                    start_date=_from_db_time(start),
                    peak_date=_from_db_time(peak),
                    description=description or "",
                    catalysts=parse_json_list(catalysts),
                    key_stocks=parse_json_list(stocks),
                    early_signals=parse_json_list(signals),
                    performance=parse_json_object(performance),
                    is_historical=bool(historical),
                )
            )
        return rallies

    def count_historical_rallies(self) -> int:
        return int(self.conn.execute("SELECT COUNT(*) FROM historical_rallies").fetchone()[0])

