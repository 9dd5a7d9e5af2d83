"""
SQLite metrics store (local development and single-host deployments)

Tables:
    metrics_history(id, date, enterprise, organization, team, data, last_update)
    seats_history(id, date, enterprise, organization, team, seats, total_seats, last_update)

`data` and `seats` hold JSON text; `last_update` holds fixed-width UTC
timestamps so SQL string comparison is chronological.
"""

import json
import sqlite3
import threading
from datetime import date
from pathlib import Path
from typing import Any

from copilot_metrics.core import get_logger
from copilot_metrics.domain.scope import scope_columns, scope_from_columns
from copilot_metrics.domain.seats import Seat, SeatRecord
from copilot_metrics.domain.usage import UsageMetricRecord
from copilot_metrics.errors import MalformedRecordError, StoreQueryError, StoreWriteError
from copilot_metrics.storage.base import MetricsRecord, MetricsStore, QueryFilter, as_iso_date
from copilot_metrics.utils.datetime_utils import format_store_timestamp, parse_store_timestamp
from copilot_metrics.utils.error_handling import log_and_continue

logger = get_logger(__name__)

SCHEMA = """
    CREATE TABLE IF NOT EXISTS metrics_history (
        id           TEXT PRIMARY KEY,
        date         TEXT NOT NULL,
        enterprise   TEXT,
        organization TEXT,
        team         TEXT,
        data         TEXT NOT NULL,
        last_update  TEXT NOT NULL
    );

    CREATE INDEX IF NOT EXISTS idx_metrics_history_date ON metrics_history (date);

    CREATE TABLE IF NOT EXISTS seats_history (
        id           TEXT PRIMARY KEY,
        date         TEXT NOT NULL,
        enterprise   TEXT,
        organization TEXT,
        team         TEXT,
        seats        TEXT NOT NULL,
        total_seats  INTEGER NOT NULL,
        last_update  TEXT NOT NULL
    );

    CREATE INDEX IF NOT EXISTS idx_seats_history_date ON seats_history (date);
"""

UPSERT_METRICS = """
    INSERT INTO metrics_history (id, date, enterprise, organization, team, data, last_update)
    VALUES (:id, :date, :enterprise, :organization, :team, :data, :last_update)
    ON CONFLICT(id) DO UPDATE SET
        date = excluded.date,
        enterprise = excluded.enterprise,
        organization = excluded.organization,
        team = excluded.team,
        data = excluded.data,
        last_update = excluded.last_update
    WHERE excluded.last_update >= metrics_history.last_update
"""

UPSERT_SEATS = """
    INSERT INTO seats_history (id, date, enterprise, organization, team, seats, total_seats, last_update)
    VALUES (:id, :date, :enterprise, :organization, :team, :seats, :total_seats, :last_update)
    ON CONFLICT(id) DO UPDATE SET
        date = excluded.date,
        enterprise = excluded.enterprise,
        organization = excluded.organization,
        team = excluded.team,
        seats = excluded.seats,
        total_seats = excluded.total_seats,
        last_update = excluded.last_update
    WHERE excluded.last_update >= seats_history.last_update
"""


def _filter_clause(filters: QueryFilter | None) -> tuple[str, list[str]]:
    """AND-joined column conditions for the non-empty filter fields."""
    conditions = (filters or QueryFilter()).conditions()
    clause = "".join(f" AND {column} = ?" for column in conditions)
    return clause, list(conditions.values())


class SqliteMetricsStore(MetricsStore):
    """
    File-backed store on a single shared SQLite connection.

    The connection is opened with check_same_thread=False so worker threads
    (asyncio.to_thread) can use it; every statement runs under one lock.
    """

    def __init__(self, db_path: str | Path):
        self.db_path = str(db_path)
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()

    def open(self) -> None:
        if self._conn is not None:
            return

        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        with self._lock:
            self._conn.executescript(SCHEMA)
            self._conn.commit()
        logger.info(f"Opened SQLite metrics store at {self.db_path}")

    def close(self) -> None:
        if self._conn is not None:
            with self._lock:
                self._conn.close()
            self._conn = None

    @property
    def connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("Store is not open. Call open() or use the store as a context manager")
        return self._conn

    def upsert(self, record: MetricsRecord) -> None:
        if isinstance(record, UsageMetricRecord):
            statement = UPSERT_METRICS
            params: dict[str, Any] = {"data": json.dumps(record.to_dict())}
        elif isinstance(record, SeatRecord):
            statement = UPSERT_SEATS
            params = {"seats": json.dumps(record.seats_payload()), "total_seats": record.total_seats}
        else:
            raise TypeError(f"Unsupported record type: {type(record).__name__}")

        params.update(
            id=record.id,
            date=record.date,
            last_update=format_store_timestamp(record.last_update),
            **scope_columns(record.scope),
        )

        try:
            with self._lock:
                self.connection.execute(statement, params)
                self.connection.commit()
        except sqlite3.Error as e:
            raise StoreWriteError(f"SQLite upsert failed for {record.id}: {e}", record_id=record.id) from e

    def _fetch(self, sql: str, params: list[Any]) -> list[sqlite3.Row]:
        try:
            with self._lock:
                return self.connection.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise StoreQueryError(f"SQLite query failed: {e}") from e

    def query_by_date_range(
        self, start: date | str, end: date | str, filters: QueryFilter | None = None
    ) -> list[UsageMetricRecord]:
        clause, values = _filter_clause(filters)
        rows = self._fetch(
            "SELECT id, date, enterprise, organization, team, data, last_update FROM metrics_history "
            f"WHERE date BETWEEN ? AND ?{clause} ORDER BY date, id",
            [as_iso_date(start), as_iso_date(end), *values],
        )

        records = []
        for row in rows:
            try:
                scope = scope_from_columns(row["enterprise"], row["organization"], row["team"])
                records.append(
                    UsageMetricRecord.from_dict(json.loads(row["data"]), scope, parse_store_timestamp(row["last_update"]))
                )
            except (ValueError, KeyError) as e:
                log_and_continue(logger, e, context={"record_id": row["id"]}, error_type="Stored usage record decoding")
        return records

    def query_by_date(self, day: date | str, filters: QueryFilter | None = None) -> SeatRecord | None:
        clause, values = _filter_clause(filters)
        rows = self._fetch(
            "SELECT id, date, enterprise, organization, team, seats, last_update FROM seats_history "
            f"WHERE date = ?{clause} ORDER BY last_update DESC LIMIT 1",
            [as_iso_date(day), *values],
        )
        if not rows:
            return None

        row = rows[0]
        try:
            seats = [Seat.from_dict(item) for item in json.loads(row["seats"])]
            return SeatRecord(
                date=row["date"],
                scope=scope_from_columns(row["enterprise"], row["organization"], row["team"]),
                seats=seats,
                last_update=parse_store_timestamp(row["last_update"]),
            )
        except (ValueError, MalformedRecordError) as e:
            raise StoreQueryError(f"Stored seat record {row['id']} is unreadable: {e}") from e
