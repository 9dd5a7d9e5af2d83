"""
Metrics store contract

Defines the interface shared by the SQLite (local/dev) and DynamoDB
(production) stores, plus the scope filter used by queries.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date

from copilot_metrics.domain.scope import Scope, scope_columns
from copilot_metrics.domain.seats import SeatRecord
from copilot_metrics.domain.usage import UsageMetricRecord

MetricsRecord = UsageMetricRecord | SeatRecord


@dataclass(frozen=True)
class QueryFilter:
    """
    Scope filter for store queries. Non-empty fields are ANDed; an empty
    filter matches every scope.
    """

    enterprise: str | None = None
    organization: str | None = None
    team: str | None = None

    @classmethod
    def from_scope(cls, scope: Scope) -> "QueryFilter":
        """
        Filter on the columns of `scope`.

        Unset columns are not constrained, so a top-level scope also matches
        the team records beneath it: from_scope(Organization("acme")) returns
        both organization-level and team-level acme records.
        """
        return cls(**scope_columns(scope))

    def conditions(self) -> dict[str, str]:
        """Non-empty filter fields as {column: value}."""
        return {
            column: value
            for column, value in (
                ("enterprise", self.enterprise),
                ("organization", self.organization),
                ("team", self.team),
            )
            if value
        }


def as_iso_date(value: date | str) -> str:
    """Normalize a query bound to "YYYY-MM-DD"."""
    if isinstance(value, date):
        return value.isoformat()
    return date.fromisoformat(value).isoformat()


class MetricsStore(ABC):
    """
    Date-indexed store of usage and seat records.

    Lifecycle is explicit: open() before use, close() when done (or use the
    store as a context manager).

    Write semantics:
        upsert() replaces the whole record stored under the record's key. A
        write whose last_update is older than the stored record's is ignored,
        so the most recent last_update always survives.

    Subclasses must implement:
    - open() / close()
    - upsert(): write-or-replace one usage or seat record
    - query_by_date_range(): usage records in an inclusive date range
    - query_by_date(): latest seat snapshot for one date
    """

    @abstractmethod
    def open(self) -> None:
        """Acquire connections and ensure tables exist."""

    @abstractmethod
    def close(self) -> None:
        """Release connections."""

    def __enter__(self) -> "MetricsStore":
        self.open()
        return self

    def __exit__(self, *args) -> None:
        self.close()

    @abstractmethod
    def upsert(self, record: MetricsRecord) -> None:
        """
        Write or replace one record by key.

        Raises:
            StoreWriteError: If the write fails
        """

    @abstractmethod
    def query_by_date_range(
        self, start: date | str, end: date | str, filters: QueryFilter | None = None
    ) -> list[UsageMetricRecord]:
        """
        Usage records with start <= date <= end matching `filters`, sorted by date.

        Raises:
            StoreQueryError: If the backend query fails
        """

    @abstractmethod
    def query_by_date(self, day: date | str, filters: QueryFilter | None = None) -> SeatRecord | None:
        """
        Latest seat snapshot for `day` matching `filters`, or None.

        Raises:
            StoreQueryError: If the backend query fails
        """
