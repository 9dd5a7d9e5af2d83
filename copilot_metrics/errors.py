"""
Ingestion error taxonomy.

ConfigurationError lives in copilot_metrics.secure_config and is the only
error that aborts a whole cycle. Everything here is scoped to one scope or
one record.
"""


class IngestionError(Exception):
    """Base class for per-scope and per-record ingestion failures."""

    pass


class ApiError(IngestionError):
    """
    Non-2xx response or transport failure from the metrics API.

    Attributes:
        status_code: HTTP status, or None for transport failures
        scope_id: Identifier of the scope being fetched
    """

    def __init__(self, message: str, status_code: int | None = None, scope_id: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.scope_id = scope_id

    def __str__(self) -> str:
        status = self.status_code if self.status_code is not None else "transport"
        return f"{self.args[0]} (status={status}, scope={self.scope_id})"


class MalformedRecordError(IngestionError):
    """A single raw record could not be parsed (missing or invalid date, bad shape)."""

    pass


class StoreWriteError(IngestionError):
    """
    Persisting one record failed.

    Attributes:
        record_id: Composite key of the record that failed
    """

    def __init__(self, message: str, record_id: str | None = None):
        super().__init__(message)
        self.record_id = record_id


class StoreQueryError(IngestionError):
    """A store query failed (distinct from a query that matched nothing)."""

    pass
