"""
Metrics Storage - date-indexed persistence for usage and seat records

Backends:
    - sqlite: SqliteMetricsStore (local/dev)
    - dynamodb: DynamoDBMetricsStore (production)

Usage:
    from copilot_metrics.storage import create_store

    with create_store(get_config().get_store_config()) as store:
        records = store.query_by_date_range("2024-05-01", "2024-05-31")
"""

from copilot_metrics.secure_config import ConfigurationError, StoreConfig

from .base import MetricsStore, QueryFilter
from .dynamodb_store import DynamoDBMetricsStore
from .sqlite_store import SqliteMetricsStore


def create_store(config: StoreConfig) -> MetricsStore:
    """
    Build the configured store (not yet opened).

    Raises:
        ConfigurationError: For an unknown backend
    """
    if config.backend == "sqlite":
        return SqliteMetricsStore(config.local_db_path)
    if config.backend == "dynamodb":
        return DynamoDBMetricsStore.from_config(config)
    raise ConfigurationError(f"Unknown store backend: {config.backend}")


__all__ = [
    "MetricsStore",
    "QueryFilter",
    "SqliteMetricsStore",
    "DynamoDBMetricsStore",
    "create_store",
]
