"""
Ingestion Cycle Orchestrator

Runs one ingestion cycle: resolve scopes, fetch (or synthesize) payloads,
aggregate, store. Per-scope work runs concurrently with bounded parallelism;
a failing scope is logged and reported without affecting the others.

Phases:
    1. usage: every resolved scope
    2. seats: top-level scopes only (no seat listing exists for teams),
       when seat ingestion is enabled at cycle start
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

from copilot_metrics.aggregator import aggregate_seats, aggregate_usage
from copilot_metrics.collectors.github_rest_client import GitHubCopilotRESTClient
from copilot_metrics.collectors.sample_data import sample_seats, sample_usage_days
from copilot_metrics.collectors.scope_resolver import resolve_scopes
from copilot_metrics.core import get_logger, log_with_context
from copilot_metrics.core.cycle_metrics import track_cycle_performance
from copilot_metrics.domain.scope import Scope, is_top_level, scope_id, scope_label
from copilot_metrics.errors import StoreWriteError
from copilot_metrics.secure_config import ConfigurationError, IngestionConfig
from copilot_metrics.storage.base import MetricsRecord, MetricsStore
from copilot_metrics.utils.datetime_utils import utc_now
from copilot_metrics.utils.error_handling import log_and_continue, log_and_raise

logger = get_logger(__name__)

USAGE_PHASE = "usage"
SEATS_PHASE = "seats"


@dataclass
class ScopeResult:
    """Outcome of one (scope, phase) unit of work."""

    scope: Scope
    phase: str
    records_written: int = 0
    records_failed: int = 0
    error: str | None = None
    skipped: bool = False

    @property
    def succeeded(self) -> bool:
        return self.error is None and not self.skipped


@dataclass
class CycleReport:
    """
    Summary of one ingestion cycle.

    Attributes:
        results: One entry per (scope, phase), usage phase first
        metrics: Cycle tracker summary (duration, API calls, counts)
    """

    results: list[ScopeResult] = field(default_factory=list)
    metrics: dict[str, Any] = field(default_factory=dict)

    @property
    def failed(self) -> list[ScopeResult]:
        return [result for result in self.results if result.error is not None]

    @property
    def skipped(self) -> list[ScopeResult]:
        return [result for result in self.results if result.skipped]

    @property
    def records_written(self) -> int:
        return sum(result.records_written for result in self.results)

    @property
    def records_failed(self) -> int:
        return sum(result.records_failed for result in self.results)


class IngestionOrchestrator:
    """
    Orchestrates one ingestion cycle over all configured scopes.

    Args:
        config: Validated ingestion configuration
        store: Opened metrics store
        client: API client (may be None when config.use_test_data is set)
        history_file: Optional JSON file cycle metrics are appended to
        clock: Source of the run timestamp (UTC)
    """

    CYCLE_NAME = "copilot-ingestion"

    def __init__(
        self,
        config: IngestionConfig,
        store: MetricsStore,
        client: GitHubCopilotRESTClient | None = None,
        history_file: Path | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.config = config
        self.store = store
        self.client = client
        self.history_file = history_file
        self.clock = clock

    async def run_once(self, cancel_event: asyncio.Event | None = None) -> CycleReport:
        """
        Run exactly one ingestion cycle.

        Once `cancel_event` is set no new scope starts; scopes already in
        flight complete and the rest are reported as skipped.

        Args:
            cancel_event: Optional cooperative cancellation signal

        Returns:
            CycleReport with per-scope results

        Raises:
            ConfigurationError: If scopes cannot be resolved or no API client is available
        """
        with track_cycle_performance(self.CYCLE_NAME, self.history_file) as tracker:
            try:
                scopes = resolve_scopes(self.config)
            except ConfigurationError as e:
                log_and_raise(logger, e, context={"scope_kind": self.config.scope_kind}, error_type="Scope resolution")
            if self.client is None and not self.config.use_test_data:
                raise ConfigurationError("An API client is required unless USE_TEST_DATA is enabled")

            seats_enabled = self.config.enable_seats_ingestion
            last_update = self.clock()
            semaphore = asyncio.Semaphore(self.config.max_concurrency)

            logger.info(
                f"Starting ingestion cycle for {len(scopes)} scopes "
                f"(seats {'enabled' if seats_enabled else 'disabled'}, test data {self.config.use_test_data})"
            )

            results = list(
                await asyncio.gather(
                    *(self._run_scope(semaphore, cancel_event, scope, USAGE_PHASE, last_update) for scope in scopes)
                )
            )

            if seats_enabled:
                results.extend(
                    await asyncio.gather(
                        *(
                            self._run_scope(semaphore, cancel_event, scope, SEATS_PHASE, last_update)
                            for scope in scopes
                            if is_top_level(scope)
                        )
                    )
                )
            else:
                logger.info("Seat ingestion is disabled")

            for result in results:
                tracker.record_scope_result(result.succeeded, skipped=result.skipped)
                tracker.record_writes(result.records_written, result.records_failed)

        return CycleReport(results=results, metrics=tracker.to_dict())

    async def _run_scope(
        self,
        semaphore: asyncio.Semaphore,
        cancel_event: asyncio.Event | None,
        scope: Scope,
        phase: str,
        last_update: datetime,
    ) -> ScopeResult:
        """Run one (scope, phase) unit, converting any non-fatal failure into a result."""
        async with semaphore:
            if cancel_event is not None and cancel_event.is_set():
                logger.info(f"Cycle cancelled, skipping {phase} for {scope_label(scope)}")
                return ScopeResult(scope=scope, phase=phase, skipped=True)

            try:
                if phase == USAGE_PHASE:
                    written, failed = await self._ingest_usage(scope, last_update)
                else:
                    written, failed = await self._ingest_seats(scope, last_update)
            except ConfigurationError:
                raise
            except Exception as e:
                logger.error(
                    f"[FAILED] {phase} ingestion for {scope_label(scope)}: {e}",
                    exc_info=True,
                    extra={"extra_fields": {"scope_id": scope_id(scope), "phase": phase}},
                )
                return ScopeResult(scope=scope, phase=phase, error=str(e))

        log_with_context(
            logger,
            "info",
            f"[SUCCESS] {phase} ingestion for {scope_label(scope)}",
            scope_id=scope_id(scope),
            phase=phase,
            records_written=written,
            records_failed=failed,
        )
        return ScopeResult(scope=scope, phase=phase, records_written=written, records_failed=failed)

    def _since(self, last_update: datetime) -> str | None:
        if self.config.lookback_days is None:
            return None
        return (last_update.date() - timedelta(days=self.config.lookback_days)).isoformat()

    async def _ingest_usage(self, scope: Scope, last_update: datetime) -> tuple[int, int]:
        if self.config.use_test_data:
            raw_days = sample_usage_days(scope, end=last_update.date())
        else:
            assert self.client is not None
            raw_days = await self.client.fetch_usage_metrics(scope, since=self._since(last_update))

        records = aggregate_usage(raw_days, scope, last_update)
        return await self._store_records(records)

    async def _ingest_seats(self, scope: Scope, last_update: datetime) -> tuple[int, int]:
        if self.config.use_test_data:
            payload = sample_seats(scope, as_of=last_update)
        else:
            assert self.client is not None
            payload = await self.client.fetch_seats(scope)

        record = aggregate_seats(payload, scope, as_of=last_update, last_update=last_update)
        return await self._store_records([record])

    async def _store_records(self, records: list[MetricsRecord]) -> tuple[int, int]:
        """Upsert records one by one in a worker thread; a failed write does not stop the rest."""
        written = 0
        failed = 0
        for record in records:
            try:
                await asyncio.to_thread(self.store.upsert, record)
                written += 1
            except StoreWriteError as e:
                log_and_continue(logger, e, context={"record_id": e.record_id}, error_type="Store write")
                failed += 1
        return written, failed
