"""
Ingestion Cycle Performance Tracking

Provides automatic performance and health tracking for ingestion cycles:
    - CycleMetricsTracker: Tracks metrics for a single cycle
    - track_cycle_performance(): Context manager for automatic tracking
    - get_current_tracker(): Access the active tracker from the REST client
"""

import json
import time
from collections.abc import Generator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from copilot_metrics.core.logging_config import get_logger

logger = get_logger(__name__)

# Global tracker instance for REST client access
_current_tracker: "CycleMetricsTracker | None" = None


class CycleMetricsTracker:
    """
    Tracks performance and health metrics for a single ingestion cycle.

    Attributes:
        cycle_name: Name of the cycle (e.g., "copilot-ingestion")
        start_time: Timestamp when tracker was started (None before start())
        execution_time_ms: Total execution time in milliseconds
        success: Whether the cycle completed
        api_call_count: Number of API requests made
        scopes_succeeded: Scope/phase pairs that completed
        scopes_failed: Scope/phase pairs that raised
        scopes_skipped: Scope/phase pairs skipped after cancellation
        records_written: Records upserted into the store
        records_failed: Records that failed to persist
        error_message: Error text if the cycle aborted
        error_type: Exception class name if the cycle aborted

    Example:
        >>> tracker = CycleMetricsTracker("copilot-ingestion")
        >>> tracker.start()
        >>> tracker.record_api_call()
        >>> tracker.end(success=True)
        >>> tracker.api_call_count
        1
    """

    def __init__(self, cycle_name: str):
        self.cycle_name = cycle_name
        self.start_time: float | None = None
        self.execution_time_ms: float = 0
        self.success: bool = False
        self.api_call_count: int = 0
        self.scopes_succeeded: int = 0
        self.scopes_failed: int = 0
        self.scopes_skipped: int = 0
        self.records_written: int = 0
        self.records_failed: int = 0
        self.error_message: str | None = None
        self.error_type: str | None = None

    def start(self) -> None:
        """Start tracking execution time."""
        self.start_time = time.time()
        logger.debug(f"Started tracking: {self.cycle_name}")

    def end(self, success: bool, error: Exception | None = None) -> None:
        """
        End tracking and calculate execution time.

        Args:
            success: Whether the cycle completed
            error: Exception if the cycle aborted
        """
        if self.start_time is not None:
            self.execution_time_ms = (time.time() - self.start_time) * 1000

        self.success = success

        if error:
            self.error_message = str(error)
            self.error_type = type(error).__name__

    def record_api_call(self) -> None:
        """Record an outbound API request (called by the REST client)."""
        self.api_call_count += 1

    def record_scope_result(self, succeeded: bool, skipped: bool = False) -> None:
        """Record the outcome of one scope/phase unit of work."""
        if skipped:
            self.scopes_skipped += 1
        elif succeeded:
            self.scopes_succeeded += 1
        else:
            self.scopes_failed += 1

    def record_writes(self, written: int, failed: int = 0) -> None:
        self.records_written += written
        self.records_failed += failed

    def to_dict(self) -> dict[str, Any]:
        """
        Convert metrics to dictionary for JSON serialization.

        Returns:
            Dictionary with all metric fields
        """
        return {
            "timestamp": datetime.now(UTC).isoformat(),
            "cycle_name": self.cycle_name,
            "execution_time_ms": round(self.execution_time_ms, 2),
            "success": self.success,
            "api_call_count": self.api_call_count,
            "scopes_succeeded": self.scopes_succeeded,
            "scopes_failed": self.scopes_failed,
            "scopes_skipped": self.scopes_skipped,
            "records_written": self.records_written,
            "records_failed": self.records_failed,
            "error_message": self.error_message,
            "error_type": self.error_type,
        }

    def save(self, history_file: Path, retention: int = 500) -> bool:
        """
        Append this cycle's metrics to a JSON history file.

        Keeps the most recent `retention` cycles and writes atomically
        (temp file + rename).

        Args:
            history_file: Path to the cycle history JSON file
            retention: Number of cycles to keep

        Returns:
            True if saved successfully, False on error
        """
        try:
            if history_file.exists():
                with history_file.open("r", encoding="utf-8") as f:
                    history = json.load(f)
            else:
                history = {"cycles": []}
                logger.info(f"Creating new cycle history file: {history_file}")

            history["cycles"].append(self.to_dict())
            history["cycles"] = history["cycles"][-retention:]

            history_file.parent.mkdir(parents=True, exist_ok=True)
            temp_file = history_file.with_suffix(".tmp")

            with temp_file.open("w", encoding="utf-8") as f:
                json.dump(history, f, indent=2, ensure_ascii=False)

            temp_file.replace(history_file)
            return True

        except (OSError, ValueError) as e:
            logger.error(
                "Failed to save cycle metrics",
                exc_info=True,
                extra={"extra_fields": {"cycle": self.cycle_name, "file": str(history_file), "error": str(e)}},
            )
            return False


def get_current_tracker() -> "CycleMetricsTracker | None":
    """
    Get the currently active tracker (for REST client use).

    Returns:
        Active tracker or None if no cycle is being tracked
    """
    return _current_tracker


@contextmanager
def track_cycle_performance(
    cycle_name: str, history_file: Path | None = None
) -> Generator["CycleMetricsTracker", None, None]:
    """
    Context manager for automatic cycle performance tracking.

    Args:
        cycle_name: Name of the cycle
        history_file: Optional JSON file the summary is appended to on exit

    Yields:
        CycleMetricsTracker instance for manual updates

    Example:
        >>> with track_cycle_performance("copilot-ingestion") as tracker:
        ...     tracker.record_writes(28)
    """
    global _current_tracker

    tracker = CycleMetricsTracker(cycle_name)
    _current_tracker = tracker
    tracker.start()

    try:
        yield tracker
        tracker.end(success=True)

        logger.info(
            f"Cycle {cycle_name} completed in {tracker.execution_time_ms:.0f}ms: "
            f"{tracker.scopes_succeeded} scopes ok, {tracker.scopes_failed} failed, "
            f"{tracker.scopes_skipped} skipped, {tracker.records_written} records written",
            extra={"extra_fields": tracker.to_dict()},
        )

    except Exception as e:
        tracker.end(success=False, error=e)

        logger.error(
            f"Cycle {cycle_name} aborted: {e}",
            exc_info=True,
            extra={"extra_fields": tracker.to_dict()},
        )
        raise

    finally:
        if history_file is not None:
            tracker.save(history_file)
        _current_tracker = None
