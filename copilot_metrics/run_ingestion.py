#!/usr/bin/env python3
"""
Copilot Metrics Ingestion Runner

Runs exactly one ingestion cycle and exits. Intended to be triggered by a
scheduler (cron, EventBridge, a Kubernetes CronJob).

Usage:
    python -m copilot_metrics.run_ingestion
    python -m copilot_metrics.run_ingestion --log-level DEBUG --json-logs

Exit codes:
    0 - the cycle completed (failed scopes are reported in the logs and the
        cycle history, not in the exit code)
    1 - configuration error (nothing was fetched)
"""

import argparse
import asyncio
import signal
import sys
from pathlib import Path

from copilot_metrics.collectors.credentials import resolve_github_token
from copilot_metrics.collectors.github_rest_client import get_github_rest_client
from copilot_metrics.core import get_config, get_logger, setup_logging
from copilot_metrics.domain.scope import scope_label
from copilot_metrics.ingestion.orchestrator import CycleReport, IngestionOrchestrator
from copilot_metrics.secure_config import ConfigurationError
from copilot_metrics.storage import create_store

logger = get_logger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Ingest GitHub Copilot usage and seat metrics (one cycle)")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (default: INFO)",
    )
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON logs on stdout")
    parser.add_argument("--log-file", type=Path, default=None, help="Also write JSON logs to this file")
    parser.add_argument(
        "--history-file",
        type=Path,
        default=None,
        help="Append the cycle summary to this JSON history file",
    )
    return parser.parse_args(argv)


def _install_cancel_handler(cancel_event: asyncio.Event) -> None:
    """Set `cancel_event` on SIGINT/SIGTERM so in-flight scopes can finish."""
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, cancel_event.set)
        except (NotImplementedError, RuntimeError):
            # Windows event loops do not support signal handlers
            logger.debug(f"Cannot install handler for {sig.name}")


def _log_summary(report: CycleReport) -> None:
    logger.info("=" * 60)
    logger.info("Ingestion Summary")
    logger.info("=" * 60)
    logger.info(f"Records written: {report.records_written} (failed: {report.records_failed})")
    for result in report.results:
        if result.skipped:
            status = "skipped"
        elif result.error:
            status = f"FAILED ({result.error})"
        else:
            status = f"{result.records_written} records"
        logger.info(f"  {result.phase:6s} {scope_label(result.scope):45s} {status}")
    logger.info("=" * 60)


async def run(args: argparse.Namespace) -> int:
    config = get_config()
    ingestion_config = config.get_ingestion_config()
    store_config = config.get_store_config()

    client = None
    if not ingestion_config.use_test_data:
        token = resolve_github_token(region=store_config.aws_region)
        client = get_github_rest_client(config.get_github_config(token))

    cancel_event = asyncio.Event()
    _install_cancel_handler(cancel_event)

    with create_store(store_config) as store:
        orchestrator = IngestionOrchestrator(ingestion_config, store, client=client, history_file=args.history_file)
        report = await orchestrator.run_once(cancel_event)

    _log_summary(report)
    if report.failed:
        logger.warning(f"Cycle completed with {len(report.failed)} failed scope phases")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(level=args.log_level, log_file=args.log_file, json_output=args.json_logs)

    try:
        return asyncio.run(run(args))
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
