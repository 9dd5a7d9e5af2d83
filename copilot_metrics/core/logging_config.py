"""
Logging setup for the ingestion runner.

Console output is human-readable by default; `--json-logs` switches it to one
JSON object per line for container log collectors. A log file, when given,
is always JSON.

Usage:
    from copilot_metrics.core.logging_config import get_logger

    logger = get_logger(__name__)
    logger.info("Ingesting scope", extra={"extra_fields": {"scope_id": "acme"}})
"""

import json
import logging
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

SERVICE_NAME = "copilot-metrics"

# Library loggers that are chatty at INFO/DEBUG
QUIET_LOGGERS = ("httpx", "httpcore", "hpack", "botocore", "boto3", "urllib3")

# Attributes set by utils.error_handling
ERROR_ATTRIBUTES = ("error_type", "exception_class", "context")


class JSONFormatter(logging.Formatter):
    """One JSON document per record, with structured fields merged in."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=UTC)
        log_data: dict[str, Any] = {
            "timestamp": created.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "service": SERVICE_NAME,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for attribute in ERROR_ATTRIBUTES:
            if hasattr(record, attribute):
                log_data[attribute] = getattr(record, attribute)

        if hasattr(record, "extra_fields"):
            log_data.update(record.extra_fields)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class ContextFormatter(logging.Formatter):
    """Console formatter; colours the level name when writing to a terminal."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, *args, use_color: bool = False, **kwargs):
        super().__init__(*args, **kwargs)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        if self.use_color and record.levelname in self.COLORS:
            record = logging.makeLogRecord(record.__dict__)
            record.levelname = f"{self.COLORS[record.levelname]}{record.levelname}{self.RESET}"
        return super().format(record)


def setup_logging(level: str = "INFO", log_file: Path | None = None, json_output: bool = False) -> None:
    """
    Configure the root logger for one ingestion run.

    Replaces any handlers already installed, so calling it twice is safe.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional JSON log file (parent directories are created)
        json_output: Emit JSON on stdout instead of the console format
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    if json_output:
        console_handler.setFormatter(JSONFormatter())
    else:
        console_handler.setFormatter(
            ContextFormatter(
                fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
                use_color=sys.stdout.isatty(),
            )
        )
    root_logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_with_context(logger: logging.Logger, level: str, message: str, **context: Any) -> None:
    """
    Log `message` with `context` as structured fields.

    Example:
        log_with_context(logger, "info", "Scope ingested", scope_id="acme", records_written=28)
    """
    getattr(logger, level.lower())(message, extra={"extra_fields": context})
