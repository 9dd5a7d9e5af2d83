"""
Structured logging for caught exceptions.

Two outcomes exist in an ingestion cycle: the failure is local to one record
or scope (log it, keep going), or it makes the cycle pointless (log it, let it
propagate). Both attach the same structured fields so the JSON logs can be
filtered by `error_type` and `exception_class`.
"""

import logging
from typing import Any, NoReturn


def _error_extra(error: Exception, context: dict[str, Any], error_type: str) -> dict[str, Any]:
    return {
        "error_type": error_type,
        "exception_class": type(error).__name__,
        "context": context,
    }


def log_and_continue(
    logger: logging.Logger,
    error: Exception,
    context: dict[str, Any],
    error_type: str = "Operation",
) -> None:
    """
    Log a recoverable failure at WARNING.

    The caller decides how to continue (skip the record, count the write as
    failed).

    Args:
        logger: Module logger
        error: The caught exception
        context: Identifiers of what failed (record_id, scope, index)
        error_type: Short description of the failed operation

    Example:
        try:
            seats.append(Seat.from_dict(raw_seat))
        except MalformedRecordError as e:
            log_and_continue(logger, e, context={"index": index}, error_type="Seat parsing")
    """
    logger.warning(f"{error_type} failed: {error}", extra=_error_extra(error, context, error_type))


def log_and_raise(
    logger: logging.Logger,
    error: Exception,
    context: dict[str, Any],
    error_type: str = "Operation",
) -> NoReturn:
    """
    Log a fatal failure at ERROR with traceback, then re-raise `error`.

    Must be called from inside the `except` block that caught `error`.
    """
    logger.error(
        f"{error_type} failed critically: {error}",
        exc_info=True,
        extra=_error_extra(error, context, error_type),
    )
    raise error
