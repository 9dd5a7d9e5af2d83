"""
Usage and seat aggregation

Pure transformations (no I/O) from raw provider payloads to domain records:
    - build_usage_record(): one raw day -> UsageMetricRecord
    - aggregate_usage(): a batch of raw days -> records sorted by date
    - aggregate_seats(): a seat listing -> SeatRecord

Usage:
    from copilot_metrics.aggregator import aggregate_usage

    records = aggregate_usage(raw_days, Organization("acme"), last_update=utc_now())
"""

from datetime import datetime
from typing import Any

from copilot_metrics.core import get_logger
from copilot_metrics.domain.scope import Scope, scope_id, scope_label
from copilot_metrics.domain.seats import Seat, SeatRecord
from copilot_metrics.domain.usage import Breakdown, RawUsageDay, UsageMetricRecord
from copilot_metrics.errors import MalformedRecordError
from copilot_metrics.utils.datetime_utils import month_label, parse_calendar_date, week_label
from copilot_metrics.utils.error_handling import log_and_continue

logger = get_logger(__name__)


def flatten_breakdown(day: RawUsageDay) -> list[Breakdown]:
    """
    Flatten completions editors -> models -> languages into breakdown rows.

    Args:
        day: Parsed raw day

    Returns:
        One Breakdown per (editor, model, language), in payload order
    """
    rows = []
    for editor in day.code_completions.editors:
        for model in editor.models:
            for language in model.languages:
                rows.append(
                    Breakdown(
                        language=language.name,
                        editor=editor.name,
                        model=model.name,
                        suggestions_count=language.total_code_suggestions,
                        acceptances_count=language.total_code_acceptances,
                        lines_suggested=language.total_code_lines_suggested,
                        lines_accepted=language.total_code_lines_accepted,
                        active_users=language.total_engaged_users,
                    )
                )
    return rows


def build_usage_record(raw: dict[str, Any], scope: Scope, last_update: datetime) -> UsageMetricRecord | None:
    """
    Transform one raw daily payload into a UsageMetricRecord.

    Args:
        raw: Provider payload for one day
        scope: Scope the payload was fetched for
        last_update: Timestamp of the current ingestion run

    Returns:
        UsageMetricRecord, or None if the payload carries no date

    Raises:
        MalformedRecordError: If the date is present but not a valid calendar date
    """
    day = RawUsageDay.from_dict(raw)
    if not day.date:
        return None

    try:
        calendar_day = parse_calendar_date(day.date)
    except ValueError as e:
        raise MalformedRecordError(f"Invalid record date {day.date!r}") from e
    if calendar_day is None:
        return None

    chat_models = day.ide_chat.models() + day.dotcom_chat.models

    return UsageMetricRecord(
        date=calendar_day.isoformat(),
        scope=scope,
        raw=day.raw,
        breakdown=flatten_breakdown(day),
        week_label=week_label(calendar_day),
        month_label=month_label(calendar_day),
        last_update=last_update,
        total_ide_engaged_users=day.code_completions.total_engaged_users,
        total_chat_engaged_users=day.ide_chat.total_engaged_users + day.dotcom_chat.total_engaged_users,
        total_chats=sum(model.total_chats for model in chat_models),
        total_chat_insertion_events=sum(model.total_chat_insertion_events for model in chat_models),
        total_chat_copy_events=sum(model.total_chat_copy_events for model in chat_models),
    )


def aggregate_usage(raw_days: list[Any], scope: Scope, last_update: datetime) -> list[UsageMetricRecord]:
    """
    Transform a batch of raw daily payloads.

    Payloads without a date are dropped; payloads with an invalid date are
    logged and dropped. Neither affects the rest of the batch.

    Args:
        raw_days: Provider payloads (typically one per day)
        scope: Scope the payloads were fetched for
        last_update: Timestamp of the current ingestion run

    Returns:
        Records sorted by date ascending
    """
    records = []
    dropped = 0

    for index, raw in enumerate(raw_days):
        try:
            record = build_usage_record(raw, scope, last_update)
        except MalformedRecordError as e:
            log_and_continue(
                logger,
                e,
                context={"scope": scope_label(scope), "index": index},
                error_type="Usage record parsing",
            )
            dropped += 1
            continue

        if record is None:
            dropped += 1
            continue
        records.append(record)

    if dropped:
        logger.info(f"Dropped {dropped} of {len(raw_days)} usage days for {scope_label(scope)}")

    return sorted(records, key=lambda record: record.date)


def aggregate_seats(payload: dict[str, Any], scope: Scope, as_of: datetime, last_update: datetime) -> SeatRecord:
    """
    Transform a seat listing into the scope's seat snapshot for `as_of`.

    Seat entries without an assignee login are logged and dropped. A
    mismatch between the provider's total_seats and the collected seats is
    logged as a warning; total_seats on the record is always len(seats).

    Args:
        payload: {"total_seats": int, "seats": [...]}
        scope: Top-level scope the listing was fetched for
        as_of: Snapshot time (its calendar date becomes the record date)
        last_update: Timestamp of the current ingestion run

    Returns:
        SeatRecord
    """
    raw_seats = payload.get("seats") or []
    seats = []

    for index, raw_seat in enumerate(raw_seats):
        try:
            seats.append(Seat.from_dict(raw_seat))
        except MalformedRecordError as e:
            log_and_continue(
                logger,
                e,
                context={"scope": scope_label(scope), "index": index},
                error_type="Seat parsing",
            )

    reported_total = payload.get("total_seats")
    if isinstance(reported_total, int) and reported_total != len(seats):
        logger.warning(
            f"Seat count mismatch for {scope_label(scope)}: provider reported {reported_total}, collected {len(seats)}",
            extra={"extra_fields": {"scope_id": scope_id(scope), "reported": reported_total, "collected": len(seats)}},
        )

    return SeatRecord(date=as_of.date().isoformat(), scope=scope, seats=seats, last_update=last_update)
