"""
Seat domain models

Provides:
    - Seat: one assigned license seat
    - SeatRecord: the seat snapshot of one scope on one day
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

from copilot_metrics.domain.scope import Scope, record_key
from copilot_metrics.errors import MalformedRecordError
from copilot_metrics.utils.datetime_utils import parse_iso_timestamp

ACTIVE_WINDOW_DAYS = 30

# Provider seat fields kept in stored snapshots (the assignee object is reduced to its login)
PERSISTED_SEAT_FIELDS = ("created_at", "last_activity_at", "last_activity_editor", "plan_type")


def _optional_timestamp(value: Any) -> datetime | None:
    """Parse a seat timestamp; unparsable values are treated as absent."""
    if not isinstance(value, str):
        return None
    try:
        parsed = parse_iso_timestamp(value)
    except ValueError:
        return None
    if parsed is not None and parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


@dataclass
class Seat:
    """
    One assigned seat.

    Attributes:
        assignee_login: Login of the user holding the seat
        last_activity_at: Last recorded activity, None if never active
        created_at: When the seat was assigned
        raw: Provider seat payload
    """

    assignee_login: str
    last_activity_at: datetime | None = None
    created_at: datetime | None = None
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, payload: Any) -> "Seat":
        """
        Parse a provider seat entry.

        Raises:
            MalformedRecordError: If the entry has no assignee login
        """
        if not isinstance(payload, dict):
            raise MalformedRecordError(f"Seat entry must be an object, got {type(payload).__name__}")

        assignee = payload.get("assignee")
        login = assignee.get("login") if isinstance(assignee, dict) else None
        if not login:
            raise MalformedRecordError("Seat entry has no assignee login")

        return cls(
            assignee_login=login,
            last_activity_at=_optional_timestamp(payload.get("last_activity_at")),
            created_at=_optional_timestamp(payload.get("created_at")),
            raw=dict(payload),
        )

    def to_dict(self) -> dict[str, Any]:
        """
        Compact provider-shaped entry for storage.

        Keeps the assignee login and PERSISTED_SEAT_FIELDS; the full assignee
        user object (profile and API URLs) is dropped so large seat listings
        fit in one stored item. Seat.from_dict() reads the result back.
        """
        data: dict[str, Any] = {"assignee": {"login": self.assignee_login}}
        for name in PERSISTED_SEAT_FIELDS:
            data[name] = self.raw.get(name)
        if data["created_at"] is None and self.created_at is not None:
            data["created_at"] = self.created_at.isoformat()
        if data["last_activity_at"] is None and self.last_activity_at is not None:
            data["last_activity_at"] = self.last_activity_at.isoformat()
        return data

    def is_active(self, as_of: datetime, window_days: int = ACTIVE_WINDOW_DAYS) -> bool:
        if self.last_activity_at is None:
            return False
        return self.last_activity_at >= as_of - timedelta(days=window_days)


@dataclass
class SeatRecord:
    """
    Seat assignments of one scope captured on one day.

    Attributes:
        date: ISO calendar date of the snapshot
        scope: Scope the snapshot belongs to
        seats: Assigned seats
        last_update: Timestamp of the ingestion run that produced the snapshot
    """

    date: str
    scope: Scope
    seats: list[Seat]
    last_update: datetime

    @property
    def id(self) -> str:
        return record_key(self.date, self.scope)

    @property
    def total_seats(self) -> int:
        return len(self.seats)

    def active_seats(self, as_of: datetime, window_days: int = ACTIVE_WINDOW_DAYS) -> list[Seat]:
        """
        Seats with activity inside the trailing window ending at `as_of`.

        Args:
            as_of: End of the window (timezone-aware)
            window_days: Window length in days (default: 30)

        Returns:
            Seats whose last_activity_at falls inside the window
        """
        return [seat for seat in self.seats if seat.is_active(as_of, window_days)]

    def seats_payload(self) -> list[dict[str, Any]]:
        return [seat.to_dict() for seat in self.seats]
