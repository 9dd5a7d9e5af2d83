"""
Tests for seat domain models
"""

from datetime import UTC, datetime

import pytest

from copilot_metrics.domain.scope import Enterprise
from copilot_metrics.domain.seats import Seat, SeatRecord
from copilot_metrics.errors import MalformedRecordError


class TestSeat:
    """Tests for Seat parsing"""

    def test_from_dict(self):
        """Test parsing a complete seat entry"""
        seat = Seat.from_dict(
            {
                "assignee": {"login": "octocat"},
                "created_at": "2024-01-01T00:00:00Z",
                "last_activity_at": "2024-05-09T12:00:00Z",
            }
        )

        assert seat.assignee_login == "octocat"
        assert seat.created_at == datetime(2024, 1, 1, tzinfo=UTC)
        assert seat.last_activity_at == datetime(2024, 5, 9, 12, tzinfo=UTC)
        assert seat.raw["assignee"]["login"] == "octocat"

    def test_missing_login_raises(self):
        """Test that seats without an assignee login are malformed"""
        with pytest.raises(MalformedRecordError, match="assignee login"):
            Seat.from_dict({"assignee": None, "created_at": "2024-01-01T00:00:00Z"})

    def test_non_object_raises(self):
        """Test that non-object seat entries are malformed"""
        with pytest.raises(MalformedRecordError):
            Seat.from_dict("octocat")

    def test_unparsable_activity_is_absent(self):
        """Test that bad timestamps do not reject the seat"""
        seat = Seat.from_dict({"assignee": {"login": "hubot"}, "last_activity_at": "yesterday"})
        assert seat.last_activity_at is None

    def test_naive_timestamps_are_utc(self):
        """Test that offset-less timestamps are treated as UTC"""
        seat = Seat.from_dict({"assignee": {"login": "hubot"}, "last_activity_at": "2024-05-01"})
        assert seat.last_activity_at == datetime(2024, 5, 1, tzinfo=UTC)


class TestSeatRecord:
    """Tests for SeatRecord derived values"""

    @pytest.fixture
    def record(self, raw_seats_payload):
        return SeatRecord(
            date="2024-05-11",
            scope=Enterprise("big-co"),
            seats=[Seat.from_dict(entry) for entry in raw_seats_payload["seats"]],
            last_update=datetime(2024, 5, 11, 6, tzinfo=UTC),
        )

    def test_total_seats_is_seat_count(self, record):
        """Test that total_seats always equals len(seats)"""
        assert record.total_seats == 3
        record.seats.pop()
        assert record.total_seats == 2

    def test_id(self, record):
        """Test seat record identity"""
        assert record.id == "2024-05-11-enterprise-big-co"

    def test_active_seats_default_window(self, record):
        """Test that only seats active in the last 30 days count as active"""
        active = record.active_seats(as_of=datetime(2024, 5, 11, 6, tzinfo=UTC))
        assert [seat.assignee_login for seat in active] == ["octocat"]

    def test_active_seats_custom_window(self, record):
        """Test widening the activity window"""
        active = record.active_seats(as_of=datetime(2024, 5, 11, 6, tzinfo=UTC), window_days=90)
        assert [seat.assignee_login for seat in active] == ["octocat", "hubot"]

    def test_seats_payload_keeps_seat_fields(self, record):
        """Test that the stored payload keeps login and seat fields in provider shape"""
        assert record.seats_payload()[0] == {
            "assignee": {"login": "octocat"},
            "created_at": "2024-01-01T00:00:00Z",
            "last_activity_at": "2024-05-09T12:00:00Z",
            "last_activity_editor": None,
            "plan_type": None,
        }

    def test_seats_payload_drops_assignee_profile(self):
        """Test that the assignee user object is reduced to its login"""
        seat = Seat.from_dict(
            {
                "assignee": {"login": "octocat", "id": 1, "avatar_url": "https://avatars.example/u/1", "type": "User"},
                "created_at": "2024-01-01T00:00:00Z",
                "last_activity_at": None,
                "last_activity_editor": "vscode/1.89.0",
                "plan_type": "business",
                "pending_cancellation_date": None,
            }
        )

        data = seat.to_dict()

        assert data["assignee"] == {"login": "octocat"}
        assert data["plan_type"] == "business"
        assert data["last_activity_editor"] == "vscode/1.89.0"
        assert "pending_cancellation_date" not in data

    def test_seats_payload_reads_back(self, record):
        """Test that stored entries parse back into equivalent seats"""
        restored = [Seat.from_dict(entry) for entry in record.seats_payload()]

        assert [seat.assignee_login for seat in restored] == ["octocat", "hubot", "monalisa"]
        assert [seat.last_activity_at for seat in restored] == [seat.last_activity_at for seat in record.seats]

    def test_to_dict_formats_parsed_timestamps_without_raw(self):
        """Test seats built directly from values"""
        seat = Seat(assignee_login="hubot", created_at=datetime(2024, 1, 1, tzinfo=UTC))

        assert seat.to_dict()["created_at"] == "2024-01-01T00:00:00+00:00"
        assert seat.to_dict()["last_activity_at"] is None
