"""
Tests for synthetic Copilot payloads
"""

from datetime import UTC, date, datetime

from copilot_metrics.aggregator import aggregate_seats, aggregate_usage
from copilot_metrics.collectors.sample_data import sample_seats, sample_usage_days
from copilot_metrics.domain.scope import Organization, Team


class TestSampleUsageDays:
    """Tests for sample_usage_days()"""

    def test_consecutive_days_ending_at_end(self):
        """Test day count and ordering"""
        days = sample_usage_days(Organization("acme"), end=date(2024, 5, 10), days=7)

        assert [day["date"] for day in days] == [f"2024-05-{n:02d}" for n in range(4, 11)]

    def test_deterministic(self):
        """Test that the same scope and range produce identical payloads"""
        scope = Team("acme", "web")
        assert sample_usage_days(scope, end=date(2024, 5, 10)) == sample_usage_days(scope, end=date(2024, 5, 10))

    def test_aggregates_cleanly(self):
        """Test that every synthetic day produces a record"""
        scope = Organization("acme")
        days = sample_usage_days(scope, end=date(2024, 5, 10))

        records = aggregate_usage(days, scope, last_update=datetime(2024, 5, 11, tzinfo=UTC))

        assert len(records) == 28
        assert all(record.total_code_suggestions > 0 for record in records)
        assert all(record.total_chats > 0 for record in records)


class TestSampleSeats:
    """Tests for sample_seats()"""

    def test_total_matches_seat_list(self):
        """Test that the listing is internally consistent"""
        payload = sample_seats(Organization("acme"), as_of=datetime(2024, 5, 11, tzinfo=UTC))
        assert payload["total_seats"] == len(payload["seats"])

    def test_mix_of_active_and_inactive(self):
        """Test that the listing exercises the activity window"""
        as_of = datetime(2024, 5, 11, tzinfo=UTC)
        record = aggregate_seats(sample_seats(Organization("acme"), as_of), Organization("acme"), as_of, as_of)

        active = record.active_seats(as_of)
        assert 0 < len(active) < record.total_seats
