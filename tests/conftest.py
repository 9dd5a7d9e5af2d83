"""
Pytest configuration and shared fixtures

Provides raw provider payloads, scopes, timestamps and an opened SQLite store.
"""

from datetime import UTC, datetime

import pytest

from copilot_metrics.domain.scope import Organization
from copilot_metrics.storage.sqlite_store import SqliteMetricsStore


@pytest.fixture
def run_timestamp():
    """Provide a consistent ingestion run timestamp"""
    return datetime(2024, 5, 11, 6, 0, 0, tzinfo=UTC)


@pytest.fixture
def org_scope():
    return Organization(org_id="acme")


@pytest.fixture
def raw_usage_day():
    """
    One day of provider usage metrics: two editors, one language each.

    Code totals: 100 suggestions, 40 acceptances, 250 lines suggested, 90 lines accepted.
    """
    return {
        "date": "2024-05-10",
        "total_active_users": 12,
        "total_engaged_users": 10,
        "copilot_ide_code_completions": {
            "total_engaged_users": 9,
            "editors": [
                {
                    "name": "vscode",
                    "total_engaged_users": 6,
                    "models": [
                        {
                            "name": "default",
                            "is_custom_model": False,
                            "languages": [
                                {
                                    "name": "python",
                                    "total_engaged_users": 5,
                                    "total_code_suggestions": 60,
                                    "total_code_acceptances": 25,
                                    "total_code_lines_suggested": 150,
                                    "total_code_lines_accepted": 55,
                                }
                            ],
                        }
                    ],
                },
                {
                    "name": "jetbrains",
                    "total_engaged_users": 3,
                    "models": [
                        {
                            "name": "default",
                            "languages": [
                                {
                                    "name": "java",
                                    "total_engaged_users": 3,
                                    "total_code_suggestions": 40,
                                    "total_code_acceptances": 15,
                                    "total_code_lines_suggested": 100,
                                    "total_code_lines_accepted": 35,
                                }
                            ],
                        }
                    ],
                },
            ],
        },
        "copilot_ide_chat": {
            "total_engaged_users": 4,
            "editors": [
                {
                    "name": "vscode",
                    "models": [
                        {
                            "name": "default",
                            "total_chats": 20,
                            "total_chat_insertion_events": 5,
                            "total_chat_copy_events": 3,
                        }
                    ],
                }
            ],
        },
        "copilot_dotcom_chat": {
            "total_engaged_users": 2,
            "models": [{"name": "default", "total_chats": 7}],
        },
    }


@pytest.fixture
def raw_seats_payload():
    return {
        "total_seats": 3,
        "seats": [
            {"assignee": {"login": "octocat"}, "created_at": "2024-01-01T00:00:00Z", "last_activity_at": "2024-05-09T12:00:00Z"},
            {"assignee": {"login": "hubot"}, "created_at": "2024-01-01T00:00:00Z", "last_activity_at": "2024-03-01T12:00:00Z"},
            {"assignee": {"login": "monalisa"}, "created_at": "2024-02-01T00:00:00Z", "last_activity_at": None},
        ],
    }


@pytest.fixture
def sqlite_store(tmp_path):
    """Provide an opened SQLite store in a temporary directory"""
    store = SqliteMetricsStore(tmp_path / "metrics.db")
    store.open()
    yield store
    store.close()
