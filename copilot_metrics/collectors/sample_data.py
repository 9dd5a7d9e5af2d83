"""
Synthetic Copilot payloads for runs without API access (USE_TEST_DATA=true)

Payloads have the same shape as the provider's responses and are
deterministic for a given scope and date range, so repeated test-data
cycles upsert identical documents.
"""

import zlib
from datetime import date, datetime, timedelta
from typing import Any

from copilot_metrics.domain.scope import Scope, scope_label

SAMPLE_EDITORS = ("vscode", "jetbrains")
SAMPLE_LANGUAGES = ("python", "typescript", "go")
SAMPLE_LOGINS = ("octocat", "hubot", "monalisa", "mona-dev", "copilot-fan")


def _seed(scope: Scope) -> int:
    return zlib.crc32(scope_label(scope).encode("utf-8")) % 7 + 1


def sample_usage_days(scope: Scope, end: date, days: int = 28) -> list[dict[str, Any]]:
    """
    Build `days` consecutive daily usage payloads ending at `end`.

    Args:
        scope: Scope the payloads pretend to belong to
        end: Last day (inclusive)
        days: Number of days

    Returns:
        Payloads ordered oldest first
    """
    seed = _seed(scope)
    payloads = []

    for offset in range(days - 1, -1, -1):
        day = end - timedelta(days=offset)
        step = day.toordinal() % 5 + seed

        editors = []
        for editor_index, editor in enumerate(SAMPLE_EDITORS):
            languages = []
            for language_index, language in enumerate(SAMPLE_LANGUAGES):
                suggestions = step * 10 + editor_index * 7 + language_index * 3
                acceptances = suggestions * 2 // 5
                languages.append(
                    {
                        "name": language,
                        "total_engaged_users": step + language_index,
                        "total_code_suggestions": suggestions,
                        "total_code_acceptances": acceptances,
                        "total_code_lines_suggested": suggestions * 3,
                        "total_code_lines_accepted": acceptances * 2,
                    }
                )
            editors.append(
                {
                    "name": editor,
                    "total_engaged_users": step + 2,
                    "models": [{"name": "default", "is_custom_model": False, "languages": languages}],
                }
            )

        payloads.append(
            {
                "date": day.isoformat(),
                "total_active_users": step * 3,
                "total_engaged_users": step * 2,
                "copilot_ide_code_completions": {"total_engaged_users": step * 2, "editors": editors},
                "copilot_ide_chat": {
                    "total_engaged_users": step,
                    "editors": [
                        {
                            "name": "vscode",
                            "total_engaged_users": step,
                            "models": [
                                {
                                    "name": "default",
                                    "total_engaged_users": step,
                                    "total_chats": step * 4,
                                    "total_chat_insertion_events": step,
                                    "total_chat_copy_events": step * 2,
                                }
                            ],
                        }
                    ],
                },
                "copilot_dotcom_chat": {
                    "total_engaged_users": seed,
                    "models": [{"name": "default", "total_engaged_users": seed, "total_chats": seed * 3}],
                },
            }
        )

    return payloads


def sample_seats(scope: Scope, as_of: datetime) -> dict[str, Any]:
    """
    Build a seat listing with a mix of recently active, stale and never-active seats.

    Args:
        scope: Scope the listing pretends to belong to
        as_of: Reference time for activity timestamps

    Returns:
        {"total_seats": n, "seats": [...]} in the provider's format
    """
    seats = []
    for index, login in enumerate(SAMPLE_LOGINS):
        # every fourth seat has never been used; the rest age by 12 days per index
        last_activity = None if index % 4 == 3 else (as_of - timedelta(days=index * 12)).isoformat()
        seats.append(
            {
                "assignee": {"login": login, "type": "User"},
                "created_at": (as_of - timedelta(days=90 + index)).isoformat(),
                "last_activity_at": last_activity,
                "last_activity_editor": "vscode" if last_activity else None,
                "plan_type": "business",
            }
        )
    return {"total_seats": len(seats), "seats": seats}
