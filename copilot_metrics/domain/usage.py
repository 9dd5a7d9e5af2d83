"""
Usage domain models

Provides:
    - Raw payload structures for one day of provider usage metrics
      (completions editors -> models -> languages, IDE chat, dotcom chat)
    - Breakdown: one (language, editor, model) row of code-completion activity
    - UsageMetricRecord: a time-bucketed, breakdown-enriched daily record

Raw parsing is total: missing or null nested objects become empty
structures and missing numeric fields become zero.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any

from copilot_metrics.domain.scope import Scope, record_key


def _count(value: Any) -> int:
    """Coerce a provider numeric field to int (missing, null or non-numeric -> 0)."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return int(value)
    return 0


def _mapping(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _items(value: Any) -> list[dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


@dataclass
class LanguageUsage:
    name: str = "unknown"
    total_code_suggestions: int = 0
    total_code_acceptances: int = 0
    total_code_lines_suggested: int = 0
    total_code_lines_accepted: int = 0
    total_engaged_users: int = 0

    @classmethod
    def from_dict(cls, payload: Any) -> "LanguageUsage":
        data = _mapping(payload)
        return cls(
            name=data.get("name") or "unknown",
            total_code_suggestions=_count(data.get("total_code_suggestions")),
            total_code_acceptances=_count(data.get("total_code_acceptances")),
            total_code_lines_suggested=_count(data.get("total_code_lines_suggested")),
            total_code_lines_accepted=_count(data.get("total_code_lines_accepted")),
            total_engaged_users=_count(data.get("total_engaged_users")),
        )


@dataclass
class CompletionModel:
    name: str = "default"
    is_custom_model: bool = False
    total_engaged_users: int = 0
    languages: list[LanguageUsage] = field(default_factory=list)

    @classmethod
    def from_dict(cls, payload: Any) -> "CompletionModel":
        data = _mapping(payload)
        return cls(
            name=data.get("name") or "default",
            is_custom_model=bool(data.get("is_custom_model")),
            total_engaged_users=_count(data.get("total_engaged_users")),
            languages=[LanguageUsage.from_dict(item) for item in _items(data.get("languages"))],
        )


@dataclass
class CompletionEditor:
    name: str = "unknown"
    total_engaged_users: int = 0
    models: list[CompletionModel] = field(default_factory=list)

    @classmethod
    def from_dict(cls, payload: Any) -> "CompletionEditor":
        data = _mapping(payload)
        return cls(
            name=data.get("name") or "unknown",
            total_engaged_users=_count(data.get("total_engaged_users")),
            models=[CompletionModel.from_dict(item) for item in _items(data.get("models"))],
        )


@dataclass
class CodeCompletions:
    """copilot_ide_code_completions section of a daily payload."""

    total_engaged_users: int = 0
    editors: list[CompletionEditor] = field(default_factory=list)

    @classmethod
    def from_dict(cls, payload: Any) -> "CodeCompletions":
        data = _mapping(payload)
        return cls(
            total_engaged_users=_count(data.get("total_engaged_users")),
            editors=[CompletionEditor.from_dict(item) for item in _items(data.get("editors"))],
        )


@dataclass
class ChatModel:
    name: str = "default"
    total_engaged_users: int = 0
    total_chats: int = 0
    total_chat_insertion_events: int = 0
    total_chat_copy_events: int = 0

    @classmethod
    def from_dict(cls, payload: Any) -> "ChatModel":
        data = _mapping(payload)
        return cls(
            name=data.get("name") or "default",
            total_engaged_users=_count(data.get("total_engaged_users")),
            total_chats=_count(data.get("total_chats")),
            total_chat_insertion_events=_count(data.get("total_chat_insertion_events")),
            total_chat_copy_events=_count(data.get("total_chat_copy_events")),
        )


@dataclass
class ChatEditor:
    name: str = "unknown"
    total_engaged_users: int = 0
    models: list[ChatModel] = field(default_factory=list)

    @classmethod
    def from_dict(cls, payload: Any) -> "ChatEditor":
        data = _mapping(payload)
        return cls(
            name=data.get("name") or "unknown",
            total_engaged_users=_count(data.get("total_engaged_users")),
            models=[ChatModel.from_dict(item) for item in _items(data.get("models"))],
        )


@dataclass
class IdeChat:
    """copilot_ide_chat section of a daily payload."""

    total_engaged_users: int = 0
    editors: list[ChatEditor] = field(default_factory=list)

    @classmethod
    def from_dict(cls, payload: Any) -> "IdeChat":
        data = _mapping(payload)
        return cls(
            total_engaged_users=_count(data.get("total_engaged_users")),
            editors=[ChatEditor.from_dict(item) for item in _items(data.get("editors"))],
        )

    def models(self) -> list[ChatModel]:
        return [model for editor in self.editors for model in editor.models]


@dataclass
class DotcomChat:
    """copilot_dotcom_chat section of a daily payload."""

    total_engaged_users: int = 0
    models: list[ChatModel] = field(default_factory=list)

    @classmethod
    def from_dict(cls, payload: Any) -> "DotcomChat":
        data = _mapping(payload)
        return cls(
            total_engaged_users=_count(data.get("total_engaged_users")),
            models=[ChatModel.from_dict(item) for item in _items(data.get("models"))],
        )


@dataclass
class RawUsageDay:
    """
    One day of provider usage metrics for one scope.

    Attributes:
        date: Effective date string ("recordDate", falling back to "date"), or None
        total_active_users: Active users reported for the day
        total_engaged_users: Engaged users reported for the day
        code_completions: IDE code completion activity
        ide_chat: IDE chat activity
        dotcom_chat: github.com chat activity
        raw: The untouched provider payload
    """

    date: str | None
    total_active_users: int = 0
    total_engaged_users: int = 0
    code_completions: CodeCompletions = field(default_factory=CodeCompletions)
    ide_chat: IdeChat = field(default_factory=IdeChat)
    dotcom_chat: DotcomChat = field(default_factory=DotcomChat)
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, payload: Any) -> "RawUsageDay":
        data = _mapping(payload)
        effective_date = data.get("recordDate") or data.get("date") or None
        return cls(
            date=effective_date,
            total_active_users=_count(data.get("total_active_users")),
            total_engaged_users=_count(data.get("total_engaged_users")),
            code_completions=CodeCompletions.from_dict(data.get("copilot_ide_code_completions")),
            ide_chat=IdeChat.from_dict(data.get("copilot_ide_chat")),
            dotcom_chat=DotcomChat.from_dict(data.get("copilot_dotcom_chat")),
            raw=dict(data),
        )


@dataclass
class Breakdown:
    """
    Code-completion activity for one (language, editor, model) combination.
    """

    language: str
    editor: str
    model: str
    suggestions_count: int = 0
    acceptances_count: int = 0
    lines_suggested: int = 0
    lines_accepted: int = 0
    active_users: int = 0

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Breakdown":
        return cls(
            language=payload.get("language") or "unknown",
            editor=payload.get("editor") or "unknown",
            model=payload.get("model") or "default",
            suggestions_count=_count(payload.get("suggestions_count")),
            acceptances_count=_count(payload.get("acceptances_count")),
            lines_suggested=_count(payload.get("lines_suggested")),
            lines_accepted=_count(payload.get("lines_accepted")),
            active_users=_count(payload.get("active_users")),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# Keys added on top of the provider payload when a record is serialized.
DERIVED_KEYS = ("day", "time_frame_week", "time_frame_month", "time_frame_display", "breakdown", "totals")


@dataclass
class UsageMetricRecord:
    """
    Daily usage metrics for one scope, enriched with time-frame labels,
    a per-language breakdown and derived totals.

    The code totals are always the sum over `breakdown`, so they are exposed
    as properties rather than stored fields.

    Attributes:
        date: ISO calendar date ("YYYY-MM-DD")
        scope: Scope the record belongs to
        raw: Provider payload for the day
        breakdown: Flattened editor/model/language rows
        week_label: Monday of the record's week ("Mar 04")
        month_label: Month bucket ("Mar 24")
        last_update: Timestamp of the ingestion run that produced the record
    """

    date: str
    scope: Scope
    raw: dict[str, Any]
    breakdown: list[Breakdown]
    week_label: str
    month_label: str
    last_update: datetime
    total_ide_engaged_users: int = 0
    total_chat_engaged_users: int = 0
    total_chats: int = 0
    total_chat_insertion_events: int = 0
    total_chat_copy_events: int = 0

    @property
    def id(self) -> str:
        return record_key(self.date, self.scope)

    @property
    def display_label(self) -> str:
        return f"{self.week_label}, {self.month_label}"

    @property
    def total_code_suggestions(self) -> int:
        return sum(row.suggestions_count for row in self.breakdown)

    @property
    def total_code_acceptances(self) -> int:
        return sum(row.acceptances_count for row in self.breakdown)

    @property
    def total_code_lines_suggested(self) -> int:
        return sum(row.lines_suggested for row in self.breakdown)

    @property
    def total_code_lines_accepted(self) -> int:
        return sum(row.lines_accepted for row in self.breakdown)

    def totals(self) -> dict[str, int]:
        return {
            "total_code_suggestions": self.total_code_suggestions,
            "total_code_acceptances": self.total_code_acceptances,
            "total_code_lines_suggested": self.total_code_lines_suggested,
            "total_code_lines_accepted": self.total_code_lines_accepted,
            "total_ide_engaged_users": self.total_ide_engaged_users,
            "total_chat_engaged_users": self.total_chat_engaged_users,
            "total_chats": self.total_chats,
            "total_chat_insertion_events": self.total_chat_insertion_events,
            "total_chat_copy_events": self.total_chat_copy_events,
        }

    def to_dict(self) -> dict[str, Any]:
        """
        Serialize to the persisted `data` document: the provider payload plus
        the derived keys in DERIVED_KEYS.
        """
        return {
            **self.raw,
            "day": self.date,
            "time_frame_week": self.week_label,
            "time_frame_month": self.month_label,
            "time_frame_display": self.display_label,
            "breakdown": [row.to_dict() for row in self.breakdown],
            "totals": self.totals(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], scope: Scope, last_update: datetime) -> "UsageMetricRecord":
        """Rebuild a record from its persisted `data` document."""
        raw = {key: value for key, value in data.items() if key not in DERIVED_KEYS}
        totals = _mapping(data.get("totals"))
        return cls(
            date=data["day"],
            scope=scope,
            raw=raw,
            breakdown=[Breakdown.from_dict(row) for row in _items(data.get("breakdown"))],
            week_label=data.get("time_frame_week", ""),
            month_label=data.get("time_frame_month", ""),
            last_update=last_update,
            total_ide_engaged_users=_count(totals.get("total_ide_engaged_users")),
            total_chat_engaged_users=_count(totals.get("total_chat_engaged_users")),
            total_chats=_count(totals.get("total_chats")),
            total_chat_insertion_events=_count(totals.get("total_chat_insertion_events")),
            total_chat_copy_events=_count(totals.get("total_chat_copy_events")),
        )
