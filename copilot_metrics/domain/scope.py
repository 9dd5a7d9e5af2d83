"""
Scope domain models - the organizational unit metrics are ingested for

A scope is one of:
    - Enterprise(enterprise_id)
    - Organization(org_id)
    - Team(org_id, name)   (teams always belong to an organization)

Helpers in this module are the single place that branches on the scope
variant; callers use the helpers instead of their own isinstance chains.
"""

from dataclasses import dataclass
from enum import Enum


class ScopeKind(str, Enum):
    """Top-level scope kinds understood by the provider API."""

    ENTERPRISE = "enterprise"
    ORGANIZATION = "organization"


@dataclass(frozen=True)
class Enterprise:
    """An enterprise account (no team-level breakdown available)."""

    enterprise_id: str


@dataclass(frozen=True)
class Organization:
    """An organization account."""

    org_id: str


@dataclass(frozen=True)
class Team:
    """
    A team inside an organization.

    Attributes:
        org_id: Owning organization slug
        name: Team slug
    """

    org_id: str
    name: str


Scope = Enterprise | Organization | Team


def scope_kind(scope: Scope) -> ScopeKind:
    """Kind of the scope's owning top-level account (teams are organization-kind)."""
    if isinstance(scope, Enterprise):
        return ScopeKind.ENTERPRISE
    if isinstance(scope, (Organization, Team)):
        return ScopeKind.ORGANIZATION
    raise TypeError(f"Unknown scope type: {type(scope).__name__}")


def scope_id(scope: Scope) -> str:
    """Identifier of the scope's top-level account."""
    if isinstance(scope, Enterprise):
        return scope.enterprise_id
    if isinstance(scope, (Organization, Team)):
        return scope.org_id
    raise TypeError(f"Unknown scope type: {type(scope).__name__}")


def scope_team(scope: Scope) -> str | None:
    return scope.name if isinstance(scope, Team) else None


def scope_label(scope: Scope) -> str:
    """
    Short human-readable label used in log messages.

    Examples:
        >>> scope_label(Team("acme", "platform"))
        'organization:acme/team:platform'
    """
    label = f"{scope_kind(scope).value}:{scope_id(scope)}"
    team = scope_team(scope)
    return f"{label}/team:{team}" if team else label


def scope_columns(scope: Scope) -> dict[str, str | None]:
    """
    Persisted scope columns (enterprise, organization, team).

    Examples:
        >>> scope_columns(Enterprise("big-co"))
        {'enterprise': 'big-co', 'organization': None, 'team': None}
    """
    if isinstance(scope, Enterprise):
        return {"enterprise": scope.enterprise_id, "organization": None, "team": None}
    if isinstance(scope, Organization):
        return {"enterprise": None, "organization": scope.org_id, "team": None}
    if isinstance(scope, Team):
        return {"enterprise": None, "organization": scope.org_id, "team": scope.name}
    raise TypeError(f"Unknown scope type: {type(scope).__name__}")


def scope_from_columns(enterprise: str | None, organization: str | None, team: str | None) -> Scope:
    """
    Rebuild a scope from persisted columns.

    Raises:
        ValueError: If neither enterprise nor organization is set
    """
    if team:
        if not organization:
            raise ValueError(f"Team {team!r} stored without an organization")
        return Team(org_id=organization, name=team)
    if organization:
        return Organization(org_id=organization)
    if enterprise:
        return Enterprise(enterprise_id=enterprise)
    raise ValueError("Stored record has neither enterprise nor organization")


def record_key(day: str, scope: Scope) -> str:
    """
    Composite record key serialized as a string.

    Examples:
        >>> record_key("2024-05-10", Organization("acme"))
        '2024-05-10-organization-acme'
        >>> record_key("2024-05-10", Team("acme", "platform"))
        '2024-05-10-organization-acme/platform'

    Slugs never contain "/", so the team separator keeps keys unique:
    Organization("acme-web") and Team("acme", "web") map to different keys.
    """
    key = f"{day}-{scope_kind(scope).value}-{scope_id(scope)}"
    team = scope_team(scope)
    return f"{key}/{team}" if team else key


def is_top_level(scope: Scope) -> bool:
    return not isinstance(scope, Team)
