"""
Domain Models - Type-safe data structures for Copilot metrics

This package contains dataclasses representing business domain concepts:
    - scope: Enterprise, Organization, Team and the helpers that branch on them
    - usage: raw daily usage payloads, Breakdown, UsageMetricRecord
    - seats: Seat, SeatRecord

Usage:
    from copilot_metrics.domain.scope import Organization, record_key
    from copilot_metrics.domain.usage import UsageMetricRecord

    key = record_key("2024-05-10", Organization("acme"))
"""

# Import domain models for convenient access
from .scope import Enterprise, Organization, Scope, ScopeKind, Team
from .seats import Seat, SeatRecord
from .usage import Breakdown, RawUsageDay, UsageMetricRecord

__all__ = [
    # Scopes
    "Scope",
    "ScopeKind",
    "Enterprise",
    "Organization",
    "Team",
    # Usage
    "RawUsageDay",
    "Breakdown",
    "UsageMetricRecord",
    # Seats
    "Seat",
    "SeatRecord",
]
