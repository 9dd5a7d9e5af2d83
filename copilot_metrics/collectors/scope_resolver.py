"""
Scope resolution - which scopes one ingestion cycle covers
"""

from copilot_metrics.core import get_logger
from copilot_metrics.domain.scope import Enterprise, Organization, Scope, Team
from copilot_metrics.secure_config import ConfigurationError, IngestionConfig

logger = get_logger(__name__)


def resolve_scopes(config: IngestionConfig) -> list[Scope]:
    """
    Resolve the ordered scope list for a cycle.

    The top-level scope comes first, followed by one Team per configured team
    name in configuration order (duplicates removed). For enterprise-kind
    configurations, teams are resolved against the configured organization.

    Args:
        config: Validated ingestion configuration

    Returns:
        Ordered, duplicate-free list of scopes

    Raises:
        ConfigurationError: If the top-level identifier is missing, or teams are
            configured for an enterprise without an organization

    Example:
        >>> resolve_scopes(IngestionConfig(organization="acme", teams=["web", "web", "data"]))
        [Organization(org_id='acme'), Team(org_id='acme', name='web'), Team(org_id='acme', name='data')]
    """
    top_level: Scope
    if config.scope_kind == "enterprise":
        if not config.enterprise:
            raise ConfigurationError("GITHUB_ENTERPRISE is required when GITHUB_API_SCOPE=enterprise")
        top_level = Enterprise(enterprise_id=config.enterprise)
    else:
        if not config.organization:
            raise ConfigurationError("GITHUB_ORGANIZATION is required when GITHUB_API_SCOPE=organization")
        top_level = Organization(org_id=config.organization)

    scopes: list[Scope] = [top_level]

    if config.teams:
        if not config.organization:
            raise ConfigurationError("GITHUB_ORGANIZATION is required to resolve GITHUB_TEAMS for an enterprise")

        seen: set[str] = set()
        for name in config.teams:
            if name in seen:
                continue
            seen.add(name)
            scopes.append(Team(org_id=config.organization, name=name))

    logger.info(f"Resolved {len(scopes)} scopes ({len(scopes) - 1} teams)")
    return scopes
