"""
Secure Configuration Management

Provides centralized, validated configuration for the ingestion pipeline.
Replaces scattered os.getenv() calls with strict validation and fail-fast behavior.

Usage:
    from copilot_metrics.secure_config import get_config

    config = get_config()
    ingestion = config.get_ingestion_config()
    print(ingestion.scope_kind, ingestion.organization)

Security Features:
    - Strict validation of all configuration values
    - Fail-fast on missing/invalid configuration
    - Placeholder detection (e.g., "your_token_here")
    - HTTPS enforcement for API URLs

Raises:
    ConfigurationError: If configuration is missing or invalid
"""

import os
import re
from dataclasses import dataclass, field

from dotenv import load_dotenv


class ConfigurationError(Exception):
    """Raised when configuration is missing or invalid."""

    pass


VALID_SCOPE_KINDS = ("enterprise", "organization")
VALID_STORE_BACKENDS = ("sqlite", "dynamodb")

DEFAULT_API_VERSION = "2022-11-28"
DEFAULT_API_BASE_URL = "https://api.github.com"
DEFAULT_LOCAL_DB_PATH = os.path.join("data", "copilot-metrics.db")

_SLUG_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.\-]*$")
_TOKEN_PLACEHOLDERS = {"xxx", "token", "changeme", "example", "placeholder", "replace_me", "your_token"}
_TOKEN_PLACEHOLDER_PREFIXES = ("your_", "<", "replace_me", "placeholder", "example_", "xxxx")


def _parse_bool(value: str | None, default: bool) -> bool:
    """Parse a boolean environment value ("true"/"false", "1"/"0", "yes"/"no")."""
    if value is None or value.strip() == "":
        return default
    normalized = value.strip().lower()
    if normalized in ("true", "1", "yes", "on"):
        return True
    if normalized in ("false", "0", "no", "off"):
        return False
    raise ConfigurationError(f"Invalid boolean value: {value!r}")


def _parse_int(name: str, value: str | None, default: int | None) -> int | None:
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer: {value!r}") from e


def _parse_list(value: str | None) -> list[str]:
    """Split a comma-separated list, dropping blanks."""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class IngestionConfig:
    """
    Validated ingestion cycle configuration.

    The top-level identifier is not required here; the scope resolver
    checks it.
    """

    scope_kind: str = "organization"
    enterprise: str | None = None
    organization: str | None = None
    teams: list[str] = field(default_factory=list)
    enable_seats_ingestion: bool = True
    use_test_data: bool = False
    max_concurrency: int = 4
    lookback_days: int | None = None

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate()

    def _validate(self):
        """
        Validate ingestion configuration.

        Raises:
            ConfigurationError: If configuration is invalid
        """
        if self.scope_kind not in VALID_SCOPE_KINDS:
            raise ConfigurationError(
                f"GITHUB_API_SCOPE must be one of {VALID_SCOPE_KINDS}: {self.scope_kind!r}"
            )

        for label, value in (("GITHUB_ENTERPRISE", self.enterprise), ("GITHUB_ORGANIZATION", self.organization)):
            if value and not _SLUG_PATTERN.match(value):
                raise ConfigurationError(f"{label} contains invalid characters: {value}")

        for team in self.teams:
            if not _SLUG_PATTERN.match(team):
                raise ConfigurationError(f"GITHUB_TEAMS contains an invalid team slug: {team}")

        if self.max_concurrency < 1:
            raise ConfigurationError(f"INGESTION_MAX_CONCURRENCY must be >= 1: {self.max_concurrency}")

        if self.lookback_days is not None and not 1 <= self.lookback_days <= 100:
            raise ConfigurationError(f"INGESTION_LOOKBACK_DAYS must be between 1 and 100: {self.lookback_days}")

    @property
    def top_level_id(self) -> str | None:
        """Identifier of the configured top-level scope."""
        return self.enterprise if self.scope_kind == "enterprise" else self.organization


@dataclass
class GitHubConfig:
    """
    Validated GitHub API configuration.
    """

    token: str
    api_version: str = DEFAULT_API_VERSION
    base_url: str = DEFAULT_API_BASE_URL

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate()

    def _validate(self):
        """
        Validate GitHub API configuration.

        Raises:
            ConfigurationError: If configuration is invalid
        """
        if not self.token:
            raise ConfigurationError("GITHUB_TOKEN is required (or GITHUB_TOKEN_SECRET_NAME)")

        normalized_token = self.token.strip().lower()
        if normalized_token in _TOKEN_PLACEHOLDERS or normalized_token.startswith(_TOKEN_PLACEHOLDER_PREFIXES):
            raise ConfigurationError("GITHUB_TOKEN contains a placeholder value - please set a real token")

        if not re.match(r"^\d{4}-\d{2}-\d{2}$", self.api_version):
            raise ConfigurationError(f"GITHUB_API_VERSION must be a YYYY-MM-DD date: {self.api_version}")

        if not self.base_url.startswith("https://"):
            raise ConfigurationError(f"GITHUB_API_BASE_URL must use HTTPS: {self.base_url}")


@dataclass
class StoreConfig:
    """
    Validated store backend configuration.
    """

    backend: str = "sqlite"
    local_db_path: str = DEFAULT_LOCAL_DB_PATH
    aws_region: str | None = None
    dynamodb_local: bool = False
    dynamodb_endpoint: str = "http://localhost:8000"
    metrics_table: str = "metrics_history"
    seats_table: str = "seats_history"

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate()

    def _validate(self):
        """
        Validate store configuration.

        Raises:
            ConfigurationError: If configuration is invalid
        """
        if self.backend not in VALID_STORE_BACKENDS:
            raise ConfigurationError(f"METRICS_STORE must be one of {VALID_STORE_BACKENDS}: {self.backend!r}")

        if self.backend == "sqlite" and not self.local_db_path:
            raise ConfigurationError("LOCAL_DB_PATH is required for the sqlite store")

        if self.backend == "dynamodb" and not self.dynamodb_local and not self.aws_region:
            raise ConfigurationError("AWS_REGION is required for the dynamodb store")


class SecureConfig:
    """
    Centralized secure configuration manager.

    Loads and validates all application configuration from environment variables.
    Provides fail-fast behavior to catch configuration issues early.
    """

    def __init__(self):
        """Initialize configuration (loads .env file)."""
        load_dotenv()

    def get_ingestion_config(self) -> IngestionConfig:
        """
        Get validated ingestion configuration.

        Returns:
            IngestionConfig: Validated configuration

        Raises:
            ConfigurationError: If configuration is invalid
        """
        return IngestionConfig(
            scope_kind=(os.getenv("GITHUB_API_SCOPE") or "organization").strip().lower(),
            enterprise=os.getenv("GITHUB_ENTERPRISE") or None,
            organization=os.getenv("GITHUB_ORGANIZATION") or None,
            teams=_parse_list(os.getenv("GITHUB_TEAMS")),
            enable_seats_ingestion=_parse_bool(os.getenv("ENABLE_SEATS_INGESTION"), default=True),
            use_test_data=_parse_bool(os.getenv("USE_TEST_DATA"), default=False),
            max_concurrency=_parse_int("INGESTION_MAX_CONCURRENCY", os.getenv("INGESTION_MAX_CONCURRENCY"), 4),  # type: ignore[arg-type]
            lookback_days=_parse_int("INGESTION_LOOKBACK_DAYS", os.getenv("INGESTION_LOOKBACK_DAYS"), None),
        )

    def get_github_config(self, token: str) -> GitHubConfig:
        """
        Get validated GitHub API configuration.

        Args:
            token: API token resolved by the credential provider

        Returns:
            GitHubConfig: Validated configuration

        Raises:
            ConfigurationError: If configuration is missing or invalid
        """
        return GitHubConfig(
            token=token or "",
            api_version=os.getenv("GITHUB_API_VERSION") or DEFAULT_API_VERSION,
            base_url=(os.getenv("GITHUB_API_BASE_URL") or DEFAULT_API_BASE_URL).rstrip("/"),
        )

    def get_store_config(self) -> StoreConfig:
        """
        Get validated store configuration.

        Returns:
            StoreConfig: Validated configuration

        Raises:
            ConfigurationError: If configuration is invalid
        """
        return StoreConfig(
            backend=(os.getenv("METRICS_STORE") or "sqlite").strip().lower(),
            local_db_path=os.getenv("LOCAL_DB_PATH") or DEFAULT_LOCAL_DB_PATH,
            aws_region=os.getenv("AWS_REGION") or None,
            dynamodb_local=_parse_bool(os.getenv("DYNAMODB_LOCAL"), default=False),
            dynamodb_endpoint=os.getenv("DYNAMODB_ENDPOINT") or "http://localhost:8000",
        )


# Convenience function for getting configuration
_config_instance = None


def get_config() -> SecureConfig:
    """
    Get the global configuration instance (singleton pattern).

    Returns:
        SecureConfig: The configuration manager
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = SecureConfig()
    return _config_instance
