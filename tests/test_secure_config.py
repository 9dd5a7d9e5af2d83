"""
Tests for secure configuration management

Covers environment parsing, validation and fail-fast behavior.
"""

import pytest

from copilot_metrics.secure_config import (
    ConfigurationError,
    GitHubConfig,
    IngestionConfig,
    SecureConfig,
    StoreConfig,
)

ENV_VARS = [
    "GITHUB_API_SCOPE",
    "GITHUB_ENTERPRISE",
    "GITHUB_ORGANIZATION",
    "GITHUB_TEAMS",
    "GITHUB_API_VERSION",
    "GITHUB_API_BASE_URL",
    "ENABLE_SEATS_INGESTION",
    "USE_TEST_DATA",
    "INGESTION_MAX_CONCURRENCY",
    "INGESTION_LOOKBACK_DAYS",
    "METRICS_STORE",
    "LOCAL_DB_PATH",
    "AWS_REGION",
    "DYNAMODB_LOCAL",
    "DYNAMODB_ENDPOINT",
]


@pytest.fixture
def secure_config(monkeypatch):
    """SecureConfig with a clean environment and no .env loading"""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("copilot_metrics.secure_config.load_dotenv", lambda: None)
    return SecureConfig()


class TestIngestionConfigFromEnvironment:
    """Tests for SecureConfig.get_ingestion_config()"""

    def test_defaults(self, secure_config):
        """Test default values with an empty environment"""
        config = secure_config.get_ingestion_config()

        assert config.scope_kind == "organization"
        assert config.teams == []
        assert config.enable_seats_ingestion is True
        assert config.use_test_data is False
        assert config.max_concurrency == 4
        assert config.lookback_days is None

    def test_full_environment(self, secure_config, monkeypatch):
        """Test parsing every ingestion variable"""
        monkeypatch.setenv("GITHUB_API_SCOPE", "Enterprise")
        monkeypatch.setenv("GITHUB_ENTERPRISE", "big-co")
        monkeypatch.setenv("GITHUB_ORGANIZATION", "acme")
        monkeypatch.setenv("GITHUB_TEAMS", "web, data,,")
        monkeypatch.setenv("ENABLE_SEATS_INGESTION", "false")
        monkeypatch.setenv("USE_TEST_DATA", "1")
        monkeypatch.setenv("INGESTION_MAX_CONCURRENCY", "8")
        monkeypatch.setenv("INGESTION_LOOKBACK_DAYS", "28")

        config = secure_config.get_ingestion_config()

        assert config.scope_kind == "enterprise"
        assert config.top_level_id == "big-co"
        assert config.teams == ["web", "data"]
        assert config.enable_seats_ingestion is False
        assert config.use_test_data is True
        assert config.max_concurrency == 8
        assert config.lookback_days == 28

    def test_invalid_boolean_raises(self, secure_config, monkeypatch):
        """Test that unparsable booleans fail fast"""
        monkeypatch.setenv("ENABLE_SEATS_INGESTION", "maybe")

        with pytest.raises(ConfigurationError, match="Invalid boolean"):
            secure_config.get_ingestion_config()

    def test_invalid_integer_raises(self, secure_config, monkeypatch):
        """Test that non-integer concurrency fails fast"""
        monkeypatch.setenv("INGESTION_MAX_CONCURRENCY", "four")

        with pytest.raises(ConfigurationError, match="INGESTION_MAX_CONCURRENCY"):
            secure_config.get_ingestion_config()

    def test_zero_concurrency_rejected(self, secure_config, monkeypatch):
        """Test that a zero-size worker pool is rejected"""
        monkeypatch.setenv("INGESTION_MAX_CONCURRENCY", "0")

        with pytest.raises(ConfigurationError, match=">= 1"):
            secure_config.get_ingestion_config()


class TestIngestionConfigValidation:
    """Tests for IngestionConfig validation"""

    def test_unknown_scope_kind(self):
        """Test that only enterprise/organization are accepted"""
        with pytest.raises(ConfigurationError, match="GITHUB_API_SCOPE"):
            IngestionConfig(scope_kind="team")

    def test_invalid_slug(self):
        """Test that identifiers with path characters are rejected"""
        with pytest.raises(ConfigurationError, match="invalid characters"):
            IngestionConfig(organization="acme/../admin")

    def test_invalid_team_slug(self):
        """Test team slug validation"""
        with pytest.raises(ConfigurationError, match="GITHUB_TEAMS"):
            IngestionConfig(organization="acme", teams=["web team"])

    def test_lookback_out_of_range(self):
        """Test lookback bounds"""
        with pytest.raises(ConfigurationError, match="INGESTION_LOOKBACK_DAYS"):
            IngestionConfig(organization="acme", lookback_days=365)


class TestGitHubConfig:
    """Tests for GitHubConfig validation"""

    def test_valid(self, secure_config):
        """Test building from the environment with a resolved token"""
        config = secure_config.get_github_config("ghp_real_token")

        assert config.token == "ghp_real_token"
        assert config.api_version == "2022-11-28"
        assert config.base_url == "https://api.github.com"

    def test_missing_token(self):
        """Test that an empty token is rejected"""
        with pytest.raises(ConfigurationError, match="GITHUB_TOKEN is required"):
            GitHubConfig(token="")

    def test_placeholder_token(self):
        """Test placeholder detection"""
        with pytest.raises(ConfigurationError, match="placeholder"):
            GitHubConfig(token="your_token_here")

    @pytest.mark.parametrize("token", ["xxx", "placeholder", "your_pat_here", "<github-token>", " Replace_Me "])
    def test_placeholder_values_rejected(self, token):
        """Test whole-value and prefix placeholder matches"""
        with pytest.raises(ConfigurationError, match="placeholder"):
            GitHubConfig(token=token)

    @pytest.mark.parametrize("token", ["ghp_aBxxxQexample9Z", "ghp_placeholderLikeXyz123", "github_pat_11AyourZ_tokenQ"])
    def test_real_token_containing_placeholder_text_accepted(self, token):
        """Test that placeholder words inside a real token do not reject it"""
        assert GitHubConfig(token=token).token == token

    def test_api_version_format(self):
        """Test that the API version must be a date"""
        with pytest.raises(ConfigurationError, match="GITHUB_API_VERSION"):
            GitHubConfig(token="ghp_real", api_version="v3")

    def test_https_enforced(self):
        """Test that plain HTTP base URLs are rejected"""
        with pytest.raises(ConfigurationError, match="HTTPS"):
            GitHubConfig(token="ghp_real", base_url="http://api.github.com")

    def test_base_url_trailing_slash_stripped(self, secure_config, monkeypatch):
        """Test base URL normalization"""
        monkeypatch.setenv("GITHUB_API_BASE_URL", "https://github.example.com/api/v3/")
        assert secure_config.get_github_config("ghp_real").base_url == "https://github.example.com/api/v3"


class TestStoreConfig:
    """Tests for StoreConfig"""

    def test_defaults(self, secure_config):
        """Test sqlite default"""
        config = secure_config.get_store_config()

        assert config.backend == "sqlite"
        assert config.local_db_path.endswith("copilot-metrics.db")

    def test_dynamodb_local(self, secure_config, monkeypatch):
        """Test DynamoDB Local settings"""
        monkeypatch.setenv("METRICS_STORE", "dynamodb")
        monkeypatch.setenv("DYNAMODB_LOCAL", "true")

        config = secure_config.get_store_config()

        assert config.backend == "dynamodb"
        assert config.dynamodb_local is True
        assert config.dynamodb_endpoint == "http://localhost:8000"

    def test_dynamodb_requires_region(self):
        """Test that hosted DynamoDB needs a region"""
        with pytest.raises(ConfigurationError, match="AWS_REGION"):
            StoreConfig(backend="dynamodb")

    def test_unknown_backend(self):
        """Test backend validation"""
        with pytest.raises(ConfigurationError, match="METRICS_STORE"):
            StoreConfig(backend="postgres")
