"""
Tests for GitHub token lookup (environment, then Secrets Manager)
"""

import json
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from copilot_metrics.collectors.credentials import fetch_token_from_secrets_manager, resolve_github_token
from copilot_metrics.secure_config import ConfigurationError


@pytest.fixture
def secrets_client():
    return MagicMock()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("GITHUB_TOKEN_SECRET_NAME", raising=False)


class TestResolveGithubToken:
    """Tests for resolve_github_token()"""

    def test_environment_token_wins(self, monkeypatch, secrets_client):
        """Test that GITHUB_TOKEN is used without touching Secrets Manager"""
        monkeypatch.setenv("GITHUB_TOKEN", "ghp_from_env")
        monkeypatch.setenv("GITHUB_TOKEN_SECRET_NAME", "copilot/github")

        assert resolve_github_token(secrets_client=secrets_client) == "ghp_from_env"
        secrets_client.get_secret_value.assert_not_called()

    def test_json_secret(self, monkeypatch, secrets_client):
        """Test reading the token from a JSON secret"""
        monkeypatch.setenv("GITHUB_TOKEN_SECRET_NAME", "copilot/github")
        secrets_client.get_secret_value.return_value = {"SecretString": json.dumps({"GITHUB_TOKEN": "ghp_secret"})}

        assert resolve_github_token(secrets_client=secrets_client) == "ghp_secret"
        secrets_client.get_secret_value.assert_called_once_with(SecretId="copilot/github")

    def test_plain_secret(self, monkeypatch, secrets_client):
        """Test reading a secret that holds the raw token"""
        monkeypatch.setenv("GITHUB_TOKEN_SECRET_NAME", "copilot/github")
        secrets_client.get_secret_value.return_value = {"SecretString": "ghp_plain"}

        assert resolve_github_token(secrets_client=secrets_client) == "ghp_plain"

    def test_json_secret_without_key_raises(self, monkeypatch, secrets_client):
        """Test that a JSON secret lacking GITHUB_TOKEN is a configuration error"""
        monkeypatch.setenv("GITHUB_TOKEN_SECRET_NAME", "copilot/github")
        secrets_client.get_secret_value.return_value = {"SecretString": json.dumps({"OTHER": "x"})}

        with pytest.raises(ConfigurationError, match="does not contain"):
            resolve_github_token(secrets_client=secrets_client)

    def test_nothing_configured_raises(self):
        """Test that a missing token and secret name is a configuration error"""
        with pytest.raises(ConfigurationError, match="GITHUB_TOKEN"):
            resolve_github_token()

    def test_builds_client_for_region(self, monkeypatch):
        """Test that a secretsmanager client is created for the given region"""
        monkeypatch.setenv("GITHUB_TOKEN_SECRET_NAME", "copilot/github")
        mock_client = MagicMock()
        mock_client.get_secret_value.return_value = {"SecretString": "ghp_plain"}

        with patch("copilot_metrics.collectors.credentials.boto3.client", return_value=mock_client) as mock_factory:
            assert resolve_github_token(region="eu-west-1") == "ghp_plain"

        mock_factory.assert_called_once_with("secretsmanager", region_name="eu-west-1")


class TestFetchTokenFromSecretsManager:
    """Tests for fetch_token_from_secrets_manager()"""

    def test_client_error_raises_configuration_error(self, secrets_client):
        """Test that AWS errors become ConfigurationError"""
        secrets_client.get_secret_value.side_effect = ClientError(
            {"Error": {"Code": "ResourceNotFoundException", "Message": "not found"}}, "GetSecretValue"
        )

        with pytest.raises(ConfigurationError, match="Could not read secret"):
            fetch_token_from_secrets_manager("missing", client=secrets_client)

    def test_binary_secret_returns_none(self, secrets_client):
        """Test that secrets without SecretString yield None"""
        secrets_client.get_secret_value.return_value = {"SecretBinary": b"\x00"}

        assert fetch_token_from_secrets_manager("binary", client=secrets_client) is None
