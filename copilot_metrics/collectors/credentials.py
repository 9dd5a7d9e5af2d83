"""
GitHub API token lookup

Resolution order:
    1. GITHUB_TOKEN environment variable
    2. AWS Secrets Manager secret named by GITHUB_TOKEN_SECRET_NAME
       (either the raw token or a JSON object with a "GITHUB_TOKEN" key)

Usage:
    from copilot_metrics.collectors.credentials import resolve_github_token

    token = resolve_github_token(region="us-east-1")
"""

import json
import os

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from copilot_metrics.core import get_logger
from copilot_metrics.secure_config import ConfigurationError

logger = get_logger(__name__)

TOKEN_ENV_VAR = "GITHUB_TOKEN"
SECRET_NAME_ENV_VAR = "GITHUB_TOKEN_SECRET_NAME"
SECRET_TOKEN_KEY = "GITHUB_TOKEN"


def _token_from_secret_string(secret_string: str) -> str | None:
    """
    Extract the token from a SecretString.

    JSON objects must carry the token under "GITHUB_TOKEN"; anything else is
    taken as the token itself.
    """
    if secret_string.lstrip().startswith("{"):
        try:
            parsed = json.loads(secret_string)
        except json.JSONDecodeError:
            return secret_string
        token = parsed.get(SECRET_TOKEN_KEY) if isinstance(parsed, dict) else None
        return token or None
    return secret_string


def fetch_token_from_secrets_manager(secret_name: str, region: str | None = None, client=None) -> str | None:
    """
    Read the API token from AWS Secrets Manager.

    Args:
        secret_name: Secret id or ARN
        region: AWS region (None uses the boto3 default chain)
        client: Optional pre-built secretsmanager client

    Returns:
        Token, or None if the secret holds no usable token

    Raises:
        ConfigurationError: If the secret cannot be read
    """
    sm = client or boto3.client("secretsmanager", region_name=region)
    try:
        response = sm.get_secret_value(SecretId=secret_name)
    except (ClientError, BotoCoreError) as e:
        logger.error(
            "Failed to read GitHub token secret",
            extra={"extra_fields": {"secret_name": secret_name, "error_class": e.__class__.__name__}},
        )
        raise ConfigurationError(f"Could not read secret {secret_name}: {e}") from e

    secret_string = response.get("SecretString")
    if not secret_string:
        logger.warning(f"Secret {secret_name} has no SecretString")
        return None

    return _token_from_secret_string(secret_string)


def resolve_github_token(region: str | None = None, secrets_client=None) -> str:
    """
    Resolve the GitHub API token (environment first, then Secrets Manager).

    Args:
        region: AWS region for the Secrets Manager fallback
        secrets_client: Optional pre-built secretsmanager client

    Returns:
        The API token

    Raises:
        ConfigurationError: If no token can be found
    """
    token = os.getenv(TOKEN_ENV_VAR)
    if token:
        return token

    secret_name = os.getenv(SECRET_NAME_ENV_VAR)
    if not secret_name:
        raise ConfigurationError(f"{TOKEN_ENV_VAR} is not set and {SECRET_NAME_ENV_VAR} is not configured")

    logger.info(f"{TOKEN_ENV_VAR} not set, reading token from Secrets Manager")
    token = fetch_token_from_secrets_manager(secret_name, region=region, client=secrets_client)
    if not token:
        raise ConfigurationError(f"Secret {secret_name} does not contain a GitHub token")
    return token
