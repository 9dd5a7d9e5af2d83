"""
Data Collectors - Fetch Copilot metrics from the provider API

This package contains:
    - scope_resolver: which scopes a cycle ingests
    - github_rest_client: usage metrics and seat assignments over REST
    - credentials: API token lookup (environment, then AWS Secrets Manager)
    - sample_data: synthetic payloads for runs without API access
"""

__all__ = []
