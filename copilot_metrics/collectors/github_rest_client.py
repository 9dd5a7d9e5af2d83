"""
GitHub Copilot REST API Client

Fetches daily usage metrics and seat assignments for one scope.
Uses AsyncSecureHTTPClient for HTTP/2, connection pooling, and SSL enforcement.

Usage:
    from copilot_metrics.collectors.github_rest_client import GitHubCopilotRESTClient

    client = GitHubCopilotRESTClient(token="ghp_...")

    days = await client.fetch_usage_metrics(Organization("acme"), since="2024-05-01")
    seats = await client.fetch_seats(Organization("acme"))

API Documentation:
    https://docs.github.com/en/rest/copilot/copilot-metrics
    https://docs.github.com/en/rest/copilot/copilot-user-management
"""

import re
from typing import Any
from urllib.parse import urlencode

import httpx

from copilot_metrics.async_http_client import AsyncSecureHTTPClient
from copilot_metrics.core import get_logger
from copilot_metrics.core.cycle_metrics import get_current_tracker
from copilot_metrics.domain.scope import Enterprise, Organization, Scope, Team, scope_id, scope_label
from copilot_metrics.errors import ApiError
from copilot_metrics.secure_config import DEFAULT_API_BASE_URL, DEFAULT_API_VERSION, GitHubConfig

logger = get_logger(__name__)

LINK_PATTERN = re.compile(r'<([^>]+)>;\s*rel="([^"]+)"')
SEATS_PAGE_SIZE = 100


def get_next_url(link_header: str | None) -> str | None:
    """
    Extract the rel="next" target from a Link header.

    Args:
        link_header: Raw Link header value (None if absent)

    Returns:
        Next page URL, or None when there is no next page or the header is malformed

    Example:
        >>> get_next_url('<https://api.github.com/x?page=2>; rel="next", <https://api.github.com/x?page=5>; rel="last"')
        'https://api.github.com/x?page=2'
    """
    if not link_header:
        return None
    for url, rel in LINK_PATTERN.findall(link_header):
        if rel == "next":
            return url
    return None


class GitHubCopilotRESTClient:
    """
    GitHub Copilot metrics REST client.

    Features:
    - Async HTTP/2 requests with connection pooling
    - Bearer token authentication and pinned API version
    - Link-header pagination with a loop guard for seat listings
    - Every non-2xx response or transport failure becomes ApiError (no retries)
    """

    def __init__(self, token: str, api_version: str = DEFAULT_API_VERSION, base_url: str = DEFAULT_API_BASE_URL):
        """
        Initialize GitHub Copilot REST client.

        Args:
            token: API token (Bearer)
            api_version: X-GitHub-Api-Version header value
            base_url: API base URL

        Raises:
            ValueError: If token or base_url is empty
        """
        if not token or not base_url:
            raise ValueError("token and base_url are required")

        self.base_url = base_url.rstrip("/")
        self.api_version = api_version
        self.headers = {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {token}",
            "X-GitHub-Api-Version": api_version,
        }

    def _scope_path(self, scope: Scope) -> str:
        """Path prefix of a scope's Copilot resources."""
        if isinstance(scope, Enterprise):
            return f"enterprises/{scope.enterprise_id}/copilot"
        if isinstance(scope, Organization):
            return f"orgs/{scope.org_id}/copilot"
        if isinstance(scope, Team):
            return f"orgs/{scope.org_id}/team/{scope.name}/copilot"
        raise TypeError(f"Unknown scope type: {type(scope).__name__}")

    def _build_url(self, resource: str, **params: Any) -> str:
        """
        Build an API URL with query parameters (None values are dropped).

        Example:
            _build_url("orgs/acme/copilot/metrics", since="2024-05-01", until=None)
            -> "https://api.github.com/orgs/acme/copilot/metrics?since=2024-05-01"
        """
        url = f"{self.base_url}/{resource}"
        filtered_params = {k: v for k, v in params.items() if v is not None}
        if filtered_params:
            url = f"{url}?{urlencode(filtered_params)}"
        return url

    async def _get(self, url: str, scope: Scope) -> httpx.Response:
        """
        Execute one GET and return the successful response.

        Raises:
            ApiError: For non-2xx responses and transport failures
        """
        tracker = get_current_tracker()
        if tracker:
            tracker.record_api_call()

        try:
            async with AsyncSecureHTTPClient() as client:
                response = await client.get(url, headers=self.headers)
        except httpx.RequestError as e:
            logger.warning(f"Transport error calling {url} for {scope_label(scope)}: {e}")
            raise ApiError(f"Request to {url} failed: {e}", status_code=None, scope_id=scope_id(scope)) from e

        if not response.is_success:
            logger.error(f"HTTP {response.status_code} from {url} for {scope_label(scope)}")
            raise ApiError(
                f"GET {url} returned HTTP {response.status_code}",
                status_code=response.status_code,
                scope_id=scope_id(scope),
            )

        return response

    @staticmethod
    def _json(response: httpx.Response, scope: Scope) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise ApiError(
                "Response body is not valid JSON",
                status_code=response.status_code,
                scope_id=scope_id(scope),
            ) from e

    async def fetch_usage_metrics(
        self, scope: Scope, since: str | None = None, until: str | None = None
    ) -> list[dict[str, Any]]:
        """
        Fetch daily usage metrics for a scope.

        REST Endpoint: GET /{enterprises|orgs}/{id}/copilot/metrics
                       GET /orgs/{org}/team/{team}/copilot/metrics

        Args:
            scope: Scope to fetch
            since: Optional first day (YYYY-MM-DD)
            until: Optional last day (YYYY-MM-DD)

        Returns:
            List of raw daily payloads

        Raises:
            ApiError: For non-2xx responses, transport failures, or a non-list body
        """
        url = self._build_url(f"{self._scope_path(scope)}/metrics", since=since, until=until)
        response = await self._get(url, scope)
        payload = self._json(response, scope)

        if not isinstance(payload, list):
            raise ApiError(
                "Usage metrics response is not a list",
                status_code=response.status_code,
                scope_id=scope_id(scope),
            )

        logger.info(f"Fetched {len(payload)} usage days for {scope_label(scope)}")
        return payload

    async def fetch_seats(self, scope: Scope) -> dict[str, Any]:
        """
        Fetch all seat assignments for a top-level scope, following Link pagination.

        REST Endpoint: GET /{enterprises|orgs}/{id}/copilot/billing/seats

        Pagination stops when the Link header has no rel="next" (absent or
        malformed header included) or when the next URL was already visited.

        Args:
            scope: Enterprise or Organization

        Returns:
            {"total_seats": <last page's value>, "seats": [<all pages' seats>]}

        Raises:
            ValueError: For team scopes (no seat endpoint)
            ApiError: For non-2xx responses and transport failures
        """
        if isinstance(scope, Team):
            raise ValueError(f"Seat assignments are not available for team scopes: {scope_label(scope)}")

        url: str | None = self._build_url(f"{self._scope_path(scope)}/billing/seats", per_page=SEATS_PAGE_SIZE)
        visited: set[str] = set()
        seats: list[Any] = []
        total_seats = 0
        pages = 0

        while url:
            visited.add(url)
            response = await self._get(url, scope)
            page = self._json(response, scope)
            pages += 1

            if isinstance(page, dict):
                page_seats = page.get("seats")
                if isinstance(page_seats, list):
                    seats.extend(page_seats)
                if isinstance(page.get("total_seats"), int):
                    total_seats = page["total_seats"]

            next_url = get_next_url(response.headers.get("link"))
            if next_url and next_url in visited:
                logger.warning(f"Seat pagination for {scope_label(scope)} revisited {next_url}; stopping")
                next_url = None
            url = next_url

        logger.info(f"Fetched {len(seats)} seats over {pages} pages for {scope_label(scope)}")
        return {"total_seats": total_seats, "seats": seats}


def get_github_rest_client(config: GitHubConfig) -> GitHubCopilotRESTClient:
    """
    Build a client from validated configuration.

    Args:
        config: GitHubConfig (token already resolved)

    Returns:
        GitHubCopilotRESTClient
    """
    return GitHubCopilotRESTClient(token=config.token, api_version=config.api_version, base_url=config.base_url)
