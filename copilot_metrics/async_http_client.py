"""
Pooled async HTTP client for provider API calls

TLS verification cannot be switched off, every request carries a timeout, and
all requests identify themselves with a User-Agent (the GitHub REST API
rejects requests without one).

Usage:
    async with AsyncSecureHTTPClient() as http:
        response = await http.get(url, headers=headers)
"""

import httpx

from copilot_metrics import __version__

USER_AGENT = f"copilot-metrics/{__version__}"


class AsyncSecureHTTPClient:
    """
    Async context manager around one pooled httpx.AsyncClient.

    Args:
        max_connections: Pool size (default: 20)
        max_keepalive_connections: Idle connections kept open (default: 10)
        timeout: Per-request timeout in seconds (default: 30)
        http2: Negotiate HTTP/2 where the server supports it
    """

    DEFAULT_TIMEOUT = 30.0
    DEFAULT_MAX_CONNECTIONS = 20
    DEFAULT_MAX_KEEPALIVE = 10

    def __init__(
        self,
        max_connections: int = DEFAULT_MAX_CONNECTIONS,
        max_keepalive_connections: int = DEFAULT_MAX_KEEPALIVE,
        timeout: float = DEFAULT_TIMEOUT,
        http2: bool = True,
    ):
        self.limits = httpx.Limits(max_connections=max_connections, max_keepalive_connections=max_keepalive_connections)
        self.timeout = httpx.Timeout(timeout)
        self.http2 = http2
        self.client: httpx.AsyncClient | None = None

    @property
    def is_open(self) -> bool:
        return self.client is not None

    async def __aenter__(self) -> "AsyncSecureHTTPClient":
        self.client = httpx.AsyncClient(
            limits=self.limits,
            timeout=self.timeout,
            headers={"User-Agent": USER_AGENT},
            verify=True,
            http2=self.http2,
            follow_redirects=True,
        )
        return self

    async def __aexit__(self, *args):
        if self.client is not None:
            await self.client.aclose()
        self.client = None

    async def get(self, url: str, **kwargs) -> httpx.Response:
        """
        GET `url` on the pooled client.

        Extra keyword arguments (headers, params) go to httpx unchanged; a
        per-call `timeout` overrides the client default.

        Raises:
            RuntimeError: If called outside the `async with` block
            httpx.RequestError: On transport failures
        """
        if self.client is None:
            raise RuntimeError("AsyncSecureHTTPClient is not open; use it as 'async with AsyncSecureHTTPClient()'")
        return await self.client.get(url, **kwargs)
