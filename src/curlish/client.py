"""Top-level client that owns the interceptor registry and the transport."""

from __future__ import annotations

import logging
from types import TracebackType
from typing import Any

from .builder import RequestBuilder
from .config import ClientSettings
from .executor import HttpxTransport, RequestExecutor
from .interceptors import InterceptorManager
from .parser import parse_curl_command, request_from_curl
from .types import CurlResponse, ParsedCommand, QueryParams, RequestModel, Transport

logger = logging.getLogger(__name__)


class CurlClient:
    """Curl-like HTTP client with interceptors, retries and timeouts.

    Every client owns its own interceptor registry, so differently configured
    clients can coexist in one process.

    Example:
        async with CurlClient() as client:
            client.interceptors.request.use(add_auth)

            users = await client.get("https://api.example.com/users", query={"page": 1})

            created = await client.from_curl('''
                curl -X POST https://api.example.com/users \\
                  -H "Content-Type: application/json" \\
                  -d '{"name":"John"}'
            ''').send()
    """

    def __init__(
        self,
        settings: ClientSettings | None = None,
        transport: Transport | None = None,
    ):
        self.settings = settings or ClientSettings()
        self.interceptors = InterceptorManager()
        self._owns_transport = transport is None
        self.transport: Transport = transport or HttpxTransport(
            max_redirects=self.settings.max_redirects,
            verify=self.settings.verify_ssl,
        )
        self._executor = RequestExecutor(self.transport, self.interceptors)

    async def __aenter__(self) -> CurlClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the transport if this client created it."""
        if self._owns_transport and isinstance(self.transport, HttpxTransport):
            await self.transport.aclose()
            logger.debug("Closed default transport")

    def _apply_defaults(self, request: RequestModel) -> RequestModel:
        for key, value in self.settings.default_headers().items():
            if key not in request.headers:
                request.headers[key] = value
        if request.timeout_ms is None:
            request.timeout_ms = self.settings.timeout_ms
        if request.retry is None and self.settings.retry is not None:
            request.retry = self.settings.retry.model_copy()
        if not self.settings.follow_redirects:
            request.follow_redirects = False
        return request

    def request(self, url: str) -> RequestBuilder:
        """Start building a request to ``url``."""
        return RequestBuilder(self._apply_defaults(RequestModel(url=url)), self._executor)

    def from_curl(self, command: str) -> RequestBuilder:
        """Build a request from a curl command string.

        Raises:
            MissingUrlError: If the command contains no URL
        """
        return RequestBuilder(self._apply_defaults(request_from_curl(command)), self._executor)

    @staticmethod
    def parse(command: str) -> ParsedCommand:
        """Parse a curl command string without building a request."""
        return parse_curl_command(command)

    async def execute(self, request: RequestModel, stream: bool = False) -> CurlResponse:
        """Run a fully populated request model as-is."""
        return await self._executor.execute(request, stream=stream)

    def _shorthand(
        self,
        url: str,
        headers: dict[str, str] | None,
        query: QueryParams | None,
        timeout_ms: float | None,
        data: Any = None,
    ) -> RequestBuilder:
        builder = self.request(url)
        if headers:
            builder.headers(headers)
        if query:
            builder.query(query)
        if timeout_ms is not None:
            builder.timeout(timeout_ms)
        if data is not None:
            builder.json(data)
        return builder

    async def get(
        self,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        query: QueryParams | None = None,
        timeout_ms: float | None = None,
    ) -> CurlResponse:
        """Make a GET request."""
        return await self._shorthand(url, headers, query, timeout_ms).get()

    async def post(
        self,
        url: str,
        data: Any = None,
        *,
        headers: dict[str, str] | None = None,
        query: QueryParams | None = None,
        timeout_ms: float | None = None,
    ) -> CurlResponse:
        """Make a POST request with an optional JSON payload."""
        return await self._shorthand(url, headers, query, timeout_ms, data).post()

    async def put(
        self,
        url: str,
        data: Any = None,
        *,
        headers: dict[str, str] | None = None,
        query: QueryParams | None = None,
        timeout_ms: float | None = None,
    ) -> CurlResponse:
        """Make a PUT request with an optional JSON payload."""
        return await self._shorthand(url, headers, query, timeout_ms, data).put()

    async def patch(
        self,
        url: str,
        data: Any = None,
        *,
        headers: dict[str, str] | None = None,
        query: QueryParams | None = None,
        timeout_ms: float | None = None,
    ) -> CurlResponse:
        """Make a PATCH request with an optional JSON payload."""
        return await self._shorthand(url, headers, query, timeout_ms, data).patch()

    async def delete(
        self,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        query: QueryParams | None = None,
        timeout_ms: float | None = None,
    ) -> CurlResponse:
        """Make a DELETE request."""
        return await self._shorthand(url, headers, query, timeout_ms).delete()
