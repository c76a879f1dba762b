"""Fluent request builder.

``RequestBuilder`` accumulates configuration into a ``RequestModel`` through
chainable setters and hands the result to a ``RequestExecutor`` when one of
the terminal coroutines (``get()``, ``post()``, ... or ``send()``) is awaited.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from pathlib import Path
from typing import IO, Any, Callable

from .errors import MissingUrlError
from .executor import RequestExecutor
from .types import (
    CancellationToken,
    CurlResponse,
    FileUpload,
    FormBody,
    JsonBody,
    MultipartBody,
    QueryParams,
    RawBody,
    RequestModel,
    RetryConfig,
)
from .utils import encode_basic_auth


class RequestBuilder:
    """Fluent builder for a single HTTP call.

    Examples:
        Simple GET with query parameters:

        >>> response = await client.request("https://api.example.com/users") \\
        ...     .header("Authorization", "Bearer token") \\
        ...     .query({"page": 1}) \\
        ...     .get()

        POST JSON with retries:

        >>> response = await client.request("https://api.example.com/users") \\
        ...     .json({"name": "John"}) \\
        ...     .retry(3, backoff="exponential", status_codes=[503]) \\
        ...     .timeout(5000) \\
        ...     .post()
    """

    def __init__(self, request: RequestModel | str, executor: RequestExecutor):
        if isinstance(request, str):
            request = RequestModel(url=request)
        if not request.url:
            raise MissingUrlError("Request URL is required")

        self._request = request
        self._executor = executor
        self._files: list[FileUpload] = []
        self._stream = False

    @property
    def request(self) -> RequestModel:
        """The request model accumulated so far."""
        return self._request

    def header(self, key: str, value: str) -> RequestBuilder:
        """Set a single header, replacing any previous value."""
        self._request.headers[key] = value
        return self

    def headers(self, headers: Mapping[str, str]) -> RequestBuilder:
        """Set several headers at once."""
        for key, value in headers.items():
            self._request.headers[key] = value
        return self

    def query(self, params: QueryParams) -> RequestBuilder:
        """Add query parameters.

        Mappings merge by name, so a later call overrides an earlier value.
        Sequences of pairs are appended as-is, keeping repeated names.
        """
        current = self._request.query
        if isinstance(params, Mapping) and (current is None or isinstance(current, Mapping)):
            merged = dict(current or {})
            merged.update(params)
            self._request.query = merged
        else:
            pairs = list(current.items() if isinstance(current, Mapping) else current or [])
            pairs.extend(params.items() if isinstance(params, Mapping) else params)
            self._request.query = pairs
        return self

    def json(self, data: Any) -> RequestBuilder:
        """Send ``data`` as a JSON body."""
        self._request.body = JsonBody(data)
        self._request.headers["Content-Type"] = "application/json"
        return self

    def form(self, data: Mapping[str, str]) -> RequestBuilder:
        """Send ``data`` as an URL-encoded form."""
        self._request.body = FormBody(tuple((key, str(value)) for key, value in data.items()))
        self._request.headers["Content-Type"] = "application/x-www-form-urlencoded"
        return self

    def body(self, content: str | bytes, content_type: str | None = None) -> RequestBuilder:
        """Send ``content`` unchanged."""
        self._request.body = RawBody(content)
        if content_type:
            self._request.headers["Content-Type"] = content_type
        return self

    def file(
        self,
        name: str,
        file: str | Path | bytes | IO[bytes],
        filename: str | None = None,
        content_type: str | None = None,
    ) -> RequestBuilder:
        """Add a file part, turning the body into a multipart upload.

        ``file`` may be a path, raw bytes or a binary file object. Paths are
        read right away.
        """
        if isinstance(file, (str, Path)):
            path = Path(file)
            upload = FileUpload(name, path.read_bytes(), filename or path.name, content_type)
        else:
            upload = FileUpload(name, file, filename or "file", content_type)
        self._files.append(upload)
        return self

    def timeout(self, ms: float) -> RequestBuilder:
        """Bound each attempt to ``ms`` milliseconds."""
        self._request.timeout_ms = ms
        return self

    def retry(
        self,
        count: int,
        *,
        backoff: str = "exponential",
        delay_ms: float = 1000.0,
        max_delay_ms: float = 30000.0,
        status_codes: list[int] | None = None,
        on_retry: Callable[[int, Exception], Any] | None = None,
    ) -> RequestBuilder:
        """Retry failed attempts up to ``count`` more times."""
        self._request.retry = RetryConfig(
            count=count,
            backoff=backoff,
            delay_ms=delay_ms,
            max_delay_ms=max_delay_ms,
            status_codes=status_codes,
            on_retry=on_retry,
        )
        return self

    def auth(self, username: str, password: str) -> RequestBuilder:
        """Use HTTP Basic authentication."""
        self._request.headers["Authorization"] = encode_basic_auth(username, password)
        return self

    def bearer(self, token: str) -> RequestBuilder:
        """Use a bearer token."""
        self._request.headers["Authorization"] = f"Bearer {token}"
        return self

    def follow(self, enabled: bool = True) -> RequestBuilder:
        """Follow redirects (the default)."""
        self._request.follow_redirects = enabled
        return self

    def no_follow(self) -> RequestBuilder:
        """Return redirect responses instead of following them."""
        return self.follow(False)

    def stream(self) -> RequestBuilder:
        """Leave the response body unread; ``response.data`` is the raw response."""
        self._stream = True
        return self

    def abort(self, token: CancellationToken) -> RequestBuilder:
        """Attach a cancellation token to the call."""
        self._request.cancellation = token
        return self

    def _prepare_multipart(self) -> None:
        body = self._request.body
        fields: tuple[tuple[str, str], ...] = ()
        if isinstance(body, JsonBody) and isinstance(body.value, Mapping):
            fields = tuple((str(key), str(value)) for key, value in body.value.items())
        elif isinstance(body, (FormBody, MultipartBody)):
            fields = body.fields

        self._request.body = MultipartBody(fields=fields, files=tuple(self._files))
        # The transport sets the boundary
        if "Content-Type" in self._request.headers:
            del self._request.headers["Content-Type"]

    async def send(self) -> CurlResponse:
        """Execute the request with its current method."""
        if self._files:
            self._prepare_multipart()
        return await self._executor.execute(self._request, stream=self._stream)

    async def _execute(self, method: str) -> CurlResponse:
        self._request = dataclasses.replace(self._request, method=method)
        return await self.send()

    async def get(self) -> CurlResponse:
        """Execute a GET request."""
        return await self._execute("GET")

    async def post(self) -> CurlResponse:
        """Execute a POST request."""
        return await self._execute("POST")

    async def put(self) -> CurlResponse:
        """Execute a PUT request."""
        return await self._execute("PUT")

    async def patch(self) -> CurlResponse:
        """Execute a PATCH request."""
        return await self._execute("PATCH")

    async def delete(self) -> CurlResponse:
        """Execute a DELETE request."""
        return await self._execute("DELETE")

    async def head(self) -> CurlResponse:
        """Execute a HEAD request."""
        return await self._execute("HEAD")

    async def options(self) -> CurlResponse:
        """Execute an OPTIONS request."""
        return await self._execute("OPTIONS")
