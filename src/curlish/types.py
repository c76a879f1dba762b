"""Type definitions for curlish.

This module defines the request and response models, the closed set of
request body variants, the retry policy, the parsed-command structure and
the transport protocol that the execution engine drives.

Pydantic is used for the retry policy so invalid settings fail early;
plain dataclasses carry the per-call data.

Classes:
    RetryConfig: Retry and backoff policy for one request
    RequestModel: Everything the execution engine needs to run a call
    JsonBody, FormBody, RawBody, MultipartBody: Request body variants
    CurlResponse: Result of a completed call
    ParsedCommand: Structured result of parsing a curl command string
    CancellationToken: External cancel signal shared by all attempts of a call
    Transport: Protocol for the underlying HTTP capability

Example:
    Building a request model by hand::

        from curlish.types import JsonBody, RequestModel, RetryConfig

        request = RequestModel(
            url="https://api.example.com/users",
            method="POST",
            body=JsonBody({"name": "John"}),
            timeout_ms=5000,
            retry=RetryConfig(count=3, status_codes=[502, 503]),
        )
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import IO, Any, Awaitable, Callable, Literal, Protocol, Union, runtime_checkable

import httpx
from pydantic import BaseModel, ConfigDict, Field

HttpMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]

HTTP_METHODS: frozenset[str] = frozenset(
    {"GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"}
)

BackoffStrategy = Literal["linear", "exponential"]

QueryValue = Union[str, int, float, bool]
QueryParams = Union[Mapping[str, QueryValue], Sequence[tuple[str, QueryValue]]]


class RetryConfig(BaseModel):
    """Configuration for retry behavior.

    Attributes:
        count: Number of retries after the first attempt (default: 0, one attempt total)
        backoff: Backoff strategy - "exponential" or "linear" (default: "exponential")
        delay_ms: Base delay in milliseconds (default: 1000)
        max_delay_ms: Upper bound for any single delay in milliseconds (default: 30000)
        status_codes: Response statuses that trigger a retry. Status-based
            retries only happen when this is set.
        on_retry: Callback invoked before each retry with the number of the
            attempt that just failed and the error. May be a coroutine function.

    Example:
        Retry transient gateway errors with exponential backoff::

            retry = RetryConfig(
                count=3,
                backoff="exponential",
                delay_ms=500,
                status_codes=[429, 502, 503, 504],
                on_retry=lambda attempt, error: print(f"retry {attempt}: {error}"),
            )
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    count: int = Field(0, ge=0)
    backoff: BackoffStrategy = "exponential"
    delay_ms: float = Field(1000.0, ge=0)
    max_delay_ms: float = Field(30000.0, ge=0)
    status_codes: list[int] | None = None
    on_retry: Callable[[int, Exception], Any] | None = None


@dataclass(frozen=True)
class JsonBody:
    """Structured data serialized as JSON at dispatch time."""

    value: Any


@dataclass(frozen=True)
class FormBody:
    """URL-encoded form fields. Duplicate names are allowed."""

    fields: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True)
class RawBody:
    """A transport-ready payload sent as-is."""

    content: str | bytes


@dataclass(frozen=True)
class FileUpload:
    """One file part of a multipart body."""

    name: str
    content: bytes | IO[bytes]
    filename: str = "file"
    content_type: str | None = None


@dataclass(frozen=True)
class MultipartBody:
    """A multipart/form-data assembly of plain fields and file parts."""

    fields: tuple[tuple[str, str], ...] = ()
    files: tuple[FileUpload, ...] = ()


Body = Union[JsonBody, FormBody, RawBody, MultipartBody]


class CancellationToken:
    """External cancel signal for one logical call.

    A single token is shared by every attempt of the call it is attached to.
    Cancelling it rejects the in-flight attempt, interrupts a pending backoff
    sleep and prevents any further attempt.

    Example:
        token = CancellationToken()
        task = asyncio.create_task(client.request(url).abort(token).get())
        token.cancel("user navigated away")
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str | None = None) -> None:
        """Fire the token. Later calls keep the first reason."""
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    async def wait(self) -> None:
        """Block until the token fires."""
        await self._event.wait()


@dataclass
class RequestModel:
    """Data describing one pending HTTP call.

    Attributes:
        url: Absolute request URL (required)
        method: HTTP method (default: "GET")
        headers: Case-insensitive request headers
        body: Request body variant, or None
        query: Parameters appended to the URL's existing query string
        timeout_ms: Upper bound for a single attempt in milliseconds
        retry: Retry policy, or None for a single attempt
        cancellation: Cancel signal shared across all attempts
        follow_redirects: Whether the transport follows redirects (default: True)
    """

    url: str
    method: str = "GET"
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    body: Body | None = None
    query: QueryParams | None = None
    timeout_ms: float | None = None
    retry: RetryConfig | None = None
    cancellation: CancellationToken | None = None
    follow_redirects: bool = True


@dataclass(frozen=True)
class RequestTiming:
    """Timing for a completed call.

    ``total_ms`` spans the whole logical call: from the start of request
    interceptor application to the completion of the winning attempt,
    including earlier failed attempts and backoff sleeps.
    """

    total_ms: float


@dataclass
class CurlResponse:
    """Result of a completed call.

    Attributes:
        status: HTTP status code
        status_text: Reason phrase
        headers: Response headers
        data: Parsed body - decoded JSON, text, None for 204/HEAD, or the
            unread ``httpx.Response`` in streaming mode
        timing: Timing for the whole call
        raw: The transport's response object
        attempts: Number of transport attempts the call made
    """

    status: int
    status_text: str
    headers: httpx.Headers
    data: Any
    timing: RequestTiming
    raw: httpx.Response
    attempts: int = 1

    @property
    def ok(self) -> bool:
        return 200 <= self.status <= 299


@dataclass(frozen=True)
class BasicAuth:
    """Username and password taken from a ``-u`` flag."""

    username: str
    password: str


def _empty_headers() -> Mapping[str, str]:
    return MappingProxyType({})


@dataclass(frozen=True)
class ParsedCommand:
    """Structured result of parsing a curl command string.

    Purely descriptive: building one never performs network I/O, and the
    headers mapping is read-only.
    """

    url: str = ""
    method: str = "GET"
    headers: Mapping[str, str] = field(default_factory=_empty_headers)
    body: str | None = None
    auth: BasicAuth | None = None


# Type aliases for interceptors
RequestInterceptor = Callable[[RequestModel], Union[RequestModel, Awaitable[RequestModel]]]
"""Request interceptor: receives the cloned request model and returns the one to send."""

ResponseInterceptor = Callable[[CurlResponse], Union[CurlResponse, Awaitable[CurlResponse]]]
"""Response interceptor: receives the final response and returns the one to hand back."""


@runtime_checkable
class Transport(Protocol):
    """Protocol for the HTTP capability the execution engine drives.

    ``send`` must return a response whose body has not been read yet; the
    engine decides whether to read it. Any exception raised by ``send`` is
    treated as a transport failure and is eligible for retry.

    Example:
        A transport that records requests::

            class RecordingTransport:
                def __init__(self, inner: Transport):
                    self.inner = inner
                    self.sent = []

                def build_request(self, method, url, **kwargs):
                    return self.inner.build_request(method, url, **kwargs)

                async def send(self, request, *, follow_redirects=True):
                    self.sent.append(request)
                    return await self.inner.send(request, follow_redirects=follow_redirects)
    """

    def build_request(self, method: str, url: httpx.URL | str, **kwargs: Any) -> httpx.Request:
        """Build a transport request from a method, URL, headers and body arguments."""
        ...

    async def send(
        self, request: httpx.Request, *, follow_redirects: bool = True
    ) -> httpx.Response:
        """Send a request and return the response with its body unread."""
        ...
