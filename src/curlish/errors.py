"""Exception hierarchy for curlish.

Exception Hierarchy:
    CurlishError: Base exception for all curlish errors
    ├── MissingUrlError: A request could not be built because no URL was given
    ├── RequestTimeoutError: A single attempt exceeded its timeout
    ├── RequestCancelledError: The call's cancellation token fired
    ├── RetryableStatusError: Synthesized for on_retry callbacks on retryable statuses
    └── ConfigurationError: Invalid client settings

Usage Patterns:
    Transport failures raised by httpx (``httpx.ConnectError`` and friends) are
    not wrapped. When every attempt fails, the caller receives the exact
    exception object raised by the last attempt::

        >>> try:
        ...     await client.request("https://api.example.com").retry(2).get()
        ... except httpx.ConnectError as e:
        ...     print(f"Gave up: {e}")
        ... except RequestCancelledError:
        ...     print("Cancelled")

    Errors raised from inside an interceptor are not wrapped either; they
    propagate exactly as raised.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx


class CurlishError(Exception):
    """Base exception for all curlish errors."""

    pass


class MissingUrlError(CurlishError, ValueError):
    """Raised when a request is built without a URL.

    This occurs when:
    - A curl command string is converted to a request but contains no URL
    - A builder is created with an empty URL
    """

    def __init__(self, message: str = "No URL found in curl command", command: str | None = None):
        super().__init__(message)
        self.command = command


class RequestTimeoutError(CurlishError, TimeoutError):
    """Raised when a single attempt does not complete within its timeout."""

    def __init__(self, timeout_ms: float):
        super().__init__(f"Request timeout after {timeout_ms:g}ms")
        self.timeout_ms = timeout_ms


class RequestCancelledError(CurlishError):
    """Raised when the call's cancellation token fires.

    Cancellation is never retried, even when attempts remain.
    """

    def __init__(self, reason: str | None = None):
        super().__init__(f"Request aborted: {reason}" if reason else "Request aborted")
        self.reason = reason


class RetryableStatusError(CurlishError):
    """Describes a response whose status is in the configured retry set.

    Only ever handed to ``on_retry`` callbacks; once attempts are exhausted
    the last such response is returned instead of raising.
    """

    def __init__(self, response: httpx.Response):
        super().__init__(f"HTTP {response.status_code}")
        self.status_code = response.status_code
        self.response = response


class ConfigurationError(CurlishError):
    """Raised when client settings are invalid."""

    def __init__(self, message: str, key: str | None = None):
        super().__init__(message)
        self.key = key
