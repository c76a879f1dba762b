"""Request execution with timeout, retries and interceptors.

``RequestExecutor`` turns one ``RequestModel`` into one ``CurlResponse`` or
one terminal error, however many transport attempts that takes:

1. The request is cloned and passed through the request interceptors.
2. Each attempt sends the request through the transport and materializes
   the body, racing the timeout and the cancellation token when set.
3. Transport errors and configured retryable statuses are retried with
   backoff until attempts run out. Cancellation is never retried.
4. The final response is passed through the response interceptors.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
import time
from types import TracebackType
from typing import Any, Awaitable

import httpx

from .errors import (
    MissingUrlError,
    RequestCancelledError,
    RequestTimeoutError,
    RetryableStatusError,
)
from .interceptors import InterceptorManager
from .types import (
    CancellationToken,
    CurlResponse,
    FormBody,
    JsonBody,
    MultipartBody,
    RawBody,
    RequestModel,
    RequestTiming,
    RetryConfig,
    Transport,
)
from .utils import (
    build_url,
    calculate_backoff,
    clone_request,
    is_retryable_status,
    should_parse_json,
)

logger = logging.getLogger(__name__)

# Methods that never carry a request body
BODYLESS_METHODS = frozenset({"GET", "HEAD"})


class HttpxTransport:
    """Default transport built on ``httpx.AsyncClient``.

    Timeouts are enforced by the executor, so the underlying client is
    created without one. Responses are returned with their body unread.

    Example:
        async with HttpxTransport() as transport:
            executor = RequestExecutor(transport)
            response = await executor.execute(RequestModel(url="https://example.com"))
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        max_redirects: int = 20,
        verify: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._client = client or httpx.AsyncClient(
            timeout=None,
            max_redirects=max_redirects,
            verify=verify,
            transport=transport,
        )

    async def __aenter__(self) -> HttpxTransport:
        await self._client.__aenter__()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self._client.__aexit__(exc_type, exc_val, exc_tb)

    @property
    def is_closed(self) -> bool:
        return self._client.is_closed

    def build_request(self, method: str, url: httpx.URL | str, **kwargs: Any) -> httpx.Request:
        return self._client.build_request(method, url, **kwargs)

    async def send(
        self, request: httpx.Request, *, follow_redirects: bool = True
    ) -> httpx.Response:
        return await self._client.send(request, stream=True, follow_redirects=follow_redirects)

    async def aclose(self) -> None:
        await self._client.aclose()


def _group_fields(fields: tuple[tuple[str, str], ...]) -> dict[str, list[str]]:
    grouped: dict[str, list[str]] = {}
    for name, value in fields:
        grouped.setdefault(name, []).append(value)
    return grouped


def body_arguments(request: RequestModel) -> dict[str, Any]:
    """Map the request's body variant onto transport request arguments."""
    body = request.body
    if body is None or request.method in BODYLESS_METHODS:
        return {}

    if isinstance(body, JsonBody):
        return {"json": body.value}
    if isinstance(body, FormBody):
        return {"data": _group_fields(body.fields)}
    if isinstance(body, RawBody):
        return {"content": body.content}
    if isinstance(body, MultipartBody):
        return {
            "data": _group_fields(body.fields),
            "files": [
                (upload.name, (upload.filename, upload.content, upload.content_type))
                for upload in body.files
            ],
        }
    raise TypeError(f"Unsupported body type: {type(body).__name__}")


class RequestExecutor:
    """Runs request models through interceptors, the transport and the retry loop."""

    def __init__(self, transport: Transport, interceptors: InterceptorManager | None = None):
        self.transport = transport
        self.interceptors = interceptors if interceptors is not None else InterceptorManager()

    async def execute(self, request: RequestModel, stream: bool = False) -> CurlResponse:
        """Execute a request with retries, timeout and interceptors.

        Args:
            request: The request to run. It is cloned first and never mutated.
            stream: Leave the response body unread and expose the transport
                response as ``data``. The caller must close it.

        Returns:
            The final response after response interceptors ran

        Raises:
            MissingUrlError: If the request has no URL
            RequestCancelledError: If the cancellation token fired
            Exception: The last transport error once attempts are exhausted,
                or whatever an interceptor raised
        """
        if not request.url:
            raise MissingUrlError("Request URL is required")

        start_time = time.perf_counter()
        processed = await self.interceptors.request.run(clone_request(request))

        retry_config = processed.retry or RetryConfig()
        max_attempts = retry_config.count + 1

        for attempt in range(1, max_attempts + 1):
            self._raise_if_cancelled(processed.cancellation)

            try:
                raw, data = await self._race(self._perform_attempt(processed, stream), processed)
            except RequestCancelledError:
                raise
            except Exception as error:
                if attempt >= max_attempts:
                    logger.error(
                        f"{processed.method} {processed.url} failed after "
                        f"{attempt} attempt(s): {error!r}"
                    )
                    raise
                await self._wait_before_retry(attempt, max_attempts, retry_config, error, processed)
                continue

            if (
                attempt < max_attempts
                and retry_config.status_codes
                and is_retryable_status(raw.status_code, retry_config.status_codes)
            ):
                await raw.aclose()
                await self._wait_before_retry(
                    attempt, max_attempts, retry_config, RetryableStatusError(raw), processed
                )
                continue

            total_ms = (time.perf_counter() - start_time) * 1000
            logger.debug(
                f"{processed.method} {processed.url} -> {raw.status_code} "
                f"in {total_ms:.1f}ms ({attempt} attempt(s))"
            )
            response = CurlResponse(
                status=raw.status_code,
                status_text=raw.reason_phrase,
                headers=raw.headers,
                data=data,
                timing=RequestTiming(total_ms=total_ms),
                raw=raw,
                attempts=attempt,
            )
            return await self.interceptors.response.run(response)

        # The loop either returns or raises on its last attempt
        raise RuntimeError("No attempts were made")

    async def _perform_attempt(
        self, request: RequestModel, stream: bool
    ) -> tuple[httpx.Response, Any]:
        """Send one request and materialize its body."""
        url = build_url(request.url, request.query)
        http_request = self.transport.build_request(
            request.method, url, headers=request.headers, **body_arguments(request)
        )

        logger.debug(f"Sending {request.method} {url}")
        response = await self.transport.send(
            http_request, follow_redirects=request.follow_redirects
        )

        if stream:
            return response, response

        try:
            await response.aread()
        finally:
            await response.aclose()

        return response, self._parse_body(response, request.method)

    @staticmethod
    def _parse_body(response: httpx.Response, method: str) -> Any:
        if response.status_code == 204 or method == "HEAD":
            return None
        if should_parse_json(response.headers):
            text = response.text
            return json.loads(text) if text.strip() else None
        return response.text

    async def _race(self, attempt: Awaitable[Any], request: RequestModel) -> Any:
        """Await an attempt against the request's timeout and cancellation token."""
        timeout_ms = request.timeout_ms
        token = request.cancellation
        if timeout_ms is None and token is None:
            return await attempt

        attempt_task = asyncio.ensure_future(attempt)
        waiters: set[asyncio.Future[Any]] = {attempt_task}
        cancel_task = None
        if token is not None:
            cancel_task = asyncio.ensure_future(token.wait())
            waiters.add(cancel_task)

        try:
            done, _ = await asyncio.wait(
                waiters,
                timeout=timeout_ms / 1000 if timeout_ms is not None else None,
                return_when=asyncio.FIRST_COMPLETED,
            )
            if attempt_task in done:
                return attempt_task.result()
            if cancel_task is not None and cancel_task in done:
                raise RequestCancelledError(token.reason)
            raise RequestTimeoutError(timeout_ms)
        finally:
            pending = [task for task in waiters if not task.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.wait(pending)

    async def _wait_before_retry(
        self,
        attempt: int,
        max_attempts: int,
        retry_config: RetryConfig,
        error: Exception,
        request: RequestModel,
    ) -> None:
        """Notify ``on_retry`` and sleep the backoff delay."""
        delay_ms = calculate_backoff(
            attempt, retry_config.backoff, retry_config.delay_ms, retry_config.max_delay_ms
        )
        logger.warning(
            f"{request.method} {request.url} attempt {attempt}/{max_attempts} failed: {error}, "
            f"retrying in {delay_ms:.0f}ms"
        )

        if retry_config.on_retry is not None:
            result = retry_config.on_retry(attempt, error)
            if inspect.isawaitable(result):
                await result

        await self._sleep(delay_ms, request.cancellation)

    @staticmethod
    async def _sleep(delay_ms: float, token: CancellationToken | None) -> None:
        """Sleep for the backoff delay, waking early if the call is cancelled."""
        if token is None:
            await asyncio.sleep(delay_ms / 1000)
            return

        try:
            await asyncio.wait_for(token.wait(), timeout=delay_ms / 1000)
        except asyncio.TimeoutError:
            return
        raise RequestCancelledError(token.reason)

    @staticmethod
    def _raise_if_cancelled(token: CancellationToken | None) -> None:
        if token is not None and token.cancelled:
            raise RequestCancelledError(token.reason)
