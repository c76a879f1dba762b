"""Shared test fixtures and utilities."""

from typing import Callable

import httpx
import pytest

from curlish import CurlClient, HttpxTransport, RequestExecutor


class Recorder:
    """Mock transport handler that records requests and replays scripted outcomes.

    Each outcome is either an ``httpx.Response`` to return, an exception to
    raise, or a callable taking the request. The last outcome repeats once
    the script runs out.
    """

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes) or [httpx.Response(200)]
        self.requests: list[httpx.Request] = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    def __call__(self, request: httpx.Request):
        self.requests.append(request)
        index = min(len(self.requests), len(self.outcomes)) - 1
        outcome = self.outcomes[index]
        if isinstance(outcome, BaseException):
            raise outcome
        if callable(outcome):
            return outcome(request)
        # Fresh copy so a repeated outcome is never sent twice
        return httpx.Response(outcome.status_code, headers=outcome.headers, content=outcome.content)


@pytest.fixture
def make_transport() -> Callable[..., HttpxTransport]:
    """Build an httpx-backed transport around a mock handler."""

    def factory(handler) -> HttpxTransport:
        return HttpxTransport(transport=httpx.MockTransport(handler))

    return factory


@pytest.fixture
def make_executor(make_transport) -> Callable[..., RequestExecutor]:
    """Build an executor with its own interceptor registry."""

    def factory(handler) -> RequestExecutor:
        return RequestExecutor(make_transport(handler))

    return factory


@pytest.fixture
def make_client(make_transport) -> Callable[..., CurlClient]:
    """Build a client whose requests go to a mock handler."""

    def factory(handler, settings=None) -> CurlClient:
        return CurlClient(settings=settings, transport=make_transport(handler))

    return factory
