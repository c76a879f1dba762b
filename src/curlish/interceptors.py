"""Request and response interceptor registry.

Each client owns one ``InterceptorManager`` holding two independent chains.
Handlers run in registration order and may be plain functions or
coroutine functions; the value returned by one handler is the input of the
next.

Ejecting a handler swaps its slot for an identity pass-through instead of
removing it, so ids stay valid and a call that is part-way through a chain
never sees slots shift under it.

Example:
    client = CurlClient()

    def add_request_id(request):
        request.headers["X-Request-ID"] = uuid.uuid4().hex
        return request

    handler_id = client.interceptors.request.use(add_request_id)
    ...
    client.interceptors.request.eject(handler_id)
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, Generic, TypeVar

from .types import CurlResponse, RequestModel

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _identity(value: T) -> T:
    return value


class InterceptorChain(Generic[T]):
    """An ordered, append-only list of transform handlers."""

    def __init__(self, kind: str):
        self.kind = kind
        self._handlers: list[Callable[[T], Any]] = []

    def __len__(self) -> int:
        return len(self._handlers)

    @property
    def handlers(self) -> tuple[Callable[[T], Any], ...]:
        """Snapshot of the current slots, ejected ones included."""
        return tuple(self._handlers)

    def use(self, handler: Callable[[T], Any]) -> int:
        """Register a handler and return its id."""
        handler_id = len(self._handlers)
        self._handlers.append(handler)
        logger.debug(f"Registered {self.kind} interceptor {handler_id}")
        return handler_id

    def eject(self, handler_id: int) -> None:
        """Replace the handler at ``handler_id`` with a no-op. Unknown ids are ignored."""
        if 0 <= handler_id < len(self._handlers):
            self._handlers[handler_id] = _identity
            logger.debug(f"Ejected {self.kind} interceptor {handler_id}")

    def clear(self) -> None:
        """Drop every handler. Calls already iterating keep their old list."""
        self._handlers = []

    async def run(self, value: T) -> T:
        """Pass ``value`` through every handler in registration order.

        The handler list and its length are captured when the run starts:
        handlers registered later are not applied, while slots ejected
        later are seen as no-ops. Exceptions raised by a handler propagate
        unchanged and stop the run.
        """
        handlers = self._handlers
        for index in range(len(handlers)):
            result = handlers[index](value)
            if inspect.isawaitable(result):
                result = await result
            value = result
        return value


class InterceptorManager:
    """Request and response interceptor chains for one client."""

    def __init__(self) -> None:
        self.request: InterceptorChain[RequestModel] = InterceptorChain("request")
        self.response: InterceptorChain[CurlResponse] = InterceptorChain("response")

    def clear(self) -> None:
        """Clear all interceptors."""
        self.request.clear()
        self.response.clear()
