"""Shared helpers for the execution engine, builder and parser."""

from __future__ import annotations

import base64
import dataclasses
import random
from collections.abc import Mapping

import httpx

from .types import QueryParams, QueryValue, RequestModel

DEFAULT_RETRYABLE_STATUS_CODES = (408, 429, 500, 502, 503, 504)

# Jitter applied to exponential delays, as a fraction of the delay
JITTER_RATIO = 0.25


def calculate_backoff(
    attempt: int,
    strategy: str = "exponential",
    base_delay: float = 1000.0,
    max_delay: float = 30000.0,
) -> float:
    """Calculate the delay before the next attempt.

    Args:
        attempt: Number of the attempt that just failed (1-indexed)
        strategy: "linear" or "exponential"
        base_delay: Base delay in milliseconds
        max_delay: Upper bound in milliseconds

    Returns:
        Delay in milliseconds, always within ``[0, max_delay]``
    """
    if strategy == "linear":
        delay = base_delay * attempt
    else:
        delay = min(base_delay * (2 ** (attempt - 1)), max_delay)
        delay += delay * random.uniform(-JITTER_RATIO, JITTER_RATIO)

    return min(max(delay, 0.0), max_delay)


def is_retryable_status(
    status: int, retryable_codes: list[int] | tuple[int, ...] = DEFAULT_RETRYABLE_STATUS_CODES
) -> bool:
    """Check if a status code is in the retryable set."""
    return status in retryable_codes


def _query_value_to_str(value: QueryValue) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_url(url: str, query: QueryParams | None = None) -> httpx.URL:
    """Append query parameters to a URL.

    Parameters already present on the URL are preserved; new ones are
    appended after them, so repeated names produce repeated parameters.
    """
    parsed = httpx.URL(url)
    if not query:
        return parsed

    items = query.items() if isinstance(query, Mapping) else query
    params = parsed.params
    for key, value in items:
        params = params.add(key, _query_value_to_str(value))

    return parsed.copy_with(params=params)


def encode_basic_auth(username: str, password: str) -> str:
    """Encode credentials as a Basic Authorization header value."""
    credentials = f"{username}:{password}".encode()
    return f"Basic {base64.b64encode(credentials).decode('ascii')}"


def parse_content_type(headers: httpx.Headers) -> str | None:
    """Return the lower-cased media type without parameters, or None."""
    content_type = headers.get("content-type")
    if not content_type:
        return None
    return content_type.split(";")[0].strip().lower()


def should_parse_json(headers: httpx.Headers) -> bool:
    """Check if the response declares a JSON-family content type."""
    content_type = parse_content_type(headers)
    if content_type is None:
        return False
    return content_type == "application/json" or content_type.endswith("+json")


def clone_request(request: RequestModel) -> RequestModel:
    """Copy a request model so that mutations cannot reach the original.

    Headers, query and retry policy get their own objects. Body variants are
    frozen and the cancellation token is shared with the original.
    """
    query = request.query
    if query is not None:
        query = dict(query) if isinstance(query, Mapping) else list(query)

    return dataclasses.replace(
        request,
        headers=httpx.Headers(request.headers),
        query=query,
        retry=request.retry.model_copy() if request.retry else None,
    )
