"""curlish - curl-like HTTP requests for asyncio applications.

curlish wraps a single HTTP transport (httpx by default) with a fluent
request builder, a curl command parser and an execution engine that adds
timeouts, cancellation, retry with backoff and request/response
interceptors.

Key Features:
    - Fluent request building with ``client.request(url)``
    - Parse curl commands into requests with ``client.from_curl()``
    - Per-attempt timeouts raced against an external cancellation token
    - Retries on transport errors and configurable status codes with
      linear or exponential (jittered) backoff
    - Sync or async request/response interceptors, owned per client

Quick Start:
    Basic usage example::

        from curlish import CurlClient

        async with CurlClient() as client:
            response = await client.request("https://api.example.com/users") \\
                .query({"page": 1}) \\
                .timeout(5000) \\
                .get()
            print(response.status, response.data)

Curl Commands:
    Convert a copied curl command into a request::

        response = await client.from_curl('''
            curl -X POST https://api.example.com/users \\
              -H "Content-Type: application/json" \\
              -d '{"name":"John"}'
        ''').send()

    Or only parse it::

        parsed = parse('curl -u alice:secret https://api.example.com')
        parsed.auth  # BasicAuth(username='alice', password='secret')

Interceptors:
    Register transforms that run on every request or response::

        def add_request_id(request):
            request.headers["X-Request-ID"] = new_id()
            return request

        handler_id = client.interceptors.request.use(add_request_id)
        client.interceptors.request.eject(handler_id)

See Also:
    - RequestModel: Data describing a pending call
    - RetryConfig: Retry and backoff policy
    - ClientSettings: Client-wide defaults
"""

import logging

__version__ = "0.1.0"

from .builder import RequestBuilder
from .client import CurlClient
from .config import ClientSettings
from .errors import (
    ConfigurationError,
    CurlishError,
    MissingUrlError,
    RequestCancelledError,
    RequestTimeoutError,
    RetryableStatusError,
)
from .executor import HttpxTransport, RequestExecutor
from .interceptors import InterceptorChain, InterceptorManager
from .logging_config import setup_logging
from .parser import parse, parse_curl_command, request_from_curl
from .types import (
    BasicAuth,
    CancellationToken,
    CurlResponse,
    FileUpload,
    FormBody,
    JsonBody,
    MultipartBody,
    ParsedCommand,
    RawBody,
    RequestInterceptor,
    RequestModel,
    RequestTiming,
    ResponseInterceptor,
    RetryConfig,
    Transport,
)
from .utils import calculate_backoff

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "BasicAuth",
    "CancellationToken",
    "ClientSettings",
    "ConfigurationError",
    "CurlClient",
    "CurlResponse",
    "CurlishError",
    "FileUpload",
    "FormBody",
    "HttpxTransport",
    "InterceptorChain",
    "InterceptorManager",
    "JsonBody",
    "MissingUrlError",
    "MultipartBody",
    "ParsedCommand",
    "RawBody",
    "RequestBuilder",
    "RequestCancelledError",
    "RequestExecutor",
    "RequestInterceptor",
    "RequestModel",
    "RequestTiming",
    "RequestTimeoutError",
    "ResponseInterceptor",
    "RetryConfig",
    "RetryableStatusError",
    "Transport",
    "calculate_backoff",
    "parse",
    "parse_curl_command",
    "request_from_curl",
    "setup_logging",
]
