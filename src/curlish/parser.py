"""Parser for curl command strings.

``parse_curl_command`` turns a shell-style curl invocation into a
``ParsedCommand``. It is a pure function: it performs no I/O and never
raises on malformed input, leaving fields at their defaults instead.

``request_from_curl`` is the second, higher-level step that turns a parse
result into an executable ``RequestModel``.

Example:
    >>> parsed = parse('curl -H "Content-Type: application/json" -d \\'{"a":1}\\' https://x/y')
    >>> parsed.method, parsed.url, parsed.body
    ('POST', 'https://x/y', '{"a":1}')
"""

from __future__ import annotations

import json
import logging
import re
from types import MappingProxyType
from urllib.parse import unquote

import httpx

from .errors import MissingUrlError
from .types import BasicAuth, Body, FormBody, JsonBody, ParsedCommand, RawBody, RequestModel
from .utils import encode_basic_auth

logger = logging.getLogger(__name__)

_LINE_CONTINUATION = re.compile(r"\\\r?\n")
_WHITESPACE = re.compile(r"\s+")
_URL_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*://")

PROGRAM_NAME = "curl"

_METHOD_FLAGS = frozenset({"-X", "--request"})
_HEADER_FLAGS = frozenset({"-H", "--header"})
_DATA_FLAGS = frozenset({"-d", "--data", "--data-raw", "--data-binary"})
_USER_FLAGS = frozenset({"-u", "--user"})
_URL_FLAGS = frozenset({"--url"})

# Value flags that map straight onto a single header
_HEADER_ALIAS_FLAGS = {
    "-A": "User-Agent",
    "--user-agent": "User-Agent",
    "-e": "Referer",
    "--referer": "Referer",
    "-b": "Cookie",
    "--cookie": "Cookie",
}

# Recognized but irrelevant to the request model
_IGNORED_BOOLEAN_FLAGS = frozenset(
    {
        "-L",
        "--location",
        "-k",
        "--insecure",
        "-s",
        "--silent",
        "-S",
        "--show-error",
        "-i",
        "--include",
        "-v",
        "--verbose",
    }
)

_VALUE_FLAGS = (
    _METHOD_FLAGS
    | _HEADER_FLAGS
    | _DATA_FLAGS
    | _USER_FLAGS
    | _URL_FLAGS
    | set(_HEADER_ALIAS_FLAGS)
)

COMPRESSED_ENCODINGS = "gzip, deflate, br"


def _normalize(command: str) -> str:
    normalized = _LINE_CONTINUATION.sub(" ", command)
    return _WHITESPACE.sub(" ", normalized).strip()


def tokenize(command: str) -> list[str]:
    """Split a normalized command into tokens, honoring quotes and escapes.

    A backslash makes the next character literal and is itself dropped.
    Quote characters are elided; inside a quoted region the other kind of
    quote is kept literally. An unquoted space ends the current token and
    empty tokens are never emitted.
    """
    tokens: list[str] = []
    current: list[str] = []
    in_quote: str | None = None
    escaped = False

    for char in command:
        if escaped:
            current.append(char)
            escaped = False
            continue

        if char == "\\":
            escaped = True
            continue

        if char in ("'", '"'):
            if in_quote is None:
                in_quote = char
            elif in_quote == char:
                in_quote = None
            else:
                current.append(char)
            continue

        if char == " " and in_quote is None:
            if current:
                tokens.append("".join(current))
                current = []
            continue

        current.append(char)

    if current:
        tokens.append("".join(current))

    return tokens


def is_url(token: str) -> bool:
    """Check if a token looks like a URL (``scheme://`` or ``www.`` prefix)."""
    return bool(_URL_PATTERN.match(token)) or token.startswith("www.")


def _split_header(value: str) -> tuple[str, str] | None:
    key, sep, rest = value.partition(":")
    key, rest = key.strip(), rest.strip()
    if not sep or not key or not rest:
        return None
    return key, rest


def _set_header(headers: dict[str, str], key: str, value: str) -> None:
    """Store a header, replacing any earlier entry whose name differs only in case."""
    for existing in [name for name in headers if name.lower() == key.lower()]:
        del headers[existing]
    headers[key] = value


def _split_auth(value: str) -> BasicAuth | None:
    username, sep, password = value.partition(":")
    if not sep or not username:
        return None
    return BasicAuth(username=username, password=password)


def parse_curl_command(command: str) -> ParsedCommand:
    """Parse a curl command string into a ``ParsedCommand``.

    Malformed headers and credentials are dropped silently and a command
    without a URL yields ``url=""``; this function never raises.

    Args:
        command: A curl invocation, optionally spanning several lines with
            backslash continuations

    Returns:
        The parsed command
    """
    tokens = tokenize(_normalize(command))
    if tokens and tokens[0] == PROGRAM_NAME:
        tokens = tokens[1:]

    url = ""
    method = "GET"
    explicit_method = False
    headers: dict[str, str] = {}
    body: str | None = None
    auth: BasicAuth | None = None

    i = 0
    while i < len(tokens):
        token = tokens[i]
        i += 1

        if not token.startswith("-"):
            if not url and is_url(token):
                url = token
            continue

        if token == "--compressed":
            _set_header(headers, "Accept-Encoding", COMPRESSED_ENCODINGS)
            continue

        if token in _IGNORED_BOOLEAN_FLAGS or token not in _VALUE_FLAGS:
            continue

        if i >= len(tokens):
            # Value flag in last position
            break
        value = tokens[i]
        i += 1

        if token in _METHOD_FLAGS:
            method = value.upper()
            explicit_method = True
        elif token in _HEADER_FLAGS:
            header = _split_header(value)
            if header is not None:
                _set_header(headers, *header)
        elif token in _DATA_FLAGS:
            body = value
            if not explicit_method:
                method = "POST"
        elif token in _USER_FLAGS:
            auth = _split_auth(value)
        elif token in _URL_FLAGS:
            url = value
        else:
            _set_header(headers, _HEADER_ALIAS_FLAGS[token], value)

    return ParsedCommand(
        url=url,
        method=method,
        headers=MappingProxyType(headers),
        body=body,
        auth=auth,
    )


parse = parse_curl_command


def _parse_form(text: str) -> FormBody:
    fields = []
    for pair in text.split("&"):
        key, _, value = pair.partition("=")
        if key:
            fields.append((unquote(key), unquote(value)))
    return FormBody(tuple(fields))


def translate_body(text: str, headers: httpx.Headers) -> Body:
    """Pick a body variant for a command-line payload.

    JSON text becomes ``JsonBody``; otherwise a declared form content type
    yields ``FormBody``; anything else is kept as ``RawBody``.
    """
    try:
        return JsonBody(json.loads(text))
    except ValueError:
        pass

    content_type = headers.get("content-type", "")
    if "application/x-www-form-urlencoded" in content_type.lower():
        return _parse_form(text)

    return RawBody(text)


def request_from_curl(command: str | ParsedCommand) -> RequestModel:
    """Convert a curl command (or its parse result) into a request model.

    Args:
        command: The curl command string, or a ``ParsedCommand``

    Returns:
        An executable request model carrying the parsed method, headers,
        body and credentials

    Raises:
        MissingUrlError: If the command contains no URL
    """
    parsed = command if isinstance(command, ParsedCommand) else parse_curl_command(command)

    if not parsed.url:
        raise MissingUrlError(command=command if isinstance(command, str) else None)

    headers = httpx.Headers()
    for key, value in parsed.headers.items():
        headers[key] = value
    request = RequestModel(url=parsed.url, method=parsed.method, headers=headers)

    if parsed.body is not None:
        request.body = translate_body(parsed.body, headers)
        if isinstance(request.body, JsonBody):
            headers["Content-Type"] = "application/json"

    if parsed.auth is not None:
        headers["Authorization"] = encode_basic_auth(parsed.auth.username, parsed.auth.password)

    logger.debug(f"Converted curl command to {request.method} {request.url}")
    return request
