"""Client settings and environment loading."""

from __future__ import annotations

import os
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from . import __version__
from .errors import ConfigurationError
from .types import RetryConfig

ENV_PREFIX = "CURLISH_"

DEFAULT_ACCEPT = "application/json, text/plain, */*"


class ClientSettings(BaseModel):
    """Defaults applied to every request a ``CurlClient`` builds.

    Attributes:
        timeout_ms: Default per-attempt timeout in milliseconds (default: None)
        follow_redirects: Whether redirects are followed by default (default: True)
        max_redirects: Redirect limit for the transport (default: 20)
        verify_ssl: Whether to verify TLS certificates (default: True)
        user_agent: User-Agent sent unless a request overrides it
        headers: Extra default headers
        retry: Retry policy for requests that do not configure their own

    Example:
        settings = ClientSettings(
            timeout_ms=10_000,
            headers={"X-API-Version": "2"},
            retry=RetryConfig(count=2, status_codes=[503]),
        )
        client = CurlClient(settings)
    """

    model_config = ConfigDict(extra="forbid")

    timeout_ms: float | None = Field(None, gt=0)
    follow_redirects: bool = True
    max_redirects: int = Field(20, ge=0)
    verify_ssl: bool = True
    user_agent: str = f"curlish/{__version__}"
    headers: dict[str, str] = Field(default_factory=dict)
    retry: RetryConfig | None = None

    def default_headers(self) -> dict[str, str]:
        """Headers every new request starts with."""
        return {"Accept": DEFAULT_ACCEPT, "User-Agent": self.user_agent, **self.headers}

    @classmethod
    def from_env(
        cls,
        prefix: str = ENV_PREFIX,
        delimiter: str = "__",
        environ: dict[str, str] | None = None,
    ) -> ClientSettings:
        """Load settings from environment variables.

        ``CURLISH_TIMEOUT_MS=5000`` sets ``timeout_ms``; the delimiter nests
        keys, so ``CURLISH_RETRY__COUNT=3`` sets ``retry.count`` and
        ``CURLISH_HEADERS__X_API_KEY=secret`` sets the ``X-Api-Key`` header.

        Args:
            prefix: Prefix for environment variables
            delimiter: Separator for nested keys (default: "__")
            environ: Mapping to read instead of ``os.environ``

        Returns:
            Validated settings

        Raises:
            ConfigurationError: If a value fails validation
        """
        environ = os.environ if environ is None else environ
        prefix = prefix.upper()
        config: dict[str, Any] = {}

        for key, value in environ.items():
            if prefix and not key.startswith(prefix):
                continue
            key = key[len(prefix):]
            if not key:
                continue

            parts = key.lower().split(delimiter)
            if parts[0] == "headers" and len(parts) == 2:
                name = "-".join(word.capitalize() for word in parts[1].split("_"))
                config.setdefault("headers", {})[name] = value
                continue

            current = config
            for part in parts[:-1]:
                current = current.setdefault(part, {})
            current[parts[-1]] = _convert_value(value)

        try:
            return cls.model_validate(config)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid settings from environment: {e}") from e


def _convert_value(value: str) -> Any:
    """Convert an environment string to bool, int, float or list where it fits."""
    if not value:
        return value

    if value.lower() in ("true", "false"):
        return value.lower() == "true"

    try:
        return int(value)
    except ValueError:
        pass

    try:
        return float(value)
    except ValueError:
        pass

    if "," in value:
        return [item.strip() for item in value.split(",")]

    return value
