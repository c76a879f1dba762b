"""Tests for client settings and logging setup."""

import logging

import httpx
import pytest

from curlish import (
    ClientSettings,
    ConfigurationError,
    HttpxTransport,
    RequestExecutor,
    RequestModel,
    RetryConfig,
    setup_logging,
)
from curlish.config import _convert_value


class TestClientSettings:
    """Test ClientSettings defaults and validation."""

    def test_defaults(self):
        settings = ClientSettings()
        assert settings.timeout_ms is None
        assert settings.follow_redirects is True
        assert settings.max_redirects == 20
        assert settings.retry is None
        assert settings.user_agent.startswith("curlish/")

    def test_default_headers_merge_extras(self):
        settings = ClientSettings(headers={"X-A": "1", "Accept": "text/csv"})
        headers = settings.default_headers()
        assert headers["Accept"] == "text/csv"
        assert headers["X-A"] == "1"
        assert "User-Agent" in headers

    def test_unknown_field_rejected(self):
        with pytest.raises(ValueError):
            ClientSettings(timeout=5)


class TestFromEnv:
    """Test loading settings from environment variables."""

    def test_empty_environment(self):
        assert ClientSettings.from_env(environ={}) == ClientSettings()

    def test_scalar_values(self):
        settings = ClientSettings.from_env(
            environ={
                "CURLISH_TIMEOUT_MS": "5000",
                "CURLISH_FOLLOW_REDIRECTS": "false",
                "CURLISH_USER_AGENT": "svc/2",
                "OTHER_TIMEOUT_MS": "1",
            }
        )
        assert settings.timeout_ms == 5000
        assert settings.follow_redirects is False
        assert settings.user_agent == "svc/2"

    def test_nested_retry(self):
        settings = ClientSettings.from_env(
            environ={
                "CURLISH_RETRY__COUNT": "3",
                "CURLISH_RETRY__BACKOFF": "linear",
                "CURLISH_RETRY__STATUS_CODES": "502,503",
            }
        )
        assert settings.retry.count == 3
        assert settings.retry.backoff == "linear"
        assert settings.retry.status_codes == [502, 503]

    def test_headers(self):
        settings = ClientSettings.from_env(
            environ={"CURLISH_HEADERS__X_API_KEY": "123", "CURLISH_HEADERS__ACCEPT": "text/csv"}
        )
        assert settings.headers == {"X-Api-Key": "123", "Accept": "text/csv"}

    def test_custom_prefix(self):
        settings = ClientSettings.from_env(prefix="app_http_", environ={"APP_HTTP_TIMEOUT_MS": "1"})
        assert settings.timeout_ms == 1

    @pytest.mark.parametrize(
        "environ",
        [
            {"CURLISH_TIMEOUT_MS": "-5"},
            {"CURLISH_RETRY__BACKOFF": "random"},
            {"CURLISH_UNKNOWN": "1"},
        ],
    )
    def test_invalid_values(self, environ):
        with pytest.raises(ConfigurationError, match="Invalid settings from environment"):
            ClientSettings.from_env(environ=environ)

    def test_reads_os_environ(self, monkeypatch):
        monkeypatch.setenv("CURLISH_MAX_REDIRECTS", "3")
        assert ClientSettings.from_env().max_redirects == 3


@pytest.mark.parametrize(
    "value,expected",
    [
        ("true", True),
        ("False", False),
        ("42", 42),
        ("1.5", 1.5),
        ("a, b", ["a", "b"]),
        ("plain", "plain"),
        ("", ""),
    ],
)
def test_convert_value(value, expected):
    assert _convert_value(value) == expected


class TestSetupLogging:
    """Test console logging configuration."""

    @pytest.fixture(autouse=True)
    def restore_logger(self):
        logger = logging.getLogger("curlish")
        handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
        yield
        logger.handlers = handlers
        logger.setLevel(level)
        logger.propagate = propagate

    def test_configures_stream_handler(self):
        logger = setup_logging("DEBUG")

        assert logger.name == "curlish"
        assert logger.level == logging.DEBUG
        stream_handlers = [h for h in logger.handlers if isinstance(h, logging.StreamHandler)]
        assert len(stream_handlers) == 1

    def test_is_idempotent_unless_forced(self):
        setup_logging("INFO")
        handler = logging.getLogger("curlish").handlers[0]

        setup_logging("INFO")
        assert logging.getLogger("curlish").handlers[0] is handler

        setup_logging("INFO", force=True)
        assert logging.getLogger("curlish").handlers[0] is not handler

    @pytest.mark.asyncio
    async def test_retry_warnings_reach_curlish_logger(self, caplog):
        outcomes = iter([httpx.ConnectError("down"), None])

        def respond(request):
            outcome = next(outcomes)
            if outcome is not None:
                raise outcome
            return httpx.Response(200)

        transport = HttpxTransport(transport=httpx.MockTransport(respond))
        request = RequestModel(url="https://x.com", retry=RetryConfig(count=1, delay_ms=0))

        with caplog.at_level(logging.WARNING, logger="curlish"):
            response = await RequestExecutor(transport).execute(request)

        assert response.status == 200
        assert any("attempt 1/2 failed" in record.getMessage() for record in caplog.records)
