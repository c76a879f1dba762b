"""Console logging for the ``curlish`` logger hierarchy.

Every module logs through ``logging.getLogger(__name__)``, so configuring
the ``curlish`` logger covers the parser, executor and client at once.
"""

from __future__ import annotations

import logging
import sys

LOGGER_NAME = "curlish"


def setup_logging(
    level: str = "INFO",
    format_string: str | None = None,
    force: bool = False,
) -> logging.Logger:
    """Set up console logging for curlish.

    Retries are logged at WARNING, terminal failures at ERROR and
    per-request details at DEBUG.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_string: Optional custom format string for log messages
        force: If True, reconfigure even if handlers exist

    Returns:
        The configured ``curlish`` logger
    """
    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(numeric_level)

    has_stream_handler = any(
        isinstance(handler, logging.StreamHandler) for handler in logger.handlers
    )
    if force or not has_stream_handler:
        logger.handlers.clear()

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(logging.Formatter(format_string))
        logger.addHandler(console_handler)

    logger.propagate = False

    return logger
