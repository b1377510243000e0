"""Logging setup driven by ObservabilityConfig.

Every module logs through ``logging.getLogger(__name__)`` and passes
context with ``extra={...}``. Plain text output uses the configured
format; structured output renders one JSON object per record, including
the extra fields.
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Any, Optional

from .config import ObservabilityConfig, get_config

# Attributes every LogRecord carries; anything else came from extra=.
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__.keys()
) | {"message", "asctime", "taskName"}

PACKAGE_LOGGER = "air_booking"


class JsonFormatter(logging.Formatter):
    """Render a record as a JSON object with its extra fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS or key.startswith("_"):
                continue
            try:
                json.dumps(value)
                payload[key] = value
            except (TypeError, ValueError):
                payload[key] = str(value)
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(
    config: Optional[ObservabilityConfig] = None,
    stream: Any = None,
) -> logging.Logger:
    """Attach a single handler to the package logger.

    Calling it again replaces the previous handler, so tests can
    reconfigure freely.

    Args:
        config: Logging settings, defaults to the application config.
        stream: Output stream, defaults to stderr.

    Returns:
        The configured package logger.
    """
    config = config or get_config().observability
    logger = logging.getLogger(PACKAGE_LOGGER)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    if config.structured:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(config.format))

    logger.addHandler(handler)
    logger.setLevel(config.level.upper())
    return logger
