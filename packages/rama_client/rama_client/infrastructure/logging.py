"""Logging configuration for the Rama REST client.

Library modules only obtain loggers through :func:`get_logger` and attach
context with ``extra={...}``. Applications (such as the CLI) call
:func:`setup_logging` once to install handlers.
"""

import json
import logging
import sys
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

ROOT_LOGGER_NAME = "rama_client"

# Attributes every LogRecord has; anything else came from ``extra``.
_RECORD_ATTRIBUTES = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime", "taskName"}


class LogLevel(str, Enum):
    """Levels accepted by setup_logging."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LoggingConfig(BaseModel):
    """Handler settings for the rama_client logger."""

    level: LogLevel = Field(default=LogLevel.INFO, description="Level of the rama_client logger")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Format string for plain text output",
    )
    date_format: str = Field(
        default="%Y-%m-%d %H:%M:%S",
        description="strftime format for asctime",
    )
    json_format: bool = Field(
        default=False,
        description="Emit one JSON object per record",
    )
    stream: str = Field(default="stderr", pattern="^(stdout|stderr)$", description="Output stream")


class StructuredFormatter(logging.Formatter):
    """Formatter emitting one JSON object per record, including ``extra`` fields."""

    def format(self, record: logging.LogRecord) -> str:
        """Serialize the record and its extra fields."""
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRIBUTES and not key.startswith("_"):
                log_data[key] = value

        return json.dumps(log_data, default=str)


def setup_logging(config: LoggingConfig | None = None) -> logging.Logger:
    """
    Install a handler on the ``rama_client`` logger.

    Args:
        config: Handler settings, defaults when omitted

    Returns:
        The configured package logger
    """
    if config is None:
        config = LoggingConfig()

    package_logger = logging.getLogger(ROOT_LOGGER_NAME)
    package_logger.handlers.clear()
    package_logger.setLevel(config.level.value)
    package_logger.propagate = False

    if config.json_format:
        formatter: logging.Formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(config.format, datefmt=config.date_format)

    handler = logging.StreamHandler(sys.stdout if config.stream == "stdout" else sys.stderr)
    handler.setFormatter(formatter)
    package_logger.addHandler(handler)

    package_logger.debug("Logging configured", extra={"config": config.model_dump(mode="json")})
    return package_logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
