# Copyright 2026 Firefly Software Solutions Inc
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Logging configuration for TaskPilot."""

import json
import logging
import sys
from enum import Enum
from typing import Optional, TextIO, Union


class LogFormat(str, Enum):
    """Output format for log records."""

    HUMAN = "human"
    JSON = "json"


class JsonFormatter(logging.Formatter):
    """Render each record as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record),
            "logger": record.name,
            "level": record.levelname,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def setup_logger(
    name: str = "taskpilot",
    level: int = logging.INFO,
    format_string: Optional[str] = None,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Setup and configure a logger for TaskPilot.

    Args:
        name: Logger name
        level: Logging level
        format_string: Custom format string for log messages
        stream: Output stream (defaults to stdout)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setLevel(level)

    if format_string is None:
        format_string = (
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
    formatter = logging.Formatter(format_string)
    handler.setFormatter(formatter)

    logger.addHandler(handler)

    return logger


def configure_logging(
    level: Union[int, str] = logging.INFO,
    fmt: LogFormat = LogFormat.HUMAN,
    name: str = "taskpilot",
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Configure the package logger for command-line use.

    Args:
        level: Logging level as int or name ("DEBUG", "INFO", ...)
        fmt: Human-readable or JSON-lines output
        name: Logger name
        stream: Output stream (defaults to stdout)

    Returns:
        Configured logger instance
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    configured = setup_logger(name=name, level=level, stream=stream)
    if fmt == LogFormat.JSON:
        for handler in configured.handlers:
            handler.setFormatter(JsonFormatter())
    return configured


# Default logger instance
logger = setup_logger()
