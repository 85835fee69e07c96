"""structlog configuration for the proxy manager.

The log sink is picked by name: ``stackdriver`` emits JSON lines understood by
Google Cloud Logging, ``bunyan`` (or ``json``) emits Bunyan-style JSON lines,
and anything else falls back to the human-readable console renderer.
"""

from __future__ import annotations

import logging
import os
import socket
import sys
from typing import Any, TextIO

import structlog

LOG_FORMATS = ("stackdriver", "bunyan", "json", "console")

_BUNYAN_LEVELS = {
    "debug": 20,
    "info": 30,
    "warning": 40,
    "error": 50,
    "critical": 60,
}


def _stackdriver_severity(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    level = event_dict.pop("level", "info")
    event_dict["severity"] = level.upper()
    return event_dict


def _bunyan_fields(name: str):
    hostname = socket.gethostname()
    pid = os.getpid()

    def processor(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        level = event_dict.pop("level", "info")
        event_dict["level"] = _BUNYAN_LEVELS.get(level, 30)
        event_dict["name"] = name
        event_dict["hostname"] = hostname
        event_dict["pid"] = pid
        event_dict["v"] = 0
        return event_dict

    return processor


def parse_level(level: str) -> int:
    """Translate a level name such as ``info`` into a logging constant."""
    value = logging.getLevelName(level.upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level}")
    return value


def configure_logging(
    log_format: str = "stackdriver",
    level: str = "info",
    *,
    name: str = "ambient_proxy_manager",
    stream: TextIO | None = None,
) -> None:
    """Configure structlog for the whole process.

    Args:
        log_format: Sink name, see LOG_FORMATS.
        level: Minimum level to emit.
        name: Service name reported by the bunyan sink.
        stream: Output stream, stdout by default.
    """
    min_level = parse_level(level)
    log_format = log_format.lower()

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.format_exc_info,
    ]

    if log_format == "stackdriver":
        processors += [
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="time"),
            _stackdriver_severity,
            structlog.processors.EventRenamer("message"),
            structlog.processors.JSONRenderer(),
        ]
    elif log_format in ("bunyan", "json"):
        processors += [
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="time"),
            _bunyan_fields(name),
            structlog.processors.EventRenamer("msg"),
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors += [
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", utc=False),
            structlog.dev.ConsoleRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(min_level),
        logger_factory=structlog.PrintLoggerFactory(stream or sys.stdout),
        cache_logger_on_first_use=False,
    )
