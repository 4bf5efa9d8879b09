"""
Structured logging setup.
"""

import logging
import re
import sys
from typing import Any

import structlog

_SECRET_PATTERNS = [
    (re.compile(r"(AccountKey=)[^;]+", re.IGNORECASE), r"\1***REDACTED***"),
    (re.compile(r"(SharedAccessSignature=)[^;&]+", re.IGNORECASE), r"\1***REDACTED***"),
    (re.compile(r"(sig=)[^;&]+", re.IGNORECASE), r"\1***REDACTED***"),
]


def redact_secrets(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Mask account keys and SAS signatures in string values."""
    for key, value in event_dict.items():
        if isinstance(value, str):
            for pattern, replacement in _SECRET_PATTERNS:
                value = pattern.sub(replacement, value)
            event_dict[key] = value
    return event_dict


def configure_logging(level: str = "INFO", fmt: str = "json") -> None:
    """
    Configure structlog for the process.

    Args:
        level: Minimum level name (e.g. "DEBUG", "INFO")
        fmt: "json" for machine-readable output, "text" for the console renderer
    """
    renderer: Any
    if fmt == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            redact_secrets,
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
        cache_logger_on_first_use=False,
    )
