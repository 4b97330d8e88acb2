"""Structured logging for the package.

Modules obtain loggers through :func:`get_logger`, which tags every event
with ``library="outlook_mail"``.  Applications that want the package's
output rendered call :func:`setup_logging` once; its processor chain
includes :func:`redact_secrets` so tokens and client secrets never reach
a handler.
"""

from __future__ import annotations

import logging
import re
import sys
from collections.abc import MutableMapping
from typing import Any

import structlog

LIBRARY_NAME = "outlook_mail"
REDACTED = "[REDACTED]"

SENSITIVE_KEYS = frozenset(
    {
        "access_token",
        "refresh_token",
        "id_token",
        "client_secret",
        "code",
        "token",
        "xoauth2",
    }
)

_BEARER_RE = re.compile(r"(Bearer\s+)\S+", re.IGNORECASE)


def get_logger(name: str) -> Any:
    """Return a structlog logger bound to the package context."""
    return structlog.get_logger(name, library=LIBRARY_NAME)


def redact_secrets(
    _logger: Any, _method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """structlog processor masking credential fields and bearer tokens."""
    for key, value in event_dict.items():
        if key in SENSITIVE_KEYS and value:
            event_dict[key] = REDACTED
        elif isinstance(value, str) and "earer" in value:
            event_dict[key] = _BEARER_RE.sub(rf"\g<1>{REDACTED}", value)
    return event_dict


def setup_logging(*, json: bool = True, level: str = "INFO") -> None:
    """Configure structlog and route its output through the stdlib root logger.

    Parameters
    ----------
    json:
        If *True* (the default), output JSON lines.  If *False*, use a
        human-friendly console renderer.
    level:
        Level name applied to the package logger (e.g. ``"DEBUG"``).
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            redact_secrets,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    renderer: Any = (
        structlog.processors.JSONRenderer() if json else structlog.dev.ConsoleRenderer()
    )
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    # Only the package logger is touched; the host application owns the root.
    package_logger = logging.getLogger(LIBRARY_NAME)
    package_logger.handlers.clear()
    package_logger.addHandler(handler)
    package_logger.setLevel(level.upper())
    package_logger.propagate = False
