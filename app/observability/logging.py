"""
Structured Logging with Structlog.

JSON logs carrying service context and the request id bound by the HTTP
middleware. Credentials are masked and user-written text (prompts, generated
content) is clipped before rendering.
"""

import logging
import sys
from collections.abc import Mapping
from contextvars import Token
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from app.config import settings

# Keys whose values never reach the log output
SENSITIVE_KEYS = frozenset(
    {"authorization", "token", "access_token", "api_key", "service_key", "password", "secret"}
)

# Keys holding user-written text; logged only as a prefix
TEXT_KEYS = frozenset({"prompt", "content", "text", "text_content"})
MAX_TEXT_CHARS = 80

# Third-party loggers that log every outbound provider request at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


def add_app_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add service name and version to every entry."""
    event_dict.setdefault("service", settings.service_name)
    event_dict.setdefault("version", settings.api_version)
    return event_dict


def mask_sensitive_values(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    for key in event_dict:
        if key.lower() in SENSITIVE_KEYS and event_dict[key]:
            event_dict[key] = "***"
    return event_dict


def clip_user_text(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Replace long prompts/content with a prefix and the original length."""
    for key in TEXT_KEYS.intersection(event_dict):
        value = event_dict[key]
        if isinstance(value, str) and len(value) > MAX_TEXT_CHARS:
            event_dict[key] = f"{value[:MAX_TEXT_CHARS]}... ({len(value)} chars)"
    return event_dict


def build_processors(log_format: str, debug: bool) -> list[Processor]:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_app_context,
        mask_sensitive_values,
        clip_user_text,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if debug:
        processors.append(structlog.processors.ExceptionRenderer())
    else:
        processors.append(structlog.processors.format_exc_info)

    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))
    return processors


def setup_logging() -> None:
    """
    Configure structlog on top of stdlib logging.

    A JSON entry looks like:
    {
        "event": "text_generation_completed",
        "level": "info",
        "timestamp": "2026-10-01T12:00:00.123456Z",
        "logger": "app.services.generation",
        "service": "writeai-api",
        "version": "0.1.0",
        "request_id": "3f2a...",
        "user_id": "...",
        "word_count": 412
    }
    """
    level = getattr(logging, settings.log_level.upper())
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    structlog.configure(
        processors=build_processors(settings.log_format, settings.log_level.upper() == "DEBUG"),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Usage:
        logger = get_logger(__name__)
        logger.info("project_created", user_id=user_id, tool_type="article")
    """
    return structlog.get_logger(name)  # type: ignore[no-any-return]


class log_context:
    """
    Bind structured logging context for the duration of a block.

    Nested blocks restore the outer values on exit, so the middleware's
    request_id survives a dependency binding user_id inside it.

    Usage:
        with log_context(request_id=request_id):
            with log_context(user_id=user.user_id):
                logger.info("session_hydrated")
    """

    def __init__(self, **kwargs: Any) -> None:
        self.context = kwargs
        self._tokens: Mapping[str, Token[Any]] = {}

    def __enter__(self) -> None:
        self._tokens = structlog.contextvars.bind_contextvars(**self.context)

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        structlog.contextvars.reset_contextvars(**self._tokens)
