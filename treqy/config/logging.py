"""
structlog setup for the Treqy service.

structlog events and stdlib records (uvicorn, httpx) share one formatter, so
staging and production emit one JSON object per line. Model replies can be
very long; they are clipped before rendering, and credentials are masked.
"""

import logging
import sys

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from treqy.config.settings import Settings, get_settings

# Event keys that may carry model output or upstream bodies
CLIPPED_KEYS = ("raw_text", "raw_response_preview", "error_body", "error")
CLIP_AT = 1000

SECRET_KEYS = frozenset({"api_key", "authorization", "password", "token"})

# Chatty at INFO; one line per request or query
QUIET_LOGGERS = ("httpx", "httpcore", "aiosqlite", "uvicorn.access")


def clip_payloads(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
    """Shorten long model output so a bad reply doesn't flood the log."""
    for key in CLIPPED_KEYS:
        value = event_dict.get(key)
        if isinstance(value, str) and len(value) > CLIP_AT:
            event_dict[key] = f"{value[:CLIP_AT]}... ({len(value)} chars)"
    return event_dict


def redact_secrets(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
    for key in SECRET_KEYS.intersection(event_dict):
        if event_dict[key]:
            event_dict[key] = "***"
    return event_dict


class ServiceContext:
    """Stamp every event with the service identity."""

    def __init__(self, settings: Settings):
        self.fields = {
            "service": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment,
        }

    def __call__(self, _: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
        for key, value in self.fields.items():
            event_dict.setdefault(key, value)
        return event_dict


def _renderers(settings: Settings) -> list[Processor]:
    if settings.environment == "development":
        # ConsoleRenderer formats exc_info itself
        return [structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())]
    return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]


def configure_logging(settings: Settings | None = None) -> None:
    """Configure structlog and route stdlib logging through it."""
    settings = settings or get_settings()

    shared: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        ServiceContext(settings),
        redact_secrets,
        clip_payloads,
    ]

    structlog.configure(
        processors=[
            *shared,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *_renderers(settings),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(settings.log_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
