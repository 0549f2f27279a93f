"""
Structured Logging Configuration

This module sets up structured logging using structlog.
Logs are formatted as JSON in production for easy parsing by log aggregators.

Design Decisions:
- Use structlog for structured, contextual logging
- JSON format in production, colored console in development
- Never log sensitive data (GitHub tokens, OpenAI keys)
- Never log full diffs or prompts, only their sizes
"""

import logging
import sys
from typing import Any, Dict

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from pr_analyzer import __version__
from pr_analyzer.config import get_settings

SENSITIVE_KEYS = frozenset({
    "token", "access_token", "api_key", "apikey", "secret",
    "password", "authorization", "auth", "credential", "credentials", "bearer",
})

# Key endings that mark a credential (github_token, openai_api_key)
SENSITIVE_SUFFIXES = ("_token", "_key", "_secret", "_password")

# Prefixes of GitHub and OpenAI credentials
TOKEN_PREFIXES = ("sk-", "ghp_", "ghs_", "gho_", "ghu_", "github_pat_")

REDACTED = "[REDACTED]"


def _redact(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            key: REDACTED if _is_sensitive_key(key) else _redact(item)
            for key, item in value.items()
        }
    if isinstance(value, str) and len(value) > 20 and value.startswith(TOKEN_PREFIXES):
        return REDACTED
    return value


def _is_sensitive_key(key: Any) -> bool:
    name = str(key).lower().replace("-", "_")
    return name in SENSITIVE_KEYS or name.endswith(SENSITIVE_SUFFIXES)


def filter_sensitive_data(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """
    Processor that redacts credentials from log entries.

    Keys that look like credential names are replaced outright; string
    values are replaced when they carry a known token prefix.
    """
    return _redact(event_dict)


def add_app_context(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add application context to every log entry."""
    event_dict["app"] = "ai-pr-analyzer"
    event_dict["version"] = __version__
    return event_dict


def setup_logging() -> None:
    """
    Configure structured logging for the application.

    This function should be called once at application startup.
    It configures both structlog and the standard logging library.
    """
    settings = get_settings()

    shared_processors: list[Processor] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        add_app_context,
        filter_sensitive_data,
    ]

    if settings.log_json_format:
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=shared_processors + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    # Replace handlers so repeated setup does not duplicate output
    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(getattr(logging, settings.log_level))

    # Suppress noisy loggers
    for noisy in ("httpx", "httpcore", "openai"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a logger instance with the given name.

    Usage:
        logger = get_logger(__name__)
        logger.info("Fetching PR", owner="octocat", repo="hello", pr_number=1)

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


def describe_text(text: str) -> Dict[str, int]:
    """Size fields for logging a large text without logging its content."""
    return {"chars": len(text), "lines": text.count("\n") + 1 if text else 0}
