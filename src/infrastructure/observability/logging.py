"""Structured logging configuration with OpenTelemetry integration.

Configures structlog for JSON logging with correlation IDs from trace context.
Masks credentials (cluster tokens, GitHub tokens, identity headers) in logs.
"""

import logging
import sys
from typing import Any

import structlog
from opentelemetry import trace

from src.infrastructure.config import get_settings

SENSITIVE_KEYS = frozenset(
    {
        "token",
        "github_token",
        "password",
        "secret",
        "authorization",
        "cookie",
        "x-auth-request-access-token",
    }
)


def configure_logging() -> None:
    """Configure structured logging with structlog.

    Sets up:
    - JSON or console rendering (OTEL_LOG_JSON_FORMAT)
    - Correlation IDs from OpenTelemetry trace context
    - Log level from configuration
    - Standard library logging integration, so use case loggers created with
      logging.getLogger(__name__) share the same output
    """
    settings = get_settings()
    otel_config = settings.observability
    level = getattr(logging, otel_config.log_level.upper(), logging.INFO)

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _add_trace_context,
        _mask_sensitive_values,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
    ]

    if otel_config.log_json_format:
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _add_trace_context(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Add trace_id and span_id of the current span, when there is one."""
    span_context = trace.get_current_span().get_span_context()
    if span_context.is_valid:
        event_dict["trace_id"] = format(span_context.trace_id, "032x")
        event_dict["span_id"] = format(span_context.span_id, "016x")
    return event_dict


def _mask_sensitive_values(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Mask credential values anywhere in the event (nested dicts included).

    Args:
        logger: Logger instance
        method_name: Log method name (info, error, etc.)
        event_dict: Log event dictionary

    Returns:
        Event dictionary with sensitive values masked
    """
    return _mask_mapping(event_dict)


def _mask_mapping(values: dict[str, Any]) -> dict[str, Any]:
    masked: dict[str, Any] = {}
    for key, value in values.items():
        if isinstance(value, dict):
            masked[key] = _mask_mapping(value)
        elif isinstance(key, str) and key.lower() in SENSITIVE_KEYS:
            masked[key] = _mask(value)
        else:
            masked[key] = value
    return masked


def _mask(value: Any) -> str:
    if isinstance(value, str) and len(value) > 8:
        return f"{value[:4]}{'*' * (len(value) - 4)}"
    return "***REDACTED***"


def get_logger(name: str) -> structlog.BoundLogger:
    """Get structured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Structured logger with bound context

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("service_created", service="payments", tier="TIER-1")
    """
    return structlog.get_logger(name)
