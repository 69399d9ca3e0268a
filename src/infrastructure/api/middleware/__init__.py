"""API middleware components.

This module contains middleware for identity extraction, error handling,
logging, and metrics.
"""

from .auth import get_current_user, require_user
from .error_handler import ErrorHandlerMiddleware
from .logging_middleware import LoggingMiddleware
from .metrics_middleware import MetricsMiddleware

__all__ = [
    "get_current_user",
    "require_user",
    "ErrorHandlerMiddleware",
    "LoggingMiddleware",
    "MetricsMiddleware",
]
