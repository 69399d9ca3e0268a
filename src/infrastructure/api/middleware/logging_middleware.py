"""Logging middleware for structured request/response logging.

Logs every HTTP request with its correlation ID, acting user, duration and
status code. Identity headers other than the username are never logged.
"""

import time
from typing import Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from src.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

QUIET_PATHS = {"/api/health", "/api/health/ready", "/api/metrics"}


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log HTTP requests and responses.

    Logs:
    - Request method, path and client IP address
    - Response status code and duration
    - Correlation ID and username (bound to the structlog context)

    Health check and scrape endpoints are logged at DEBUG.
    """

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        start_time = time.perf_counter()

        method = request.method
        path = request.url.path
        client_ip = self._get_client_ip(request)
        log = logger.debug if path in QUIET_PATHS else logger.info

        structlog.contextvars.bind_contextvars(
            correlation_id=getattr(request.state, "correlation_id", None),
            user=request.headers.get("X-Auth-Request-User"),
        )
        try:
            log(
                "HTTP request received",
                method=method,
                path=path,
                client_ip=client_ip,
                query_params=str(request.query_params) if request.query_params else None,
            )

            try:
                response = await call_next(request)
            except Exception as e:
                logger.error(
                    "HTTP request failed",
                    method=method,
                    path=path,
                    duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
                    client_ip=client_ip,
                    error=str(e),
                    exc_info=True,
                )
                raise

            log(
                "HTTP request completed",
                method=method,
                path=path,
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
                client_ip=client_ip,
            )
            return response
        finally:
            structlog.contextvars.unbind_contextvars("correlation_id", "user")

    def _get_client_ip(self, request: Request) -> str:
        """Extract client IP address from request.

        Checks X-Forwarded-For header first (the OAuth2 proxy sits in front),
        falls back to direct client address.
        """
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            # First IP in the chain is the original client
            return forwarded_for.split(",")[0].strip()

        if request.client:
            return request.client.host

        return "unknown"
