"""Metrics middleware for recording HTTP request metrics.

Records Prometheus metrics for all HTTP requests including duration,
status codes, and endpoints.
"""

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from src.infrastructure.observability.metrics import record_http_request

UNMATCHED_ENDPOINT = "unmatched"


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware to record HTTP request metrics.

    Labels: method, endpoint, status_code. The endpoint label is the route
    template (``/api/service-catalog/services/{name}``), never the raw path,
    so service names do not leak into label cardinality.
    """

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        start_time = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start_time

        record_http_request(
            method=request.method,
            endpoint=self._normalize_endpoint(request),
            status_code=response.status_code,
            duration=duration,
        )
        return response

    def _normalize_endpoint(self, request: Request) -> str:
        """Route template of the matched endpoint.

        Requests that matched no route (404s, scanners) share one label.
        """
        route = request.scope.get("route")
        path = getattr(route, "path", None)
        if path:
            return path
        return UNMATCHED_ENDPOINT
