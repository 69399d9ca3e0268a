"""Global error handling middleware.

Converts all exceptions to RFC 7807 Problem Details format for consistent error responses.
Includes correlation IDs for request tracing.
"""

import logging
import uuid

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from src.domain.exceptions import ServiceCatalogError, ServiceValidationError
from src.infrastructure.api.schemas.error_schema import ProblemDetails

logger = logging.getLogger(__name__)

PROBLEM_TYPE_BASE = "https://dash-ops.dev/errors"

STATUS_TEXTS = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    409: "Conflict",
    422: "Unprocessable Entity",
    500: "Internal Server Error",
    502: "Bad Gateway",
    503: "Service Unavailable",
}

# Catalog error kind -> (HTTP status, problem type slug)
CATALOG_ERROR_STATUS = {
    "validation": (status.HTTP_400_BAD_REQUEST, "validation"),
    "not_found": (status.HTTP_404_NOT_FOUND, "not-found"),
    "already_exists": (status.HTTP_409_CONFLICT, "already-exists"),
    "permission_denied": (status.HTTP_403_FORBIDDEN, "permission-denied"),
    "conflict": (status.HTTP_409_CONFLICT, "conflict"),
    "versioning_unavailable": (
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "versioning-unavailable",
    ),
    "backend_unavailable": (
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "backend-unavailable",
    ),
}


def get_correlation_id(request: Request) -> str:
    """Correlation ID of the request, assigning one if the middleware did not."""
    correlation_id = getattr(request.state, "correlation_id", None)
    if not correlation_id:
        correlation_id = str(uuid.uuid4())
        request.state.correlation_id = correlation_id
    return correlation_id


def catalog_error_to_problem(
    exc: ServiceCatalogError, request: Request
) -> ProblemDetails:
    """Map a catalog error onto Problem Details.

    Internal errors never leak their message to the client.
    """
    status_code, slug = CATALOG_ERROR_STATUS.get(
        exc.kind, (status.HTTP_500_INTERNAL_SERVER_ERROR, "internal")
    )
    detail = exc.message
    if status_code == status.HTTP_500_INTERNAL_SERVER_ERROR:
        detail = "An unexpected error occurred"

    return ProblemDetails(
        type=f"{PROBLEM_TYPE_BASE}/{slug}",
        title=STATUS_TEXTS.get(status_code, "Error"),
        status=status_code,
        detail=detail,
        instance=request.url.path,
        correlation_id=get_correlation_id(request),
        field=exc.field if isinstance(exc, ServiceValidationError) else None,
    )


def http_exception_to_problem(exc: HTTPException, request: Request) -> ProblemDetails:
    return ProblemDetails(
        type="about:blank",
        title=STATUS_TEXTS.get(exc.status_code, "Error"),
        status=exc.status_code,
        detail=exc.detail if isinstance(exc.detail, str) else str(exc.detail),
        instance=request.url.path,
        correlation_id=get_correlation_id(request),
    )


def problem_response(
    problem: ProblemDetails, headers: dict[str, str] | None = None
) -> JSONResponse:
    """Create JSONResponse from ProblemDetails.

    Args:
        problem: Problem Details object
        headers: Extra response headers (e.g. WWW-Authenticate)

    Returns:
        JSONResponse with appropriate status code and headers
    """
    return JSONResponse(
        status_code=problem.status,
        content=problem.model_dump(exclude_none=True),
        media_type="application/problem+json",
        headers={
            **(headers or {}),
            "X-Correlation-ID": problem.correlation_id or "",
        },
    )


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Middleware to handle all exceptions and return RFC 7807 Problem Details."""

    async def dispatch(self, request: Request, call_next):
        """Catch all exceptions and convert to Problem Details format.

        Args:
            request: Incoming HTTP request
            call_next: Next middleware/handler in chain

        Returns:
            Response with Problem Details format on error
        """
        # Reuse the caller's correlation ID when it sends one
        correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
        request.state.correlation_id = correlation_id

        try:
            response = await call_next(request)
            response.headers["X-Correlation-ID"] = correlation_id
            return response

        except Exception as exc:
            logger.error(
                f"Request failed with correlation_id={correlation_id}",
                exc_info=exc,
                extra={
                    "correlation_id": correlation_id,
                    "path": request.url.path,
                    "method": request.method,
                },
            )
            return problem_response(self._exception_to_problem(exc, request))

    def _exception_to_problem(self, exc: Exception, request: Request) -> ProblemDetails:
        if isinstance(exc, ServiceCatalogError):
            return catalog_error_to_problem(exc, request)

        if isinstance(exc, HTTPException):
            return http_exception_to_problem(exc, request)

        return ProblemDetails(
            type=f"{PROBLEM_TYPE_BASE}/internal",
            title=STATUS_TEXTS[500],
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred",
            instance=request.url.path,
            correlation_id=get_correlation_id(request),
        )
