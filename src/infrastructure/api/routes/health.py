"""
Health check endpoints.

Provides liveness and readiness checks for Kubernetes.
Also provides Prometheus metrics endpoint.
"""

import asyncio
import logging
import os

from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import JSONResponse

from src.infrastructure.api.dependencies import get_service_catalog_module
from src.infrastructure.module import ServiceCatalogModule
from src.infrastructure.observability.metrics import get_metrics_content

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/health",
    status_code=status.HTTP_200_OK,
    summary="Liveness check",
    description="Check if the service is alive",
    tags=["Health"],
)
async def liveness() -> dict:
    """
    Liveness check - whether the process is running.

    This endpoint always returns 200 if the process is alive.
    Used by Kubernetes to determine if the pod should be restarted.
    """
    return {
        "status": "healthy",
        "service": "dash-ops-service-catalog",
    }


@router.get(
    "/health/ready",
    status_code=status.HTTP_200_OK,
    summary="Readiness check",
    description="Check if the service is ready to accept traffic",
    tags=["Health"],
    responses={
        200: {"description": "Service is ready"},
        503: {"description": "Service is not ready (dependencies unavailable)"},
    },
)
async def readiness(
    module: ServiceCatalogModule = Depends(get_service_catalog_module),
) -> JSONResponse:
    """
    Readiness check - whether the service can handle requests.

    Checks:
    - Catalog directory is readable and writable
    - Versioning provider reports a status
    - Every configured Kubernetes context answers

    Returns 200 if all dependencies are healthy, 503 otherwise.
    """
    checks: dict[str, str] = {}

    directory = module.config.path
    storage_ok = await asyncio.to_thread(
        lambda: directory.is_dir() and os.access(directory, os.R_OK | os.W_OK)
    )
    checks["storage"] = "healthy" if storage_ok else "unhealthy"

    try:
        versioning_status = await module.versioning.get_status()
        checks["versioning"] = "healthy"
    except Exception as e:
        logger.warning(f"Versioning readiness check failed: {e}")
        versioning_status = str(e)
        checks["versioning"] = "unhealthy"

    if module.kubernetes is not None:
        contexts = module.kubernetes.contexts()
        results = await asyncio.gather(
            *(module.kubernetes.validate_context(context) for context in contexts)
        )
        for context, reachable in zip(contexts, results):
            checks[f"kubernetes:{context}"] = "healthy" if reachable else "unhealthy"

    all_healthy = all(v == "healthy" for v in checks.values())
    content = {
        "status": "ready" if all_healthy else "not_ready",
        "checks": checks,
        "versioning": {
            "provider": module.versioning.name,
            "status": versioning_status,
        },
    }
    return JSONResponse(
        status_code=(
            status.HTTP_200_OK if all_healthy else status.HTTP_503_SERVICE_UNAVAILABLE
        ),
        content=content,
    )


@router.get(
    "/metrics",
    status_code=status.HTTP_200_OK,
    summary="Prometheus metrics",
    description="Export Prometheus metrics in exposition format",
    tags=["Observability"],
    response_class=Response,
)
async def metrics() -> Response:
    """
    Prometheus metrics endpoint.

    Metrics include:
    - HTTP request counts and durations
    - Catalog mutations by action and history outcome
    - Kubernetes API calls by outcome
    - Health evaluations by overall status and tier
    """
    metrics_bytes, content_type = get_metrics_content()

    return Response(
        content=metrics_bytes,
        media_type=content_type,
    )
