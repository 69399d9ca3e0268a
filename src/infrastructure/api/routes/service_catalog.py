"""Service catalog API routes.

CRUD, listing, health, history and deployment ownership endpoints consumed by
the dashboard SPA. Catalog errors propagate to the application exception
handler, which renders them as RFC 7807 Problem Details.
"""

import logging
import time

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Response, status

from src.application.use_cases.get_service_health import GetServiceHealthUseCase
from src.application.use_cases.manage_service_catalog import ServiceCatalogUseCase
from src.application.use_cases.resolve_deployment_owner import (
    ResolveDeploymentOwnerUseCase,
)
from src.domain.entities.service import UserContext
from src.domain.entities.service_health import HealthStatus
from src.domain.entities.service_query import ServiceFilter
from src.domain.exceptions import ServiceValidationError
from src.domain.repositories.kubernetes_gateway import (
    KubernetesContextError,
    KubernetesGatewayError,
)
from src.infrastructure.api.dependencies import (
    get_resolve_deployment_owner_use_case,
    get_service_catalog_use_case,
    get_service_health_use_case,
)
from src.infrastructure.api.middleware.auth import require_user
from src.infrastructure.api.schemas.error_schema import ProblemDetails
from src.infrastructure.api.schemas.service_catalog_schema import (
    ClusterDeploymentListApiResponse,
    CreateServiceApiRequest,
    DeploymentOwnerApiResponse,
    ServiceApiResponse,
    ServiceHealthApiResponse,
    ServiceHistoryApiResponse,
    ServiceListApiResponse,
    UpdateServiceApiRequest,
    change_to_api,
    cluster_deployment_to_api,
    health_to_response,
    owner_to_response,
    service_from_create_request,
    service_from_update_request,
    service_list_to_response,
    service_to_response,
)
from src.infrastructure.observability.metrics import (
    record_catalog_mutation,
    record_health_evaluation,
    update_catalog_size,
)
from src.infrastructure.observability.tracing import get_tracer

logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)

router = APIRouter()

SERVICES_PATH = "/api/service-catalog/services"
HEALTH_STATUSES = {s.value for s in HealthStatus}


def _history_outcome(catalog: ServiceCatalogUseCase, warnings: list[str]) -> str:
    if not catalog.versioning.is_enabled():
        return "skipped"
    return "failed" if warnings else "recorded"


@router.get(
    "/services",
    response_model=ServiceListApiResponse,
    status_code=status.HTTP_200_OK,
    summary="List services",
    description="List catalog services with optional filtering and pagination",
    responses={
        200: {"description": "Services retrieved"},
        400: {"model": ProblemDetails, "description": "Invalid filter"},
        500: {"model": ProblemDetails, "description": "Storage unavailable"},
    },
)
async def list_services(
    team: str | None = Query(None, description="Owning GitHub team (case-insensitive)"),
    tier: str | None = Query(None, description="TIER-1, TIER-2 or TIER-3"),
    status_filter: str | None = Query(
        None, alias="status", description="Overall health status"
    ),
    search: str | None = Query(None, description="Substring of name or description"),
    limit: int = Query(0, ge=0, description="Page size (0 = unlimited)"),
    offset: int = Query(0, ge=0, description="Number of services to skip"),
    catalog: ServiceCatalogUseCase = Depends(get_service_catalog_use_case),
    health: GetServiceHealthUseCase = Depends(get_service_health_use_case),
) -> ServiceListApiResponse:
    """List services; a status filter evaluates health for every candidate."""
    if status_filter and status_filter not in HEALTH_STATUSES:
        raise ServiceValidationError(
            "status", f"unknown status '{status_filter}'"
        )

    service_filter = ServiceFilter(
        team=team,
        tier=tier,
        status=status_filter,
        search=search,
        limit=limit,
        offset=offset,
    )
    result = await catalog.list_services(
        service_filter,
        status_lookup=health.overall_statuses,
        enrich=True,
    )
    if service_filter.is_empty():
        update_catalog_size(result.total)
    return service_list_to_response(result)


@router.post(
    "/services",
    response_model=ServiceApiResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a service",
    description="Register a new service in the catalog",
    responses={
        201: {"description": "Service created"},
        400: {"model": ProblemDetails, "description": "Invalid service definition"},
        401: {"model": ProblemDetails, "description": "Authentication required"},
        409: {"model": ProblemDetails, "description": "Service already exists"},
    },
)
async def create_service(
    body: CreateServiceApiRequest,
    response: Response,
    catalog: ServiceCatalogUseCase = Depends(get_service_catalog_use_case),
    user: UserContext = Depends(require_user),
) -> ServiceApiResponse:
    """Create a service and record it in history."""
    service = service_from_create_request(body)
    result = await catalog.create_service(service, user)

    record_catalog_mutation("create", _history_outcome(catalog, result.warnings))
    response.headers["Location"] = f"{SERVICES_PATH}/{result.service.metadata.name}"
    return service_to_response(result.service, result.warnings)


@router.get(
    "/services/{name}",
    response_model=ServiceApiResponse,
    status_code=status.HTTP_200_OK,
    summary="Get a service",
    responses={
        200: {"description": "Service retrieved"},
        404: {"model": ProblemDetails, "description": "Service not found"},
    },
)
async def get_service(
    name: str = Path(..., description="Service name"),
    catalog: ServiceCatalogUseCase = Depends(get_service_catalog_use_case),
) -> ServiceApiResponse:
    """Get a service with its team members filled in."""
    service = await catalog.get_service(name)
    return service_to_response(service)


@router.put(
    "/services/{name}",
    response_model=ServiceApiResponse,
    status_code=status.HTTP_200_OK,
    summary="Update a service",
    description="Replace the given sections of a service definition",
    responses={
        200: {"description": "Service updated"},
        400: {"model": ProblemDetails, "description": "Invalid service definition"},
        401: {"model": ProblemDetails, "description": "Authentication required"},
        403: {"model": ProblemDetails, "description": "User does not own the service"},
        404: {"model": ProblemDetails, "description": "Service not found"},
        409: {"model": ProblemDetails, "description": "Concurrent modification"},
    },
)
async def update_service(
    body: UpdateServiceApiRequest,
    name: str = Path(..., description="Service name"),
    catalog: ServiceCatalogUseCase = Depends(get_service_catalog_use_case),
    user: UserContext = Depends(require_user),
) -> ServiceApiResponse:
    """Update a service owned by one of the user's teams."""
    existing = await catalog.get_service(name, enrich=False)
    service = service_from_update_request(body, existing)
    result = await catalog.update_service(
        name, service, user, expected_version=existing.metadata.version
    )

    record_catalog_mutation("update", _history_outcome(catalog, result.warnings))
    return service_to_response(result.service, result.warnings)


@router.delete(
    "/services/{name}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a service",
    responses={
        204: {"description": "Service deleted"},
        401: {"model": ProblemDetails, "description": "Authentication required"},
        403: {"model": ProblemDetails, "description": "User does not own the service"},
        404: {"model": ProblemDetails, "description": "Service not found"},
    },
)
async def delete_service(
    name: str = Path(..., description="Service name"),
    catalog: ServiceCatalogUseCase = Depends(get_service_catalog_use_case),
    user: UserContext = Depends(require_user),
) -> Response:
    """Delete a service owned by one of the user's teams."""
    result = await catalog.delete_service(name, user)

    record_catalog_mutation("delete", _history_outcome(catalog, result.warnings))
    headers = {}
    if result.warnings:
        headers["X-Catalog-Warning"] = "; ".join(result.warnings)
    return Response(status_code=status.HTTP_204_NO_CONTENT, headers=headers)


@router.get(
    "/services/{name}/health",
    response_model=ServiceHealthApiResponse,
    status_code=status.HTTP_200_OK,
    summary="Get service health",
    description="Aggregate Kubernetes deployment health with the tier policy applied",
    responses={
        200: {"description": "Health computed"},
        404: {"model": ProblemDetails, "description": "Service not found"},
        500: {"model": ProblemDetails, "description": "Storage unavailable"},
    },
)
async def get_service_health(
    name: str = Path(..., description="Service name"),
    catalog: ServiceCatalogUseCase = Depends(get_service_catalog_use_case),
    health: GetServiceHealthUseCase = Depends(get_service_health_use_case),
) -> ServiceHealthApiResponse:
    """Compute the health of one service."""
    with tracer.start_as_current_span("service_catalog.health") as span:
        start_time = time.perf_counter()
        service = await catalog.get_service(name, enrich=False)
        span.set_attribute("service.name", service.metadata.name)
        span.set_attribute("service.tier", service.metadata.tier.value)

        result = await health.evaluate(service)
        span.set_attribute("service.health", result.overall_status.value)

    record_health_evaluation(
        result.overall_status.value,
        service.metadata.tier.value,
        time.perf_counter() - start_time,
    )
    return health_to_response(result)


@router.get(
    "/services/{name}/history",
    response_model=ServiceHistoryApiResponse,
    status_code=status.HTTP_200_OK,
    summary="Get service history",
    responses={
        200: {"description": "History retrieved"},
        404: {"model": ProblemDetails, "description": "Service not found"},
        503: {"model": ProblemDetails, "description": "Versioning disabled"},
    },
)
async def get_service_history(
    name: str = Path(..., description="Service name"),
    catalog: ServiceCatalogUseCase = Depends(get_service_catalog_use_case),
) -> ServiceHistoryApiResponse:
    """Get the change history of a service, newest first."""
    result = await catalog.get_service_history(name)
    return ServiceHistoryApiResponse(
        service_name=result.service_name,
        provider=result.provider,
        history=[change_to_api(change) for change in result.history],
    )


@router.get(
    "/resolve",
    response_model=DeploymentOwnerApiResponse,
    status_code=status.HTTP_200_OK,
    summary="Resolve deployment owner",
    description="Find the service that declares a Kubernetes deployment",
    responses={
        200: {"description": "Resolution result (found=false when unowned)"},
        400: {"model": ProblemDetails, "description": "Missing query parameter"},
    },
)
async def resolve_deployment(
    deployment: str = Query(..., min_length=1, description="Deployment name"),
    namespace: str = Query(..., min_length=1, description="Kubernetes namespace"),
    context: str = Query(..., min_length=1, description="Cluster context"),
    resolver: ResolveDeploymentOwnerUseCase = Depends(
        get_resolve_deployment_owner_use_case
    ),
) -> DeploymentOwnerApiResponse:
    """Resolve which service owns a deployment."""
    owner = await resolver.resolve(deployment, namespace, context)
    return owner_to_response(owner)


@router.get(
    "/kubernetes/{context}/namespaces/{namespace}/deployments",
    response_model=ClusterDeploymentListApiResponse,
    status_code=status.HTTP_200_OK,
    summary="List cluster deployments with owners",
    responses={
        200: {"description": "Deployments retrieved"},
        404: {"model": ProblemDetails, "description": "Unknown cluster context"},
        502: {"model": ProblemDetails, "description": "Cluster unreachable"},
    },
)
async def list_cluster_deployments(
    context: str = Path(..., description="Cluster context"),
    namespace: str = Path(..., description="Kubernetes namespace"),
    resolver: ResolveDeploymentOwnerUseCase = Depends(
        get_resolve_deployment_owner_use_case
    ),
) -> ClusterDeploymentListApiResponse:
    """List deployments running in a namespace, annotated with their owners."""
    try:
        deployments = await resolver.list_cluster_deployments(context, namespace)
    except KubernetesContextError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        ) from e
    except KubernetesGatewayError as e:
        logger.warning(f"Failed to list deployments in {context}/{namespace}: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Kubernetes cluster '{context}' is unavailable",
        ) from e

    return ClusterDeploymentListApiResponse(
        context=context,
        namespace=namespace,
        deployments=[cluster_deployment_to_api(d) for d in deployments],
        total=len(deployments),
    )
