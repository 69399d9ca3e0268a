"""
Pydantic schemas for service catalog API endpoints.

These schemas define the API request/response contracts consumed by the
dashboard SPA. They are separate from the domain entities (which use
dataclasses); the conversion helpers at the bottom of this module are the
only place the two meet.

Request models are deliberately lenient: shape and format rules live in the
domain validator so that every rejection carries the offending field path.
"""

import copy
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.domain.entities.service import (
    KubernetesDeployment,
    KubernetesEnvironment,
    KubernetesEnvironmentResources,
    ResourceRequirements,
    ResourceSpec,
    Service,
    ServiceBusiness,
    ServiceKubernetes,
    ServiceMetadata,
    ServiceObservability,
    ServiceRunbook,
    ServiceSpec,
    ServiceTeam,
    ServiceTechnology,
)
from src.domain.entities.service_change import ServiceChange
from src.domain.entities.service_health import ServiceHealth
from src.domain.entities.service_query import ServiceList
from src.domain.repositories.kubernetes_gateway import ClusterDeployment, DeploymentOwner
from src.infrastructure.storage.service_document import parse_impact, parse_tier


# ============================================================================
# Shared Service Schemas
# ============================================================================


class ResourceSpecApiModel(BaseModel):
    """CPU / memory quantities in Kubernetes notation."""

    cpu: str = Field(default="", description="CPU quantity (e.g. 250m, 1, 0.5)")
    memory: str = Field(default="", description="Memory quantity (e.g. 512Mi, 1Gi)")


class ResourceRequirementsApiModel(BaseModel):
    requests: ResourceSpecApiModel = Field(default_factory=ResourceSpecApiModel)
    limits: ResourceSpecApiModel = Field(default_factory=ResourceSpecApiModel)


class DeploymentApiModel(BaseModel):
    """A deployment declared in one environment."""

    name: str = Field(default="", description="Kubernetes deployment name")
    replicas: int = Field(default=1, description="Declared replica count (1-100)")
    resources: ResourceRequirementsApiModel | None = None


class EnvironmentResourcesApiModel(BaseModel):
    deployments: list[DeploymentApiModel] = Field(default_factory=list)
    services: list[str] = Field(default_factory=list)
    configmaps: list[str] = Field(default_factory=list)


class EnvironmentApiModel(BaseModel):
    """A (cluster context, namespace) pair attached to the service."""

    name: str = Field(default="", description="Environment name (e.g. production)")
    context: str = Field(default="", description="Kubernetes cluster context")
    namespace: str = Field(default="", description="Kubernetes namespace")
    resources: EnvironmentResourcesApiModel = Field(
        default_factory=EnvironmentResourcesApiModel
    )


class KubernetesApiModel(BaseModel):
    environments: list[EnvironmentApiModel] = Field(default_factory=list)


class BusinessApiModel(BaseModel):
    """Business context of the service."""

    sla_target: str = Field(default="", description="SLA target (e.g. 99.9%)")
    dependencies: list[str] = Field(
        default_factory=list, description="Names of services this service depends on"
    )
    impact: str | None = Field(default=None, description="Outage impact: high, medium or low")


class TechnologyApiModel(BaseModel):
    language: str = ""
    framework: str = ""


class ObservabilityApiModel(BaseModel):
    """Links to observability tooling."""

    metrics: str = ""
    logs: str = ""
    traces: str = ""


class RunbookApiModel(BaseModel):
    name: str = ""
    url: str = ""


# ============================================================================
# Request Schemas
# ============================================================================


class TeamApiRequest(BaseModel):
    """Owning team reference."""

    github_team: str = Field(default="", description="GitHub team slug")


class CreateServiceApiRequest(BaseModel):
    """Request to register a new service."""

    name: str = Field(default="", description="Service name (normalized to a slug)")
    description: str = Field(default="", description="What the service does")
    tier: str = Field(default="", description="Criticality tier: TIER-1, TIER-2 or TIER-3")
    team: TeamApiRequest = Field(default_factory=TeamApiRequest)
    business: BusinessApiModel | None = None
    technology: TechnologyApiModel | None = None
    kubernetes: KubernetesApiModel | None = None
    observability: ObservabilityApiModel | None = None
    runbooks: list[RunbookApiModel] = Field(default_factory=list)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "checkout-api",
                "description": "Checkout and payment orchestration",
                "tier": "TIER-1",
                "team": {"github_team": "payments"},
                "business": {
                    "sla_target": "99.95%",
                    "dependencies": ["cart", "payments-gateway"],
                    "impact": "high",
                },
                "kubernetes": {
                    "environments": [
                        {
                            "name": "production",
                            "context": "prod-eks",
                            "namespace": "checkout",
                            "resources": {
                                "deployments": [
                                    {
                                        "name": "checkout-api",
                                        "replicas": 3,
                                        "resources": {
                                            "requests": {"cpu": "250m", "memory": "256Mi"},
                                            "limits": {"cpu": "1", "memory": "512Mi"},
                                        },
                                    }
                                ]
                            },
                        }
                    ]
                },
                "runbooks": [
                    {"name": "Incident response", "url": "https://wiki.example.com/checkout"}
                ],
            }
        }
    )


class UpdateServiceApiRequest(BaseModel):
    """Request to update a service.

    Omitted sections keep their stored value; a section that is present
    replaces the stored one wholesale.
    """

    name: str | None = Field(default=None, description="Must match the stored name if given")
    description: str | None = None
    tier: str | None = None
    team: TeamApiRequest | None = None
    business: BusinessApiModel | None = None
    technology: TechnologyApiModel | None = None
    kubernetes: KubernetesApiModel | None = None
    observability: ObservabilityApiModel | None = None
    runbooks: list[RunbookApiModel] | None = None


# ============================================================================
# Response Schemas
# ============================================================================


class TeamApiModel(BaseModel):
    """Owning team; members and github_url are filled in by the server."""

    github_team: str = ""
    members: list[str] = Field(default_factory=list)
    github_url: str = ""


class ServiceMetadataApiModel(BaseModel):
    name: str
    tier: str
    created_at: datetime | None = None
    created_by: str = ""
    updated_at: datetime | None = None
    updated_by: str = ""
    version: int = 0


class ServiceSpecApiModel(BaseModel):
    description: str = ""
    team: TeamApiModel = Field(default_factory=TeamApiModel)
    business: BusinessApiModel = Field(default_factory=BusinessApiModel)
    technology: TechnologyApiModel | None = None
    kubernetes: KubernetesApiModel | None = None
    observability: ObservabilityApiModel | None = None
    runbooks: list[RunbookApiModel] = Field(default_factory=list)


class ServiceApiResponse(BaseModel):
    """A catalog service.

    warnings lists best-effort steps that failed during a mutation (for
    example, the change could not be written to history).
    """

    api_version: str = "v1"
    kind: str = "Service"
    metadata: ServiceMetadataApiModel
    spec: ServiceSpecApiModel
    warnings: list[str] = Field(default_factory=list)


class ServiceListApiResponse(BaseModel):
    """Page of services; total is the filtered count before pagination."""

    services: list[ServiceApiResponse] = Field(default_factory=list)
    total: int = 0
    filters: dict[str, Any] = Field(default_factory=dict)


class DeploymentHealthApiModel(BaseModel):
    name: str
    ready_replicas: int = 0
    desired_replicas: int = 0
    declared_replicas: int = 0
    status: str
    last_updated: datetime | None = None
    error: str | None = None


class EnvironmentHealthApiModel(BaseModel):
    name: str
    context: str
    namespace: str = ""
    status: str
    deployments: list[DeploymentHealthApiModel] = Field(default_factory=list)


class ServiceHealthApiResponse(BaseModel):
    """Aggregated service health with the tier policy applied."""

    service_name: str
    overall_status: str = Field(
        ...,
        description="healthy, drift, degraded, critical or unknown",
    )
    environments: list[EnvironmentHealthApiModel] = Field(default_factory=list)
    last_updated: datetime


class FieldChangeApiModel(BaseModel):
    field: str
    old_value: Any = None
    new_value: Any = None


class ServiceChangeApiModel(BaseModel):
    id: str = Field(..., description="Commit hash or history entry id")
    author: str
    email: str
    timestamp: datetime
    message: str
    action: str = ""
    version: int | None = None
    field_changes: list[FieldChangeApiModel] = Field(default_factory=list)


class ServiceHistoryApiResponse(BaseModel):
    """Change history of a service, newest first."""

    service_name: str
    provider: str = Field(..., description="Versioning provider: git or simple")
    history: list[ServiceChangeApiModel] = Field(default_factory=list)


class DeploymentOwnerApiResponse(BaseModel):
    """Service owning a Kubernetes deployment (found=false when unowned)."""

    found: bool = False
    service_name: str = ""
    service_tier: str = ""
    environment: str = ""
    context: str = ""
    namespace: str = ""
    team: str = ""
    description: str = ""


class ClusterDeploymentApiModel(BaseModel):
    name: str
    namespace: str
    context: str
    owner: DeploymentOwnerApiResponse | None = None


class ClusterDeploymentListApiResponse(BaseModel):
    context: str
    namespace: str
    deployments: list[ClusterDeploymentApiModel] = Field(default_factory=list)
    total: int = 0


# ============================================================================
# Request -> domain
# ============================================================================


def service_from_create_request(body: CreateServiceApiRequest) -> Service:
    """Build a Service from a creation request.

    Raises:
        ServiceValidationError: If the tier or impact code is unknown
    """
    return Service(
        metadata=ServiceMetadata(name=body.name, tier=parse_tier(body.tier)),
        spec=ServiceSpec(
            description=body.description,
            team=ServiceTeam(github_team=body.team.github_team),
            business=_business_from_api(body.business),
            technology=_technology_from_api(body.technology),
            kubernetes=_kubernetes_from_api(body.kubernetes),
            observability=_observability_from_api(body.observability),
            runbooks=[ServiceRunbook(name=r.name, url=r.url) for r in body.runbooks],
        ),
    )


def service_from_update_request(body: UpdateServiceApiRequest, existing: Service) -> Service:
    """Overlay an update request on a copy of the stored service.

    Raises:
        ServiceValidationError: If the tier or impact code is unknown
    """
    service = copy.deepcopy(existing)
    fields = body.model_fields_set

    if body.name is not None:
        service.metadata.name = body.name
    if body.tier is not None:
        service.metadata.tier = parse_tier(body.tier)
    if body.description is not None:
        service.spec.description = body.description
    if body.team is not None:
        service.spec.team = ServiceTeam(github_team=body.team.github_team)
    if "business" in fields:
        service.spec.business = _business_from_api(body.business)
    if "technology" in fields:
        service.spec.technology = _technology_from_api(body.technology)
    if "kubernetes" in fields:
        service.spec.kubernetes = _kubernetes_from_api(body.kubernetes)
    if "observability" in fields:
        service.spec.observability = _observability_from_api(body.observability)
    if body.runbooks is not None:
        service.spec.runbooks = [ServiceRunbook(name=r.name, url=r.url) for r in body.runbooks]
    return service


def _business_from_api(body: BusinessApiModel | None) -> ServiceBusiness:
    if body is None:
        return ServiceBusiness()
    return ServiceBusiness(
        sla_target=body.sla_target,
        dependencies=list(body.dependencies),
        impact=parse_impact(body.impact),
    )


def _technology_from_api(body: TechnologyApiModel | None) -> ServiceTechnology | None:
    if body is None:
        return None
    return ServiceTechnology(language=body.language, framework=body.framework)


def _observability_from_api(
    body: ObservabilityApiModel | None,
) -> ServiceObservability | None:
    if body is None:
        return None
    return ServiceObservability(metrics=body.metrics, logs=body.logs, traces=body.traces)


def _kubernetes_from_api(body: KubernetesApiModel | None) -> ServiceKubernetes | None:
    if body is None:
        return None
    return ServiceKubernetes(
        environments=[
            KubernetesEnvironment(
                name=env.name,
                context=env.context,
                namespace=env.namespace,
                resources=KubernetesEnvironmentResources(
                    deployments=[
                        KubernetesDeployment(
                            name=d.name,
                            replicas=d.replicas,
                            resources=_resources_from_api(d.resources),
                        )
                        for d in env.resources.deployments
                    ],
                    services=list(env.resources.services),
                    configmaps=list(env.resources.configmaps),
                ),
            )
            for env in body.environments
        ]
    )


def _resources_from_api(body: ResourceRequirementsApiModel | None) -> ResourceRequirements:
    if body is None:
        return ResourceRequirements()
    return ResourceRequirements(
        requests=ResourceSpec(cpu=body.requests.cpu, memory=body.requests.memory),
        limits=ResourceSpec(cpu=body.limits.cpu, memory=body.limits.memory),
    )


# ============================================================================
# Domain -> response
# ============================================================================


def service_to_response(
    service: Service, warnings: list[str] | None = None
) -> ServiceApiResponse:
    spec = service.spec
    return ServiceApiResponse(
        api_version=service.api_version,
        kind=service.kind,
        metadata=ServiceMetadataApiModel(
            name=service.metadata.name,
            tier=service.metadata.tier.value,
            created_at=service.metadata.created_at,
            created_by=service.metadata.created_by,
            updated_at=service.metadata.updated_at,
            updated_by=service.metadata.updated_by,
            version=service.metadata.version,
        ),
        spec=ServiceSpecApiModel(
            description=spec.description,
            team=TeamApiModel(
                github_team=spec.team.github_team,
                members=list(spec.team.members),
                github_url=spec.team.github_url,
            ),
            business=BusinessApiModel(
                sla_target=spec.business.sla_target,
                dependencies=list(spec.business.dependencies),
                impact=spec.business.impact.value if spec.business.impact else None,
            ),
            technology=(
                TechnologyApiModel(
                    language=spec.technology.language,
                    framework=spec.technology.framework,
                )
                if spec.technology
                else None
            ),
            kubernetes=_kubernetes_to_api(spec.kubernetes),
            observability=(
                ObservabilityApiModel(
                    metrics=spec.observability.metrics,
                    logs=spec.observability.logs,
                    traces=spec.observability.traces,
                )
                if spec.observability
                else None
            ),
            runbooks=[RunbookApiModel(name=r.name, url=r.url) for r in spec.runbooks],
        ),
        warnings=list(warnings or []),
    )


def _kubernetes_to_api(kubernetes: ServiceKubernetes | None) -> KubernetesApiModel | None:
    if kubernetes is None:
        return None
    return KubernetesApiModel(
        environments=[
            EnvironmentApiModel(
                name=env.name,
                context=env.context,
                namespace=env.namespace,
                resources=EnvironmentResourcesApiModel(
                    deployments=[
                        DeploymentApiModel(
                            name=d.name,
                            replicas=d.replicas,
                            resources=ResourceRequirementsApiModel(
                                requests=ResourceSpecApiModel(
                                    cpu=d.resources.requests.cpu,
                                    memory=d.resources.requests.memory,
                                ),
                                limits=ResourceSpecApiModel(
                                    cpu=d.resources.limits.cpu,
                                    memory=d.resources.limits.memory,
                                ),
                            ),
                        )
                        for d in env.resources.deployments
                    ],
                    services=list(env.resources.services),
                    configmaps=list(env.resources.configmaps),
                ),
            )
            for env in kubernetes.environments
        ]
    )


def service_list_to_response(service_list: ServiceList) -> ServiceListApiResponse:
    filters = service_list.filter.as_dict() if service_list.filter else {}
    return ServiceListApiResponse(
        services=[service_to_response(s) for s in service_list.services],
        total=service_list.total,
        filters={key: value for key, value in filters.items() if value},
    )


def health_to_response(health: ServiceHealth) -> ServiceHealthApiResponse:
    return ServiceHealthApiResponse(
        service_name=health.service_name,
        overall_status=health.overall_status.value,
        environments=[
            EnvironmentHealthApiModel(
                name=env.name,
                context=env.context,
                namespace=env.namespace,
                status=env.status.value,
                deployments=[
                    DeploymentHealthApiModel(
                        name=d.name,
                        ready_replicas=d.ready_replicas,
                        desired_replicas=d.desired_replicas,
                        declared_replicas=d.declared_replicas,
                        status=d.status.value,
                        last_updated=d.last_updated,
                        error=d.error,
                    )
                    for d in env.deployments
                ],
            )
            for env in health.environments
        ],
        last_updated=health.last_updated,
    )


def change_to_api(change: ServiceChange) -> ServiceChangeApiModel:
    return ServiceChangeApiModel(
        id=change.id,
        author=change.author,
        email=change.email,
        timestamp=change.timestamp,
        message=change.message,
        action=change.action,
        version=change.version,
        field_changes=[
            FieldChangeApiModel(
                field=fc.field, old_value=fc.old_value, new_value=fc.new_value
            )
            for fc in change.field_changes
        ],
    )


def owner_to_response(owner: DeploymentOwner | None) -> DeploymentOwnerApiResponse:
    if owner is None:
        return DeploymentOwnerApiResponse(found=False)
    return DeploymentOwnerApiResponse(
        found=owner.found,
        service_name=owner.service_name,
        service_tier=owner.service_tier,
        environment=owner.environment,
        context=owner.context,
        namespace=owner.namespace,
        team=owner.team,
        description=owner.description,
    )


def cluster_deployment_to_api(deployment: ClusterDeployment) -> ClusterDeploymentApiModel:
    return ClusterDeploymentApiModel(
        name=deployment.name,
        namespace=deployment.namespace,
        context=deployment.context,
        owner=owner_to_response(deployment.owner) if deployment.owner else None,
    )
