"""YAML document mapping for service definitions.

Maps the Service aggregate onto the persisted document layout::

    apiVersion: v1
    kind: Service
    metadata: {name, tier, created_at, created_by, updated_at, updated_by, version}
    spec: {description, team, business, technology, kubernetes, observability, runbooks}

Runtime-only team fields (members, github_url) are never written.
"""

from datetime import datetime, timezone
from typing import Any

import yaml

from src.domain.entities.service import (
    BusinessImpact,
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
    ServiceTier,
)
from src.domain.exceptions import ServiceValidationError


def dump_service(service: Service) -> str:
    """Serialize a service to YAML text."""
    return yaml.safe_dump(
        service_to_document(service),
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
    )


def load_service(text: str) -> Service:
    """Parse YAML text into a service.

    Raises:
        ServiceValidationError: If the document is not a valid service
    """
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ServiceValidationError("document", f"invalid YAML: {e}") from e
    if not isinstance(document, dict):
        raise ServiceValidationError("document", "service document must be a mapping")
    try:
        return service_from_document(document)
    except (AttributeError, TypeError, ValueError) as e:
        raise ServiceValidationError("document", f"malformed service document: {e}") from e


def service_to_document(service: Service) -> dict[str, Any]:
    metadata = service.metadata
    spec = service.spec

    document_metadata: dict[str, Any] = {
        "name": metadata.name,
        "tier": metadata.tier.value,
    }
    if metadata.created_at:
        document_metadata["created_at"] = _format_time(metadata.created_at)
    if metadata.created_by:
        document_metadata["created_by"] = metadata.created_by
    if metadata.updated_at:
        document_metadata["updated_at"] = _format_time(metadata.updated_at)
    if metadata.updated_by:
        document_metadata["updated_by"] = metadata.updated_by
    if metadata.version:
        document_metadata["version"] = metadata.version

    document_spec: dict[str, Any] = {
        "description": spec.description,
        "team": {"github_team": spec.team.github_team},
    }

    business = _compact(
        {
            "sla_target": spec.business.sla_target,
            "dependencies": list(spec.business.dependencies),
            "impact": spec.business.impact.value if spec.business.impact else None,
        }
    )
    document_spec["business"] = business

    if spec.technology is not None:
        technology = _compact(
            {"language": spec.technology.language, "framework": spec.technology.framework}
        )
        if technology:
            document_spec["technology"] = technology

    if spec.kubernetes is not None:
        document_spec["kubernetes"] = {
            "environments": [
                _environment_to_document(environment)
                for environment in spec.kubernetes.environments
            ]
        }

    if spec.observability is not None and not spec.observability.is_empty():
        document_spec["observability"] = _compact(
            {
                "metrics": spec.observability.metrics,
                "logs": spec.observability.logs,
                "traces": spec.observability.traces,
            }
        )

    if spec.runbooks:
        document_spec["runbooks"] = [
            {"name": runbook.name, "url": runbook.url} for runbook in spec.runbooks
        ]

    return {
        "apiVersion": service.api_version or "v1",
        "kind": service.kind or "Service",
        "metadata": document_metadata,
        "spec": document_spec,
    }


def service_from_document(document: dict[str, Any]) -> Service:
    """Build a service from a parsed document.

    Raises:
        ServiceValidationError: If a required section or enum value is invalid
    """
    metadata = _mapping(document.get("metadata"), "metadata")
    spec = _mapping(document.get("spec"), "spec")

    team = _mapping(spec.get("team"), "spec.team")
    business = _mapping(spec.get("business"), "spec.business")
    technology = _mapping(spec.get("technology"), "spec.technology")
    kubernetes = spec.get("kubernetes")
    if kubernetes is not None:
        kubernetes = _mapping(kubernetes, "spec.kubernetes")
    observability = _mapping(spec.get("observability"), "spec.observability")

    return Service(
        api_version=str(document.get("apiVersion") or "v1"),
        kind=str(document.get("kind") or "Service"),
        metadata=ServiceMetadata(
            name=str(metadata.get("name") or ""),
            tier=parse_tier(metadata.get("tier")),
            created_at=_parse_time(metadata.get("created_at")),
            created_by=str(metadata.get("created_by") or ""),
            updated_at=_parse_time(metadata.get("updated_at")),
            updated_by=str(metadata.get("updated_by") or ""),
            version=_parse_int(metadata.get("version"), "metadata.version", 0),
        ),
        spec=ServiceSpec(
            description=str(spec.get("description") or ""),
            team=ServiceTeam(github_team=str(team.get("github_team") or "")),
            business=ServiceBusiness(
                sla_target=str(business.get("sla_target") or ""),
                dependencies=[
                    str(d)
                    for d in _sequence(
                        business.get("dependencies"), "spec.business.dependencies"
                    )
                ],
                impact=parse_impact(business.get("impact")),
            ),
            technology=(
                ServiceTechnology(
                    language=str(technology.get("language") or ""),
                    framework=str(technology.get("framework") or ""),
                )
                if technology
                else None
            ),
            kubernetes=(
                ServiceKubernetes(
                    environments=[
                        _environment_from_document(
                            _mapping(environment, f"spec.kubernetes.environments[{index}]")
                        )
                        for index, environment in enumerate(
                            _sequence(
                                kubernetes.get("environments"),
                                "spec.kubernetes.environments",
                            )
                        )
                    ]
                )
                if kubernetes is not None
                else None
            ),
            observability=(
                ServiceObservability(
                    metrics=str(observability.get("metrics") or ""),
                    logs=str(observability.get("logs") or ""),
                    traces=str(observability.get("traces") or ""),
                )
                if observability
                else None
            ),
            runbooks=[
                ServiceRunbook(name=str(r.get("name") or ""), url=str(r.get("url") or ""))
                for r in (
                    _mapping(runbook, "spec.runbooks")
                    for runbook in _sequence(spec.get("runbooks"), "spec.runbooks")
                )
            ],
        ),
    )


def parse_tier(value: Any) -> ServiceTier:
    """Parse a tier code (case-insensitive).

    Raises:
        ServiceValidationError: If the tier is missing or unknown
    """
    if not value:
        raise ServiceValidationError("metadata.tier", "service tier is required")
    try:
        return ServiceTier(str(value).strip().upper())
    except ValueError as e:
        raise ServiceValidationError(
            "metadata.tier",
            f"invalid tier '{value}' (expected TIER-1, TIER-2 or TIER-3)",
        ) from e


def parse_impact(value: Any) -> BusinessImpact | None:
    if not value:
        return None
    try:
        return BusinessImpact(str(value).strip().lower())
    except ValueError as e:
        raise ServiceValidationError(
            "spec.business.impact",
            f"invalid impact '{value}' (expected high, medium or low)",
        ) from e


def _environment_to_document(environment: KubernetesEnvironment) -> dict[str, Any]:
    resources: dict[str, Any] = {
        "deployments": [
            {
                "name": deployment.name,
                "replicas": deployment.replicas,
                "resources": {
                    "requests": _resource_spec(deployment.resources.requests),
                    "limits": _resource_spec(deployment.resources.limits),
                },
            }
            for deployment in environment.resources.deployments
        ]
    }
    if environment.resources.services:
        resources["services"] = list(environment.resources.services)
    if environment.resources.configmaps:
        resources["configmaps"] = list(environment.resources.configmaps)
    return {
        "name": environment.name,
        "context": environment.context,
        "namespace": environment.namespace,
        "resources": resources,
    }


def _environment_from_document(document: dict[str, Any]) -> KubernetesEnvironment:
    resources = _mapping(document.get("resources"), "resources")
    deployments = []
    for deployment in _sequence(resources.get("deployments"), "resources.deployments"):
        deployment = _mapping(deployment, "resources.deployments")
        requirements = _mapping(deployment.get("resources"), "deployment.resources")
        deployments.append(
            KubernetesDeployment(
                name=str(deployment.get("name") or ""),
                replicas=_parse_int(deployment.get("replicas"), "replicas", 1),
                resources=ResourceRequirements(
                    requests=_parse_resource_spec(requirements.get("requests")),
                    limits=_parse_resource_spec(requirements.get("limits")),
                ),
            )
        )
    return KubernetesEnvironment(
        name=str(document.get("name") or ""),
        context=str(document.get("context") or ""),
        namespace=str(document.get("namespace") or ""),
        resources=KubernetesEnvironmentResources(
            deployments=deployments,
            services=[str(s) for s in _sequence(resources.get("services"), "services")],
            configmaps=[
                str(c) for c in _sequence(resources.get("configmaps"), "configmaps")
            ],
        ),
    )


def _mapping(value: Any, field: str) -> dict[str, Any]:
    """A nested section; absent sections read as empty."""
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ServiceValidationError(field, "must be a mapping")
    return value


def _sequence(value: Any, field: str) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ServiceValidationError(field, "must be a list")
    return value


def _parse_int(value: Any, field: str, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool):
        raise ServiceValidationError(field, f"must be an integer, got '{value}'")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ServiceValidationError(
            field, f"must be an integer, got '{value}'"
        ) from e


def _resource_spec(spec: ResourceSpec) -> dict[str, str]:
    return {"cpu": spec.cpu, "memory": spec.memory}


def _parse_resource_spec(document: Any) -> ResourceSpec:
    document = _mapping(document, "resources")
    return ResourceSpec(
        cpu=str(document.get("cpu") or ""),
        memory=str(document.get("memory") or ""),
    )


def _compact(values: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in values.items() if value}


def _format_time(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def _parse_time(value: Any) -> datetime | None:
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
