"""Derived health entities.

Health is computed on demand from the service declaration and the observed
Kubernetes state; it is never persisted.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class HealthStatus(str, Enum):
    """Health status at deployment, environment or service level."""

    HEALTHY = "healthy"
    DRIFT = "drift"
    DEGRADED = "degraded"
    CRITICAL = "critical"
    DOWN = "down"
    NOT_FOUND = "notFound"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class DeploymentCondition:
    """Kubernetes deployment condition (e.g. Available=True)."""

    type: str
    status: str

    def is_true(self) -> bool:
        return self.status.lower() == "true"


@dataclass
class DeploymentHealth:
    name: str
    ready_replicas: int = 0
    desired_replicas: int = 0
    declared_replicas: int = 0
    status: HealthStatus = HealthStatus.UNKNOWN
    last_updated: datetime | None = None
    error: str | None = None


@dataclass
class EnvironmentHealth:
    name: str
    context: str
    namespace: str = ""
    status: HealthStatus = HealthStatus.UNKNOWN
    deployments: list[DeploymentHealth] = field(default_factory=list)


@dataclass
class ServiceHealth:
    """Aggregated service health with tier policy applied."""

    service_name: str
    overall_status: HealthStatus = HealthStatus.UNKNOWN
    environments: list[EnvironmentHealth] = field(default_factory=list)
    last_updated: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
