"""Kubernetes facade interface module.

Defines the narrow view of a Kubernetes cluster the catalog needs, plus the
DeploymentOwner contract the Kubernetes side consumes to ask "which service
owns this deployment?". The catalog implements DeploymentOwnerResolver; the
Kubernetes side only ever sees DeploymentOwner.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime

from src.domain.entities.service_health import DeploymentCondition


class KubernetesGatewayError(Exception):
    """Base class for Kubernetes facade failures."""

    def __init__(self, message: str, context: str | None = None):
        super().__init__(message)
        self.context = context


class KubernetesContextError(KubernetesGatewayError):
    """The requested cluster context is not configured."""


class KubernetesUnavailableError(KubernetesGatewayError):
    """The cluster API could not be reached or answered with an error."""


class DeploymentNotFoundError(KubernetesGatewayError):
    """The deployment does not exist in the cluster."""

    def __init__(self, context: str, namespace: str, name: str):
        super().__init__(
            f"Deployment '{name}' not found in {context}/{namespace}", context
        )
        self.namespace = namespace
        self.name = name


@dataclass(frozen=True)
class DeploymentObservation:
    """Observed state of a deployment.

    Attributes:
        ready_replicas: status.readyReplicas
        desired_replicas: spec.replicas as seen by the cluster
        conditions: status.conditions (type/status pairs)
        last_updated: Latest condition transition or update time
    """

    name: str
    ready_replicas: int
    desired_replicas: int
    conditions: tuple[DeploymentCondition, ...] = ()
    last_updated: datetime | None = None

    def condition(self, condition_type: str) -> DeploymentCondition | None:
        for condition in self.conditions:
            if condition.type == condition_type:
                return condition
        return None


@dataclass(frozen=True)
class DeploymentOwner:
    """Projection of a service as seen by the Kubernetes module."""

    service_name: str
    service_tier: str
    environment: str
    context: str
    namespace: str
    team: str
    description: str = ""
    found: bool = True


class DeploymentOwnerResolver(ABC):
    """Answers which catalog service owns a deployment."""

    @abstractmethod
    async def resolve(
        self, deployment_name: str, namespace: str, context: str
    ) -> DeploymentOwner | None:
        """Resolve the owning service.

        Returns:
            DeploymentOwner, or None when no service declares the deployment
        """
        pass


class KubernetesGatewayInterface(ABC):
    """Facade over one or more Kubernetes clusters, keyed by context."""

    @abstractmethod
    async def get_deployment_health(
        self, context: str, namespace: str, name: str
    ) -> DeploymentObservation:
        """Observe a deployment.

        Raises:
            DeploymentNotFoundError: Deployment does not exist
            KubernetesGatewayError: Any other cluster failure
        """
        pass

    @abstractmethod
    async def list_deployments(self, context: str, namespace: str) -> list[str]:
        """List deployment names in a namespace."""
        pass

    @abstractmethod
    async def validate_context(self, context: str) -> bool:
        """Check that a cluster context is configured and reachable."""
        pass

    def contexts(self) -> list[str]:
        """Configured cluster contexts."""
        return []


@dataclass
class ClusterDeployment:
    """Deployment listed from a cluster, annotated with its owning service."""

    name: str
    namespace: str
    context: str
    owner: DeploymentOwner | None = field(default=None)
