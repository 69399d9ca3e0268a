"""Domain repositories - Abstract ports to persistence and external systems."""

from src.domain.repositories.kubernetes_gateway import (
    ClusterDeployment,
    DeploymentNotFoundError,
    DeploymentObservation,
    DeploymentOwner,
    DeploymentOwnerResolver,
    KubernetesContextError,
    KubernetesGatewayError,
    KubernetesGatewayInterface,
    KubernetesUnavailableError,
)
from src.domain.repositories.service_repository import ServiceRepositoryInterface
from src.domain.repositories.team_directory import (
    TeamDirectoryError,
    TeamDirectoryInterface,
    TeamInfo,
)
from src.domain.repositories.versioning_provider import VersioningProviderInterface

__all__ = [
    # Storage
    "ServiceRepositoryInterface",
    # Versioning
    "VersioningProviderInterface",
    # Kubernetes facade
    "KubernetesGatewayInterface",
    "KubernetesGatewayError",
    "KubernetesContextError",
    "KubernetesUnavailableError",
    "DeploymentNotFoundError",
    "DeploymentObservation",
    "DeploymentOwner",
    "DeploymentOwnerResolver",
    "ClusterDeployment",
    # Team directory
    "TeamDirectoryInterface",
    "TeamDirectoryError",
    "TeamInfo",
]
