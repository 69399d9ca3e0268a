"""Domain entities - Core business objects."""

from src.domain.entities.service import (
    BusinessImpact,
    KubernetesDeployment,
    KubernetesEnvironment,
    KubernetesEnvironmentResources,
    ResourceRequirements,
    ResourceSpec,
    Service,
    ServiceAction,
    ServiceBusiness,
    ServiceKubernetes,
    ServiceMetadata,
    ServiceObservability,
    ServiceRunbook,
    ServiceSpec,
    ServiceTeam,
    ServiceTechnology,
    ServiceTier,
    UserContext,
)
from src.domain.entities.service_change import FieldChange, ServiceChange
from src.domain.entities.service_health import (
    DeploymentCondition,
    DeploymentHealth,
    EnvironmentHealth,
    HealthStatus,
    ServiceHealth,
)
from src.domain.entities.service_query import ServiceFilter, ServiceList

__all__ = [
    # Service aggregate
    "Service",
    "ServiceMetadata",
    "ServiceSpec",
    "ServiceTier",
    "ServiceTeam",
    "ServiceBusiness",
    "BusinessImpact",
    "ServiceTechnology",
    "ServiceKubernetes",
    "KubernetesEnvironment",
    "KubernetesEnvironmentResources",
    "KubernetesDeployment",
    "ResourceRequirements",
    "ResourceSpec",
    "ServiceObservability",
    "ServiceRunbook",
    "ServiceAction",
    "UserContext",
    # History
    "ServiceChange",
    "FieldChange",
    # Health
    "HealthStatus",
    "DeploymentCondition",
    "DeploymentHealth",
    "EnvironmentHealth",
    "ServiceHealth",
    # Queries
    "ServiceFilter",
    "ServiceList",
]
