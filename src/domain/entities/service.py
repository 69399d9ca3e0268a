"""Service entity module.

This module defines the Service aggregate: the declarative definition of a
software service owned by the catalog, together with its Kubernetes topology,
ownership and business metadata.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class ServiceTier(str, Enum):
    """Business criticality tiers.

    Tier ordering (TIER-1 > TIER-2 > TIER-3) is used for health policy only,
    never for sorting output.
    """

    TIER_1 = "TIER-1"
    TIER_2 = "TIER-2"
    TIER_3 = "TIER-3"

    @property
    def rank(self) -> int:
        """Policy rank, higher is more critical."""
        return {
            ServiceTier.TIER_1: 3,
            ServiceTier.TIER_2: 2,
            ServiceTier.TIER_3: 1,
        }[self]

    @property
    def label(self) -> str:
        return {
            ServiceTier.TIER_1: "critical",
            ServiceTier.TIER_2: "important",
            ServiceTier.TIER_3: "standard",
        }[self]


class BusinessImpact(str, Enum):
    """Business impact of a service outage."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ServiceAction(str, Enum):
    """Lifecycle events recorded by the versioning backend."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass
class ResourceSpec:
    """CPU / memory quantities in Kubernetes notation (e.g. "250m", "512Mi")."""

    cpu: str = ""
    memory: str = ""

    def is_empty(self) -> bool:
        return not self.cpu and not self.memory


@dataclass
class ResourceRequirements:
    """Container resource requests and limits."""

    requests: ResourceSpec = field(default_factory=ResourceSpec)
    limits: ResourceSpec = field(default_factory=ResourceSpec)


@dataclass
class KubernetesDeployment:
    """A deployment declared by a service in one environment."""

    name: str
    replicas: int = 1
    resources: ResourceRequirements = field(default_factory=ResourceRequirements)


@dataclass
class KubernetesEnvironmentResources:
    """Kubernetes objects declared for an environment."""

    deployments: list[KubernetesDeployment] = field(default_factory=list)
    services: list[str] = field(default_factory=list)
    configmaps: list[str] = field(default_factory=list)


@dataclass
class KubernetesEnvironment:
    """A named (cluster context, namespace) pair attached to a service."""

    name: str
    context: str
    namespace: str
    resources: KubernetesEnvironmentResources = field(
        default_factory=KubernetesEnvironmentResources
    )

    @property
    def deployments(self) -> list[KubernetesDeployment]:
        return self.resources.deployments

    def get_deployment(self, name: str) -> KubernetesDeployment | None:
        """Find a declared deployment, preferring an exact name match.

        Args:
            name: Deployment name

        Returns:
            Matching deployment or None
        """
        for deployment in self.resources.deployments:
            if deployment.name == name:
                return deployment
        lowered = name.lower()
        for deployment in self.resources.deployments:
            if deployment.name.lower() == lowered:
                return deployment
        return None

    def is_production(self) -> bool:
        return self.name.strip().lower() in ("production", "prod")


@dataclass
class ServiceKubernetes:
    """Kubernetes topology of a service."""

    environments: list[KubernetesEnvironment] = field(default_factory=list)


@dataclass
class ServiceTeam:
    """Owning team.

    Only github_team is persisted; members and github_url are populated at
    read time by the team directory.
    """

    github_team: str = ""
    members: list[str] = field(default_factory=list)
    github_url: str = ""


@dataclass
class ServiceBusiness:
    """Business metadata."""

    sla_target: str = ""
    dependencies: list[str] = field(default_factory=list)
    impact: BusinessImpact | None = None


@dataclass
class ServiceTechnology:
    language: str = ""
    framework: str = ""


@dataclass
class ServiceObservability:
    """Links to observability tooling (opaque URLs)."""

    metrics: str = ""
    logs: str = ""
    traces: str = ""

    def is_empty(self) -> bool:
        return not (self.metrics or self.logs or self.traces)


@dataclass
class ServiceRunbook:
    name: str
    url: str


@dataclass
class ServiceMetadata:
    """Identity and audit attributes.

    Attributes:
        name: Unique slug identifier
        tier: Business criticality
        created_at: First persist timestamp (immutable)
        created_by: Username of the creator (immutable)
        updated_at: Last mutation timestamp
        updated_by: Username of the last mutator
        version: Monotonic counter, 1 on creation
    """

    name: str
    tier: ServiceTier = ServiceTier.TIER_3
    created_at: datetime | None = None
    created_by: str = ""
    updated_at: datetime | None = None
    updated_by: str = ""
    version: int = 0


@dataclass
class ServiceSpec:
    """Declarative body of a service."""

    description: str = ""
    team: ServiceTeam = field(default_factory=ServiceTeam)
    business: ServiceBusiness = field(default_factory=ServiceBusiness)
    technology: ServiceTechnology | None = None
    kubernetes: ServiceKubernetes | None = None
    observability: ServiceObservability | None = None
    runbooks: list[ServiceRunbook] = field(default_factory=list)


@dataclass
class Service:
    """Root aggregate of the service catalog.

    Domain invariants:
    - metadata.name is unique across the catalog (case-insensitive)
    - metadata.name never changes after creation
    - metadata.version is strictly monotonic
    - created_at / created_by are immutable after the first persist
    """

    metadata: ServiceMetadata
    spec: ServiceSpec = field(default_factory=ServiceSpec)
    api_version: str = "v1"
    kind: str = "Service"

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def tier(self) -> ServiceTier:
        return self.metadata.tier

    @property
    def team(self) -> str:
        return self.spec.team.github_team

    def set_defaults(self) -> None:
        """Fill format-version tags left empty by the caller."""
        if not self.api_version:
            self.api_version = "v1"
        if not self.kind:
            self.kind = "Service"

    def can_be_modified_by(self, teams: list[str]) -> bool:
        """Check team-based ownership (case-insensitive).

        A service without a team can be modified by anyone.
        """
        owner = self.team.strip().lower()
        if not owner:
            return True
        return any(team.strip().lower() == owner for team in teams)

    def get_environment(self, name: str) -> KubernetesEnvironment | None:
        if self.spec.kubernetes is None:
            return None
        for environment in self.spec.kubernetes.environments:
            if environment.name.lower() == name.lower():
                return environment
        return None

    def get_deployment(
        self, environment_name: str, deployment_name: str
    ) -> KubernetesDeployment | None:
        environment = self.get_environment(environment_name)
        if environment is None:
            return None
        return environment.get_deployment(deployment_name)

    def has_dependency(self, name: str) -> bool:
        return any(
            dependency.lower() == name.lower()
            for dependency in self.spec.business.dependencies
        )

    def is_high_priority(self) -> bool:
        return self.metadata.tier.rank >= ServiceTier.TIER_2.rank

    def environments(self) -> list[KubernetesEnvironment]:
        if self.spec.kubernetes is None:
            return []
        return list(self.spec.kubernetes.environments)

    def deployment_keys(self) -> set[tuple[str, str, str]]:
        """All (context, namespace, deployment) triples owned by this service."""
        return {
            (environment.context, environment.namespace, deployment.name)
            for environment in self.environments()
            for deployment in environment.resources.deployments
        }

    def touch(self, username: str) -> None:
        self.metadata.updated_at = datetime.now(timezone.utc)
        self.metadata.updated_by = username


@dataclass(frozen=True)
class UserContext:
    """Authenticated principal supplied by the transport layer."""

    username: str
    email: str = ""
    name: str = ""
    teams: tuple[str, ...] = ()

    @property
    def display_name(self) -> str:
        return self.name or self.username

    def is_member_of(self, team: str) -> bool:
        wanted = team.strip().lower()
        return any(t.strip().lower() == wanted for t in self.teams)
