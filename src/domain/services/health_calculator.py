"""Health status calculator.

Translates observed Kubernetes deployment state into deployment, environment
and service health. The service level applies the tier policy to the
production environment:

    prod status | TIER-1   | TIER-2   | TIER-3
    ------------+----------+----------+---------
    down        | critical | degraded | degraded
    degraded    | critical | degraded | degraded
    drift       | degraded | drift    | healthy
    healthy     | healthy  | healthy  | healthy
    unknown     | unknown  | unknown  | unknown
"""

from collections import Counter

from src.domain.entities.service import KubernetesEnvironment, ServiceTier
from src.domain.entities.service_health import (
    DeploymentHealth,
    EnvironmentHealth,
    HealthStatus,
)
from src.domain.repositories.kubernetes_gateway import DeploymentObservation

_TIER_POLICY: dict[ServiceTier, dict[HealthStatus, HealthStatus]] = {
    ServiceTier.TIER_1: {
        HealthStatus.DOWN: HealthStatus.CRITICAL,
        HealthStatus.DEGRADED: HealthStatus.CRITICAL,
        HealthStatus.DRIFT: HealthStatus.DEGRADED,
        HealthStatus.HEALTHY: HealthStatus.HEALTHY,
    },
    ServiceTier.TIER_2: {
        HealthStatus.DOWN: HealthStatus.DEGRADED,
        HealthStatus.DEGRADED: HealthStatus.DEGRADED,
        HealthStatus.DRIFT: HealthStatus.DRIFT,
        HealthStatus.HEALTHY: HealthStatus.HEALTHY,
    },
    ServiceTier.TIER_3: {
        HealthStatus.DOWN: HealthStatus.DEGRADED,
        HealthStatus.DEGRADED: HealthStatus.DEGRADED,
        HealthStatus.DRIFT: HealthStatus.HEALTHY,
        HealthStatus.HEALTHY: HealthStatus.HEALTHY,
    },
}


class HealthCalculator:
    """Computes health statuses from observations (pure, no I/O)."""

    def deployment_status(
        self, observation: DeploymentObservation, declared_replicas: int
    ) -> HealthStatus:
        """Status of a single deployment.

        Args:
            observation: Observed cluster state
            declared_replicas: Replicas declared in the service definition

        Returns:
            down, degraded, healthy, drift or unknown
        """
        ready = observation.ready_replicas
        desired = observation.desired_replicas
        available = observation.condition("Available")
        progressing = observation.condition("Progressing")

        if available is None or not available.is_true() or ready == 0:
            return HealthStatus.DOWN
        if ready < desired:
            return HealthStatus.DEGRADED
        if progressing is not None and progressing.is_true() and ready == desired:
            if desired == declared_replicas:
                return HealthStatus.HEALTHY
            return HealthStatus.DRIFT
        return HealthStatus.UNKNOWN

    def deployment_health(
        self, observation: DeploymentObservation, declared_replicas: int
    ) -> DeploymentHealth:
        return DeploymentHealth(
            name=observation.name,
            ready_replicas=observation.ready_replicas,
            desired_replicas=observation.desired_replicas,
            declared_replicas=declared_replicas,
            status=self.deployment_status(observation, declared_replicas),
            last_updated=observation.last_updated,
        )

    @staticmethod
    def environment_status(deployments: list[DeploymentHealth]) -> HealthStatus:
        """Reduce deployment statuses to an environment status."""
        if not deployments:
            return HealthStatus.UNKNOWN

        counts = Counter(deployment.status for deployment in deployments)
        total = len(deployments)

        if counts[HealthStatus.DOWN] or counts[HealthStatus.NOT_FOUND]:
            return HealthStatus.DOWN
        if counts[HealthStatus.DEGRADED]:
            return HealthStatus.DEGRADED
        if counts[HealthStatus.HEALTHY] == total:
            return HealthStatus.HEALTHY
        if (
            counts[HealthStatus.DRIFT]
            and counts[HealthStatus.HEALTHY] + counts[HealthStatus.DRIFT] == total
        ):
            return HealthStatus.DRIFT
        return HealthStatus.UNKNOWN

    def environment_health(
        self, environment: KubernetesEnvironment, deployments: list[DeploymentHealth]
    ) -> EnvironmentHealth:
        return EnvironmentHealth(
            name=environment.name,
            context=environment.context,
            namespace=environment.namespace,
            status=self.environment_status(deployments),
            deployments=deployments,
        )

    @staticmethod
    def select_production(
        environments: list[EnvironmentHealth],
    ) -> EnvironmentHealth | None:
        """Pick the environment named production (or prod), else the first."""
        for environment in environments:
            if environment.name.strip().lower() == "production":
                return environment
        for environment in environments:
            if environment.name.strip().lower() == "prod":
                return environment
        return environments[0] if environments else None

    @staticmethod
    def apply_tier_policy(
        production_status: HealthStatus, tier: ServiceTier
    ) -> HealthStatus:
        return _TIER_POLICY[tier].get(production_status, HealthStatus.UNKNOWN)

    def overall_status(
        self, environments: list[EnvironmentHealth], tier: ServiceTier
    ) -> HealthStatus:
        production = self.select_production(environments)
        if production is None:
            return HealthStatus.UNKNOWN
        return self.apply_tier_policy(production.status, tier)
