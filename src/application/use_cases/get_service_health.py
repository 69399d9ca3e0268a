"""Service health aggregation use case.

Fans out to the Kubernetes facade for every declared deployment, reduces the
observations to environment health and applies the service tier policy to
the production environment.
"""

import asyncio
import logging

from src.application.use_cases.manage_service_catalog import ServiceCatalogUseCase
from src.domain.entities.service import (
    KubernetesDeployment,
    KubernetesEnvironment,
    Service,
)
from src.domain.entities.service_health import (
    DeploymentHealth,
    EnvironmentHealth,
    HealthStatus,
    ServiceHealth,
)
from src.domain.repositories.kubernetes_gateway import (
    DeploymentNotFoundError,
    KubernetesGatewayError,
    KubernetesGatewayInterface,
)
from src.domain.services.health_calculator import HealthCalculator

logger = logging.getLogger(__name__)

DEFAULT_CALL_TIMEOUT_SECONDS = 10.0


class GetServiceHealthUseCase:
    """Compute the health of catalog services.

    A single unreachable deployment never fails the request: it is reported
    as unknown and the reduction tables propagate it. Only a failure to load
    the service itself is raised.
    """

    def __init__(
        self,
        catalog: ServiceCatalogUseCase,
        kubernetes: KubernetesGatewayInterface | None,
        calculator: HealthCalculator | None = None,
        call_timeout_seconds: float = DEFAULT_CALL_TIMEOUT_SECONDS,
    ):
        """Initialize use case with dependencies.

        Args:
            catalog: Catalog use case used to load services
            kubernetes: Kubernetes facade (None when no cluster is configured)
            calculator: Status reduction logic
            call_timeout_seconds: Deadline for each facade call
        """
        self._catalog = catalog
        self._kubernetes = kubernetes
        self._calculator = calculator or HealthCalculator()
        self._call_timeout = call_timeout_seconds

    async def execute(self, service_name: str) -> ServiceHealth:
        """Compute the health of one service.

        Raises:
            ServiceNotFoundError: If the service does not exist
        """
        service = await self._catalog.get_service(service_name, enrich=False)
        return await self.evaluate(service)

    async def evaluate(self, service: Service) -> ServiceHealth:
        environments = service.environments()
        if not environments:
            return ServiceHealth(
                service_name=service.metadata.name,
                overall_status=HealthStatus.UNKNOWN,
                environments=[],
            )

        results = await asyncio.gather(
            *(self._evaluate_environment(environment) for environment in environments)
        )
        overall = self._calculator.overall_status(list(results), service.metadata.tier)
        logger.info(
            f"Health of {service.metadata.name}: {overall.value} "
            f"({len(results)} environments)"
        )
        return ServiceHealth(
            service_name=service.metadata.name,
            overall_status=overall,
            environments=list(results),
        )

    async def overall_statuses(self, services: list[Service]) -> dict[str, HealthStatus]:
        """Overall status for each service, evaluated concurrently."""
        results = await asyncio.gather(*(self.evaluate(service) for service in services))
        return {health.service_name: health.overall_status for health in results}

    async def _evaluate_environment(
        self, environment: KubernetesEnvironment
    ) -> EnvironmentHealth:
        deployments = await asyncio.gather(
            *(
                self._evaluate_deployment(environment, deployment)
                for deployment in environment.resources.deployments
            )
        )
        return self._calculator.environment_health(environment, list(deployments))

    async def _evaluate_deployment(
        self, environment: KubernetesEnvironment, deployment: KubernetesDeployment
    ) -> DeploymentHealth:
        if self._kubernetes is None:
            return self._unknown(deployment, "kubernetes integration not configured")

        try:
            observation = await asyncio.wait_for(
                self._kubernetes.get_deployment_health(
                    environment.context, environment.namespace, deployment.name
                ),
                timeout=self._call_timeout,
            )
        except DeploymentNotFoundError:
            return DeploymentHealth(
                name=deployment.name,
                ready_replicas=0,
                desired_replicas=deployment.replicas,
                declared_replicas=deployment.replicas,
                status=HealthStatus.NOT_FOUND,
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"Timed out observing deployment {environment.context}/"
                f"{environment.namespace}/{deployment.name}"
            )
            return self._unknown(deployment, "timeout")
        except KubernetesGatewayError as e:
            logger.warning(
                f"Failed to observe deployment {environment.context}/"
                f"{environment.namespace}/{deployment.name}: {e}"
            )
            return self._unknown(deployment, str(e))
        except Exception as e:
            logger.error(
                f"Unexpected error observing deployment {environment.context}/"
                f"{environment.namespace}/{deployment.name}: {e}",
                exc_info=True,
            )
            return self._unknown(deployment, "unexpected error")

        return self._calculator.deployment_health(observation, deployment.replicas)

    @staticmethod
    def _unknown(deployment: KubernetesDeployment, error: str) -> DeploymentHealth:
        return DeploymentHealth(
            name=deployment.name,
            ready_replicas=0,
            desired_replicas=0,
            declared_replicas=deployment.replicas,
            status=HealthStatus.UNKNOWN,
            error=error,
        )
