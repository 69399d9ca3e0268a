"""Deployment owner resolution use case.

Reverse lookup from a Kubernetes (context, namespace, deployment) triple to
the catalog service that declares it.
"""

import logging

from src.application.use_cases.manage_service_catalog import ServiceCatalogUseCase
from src.domain.entities.service import KubernetesEnvironment, Service
from src.domain.repositories.kubernetes_gateway import (
    ClusterDeployment,
    DeploymentOwner,
    DeploymentOwnerResolver,
    KubernetesGatewayInterface,
)

logger = logging.getLogger(__name__)


class ResolveDeploymentOwnerUseCase(DeploymentOwnerResolver):
    """Resolve which service owns a deployment.

    Scans the catalog on every call. Environments match on exact context and
    namespace; deployment names prefer an exact match and fall back to a
    case-insensitive one.
    """

    def __init__(
        self,
        catalog: ServiceCatalogUseCase,
        kubernetes: KubernetesGatewayInterface | None = None,
    ):
        self._catalog = catalog
        self._kubernetes = kubernetes

    async def resolve(
        self, deployment_name: str, namespace: str, context: str
    ) -> DeploymentOwner | None:
        """Resolve the owning service of a deployment.

        Args:
            deployment_name: Kubernetes deployment name
            namespace: Kubernetes namespace
            context: Cluster context

        Returns:
            DeploymentOwner, or None when no service declares the deployment

        Raises:
            BackendUnavailableError: If the catalog cannot be loaded
        """
        catalog = await self._catalog.list_services(None)
        return self.resolve_in(catalog.services, deployment_name, namespace, context)

    def resolve_in(
        self,
        services: list[Service],
        deployment_name: str,
        namespace: str,
        context: str,
    ) -> DeploymentOwner | None:
        """Resolve against an already loaded list of services."""
        fallback: DeploymentOwner | None = None
        lowered = deployment_name.lower()

        for service in services:
            for environment in service.environments():
                if environment.context != context or environment.namespace != namespace:
                    continue
                for deployment in environment.resources.deployments:
                    if deployment.name == deployment_name:
                        return self._to_owner(service, environment)
                    if fallback is None and deployment.name.lower() == lowered:
                        fallback = self._to_owner(service, environment)

        if fallback is None:
            logger.debug(
                f"No owner for deployment {context}/{namespace}/{deployment_name}"
            )
        return fallback

    async def list_cluster_deployments(
        self, context: str, namespace: str
    ) -> list[ClusterDeployment]:
        """List deployments in a namespace annotated with their owners.

        Raises:
            KubernetesGatewayError: If the cluster cannot be queried
        """
        if self._kubernetes is None:
            return []

        names = await self._kubernetes.list_deployments(context, namespace)
        catalog = await self._catalog.list_services(None)
        return [
            ClusterDeployment(
                name=name,
                namespace=namespace,
                context=context,
                owner=self.resolve_in(catalog.services, name, namespace, context),
            )
            for name in sorted(names)
        ]

    @staticmethod
    def _to_owner(service: Service, environment: KubernetesEnvironment) -> DeploymentOwner:
        return DeploymentOwner(
            service_name=service.metadata.name,
            service_tier=service.metadata.tier.value,
            environment=environment.name,
            context=environment.context,
            namespace=environment.namespace,
            team=service.spec.team.github_team,
            description=service.spec.description,
            found=True,
        )
