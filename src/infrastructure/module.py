"""Service catalog composition root.

Wires storage, versioning, integrations and use cases from one explicit
ModuleConfig. Nothing is built at import time; the API lifespan creates one
module per application.
"""

import logging

from src.application.use_cases.get_service_health import GetServiceHealthUseCase
from src.application.use_cases.manage_service_catalog import ServiceCatalogUseCase
from src.application.use_cases.resolve_deployment_owner import (
    ResolveDeploymentOwnerUseCase,
)
from src.domain.repositories.kubernetes_gateway import KubernetesGatewayInterface
from src.domain.repositories.team_directory import TeamDirectoryInterface
from src.infrastructure.config.module_config import ModuleConfig
from src.infrastructure.config.settings import Settings
from src.infrastructure.integrations.github_client import GitHubTeamDirectory
from src.infrastructure.integrations.kubernetes_client import KubernetesApiClient
from src.infrastructure.storage.filesystem_service_repository import (
    FilesystemServiceRepository,
)
from src.infrastructure.versioning.factory import create_versioning_provider

logger = logging.getLogger(__name__)


class ServiceCatalogModule:
    """The assembled service catalog.

    Attributes:
        config: Bootstrap configuration
        repository: Filesystem storage backend
        versioning: Active versioning provider
        catalog: CRUD / list / history use case
        resolver: Deployment owner resolver
        health: Health aggregation use case
    """

    def __init__(
        self,
        config: ModuleConfig,
        kubernetes: KubernetesGatewayInterface | None = None,
        team_directory: TeamDirectoryInterface | None = None,
        health_call_timeout_seconds: float = 10.0,
    ):
        self.config = config
        self.kubernetes = kubernetes
        self.team_directory = team_directory

        self.repository = FilesystemServiceRepository(config.directory)
        self.versioning = create_versioning_provider(config)
        self.catalog = ServiceCatalogUseCase(
            repository=self.repository,
            versioning=self.versioning,
            team_directory=team_directory,
        )
        self.resolver = ResolveDeploymentOwnerUseCase(self.catalog, kubernetes)
        self.health = GetServiceHealthUseCase(
            self.catalog,
            kubernetes,
            call_timeout_seconds=health_call_timeout_seconds,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "ServiceCatalogModule":
        """Build the module and its integrations from application settings."""
        config = ModuleConfig.from_settings(settings)

        kubernetes = None
        if settings.kubernetes.clusters:
            kubernetes = KubernetesApiClient(
                settings.kubernetes.clusters,
                timeout=settings.kubernetes.request_timeout_seconds,
            )

        team_directory = None
        if settings.github.enabled:
            team_directory = GitHubTeamDirectory(
                org=settings.github.org,
                token=settings.github.token,
                api_url=settings.github.api_url,
                timeout=settings.github.timeout_seconds,
            )

        return cls(
            config,
            kubernetes=kubernetes,
            team_directory=team_directory,
            health_call_timeout_seconds=settings.kubernetes.request_timeout_seconds,
        )

    async def initialize(self) -> None:
        """Prepare storage and versioning on disk."""
        await self.repository.initialize()
        await self.versioning.initialize()
        logger.info(
            f"Service catalog ready: directory={self.config.directory} "
            f"versioning={self.versioning.name} "
            f"kubernetes={'on' if self.kubernetes else 'off'} "
            f"team_enrichment={'on' if self.team_directory else 'off'}"
        )

    async def aclose(self) -> None:
        """Release HTTP clients."""
        for resource in (self.kubernetes, self.team_directory):
            close = getattr(resource, "close", None)
            if close is not None:
                await close()
