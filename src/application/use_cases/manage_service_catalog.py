"""Service catalog use case.

Sole entry point for catalog mutations and queries. Orchestrates validation,
storage, best-effort versioning and optional team enrichment.
"""

import logging
from collections.abc import Awaitable, Callable

from src.application.dtos.service_catalog_dto import (
    ServiceDeletionResult,
    ServiceHistoryResult,
    ServiceMutationResult,
)
from src.domain.entities.service import Service, ServiceAction, UserContext
from src.domain.entities.service_change import FieldChange
from src.domain.entities.service_health import HealthStatus
from src.domain.entities.service_query import ServiceFilter, ServiceList
from src.domain.exceptions import (
    BackendUnavailableError,
    ServiceAlreadyExistsError,
    ServiceCatalogError,
    ServiceConflictError,
    ServiceNotFoundError,
    VersioningUnavailableError,
)
from src.domain.repositories.service_repository import ServiceRepositoryInterface
from src.domain.repositories.team_directory import (
    TeamDirectoryError,
    TeamDirectoryInterface,
    TeamInfo,
)
from src.domain.repositories.versioning_provider import VersioningProviderInterface
from src.domain.services.service_processor import (
    ServiceProcessor,
    normalize_service_name,
)
from src.domain.services.service_validator import ServiceValidator

logger = logging.getLogger(__name__)

StatusLookup = Callable[[list[Service]], Awaitable[dict[str, HealthStatus]]]


class ServiceCatalogUseCase:
    """Create, read, update, delete and list catalog services.

    History is best-effort: a versioning failure on the write path is logged
    and reported through the result's warnings, never raised.
    """

    def __init__(
        self,
        repository: ServiceRepositoryInterface,
        versioning: VersioningProviderInterface,
        team_directory: TeamDirectoryInterface | None = None,
        validator: ServiceValidator | None = None,
        processor: ServiceProcessor | None = None,
    ):
        """Initialize use case with dependencies.

        Args:
            repository: Storage backend for service definitions
            versioning: Active versioning provider
            team_directory: Optional team enrichment lookup
            validator: Service validator
            processor: Service processor
        """
        self._repository = repository
        self._versioning = versioning
        self._team_directory = team_directory
        self._validator = validator or ServiceValidator()
        self._processor = processor or ServiceProcessor()

    @property
    def versioning(self) -> VersioningProviderInterface:
        return self._versioning

    async def create_service(
        self, service: Service, user: UserContext | None
    ) -> ServiceMutationResult:
        """Create a new service.

        Args:
            service: Service definition from the request
            user: Acting user

        Returns:
            ServiceMutationResult with the stored service

        Raises:
            PermissionDeniedError: If no user is supplied
            ServiceValidationError: If the definition is invalid
            ServiceAlreadyExistsError: If the normalized name is taken
        """
        self._validator.validate_user_permissions(service, user, ServiceAction.CREATE)

        service.metadata.name = normalize_service_name(service.metadata.name)
        self._validator.validate_for_creation(service)

        if await self._repository.exists(service.metadata.name):
            raise ServiceAlreadyExistsError(service.metadata.name)

        await self._check_deployment_ownership(service)

        prepared = self._processor.prepare_for_creation(service, user)
        created = await self._repository.create(prepared)
        logger.info(
            f"Created service {created.metadata.name} "
            f"(tier={created.metadata.tier.value}, team={created.spec.team.github_team})"
        )

        warnings = await self._record_change(created, user, ServiceAction.CREATE)
        return ServiceMutationResult(service=created, warnings=warnings)

    async def get_service(self, name: str, enrich: bool = True) -> Service:
        """Load a service, optionally enriching its team.

        Raises:
            ServiceNotFoundError: If the service does not exist
        """
        normalized = normalize_service_name(name)
        if not normalized:
            raise ServiceNotFoundError(name)

        service = await self._repository.get_by_name(normalized)
        if enrich:
            await self._enrich_team(service, {})
        return service

    async def update_service(
        self,
        name: str,
        service: Service,
        user: UserContext | None,
        expected_version: int | None = None,
    ) -> ServiceMutationResult:
        """Replace the spec of an existing service.

        Args:
            name: Name of the service being updated (from the path)
            service: New definition
            user: Acting user
            expected_version: Version the new definition was built from;
                defaults to the version read here

        Raises:
            ServiceNotFoundError: If the service does not exist
            PermissionDeniedError: If the user does not own the service
            ServiceValidationError: If the definition is invalid or renames
                the service
            ServiceConflictError: If a concurrent update won the race
        """
        existing = await self.get_service(name, enrich=False)
        if expected_version is None:
            expected_version = existing.metadata.version
        elif existing.metadata.version != expected_version:
            raise ServiceConflictError(
                existing.metadata.name, expected_version, existing.metadata.version
            )
        self._validator.validate_user_permissions(existing, user, ServiceAction.UPDATE)

        if service.metadata.name:
            service.metadata.name = normalize_service_name(service.metadata.name)
        else:
            service.metadata.name = existing.metadata.name
        self._validator.validate_for_update(service, existing)
        await self._check_deployment_ownership(service)

        prepared = self._processor.prepare_for_update(service, existing, user)
        field_changes = self._processor.compare_services(existing, prepared)
        updated = await self._repository.update(
            prepared, expected_version=expected_version
        )
        logger.info(
            f"Updated service {updated.metadata.name} to version "
            f"{updated.metadata.version} ({len(field_changes)} field changes)"
        )

        warnings = await self._record_change(
            updated, user, ServiceAction.UPDATE, field_changes
        )
        return ServiceMutationResult(service=updated, warnings=warnings)

    async def delete_service(
        self, name: str, user: UserContext | None
    ) -> ServiceDeletionResult:
        """Delete a service.

        Raises:
            ServiceNotFoundError: If the service does not exist
            PermissionDeniedError: If the user does not own the service
        """
        existing = await self.get_service(name, enrich=False)
        self._validator.validate_user_permissions(existing, user, ServiceAction.DELETE)

        await self._repository.delete(existing.metadata.name)
        logger.info(f"Deleted service {existing.metadata.name}")

        warnings: list[str] = []
        if self._versioning.is_enabled():
            try:
                await self._versioning.record_deletion(existing.metadata.name, user)
            except Exception as e:
                logger.warning(
                    f"Failed to record deletion of {existing.metadata.name} "
                    f"in {self._versioning.name} history: {e}"
                )
                warnings.append(f"history not recorded: {e}")
        return ServiceDeletionResult(service_name=existing.metadata.name, warnings=warnings)

    async def list_services(
        self,
        service_filter: ServiceFilter | None = None,
        status_lookup: StatusLookup | None = None,
        enrich: bool = False,
    ) -> ServiceList:
        """List services with filtering and pagination.

        Args:
            service_filter: Filter (None returns every service)
            status_lookup: Computes overall health per service; only called
                when the filter asks for a status
            enrich: Annotate teams with members from the team directory

        Returns:
            ServiceList page with the post-filter total
        """
        services = await self._repository.list(service_filter)

        statuses = None
        if service_filter is not None and service_filter.status and status_lookup:
            # Health is only computed for services passing the other criteria
            services = self._processor.filter_services(services, service_filter)
            statuses = await status_lookup(services)

        result = self._processor.process_service_list(services, service_filter, statuses)

        if enrich:
            cache: dict[str, TeamInfo | None] = {}
            for service in result.services:
                await self._enrich_team(service, cache)
        return result

    async def get_service_history(self, name: str) -> ServiceHistoryResult:
        """Return the change history of a service, newest first.

        Raises:
            VersioningUnavailableError: If versioning is disabled
            ServiceNotFoundError: If the service has neither history nor a
                stored definition
            BackendUnavailableError: If the versioning backend fails
        """
        if not self._versioning.is_enabled():
            raise VersioningUnavailableError()

        normalized = normalize_service_name(name)
        if not normalized:
            raise ServiceNotFoundError(name)

        try:
            history = await self._versioning.get_service_history(normalized)
        except ServiceCatalogError:
            raise
        except Exception as e:
            raise BackendUnavailableError("versioning", "history", e) from e

        if not history and not await self._repository.exists(normalized):
            raise ServiceNotFoundError(normalized)

        return ServiceHistoryResult(
            service_name=normalized,
            provider=self._versioning.name,
            history=history,
        )

    async def _check_deployment_ownership(self, service: Service) -> None:
        if not service.deployment_keys():
            return
        others = await self._repository.list()
        self._validator.validate_deployment_ownership(service, others)

    async def _record_change(
        self,
        service: Service,
        user: UserContext | None,
        action: ServiceAction,
        field_changes: list[FieldChange] | None = None,
    ) -> list[str]:
        if not self._versioning.is_enabled():
            return []
        try:
            await self._versioning.record_change(service, user, action, field_changes)
        except Exception as e:
            logger.warning(
                f"Failed to record {action.value} of {service.metadata.name} "
                f"in {self._versioning.name} history: {e}"
            )
            return [f"history not recorded: {e}"]
        return []

    async def _enrich_team(
        self, service: Service, cache: dict[str, TeamInfo | None]
    ) -> None:
        team = service.spec.team.github_team
        if self._team_directory is None or not team:
            return

        if team not in cache:
            try:
                cache[team] = await self._team_directory.get_team_info(team)
            except TeamDirectoryError as e:
                logger.warning(f"Team enrichment failed for {service.metadata.name}: {e}")
                cache[team] = None

        info = cache[team]
        if info is not None:
            service.spec.team.members = list(info.members)
            service.spec.team.github_url = info.url
