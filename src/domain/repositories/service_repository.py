"""Service repository interface module.

This module defines the abstract interface for persisting Service definitions.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.domain.entities.service import Service
    from src.domain.entities.service_query import ServiceFilter


class ServiceRepositoryInterface(ABC):
    """Repository interface for Service definitions.

    Names passed to every method are normalized service names. Implementations
    raise BackendUnavailableError (wrapping the operation name) on I/O failure.
    """

    @abstractmethod
    async def create(self, service: "Service") -> "Service":
        """Persist a new service.

        Args:
            service: Prepared service (version 1, audit fields set)

        Returns:
            The stored service

        Raises:
            ServiceAlreadyExistsError: If a definition with the name exists
        """
        pass

    @abstractmethod
    async def get_by_name(self, name: str) -> "Service":
        """Load a service by name.

        Raises:
            ServiceNotFoundError: If no definition exists
        """
        pass

    @abstractmethod
    async def update(
        self, service: "Service", expected_version: int | None = None
    ) -> "Service":
        """Replace an existing service definition.

        Args:
            service: Prepared service carrying the new version
            expected_version: Version read before the mutation was prepared;
                a different on-disk version is a concurrent modification

        Raises:
            ServiceNotFoundError: If no definition exists
            ServiceConflictError: If the stored version changed underneath
        """
        pass

    @abstractmethod
    async def delete(self, name: str) -> None:
        """Remove a service definition.

        Raises:
            ServiceNotFoundError: If no definition exists
        """
        pass

    @abstractmethod
    async def list(self, service_filter: "ServiceFilter | None" = None) -> list["Service"]:
        """List all stored services, sorted by name.

        Filtering and pagination are applied by the catalog, the filter is
        passed through for implementations that can narrow the scan.
        """
        pass

    @abstractmethod
    async def exists(self, name: str) -> bool:
        pass
