"""Versioning provider interface module.

A versioning provider keeps an append-only change log per service.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.domain.entities.service import Service, ServiceAction, UserContext
    from src.domain.entities.service_change import FieldChange, ServiceChange


class VersioningProviderInterface(ABC):
    """Pluggable per-service history backend.

    record_change and record_deletion are called after a successful storage
    write with the post-write entity. History is returned newest first.
    """

    name: str = "none"

    @abstractmethod
    async def initialize(self) -> None:
        """Prepare on-disk state (directories, repositories)."""
        pass

    @abstractmethod
    async def record_change(
        self,
        service: "Service",
        user: "UserContext | None",
        action: "ServiceAction",
        field_changes: "list[FieldChange] | None" = None,
    ) -> None:
        """Append a create or update record for the service."""
        pass

    @abstractmethod
    async def record_deletion(
        self, service_name: str, user: "UserContext | None"
    ) -> None:
        pass

    @abstractmethod
    async def get_service_history(self, service_name: str) -> list["ServiceChange"]:
        pass

    @abstractmethod
    def is_enabled(self) -> bool:
        pass

    @abstractmethod
    async def get_status(self) -> str:
        """Short human readable provider status (used by readiness checks)."""
        pass
