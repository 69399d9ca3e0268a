"""Disabled versioning provider."""

from src.domain.entities.service import Service, ServiceAction, UserContext
from src.domain.entities.service_change import FieldChange, ServiceChange
from src.domain.repositories.versioning_provider import VersioningProviderInterface


class NoneVersioningProvider(VersioningProviderInterface):
    """Accepts every call and records nothing."""

    name = "none"

    async def initialize(self) -> None:
        return None

    async def record_change(
        self,
        service: Service,
        user: UserContext | None,
        action: ServiceAction,
        field_changes: list[FieldChange] | None = None,
    ) -> None:
        return None

    async def record_deletion(self, service_name: str, user: UserContext | None) -> None:
        return None

    async def get_service_history(self, service_name: str) -> list[ServiceChange]:
        return []

    def is_enabled(self) -> bool:
        return False

    async def get_status(self) -> str:
        return "Versioning disabled"
