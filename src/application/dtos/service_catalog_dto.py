"""DTOs for service catalog use cases."""

from dataclasses import dataclass, field

from src.domain.entities.service import Service
from src.domain.entities.service_change import ServiceChange


@dataclass
class ServiceMutationResult:
    """Result of a create/update.

    warnings lists best-effort steps that failed without aborting the
    mutation (e.g. history not recorded).
    """

    service: Service
    warnings: list[str] = field(default_factory=list)


@dataclass
class ServiceDeletionResult:
    service_name: str
    warnings: list[str] = field(default_factory=list)


@dataclass
class ServiceHistoryResult:
    """History of a service, newest first."""

    service_name: str
    provider: str
    history: list[ServiceChange] = field(default_factory=list)

