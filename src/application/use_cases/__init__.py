"""Use cases - Application-specific business rules.

This package contains use cases that orchestrate domain logic
and implement application-specific workflows.
"""

from src.application.use_cases.get_service_health import GetServiceHealthUseCase
from src.application.use_cases.manage_service_catalog import ServiceCatalogUseCase
from src.application.use_cases.resolve_deployment_owner import (
    ResolveDeploymentOwnerUseCase,
)

__all__ = [
    "ServiceCatalogUseCase",
    "ResolveDeploymentOwnerUseCase",
    "GetServiceHealthUseCase",
]
