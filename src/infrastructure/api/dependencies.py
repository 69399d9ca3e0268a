"""
Dependency injection for FastAPI routes.

The service catalog module is assembled once in the application lifespan and
stored on ``app.state``; these factories hand its use cases to the routes via
FastAPI's Depends().
"""

from fastapi import Depends, Request

from src.application.use_cases.get_service_health import GetServiceHealthUseCase
from src.application.use_cases.manage_service_catalog import ServiceCatalogUseCase
from src.application.use_cases.resolve_deployment_owner import (
    ResolveDeploymentOwnerUseCase,
)
from src.infrastructure.module import ServiceCatalogModule


def get_service_catalog_module(request: Request) -> ServiceCatalogModule:
    """Get the ServiceCatalogModule built at startup."""
    return request.app.state.service_catalog


def get_service_catalog_use_case(
    module: ServiceCatalogModule = Depends(get_service_catalog_module),
) -> ServiceCatalogUseCase:
    """Get ServiceCatalogUseCase instance."""
    return module.catalog


def get_service_health_use_case(
    module: ServiceCatalogModule = Depends(get_service_catalog_module),
) -> GetServiceHealthUseCase:
    """Get GetServiceHealthUseCase instance."""
    return module.health


def get_resolve_deployment_owner_use_case(
    module: ServiceCatalogModule = Depends(get_service_catalog_module),
) -> ResolveDeploymentOwnerUseCase:
    """Get ResolveDeploymentOwnerUseCase instance."""
    return module.resolver
