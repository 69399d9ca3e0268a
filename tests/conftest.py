"""Shared test fixtures: service definitions and users."""

from collections.abc import Callable

import pytest

from src.domain.entities.service import (
    KubernetesDeployment,
    KubernetesEnvironment,
    KubernetesEnvironmentResources,
    Service,
    ServiceKubernetes,
    ServiceMetadata,
    ServiceSpec,
    ServiceTeam,
    ServiceTier,
    UserContext,
)


def _build_service(
    name: str = "cart",
    tier: ServiceTier = ServiceTier.TIER_3,
    team: str = "shop",
    description: str = "Shopping cart API",
    deployments: dict[str, int] | None = None,
    environment: str = "production",
    context: str = "prod",
    namespace: str = "shop",
    kubernetes: bool = True,
) -> Service:
    k8s = None
    if kubernetes:
        deployments = deployments if deployments is not None else {f"{name}-api": 3}
        k8s = ServiceKubernetes(
            environments=[
                KubernetesEnvironment(
                    name=environment,
                    context=context,
                    namespace=namespace,
                    resources=KubernetesEnvironmentResources(
                        deployments=[
                            KubernetesDeployment(name=dep, replicas=replicas)
                            for dep, replicas in deployments.items()
                        ]
                    ),
                )
            ]
        )
    return Service(
        metadata=ServiceMetadata(name=name, tier=tier),
        spec=ServiceSpec(
            description=description,
            team=ServiceTeam(github_team=team),
            kubernetes=k8s,
        ),
    )


@pytest.fixture
def service_factory() -> Callable[..., Service]:
    """Factory building a valid service with one production environment."""
    return _build_service


@pytest.fixture
def shop_user() -> UserContext:
    """User in the team owning the default test service."""
    return UserContext(
        username="alice",
        email="alice@example.com",
        name="Alice",
        teams=("shop",),
    )


@pytest.fixture
def outsider_user() -> UserContext:
    """User in an unrelated team."""
    return UserContext(
        username="mallory",
        email="mallory@example.com",
        name="Mallory",
        teams=("payments",),
    )
