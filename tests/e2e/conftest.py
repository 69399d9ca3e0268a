"""E2E test fixtures for API layer testing."""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.infrastructure.api.main import create_app
from src.infrastructure.config import reset_settings
from src.infrastructure.config.module_config import ModuleConfig
from src.infrastructure.module import ServiceCatalogModule


async def _build_module(directory, versioning_provider: str) -> ServiceCatalogModule:
    module = ServiceCatalogModule(
        ModuleConfig(directory=str(directory), versioning_provider=versioning_provider)
    )
    await module.initialize()
    return module


def _build_client(module: ServiceCatalogModule) -> AsyncClient:
    """Create an app around an initialized catalog module.

    ASGITransport does not run the lifespan, so the module is attached to
    app.state up front.
    """
    app = create_app()
    app.state.service_catalog = module
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver")


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    """Settings are cached per process; start every test from the environment.

    The app sits behind the OAuth2 proxy, so identity headers are trusted.
    """
    monkeypatch.setenv("API_TRUST_IDENTITY_HEADERS", "true")
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def catalog_directory(tmp_path):
    return tmp_path / "services"


@pytest_asyncio.fixture
async def catalog_module(catalog_directory) -> ServiceCatalogModule:
    """Catalog module using simple (JSON file) versioning."""
    return await _build_module(catalog_directory, "simple")


@pytest_asyncio.fixture
async def async_client(catalog_module) -> AsyncGenerator[AsyncClient, None]:
    """Client for an app around catalog_module."""
    client = _build_client(catalog_module)
    async with client:
        yield client


@pytest_asyncio.fixture
async def unversioned_client(catalog_directory) -> AsyncGenerator[AsyncClient, None]:
    """Client for an app with versioning disabled."""
    client = _build_client(await _build_module(catalog_directory, "none"))
    async with client:
        yield client


@pytest.fixture
def owner_headers() -> dict[str, str]:
    """Identity forwarded by the OAuth2 proxy for a member of the shop team."""
    return {
        "X-Auth-Request-User": "alice",
        "X-Auth-Request-Email": "alice@example.com",
        "X-Auth-Request-Groups": "acme:shop",
    }


@pytest.fixture
def outsider_headers() -> dict[str, str]:
    return {
        "X-Auth-Request-User": "mallory",
        "X-Auth-Request-Groups": "acme:payments",
    }


@pytest.fixture
def service_payload():
    """Build a creation request body."""

    def _payload(name="cart", **overrides):
        payload = {
            "name": name,
            "description": "Shopping cart API",
            "tier": "TIER-2",
            "team": {"github_team": "shop"},
            "business": {"sla_target": "99.9%", "impact": "medium"},
            "kubernetes": {
                "environments": [
                    {
                        "name": "production",
                        "context": "prod",
                        "namespace": "shop",
                        "resources": {
                            "deployments": [
                                {
                                    "name": f"{name}-api",
                                    "replicas": 3,
                                    "resources": {
                                        "requests": {"cpu": "250m", "memory": "256Mi"},
                                        "limits": {"cpu": "1", "memory": "512Mi"},
                                    },
                                }
                            ]
                        },
                    }
                ]
            },
        }
        payload.update(overrides)
        return payload

    return _payload
