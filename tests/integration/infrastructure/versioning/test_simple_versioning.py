"""Integration tests for SimpleVersioningProvider."""

import json

import pytest

from src.domain.entities.service import ServiceAction
from src.domain.entities.service_change import FieldChange
from src.infrastructure.versioning.simple_versioning import SimpleVersioningProvider


@pytest.fixture
async def provider(catalog_dir):
    versioning = SimpleVersioningProvider(catalog_dir)
    await versioning.initialize()
    return versioning


class TestSimpleVersioningProvider:
    """Tests for JSON history files."""

    @pytest.mark.asyncio
    async def test_initialize_creates_history_directory(self, provider, catalog_dir):
        assert provider.history_directory == catalog_dir / ".history"
        assert provider.history_directory.is_dir()
        assert provider.is_enabled()

    @pytest.mark.asyncio
    async def test_record_and_read_history(self, provider, prepared_service, shop_user):
        service = prepared_service(name="cart")
        await provider.record_change(service, shop_user, ServiceAction.CREATE)

        service.metadata.version = 2
        await provider.record_change(
            service,
            shop_user,
            ServiceAction.UPDATE,
            [FieldChange("spec.description", "Old", "New")],
        )

        history = await provider.get_service_history("cart")

        assert [change.action for change in history] == ["update", "create"]
        assert history[0].version == 2
        assert history[0].author == "Alice"
        assert history[0].email == "alice@example.com"
        assert history[0].field_changes == [FieldChange("spec.description", "Old", "New")]
        assert history[1].message.startswith("Create service 'cart'")

    @pytest.mark.asyncio
    async def test_history_file_is_json_array(self, provider, prepared_service, shop_user):
        await provider.record_change(
            prepared_service(name="cart"), shop_user, ServiceAction.CREATE
        )

        data = json.loads((provider.history_directory / "cart.json").read_text())

        assert isinstance(data, list)
        assert data[0]["action"] == "create"
        assert data[0]["id"].startswith("cart-create-")

    @pytest.mark.asyncio
    async def test_deletion_keeps_history(self, provider, prepared_service):
        await provider.record_change(
            prepared_service(name="cart"), None, ServiceAction.CREATE
        )

        await provider.record_deletion("cart", None)

        history = await provider.get_service_history("cart")
        assert history[0].action == "delete"
        assert history[0].author == "Anonymous User"
        assert len(history) == 2

    @pytest.mark.asyncio
    async def test_history_capped(self, catalog_dir, prepared_service, shop_user):
        provider = SimpleVersioningProvider(catalog_dir, max_entries=3)
        await provider.initialize()
        service = prepared_service(name="cart")

        for version in range(1, 6):
            service.metadata.version = version
            await provider.record_change(service, shop_user, ServiceAction.UPDATE)

        history = await provider.get_service_history("cart")
        assert len(history) == 3
        assert history[0].version == 5

    @pytest.mark.asyncio
    async def test_unknown_service_has_empty_history(self, provider):
        assert await provider.get_service_history("ghost") == []

    @pytest.mark.asyncio
    async def test_corrupt_history_raises(self, provider):
        (provider.history_directory / "cart.json").write_text("{not json")

        with pytest.raises(ValueError, match="Corrupt history"):
            await provider.get_service_history("cart")

    @pytest.mark.asyncio
    async def test_status_counts_tracked_services(self, provider, prepared_service):
        await provider.record_change(prepared_service(name="cart"), None, ServiceAction.CREATE)
        await provider.record_change(prepared_service(name="search"), None, ServiceAction.CREATE)

        assert await provider.get_status() == "Simple versioning active, tracking 2 services"
