"""Unit tests for ServiceProcessor."""

import pytest

from src.domain.entities.service import ServiceTier
from src.domain.entities.service_health import HealthStatus
from src.domain.entities.service_query import ServiceFilter
from src.domain.services.service_processor import (
    ServiceProcessor,
    normalize_service_name,
)


@pytest.fixture
def processor():
    return ServiceProcessor()


@pytest.fixture
def catalog(service_factory):
    return [
        service_factory(name="cart", team="shop", tier=ServiceTier.TIER_3),
        service_factory(
            name="checkout",
            team="shop",
            tier=ServiceTier.TIER_1,
            description="Checkout flow",
        ),
        service_factory(
            name="ledger",
            team="payments",
            tier=ServiceTier.TIER_1,
            description="Double-entry ledger",
        ),
    ]


class TestNormalizeServiceName:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("Cart", "cart"),
            ("  Payment_API v2 ", "payment-api-v2"),
            ("user--service", "user-service"),
            ("--edge--", "edge"),
            ("", ""),
        ],
    )
    def test_normalize(self, raw, expected):
        assert normalize_service_name(raw) == expected


class TestPrepareForCreation:
    """Tests for the first revision of a service."""

    def test_sets_version_and_audit_fields(self, processor, service_factory, shop_user):
        prepared = processor.prepare_for_creation(service_factory(), shop_user)

        assert prepared.metadata.version == 1
        assert prepared.metadata.created_by == "alice"
        assert prepared.metadata.updated_by == "alice"
        assert prepared.metadata.created_at is not None
        assert prepared.metadata.created_at == prepared.metadata.updated_at

    def test_anonymous_without_user(self, processor, service_factory):
        prepared = processor.prepare_for_creation(service_factory(), None)

        assert prepared.metadata.created_by == "anonymous"

    def test_does_not_mutate_input(self, processor, service_factory, shop_user):
        service = service_factory()

        processor.prepare_for_creation(service, shop_user)

        assert service.metadata.version == 0

    def test_normalizes_spec(self, processor, service_factory, shop_user):
        service = service_factory(team=" Shop ", description="  Cart  ")
        service.spec.team.members = ["alice"]
        service.spec.business.dependencies = ["Payments API", "payments-api", "", "Ledger"]

        prepared = processor.prepare_for_creation(service, shop_user)

        assert prepared.spec.team.github_team == "shop"
        assert prepared.spec.team.members == []
        assert prepared.spec.description == "Cart"
        assert prepared.spec.business.dependencies == ["payments-api", "ledger"]


class TestPrepareForUpdate:
    def test_increments_version_and_keeps_creation_fields(
        self, processor, service_factory, shop_user, outsider_user
    ):
        existing = processor.prepare_for_creation(service_factory(), shop_user)
        update = service_factory(description="Updated cart")

        prepared = processor.prepare_for_update(update, existing, outsider_user)

        assert prepared.metadata.version == 2
        assert prepared.metadata.created_by == "alice"
        assert prepared.metadata.created_at == existing.metadata.created_at
        assert prepared.metadata.updated_by == "mallory"
        assert prepared.spec.description == "Updated cart"


class TestProcessServiceList:
    """Tests for filtering and pagination."""

    def test_no_filter_returns_everything(self, processor, catalog):
        result = processor.process_service_list(catalog, None)

        assert result.total == 3
        assert len(result.services) == 3

    def test_team_filter_is_case_insensitive(self, processor, catalog):
        result = processor.process_service_list(catalog, ServiceFilter(team="SHOP"))

        assert [s.name for s in result.services] == ["cart", "checkout"]
        assert result.total == 2

    def test_tier_filter(self, processor, catalog):
        result = processor.process_service_list(catalog, ServiceFilter(tier="tier-1"))

        assert [s.name for s in result.services] == ["checkout", "ledger"]

    def test_search_matches_name_or_description(self, processor, catalog):
        result = processor.process_service_list(catalog, ServiceFilter(search="LEDGER"))
        assert [s.name for s in result.services] == ["ledger"]

        result = processor.process_service_list(catalog, ServiceFilter(search="flow"))
        assert [s.name for s in result.services] == ["checkout"]

    def test_total_counts_filtered_before_pagination(self, processor, catalog):
        result = processor.process_service_list(
            catalog, ServiceFilter(team="shop", limit=1)
        )

        assert [s.name for s in result.services] == ["cart"]
        assert result.total == 2

    def test_offset(self, processor, catalog):
        result = processor.process_service_list(catalog, ServiceFilter(offset=1, limit=1))

        assert [s.name for s in result.services] == ["checkout"]
        assert result.total == 3

    def test_offset_past_end_returns_empty_page(self, processor, catalog):
        result = processor.process_service_list(catalog, ServiceFilter(offset=3))

        assert result.services == []
        assert result.total == 0

    def test_status_filter(self, processor, catalog):
        statuses = {
            "cart": HealthStatus.HEALTHY,
            "checkout": HealthStatus.CRITICAL,
        }

        result = processor.process_service_list(
            catalog, ServiceFilter(status="critical"), statuses
        )
        assert [s.name for s in result.services] == ["checkout"]

        result = processor.process_service_list(
            catalog, ServiceFilter(status="unknown"), statuses
        )
        assert [s.name for s in result.services] == ["ledger"]

    def test_status_filter_ignored_without_statuses(self, processor, catalog):
        result = processor.process_service_list(catalog, ServiceFilter(status="critical"))

        assert result.total == 3

    def test_filter_services_skips_pagination(self, processor, catalog):
        filtered = processor.filter_services(
            catalog, ServiceFilter(tier="TIER-1", status="critical", limit=1, offset=1)
        )

        assert [s.name for s in filtered] == ["checkout", "ledger"]


class TestCompareServices:
    def test_detects_field_and_topology_changes(self, processor, service_factory):
        old = service_factory(deployments={"cart-api": 3, "cart-worker": 1})
        new = service_factory(
            tier=ServiceTier.TIER_1,
            description="Cart v2",
            deployments={"cart-api": 5, "cart-cron": 1},
        )

        changes = {change.field: change for change in processor.compare_services(old, new)}

        assert changes["spec.description"].new_value == "Cart v2"
        assert changes["metadata.tier"].old_value == "TIER-3"
        assert changes["metadata.tier"].new_value == "TIER-1"
        env = "spec.kubernetes.environments[production]"
        assert changes[f"{env}.deployments[cart-api].replicas"].new_value == 5
        assert changes[f"{env}.deployments[cart-worker]"].new_value is None
        assert changes[f"{env}.deployments[cart-cron]"].old_value is None

    def test_identical_services_have_no_changes(self, processor, service_factory):
        assert processor.compare_services(service_factory(), service_factory()) == []
