"""Unit tests for ServiceCatalogUseCase."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from src.application.use_cases.manage_service_catalog import ServiceCatalogUseCase
from src.domain.entities.service import ServiceAction, UserContext
from src.domain.entities.service_change import ServiceChange
from src.domain.entities.service_health import HealthStatus
from src.domain.entities.service_query import ServiceFilter
from src.domain.exceptions import (
    BackendUnavailableError,
    PermissionDeniedError,
    ServiceAlreadyExistsError,
    ServiceConflictError,
    ServiceNotFoundError,
    ServiceValidationError,
    VersioningUnavailableError,
)
from src.domain.repositories.service_repository import ServiceRepositoryInterface
from src.domain.repositories.team_directory import (
    TeamDirectoryError,
    TeamDirectoryInterface,
    TeamInfo,
)
from src.domain.repositories.versioning_provider import VersioningProviderInterface
from src.domain.services.service_processor import ServiceProcessor


def _passthrough(service, *args, **kwargs):
    return service


@pytest.fixture
def mock_repository():
    """Mock service repository that stores nothing."""
    repository = AsyncMock(spec=ServiceRepositoryInterface)
    repository.exists.return_value = False
    repository.list.return_value = []
    repository.create.side_effect = _passthrough
    repository.update.side_effect = _passthrough
    return repository


@pytest.fixture
def mock_versioning():
    """Mock enabled versioning provider."""
    versioning = AsyncMock(spec=VersioningProviderInterface)
    versioning.name = "simple"
    versioning.is_enabled = lambda: True
    versioning.get_service_history.return_value = []
    return versioning


@pytest.fixture
def mock_team_directory():
    return AsyncMock(spec=TeamDirectoryInterface)


@pytest.fixture
def use_case(mock_repository, mock_versioning):
    return ServiceCatalogUseCase(repository=mock_repository, versioning=mock_versioning)


@pytest.fixture
def stored(service_factory, shop_user):
    """A service as it would come back from storage."""
    return ServiceProcessor().prepare_for_creation(service_factory(), shop_user)


class TestCreateService:
    """Tests for service creation."""

    async def test_create_sets_version_one(self, use_case, service_factory, shop_user):
        result = await use_case.create_service(service_factory(), shop_user)

        assert result.service.metadata.version == 1
        assert result.service.metadata.created_by == "alice"
        assert result.warnings == []

    async def test_create_normalizes_name(
        self, use_case, mock_repository, service_factory, shop_user
    ):
        result = await use_case.create_service(
            service_factory(name="Cart Service"), shop_user
        )

        assert result.service.metadata.name == "cart-service"
        mock_repository.exists.assert_awaited_once_with("cart-service")

    async def test_create_records_history(
        self, use_case, mock_versioning, service_factory, shop_user
    ):
        result = await use_case.create_service(service_factory(), shop_user)

        mock_versioning.record_change.assert_awaited_once_with(
            result.service, shop_user, ServiceAction.CREATE, None
        )

    async def test_create_duplicate_raises(
        self, use_case, mock_repository, service_factory, shop_user
    ):
        mock_repository.exists.return_value = True

        with pytest.raises(ServiceAlreadyExistsError):
            await use_case.create_service(service_factory(), shop_user)

        mock_repository.create.assert_not_awaited()

    async def test_create_invalid_does_not_write(
        self, use_case, mock_repository, service_factory, shop_user
    ):
        with pytest.raises(ServiceValidationError) as exc_info:
            await use_case.create_service(service_factory(description=""), shop_user)

        assert exc_info.value.field == "spec.description"
        mock_repository.create.assert_not_awaited()

    async def test_create_requires_user(self, use_case, service_factory):
        with pytest.raises(PermissionDeniedError):
            await use_case.create_service(service_factory(), None)

    async def test_create_with_owned_deployment_rejected(
        self, use_case, mock_repository, service_factory, shop_user
    ):
        mock_repository.list.return_value = [
            service_factory(name="basket", deployments={"cart-api": 1})
        ]

        with pytest.raises(ServiceValidationError, match="already owned"):
            await use_case.create_service(service_factory(), shop_user)

    async def test_versioning_failure_becomes_warning(
        self, use_case, mock_repository, mock_versioning, service_factory, shop_user
    ):
        mock_versioning.record_change.side_effect = RuntimeError("disk full")

        result = await use_case.create_service(service_factory(), shop_user)

        mock_repository.create.assert_awaited_once()
        assert result.warnings == ["history not recorded: disk full"]

    async def test_disabled_versioning_is_not_called(
        self, mock_repository, mock_versioning, service_factory, shop_user
    ):
        mock_versioning.is_enabled = lambda: False
        use_case = ServiceCatalogUseCase(mock_repository, mock_versioning)

        result = await use_case.create_service(service_factory(), shop_user)

        mock_versioning.record_change.assert_not_awaited()
        assert result.warnings == []


class TestUpdateService:
    """Tests for service updates."""

    async def test_update_by_member_increments_version(
        self, use_case, mock_repository, mock_versioning, stored, service_factory, shop_user
    ):
        mock_repository.get_by_name.return_value = stored

        result = await use_case.update_service(
            "cart", service_factory(description="New cart"), shop_user
        )

        assert result.service.metadata.version == 2
        assert result.service.spec.description == "New cart"
        mock_repository.update.assert_awaited_once()
        assert mock_repository.update.await_args.kwargs["expected_version"] == 1
        field_changes = mock_versioning.record_change.await_args.args[3]
        assert [change.field for change in field_changes] == ["spec.description"]

    async def test_update_by_outsider_denied(
        self, use_case, mock_repository, stored, service_factory, outsider_user
    ):
        mock_repository.get_by_name.return_value = stored

        with pytest.raises(PermissionDeniedError):
            await use_case.update_service("cart", service_factory(), outsider_user)

        mock_repository.update.assert_not_awaited()

    async def test_update_with_case_differing_team(
        self, use_case, mock_repository, stored, service_factory
    ):
        mock_repository.get_by_name.return_value = stored
        user = UserContext(username="bob", teams=("Shop",))

        result = await use_case.update_service("cart", service_factory(), user)

        assert result.service.metadata.updated_by == "bob"

    async def test_update_cannot_rename(
        self, use_case, mock_repository, stored, service_factory, shop_user
    ):
        mock_repository.get_by_name.return_value = stored

        with pytest.raises(ServiceValidationError) as exc_info:
            await use_case.update_service(
                "cart", service_factory(name="basket"), shop_user
            )

        assert exc_info.value.field == "metadata.name"

    async def test_update_missing_service(
        self, use_case, mock_repository, service_factory, shop_user
    ):
        mock_repository.get_by_name.side_effect = ServiceNotFoundError("cart")

        with pytest.raises(ServiceNotFoundError):
            await use_case.update_service("cart", service_factory(), shop_user)

    async def test_update_from_stale_version_conflicts(
        self, use_case, mock_repository, stored, service_factory, shop_user
    ):
        stored.metadata.version = 2
        mock_repository.get_by_name.return_value = stored

        with pytest.raises(ServiceConflictError) as exc_info:
            await use_case.update_service(
                "cart", service_factory(), shop_user, expected_version=1
            )

        assert exc_info.value.expected_version == 1
        assert exc_info.value.actual_version == 2
        mock_repository.update.assert_not_awaited()

    async def test_update_forwards_base_version(
        self, use_case, mock_repository, stored, service_factory, shop_user
    ):
        mock_repository.get_by_name.return_value = stored

        await use_case.update_service(
            "cart", service_factory(), shop_user, expected_version=1
        )

        assert mock_repository.update.await_args.kwargs["expected_version"] == 1


class TestDeleteService:
    async def test_delete_by_member(
        self, use_case, mock_repository, mock_versioning, stored, shop_user
    ):
        mock_repository.get_by_name.return_value = stored

        result = await use_case.delete_service("Cart", shop_user)

        assert result.service_name == "cart"
        mock_repository.delete.assert_awaited_once_with("cart")
        mock_versioning.record_deletion.assert_awaited_once_with("cart", shop_user)

    async def test_delete_by_outsider_denied(
        self, use_case, mock_repository, stored, outsider_user
    ):
        mock_repository.get_by_name.return_value = stored

        with pytest.raises(PermissionDeniedError):
            await use_case.delete_service("cart", outsider_user)

        mock_repository.delete.assert_not_awaited()

    async def test_delete_history_failure_becomes_warning(
        self, use_case, mock_repository, mock_versioning, stored, shop_user
    ):
        mock_repository.get_by_name.return_value = stored
        mock_versioning.record_deletion.side_effect = RuntimeError("git failed")

        result = await use_case.delete_service("cart", shop_user)

        assert result.warnings == ["history not recorded: git failed"]


class TestGetAndListServices:
    """Tests for reads."""

    async def test_get_blank_name_is_not_found(self, use_case):
        with pytest.raises(ServiceNotFoundError):
            await use_case.get_service("  ")

    async def test_get_enriches_team(
        self, mock_repository, mock_versioning, mock_team_directory, stored
    ):
        mock_repository.get_by_name.return_value = stored
        mock_team_directory.get_team_info.return_value = TeamInfo(
            slug="shop", url="https://github.com/orgs/acme/teams/shop", members=["alice"]
        )
        use_case = ServiceCatalogUseCase(
            mock_repository, mock_versioning, team_directory=mock_team_directory
        )

        service = await use_case.get_service("cart")

        assert service.spec.team.members == ["alice"]
        assert service.spec.team.github_url.endswith("/teams/shop")

    async def test_enrichment_failure_is_ignored(
        self, mock_repository, mock_versioning, mock_team_directory, stored
    ):
        mock_repository.get_by_name.return_value = stored
        mock_team_directory.get_team_info.side_effect = TeamDirectoryError("rate limited")
        use_case = ServiceCatalogUseCase(
            mock_repository, mock_versioning, team_directory=mock_team_directory
        )

        service = await use_case.get_service("cart")

        assert service.spec.team.members == []

    async def test_list_enrichment_looks_up_each_team_once(
        self, mock_repository, mock_versioning, mock_team_directory, service_factory
    ):
        mock_repository.list.return_value = [
            service_factory(name="cart"),
            service_factory(name="checkout"),
        ]
        mock_team_directory.get_team_info.return_value = TeamInfo(slug="shop")
        use_case = ServiceCatalogUseCase(
            mock_repository, mock_versioning, team_directory=mock_team_directory
        )

        await use_case.list_services(ServiceFilter(), enrich=True)

        mock_team_directory.get_team_info.assert_awaited_once_with("shop")

    async def test_status_lookup_only_called_for_status_filter(
        self, use_case, mock_repository, service_factory
    ):
        mock_repository.list.return_value = [
            service_factory(name="cart"),
            service_factory(name="checkout"),
        ]
        lookup = AsyncMock(return_value={"cart": HealthStatus.HEALTHY})

        result = await use_case.list_services(ServiceFilter(team="shop"), lookup)
        lookup.assert_not_awaited()
        assert result.total == 2

        result = await use_case.list_services(ServiceFilter(status="healthy"), lookup)
        lookup.assert_awaited_once()
        assert [s.name for s in result.services] == ["cart"]

    async def test_status_lookup_only_sees_filtered_services(
        self, use_case, mock_repository, service_factory
    ):
        mock_repository.list.return_value = [
            service_factory(name="cart", team="shop"),
            service_factory(name="checkout", team="shop", description="Payment flow"),
            service_factory(name="ledger", team="payments"),
        ]
        lookup = AsyncMock(
            return_value={"cart": HealthStatus.HEALTHY, "checkout": HealthStatus.HEALTHY}
        )

        result = await use_case.list_services(
            ServiceFilter(team="shop", search="cart", status="healthy"), lookup
        )

        looked_up = lookup.await_args.args[0]
        assert [s.name for s in looked_up] == ["cart"]
        assert [s.name for s in result.services] == ["cart"]
        assert result.total == 1


class TestServiceHistory:
    """Tests for history retrieval."""

    async def test_history_disabled(self, use_case, mock_versioning):
        mock_versioning.is_enabled = lambda: False

        with pytest.raises(VersioningUnavailableError):
            await use_case.get_service_history("cart")

    async def test_history_of_unknown_service(self, use_case, mock_repository):
        mock_repository.exists.return_value = False

        with pytest.raises(ServiceNotFoundError):
            await use_case.get_service_history("ghost")

    async def test_history_of_deleted_service_is_kept(
        self, use_case, mock_repository, mock_versioning
    ):
        change = ServiceChange(
            id="1",
            author="alice",
            email="",
            timestamp=datetime.now(timezone.utc),
            message="Delete service: cart",
            action="delete",
        )
        mock_versioning.get_service_history.return_value = [change]

        result = await use_case.get_service_history("Cart")

        assert result.service_name == "cart"
        assert result.provider == "simple"
        assert result.history == [change]
        mock_repository.exists.assert_not_awaited()

    async def test_history_backend_failure(self, use_case, mock_versioning):
        mock_versioning.get_service_history.side_effect = OSError("corrupt")

        with pytest.raises(BackendUnavailableError):
            await use_case.get_service_history("cart")
