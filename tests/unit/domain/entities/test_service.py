"""Unit tests for Service entity."""

from src.domain.entities.service import (
    KubernetesDeployment,
    KubernetesEnvironment,
    KubernetesEnvironmentResources,
    ServiceTier,
    UserContext,
)


class TestServiceTier:
    """Test cases for ServiceTier enum."""

    def test_tier_values(self):
        """Test that tiers use the persisted codes."""
        assert ServiceTier.TIER_1.value == "TIER-1"
        assert ServiceTier.TIER_2.value == "TIER-2"
        assert ServiceTier.TIER_3.value == "TIER-3"

    def test_tier_is_string_enum(self):
        assert isinstance(ServiceTier.TIER_1, str)
        assert ServiceTier("TIER-2") is ServiceTier.TIER_2

    def test_rank_orders_tier_1_highest(self):
        assert ServiceTier.TIER_1.rank > ServiceTier.TIER_2.rank > ServiceTier.TIER_3.rank


class TestKubernetesEnvironment:
    """Test cases for KubernetesEnvironment lookups."""

    def test_get_deployment_prefers_exact_match(self):
        environment = KubernetesEnvironment(
            name="production",
            context="prod",
            namespace="shop",
            resources=KubernetesEnvironmentResources(
                deployments=[
                    KubernetesDeployment(name="Cart-API", replicas=1),
                    KubernetesDeployment(name="cart-api", replicas=2),
                ]
            ),
        )

        assert environment.get_deployment("cart-api").replicas == 2
        assert environment.get_deployment("CART-API").replicas == 1
        assert environment.get_deployment("missing") is None

    def test_is_production(self):
        assert KubernetesEnvironment("production", "prod", "ns").is_production()
        assert not KubernetesEnvironment("staging", "stg", "ns").is_production()


class TestService:
    """Test cases for Service entity."""

    def test_service_creation_with_defaults(self, service_factory):
        """Test that a new service has no audit fields yet."""
        service = service_factory()

        assert service.api_version == "v1"
        assert service.kind == "Service"
        assert service.metadata.version == 0
        assert service.metadata.created_at is None
        assert service.name == "cart"
        assert service.team == "shop"

    def test_can_be_modified_by_is_case_insensitive(self, service_factory):
        service = service_factory(team="shop")

        assert service.can_be_modified_by(["SHOP"])
        assert service.can_be_modified_by(["payments", " Shop "])
        assert not service.can_be_modified_by(["payments"])
        assert not service.can_be_modified_by([])

    def test_service_without_team_can_be_modified_by_anyone(self, service_factory):
        service = service_factory(team="")

        assert service.can_be_modified_by([])

    def test_get_environment_and_deployment(self, service_factory):
        service = service_factory(deployments={"cart-api": 3, "cart-worker": 1})

        assert service.get_environment("PRODUCTION") is not None
        assert service.get_environment("staging") is None
        assert service.get_deployment("production", "cart-worker").replicas == 1
        assert service.get_deployment("staging", "cart-worker") is None

    def test_environments_empty_without_kubernetes(self, service_factory):
        service = service_factory(kubernetes=False)

        assert service.environments() == []
        assert service.deployment_keys() == set()

    def test_deployment_keys(self, service_factory):
        service = service_factory(deployments={"cart-api": 3, "cart-worker": 1})

        assert service.deployment_keys() == {
            ("prod", "shop", "cart-api"),
            ("prod", "shop", "cart-worker"),
        }

    def test_has_dependency_and_priority(self, service_factory):
        service = service_factory(tier=ServiceTier.TIER_2)
        service.spec.business.dependencies = ["payments"]

        assert service.has_dependency("Payments")
        assert not service.has_dependency("inventory")
        assert service.is_high_priority()
        assert not service_factory(tier=ServiceTier.TIER_3).is_high_priority()

    def test_touch_updates_audit_fields(self, service_factory):
        service = service_factory()

        service.touch("bob")

        assert service.metadata.updated_by == "bob"
        assert service.metadata.updated_at is not None


class TestUserContext:
    """Test cases for UserContext."""

    def test_display_name_falls_back_to_username(self):
        assert UserContext(username="alice").display_name == "alice"
        assert UserContext(username="alice", name="Alice A.").display_name == "Alice A."

    def test_is_member_of(self):
        user = UserContext(username="alice", teams=("Shop", "sre"))

        assert user.is_member_of("shop")
        assert not user.is_member_of("payments")
