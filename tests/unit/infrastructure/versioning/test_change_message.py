"""Unit tests for change messages and git log parsing."""

from datetime import datetime, timezone

from src.domain.entities.service import ServiceAction, UserContext
from src.domain.entities.service_change import FieldChange
from src.infrastructure.versioning.change_message import (
    ANONYMOUS_USER,
    acting_user,
    build_change_message,
    build_deletion_message,
)
from src.infrastructure.versioning.git_versioning import GitVersioningProvider

NOW = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)


class TestActingUser:
    def test_missing_user_is_anonymous(self):
        assert acting_user(None) is ANONYMOUS_USER

    def test_email_is_derived_when_missing(self):
        user = acting_user(UserContext(username="bob", teams=("shop",)))

        assert user.email == "bob@dash-ops.local"
        assert user.teams == ("shop",)

    def test_user_with_email_is_unchanged(self, shop_user):
        assert acting_user(shop_user) is shop_user


class TestBuildMessages:
    """Tests for the recorded message templates."""

    def test_create_message(self, service_factory, shop_user):
        service = service_factory()
        service.metadata.version = 1

        message = build_change_message(service, shop_user, ServiceAction.CREATE, NOW)

        first_line = message.splitlines()[0]
        assert first_line == "Create service 'cart' by Alice"
        assert "- User: alice (alice@example.com)" in message
        assert "- Timestamp: 2024-05-01T12:30:00+00:00" in message
        assert "- Tier: TIER-3" in message
        assert "- Version: 1" in message
        assert "Changes:" not in message

    def test_update_message_lists_field_changes(self, service_factory, shop_user):
        changes = [FieldChange("spec.description", "Old", "New")]

        message = build_change_message(
            service_factory(), shop_user, ServiceAction.UPDATE, NOW, changes
        )

        assert message.startswith("Update service 'cart'")
        assert "- spec.description: 'Old' -> 'New'" in message

    def test_deletion_message(self):
        message = build_deletion_message("cart", ANONYMOUS_USER, NOW)

        assert message.startswith("Delete service 'cart' by Anonymous User")
        assert "- Action: delete" in message


class TestParseGitLog:
    """Tests for GitVersioningProvider.parse_log."""

    def test_parses_entries(self):
        output = (
            "a1b2c3|Alice|alice@example.com|2024-05-01 12:30:00 +0000|"
            "Update service 'cart' by Alice\n"
            "d4e5f6|Bob|bob@example.com|2024-04-30 09:00:00 +0200|"
            "Create service 'cart' by Bob"
        )

        history = GitVersioningProvider.parse_log(output)

        assert [change.id for change in history] == ["a1b2c3", "d4e5f6"]
        assert history[0].author == "Alice"
        assert history[0].action == "update"
        assert history[0].timestamp == NOW
        assert history[1].action == "create"
        assert history[1].message == "Create service 'cart' by Bob"

    def test_subject_may_contain_separator(self):
        output = "abc|Alice|a@x|2024-05-01 12:30:00 +0000|Update service 'a|b'"

        history = GitVersioningProvider.parse_log(output)

        assert history[0].message == "Update service 'a|b'"

    def test_skips_malformed_lines(self):
        output = (
            "garbage\n"
            "abc|Alice|a@x|yesterday|Update service 'cart'\n"
            "def|System|s@x|2024-05-01 12:30:00 +0000|Initialize service catalog repository"
        )

        history = GitVersioningProvider.parse_log(output)

        assert len(history) == 1
        assert history[0].action == ""

    def test_empty_output(self):
        assert GitVersioningProvider.parse_log("") == []
