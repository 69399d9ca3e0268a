"""Change message templates shared by the versioning providers."""

from datetime import datetime

from src.domain.entities.service import Service, ServiceAction, UserContext
from src.domain.entities.service_change import FieldChange

ANONYMOUS_USER = UserContext(
    username="anonymous",
    name="Anonymous User",
    email="anonymous@dash-ops.local",
)
SYSTEM_USER = UserContext(
    username="system",
    name="Dash-Ops System",
    email="system@dash-ops.local",
)


def acting_user(user: UserContext | None) -> UserContext:
    """Substitute the anonymous identity for a missing user."""
    if user is None:
        return ANONYMOUS_USER
    if not user.email:
        return UserContext(
            username=user.username,
            name=user.name,
            email=f"{user.username}@dash-ops.local",
            teams=user.teams,
        )
    return user


def build_change_message(
    service: Service,
    user: UserContext,
    action: ServiceAction,
    timestamp: datetime,
    field_changes: list[FieldChange] | None = None,
) -> str:
    """Render the message recorded for a create or update."""
    lines = [
        f"{action.value.capitalize()} service '{service.metadata.name}' by {user.display_name}",
        "",
        f"- Action: {action.value}",
        f"- User: {user.username} ({user.email})",
        f"- Timestamp: {timestamp.isoformat(timespec='seconds')}",
        f"- Tier: {service.metadata.tier.value}",
        f"- Team: {service.spec.team.github_team}",
    ]
    if service.metadata.version > 0:
        lines.append(f"- Version: {service.metadata.version}")
    if field_changes:
        lines.append("")
        lines.append("Changes:")
        lines.extend(
            f"- {change.field}: {change.old_value!r} -> {change.new_value!r}"
            for change in field_changes
        )
    return "\n".join(lines) + "\n"


def build_deletion_message(
    service_name: str, user: UserContext, timestamp: datetime
) -> str:
    return (
        f"Delete service '{service_name}' by {user.display_name}\n\n"
        f"- Action: delete\n"
        f"- User: {user.username} ({user.email})\n"
        f"- Timestamp: {timestamp.isoformat(timespec='seconds')}\n"
    )
