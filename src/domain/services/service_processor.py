"""Service processor.

Pure transformations over service definitions: name normalization, mutation
preparation (audit fields, versioning), list filtering and pagination, and
field-level comparison of two revisions.
"""

import copy
import re
from datetime import datetime, timezone

from src.domain.entities.service import Service, UserContext
from src.domain.entities.service_change import FieldChange
from src.domain.entities.service_health import HealthStatus
from src.domain.entities.service_query import ServiceFilter, ServiceList

_NON_SLUG = re.compile(r"[^a-z0-9]+")

ANONYMOUS_USER = "anonymous"


def normalize_service_name(name: str) -> str:
    """Normalize a service name into a slug.

    Lower-cases, maps every run of whitespace, underscores or other
    non-alphanumeric characters to a single hyphen and trims leading and
    trailing hyphens.

    Example:
        >>> normalize_service_name("  Payment_API v2 ")
        'payment-api-v2'
    """
    if not name:
        return ""
    return _NON_SLUG.sub("-", name.strip().lower()).strip("-")


class ServiceProcessor:
    """Prepares services for persistence and processes service lists."""

    def prepare_for_creation(
        self, service: Service, user: UserContext | None
    ) -> Service:
        """Build the first persisted revision of a service.

        Args:
            service: Validated service from the request
            user: Acting user

        Returns:
            New Service with version 1 and audit fields populated
        """
        prepared = copy.deepcopy(service)
        prepared.set_defaults()
        now = datetime.now(timezone.utc)
        username = user.username if user else ANONYMOUS_USER

        prepared.metadata.name = normalize_service_name(prepared.metadata.name)
        prepared.metadata.created_at = now
        prepared.metadata.created_by = username
        prepared.metadata.updated_at = now
        prepared.metadata.updated_by = username
        prepared.metadata.version = 1

        self._normalize_spec(prepared)
        return prepared

    def prepare_for_update(
        self, service: Service, existing: Service, user: UserContext | None
    ) -> Service:
        """Build the next revision of a service.

        The spec is fully replaced. apiVersion, kind, name and the creation
        audit fields are carried over from the stored revision.
        """
        prepared = copy.deepcopy(service)
        prepared.api_version = existing.api_version
        prepared.kind = existing.kind
        prepared.metadata.name = existing.metadata.name
        prepared.metadata.created_at = existing.metadata.created_at
        prepared.metadata.created_by = existing.metadata.created_by
        prepared.metadata.version = existing.metadata.version + 1
        prepared.touch(user.username if user else ANONYMOUS_USER)

        self._normalize_spec(prepared)
        return prepared

    def process_service_list(
        self,
        services: list[Service],
        service_filter: ServiceFilter | None,
        statuses: dict[str, HealthStatus] | None = None,
    ) -> ServiceList:
        """Apply filters and pagination.

        Total is the post-filter count. An offset at or past the end yields an
        empty page with a total of 0.

        Args:
            services: Every stored service
            service_filter: Filter to apply (None means no filtering)
            statuses: Overall health per service name, required for the
                status filter; the status filter is ignored without it

        Returns:
            ServiceList page
        """
        if service_filter is None:
            return ServiceList(services=list(services), total=len(services))

        filtered = self.filter_services(services, service_filter, statuses)

        total = len(filtered)
        offset = max(service_filter.offset, 0)
        if offset and offset >= total:
            return ServiceList(services=[], total=0, filter=service_filter)

        page = filtered[offset:]
        if service_filter.limit > 0:
            page = page[: service_filter.limit]

        return ServiceList(services=page, total=total, filter=service_filter)

    def filter_services(
        self,
        services: list[Service],
        service_filter: ServiceFilter,
        statuses: dict[str, HealthStatus] | None = None,
    ) -> list[Service]:
        """Services matching the filter, without pagination.

        The status criterion only applies when statuses are given.
        """
        return [
            service
            for service in services
            if self._matches(service, service_filter, statuses)
        ]

    def compare_services(self, old: Service, new: Service) -> list[FieldChange]:
        """Field-level diff between two revisions.

        Covers description, tier, team, SLA target, impact and the Kubernetes
        topology (environments, deployments, replicas).
        """
        changes: list[FieldChange] = []

        def compare(field: str, old_value, new_value) -> None:
            if old_value != new_value:
                changes.append(FieldChange(field, old_value, new_value))

        compare("spec.description", old.spec.description, new.spec.description)
        compare("metadata.tier", old.metadata.tier.value, new.metadata.tier.value)
        compare(
            "spec.team.github_team",
            old.spec.team.github_team,
            new.spec.team.github_team,
        )
        compare(
            "spec.business.sla_target",
            old.spec.business.sla_target or None,
            new.spec.business.sla_target or None,
        )
        compare(
            "spec.business.impact",
            old.spec.business.impact.value if old.spec.business.impact else None,
            new.spec.business.impact.value if new.spec.business.impact else None,
        )
        changes.extend(self._compare_topology(old, new))
        return changes

    @staticmethod
    def _compare_topology(old: Service, new: Service) -> list[FieldChange]:
        changes: list[FieldChange] = []
        old_envs = {env.name: env for env in old.environments()}
        new_envs = {env.name: env for env in new.environments()}

        for name in old_envs.keys() - new_envs.keys():
            changes.append(
                FieldChange(f"spec.kubernetes.environments[{name}]", name, None)
            )
        for name in new_envs.keys() - old_envs.keys():
            changes.append(
                FieldChange(f"spec.kubernetes.environments[{name}]", None, name)
            )

        for name in sorted(old_envs.keys() & new_envs.keys()):
            old_env, new_env = old_envs[name], new_envs[name]
            path = f"spec.kubernetes.environments[{name}]"
            if old_env.context != new_env.context:
                changes.append(
                    FieldChange(f"{path}.context", old_env.context, new_env.context)
                )
            if old_env.namespace != new_env.namespace:
                changes.append(
                    FieldChange(f"{path}.namespace", old_env.namespace, new_env.namespace)
                )

            old_deps = {d.name: d for d in old_env.resources.deployments}
            new_deps = {d.name: d for d in new_env.resources.deployments}
            for dep in sorted(old_deps.keys() - new_deps.keys()):
                changes.append(FieldChange(f"{path}.deployments[{dep}]", dep, None))
            for dep in sorted(new_deps.keys() - old_deps.keys()):
                changes.append(FieldChange(f"{path}.deployments[{dep}]", None, dep))
            for dep in sorted(old_deps.keys() & new_deps.keys()):
                if old_deps[dep].replicas != new_deps[dep].replicas:
                    changes.append(
                        FieldChange(
                            f"{path}.deployments[{dep}].replicas",
                            old_deps[dep].replicas,
                            new_deps[dep].replicas,
                        )
                    )
        return sorted(changes, key=lambda change: change.field)

    @staticmethod
    def _matches(
        service: Service,
        service_filter: ServiceFilter,
        statuses: dict[str, HealthStatus] | None,
    ) -> bool:
        if service_filter.team:
            if service.spec.team.github_team.lower() != service_filter.team.strip().lower():
                return False
        if service_filter.tier:
            if service.metadata.tier.value.lower() != service_filter.tier.strip().lower():
                return False
        if service_filter.status and statuses is not None:
            status = statuses.get(service.metadata.name, HealthStatus.UNKNOWN)
            if status.value.lower() != service_filter.status.strip().lower():
                return False
        if service_filter.search:
            query = service_filter.search.lower()
            if (
                query not in service.metadata.name.lower()
                and query not in service.spec.description.lower()
            ):
                return False
        return True

    @staticmethod
    def _normalize_spec(service: Service) -> None:
        spec = service.spec
        spec.description = spec.description.strip()
        spec.team.github_team = spec.team.github_team.strip().lower()
        # Runtime-only enrichment is never persisted
        spec.team.members = []
        spec.team.github_url = ""

        dependencies: list[str] = []
        for dependency in spec.business.dependencies:
            normalized = normalize_service_name(dependency)
            if normalized and normalized not in dependencies:
                dependencies.append(normalized)
        spec.business.dependencies = dependencies
