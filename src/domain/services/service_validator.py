"""Service definition validator.

Enforces the structural invariants of a service definition and the
team-based authorization rules for mutations. All checks raise on the first
violation with the dotted path of the offending field.
"""

import re

from src.domain.entities.service import Service, ServiceAction, UserContext
from src.domain.exceptions import PermissionDeniedError, ServiceValidationError

NAME_PATTERN = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$")
TEAM_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")
CPU_PATTERN = re.compile(r"^(\d+m|\d+(\.\d+)?)$")
MEMORY_PATTERN = re.compile(r"^([1-9]\d*)(Mi|Gi|M|G|Ki|K|Ti|T)$")
SLA_PATTERN = re.compile(r"^(\d{1,3}(\.\d+)?)%?$")
URL_PATTERN = re.compile(r"^https?://\S+$", re.IGNORECASE)

MIN_NAME_LENGTH = 3
MAX_NAME_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 500
MIN_REPLICAS = 1
MAX_REPLICAS = 100


class ServiceValidator:
    """Validates service definitions and user permissions."""

    def validate(self, service: Service) -> None:
        """Validate the full service structure.

        Args:
            service: Service with a normalized name

        Raises:
            ServiceValidationError: On the first violated rule
        """
        self._validate_metadata(service)
        self._validate_spec(service)

    def validate_for_creation(self, service: Service) -> None:
        self.validate(service)

    def validate_for_update(self, service: Service, existing: Service) -> None:
        """Validate an update against the stored service.

        Raises:
            ServiceValidationError: If the structure is invalid or the
                name differs from the stored one
        """
        if service.metadata.name and service.metadata.name != existing.metadata.name:
            raise ServiceValidationError(
                "metadata.name", "service name cannot be changed"
            )
        self.validate(service)

    def validate_user_permissions(
        self, service: Service, user: UserContext | None, action: ServiceAction
    ) -> None:
        """Authorize a mutation by team membership.

        Creating requires an authenticated user. Updating and deleting
        additionally require membership of the owning team (case-insensitive),
        unless the service has no team.

        Raises:
            PermissionDeniedError: If the user may not perform the action
        """
        if user is None:
            raise PermissionDeniedError(
                None, action.value, service.metadata.name, "authentication required"
            )
        if action == ServiceAction.CREATE:
            return
        if not service.can_be_modified_by(list(user.teams)):
            raise PermissionDeniedError(
                user.username,
                action.value,
                service.metadata.name,
                f"user is not a member of team '{service.spec.team.github_team}'",
            )

    def validate_deployment_ownership(
        self, service: Service, others: list[Service]
    ) -> None:
        """Ensure no deployment is owned by two services.

        Deployment names are compared case-insensitively; context and
        namespace must match exactly.

        Args:
            service: Service being created or updated
            others: Every stored service (the service itself is skipped)

        Raises:
            ServiceValidationError: If a (context, namespace, deployment)
                triple is already declared elsewhere
        """
        owned: dict[tuple[str, str, str], str] = {}
        for other in others:
            if other.metadata.name == service.metadata.name:
                continue
            for context, namespace, deployment in other.deployment_keys():
                owned[(context, namespace, deployment.lower())] = other.metadata.name

        seen: dict[tuple[str, str, str], str] = {}
        for environment in service.environments():
            for deployment in environment.resources.deployments:
                key = (environment.context, environment.namespace, deployment.name.lower())
                field = (
                    f"spec.kubernetes.environments[{environment.name}]"
                    f".deployments[{deployment.name}]"
                )
                if key in owned:
                    raise ServiceValidationError(
                        field,
                        f"deployment already owned by service '{owned[key]}' "
                        f"in {environment.context}/{environment.namespace}",
                    )
                if key in seen:
                    raise ServiceValidationError(
                        field,
                        f"deployment also declared in environment '{seen[key]}'",
                    )
                seen[key] = environment.name

    def _validate_metadata(self, service: Service) -> None:
        name = service.metadata.name
        if not name:
            raise ServiceValidationError("metadata.name", "service name is required")
        if len(name) < MIN_NAME_LENGTH or len(name) > MAX_NAME_LENGTH:
            raise ServiceValidationError(
                "metadata.name",
                f"service name must be between {MIN_NAME_LENGTH} and "
                f"{MAX_NAME_LENGTH} characters",
            )
        if not NAME_PATTERN.match(name):
            raise ServiceValidationError(
                "metadata.name",
                "service name must contain only lowercase letters, digits and hyphens",
            )
        if service.metadata.tier is None:
            raise ServiceValidationError("metadata.tier", "service tier is required")

    def _validate_spec(self, service: Service) -> None:
        spec = service.spec
        description = spec.description.strip()
        if not description:
            raise ServiceValidationError("spec.description", "description is required")
        if len(description) > MAX_DESCRIPTION_LENGTH:
            raise ServiceValidationError(
                "spec.description",
                f"description must be at most {MAX_DESCRIPTION_LENGTH} characters",
            )

        team = spec.team.github_team.strip()
        if not team:
            raise ServiceValidationError(
                "spec.team.github_team", "github team is required"
            )
        if not TEAM_PATTERN.match(team):
            raise ServiceValidationError(
                "spec.team.github_team",
                "github team may only contain letters, digits, '-' and '_'",
            )

        if spec.business.sla_target:
            self._validate_sla_target(spec.business.sla_target)

        if spec.kubernetes is not None:
            self._validate_kubernetes(service)

        self._validate_runbooks(service)

    @staticmethod
    def _validate_sla_target(sla_target: str) -> None:
        match = SLA_PATTERN.match(sla_target.strip())
        if not match:
            raise ServiceValidationError(
                "spec.business.sla_target",
                "SLA target must be a percentage such as '99.9' or '99.9%'",
            )
        value = float(match.group(1))
        if value <= 0 or value > 100:
            raise ServiceValidationError(
                "spec.business.sla_target", "SLA target must be in (0, 100]"
            )

    def _validate_kubernetes(self, service: Service) -> None:
        environments = service.spec.kubernetes.environments
        if not environments:
            raise ServiceValidationError(
                "spec.kubernetes.environments", "at least one environment is required"
            )

        names: set[str] = set()
        for index, environment in enumerate(environments):
            path = f"spec.kubernetes.environments[{index}]"
            if not environment.name.strip():
                raise ServiceValidationError(f"{path}.name", "environment name is required")
            if environment.name.lower() in names:
                raise ServiceValidationError(
                    f"{path}.name", f"duplicate environment '{environment.name}'"
                )
            names.add(environment.name.lower())
            if not environment.context.strip():
                raise ServiceValidationError(f"{path}.context", "context is required")
            if not environment.namespace.strip():
                raise ServiceValidationError(f"{path}.namespace", "namespace is required")
            self._validate_deployments(path, environment.resources.deployments)

    def _validate_deployments(self, path: str, deployments: list) -> None:
        if not deployments:
            raise ServiceValidationError(
                f"{path}.resources.deployments", "at least one deployment is required"
            )

        names: set[str] = set()
        for index, deployment in enumerate(deployments):
            deployment_path = f"{path}.resources.deployments[{index}]"
            if not deployment.name.strip():
                raise ServiceValidationError(
                    f"{deployment_path}.name", "deployment name is required"
                )
            if deployment.name in names:
                raise ServiceValidationError(
                    f"{deployment_path}.name", f"duplicate deployment '{deployment.name}'"
                )
            names.add(deployment.name)
            if not MIN_REPLICAS <= deployment.replicas <= MAX_REPLICAS:
                raise ServiceValidationError(
                    f"{deployment_path}.replicas",
                    f"replicas must be between {MIN_REPLICAS} and {MAX_REPLICAS}",
                )

            for kind in ("requests", "limits"):
                spec = getattr(deployment.resources, kind)
                if spec.cpu and not CPU_PATTERN.match(spec.cpu):
                    raise ServiceValidationError(
                        f"{deployment_path}.resources.{kind}.cpu",
                        f"invalid CPU quantity '{spec.cpu}'",
                    )
                if spec.memory and not MEMORY_PATTERN.match(spec.memory):
                    raise ServiceValidationError(
                        f"{deployment_path}.resources.{kind}.memory",
                        f"invalid memory quantity '{spec.memory}'",
                    )

    @staticmethod
    def _validate_runbooks(service: Service) -> None:
        names: set[str] = set()
        for index, runbook in enumerate(service.spec.runbooks):
            path = f"spec.runbooks[{index}]"
            if not runbook.name.strip():
                raise ServiceValidationError(f"{path}.name", "runbook name is required")
            if runbook.name in names:
                raise ServiceValidationError(
                    f"{path}.name", f"duplicate runbook '{runbook.name}'"
                )
            names.add(runbook.name)
            if not runbook.url.strip():
                raise ServiceValidationError(f"{path}.url", "runbook URL is required")
            if not URL_PATTERN.match(runbook.url.strip()):
                raise ServiceValidationError(
                    f"{path}.url", "runbook URL must start with http:// or https://"
                )
