"""Service catalog error taxonomy.

Every failure the catalog core reports to its callers is one of these
exception types. The HTTP layer maps them onto RFC 7807 responses.
"""


class ServiceCatalogError(Exception):
    """Base class for all service catalog errors."""

    kind = "internal"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ServiceValidationError(ServiceCatalogError):
    """A service definition (or request) has a bad shape.

    Attributes:
        field: Dotted path of the offending field
        reason: Human readable explanation
    """

    kind = "validation"

    def __init__(self, field: str, reason: str):
        super().__init__(f"{field}: {reason}")
        self.field = field
        self.reason = reason


class ServiceNotFoundError(ServiceCatalogError):
    """No service with the given name exists."""

    kind = "not_found"

    def __init__(self, name: str):
        super().__init__(f"Service '{name}' not found")
        self.name = name


class ServiceAlreadyExistsError(ServiceCatalogError):
    """A service with the given (normalized) name already exists."""

    kind = "already_exists"

    def __init__(self, name: str):
        super().__init__(f"Service '{name}' already exists")
        self.name = name


class PermissionDeniedError(ServiceCatalogError):
    """The acting user may not perform the action on the service."""

    kind = "permission_denied"

    def __init__(self, user: str | None, action: str, service: str, reason: str = ""):
        message = f"User '{user or 'anonymous'}' cannot {action} service '{service}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.user = user
        self.action = action
        self.service = service


class ServiceConflictError(ServiceCatalogError):
    """A concurrent mutation changed the service between read and write."""

    kind = "conflict"

    def __init__(self, name: str, expected_version: int, actual_version: int):
        super().__init__(
            f"Service '{name}' was modified concurrently "
            f"(expected version {expected_version}, found {actual_version})"
        )
        self.name = name
        self.expected_version = expected_version
        self.actual_version = actual_version


class VersioningUnavailableError(ServiceCatalogError):
    """History was requested but versioning is disabled."""

    kind = "versioning_unavailable"

    def __init__(self, message: str = "Service versioning is not enabled"):
        super().__init__(message)


class BackendUnavailableError(ServiceCatalogError):
    """A backing system (storage, versioning, kubernetes, team directory) failed.

    Attributes:
        backend: Backend name (storage, versioning, kubernetes, github)
        operation: Operation that failed (create, list, history, ...)
    """

    kind = "backend_unavailable"

    def __init__(self, backend: str, operation: str, cause: Exception | str):
        super().__init__(f"{backend} {operation} failed: {cause}")
        self.backend = backend
        self.operation = operation
        self.cause = cause


class CatalogInternalError(ServiceCatalogError):
    """Unexpected internal failure."""

    kind = "internal"


class CatalogConfigurationError(ServiceCatalogError):
    """The catalog module cannot start with the given configuration."""

    kind = "configuration"
