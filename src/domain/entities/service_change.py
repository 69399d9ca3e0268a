"""Service change history entities."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class FieldChange:
    """Single field-level difference between two service revisions.

    Attributes:
        field: Dotted path of the changed field (e.g. "spec.description")
        old_value: Value before the change (None when added)
        new_value: Value after the change (None when removed)
    """

    field: str
    old_value: Any = None
    new_value: Any = None


@dataclass(frozen=True)
class ServiceChange:
    """Immutable history record for one lifecycle event of a service."""

    id: str
    author: str
    email: str
    timestamp: datetime
    message: str
    action: str = ""
    version: int | None = None
    field_changes: list[FieldChange] = field(default_factory=list)
