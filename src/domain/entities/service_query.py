"""Service list query entities."""

from dataclasses import dataclass, field

from src.domain.entities.service import Service


@dataclass
class ServiceFilter:
    """List filter.

    A limit of 0 means no limit. Team and search matching are
    case-insensitive.
    """

    team: str | None = None
    tier: str | None = None
    status: str | None = None
    search: str | None = None
    limit: int = 0
    offset: int = 0

    def is_empty(self) -> bool:
        return not (
            self.team or self.tier or self.status or self.search
            or self.limit or self.offset
        )

    def as_dict(self) -> dict:
        return {
            "team": self.team,
            "tier": self.tier,
            "status": self.status,
            "search": self.search,
            "limit": self.limit,
            "offset": self.offset,
        }


@dataclass
class ServiceList:
    """Filtered, paginated list of services.

    total is the post-filter, pre-pagination count (0 when offset is past
    the end).
    """

    services: list[Service] = field(default_factory=list)
    total: int = 0
    filter: ServiceFilter | None = None
