"""Team directory interface module."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


class TeamDirectoryError(Exception):
    """Team lookup failed."""


@dataclass
class TeamInfo:
    """Team details from the identity provider."""

    slug: str
    name: str = ""
    description: str = ""
    url: str = ""
    members: list[str] = field(default_factory=list)
    id: int | None = None


class TeamDirectoryInterface(ABC):
    """Lazy lookup used to annotate a service's team with its members."""

    @abstractmethod
    async def get_team_info(self, team: str) -> TeamInfo:
        """Fetch team details.

        Raises:
            TeamDirectoryError: If the lookup fails
        """
        pass
