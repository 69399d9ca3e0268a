"""GitHub team directory integration.

Looks up a team and its members in the configured GitHub organization:

- GET /orgs/{org}/teams/{team_slug}
- GET /orgs/{org}/teams/{team_slug}/members
"""

import logging
from typing import Any

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.domain.repositories.team_directory import (
    TeamDirectoryError,
    TeamDirectoryInterface,
    TeamInfo,
)

logger = logging.getLogger(__name__)


class GitHubTeamDirectory(TeamDirectoryInterface):
    """Team directory backed by the GitHub REST API."""

    def __init__(
        self,
        org: str,
        token: str = "",
        api_url: str = "https://api.github.com",
        timeout: float = 10.0,
    ) -> None:
        self.org = org
        headers = {"Accept": "application/vnd.github+json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self.client = httpx.AsyncClient(
            base_url=api_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
        )

    async def close(self) -> None:
        """Close the HTTP client connection."""
        await self.client.aclose()

    async def __aenter__(self) -> "GitHubTeamDirectory":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def get_team_info(self, team: str) -> TeamInfo:
        """Fetch a team and its member logins.

        Raises:
            TeamDirectoryError: If the team is unknown or GitHub fails
        """
        slug = team.strip().lower()
        base = f"/orgs/{self.org}/teams/{slug}"

        data = await self._get_json(base)
        members = await self._get_json(f"{base}/members")

        try:
            return TeamInfo(
                id=data.get("id"),
                slug=data.get("slug") or slug,
                name=data.get("name") or slug,
                description=data.get("description") or "",
                url=data.get("html_url")
                or f"https://github.com/orgs/{self.org}/teams/{slug}",
                members=[str(member["login"]) for member in members if member.get("login")],
            )
        except (AttributeError, KeyError, TypeError) as e:
            logger.error("GitHub returned a malformed team: team=%s error=%s", slug, str(e))
            raise TeamDirectoryError(f"GitHub returned a malformed team '{slug}'") from e

    async def _get_json(self, path: str) -> Any:
        try:
            response = await self._get_with_retry(path)
        except httpx.RequestError as e:
            logger.error("GitHub connection error: %s", str(e))
            raise TeamDirectoryError(f"Failed to connect to GitHub: {e}") from e

        if response.status_code >= 400:
            logger.error(
                "GitHub HTTP error: status_code=%s path=%s",
                response.status_code,
                path,
            )
            raise TeamDirectoryError(f"GitHub returned {response.status_code} for {path}")
        try:
            return response.json()
        except ValueError as e:
            logger.error("GitHub returned a non-JSON body: path=%s", path)
            raise TeamDirectoryError(f"GitHub returned a non-JSON response for {path}") from e

    @retry(
        retry=retry_if_exception_type(httpx.RequestError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=2),
        reraise=True,
    )
    async def _get_with_retry(self, path: str) -> httpx.Response:
        return await self.client.get(path)
