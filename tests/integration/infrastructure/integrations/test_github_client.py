"""Integration tests for the GitHub team directory.

Uses a patched httpx.AsyncClient.get to simulate GitHub responses.
"""

import httpx
import pytest
from httpx import AsyncClient, Response

from src.domain.repositories.team_directory import TeamDirectoryError
from src.infrastructure.integrations.github_client import GitHubTeamDirectory


@pytest.fixture
async def directory():
    github = GitHubTeamDirectory(org="acme", token="ghp_example", timeout=1.0)
    yield github
    await github.close()


@pytest.fixture
def mock_github(monkeypatch: pytest.MonkeyPatch):
    """Mock httpx.AsyncClient.get() keyed by request path."""
    responses = {}

    async def mock_get(self, url: str, **kwargs):
        response = responses.get(url)
        if isinstance(response, Exception):
            raise response
        return response if response is not None else Response(404, json={})

    monkeypatch.setattr(AsyncClient, "get", mock_get)
    return responses


class TestGitHubTeamDirectory:
    """Test GitHub team lookups."""

    def test_client_headers(self, directory):
        assert directory.client.headers["Authorization"] == "Bearer ghp_example"
        assert str(directory.client.base_url) == "https://api.github.com/"

    @pytest.mark.asyncio
    async def test_get_team_info(self, directory, mock_github):
        mock_github["/orgs/acme/teams/shop"] = Response(
            200,
            json={
                "id": 42,
                "slug": "shop",
                "name": "Shop",
                "description": "Storefront team",
                "html_url": "https://github.com/orgs/acme/teams/shop",
            },
        )
        mock_github["/orgs/acme/teams/shop/members"] = Response(
            200, json=[{"login": "alice"}, {"login": "bob"}, {}]
        )

        info = await directory.get_team_info(" Shop ")

        assert info.id == 42
        assert info.name == "Shop"
        assert info.url == "https://github.com/orgs/acme/teams/shop"
        assert info.members == ["alice", "bob"]

    @pytest.mark.asyncio
    async def test_unknown_team(self, directory, mock_github):
        with pytest.raises(TeamDirectoryError, match="404"):
            await directory.get_team_info("ghost")

    @pytest.mark.asyncio
    async def test_connection_error(self, directory, mock_github):
        mock_github["/orgs/acme/teams/shop"] = httpx.ConnectError("dns failure")

        with pytest.raises(TeamDirectoryError, match="Failed to connect"):
            await directory.get_team_info("shop")

    @pytest.mark.asyncio
    async def test_non_json_body(self, directory, mock_github):
        mock_github["/orgs/acme/teams/shop"] = Response(200, text="<html>rate limited</html>")

        with pytest.raises(TeamDirectoryError, match="non-JSON"):
            await directory.get_team_info("shop")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "team, members",
        [
            ({"id": 42, "slug": "shop"}, ["alice", "bob"]),
            ({"id": 42, "slug": "shop"}, {"message": "Not Found"}),
            ([{"id": 42}], [{"login": "alice"}]),
        ],
    )
    async def test_malformed_team(self, directory, mock_github, team, members):
        mock_github["/orgs/acme/teams/shop"] = Response(200, json=team)
        mock_github["/orgs/acme/teams/shop/members"] = Response(200, json=members)

        with pytest.raises(TeamDirectoryError, match="malformed"):
            await directory.get_team_info("shop")
