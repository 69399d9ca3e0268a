"""Authenticated user extraction.

Identity is delegated to the upstream OAuth2 proxy. The proxy either stores a
UserContext on ``request.state.user`` (in-process auth middleware) or
forwards the identity as ``X-Auth-Request-*`` headers, which are trusted only
when API_TRUST_IDENTITY_HEADERS is set.
"""

from fastapi import HTTPException, Request, status

from src.domain.entities.service import UserContext
from src.infrastructure.config import get_settings

USER_HEADER = "X-Auth-Request-User"
EMAIL_HEADER = "X-Auth-Request-Email"
USERNAME_HEADER = "X-Auth-Request-Preferred-Username"
NAME_HEADER = "X-Auth-Request-Name"
GROUPS_HEADER = "X-Auth-Request-Groups"


def parse_groups(value: str) -> tuple[str, ...]:
    """Parse a comma separated group list into team slugs.

    GitHub groups arrive as ``org:team`` (or ``org/team``); only the team
    slug is kept.

    Example:
        >>> parse_groups("dash-ops:payments, dash-ops/sre")
        ('payments', 'sre')
    """
    teams = []
    for group in value.split(","):
        group = group.strip()
        if not group:
            continue
        for separator in (":", "/"):
            if separator in group:
                group = group.rsplit(separator, 1)[1]
        if group:
            teams.append(group)
    return tuple(teams)


def user_from_headers(request: Request) -> UserContext | None:
    username = (
        request.headers.get(USERNAME_HEADER)
        or request.headers.get(USER_HEADER)
        or ""
    ).strip()
    if not username:
        return None
    return UserContext(
        username=username,
        email=request.headers.get(EMAIL_HEADER, "").strip(),
        name=request.headers.get(NAME_HEADER, "").strip(),
        teams=parse_groups(request.headers.get(GROUPS_HEADER, "")),
    )


async def get_current_user(request: Request) -> UserContext | None:
    """Resolve the acting user, or None for anonymous requests.

    Args:
        request: FastAPI request object

    Returns:
        UserContext if the request is authenticated
    """
    user = getattr(request.state, "user", None)
    if isinstance(user, UserContext):
        return user

    if get_settings().api.trust_identity_headers:
        user = user_from_headers(request)
        if user is not None:
            request.state.user = user
            return user
    return None


async def require_user(request: Request) -> UserContext:
    """Resolve the acting user for mutating endpoints.

    Raises:
        HTTPException: 401 if the request is not authenticated
    """
    user = await get_current_user(request)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return user
