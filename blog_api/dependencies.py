from fastapi import Header, Query

from blog_api.exceptions import AuthError
from blog_api.security import decode_access_token


def _bearer_token(authorization: str | None) -> str | None:
    """Return the token from a ``Bearer <token>`` header, or None if malformed."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        return None
    return token


async def is_auth(authorization: str | None = Header(None)) -> int | None:
    """
    Optional authentication.

    A missing or malformed ``Authorization`` header yields an anonymous
    request (``None``). A bearer token that is present but fails verification
    is rejected with 401.
    """
    token = _bearer_token(authorization)
    if token is None:
        return None
    return decode_access_token(token)["userId"]


async def is_auth_protected(authorization: str | None = Header(None)) -> int:
    """Required authentication: no valid bearer token means 401."""
    token = _bearer_token(authorization)
    if token is None:
        raise AuthError()
    return decode_access_token(token)["userId"]


class PageParams:
    """
    Reusable FastAPI dependency for the feed's ``?page=N`` query parameter.

    Pages are 1-based; the page size is fixed by ``settings.POSTS_PER_PAGE``
    and is applied in the service layer.
    """

    def __init__(
        self,
        page: int = Query(
            1,
            ge=1,
            description="Page number (1-based).",
        ),
    ) -> None:
        self.page = page
