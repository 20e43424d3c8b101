"""
Password hashing and session-token helpers.

Passwords are hashed with bcrypt at ``settings.BCRYPT_ROUNDS``; session
tokens are HS256 JWTs (python-jose) carrying ``email`` and ``userId`` and
expiring ``settings.ACCESS_TOKEN_EXPIRE_MINUTES`` after issuance.
"""
from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
from jose import JWTError, jwt

from blog_api.config import settings
from blog_api.exceptions import AuthError

# bcrypt only looks at the first 72 bytes and newer releases reject longer input.
_BCRYPT_MAX_BYTES = 72


def _encode_password(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(_encode_password(password), salt).decode("ascii")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(_encode_password(password), hashed.encode("ascii"))
    except ValueError:
        # Stored value is not a bcrypt hash.
        return False


def create_access_token(
    email: str, user_id: int, issued_at: datetime | None = None
) -> str:
    """
    Sign a session token for *user_id*.

    *issued_at* defaults to now; the token expires
    ``ACCESS_TOKEN_EXPIRE_MINUTES`` later.
    """
    issued_at = issued_at or datetime.now(timezone.utc)
    claims = {
        "email": email,
        "userId": user_id,
        "iat": issued_at,
        "exp": issued_at + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Verify *token* and return its claims.

    Bad signatures, expired tokens, garbage input and tokens without a usable
    ``userId`` all raise the same ``AuthError``.
    """
    try:
        claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as exc:
        raise AuthError() from exc

    if not isinstance(claims.get("userId"), int):
        raise AuthError()
    return claims
