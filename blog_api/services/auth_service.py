"""
Auth service: registration and login.

Registration stores a bcrypt hash of the (trimmed) password and always
creates a plain ``USER``; promotion happens later through moderation or an
admin action. Login hands back a signed session token.
"""
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from blog_api.exceptions import AuthError, ValidationError, field_error
from blog_api.models import Role, User
from blog_api.schemas import UserLogin, UserRegister
from blog_api.security import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)

_DUPLICATE_EMAIL = "E-Mail address already exists"


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def register(db: AsyncSession, data: UserRegister) -> int:
    """
    Create a new user and return its id.

    Raises ``ValidationError`` when the email is already registered. The
    unique constraint backs up the lookup for concurrent registrations.
    """
    if await get_user_by_email(db, data.email) is not None:
        raise ValidationError(data=[field_error("email", _DUPLICATE_EMAIL)])

    user = User(
        email=data.email,
        password=hash_password(data.password),
        first_name=data.firstName,
        last_name=data.lastName,
        role=Role.USER,
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError as exc:
        raise ValidationError(data=[field_error("email", _DUPLICATE_EMAIL)]) from exc

    logger.info("Registered user id=%s", user.id)
    return user.id


async def login(db: AsyncSession, data: UserLogin) -> dict:
    """Return ``{"token", "userId"}`` for valid credentials, else raise ``AuthError``."""
    user = await get_user_by_email(db, data.email)
    if user is None:
        logger.warning("Login failed: unknown email")
        raise AuthError("A user with this email could not be found")

    if not verify_password(data.password, user.password):
        logger.warning("Login failed: wrong password for user id=%s", user.id)
        raise AuthError("Wrong password")

    token = create_access_token(user.email, user.id)
    return {"token": token, "userId": user.id}
