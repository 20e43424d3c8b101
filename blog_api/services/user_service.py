"""
User directory service: read-only listing/lookup of users plus the admin
role assignment.

A user's ``posts`` list is never stored on the user; it is loaded from
``Post.author_id`` with ``selectinload`` whenever a user is serialised.
"""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from blog_api.exceptions import Forbidden, NotFound
from blog_api.models import Role, User

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _user_to_dict(user: User) -> dict:
    """Serialise a User with its loaded ``posts``; the password hash is never included."""
    return {
        "_id": user.id,
        "email": user.email,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "role": user.role.value,
        "posts": [p.id for p in user.posts],
        "createdAt": user.created_at.isoformat() if user.created_at else None,
        "updatedAt": user.updated_at.isoformat() if user.updated_at else None,
    }


def _user_query():
    # populate_existing refreshes the posts collection of users that are
    # already in the session's identity map.
    return (
        select(User)
        .options(selectinload(User.posts))
        .execution_options(populate_existing=True)
    )


# ---------------------------------------------------------------------------
# Authorization helpers
# ---------------------------------------------------------------------------

async def get_viewer(db: AsyncSession, viewer_id: int | None) -> User | None:
    """Resolve the authenticated caller; None for anonymous or unknown ids."""
    if viewer_id is None:
        return None
    return await db.get(User, viewer_id)


async def require_admin(db: AsyncSession, viewer_id: int | None) -> User:
    """Return the caller if they are an ADMIN, else raise ``Forbidden`` with status 401."""
    viewer = await get_viewer(db, viewer_id)
    if viewer is None or viewer.role is not Role.ADMIN:
        raise Forbidden("Not authorized.", status_code=401)
    return viewer


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def list_users(db: AsyncSession) -> dict:
    """
    Return every user in id order.

    An empty table is a 404; a failing database surfaces separately as a
    500 through the SQLAlchemy error handler.
    """
    result = await db.execute(_user_query().order_by(User.id))
    users = result.scalars().all()
    if not users:
        raise NotFound("Could not find any users.")
    return {
        "message": "Fetched users successfully!",
        "users": [_user_to_dict(u) for u in users],
    }


async def _load_user(db: AsyncSession, user_id: int) -> User:
    result = await db.execute(_user_query().where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFound(f"Could not find user with id: {user_id}")
    return user


async def get_user(db: AsyncSession, user_id: int) -> dict:
    user = await _load_user(db, user_id)
    return {"message": "User fetched", "user": _user_to_dict(user)}


async def set_role(
    db: AsyncSession, user_id: int, role: Role, viewer_id: int | None
) -> dict:
    """Assign *role* to *user_id*. Only an ADMIN may do this."""
    admin = await require_admin(db, viewer_id)
    user = await _load_user(db, user_id)
    if user.role is not role:
        logger.info(
            "Admin id=%s changed role of user id=%s: %s -> %s",
            admin.id, user.id, user.role.value, role.value,
        )
        user.role = role
        await db.flush()
    return {"message": "User role updated.", "user": _user_to_dict(user)}
