"""
Feed service: post CRUD plus the moderation workflow.

Design notes
------------
- A post is *pending* while ``allowed`` is False and *published* once it is
  True. Approval by an ADMIN publishes it and promotes a plain USER author
  to BLOGGER; an edit by the author publishes it as well while
  ``settings.AUTO_PUBLISH_ON_EDIT`` is on.
- What a viewer may list depends on their role (see ``_feed_filter``).
- Status codes for authorization failures are part of the public contract:
  admin-only operations answer 401, ownership checks answer 403.
- Only the public feed and post detail go through the cache; per-user and
  admin projections are always read from the database. Writes drop the
  affected entries only after the request commits.
- Service functions flush but do not commit; the transaction boundary is
  owned by the ``get_db`` dependency.
"""
import logging
from functools import partial

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from blog_api.cache import cache, post_detail_key, public_feed_key
from blog_api.config import settings
from blog_api.database import run_after_commit
from blog_api.exceptions import Forbidden, InternalError, NotFound
from blog_api.models import Post, Role, User
from blog_api.schemas import PostInput
from blog_api.services.user_service import get_viewer, require_admin

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _post_to_dict(post: Post) -> dict:
    return {
        "_id": post.id,
        "title": post.title,
        "content": post.content,
        "author": post.author_id,
        "allowed": post.allowed,
        "createdAt": post.created_at.isoformat() if post.created_at else None,
        "updatedAt": post.updated_at.isoformat() if post.updated_at else None,
    }


def _page_to_dict(posts: list[Post], total: int) -> dict:
    return {
        "message": "Fetched posts successfully!",
        "posts": [_post_to_dict(p) for p in posts],
        "totalItems": total,
    }


# ---------------------------------------------------------------------------
# Query helpers
# ---------------------------------------------------------------------------

def _feed_filter(viewer: User | None):
    """
    Return the WHERE criterion for *viewer*'s feed, or None for no filter.

    Anonymous viewers and USERs see published posts, BLOGGERs see their own
    posts in any state, ADMINs see everything.
    """
    if viewer is None or viewer.role is Role.USER:
        return Post.allowed.is_(True)
    if viewer.role is Role.BLOGGER:
        return Post.author_id == viewer.id
    if viewer.role is Role.ADMIN:
        return None
    raise InternalError(f"Unhandled role: {viewer.role!r}")


async def _paginate(db: AsyncSession, criterion, page: int) -> tuple[list[Post], int]:
    """
    Return one page of posts (insertion order) and the total matching count.

    Raises ``NotFound`` when the page is empty, which includes any page past
    the last one. Such pages are answered from the count alone, so an
    arbitrarily large page number never reaches the database as an OFFSET.
    """
    per_page = settings.POSTS_PER_PAGE
    offset = (page - 1) * per_page
    count_q = select(func.count()).select_from(Post)
    if criterion is not None:
        count_q = count_q.where(criterion)

    total: int = (await db.execute(count_q)).scalar_one()
    if offset >= total:
        raise NotFound("Could not find any posts.")

    posts_q = select(Post).order_by(Post.id).offset(offset).limit(per_page)
    if criterion is not None:
        posts_q = posts_q.where(criterion)
    posts = list((await db.execute(posts_q)).scalars().all())
    return posts, total


async def _get_post_or_404(db: AsyncSession, post_id: int) -> Post:
    post = await db.get(Post, post_id)
    if post is None:
        raise NotFound(f"Could not find post with id: {post_id}")
    return post


def _ensure_author(post: Post, editor_id: int) -> None:
    if post.author_id != editor_id:
        raise Forbidden("Not authenticated.", status_code=403)


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def list_posts(db: AsyncSession, viewer_id: int | None, page: int = 1) -> dict:
    """
    Return page *page* of the feed as seen by *viewer_id* (None = anonymous).

    An id that no longer resolves to a user gets the anonymous view.
    """
    viewer = await get_viewer(db, viewer_id)
    criterion = _feed_filter(viewer)
    public = viewer is None or viewer.role is Role.USER

    if public:
        cached = await cache.get(public_feed_key(page))
        if cached:
            return cached

    posts, total = await _paginate(db, criterion, page)
    response = _page_to_dict(posts, total)
    if public:
        await cache.set(public_feed_key(page), response, ttl=settings.CACHE_TTL_LIST)
    return response


async def list_pending_requests(db: AsyncSession, viewer_id: int | None, page: int = 1) -> dict:
    """Return page *page* of the moderation queue. ADMIN only."""
    await require_admin(db, viewer_id)
    posts, total = await _paginate(db, Post.allowed.is_(False), page)
    return _page_to_dict(posts, total)


async def approve_post(db: AsyncSession, post_id: int, viewer_id: int | None) -> dict:
    """
    Publish *post_id* and promote its author to BLOGGER unless they are
    already a BLOGGER or an ADMIN. Approving twice changes nothing further.
    """
    admin = await require_admin(db, viewer_id)
    post = await _get_post_or_404(db, post_id)

    if not post.allowed:
        post.allowed = True
        await db.flush()
        logger.info("Admin id=%s approved post id=%s", admin.id, post.id)

    author = await db.get(User, post.author_id)
    if author is not None and author.role is Role.USER:
        author.role = Role.BLOGGER
        await db.flush()
        logger.info("Promoted user id=%s to %s", author.id, Role.BLOGGER.value)

    run_after_commit(db, partial(cache.invalidate_post, post.id))
    return {"message": "Post request allowed successfully!", "post": _post_to_dict(post)}


async def get_post(db: AsyncSession, post_id: int) -> dict:
    cached = await cache.get(post_detail_key(post_id))
    if cached:
        return cached

    post = await _get_post_or_404(db, post_id)
    response = {"message": "Post fetched", "post": _post_to_dict(post)}
    await cache.set(post_detail_key(post_id), response, ttl=settings.CACHE_TTL_DETAIL)
    return response


async def create_post(db: AsyncSession, author_id: int, data: PostInput) -> dict:
    """
    Create a pending post owned by *author_id*.

    The author's post list picks the new post up through the
    ``User.posts`` relationship; nothing else needs writing.
    """
    author = await db.get(User, author_id)
    if author is None:
        raise NotFound(f"Could not find user with id: {author_id}")

    post = Post(title=data.title, content=data.content, author_id=author.id, allowed=False)
    db.add(post)
    await db.flush()
    logger.info("User id=%s submitted post id=%s for moderation", author.id, post.id)

    return {
        "message": "Post created successfully!",
        "post": _post_to_dict(post),
        "author": {"_id": author.id, "name": author.full_name},
    }


async def update_post(
    db: AsyncSession, post_id: int, editor_id: int, data: PostInput
) -> dict:
    """
    Overwrite title and content of *post_id*. Only its author may do this.

    With ``AUTO_PUBLISH_ON_EDIT`` enabled the edit also publishes the post,
    whatever its previous state.
    """
    post = await _get_post_or_404(db, post_id)
    _ensure_author(post, editor_id)

    post.title = data.title
    post.content = data.content
    if settings.AUTO_PUBLISH_ON_EDIT:
        post.allowed = True
    await db.flush()

    run_after_commit(db, partial(cache.invalidate_post, post.id))
    return {"message": "Post updated!", "post": _post_to_dict(post)}


async def delete_post(db: AsyncSession, post_id: int, editor_id: int) -> dict:
    """Delete *post_id*. Only its author may do this. Returns the deleted post."""
    post = await _get_post_or_404(db, post_id)
    _ensure_author(post, editor_id)

    data = _post_to_dict(post)
    await db.delete(post)
    await db.flush()
    logger.info("User id=%s deleted post id=%s", editor_id, post_id)

    run_after_commit(db, partial(cache.invalidate_post, post_id))
    return {"message": "Post deleted!", "post": data}
