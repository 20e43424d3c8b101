from collections.abc import Awaitable, Callable

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase

from blog_api.config import settings
from blog_api.middleware import install_query_counter

# Module-level engine variable allows tests to override with a test engine.
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_pre_ping=True,
)

install_query_counter(engine)

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

_AFTER_COMMIT = "after_commit"


class Base(DeclarativeBase):
    pass


def run_after_commit(session: AsyncSession, callback: Callable[[], Awaitable[None]]) -> None:
    """Queue *callback* to be awaited once *session* has committed."""
    session.info.setdefault(_AFTER_COMMIT, []).append(callback)


async def commit(session: AsyncSession) -> None:
    """Commit *session*, then await the callbacks queued with ``run_after_commit``."""
    await session.commit()
    for callback in session.info.pop(_AFTER_COMMIT, []):
        await callback()


async def rollback(session: AsyncSession) -> None:
    """Roll *session* back and drop its queued callbacks unrun."""
    session.info.pop(_AFTER_COMMIT, None)
    await session.rollback()


async def get_db():
    """
    Yield one session per request.

    The request's writes are committed together once the handler returns,
    and only then do after-commit callbacks (cache invalidation) run. Any
    exception raised by the handler (including ``ApiError``) rolls the whole
    unit back before it reaches the error responder.
    """
    async with async_session() as session:
        try:
            yield session
            await commit(session)
        except Exception:
            await rollback(session)
            raise
