"""
Database seeder.

Recreates the schema and creates the first ADMIN account, which no API
endpoint can create. With ``--sample`` it also adds a few users and posts in
every moderation state so the feed projections can be tried out by hand.

    python -m scripts.seed --admin-email admin@example.com --admin-password changeme
"""
import asyncio
import argparse
import logging
import random
import time

from blog_api.database import engine, async_session, Base
from blog_api.models import Post, Role, User
from blog_api.security import hash_password

logger = logging.getLogger("seed")

SAMPLE_TOPICS = ["python", "fastapi", "postgresql", "redis", "docker", "testing",
                 "performance", "security", "moderation", "rest-api"]


async def seed(admin_email: str, admin_password: str, sample: bool = False) -> None:
    start = time.perf_counter()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as session:
        admin = User(
            email=admin_email.strip().lower(),
            password=hash_password(admin_password),
            first_name="Site",
            last_name="Admin",
            role=Role.ADMIN,
        )
        session.add(admin)
        await session.flush()
        logger.info("Created admin %s (id=%s)", admin.email, admin.id)

        if sample:
            password = hash_password("password")
            authors = []
            for i, role in enumerate([Role.USER, Role.USER, Role.BLOGGER]):
                author = User(
                    email=f"user_{i:02d}@example.com",
                    password=password,
                    first_name="User",
                    last_name=f"{i:02d}",
                    role=role,
                )
                session.add(author)
                authors.append(author)
            await session.flush()

            for i in range(12):
                author = random.choice(authors)
                session.add(Post(
                    title=f"Post {i}: notes on {random.choice(SAMPLE_TOPICS)}",
                    content=f"This is the content of post {i}. " * 10,
                    # Only BLOGGERs have had a post approved before.
                    allowed=author.role is Role.BLOGGER and random.random() > 0.3,
                    author_id=author.id,
                ))
            await session.flush()
            logger.info("Created %d sample users and 12 posts (password: 'password')", len(authors))

        await session.commit()

    logger.info("Seeding complete in %.1fs", time.perf_counter() - start)


def main():
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    parser = argparse.ArgumentParser(description="Seed the blog database")
    parser.add_argument("--admin-email", required=True, help="Email of the first ADMIN account")
    parser.add_argument("--admin-password", required=True, help="Password of the first ADMIN account")
    parser.add_argument("--sample", action="store_true", help="Add sample users and posts")
    args = parser.parse_args()
    asyncio.run(seed(args.admin_email, args.admin_password, sample=args.sample))


if __name__ == "__main__":
    main()
