"""
API helpers shared by the endpoint tests.

There is no endpoint that creates the first admin, so ``make_admin`` promotes
a registered user directly in the database, as ``scripts/seed.py`` does in a
real deployment.
"""
from httpx import AsyncClient
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from blog_api.models import Role, User


async def register(
    client: AsyncClient,
    email: str,
    password: str = "secret",
    first_name: str = "Ada",
    last_name: str = "Lovelace",
) -> int:
    resp = await client.put("/auth/register", json={
        "email": email,
        "password": password,
        "firstName": first_name,
        "lastName": last_name,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()["userId"]


async def login(client: AsyncClient, email: str, password: str = "secret") -> dict:
    """Log in and return ready-to-use request headers."""
    resp = await client.post("/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['token']}"}


async def register_and_login(client: AsyncClient, email: str) -> tuple[int, dict]:
    user_id = await register(client, email)
    return user_id, await login(client, email)


async def make_admin(
    client: AsyncClient, db: AsyncSession, email: str = "admin@example.com"
) -> tuple[int, dict]:
    user_id = await register(client, email)
    await db.execute(update(User).where(User.id == user_id).values(role=Role.ADMIN))
    await db.commit()
    return user_id, await login(client, email)


async def create_post(
    client: AsyncClient,
    headers: dict,
    title: str = "Hello there",
    content: str = "Some content",
) -> dict:
    resp = await client.post("/feed/post", json={"title": title, "content": content}, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["post"]


async def stored_user(db: AsyncSession, user_id: int) -> User | None:
    """Re-read a user from the database, bypassing the session's identity map."""
    return await db.get(User, user_id, populate_existing=True)
