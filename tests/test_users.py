"""
User directory endpoint tests: listing, lookup, the admin role assignment,
plus the health endpoint and the diagnostic response headers.
"""
import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from blog_api.models import Role
from blog_api.security import create_access_token
from helpers import create_post, make_admin, register, register_and_login, stored_user


# ---------------------------------------------------------------------------
# List users
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_list_users(async_client: AsyncClient):
    _, headers = await register_and_login(async_client, "first@example.com")
    await register(async_client, "second@example.com", first_name="Grace", last_name="Hopper")

    resp = await async_client.get("/users/all", headers=headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Fetched users successfully!"
    assert [u["email"] for u in body["users"]] == ["first@example.com", "second@example.com"]
    assert body["users"][1]["firstName"] == "Grace"


@pytest.mark.asyncio
async def test_list_users_never_exposes_password(async_client: AsyncClient):
    _, headers = await register_and_login(async_client, "private@example.com")
    resp = await async_client.get("/users/all", headers=headers)
    for user in resp.json()["users"]:
        assert "password" not in user


@pytest.mark.asyncio
async def test_list_users_empty_returns_404(async_client: AsyncClient):
    # A valid token whose user no longer exists is still authenticated.
    token = create_access_token("gone@example.com", 12345)
    resp = await async_client.get("/users/all", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 404
    assert resp.json()["message"] == "Could not find any users."


# ---------------------------------------------------------------------------
# Get user
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_get_user_with_posts(async_client: AsyncClient):
    user_id, headers = await register_and_login(async_client, "detail@example.com")
    first = await create_post(async_client, headers, title="First article")
    second = await create_post(async_client, headers, title="Second article")

    resp = await async_client.get(f"/users/{user_id}", headers=headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "User fetched"
    user = body["user"]
    assert user["_id"] == user_id
    assert user["role"] == "USER"
    assert user["posts"] == [first["_id"], second["_id"]]


@pytest.mark.asyncio
async def test_get_user_not_found_names_the_id(async_client: AsyncClient):
    _, headers = await register_and_login(async_client, "lookup@example.com")
    resp = await async_client.get("/users/99999", headers=headers)
    assert resp.status_code == 404
    assert resp.json()["message"] == "Could not find user with id: 99999"


@pytest.mark.asyncio
async def test_get_user_requires_auth(async_client: AsyncClient):
    user_id = await register(async_client, "anon@example.com")
    resp = await async_client.get(f"/users/{user_id}")
    assert resp.status_code == 401


# ---------------------------------------------------------------------------
# Set role
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_admin_sets_role(async_client: AsyncClient, db_session: AsyncSession):
    _, admin_headers = await make_admin(async_client, db_session)
    user_id = await register(async_client, "newadmin@example.com")

    resp = await async_client.patch(f"/users/{user_id}/role", json={"role": "ADMIN"}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["user"]["role"] == "ADMIN"

    user = await stored_user(db_session, user_id)
    assert user.role is Role.ADMIN


@pytest.mark.asyncio
async def test_non_admin_cannot_set_role(async_client: AsyncClient, db_session: AsyncSession):
    user_id, headers = await register_and_login(async_client, "climber@example.com")

    resp = await async_client.patch(f"/users/{user_id}/role", json={"role": "ADMIN"}, headers=headers)
    assert resp.status_code == 401
    assert resp.json()["message"] == "Not authorized."

    user = await stored_user(db_session, user_id)
    assert user.role is Role.USER


@pytest.mark.asyncio
async def test_set_role_rejects_unknown_role(async_client: AsyncClient, db_session: AsyncSession):
    _, admin_headers = await make_admin(async_client, db_session)
    user_id = await register(async_client, "odd@example.com")

    resp = await async_client.patch(f"/users/{user_id}/role", json={"role": "OWNER"}, headers=admin_headers)
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_set_role_unknown_user_returns_404(async_client: AsyncClient, db_session: AsyncSession):
    _, admin_headers = await make_admin(async_client, db_session)
    resp = await async_client.patch("/users/99999/role", json={"role": "BLOGGER"}, headers=admin_headers)
    assert resp.status_code == 404


# ---------------------------------------------------------------------------
# Infrastructure
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_health(async_client: AsyncClient):
    resp = await async_client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert data["cache"]["enabled"] is False
    assert {"hits", "misses", "hit_rate"} <= set(data["cache"])


@pytest.mark.asyncio
async def test_diagnostic_headers(async_client: AsyncClient):
    _, headers = await register_and_login(async_client, "headers@example.com")
    resp = await async_client.get("/users/all", headers=headers)
    assert "x-response-time-ms" in resp.headers
    assert int(resp.headers["x-query-count"]) >= 1


@pytest.mark.asyncio
async def test_unknown_route_uses_error_shape(async_client: AsyncClient):
    resp = await async_client.get("/does-not-exist")
    assert resp.status_code == 404
    assert resp.json() == {"message": "Not Found", "data": None}
