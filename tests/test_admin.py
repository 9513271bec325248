"""Tests for /api/admin: role checks, global listing and team management."""
import pytest
from httpx import AsyncClient

from recos_manager.models.database_models import TEAM_MEMBERS_TABLE
from tests.conftest import ADMIN, ADMIN_HEADERS, AUTH_HEADERS, USER, create_recommendation


@pytest.mark.asyncio
async def test_non_admin_is_forbidden(client: AsyncClient):
    resp = await client.get("/api/admin/team-members", headers=AUTH_HEADERS)
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_inactive_admin_is_forbidden(client: AsyncClient, store):
    member = await store.get_team_member_by_email(ADMIN.email)
    await store.set_team_member_active(member["id"], False)
    resp = await client.get("/api/admin/recommendations", headers=ADMIN_HEADERS)
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_admin_lists_recommendations_with_client_name(client: AsyncClient):
    await create_recommendation(client, title="Avec client",
                                new_client={"name": "Garage Dupont"})
    await create_recommendation(client, title="Sans client")

    resp = await client.get("/api/admin/recommendations", headers=ADMIN_HEADERS)
    assert resp.status_code == 200
    names = {r["title"]: r["client_name"] for r in resp.json()}
    assert names == {"Avec client": "Garage Dupont", "Sans client": None}


@pytest.mark.asyncio
async def test_admin_deletes_any_recommendation(client: AsyncClient, store):
    created = await create_recommendation(client)
    resp = await client.delete(f"/api/admin/recommendations/{created['id']}",
                               headers=ADMIN_HEADERS)
    assert resp.status_code == 204
    assert await store.get_recommendation(created["id"]) is None

    resp = await client.delete(f"/api/admin/recommendations/{created['id']}",
                               headers=ADMIN_HEADERS)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_admin_lists_team_members(client: AsyncClient):
    resp = await client.get("/api/admin/team-members", headers=ADMIN_HEADERS)
    assert resp.status_code == 200
    emails = {m["email"] for m in resp.json()}
    assert emails == {ADMIN.email, USER.email}


@pytest.mark.asyncio
async def test_toggle_active_flips_flag(client: AsyncClient, store):
    member = await store.get_team_member_by_email(USER.email)
    url = f"/api/admin/team-members/{member['id']}/toggle-active"

    resp = await client.post(url, headers=ADMIN_HEADERS)
    assert resp.status_code == 200
    assert resp.json()["active"] is False

    resp = await client.post(url, headers=ADMIN_HEADERS)
    assert resp.json()["active"] is True
    assert store._find(TEAM_MEMBERS_TABLE, id=member["id"])["active"] is True


@pytest.mark.asyncio
async def test_toggle_unknown_member_returns_404(client: AsyncClient):
    resp = await client.post("/api/admin/team-members/ghost/toggle-active",
                             headers=ADMIN_HEADERS)
    assert resp.status_code == 404
