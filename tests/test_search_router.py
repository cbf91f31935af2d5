"""HTTP tests for the search routes."""

from __future__ import annotations

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from conftest import NOW
from corkboard.web.app import create_app
from corkboard.web.auth.service import create_token
from corkboard.web.config import WebConfig
from corkboard.web.deps import _get_db, _get_now
from corkboard.web.search import service


@pytest_asyncio.fixture
async def client(corpus):
    """Async test client with the seeded corpus wired into the app."""
    app = create_app(WebConfig(db_path=":memory:", jwt_secret="test-secret"))

    async def override_db():
        return corpus

    app.dependency_overrides[_get_db] = override_db
    app.dependency_overrides[_get_now] = lambda: NOW
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


def _auth(user_id: str = "alice") -> dict[str, str]:
    return {"Authorization": f"Bearer {create_token(user_id, user_id)}"}


class TestAuth:
    async def test_missing_header(self, client):
        resp = await client.get("/api/search/workspace", params={"q": "sprint"})
        assert resp.status_code == 401

    async def test_invalid_token(self, client):
        resp = await client.get(
            "/api/search/workspace",
            params={"q": "sprint"},
            headers={"Authorization": "Bearer not-a-jwt"},
        )
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Invalid token"

    async def test_unknown_user(self, client):
        resp = await client.get("/api/search/workspace", params={"q": "sprint"}, headers=_auth("ghost"))
        assert resp.status_code == 401


class TestSearchWorkspace:
    async def test_camel_case_payload(self, client):
        resp = await client.get(
            "/api/search/workspace",
            params={"q": "release", "due": "overdue"},
            headers=_auth(),
        )
        assert resp.status_code == 200
        assert resp.headers["cache-control"] == "no-store"

        data = resp.json()
        assert data["nextCursor"] is None
        assert data["appliedFilters"]["boardsHiddenByCardFilters"] is True
        assert data["appliedFilters"]["due"] == ["overdue"]

        assert {i["id"] for i in data["items"]} == {"card:c-overdue", "checklist:ci-1"}

        item = next(i for i in data["items"] if i["id"] == "card:c-overdue")
        assert item["entityType"] == "card"
        assert item["entityId"] == "c-overdue"
        assert item["href"] == "/w/acme/board/b-ops?c=c-overdue"
        assert item["card"] == {"id": "c-overdue", "title": "Release checklist review"}
        assert item["updatedAt"].endswith("Z")

    async def test_due_facet_uses_request_clock(self, client):
        resp = await client.get(
            "/api/search/workspace",
            params={"q": "release", "due": "due-next-7-days", "type": "card"},
            headers=_auth(),
        )
        assert [i["id"] for i in resp.json()["items"]] == ["card:c-nextweek"]

    async def test_cursor_pagination(self, client):
        first = await client.get(
            "/api/search/workspace", params={"q": "sprint", "limit": 2}, headers=_auth()
        )
        cursor = first.json()["nextCursor"]
        assert cursor

        second = await client.get(
            "/api/search/workspace",
            params={"q": "sprint", "limit": 2, "cursor": cursor},
            headers=_auth(),
        )
        first_ids = {i["id"] for i in first.json()["items"]}
        second_ids = {i["id"] for i in second.json()["items"]}
        assert len(second_ids) == 2
        assert not first_ids & second_ids

    async def test_short_query_is_not_an_error(self, client):
        resp = await client.get("/api/search/workspace", params={"q": "a"}, headers=_auth())
        assert resp.status_code == 200
        assert resp.json()["items"] == []

    async def test_limit_out_of_range(self, client):
        resp = await client.get(
            "/api/search/workspace", params={"q": "sprint", "limit": 0}, headers=_auth()
        )
        assert resp.status_code == 422

    async def test_non_numeric_limit_is_422(self, client):
        resp = await client.get(
            "/api/search/workspace", params={"q": "sprint", "limit": "abc"}, headers=_auth()
        )
        assert resp.status_code == 422

    async def test_oversized_cursor(self, client):
        resp = await client.get(
            "/api/search/workspace",
            params={"q": "sprint", "cursor": "x" * 401},
            headers=_auth(),
        )
        assert resp.status_code == 422

    async def test_store_failure_is_500(self, client, monkeypatch):
        async def boom(*args, **kwargs):
            raise RuntimeError("disk I/O error")

        monkeypatch.setattr(service, "search_workspace_content", boom)
        resp = await client.get("/api/search/workspace", params={"q": "sprint"}, headers=_auth())
        assert resp.status_code == 500
        assert resp.json()["detail"] == "Failed to search workspace content."


class TestBootstrap:
    async def test_options_per_workspace(self, client):
        resp = await client.get("/api/search/bootstrap", headers=_auth())
        assert resp.status_code == 200

        data = resp.json()
        assert data["viewerId"] == "alice"
        assert [w["slug"] for w in data["workspaces"]] == ["acme", "beta"]

        acme_members = data["memberOptionsByWorkspaceSlug"]["acme"]
        assert [m["displayName"] for m in acme_members] == ["Alice", "Bob", "user-carol012"]
        assert [m["displayName"] for m in data["memberOptionsByWorkspaceSlug"]["beta"]] == ["Alice"]

        labels = data["labelOptionsByWorkspaceSlug"]["acme"]
        assert [label["name"] for label in labels] == ["Bug", "Docs"]
        assert "beta" not in data["labelOptionsByWorkspaceSlug"]

    async def test_requires_auth(self, client):
        resp = await client.get("/api/search/bootstrap")
        assert resp.status_code == 401


async def test_health(client):
    resp = await client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_no_catch_all_value_error_handler():
    app = create_app(WebConfig(db_path=":memory:", jwt_secret="test-secret"))
    assert ValueError not in app.exception_handlers
