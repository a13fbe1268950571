"""Admin endpoint tests: listing, updating and deleting links behind basic auth."""

import pytest
from httpx import AsyncClient

from app.config import Settings


async def _shorten(client: AsyncClient, url: str) -> str:
    response = await client.post("/api/shorten", json={"url": url})
    assert response.status_code == 201
    return response.json()["code"]


# ============================================================================
# AUTHENTICATION
# ============================================================================


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "method, path",
    [
        ("GET", "/admin/all"),
        ("PUT", "/admin/abcd1234"),
        ("DELETE", "/admin/abcd1234"),
    ],
)
async def test_admin_requires_credentials(client: AsyncClient, method: str, path: str) -> None:
    response = await client.request(method, path, json={"new_url": "https://example.com"})
    assert response.status_code == 401
    assert response.headers["www-authenticate"].startswith("Basic")


@pytest.mark.asyncio
async def test_admin_rejects_wrong_password(client: AsyncClient, settings: Settings) -> None:
    response = await client.get("/admin/all", auth=(settings.BASIC_AUTH_USERNAME, "wrong-password"))
    assert response.status_code == 401
    assert response.headers["www-authenticate"] == 'Basic realm="Restricted"'


@pytest.mark.asyncio
async def test_admin_rejects_wrong_username(client: AsyncClient, settings: Settings) -> None:
    response = await client.get("/admin/all", auth=("intruder", settings.BASIC_AUTH_PASSWORD))
    assert response.status_code == 401


# ============================================================================
# LIST
# ============================================================================


@pytest.mark.asyncio
async def test_list_all_links(client: AsyncClient, admin_auth: tuple[str, str]) -> None:
    created = {}
    for url in ["https://a.example.com", "https://b.example.com", "https://c.example.com"]:
        created[await _shorten(client, url)] = url

    response = await client.get("/admin/all", auth=admin_auth)

    assert response.status_code == 200
    urls = response.json()["urls"]
    assert created.items() <= urls.items()


@pytest.mark.asyncio
async def test_list_empty(client: AsyncClient, admin_auth: tuple[str, str]) -> None:
    response = await client.get("/admin/all", auth=admin_auth)
    assert response.status_code == 200
    assert response.json() == {"urls": {}}


# ============================================================================
# UPDATE
# ============================================================================


@pytest.mark.asyncio
async def test_update_link(client: AsyncClient, admin_auth: tuple[str, str]) -> None:
    code = await _shorten(client, "https://example.com")

    response = await client.put(f"/admin/{code}", json={"new_url": "https://new.com"}, auth=admin_auth)

    assert response.status_code == 200
    assert response.json()["code"] == code
    assert response.json()["url"] == "https://new.com"
    lookup = await client.get(f"/api/{code}", params={"json": "true"})
    assert lookup.json() == {"url": "https://new.com"}


@pytest.mark.asyncio
async def test_update_unknown_code(client: AsyncClient, admin_auth: tuple[str, str]) -> None:
    response = await client.put("/admin/nothere1", json={"new_url": "https://new.com"}, auth=admin_auth)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_update_rejects_invalid_url(client: AsyncClient, admin_auth: tuple[str, str]) -> None:
    code = await _shorten(client, "https://example.com")

    response = await client.put(f"/admin/{code}", json={"new_url": "not a url"}, auth=admin_auth)
    assert response.status_code == 422

    response = await client.put(f"/admin/{code}", json={"new_url": ""}, auth=admin_auth)
    assert response.status_code == 422


# ============================================================================
# DELETE
# ============================================================================


@pytest.mark.asyncio
async def test_delete_link(client: AsyncClient, admin_auth: tuple[str, str]) -> None:
    code = await _shorten(client, "https://example.com")

    response = await client.delete(f"/admin/{code}", auth=admin_auth)

    assert response.status_code == 204
    assert response.content == b""
    lookup = await client.get(f"/api/{code}", follow_redirects=False)
    assert lookup.status_code == 404


@pytest.mark.asyncio
async def test_delete_unknown_code(client: AsyncClient, admin_auth: tuple[str, str]) -> None:
    response = await client.delete("/admin/nothere1", auth=admin_auth)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_full_lifecycle_over_http(client: AsyncClient, admin_auth: tuple[str, str]) -> None:
    code = await _shorten(client, "https://example.com")
    assert len(code) == 8
    assert (await client.get(f"/api/{code}", params={"json": "true"})).json()["url"] == "https://example.com"

    updated = await client.put(f"/admin/{code}", json={"new_url": "https://new.com"}, auth=admin_auth)
    assert updated.json()["code"] == code
    assert (await client.get(f"/api/{code}", params={"json": "true"})).json()["url"] == "https://new.com"

    assert (await client.delete(f"/admin/{code}", auth=admin_auth)).status_code == 204
    assert (await client.get(f"/api/{code}", params={"json": "true"})).status_code == 404
