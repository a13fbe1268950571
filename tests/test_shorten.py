"""Shorten endpoint behavior tests."""

import pytest
from httpx import AsyncClient

from app.codegen import ALPHABET
from app.config import Settings


@pytest.mark.asyncio
async def test_shorten_valid_url(client: AsyncClient, settings: Settings) -> None:
    response = await client.post("/api/shorten", json={"url": "https://www.google.com"})
    assert response.status_code == 201
    data = response.json()
    assert data["url"] == "https://www.google.com"
    assert len(data["code"]) == 8
    assert all(c in ALPHABET for c in data["code"])
    assert data["short_url"] == f"{settings.BASE_URL.rstrip('/')}/{data['code']}"


@pytest.mark.asyncio
async def test_shorten_invalid_url(client: AsyncClient) -> None:
    response = await client.post("/api/shorten", json={"url": "not-a-url"})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_shorten_empty_url(client: AsyncClient) -> None:
    response = await client.post("/api/shorten", json={"url": ""})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_shorten_missing_body(client: AsyncClient) -> None:
    response = await client.post("/api/shorten", json={})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_shorten_malformed_json(client: AsyncClient) -> None:
    response = await client.post(
        "/api/shorten",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_shorten_multiple_urls(client: AsyncClient) -> None:
    urls = [
        "https://www.google.com",
        "https://www.github.com",
        "https://www.python.org",
    ]
    codes = set()
    for url in urls:
        response = await client.post("/api/shorten", json={"url": url})
        assert response.status_code == 201
        codes.add(response.json()["code"])
    # All codes should be unique
    assert len(codes) == 3


@pytest.mark.asyncio
async def test_shorten_echoes_request_id(client: AsyncClient) -> None:
    response = await client.post(
        "/api/shorten",
        json={"url": "https://www.python.org"},
        headers={"X-Request-ID": "req-123"},
    )
    assert response.headers["x-request-id"] == "req-123"


@pytest.mark.asyncio
async def test_response_gets_generated_request_id(client: AsyncClient) -> None:
    response = await client.post("/api/shorten", json={"url": "https://www.python.org"})
    assert response.headers["x-request-id"]
