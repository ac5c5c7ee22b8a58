"""Tests for the OAuth token capture server."""

import asyncio
from urllib.parse import parse_qs, urlparse

import pytest
from aiohttp import test_utils

from ttvchat.chat.oauth import build_authorize_url, create_app


def test_build_authorize_url():
    """Test the implicit grant URL."""
    url = build_authorize_url(client_id="abc", port=1234)
    query = parse_qs(urlparse(url).query)

    assert url.startswith("https://id.twitch.tv/oauth2/authorize?")
    assert query["response_type"] == ["token"]
    assert query["client_id"] == ["abc"]
    assert query["scope"] == ["chat:read chat:edit"]
    assert query["redirect_uri"] == ["http://localhost:1234"]


@pytest.mark.asyncio
async def test_token_posted():
    """Test that the first posted token resolves the future."""
    future = asyncio.get_running_loop().create_future()

    async with test_utils.TestClient(test_utils.TestServer(create_app(future))) as client:
        resp = await client.post("/token", json={"token": "abc123"})
        assert resp.status == 200

        resp = await client.post("/token", json={"token": "second"})
        assert resp.status == 200

    assert future.result() == "abc123"


@pytest.mark.asyncio
async def test_token_missing():
    """Test that a POST without a token is rejected."""
    future = asyncio.get_running_loop().create_future()

    async with test_utils.TestClient(test_utils.TestServer(create_app(future))) as client:
        resp = await client.post("/token", json={"nope": 1})
        assert resp.status == 400

        resp = await client.post("/token", data="not json")
        assert resp.status == 400

    assert not future.done()


@pytest.mark.asyncio
async def test_static_pages_served():
    """Test that the redirect page and its script are served."""
    future = asyncio.get_running_loop().create_future()

    async with test_utils.TestClient(test_utils.TestServer(create_app(future))) as client:
        resp = await client.get("/")
        assert resp.status == 200
        assert "/script.js" in await resp.text()

        resp = await client.get("/script.js")
        assert resp.status == 200
        assert "/token" in await resp.text()
