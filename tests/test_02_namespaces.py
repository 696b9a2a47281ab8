#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""Tests for namespace endpoints."""
# -----------------------------------------------------------------------------

from __future__ import annotations

import pytest
from httpx import AsyncClient

from tests.conftest import create_namespace, create_page


# -----------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    resp = await client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_server_entry_point_runs_uvicorn(monkeypatch):
    import uvicorn
    from defaultlinks.__main__ import main

    calls = []
    monkeypatch.setattr(uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))
    main()
    assert calls[0][0] == "defaultlinks.main:app"
    assert calls[0][1]["port"] == 8000


@pytest.mark.asyncio
async def test_list_namespaces_empty(client: AsyncClient):
    resp = await client.get("/api/v1/namespaces")
    assert resp.status_code == 200
    assert resp.json() == []


@pytest.mark.asyncio
async def test_create_and_get_namespace(client: AsyncClient):
    data = await create_namespace(client, "Help", default_format="markdown")
    assert data["name"] == "Help"
    assert data["default_format"] == "markdown"
    assert data["page_count"] == 0

    resp = await client.get("/api/v1/namespaces/help")
    assert resp.status_code == 200
    assert resp.json()["name"] == "Help"


@pytest.mark.asyncio
async def test_duplicate_namespace_ignores_case(client: AsyncClient):
    await create_namespace(client, "Main")
    resp = await client.post("/api/v1/namespaces", json={"name": "main"})
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_invalid_format_rejected(client: AsyncClient):
    resp = await client.post("/api/v1/namespaces", json={"name": "X", "default_format": "rst"})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_update_namespace(client: AsyncClient):
    await create_namespace(client, "Help")
    resp = await client.put("/api/v1/namespaces/Help", json={"description": "Docs"})
    assert resp.status_code == 200
    assert resp.json()["description"] == "Docs"


@pytest.mark.asyncio
async def test_get_missing_namespace(client: AsyncClient):
    resp = await client.get("/api/v1/namespaces/Nope")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_delete_namespace(client: AsyncClient):
    await create_namespace(client, "Scratch")
    resp = await client.delete("/api/v1/namespaces/Scratch")
    assert resp.status_code == 200
    assert (await client.get("/api/v1/namespaces/Scratch")).status_code == 404


@pytest.mark.asyncio
async def test_cannot_delete_namespace_with_pages(client: AsyncClient):
    await create_namespace(client, "Main")
    await create_page(client, "Foo", "text")
    resp = await client.delete("/api/v1/namespaces/Main")
    assert resp.status_code == 409
