#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Tests for page endpoints, including declarations stored on save and used
when other pages render.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select

from defaultlinks.models import PageProp
from tests.conftest import create_namespace, create_page


# -----------------------------------------------------------------------------

PAGES = "/api/v1/namespaces/Main/pages"
FOO_DECL = "{{DEFAULTLINK:[[Foo|'''The Foo''']]}}Foo page."


async def _setup(client: AsyncClient):
    await create_namespace(client, "Main")
    await create_namespace(client, "Talk")


# ── basic CRUD ───────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_create_and_get_page(client: AsyncClient):
    await _setup(client)
    data = await create_page(client, "my_first page", "Hello '''world'''")
    assert data["title"] == "My first page"
    assert data["slug"] == "my-first-page"
    assert data["format"] == "wikitext"
    assert data["version"] == 1
    assert "<b>world</b>" in data["rendered"]

    resp = await client.get(f"{PAGES}/my-first-page")
    assert resp.status_code == 200
    assert resp.json()["rendered"] == data["rendered"]


@pytest.mark.asyncio
async def test_duplicate_page_conflict(client: AsyncClient):
    await _setup(client)
    await create_page(client, "Foo", "x")
    resp = await client.post(PAGES, json={"title": "foo", "content": "y"})
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_invalid_title_rejected(client: AsyncClient):
    await _setup(client)
    resp = await client.post(PAGES, json={"title": "Foo|Bar", "content": ""})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_raw_and_update(client: AsyncClient):
    await _setup(client)
    await create_page(client, "Foo", "one")
    resp = await client.put(f"{PAGES}/foo", json={"content": "two", "comment": "edit"})
    assert resp.status_code == 200
    assert resp.json()["version"] == 2

    raw = await client.get(f"{PAGES}/foo/raw")
    assert raw.text == "two"
    old = await client.get(f"{PAGES}/foo/raw", params={"version": 1})
    assert old.text == "one"


@pytest.mark.asyncio
async def test_list_pages(client: AsyncClient):
    await _setup(client)
    await create_page(client, "Beta", "b")
    await create_page(client, "Alpha", "a")
    resp = await client.get(PAGES)
    assert [p["title"] for p in resp.json()] == ["Alpha", "Beta"]


# ── default links ────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_declaration_is_stored(client: AsyncClient):
    await _setup(client)
    await create_page(client, "Foo", FOO_DECL)
    resp = await client.get(f"{PAGES}/foo/defaultlinks")
    assert resp.status_code == 200
    assert resp.json() == {
        "namespace": "Main",
        "title": "Foo",
        "default_link": "[[Foo|'''The Foo''']]",
        "fragment_links": {},
    }


@pytest.mark.asyncio
async def test_fragment_declaration_is_stored(client: AsyncClient):
    await _setup(client)
    await create_page(client, "Foo", "{{DEFAULTLINK:[[Foo#History|Foo's history]]|#History}}")
    resp = await client.get(f"{PAGES}/foo/defaultlinks")
    assert resp.json()["default_link"] is None
    assert resp.json()["fragment_links"] == {"history": "[[Foo#History|Foo's history]]"}


@pytest.mark.asyncio
async def test_other_page_uses_declared_link(client: AsyncClient):
    await _setup(client)
    await create_page(client, "Foo", FOO_DECL)
    bar = await create_page(client, "Bar", "See [[Foo]].")
    assert "<b>The Foo</b>" in bar["rendered"]
    assert "/wiki/Main/foo" in bar["rendered"]


@pytest.mark.asyncio
async def test_changed_declaration_reaches_linking_pages(client: AsyncClient):
    await _setup(client)
    await create_page(client, "Foo", FOO_DECL)
    await create_page(client, "Bar", "See [[Foo]].")

    resp = await client.put(f"{PAGES}/foo", json={"content": "{{DEFAULTLINK:[[Foo|''New Foo'']]}}"})
    assert resp.status_code == 200

    bar = (await client.get(f"{PAGES}/bar")).json()
    assert "<i>New Foo</i>" in bar["rendered"]
    assert "The Foo" not in bar["rendered"]


@pytest.mark.asyncio
async def test_declaration_errors_are_inline(client: AsyncClient):
    await _setup(client)
    data = await create_page(client, "Foo", "{{DEFAULTLINK:[[Foo|a]]}}{{DEFAULTLINK:[[Foo|b]]}}")
    assert '<span class="error">' in data["rendered"]
    links = (await client.get(f"{PAGES}/foo/defaultlinks")).json()
    assert links["default_link"] == "[[Foo|a]]"


@pytest.mark.asyncio
async def test_namespace_without_default_links(client: AsyncClient):
    await _setup(client)
    data = await create_page(client, "Foo", "{{DEFAULTLINK:[[Talk:Foo|x]]}}", namespace="Talk")
    assert '<span class="error">' in data["rendered"]


@pytest.mark.asyncio
async def test_delete_purges_declarations(client: AsyncClient, db_session):
    await _setup(client)
    await create_page(client, "Foo", FOO_DECL)
    await create_page(client, "Bar", "See [[Foo]].")

    resp = await client.delete(f"{PAGES}/foo")
    assert resp.status_code == 200
    assert (await client.get(f"{PAGES}/foo/defaultlinks")).status_code == 404

    count = await db_session.execute(select(func.count()).select_from(PageProp))
    assert count.scalar_one() == 0

    bar = (await client.get(f"{PAGES}/bar")).json()
    assert "The Foo" not in bar["rendered"]
    assert 'class="wikilink new"' in bar["rendered"]


@pytest.mark.asyncio
async def test_rename_drops_declaration_for_old_title(client: AsyncClient):
    await _setup(client)
    await create_page(client, "Foo", FOO_DECL)
    resp = await client.post(f"{PAGES}/foo/rename", json={"new_title": "Foo two"})
    assert resp.status_code == 200

    links = (await client.get(f"{PAGES}/foo-two/defaultlinks")).json()
    assert links["title"] == "Foo two"
    assert links["default_link"] is None
    assert (await client.get(f"{PAGES}/foo")).status_code == 404


# ── preview ──────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_render_preview(client: AsyncClient):
    await _setup(client)
    await create_page(client, "Foo", FOO_DECL)
    resp = await client.get("/api/v1/render", params={"content": "[[Foo]]", "title": "Bar"})
    assert resp.status_code == 200
    body = resp.json()
    assert "<b>The Foo</b>" in body["html"]
    assert body["format"] == "wikitext"
    assert body["warnings"] == []


@pytest.mark.asyncio
async def test_render_preview_does_not_store(client: AsyncClient):
    await _setup(client)
    await create_page(client, "Foo", "plain")
    await client.get("/api/v1/render", params={
        "content": "{{DEFAULTLINK:[[Foo|x]]}}", "title": "Foo",
    })
    links = (await client.get(f"{PAGES}/foo/defaultlinks")).json()
    assert links["default_link"] is None


@pytest.mark.asyncio
async def test_section_preview_reads_own_fragments(client: AsyncClient):
    await _setup(client)
    await create_page(client, "Foo", "{{DEFAULTLINK:[[Foo#History|Foo's history]]|#History}}")
    params = {"content": "[[#History]]", "title": "Foo"}

    full = (await client.get("/api/v1/render", params=params)).json()
    assert "Foo's history" not in full["html"]

    section = (await client.get("/api/v1/render", params={**params, "section_preview": "true"})).json()
    assert "Foo's history" in section["html"]


@pytest.mark.asyncio
async def test_render_preview_errors(client: AsyncClient):
    await _setup(client)
    bad_format = await client.get("/api/v1/render", params={"content": "x", "format": "rst"})
    assert bad_format.status_code == 422
    bad_ns = await client.get("/api/v1/render", params={"content": "x", "namespace": "Nope"})
    assert bad_ns.status_code == 404
