#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""Tests for the page_props backed format store."""
# -----------------------------------------------------------------------------

from __future__ import annotations

import pytest

from defaultlinks.models import Namespace, Page
from defaultlinks.services.format_store import (
    DEFAULT_LINK_PROPS,
    SqlFormatStore,
    decode_fragment_formats,
    encode_fragment_formats,
    save_declarations,
)


# -----------------------------------------------------------------------------

def test_fragment_codec():
    encoded = encode_fragment_formats({"a": "[[P#A|x]]", "b": "[[P#B|y]]"})
    assert encoded == "a\n[[P#A|x]]\nb\n[[P#B|y]]"
    assert dict(decode_fragment_formats(encoded)) == {"a": "[[P#A|x]]", "b": "[[P#B|y]]"}


def test_decode_ignores_unpaired_line():
    assert list(decode_fragment_formats("a\nx\nb")) == [("a", "x")]
    assert list(decode_fragment_formats("")) == []


# -----------------------------------------------------------------------------

async def _make_pages(db_session) -> list[str]:
    ns = Namespace(name="Main")
    db_session.add(ns)
    await db_session.flush()
    pages = [Page(namespace_id=ns.id, title=t, slug=t.lower()) for t in ("Foo", "Bar")]
    db_session.add_all(pages)
    await db_session.flush()
    return [p.id for p in pages]


@pytest.mark.asyncio
async def test_write_and_batch_read(db_session):
    foo, bar = await _make_pages(db_session)

    def work(session):
        store = SqlFormatStore(session)
        store.write(foo, "defaultlink", "[[Foo|F]]")
        store.write(foo, "defaultlink", "[[Foo|G]]")
        store.write(bar, "defaultlinksec", "s\n[[Bar#S|s]]")
        store.write(bar, "unrelated", "x")
        return store.batch_read([foo, bar], DEFAULT_LINK_PROPS)

    rows = await db_session.run_sync(work)
    assert sorted(rows) == sorted([
        (foo, "defaultlink", "[[Foo|G]]"),
        (bar, "defaultlinksec", "s\n[[Bar#S|s]]"),
    ])


@pytest.mark.asyncio
async def test_batch_read_of_nothing(db_session):
    rows = await db_session.run_sync(lambda s: SqlFormatStore(s).batch_read([], DEFAULT_LINK_PROPS))
    assert rows == []


@pytest.mark.asyncio
async def test_delete_all_keeps_other_properties(db_session):
    foo, _ = await _make_pages(db_session)

    def work(session):
        store = SqlFormatStore(session)
        store.write(foo, "defaultlink", "[[Foo|F]]")
        store.write(foo, "unrelated", "x")
        store.delete_all(foo)
        return store.batch_read([foo], ("defaultlink", "unrelated"))

    rows = await db_session.run_sync(work)
    assert [r.name for r in rows] == ["unrelated"]


@pytest.mark.asyncio
async def test_save_declarations_reports_changes(db_session):
    foo, _ = await _make_pages(db_session)

    def work(session):
        store = SqlFormatStore(session)
        first = save_declarations(store, foo, {"defaultlink": "[[Foo|F]]"})
        again = save_declarations(store, foo, {"defaultlink": "[[Foo|F]]"})
        cleared = save_declarations(store, foo, {})
        return first, again, cleared, store.batch_read([foo], DEFAULT_LINK_PROPS)

    first, again, cleared, rows = await db_session.run_sync(work)
    assert (first, again, cleared) == (True, False, True)
    assert rows == []
