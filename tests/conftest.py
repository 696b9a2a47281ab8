#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Pytest fixtures for DefaultLinks tests.
Uses an in-memory SQLite database so no external services are needed.
Core components run against in-memory fakes of the title resolver and the
format store.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from typing import Iterable, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from defaultlinks.core.database import Base, get_db
from defaultlinks.main import create_app
from defaultlinks.services.format_store import PropRow
from defaultlinks.services.titles import TitleResolver


# -----------------------------------------------------------------------------

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"


# -----------------------------------------------------------------------------

@pytest_asyncio.fixture(scope="function")
async def db_engine():
    engine = create_async_engine(
        TEST_DB_URL,
        echo=False,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session_factory(db_engine):
    """Shared sessionmaker — both client and db_session use this."""
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(db_session_factory):
    """Direct DB session for test setup and inspection."""
    async with db_session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(db_engine, db_session_factory):
    """HTTP test client wired to an isolated in-memory DB."""
    async def override_get_db():
        async with db_session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app = create_app()
    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# -----------------------------------------------------------------------------
# Fakes for the default link core
# -----------------------------------------------------------------------------

class FakeTitleResolver(TitleResolver):
    """Title rules of the real resolver; page ids come from a dict."""

    def __init__(
        self,
        pages: Optional[dict[str, str]] = None,
        namespaces: Iterable[str] = ("Main", "Help", "Talk"),
        formatted: Iterable[str] = ("Main", "Help"),
    ):
        super().__init__(namespaces, "Main", formatted)
        self.pages = dict(pages or {})

    def article_id(self, namespace: str, text: str) -> Optional[str]:
        prefixed = text if namespace == self.default_namespace else f"{namespace}:{text}"
        return self.pages.get(prefixed)


class CountingFormatStore:
    """In-memory format store that records every batched read."""

    def __init__(self, props: Optional[dict[str, dict[str, str]]] = None):
        self.props = {pid: dict(values) for pid, values in (props or {}).items()}
        self.reads: list[list[str]] = []

    def batch_read(self, page_ids, names) -> list[PropRow]:
        page_ids, names = list(page_ids), list(names)
        self.reads.append(page_ids)
        return [
            PropRow(pid, name, value)
            for pid in page_ids
            for name, value in self.props.get(pid, {}).items()
            if name in names
        ]

    def write(self, page_id: str, name: str, value: str) -> None:
        self.props.setdefault(page_id, {})[name] = value

    def delete_all(self, page_id: str) -> None:
        self.props.pop(page_id, None)


# -----------------------------------------------------------------------------

PAGES = {"Foo": "1", "Bar": "2", "Baz": "3", "Page": "9", "Talk:Foo": "4", "Help:Tips": "5"}


@pytest.fixture
def titles() -> FakeTitleResolver:
    return FakeTitleResolver(PAGES)


@pytest.fixture
def store() -> CountingFormatStore:
    return CountingFormatStore({
        "1": {
            "defaultlink": "[[Foo|'''The Foo''']]",
            "defaultlinksec": "history\n[[Foo#History|Foo's past]]",
        },
    })


# -----------------------------------------------------------------------------
# Helper functions for API tests
# -----------------------------------------------------------------------------

async def create_namespace(client: AsyncClient, name: str = "Main",
                           default_format: str = "wikitext") -> dict:
    resp = await client.post("/api/v1/namespaces", json={
        "name": name,
        "description": f"{name} namespace",
        "default_format": default_format,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


async def create_page(client: AsyncClient, title: str, content: str,
                      namespace: str = "Main") -> dict:
    resp = await client.post(f"/api/v1/namespaces/{namespace}/pages", json={
        "title": title,
        "content": content,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


# -----------------------------------------------------------------------------
