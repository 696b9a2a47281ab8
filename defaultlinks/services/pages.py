#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Page service
============
Versioned create / read / update / rename / delete for wiki pages.

Every save appends a new PageVersion row — nothing is overwritten.  Saving
also renders the new version and stores the default links it declares, so
other pages linking here pick them up.  Cached HTML of every page is dropped
whenever declarations or the set of existing titles change.

Rendering runs on the synchronous side of the session (``run_sync``); the
default link core issues its page_props reads through that connection.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from defaultlinks.core.config import get_settings
from defaultlinks.models import Namespace, Page, PageProp, PageVersion
from defaultlinks.schemas import PageCreate, PageRename, PageUpdate
from .format_store import (
    DEFAULT_LINK_PROPS,
    FRAGMENTS_PROP,
    PRIMARY_PROP,
    SqlFormatStore,
    decode_fragment_formats,
    save_declarations,
)
from .namespaces import get_namespace_by_name
from .renderer import ParseResult, WikiParser, slugify
from .session import RenderOptions, RenderSession
from .titles import SqlTitleResolver, Title, is_valid_title_text, normalize_title_text

log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------

def _clean_title(raw: str) -> str:
    title = normalize_title_text(raw)
    if not is_valid_title_text(title):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"'{raw}' is not a valid page title",
        )
    return title


async def _get_page(db: AsyncSession, ns_id: str, slug: str) -> Page:
    result = await db.execute(
        select(Page).where(Page.namespace_id == ns_id, Page.slug == slug)
    )
    page = result.scalar_one_or_none()
    if not page:
        raise HTTPException(status_code=404, detail=f"Page '{slug}' not found")
    return page


async def _latest_version(db: AsyncSession, page_id: str) -> Optional[PageVersion]:
    result = await db.execute(
        select(PageVersion)
        .where(PageVersion.page_id == page_id)
        .order_by(PageVersion.version.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def _next_version_number(db: AsyncSession, page_id: str) -> int:
    result = await db.execute(
        select(func.max(PageVersion.version)).where(PageVersion.page_id == page_id)
    )
    current = result.scalar_one_or_none()
    return (current or 0) + 1


async def _ensure_unique_slug(db: AsyncSession, ns: Namespace, slug: str, title: str) -> None:
    exists = await db.execute(
        select(Page.id).where(Page.namespace_id == ns.id, Page.slug == slug)
    )
    if exists.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Page '{title}' already exists in namespace '{ns.name}'",
        )


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Rendering
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def _render_sync(
    session: Session,
    namespace_name: str,
    title_text: str,
    page_id: Optional[str],
    content: str,
    fmt: str,
    section_preview: bool,
    persist: bool,
) -> tuple[ParseResult, bool]:
    settings = get_settings()
    titles = SqlTitleResolver(session, settings)
    store = SqlFormatStore(session)
    parser = WikiParser(
        RenderSession(titles, store),
        base_url=settings.base_url,
        max_include_size=settings.max_include_size,
    )

    if page_id is None and title_text:
        page_id = titles.article_id(namespace_name, title_text)
    if not title_text or namespace_name == settings.default_namespace:
        prefixed = title_text
    else:
        prefixed = f"{namespace_name}:{title_text}"
    title = Title(
        namespace=namespace_name,
        text=title_text,
        prefixed_name=prefixed,
        article_id=page_id,
    )

    result = parser.parse(content, title, fmt, RenderOptions(is_section_preview=section_preview))

    changed = False
    if persist and page_id is not None:
        changed = save_declarations(store, page_id, result.output.properties())
    return result, changed


async def render_content(
    db: AsyncSession,
    namespace_name: str,
    title_text: str,
    content: str,
    fmt: str,
    *,
    page_id: Optional[str] = None,
    section_preview: bool = False,
    persist: bool = False,
) -> ParseResult:
    """
    Render *content* as the page *title_text* in *namespace_name*.

    With ``persist`` the declarations found are stored for *page_id*, and
    cached HTML is invalidated wiki-wide if they differ from what was stored.
    """
    result, changed = await db.run_sync(
        _render_sync, namespace_name, title_text, page_id, content, fmt, section_preview, persist,
    )
    if changed:
        await invalidate_rendered(db)
    return result


async def invalidate_rendered(db: AsyncSession) -> None:
    """Drop every cached rendered HTML so pages re-render on next view."""
    await db.execute(update(PageVersion).values(rendered=None))
    log.info("Invalidated cached page HTML")


async def _store_render(db: AsyncSession, ns: Namespace, page: Page, ver: PageVersion) -> ParseResult:
    result = await render_content(
        db, ns.name, page.title, ver.content, ver.format, page_id=page.id, persist=True,
    )
    ver.rendered = result.html
    await db.flush()
    return result


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# CRUD
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

async def create_page(
    db: AsyncSession,
    namespace_name: str,
    data: PageCreate,
) -> tuple[Page, PageVersion, ParseResult]:
    ns = await get_namespace_by_name(db, namespace_name)
    title = _clean_title(data.title)
    slug = slugify(title)
    await _ensure_unique_slug(db, ns, slug, title)

    page = Page(namespace_id=ns.id, title=title, slug=slug)
    db.add(page)
    await db.flush()

    version = PageVersion(
        page_id=page.id,
        version=1,
        content=data.content,
        format=data.format or ns.default_format,
        comment=data.comment or "Initial version",
    )
    db.add(version)
    await db.flush()

    # Links elsewhere to this title stop being red links
    await invalidate_rendered(db)
    result = await _store_render(db, ns, page, version)
    return page, version, result


# -----------------------------------------------------------------------------

async def get_page(
    db: AsyncSession,
    namespace_name: str,
    slug: str,
    version: Optional[int] = None,
) -> tuple[Namespace, Page, PageVersion]:
    """Return (namespace, page, version_row). Defaults to latest version."""
    ns = await get_namespace_by_name(db, namespace_name)
    page = await _get_page(db, ns.id, slug)

    if version is not None:
        result = await db.execute(
            select(PageVersion)
            .where(PageVersion.page_id == page.id, PageVersion.version == version)
        )
        ver = result.scalar_one_or_none()
        if not ver:
            raise HTTPException(status_code=404, detail=f"Version {version} not found")
    else:
        ver = await _latest_version(db, page.id)
        if not ver:
            raise HTTPException(status_code=404, detail="Page has no content")

    return ns, page, ver


# -----------------------------------------------------------------------------

async def update_page(
    db: AsyncSession,
    namespace_name: str,
    slug: str,
    data: PageUpdate,
) -> tuple[Page, PageVersion, ParseResult]:
    ns = await get_namespace_by_name(db, namespace_name)
    page = await _get_page(db, ns.id, slug)

    next_ver = await _next_version_number(db, page.id)
    prev = await _latest_version(db, page.id)
    if prev:
        prev.rendered = None   # invalidate cache

    new_version = PageVersion(
        page_id=page.id,
        version=next_ver,
        content=data.content,
        format=data.format or (prev.format if prev else ns.default_format),
        comment=data.comment or "",
    )
    db.add(new_version)
    await db.flush()

    result = await _store_render(db, ns, page, new_version)
    return page, new_version, result


# -----------------------------------------------------------------------------

async def rename_page(
    db: AsyncSession,
    namespace_name: str,
    slug: str,
    data: PageRename,
) -> Page:
    ns = await get_namespace_by_name(db, namespace_name)
    page = await _get_page(db, ns.id, slug)

    old_title = page.title
    new_title = _clean_title(data.new_title)
    new_slug  = slugify(new_title)
    if new_title == old_title:
        return page
    if new_slug != page.slug:
        await _ensure_unique_slug(db, ns, new_slug, new_title)

    page.title = new_title
    page.slug  = new_slug

    # Record the rename as a new version so it appears in history
    last_ver = await _latest_version(db, page.id)
    comment = f"Renamed from '{old_title}' to '{new_title}'"
    if data.reason.strip():
        comment += f": {data.reason.strip()}"
    rename_ver = PageVersion(
        page_id=page.id,
        version=await _next_version_number(db, page.id),
        content=last_ver.content if last_ver else "",
        format=last_ver.format if last_ver else ns.default_format,
        comment=comment,
    )
    db.add(rename_ver)
    await db.flush()

    # Both the old and the new title changed existence
    await invalidate_rendered(db)
    await _store_render(db, ns, page, rename_ver)
    return page


# -----------------------------------------------------------------------------

async def delete_page(
    db: AsyncSession,
    namespace_name: str,
    slug: str,
) -> None:
    ns = await get_namespace_by_name(db, namespace_name)
    page = await _get_page(db, ns.id, slug)
    page_id = page.id

    await db.run_sync(lambda session: SqlFormatStore(session).delete_all(page_id))
    await db.delete(page)
    await db.flush()
    await invalidate_rendered(db)
    log.info("Deleted page %s:%s and its default links", ns.name, page.title)


# -----------------------------------------------------------------------------

async def list_pages(
    db: AsyncSession,
    namespace_name: str,
    skip: int = 0,
    limit: int = 100,
    search: Optional[str] = None,
) -> list[dict]:
    """Return lightweight summaries (no content body)."""
    ns = await get_namespace_by_name(db, namespace_name)

    max_ver_sub = (
        select(
            PageVersion.page_id,
            func.max(PageVersion.version).label("max_ver"),
        )
        .group_by(PageVersion.page_id)
        .subquery()
    )

    q = (
        select(Page, PageVersion)
        .join(max_ver_sub, Page.id == max_ver_sub.c.page_id)
        .join(
            PageVersion,
            (PageVersion.page_id == Page.id) &
            (PageVersion.version == max_ver_sub.c.max_ver),
        )
        .where(Page.namespace_id == ns.id)
        .order_by(Page.title)
        .offset(skip)
        .limit(limit)
    )

    if search:
        q = q.where(Page.title.ilike(f"%{search}%"))

    result = await db.execute(q)

    return [
        {
            "id":         p.id,
            "namespace":  ns.name,
            "title":      p.title,
            "slug":       p.slug,
            "version":    v.version,
            "format":     v.format,
            "updated_at": v.created_at,
        }
        for p, v in result.all()
    ]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Declared default links
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

async def get_default_links(
    db: AsyncSession,
    namespace_name: str,
    slug: str,
) -> dict:
    """Return the formats the page has stored for links pointing at it."""
    ns = await get_namespace_by_name(db, namespace_name)
    page = await _get_page(db, ns.id, slug)

    result = await db.execute(
        select(PageProp.name, PageProp.value)
        .where(PageProp.page_id == page.id, PageProp.name.in_(DEFAULT_LINK_PROPS))
    )
    props = dict(result.all())

    return {
        "namespace":      ns.name,
        "title":          page.title,
        "default_link":   props.get(PRIMARY_PROP),
        "fragment_links": dict(decode_fragment_formats(props.get(FRAGMENTS_PROP, ""))),
    }


# -----------------------------------------------------------------------------
