#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Pages router
============
GET    /api/v1/namespaces/{ns}/pages                       — list pages
POST   /api/v1/namespaces/{ns}/pages                       — create page
GET    /api/v1/namespaces/{ns}/pages/{slug}                — get latest (rendered)
GET    /api/v1/namespaces/{ns}/pages/{slug}/raw            — get raw source
GET    /api/v1/namespaces/{ns}/pages/{slug}/defaultlinks   — declared default links
PUT    /api/v1/namespaces/{ns}/pages/{slug}                — save new version
POST   /api/v1/namespaces/{ns}/pages/{slug}/rename         — rename page
DELETE /api/v1/namespaces/{ns}/pages/{slug}                — delete page
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from defaultlinks.core.database import get_db
from defaultlinks.schemas import (
    DefaultLinksResponse, OKResponse,
    PageCreate, PageRename, PageResponse,
    PageSummary, PageUpdate,
)
from defaultlinks.services import pages as page_svc
from defaultlinks.services.renderer import is_cache_valid


# -----------------------------------------------------------------------------

router = APIRouter(prefix="/namespaces/{namespace_name}/pages", tags=["pages"])


# ── List ─────────────────────────────────────────────────────────────────────

@router.get("", response_model=list[PageSummary])
async def list_pages(
    namespace_name: str,
    skip:   int          = Query(0, ge=0),
    limit:  int          = Query(100, ge=1, le=500),
    search: Optional[str] = Query(None, max_length=256),
    db: AsyncSession     = Depends(get_db),
):
    return await page_svc.list_pages(db, namespace_name, skip=skip, limit=limit, search=search)


# ── Create ────────────────────────────────────────────────────────────────────

@router.post("", response_model=PageResponse, status_code=201)
async def create_page(
    namespace_name: str,
    data: PageCreate,
    db: AsyncSession = Depends(get_db),
):
    page, ver, result = await page_svc.create_page(db, namespace_name, data)
    return _page_response(namespace_name, page, ver, result.html, result.output.warnings)


# ── Read ──────────────────────────────────────────────────────────────────────

@router.get("/{slug}", response_model=PageResponse)
async def get_page(
    namespace_name: str,
    slug: str,
    version: Optional[int] = Query(None, ge=1),
    render_html: bool      = Query(True, alias="render"),
    db: AsyncSession       = Depends(get_db),
):
    ns, page, ver = await page_svc.get_page(db, namespace_name, slug, version=version)

    rendered = None
    warnings: list[str] = []
    if render_html:
        cacheable = version is None
        if cacheable and is_cache_valid(ver.rendered):
            rendered = ver.rendered
        else:
            # Old versions are previewed; only the latest stores declarations
            result = await page_svc.render_content(
                db, ns.name, page.title, ver.content, ver.format, page_id=page.id,
                persist=cacheable,
            )
            rendered, warnings = result.html, result.output.warnings
            if cacheable:
                ver.rendered = rendered

    return _page_response(ns.name, page, ver, rendered, warnings)


# ── Raw source ────────────────────────────────────────────────────────────────

@router.get("/{slug}/raw")
async def get_page_raw(
    namespace_name: str,
    slug: str,
    version: Optional[int] = Query(None, ge=1),
    db: AsyncSession       = Depends(get_db),
):
    """Return raw wikitext / Markdown source as plain text."""
    _, _, ver = await page_svc.get_page(db, namespace_name, slug, version=version)
    return Response(content=ver.content, media_type="text/plain; charset=utf-8")


# ── Default links ─────────────────────────────────────────────────────────────

@router.get("/{slug}/defaultlinks", response_model=DefaultLinksResponse)
async def get_default_links(
    namespace_name: str,
    slug: str,
    db: AsyncSession = Depends(get_db),
):
    return await page_svc.get_default_links(db, namespace_name, slug)


# ── Update ────────────────────────────────────────────────────────────────────

@router.put("/{slug}", response_model=PageResponse)
async def update_page(
    namespace_name: str,
    slug: str,
    data: PageUpdate,
    db: AsyncSession = Depends(get_db),
):
    page, ver, result = await page_svc.update_page(db, namespace_name, slug, data)
    return _page_response(namespace_name, page, ver, result.html, result.output.warnings)


# ── Rename ────────────────────────────────────────────────────────────────────

@router.post("/{slug}/rename", response_model=OKResponse)
async def rename_page(
    namespace_name: str,
    slug: str,
    data: PageRename,
    db: AsyncSession = Depends(get_db),
):
    page = await page_svc.rename_page(db, namespace_name, slug, data)
    return OKResponse(message=f"Page renamed to '{page.title}' (slug: '{page.slug}')")


# ── Delete ────────────────────────────────────────────────────────────────────

@router.delete("/{slug}", response_model=OKResponse)
async def delete_page(
    namespace_name: str,
    slug: str,
    db: AsyncSession = Depends(get_db),
):
    await page_svc.delete_page(db, namespace_name, slug)
    return OKResponse(message=f"Page '{slug}' deleted")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Response builders
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def _page_response(namespace_name, page, ver, rendered, warnings) -> dict:
    return {
        "id":         page.id,
        "namespace":  namespace_name,
        "title":      page.title,
        "slug":       page.slug,
        "version":    ver.version,
        "content":    ver.content,
        "format":     ver.format,
        "rendered":   rendered,
        "warnings":   list(warnings),
        "comment":    ver.comment,
        "created_at": page.created_at,
        "updated_at": ver.created_at,
    }


# -----------------------------------------------------------------------------
