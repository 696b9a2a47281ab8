#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Render endpoint — live preview for the editor.

GET /api/v1/render?content=...&format=wikitext&namespace=Main&title=Page

Previews never store declarations.  ``section_preview`` renders as if only
one section of *title* were being edited, so links to the page's own
sections fall back to what is stored for it.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from defaultlinks.core.config import get_settings
from defaultlinks.core.database import get_db
from defaultlinks.schemas import CONTENT_FORMATS, RenderResponse
from defaultlinks.services.namespaces import get_namespace_by_name
from defaultlinks.services.pages import render_content
from defaultlinks.services.titles import normalize_title_text


# -----------------------------------------------------------------------------

router = APIRouter(prefix="/render", tags=["render"])


# -----------------------------------------------------------------------------

@router.get("", response_model=RenderResponse)
async def render_preview(
    content:         str  = Query(default="", max_length=1_000_000),
    format:          str  = Query(default="wikitext"),
    namespace:       str  = Query(default=""),
    title:           str  = Query(default="", max_length=255),
    section_preview: bool = Query(default=False),
    db:              AsyncSession = Depends(get_db),
):
    """Return rendered HTML and warnings for a snippet of wikitext or Markdown."""
    if format not in CONTENT_FORMATS:
        raise HTTPException(status_code=422, detail=f"Unknown format '{format}'")
    ns = await get_namespace_by_name(db, namespace or get_settings().default_namespace)
    result = await render_content(
        db, ns.name, normalize_title_text(title), content, format,
        section_preview=section_preview,
    )
    return {"html": result.html, "format": format, "warnings": result.output.warnings}


# -----------------------------------------------------------------------------
