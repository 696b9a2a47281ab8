#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Namespace service — create, read, list, update and delete wiki namespaces.

Namespace names double as title prefixes (``Help:Page``) so lookups ignore
case, the same way link targets do.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from typing import Iterable

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from defaultlinks.models import Namespace, Page
from defaultlinks.schemas import NamespaceCreate, NamespaceUpdate

log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

async def _find(db: AsyncSession, name: str) -> Namespace | None:
    result = await db.execute(
        select(Namespace).where(func.lower(Namespace.name) == name.lower())
    )
    return result.scalar_one_or_none()


# -----------------------------------------------------------------------------

async def create_namespace(db: AsyncSession, data: NamespaceCreate) -> Namespace:
    if await _find(db, data.name):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Namespace '{data.name}' already exists",
        )

    ns = Namespace(
        name=data.name,
        description=data.description,
        default_format=data.default_format,
    )
    db.add(ns)
    await db.flush()
    return ns


# -----------------------------------------------------------------------------

async def ensure_namespaces(db: AsyncSession, names: Iterable[str]) -> list[Namespace]:
    """Create any of *names* that do not exist yet.  Used at startup."""
    created = []
    for name in names:
        if await _find(db, name) is None:
            ns = Namespace(name=name, description="", default_format="wikitext")
            db.add(ns)
            created.append(ns)
    if created:
        await db.flush()
        log.info("Created namespace(s): %s", ", ".join(ns.name for ns in created))
    return created


# -----------------------------------------------------------------------------

async def get_namespace_by_name(db: AsyncSession, name: str) -> Namespace:
    ns = await _find(db, name)
    if not ns:
        raise HTTPException(status_code=404, detail=f"Namespace '{name}' not found")
    return ns


# -----------------------------------------------------------------------------

async def list_namespaces(db: AsyncSession, skip: int = 0, limit: int = 100) -> list[Namespace]:
    result = await db.execute(
        select(Namespace).order_by(Namespace.name).offset(skip).limit(limit)
    )
    return list(result.scalars().all())


# -----------------------------------------------------------------------------

async def update_namespace(db: AsyncSession, name: str, data: NamespaceUpdate) -> Namespace:
    ns = await get_namespace_by_name(db, name)
    if data.description is not None:
        ns.description = data.description
    if data.default_format is not None:
        ns.default_format = data.default_format
    await db.flush()
    return ns


# -----------------------------------------------------------------------------

async def delete_namespace(db: AsyncSession, name: str) -> None:
    ns = await get_namespace_by_name(db, name)
    if await get_page_count(db, ns.id) > 0:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Cannot delete a namespace that contains pages",
        )
    await db.delete(ns)
    await db.flush()


# -----------------------------------------------------------------------------

async def get_page_count(db: AsyncSession, ns_id: str) -> int:
    result = await db.execute(
        select(func.count()).select_from(Page).where(Page.namespace_id == ns_id)
    )
    return result.scalar_one()


# -----------------------------------------------------------------------------
