#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Namespaces router
=================
GET    /api/v1/namespaces                  — list namespaces
POST   /api/v1/namespaces                  — create namespace
GET    /api/v1/namespaces/{name}           — get namespace
PUT    /api/v1/namespaces/{name}           — update namespace
DELETE /api/v1/namespaces/{name}           — delete namespace (must be empty)
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from defaultlinks.core.database import get_db
from defaultlinks.schemas import NamespaceCreate, NamespaceResponse, NamespaceUpdate, OKResponse
from defaultlinks.services import namespaces as ns_svc


# -----------------------------------------------------------------------------

router = APIRouter(prefix="/namespaces", tags=["namespaces"])


def _ns_response(ns, page_count: int) -> dict:
    return {
        "id":             ns.id,
        "name":           ns.name,
        "description":    ns.description,
        "default_format": ns.default_format,
        "page_count":     page_count,
        "created_at":     ns.created_at,
    }


# -----------------------------------------------------------------------------

@router.get("", response_model=list[NamespaceResponse])
async def list_namespaces(
    skip:  int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    namespaces = await ns_svc.list_namespaces(db, skip=skip, limit=limit)
    return [_ns_response(ns, await ns_svc.get_page_count(db, ns.id)) for ns in namespaces]


# -----------------------------------------------------------------------------

@router.post("", response_model=NamespaceResponse, status_code=201)
async def create_namespace(data: NamespaceCreate, db: AsyncSession = Depends(get_db)):
    ns = await ns_svc.create_namespace(db, data)
    return _ns_response(ns, 0)


# -----------------------------------------------------------------------------

@router.get("/{name}", response_model=NamespaceResponse)
async def get_namespace(name: str, db: AsyncSession = Depends(get_db)):
    ns = await ns_svc.get_namespace_by_name(db, name)
    return _ns_response(ns, await ns_svc.get_page_count(db, ns.id))


# -----------------------------------------------------------------------------

@router.put("/{name}", response_model=NamespaceResponse)
async def update_namespace(
    name: str,
    data: NamespaceUpdate,
    db: AsyncSession = Depends(get_db),
):
    ns = await ns_svc.update_namespace(db, name, data)
    return _ns_response(ns, await ns_svc.get_page_count(db, ns.id))


# -----------------------------------------------------------------------------

@router.delete("/{name}", response_model=OKResponse)
async def delete_namespace(name: str, db: AsyncSession = Depends(get_db)):
    await ns_svc.delete_namespace(db, name)
    return OKResponse(message=f"Namespace '{name}' deleted")


# -----------------------------------------------------------------------------
