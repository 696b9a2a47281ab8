#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
DefaultLinks Wiki — FastAPI application factory
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from defaultlinks.core.config import get_settings
from defaultlinks.core.database import create_all_tables, get_session_factory, init_db
from defaultlinks.routes import namespaces, pages, render
from defaultlinks.services.namespaces import ensure_namespaces

log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    init_db()
    await create_all_tables()   # safe: CREATE TABLE IF NOT EXISTS
    await _seed_defaults()
    yield


# -----------------------------------------------------------------------------

async def _seed_defaults() -> None:
    """Create the default namespace and the default-link namespaces on first run."""
    settings = get_settings()
    names = dict.fromkeys([settings.default_namespace, *settings.default_links_namespaces])

    async with get_session_factory()() as session:
        try:
            await ensure_namespaces(session, names)
            await session.commit()
        except Exception:
            await session.rollback()
            log.exception("Could not seed default namespaces")


# -----------------------------------------------------------------------------

def create_app() -> FastAPI:
    settings = get_settings()
    logging.getLogger("defaultlinks").setLevel(settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="A MediaWiki-flavoured wiki where pages declare how links to them are written.",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
        lifespan=lifespan,
    )

    # ── CORS ──────────────────────────────────────────────────────────────

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── API routers ───────────────────────────────────────────────────────

    prefix = "/api/v1"

    app.include_router(namespaces.router, prefix=prefix)
    app.include_router(pages.router,      prefix=prefix)
    app.include_router(render.router,     prefix=prefix)

    # ── Global exception handlers ─────────────────────────────────────────

    @app.exception_handler(500)
    async def server_error(request: Request, exc):
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )

    # ── Health check ──────────────────────────────────────────────────────

    @app.get("/api/health", tags=["system"])
    async def health():
        return {"status": "ok", "version": settings.app_version, "app": settings.app_name}

    return app


# -----------------------------------------------------------------------------

app = create_app()


# -----------------------------------------------------------------------------
