#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Alembic environment for DefaultLinks Wiki.

* Takes the database URL from the app Settings (DATABASE_URL or .env).
* Runs through the async engine, the same one the app uses.
* SQLite cannot ALTER most things in place, so migrations there run in
  batch mode (copy-and-move tables).
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import asyncio
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from alembic import context

from defaultlinks.core.config import get_settings
from defaultlinks.core.database import Base
import defaultlinks.models.models  # noqa: F401  registers the ORM models on Base


# -----------------------------------------------------------------------------

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

database_url = get_settings().database_url
config.set_main_option("sqlalchemy.url", database_url)

target_metadata = Base.metadata
_batch = database_url.startswith("sqlite")


# ── Offline mode: emit SQL without connecting ─────────────────────────────────

def run_migrations_offline() -> None:
    context.configure(
        url=database_url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=_batch,
    )
    with context.begin_transaction():
        context.run_migrations()


# ── Online mode ──────────────────────────────────────────────────────────────

def _migrate(connection: Connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_type=True,
        render_as_batch=_batch,
    )
    with context.begin_transaction():
        context.run_migrations()


async def _migrate_async() -> None:
    engine = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    async with engine.connect() as connection:
        await connection.run_sync(_migrate)
    await engine.dispose()


# -----------------------------------------------------------------------------

if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(_migrate_async())
