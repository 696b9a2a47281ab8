#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Application configuration.

All values can be overridden via environment variables or a .env file.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from defaultlinks._version import __version__ as _pkg_version


# -----------------------------------------------------------------------------

class Settings(BaseSettings):

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Application ────────────────────────────────────────────────────────

    app_name: str = "DefaultLinks Wiki"
    app_version: str = _pkg_version
    base_url: str = "http://localhost:8000"
    environment: Literal["development", "testing", "production"] = "development"

    # ── Server ─────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    port: int = 8000
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # ── Database ───────────────────────────────────────────────────────────

    database_url: str = "sqlite+aiosqlite:///./defaultlinks.db"
    db_echo: bool = False

    # ── Wiki defaults ──────────────────────────────────────────────────────

    default_namespace: str = "Main"

    # ── Default links ──────────────────────────────────────────────────────

    # Namespaces whose pages may declare (and receive) default link text
    default_links_namespaces: list[str] = ["Main"]
    # Namespaces holding file/media pages; [[File:x.png|link=Page]] targets Page
    file_namespaces: list[str] = ["File", "Image"]
    # Post-expand growth allowed per render, in bytes
    max_include_size: int = 2 * 1024 * 1024

    # ── CORS ───────────────────────────────────────────────────────────────

    cors_origins: list[str] = [
        "http://localhost:8000",
        "http://localhost:3000",
    ]


# -----------------------------------------------------------------------------

@lru_cache
def get_settings() -> Settings:
    return Settings()


# -----------------------------------------------------------------------------
