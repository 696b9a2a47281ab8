#!/usr/bin/env python
#
#
# ----------------------------------------------------------------------------
"""
ORM Models
==========

Tables
------
namespaces      — wiki namespaces (like MediaWiki namespaces)
pages           — wiki pages within a namespace
page_versions   — append-only version history (one row per save)
page_props      — per-page properties; holds declared default link text

Page and namespace keys are UUIDs.  Timestamps stored in UTC.
"""
# ----------------------------------------------------------------------------

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    DateTime, ForeignKey, Index, Integer,
    String, Text, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from defaultlinks.core.database import Base


# ----------------------------------------------------------------------------

def _uuid_col(primary_key=False, nullable=False, **kw):
    """UUID column stored as String(36) — works for both SQLite and PostgreSQL."""
    return mapped_column(
        String(36),
        primary_key=primary_key,
        nullable=nullable,
        default=lambda: str(uuid.uuid4()),
        **kw,
    )


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# namespaces
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class Namespace(Base):
    """
    Wiki namespace (Main, Help, Template, ...).  Titles in the configured
    default namespace carry no prefix; all others are written ``Name:Title``.
    """
    __tablename__ = "namespaces"

    id:             Mapped[str]        = _uuid_col(primary_key=True)
    name:           Mapped[str]        = mapped_column(String(128), unique=True, nullable=False, index=True)
    description:    Mapped[str]        = mapped_column(Text, default="", nullable=False)
    default_format: Mapped[str]        = mapped_column(String(16), default="wikitext", nullable=False)
    created_at:     Mapped[datetime]   = mapped_column(DateTime(timezone=True), default=_utcnow)

    pages: Mapped[list["Page"]] = relationship(back_populates="namespace", cascade="all, delete-orphan")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# pages
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class Page(Base):
    __tablename__ = "pages"
    __table_args__ = (
        UniqueConstraint("namespace_id", "slug", name="uq_pages_ns_slug"),
        Index("ix_pages_ns_title", "namespace_id", "title"),
    )

    id:           Mapped[str]        = _uuid_col(primary_key=True)
    namespace_id: Mapped[str]        = mapped_column(String(36), ForeignKey("namespaces.id", ondelete="CASCADE"), nullable=False, index=True)
    # Normalised title text without the namespace prefix
    title:        Mapped[str]        = mapped_column(String(512), nullable=False)
    slug:         Mapped[str]        = mapped_column(String(512), nullable=False, index=True)
    created_at:   Mapped[datetime]   = mapped_column(DateTime(timezone=True), default=_utcnow)

    namespace:   Mapped["Namespace"]           = relationship(back_populates="pages")
    versions:    Mapped[list["PageVersion"]]   = relationship(
        back_populates="page",
        cascade="all, delete-orphan",
        order_by="PageVersion.version",
    )
    props:       Mapped[list["PageProp"]]      = relationship(back_populates="page", cascade="all, delete-orphan")

    @property
    def latest_version(self) -> "PageVersion | None":
        return self.versions[-1] if self.versions else None


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# page_versions  (append-only)
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class PageVersion(Base):
    __tablename__ = "page_versions"
    __table_args__ = (
        UniqueConstraint("page_id", "version", name="uq_page_versions_page_ver"),
    )

    id:         Mapped[str]        = _uuid_col(primary_key=True)
    page_id:    Mapped[str]        = mapped_column(String(36), ForeignKey("pages.id", ondelete="CASCADE"), nullable=False, index=True)
    version:    Mapped[int]        = mapped_column(Integer, nullable=False)
    content:    Mapped[str]        = mapped_column(Text, nullable=False, default="")
    # "wikitext" or "markdown" — stored per-version so format can change over time
    format:     Mapped[str]        = mapped_column(String(16), nullable=False, default="wikitext")
    # Cached rendered HTML; cleared on save and whenever declared links change
    rendered:   Mapped[str | None] = mapped_column(Text, nullable=True)
    comment:    Mapped[str]        = mapped_column(String(512), default="", nullable=False)
    created_at: Mapped[datetime]   = mapped_column(DateTime(timezone=True), default=_utcnow)

    page: Mapped["Page"] = relationship(back_populates="versions")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# page_props
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class PageProp(Base):
    """
    Generic (page, property name) → value store.  Rewritten in full each time
    the owning page is saved; read in batches while other pages render.
    """
    __tablename__ = "page_props"

    page_id: Mapped[str] = mapped_column(String(36), ForeignKey("pages.id", ondelete="CASCADE"), primary_key=True)
    name:    Mapped[str] = mapped_column(String(64), primary_key=True)
    value:   Mapped[str] = mapped_column(Text, nullable=False, default="")

    page: Mapped["Page"] = relationship(back_populates="props")
