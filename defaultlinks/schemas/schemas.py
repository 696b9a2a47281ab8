#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Pydantic v2 schemas for request validation and response serialisation.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Shared
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class OKResponse(BaseModel):
    ok: bool = True
    message: str = "success"


CONTENT_FORMATS = {"markdown", "wikitext"}


def _check_format(v: str | None, field: str = "format") -> str | None:
    if v is not None and v not in CONTENT_FORMATS:
        raise ValueError(f"{field} must be one of: {', '.join(sorted(CONTENT_FORMATS))}")
    return v


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Namespaces
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class NamespaceCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=128, pattern=r"^[A-Za-z][A-Za-z0-9_-]*$")
    description: str = Field(default="", max_length=1000)
    default_format: str = Field(default="wikitext")

    @field_validator("default_format")
    @classmethod
    def valid_format(cls, v: str) -> str:
        return _check_format(v, "default_format")


# -----------------------------------------------------------------------------

class NamespaceUpdate(BaseModel):
    description: Optional[str] = Field(None, max_length=1000)
    default_format: Optional[str] = None

    @field_validator("default_format")
    @classmethod
    def valid_format(cls, v: str | None) -> str | None:
        return _check_format(v, "default_format")


# -----------------------------------------------------------------------------

class NamespaceResponse(BaseModel):
    id: str
    name: str
    description: str
    default_format: str
    page_count: Optional[int] = None
    created_at: datetime

    model_config = {"from_attributes": True}


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Pages
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class PageCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(default="", max_length=10_000_000)
    format: Optional[str] = None
    comment: str = Field(default="", max_length=512)

    @field_validator("format")
    @classmethod
    def valid_format(cls, v: str | None) -> str | None:
        return _check_format(v)


# -----------------------------------------------------------------------------

class PageUpdate(BaseModel):
    content: str = Field(..., max_length=10_000_000)
    format: Optional[str] = None
    comment: str = Field(default="", max_length=512)

    @field_validator("format")
    @classmethod
    def valid_format(cls, v: str | None) -> str | None:
        return _check_format(v)


# -----------------------------------------------------------------------------

class PageRename(BaseModel):
    new_title: str = Field(..., min_length=1, max_length=255)
    reason: str = Field(default="", max_length=512)


# -----------------------------------------------------------------------------

class PageResponse(BaseModel):
    id: str
    namespace: str
    title: str
    slug: str
    version: int
    content: str
    format: str
    rendered: Optional[str]
    warnings: list[str] = []
    comment: str
    created_at: datetime
    updated_at: datetime


# -----------------------------------------------------------------------------

class PageSummary(BaseModel):
    """Lightweight listing item — no content body."""
    id: str
    namespace: str
    title: str
    slug: str
    version: int
    format: str
    updated_at: datetime


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Default links
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class DefaultLinksResponse(BaseModel):
    """Formats a page has declared for links pointing at it."""
    namespace: str
    title: str
    default_link: Optional[str] = None
    fragment_links: dict[str, str] = {}


# -----------------------------------------------------------------------------

class RenderResponse(BaseModel):
    html: str
    format: str
    warnings: list[str] = []
