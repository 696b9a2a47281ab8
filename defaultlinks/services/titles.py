#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Title resolution
================
Turns raw link text (``Help:Some_page#Usage``) into a normalised ``Title``:
namespace, prefixed name, fragment and the id of the existing page, if any.

``TitleResolver`` holds the normalisation rules; subclasses only decide how
page ids are looked up.  ``SqlTitleResolver`` reads them from the pages table
through a synchronous SQLAlchemy session.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import html
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from defaultlinks.models import Namespace, Page


# -----------------------------------------------------------------------------

_SPACES_RE  = re.compile(r"[ _\u00a0]+")
_ILLEGAL_RE = re.compile(r"[\[\]{}|<>\x00-\x1f\x7f]")
MAX_TITLE_LENGTH = 255


def normalize_title_text(text: str) -> str:
    """Collapse spaces/underscores, trim, and upper-case the first letter."""
    text = _SPACES_RE.sub(" ", text).strip()
    return text[:1].upper() + text[1:]


def is_valid_title_text(text: str) -> bool:
    """True if *text* can name a page (``#`` would start a fragment)."""
    return (
        bool(text)
        and "#" not in text
        and not _ILLEGAL_RE.search(text)
        and len(text) <= MAX_TITLE_LENGTH
    )


def fragment_key(fragment: str) -> str:
    """Key under which a fragment's format is stored and looked up."""
    return fragment.strip().lower()


# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class Title:
    namespace: str
    text: str                          # title within the namespace, "" for "#frag"
    prefixed_name: str                 # "" for a fragment-only self link
    fragment: str = ""
    article_id: Optional[str] = None   # None when the page does not exist


# -----------------------------------------------------------------------------

class TitleResolver(ABC):
    """Normalises link text into titles.  Subclasses supply page ids."""

    def __init__(
        self,
        namespaces: Iterable[str],
        default_namespace: str = "Main",
        formatted_namespaces: Iterable[str] = ("Main",),
        file_namespaces: Iterable[str] = ("File", "Image"),
    ):
        self.default_namespace = default_namespace
        self.file_namespaces = set(file_namespaces)
        self._formatted = set(formatted_namespaces)
        self._by_lower = {n.lower(): n for n in (*namespaces, *file_namespaces)}
        self._by_lower.setdefault(default_namespace.lower(), default_namespace)

    # ── capability ────────────────────────────────────────────────────────

    def has_formatting_capability(self, namespace: str) -> bool:
        return namespace in self._formatted

    def is_file_namespace(self, namespace: str) -> bool:
        return namespace in self.file_namespaces

    # ── resolution ────────────────────────────────────────────────────────

    def resolve(self, text: str) -> Optional[Title]:
        """Return the normalised title for *text*, or None if it is invalid."""
        text = html.unescape(text)
        text = _SPACES_RE.sub(" ", text).strip()
        if text.startswith(":"):
            text = text[1:].lstrip()

        fragment = ""
        if "#" in text:
            text, fragment = text.split("#", 1)
            fragment = _SPACES_RE.sub(" ", fragment).strip()
            text = text.rstrip()

        namespace = self.default_namespace
        if ":" in text:
            prefix, rest = text.split(":", 1)
            canonical = self._by_lower.get(prefix.strip().lower())
            if canonical is not None:
                namespace = canonical
                text = rest.strip()

        if _ILLEGAL_RE.search(text) or len(text) > MAX_TITLE_LENGTH:
            return None
        if not text and (namespace != self.default_namespace or not fragment):
            return None

        text = normalize_title_text(text)
        if not text:
            prefixed = ""
        elif namespace == self.default_namespace:
            prefixed = text
        else:
            prefixed = f"{namespace}:{text}"

        return Title(
            namespace=namespace,
            text=text,
            prefixed_name=prefixed,
            fragment=fragment,
            article_id=self.article_id(namespace, text) if text else None,
        )

    @abstractmethod
    def article_id(self, namespace: str, text: str) -> Optional[str]:
        """Id of the existing page *text* in *namespace*, or None."""


# -----------------------------------------------------------------------------

class SqlTitleResolver(TitleResolver):
    """Looks page ids up in the pages table, memoising each title."""

    def __init__(self, db: Session, settings):
        rows = db.execute(select(Namespace.id, Namespace.name)).all()
        super().__init__(
            namespaces=[name for _, name in rows],
            default_namespace=settings.default_namespace,
            formatted_namespaces=settings.default_links_namespaces,
            file_namespaces=settings.file_namespaces,
        )
        self._db = db
        self._ns_ids = {name: ns_id for ns_id, name in rows}
        self._ids: dict[tuple[str, str], Optional[str]] = {}

    def article_id(self, namespace: str, text: str) -> Optional[str]:
        key = (namespace, text)
        if key not in self._ids:
            ns_id = self._ns_ids.get(namespace)
            if ns_id is None:
                self._ids[key] = None
            else:
                self._ids[key] = self._db.execute(
                    select(Page.id).where(Page.namespace_id == ns_id, Page.title == text)
                ).scalar_one_or_none()
        return self._ids[key]


# -----------------------------------------------------------------------------
