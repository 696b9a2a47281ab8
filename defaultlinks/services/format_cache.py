#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Format cache
============
In-process memory of default links already resolved during a render session.

Keys are ``CacheKey(page_id)`` for a page's primary format and
``CacheKey(page_id, fragment)`` for a fragment format; the two never alias.
A bare key may hold ``NOT_FOUND`` once a batched read has shown the page
declares no primary format.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from typing import Iterable, NamedTuple, Optional, Union

from .format_store import FRAGMENTS_PROP, PRIMARY_PROP, PropRow, decode_fragment_formats
from .titles import fragment_key


# -----------------------------------------------------------------------------

class _NotFound:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NOT_FOUND"

    def __bool__(self) -> bool:
        return False


NOT_FOUND = _NotFound()

CachedFormat = Union[str, _NotFound]


# -----------------------------------------------------------------------------

class CacheKey(NamedTuple):
    page_id: Optional[str]
    fragment: Optional[str] = None

    def __str__(self) -> str:
        if self.fragment is None:
            return str(self.page_id)
        return f"{self.page_id}#{self.fragment}"


# -----------------------------------------------------------------------------

class FormatCache:

    def __init__(self):
        self._entries: dict[CacheKey, CachedFormat] = {}

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: CacheKey) -> Optional[CachedFormat]:
        return self._entries.get(key)

    def set(self, key: CacheKey, value: str) -> None:
        self._entries[key] = value

    def mark_missing(self, page_id: str) -> None:
        """Record that *page_id* was read and declares no primary format."""
        self._entries.setdefault(CacheKey(page_id), NOT_FOUND)

    def load(self, rows: Iterable[PropRow]) -> None:
        for row in rows:
            if row.name == FRAGMENTS_PROP:
                for fragment, text in decode_fragment_formats(row.value):
                    self._entries[CacheKey(row.page_id, fragment_key(fragment))] = text
            elif row.name == PRIMARY_PROP:
                self._entries[CacheKey(row.page_id)] = row.value


# -----------------------------------------------------------------------------
