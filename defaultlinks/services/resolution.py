#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Resolution engine
=================
Decides, for every scanned link, which declared default link replaces it.

Order of precedence per link:

  1. the page being rendered, for links to itself (its own declarations
     were parsed earlier in this same render)
  2. the session's ``FormatCache``
  3. one batched ``FormatStore`` read for everything still unknown

Pages that were read and declare no primary format are cached as
``NOT_FOUND`` so later links to them never trigger another read.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional

from .format_cache import NOT_FOUND, CacheKey, FormatCache
from .format_store import DEFAULT_LINK_PROPS, FormatStore
from .scanner import LinkOccurrence
from .titles import Title, TitleResolver, fragment_key

log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class PlanEntry:
    whole_text: str
    replacement: str


@dataclass
class ResolutionPlan:
    entries: list[PlanEntry] = field(default_factory=list)

    def add(self, whole_text: str, replacement: str) -> None:
        self.entries.append(PlanEntry(whole_text, replacement))

    def __iter__(self) -> Iterator[PlanEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


# -----------------------------------------------------------------------------

class ResolutionEngine:

    def __init__(self, titles: TitleResolver, store: FormatStore, cache: FormatCache):
        self.titles = titles
        self.store = store
        self.cache = cache

    def resolve(
        self,
        occurrences: Iterable[LinkOccurrence],
        page: Title,
        default_link: Optional[str] = None,
        fragment_links: Optional[dict[str, str]] = None,
        is_section_preview: bool = False,
    ) -> ResolutionPlan:
        fragment_links = fragment_links or {}
        plan = ResolutionPlan()
        lookup: dict[str, None] = {}           # ordered set of page ids
        pending: dict[str, CacheKey] = {}      # whole text -> key awaiting the read

        for occ in occurrences:
            title = self.titles.resolve(occ.target)
            if title is None or not self.titles.has_formatting_capability(title.namespace):
                continue
            is_self = title.prefixed_name in ("", page.prefixed_name)
            page_id = page.article_id if is_self else title.article_id
            fragment = fragment_key(title.fragment) if occ.fragment is not None else ""

            if fragment:
                key = CacheKey(page_id, fragment)
                if is_self and fragment in fragment_links:
                    self.cache.set(key, fragment_links[fragment])
                cached = self.cache.get(key)
                if cached is not None:
                    plan.add(occ.whole_text, cached)
                elif CacheKey(page_id) in self.cache or (is_self and not is_section_preview):
                    # Page already read, or our own declarations are authoritative
                    continue
                elif page_id is not None:
                    lookup[page_id] = None
                    pending[occ.whole_text] = key

            elif is_self and default_link is not None:
                plan.add(occ.whole_text, default_link)

            elif CacheKey(page_id) in self.cache:
                cached = self.cache.get(CacheKey(page_id))
                if cached is not NOT_FOUND:
                    plan.add(occ.whole_text, cached)

            elif (not is_self or is_section_preview) and page_id is not None:
                lookup[page_id] = None
                pending[occ.whole_text] = CacheKey(page_id)

        if lookup:
            self._read(lookup)
            for whole_text, key in pending.items():
                cached = self.cache.get(key)
                if cached is not None and cached is not NOT_FOUND:
                    plan.add(whole_text, cached)

        return plan

    def _read(self, page_ids: Iterable[str]) -> None:
        page_ids = list(page_ids)
        self.cache.load(self.store.batch_read(page_ids, DEFAULT_LINK_PROPS))
        for page_id in page_ids:
            self.cache.mark_missing(page_id)
        log.debug("Resolved default links for %d page(s); cache holds %d entries",
                  len(page_ids), len(self.cache))


# -----------------------------------------------------------------------------
