#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Default link declarations
=========================
``{{DEFAULTLINK:[[Page|display]]|for page|silent}}`` on *Page* declares how
bare ``[[Page]]`` links elsewhere on the wiki should be written.

  link      — markup containing a link to the declaring page
  for page  — optional; ``#fragment`` or ``Page#fragment`` scopes the
              declaration to links pointing at that section.  A declaration
              naming some other page is ignored, so a shared template can
              emit declarations for many pages at once.
  silent    — the literal word ``silent``; suppresses error output
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import re
from typing import Optional
from urllib.parse import unquote_plus

from defaultlinks.core.errors import (
    DisallowedNamespace,
    DuplicateDeclaration,
    InvalidLinkSyntax,
    InvalidTargetPage,
)
from .format_store import FRAGMENTS_PROP, PRIMARY_PROP, encode_fragment_formats
from .titles import Title, TitleResolver, fragment_key


# -----------------------------------------------------------------------------

_HAS_LINK_RE  = re.compile(r"\[\[.*\]\]", re.DOTALL)
_LINKS_RE     = re.compile(r"\[\[\s*([^|\]]*)(.*?)\]\]", re.DOTALL)
_FILE_LINK_RE = re.compile(r"\|\s*link=\s*([^|\]]+)")


def decode_percent(text: str) -> str:
    """URL-decode *text*, escaping any angle brackets the decoding produced."""
    return unquote_plus(text).replace("<", "&lt;").replace(">", "&gt;")


# -----------------------------------------------------------------------------

class PageOutput:
    """Everything a render of one page produces besides its HTML."""

    def __init__(self):
        self.default_link: Optional[str] = None
        self.fragment_links: dict[str, str] = {}
        self.warnings: list[str] = []

    def add_warning(self, warning: str) -> None:
        if warning not in self.warnings:
            self.warnings.append(warning)

    def properties(self) -> dict[str, str]:
        """Page properties to persist once the render is complete."""
        props: dict[str, str] = {}
        if self.default_link is not None:
            props[PRIMARY_PROP] = self.default_link
        if self.fragment_links:
            props[FRAGMENTS_PROP] = encode_fragment_formats(self.fragment_links)
        return props


# -----------------------------------------------------------------------------

class DeclarationParser:

    def __init__(self, titles: TitleResolver):
        self.titles = titles

    def parse(
        self,
        link: str,
        for_page: str,
        page: Title,
        output: PageOutput,
        silent: bool = False,
    ) -> None:
        """
        Register *link* as a default link of *page* in *output*.

        Raises a ``DeclarationError`` subclass for malformed or conflicting
        declarations.  The first primary declaration of a page is kept.
        """
        has_links = self.titles.has_formatting_capability(page.namespace)
        if silent and not has_links:
            return

        this_title = page.prefixed_name
        fragment = ""
        for_page = for_page.strip()
        if "%" in for_page:
            for_page = decode_percent(for_page)

        if for_page:
            for_title = self.titles.resolve(for_page)
            if for_title is None:
                raise InvalidTargetPage()
            if for_title.prefixed_name not in ("", this_title):
                return
            fragment = for_title.fragment.replace("\n", "")

        link = link.strip()
        if not _HAS_LINK_RE.search(link):
            raise InvalidLinkSyntax()
        link = link.replace("\n", "")

        for m in _LINKS_RE.finditer(link):
            target, rest = m.group(1), m.group(2)
            title = self.titles.resolve(target)
            if title is None:
                continue
            target_title = title.prefixed_name
            if self.titles.is_file_namespace(title.namespace) and not target.startswith(":"):
                file_link = _FILE_LINK_RE.search(rest)
                if file_link:
                    link_title = self.titles.resolve(file_link.group(1))
                    if link_title is not None:
                        target_title = link_title.prefixed_name

            if target_title != this_title:
                continue
            if not has_links:
                raise DisallowedNamespace()
            if fragment:
                output.fragment_links[fragment_key(fragment)] = link
            elif output.default_link is None:
                output.default_link = link
            elif output.default_link.strip() != link.strip():
                raise DuplicateDeclaration(output.default_link, link)
            return


# -----------------------------------------------------------------------------
