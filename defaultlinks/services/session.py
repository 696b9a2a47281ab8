#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Render session
==============
Per-worker state for default links: the format cache and the suppression
tracker, plus the four call sites a host renderer invokes:

  before_parse          — page-wide ``__NODEFAULTLINKS__`` detection
  declaration_function  — ``{{DEFAULTLINK:...}}``
  no_default_links      — ``<nodefaultlinks>...</nodefaultlinks>``
  rewrite_links         — replaces bare links in nearly-final markup

A session must not be shared between concurrent renders.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Sequence

from defaultlinks.core.errors import DeclarationError, LimitExceeded
from .declarations import DeclarationParser, PageOutput
from .format_cache import FormatCache
from .format_store import FormatStore
from .resolution import ResolutionEngine
from .scanner import LinkScanner
from .substitution import IncludeSizeBudget, SubstitutionEngine
from .suppression import SuppressionTracker
from .titles import Title, TitleResolver

log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

NO_DEFAULT_LINKS = "__NODEFAULTLINKS__"
SILENT_WORD = "silent"
LIMIT_WARNING = "post-expand-template-inclusion"

_NOWIKI_RE = re.compile(r"<nowiki>.*?</nowiki>", re.IGNORECASE | re.DOTALL)


# -----------------------------------------------------------------------------

@dataclass(eq=False)
class RenderOptions:
    """Options of one render; suppression is keyed on the object itself."""
    is_section_preview: bool = False


@dataclass
class RenderContext:
    title: Title
    options: RenderOptions
    budget: IncludeSizeBudget
    output: PageOutput = field(default_factory=PageOutput)


# -----------------------------------------------------------------------------

class RenderSession:

    def __init__(self, titles: TitleResolver, store: FormatStore):
        self.titles = titles
        self.store = store
        self.cache = FormatCache()
        self.suppression = SuppressionTracker()
        self.declarations = DeclarationParser(titles)
        self.scanner = LinkScanner()
        self.resolver = ResolutionEngine(titles, store, self.cache)
        self.substitution = SubstitutionEngine()
        self._rewriting = False

    # ── pre-processing ────────────────────────────────────────────────────

    def before_parse(self, text: str, options: RenderOptions) -> None:
        if NO_DEFAULT_LINKS in _NOWIKI_RE.sub("", text):
            self.suppression.suppress(options)

    # ── {{DEFAULTLINK:link|for page|silent}} ──────────────────────────────

    def declaration_function(self, args: Sequence[str], ctx: RenderContext) -> str:
        link = args[0] if args else ""
        for_page = args[1] if len(args) > 1 else ""
        silent = len(args) > 2 and args[2].strip().lower() == SILENT_WORD
        try:
            self.declarations.parse(link, for_page, ctx.title, ctx.output, silent=silent)
        except DeclarationError as exc:
            return "" if silent else exc.to_html()
        return ""

    # ── <nodefaultlinks> ──────────────────────────────────────────────────

    def no_default_links(
        self,
        inner: str,
        ctx: RenderContext,
        parse: Callable[[str], str],
    ) -> str:
        with self.suppression.scoped(ctx.options):
            return parse(inner)

    # ── link rewriting ────────────────────────────────────────────────────

    def rewrite_links(
        self,
        text: str,
        ctx: RenderContext,
        sanitize: Callable[[str], str] | None = None,
    ) -> str:
        if self._rewriting:
            return text
        if NO_DEFAULT_LINKS in text:
            self.suppression.suppress(ctx.options)
            return text.replace(NO_DEFAULT_LINKS, "")
        if self.suppression.is_suppressed(ctx.options):
            log.debug("Default links suppressed while rendering %s", ctx.title.prefixed_name)
            return text

        self._rewriting = True
        try:
            plan = self.resolver.resolve(
                self.scanner.scan(text),
                ctx.title,
                ctx.output.default_link,
                ctx.output.fragment_links,
                ctx.options.is_section_preview,
            )
            new_text, _ = self.substitution.apply(text, plan, ctx.budget, sanitize)
        except LimitExceeded as exc:
            log.warning("Default links on %s not applied: %s", ctx.title.prefixed_name, exc)
            ctx.output.add_warning(LIMIT_WARNING)
            return text
        finally:
            self._rewriting = False
        return new_text


# -----------------------------------------------------------------------------
