#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Markup renderer
===============
Renders wiki page content to HTML.

Supported formats:
  - wikitext  : a MediaWiki subset, converted here
  - markdown  : rendered via mistune

Before conversion the source goes through the default link pipeline:

  1. ``<nowiki>`` spans are set aside behind strip markers
  2. ``<nodefaultlinks>`` regions are parsed recursively with substitution
     suppressed, and set aside as well
  3. ``{{DEFAULTLINK:...}}`` calls register the page's declarations
  4. bare ``[[links]]`` are rewritten to their declared default link
  5. (wikitext) raw HTML is sanitised; declared link text always is

Strip markers are restored and the result converted to HTML.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import html
import re
from dataclasses import dataclass
from typing import Optional

from .declarations import PageOutput
from .session import RenderContext, RenderOptions, RenderSession
from .substitution import IncludeSizeBudget
from .titles import Title, TitleResolver


# Bump this whenever the render pipeline changes so stale cached HTML is
# automatically discarded and re-rendered on next page view.
RENDERER_VERSION = 1
_CACHE_STAMP = f'<!--rv:{RENDERER_VERSION}-->'

DEFAULT_MAX_INCLUDE_SIZE = 2 * 1024 * 1024


# -----------------------------------------------------------------------------
# Strip state
# -----------------------------------------------------------------------------

_MARKER_RE = re.compile("\x7fUNIQ-[0-9a-f]{8}-QINU\x7f")


class StripState:
    """Holds finished chunks of output that later passes must not touch."""

    def __init__(self):
        self._items: dict[str, str] = {}

    def add(self, text: str) -> str:
        marker = f"\x7fUNIQ-{len(self._items):08x}-QINU\x7f"
        self._items[marker] = text
        return marker

    def unstrip(self, text: str) -> str:
        # Stored chunks may themselves hold markers (nowiki inside a region)
        for _ in range(len(self._items) + 1):
            restored = _MARKER_RE.sub(lambda m: self._items.get(m.group(0), ""), text)
            if restored == text:
                break
            text = restored
        return text


# -----------------------------------------------------------------------------
# Sanitizer
# -----------------------------------------------------------------------------

_ALLOWED_TAGS = frozenset({
    "abbr", "b", "big", "br", "cite", "code", "del", "div", "em", "i", "ins",
    "kbd", "mark", "p", "q", "s", "small", "span", "strong", "sub", "sup", "u",
})
_ALLOWED_ATTRS = frozenset({"class", "id", "title", "lang", "dir", "style"})

_TAG_RE          = re.compile(r"<(/?)([A-Za-z][A-Za-z0-9]*)((?:\s[^<>]*?)?)\s*(/?)>")
_ATTR_RE         = re.compile(r"""([A-Za-z][\w:-]*)\s*=\s*("[^"]*"|'[^']*'|[^\s"'>]+)""")
_UNSAFE_VALUE_RE = re.compile(r"javascript:|expression\s*\(|url\s*\(", re.IGNORECASE)


def _clean_tag(m: re.Match) -> str:
    closing, name, attrs, self_closing = m.groups()
    name = name.lower()
    if name not in _ALLOWED_TAGS:
        return html.escape(m.group(0), quote=False)
    if closing:
        return f"</{name}>"
    kept = []
    for am in _ATTR_RE.finditer(attrs):
        attr  = am.group(1).lower()
        value = am.group(2).strip("\"'")
        if attr in _ALLOWED_ATTRS and not _UNSAFE_VALUE_RE.search(value):
            kept.append(f' {attr}="{html.escape(html.unescape(value))}"')
    return f"<{name}{''.join(kept)}{' /' if self_closing else ''}>"


def sanitize_html(text: str) -> str:
    """
    Escape tags outside the allow-list and drop unsafe attributes.

    Only complete, allowed tags survive; every other ``<`` is escaped so an
    unterminated tag cannot be closed by markup added later.
    """
    out: list[str] = []
    pos = 0
    for m in _TAG_RE.finditer(text):
        out.append(text[pos:m.start()].replace("<", "&lt;"))
        out.append(_clean_tag(m))
        pos = m.end()
    out.append(text[pos:].replace("<", "&lt;"))
    return "".join(out)


# -----------------------------------------------------------------------------
# Source-level helpers
# -----------------------------------------------------------------------------

_NOWIKI_RE     = re.compile(r"<nowiki>(.*?)</nowiki>", re.IGNORECASE | re.DOTALL)
_REGION_TAG_RE = re.compile(r"<(/?)nodefaultlinks\s*(/?)>", re.IGNORECASE)
_FUNCTION_RE   = re.compile(r"\{\{\s*DEFAULTLINK\s*:", re.IGNORECASE)

_NOWIKI_ESCAPES = str.maketrans({
    "[": "&#91;", "]": "&#93;", "{": "&#123;", "}": "&#125;", "'": "&#39;",
    "_": "&#95;", "*": "&#42;", "#": "&#35;", "=": "&#61;", "~": "&#126;",
})


def _escape_nowiki(text: str) -> str:
    return html.escape(text, quote=False).translate(_NOWIKI_ESCAPES)


def _find_closing_braces(text: str, start: int) -> Optional[int]:
    """Index of the ``}}`` closing a call whose body starts at *start*."""
    depth = 0
    i = start
    while i < len(text) - 1:
        pair = text[i:i + 2]
        if pair == "{{":
            depth += 1
            i += 2
        elif pair == "}}":
            if depth == 0:
                return i
            depth -= 1
            i += 2
        else:
            i += 1
    return None


def split_args(body: str) -> list[str]:
    """Split a call body on ``|`` outside nested ``[[...]]`` and ``{{...}}``."""
    args: list[str] = []
    braces = brackets = 0
    start = i = 0
    while i < len(body):
        pair = body[i:i + 2]
        if pair == "{{":
            braces += 1
            i += 2
            continue
        if pair == "}}" and braces:
            braces -= 1
            i += 2
            continue
        if pair == "[[":
            brackets += 1
            i += 2
            continue
        if pair == "]]" and brackets:
            brackets -= 1
            i += 2
            continue
        if body[i] == "|" and not braces and not brackets:
            args.append(body[start:i])
            start = i + 1
        i += 1
    args.append(body[start:])
    return args


# -----------------------------------------------------------------------------
# Slug / anchor helpers
# -----------------------------------------------------------------------------

_STRIP_TAGS_RE = re.compile(r"<[^>]+>")


def slugify(text: str) -> str:
    """Convert a page title to a URL slug."""
    text = text.strip().lower()
    text = re.sub(r"[^\w\s-]", "", text)
    text = re.sub(r"[\s_]+", "-", text)
    text = re.sub(r"-+", "-", text)
    return text.strip("-")


def anchor_for(text: str) -> str:
    """Convert heading (or fragment) text to a URL-safe anchor ID."""
    return slugify(_STRIP_TAGS_RE.sub("", html.unescape(text))) or "section"


# -----------------------------------------------------------------------------
# HTML conversion
# -----------------------------------------------------------------------------

_WIKILINK_RE = re.compile(r"\[\[([^\]|]+)(?:\|([^\]]+))?\]\]([a-z]*)")
_HEADING_RE  = re.compile(r"<(h[1-6])(?:\s[^>]*)?>(.+?)</h[1-6]>", re.IGNORECASE | re.DOTALL)


def _add_heading_ids(html_text: str) -> str:
    """Give every heading a unique ``id`` so ``[[Page#Section]]`` can land on it."""
    used: dict[str, int] = {}

    def _heading(m: re.Match) -> str:
        tag, inner = m.group(1).lower(), m.group(2)
        base = anchor_for(inner)
        count = used.get(base, 0)
        used[base] = count + 1
        anchor = base if count == 0 else f"{base}-{count}"
        return f'<{tag} id="{anchor}">{inner}</{tag}>'

    return _HEADING_RE.sub(_heading, html_text)


class _LinkBuilder:

    def __init__(self, titles: TitleResolver, base_url: str):
        self.titles = titles
        self.base_url = base_url

    def href(self, target: str) -> Optional[tuple[str, bool]]:
        """Return (href, exists) for *target*, or None if it is not a valid title."""
        title = self.titles.resolve(target)
        if title is None:
            return None
        anchor = f"#{anchor_for(title.fragment)}" if title.fragment else ""
        if not title.text:
            return anchor, True
        href = f"{self.base_url}/wiki/{title.namespace}/{slugify(title.text)}{anchor}"
        return href, title.article_id is not None

    def wikitext(self, m: re.Match) -> str:
        target = m.group(1).strip()
        label  = (m.group(2) or m.group(1)).strip() + m.group(3)
        resolved = self.href(target)
        if resolved is None:
            return m.group(0)
        href, exists = resolved
        css = "wikilink" if exists else "wikilink new"
        return f'<a href="{href}" class="{css}">{label}</a>'

    def markdown(self, m: re.Match) -> str:
        target = m.group(1).strip()
        label  = (m.group(2) or m.group(1)).strip() + m.group(3)
        resolved = self.href(target)
        if resolved is None:
            return m.group(0)
        return f"[{label}]({resolved[0]})"


def _inline(text: str, links: _LinkBuilder) -> str:
    # External links: [URL Display Text] / [URL]
    text = re.sub(
        r"\[(\w+://[^\s\]]+)\s+([^\]]+)\]",
        lambda m: f'<a href="{m.group(1)}" class="external">{m.group(2)}</a>',
        text,
    )
    text = re.sub(
        r"(?<!\[)\[(\w+://[^\s\]]+)\]",
        lambda m: f'<a href="{m.group(1)}" class="external">{m.group(1)}</a>',
        text,
    )
    text = _WIKILINK_RE.sub(links.wikitext, text)
    text = re.sub(r"'{5}(.+?)'{5}", r"<b><i>\1</i></b>", text)
    text = re.sub(r"'{3}(.+?)'{3}", r"<b>\1</b>", text)
    text = re.sub(r"'{2}(.+?)'{2}", r"<i>\1</i>", text)
    return text


def _render_wikitext(content: str, links: _LinkBuilder) -> str:
    """
    Convert the wikitext subset to HTML: headings, horizontal rules,
    ``*`` / ``#`` lists, paragraphs, external links, wikilinks and
    ''italic'' / '''bold''' markup.
    """
    out: list[str] = []
    para: list[str] = []
    lists: list[str] = []   # stack of "ul" / "ol"

    def _flush_para():
        if para:
            out.append(f"<p>{'<br>'.join(_inline(l, links) for l in para)}</p>")
            para.clear()

    def _close_lists(depth: int = 0):
        while len(lists) > depth:
            out.append(f"</{lists.pop()}>")

    for line in content.splitlines():
        stripped = line.rstrip()

        if not stripped.strip():
            _flush_para()
            _close_lists()
            continue

        m = re.match(r"^(={1,6})\s*(.+?)\s*=+\s*$", stripped)
        if m:
            _flush_para()
            _close_lists()
            level = len(m.group(1))
            out.append(f"<h{level}>{_inline(m.group(2), links)}</h{level}>")
            continue

        if re.match(r"^-{4,}\s*$", stripped):
            _flush_para()
            _close_lists()
            out.append("<hr>")
            continue

        m = re.match(r"^([*#]+)\s*(.*)", stripped)
        if m:
            _flush_para()
            marks = m.group(1)
            wanted = ["ul" if c == "*" else "ol" for c in marks]
            common = 0
            while common < min(len(lists), len(wanted)) and lists[common] == wanted[common]:
                common += 1
            _close_lists(common)
            for tag in wanted[common:]:
                out.append(f"<{tag}>")
                lists.append(tag)
            out.append(f"<li>{_inline(m.group(2), links)}</li>")
            continue

        _close_lists()
        para.append(stripped)

    _flush_para()
    _close_lists()
    return "\n".join(out)


_md_renderer = None


def _get_md_renderer():
    global _md_renderer
    if _md_renderer is None:
        import mistune
        from mistune.plugins.table import table
        from mistune.plugins.formatting import strikethrough
        from mistune.plugins.url import url

        _md_renderer = mistune.create_markdown(
            renderer=mistune.HTMLRenderer(escape=False),
            plugins=[table, strikethrough, url],
        )
    return _md_renderer


def _render_markdown(content: str, links: _LinkBuilder) -> str:
    return _get_md_renderer()(_WIKILINK_RE.sub(links.markdown, content))


# -----------------------------------------------------------------------------
# Parser
# -----------------------------------------------------------------------------

CONTENT_FORMATS = ("wikitext", "markdown")


@dataclass
class ParseResult:
    html: str
    output: PageOutput


@dataclass
class _ParseState:
    ctx: RenderContext
    strip: StripState
    fmt: str


class WikiParser:
    """Runs the default link pipeline over page source and renders HTML."""

    def __init__(
        self,
        session: RenderSession,
        base_url: str = "",
        max_include_size: int = DEFAULT_MAX_INCLUDE_SIZE,
    ):
        self.session = session
        self.max_include_size = max_include_size
        self._links = _LinkBuilder(session.titles, base_url)

    def parse(
        self,
        content: str,
        title: Title,
        fmt: str = "wikitext",
        options: Optional[RenderOptions] = None,
    ) -> ParseResult:
        options = options or RenderOptions()
        ctx = RenderContext(
            title=title,
            options=options,
            budget=IncludeSizeBudget(self.max_include_size),
        )
        state = _ParseState(ctx, StripState(), fmt.lower())

        self.session.before_parse(content, options)
        text = state.strip.unstrip(self._internal_parse(content, state))

        if state.fmt == "wikitext":
            body = _render_wikitext(text, self._links)
        elif state.fmt == "markdown":
            body = _render_markdown(text, self._links)
        else:
            body = f"<pre>{html.escape(text)}</pre>"
        return ParseResult(_CACHE_STAMP + _add_heading_ids(body), ctx.output)

    # ── pipeline ──────────────────────────────────────────────────────────

    def _internal_parse(self, text: str, state: _ParseState, expand_functions: bool = True) -> str:
        text = self._strip_nowiki(text, state)
        text = self._expand_regions(text, state)
        if expand_functions:
            text = self._expand_functions(text, state)
        text = self.session.rewrite_links(
            text,
            state.ctx,
            sanitize=lambda replacement: sanitize_html(
                self._internal_parse(replacement, state, expand_functions=False)
            ),
        )
        if state.fmt == "wikitext":
            text = sanitize_html(text)
        return text

    def _strip_nowiki(self, text: str, state: _ParseState) -> str:
        return _NOWIKI_RE.sub(lambda m: state.strip.add(_escape_nowiki(m.group(1))), text)

    def _expand_regions(self, text: str, state: _ParseState) -> str:
        out: list[str] = []
        pos = depth = 0
        open_at = inner_at = 0
        for m in _REGION_TAG_RE.finditer(text):
            closing, self_closing = m.group(1), m.group(2)
            if depth == 0:
                if closing:
                    continue
                out.append(text[pos:m.start()])
                pos = m.end()
                if not self_closing:
                    open_at, inner_at, depth = m.start(), m.end(), 1
                continue
            if self_closing and not closing:
                continue
            depth += -1 if closing else 1
            if depth == 0:
                inner = text[inner_at:m.start()]
                parsed = self.session.no_default_links(
                    inner, state.ctx, lambda t: self._internal_parse(t, state)
                )
                out.append(state.strip.add(parsed))
                pos = m.end()
        if depth:
            # Unclosed region: leave the tag and the rest of the text alone
            out.append(text[open_at:])
        else:
            out.append(text[pos:])
        return "".join(out)

    def _expand_functions(self, text: str, state: _ParseState) -> str:
        out: list[str] = []
        pos = 0
        while True:
            m = _FUNCTION_RE.search(text, pos)
            if m is None:
                break
            end = _find_closing_braces(text, m.end())
            if end is None:
                break
            args = [a.strip() for a in split_args(text[m.end():end])]
            out.append(text[pos:m.start()])
            out.append(self.session.declaration_function(args, state.ctx))
            pos = end + 2
        out.append(text[pos:])
        return "".join(out)


# -----------------------------------------------------------------------------

def is_cache_valid(rendered: str | None) -> bool:
    """Return True only if *rendered* was produced by the current renderer version."""
    return rendered is not None and rendered.startswith(_CACHE_STAMP)


# -----------------------------------------------------------------------------
