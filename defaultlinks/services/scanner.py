#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Link scanner
============
Finds bare ``[[Target]]`` / ``[[Target#fragment]]`` links in markup.

Skipped:
  - links with display text (``[[Target|text]]``)
  - links whose target starts with ``:`` (escaped / interwiki-style)
  - links directly followed by an ASCII letter, which the renderer would
    absorb as a link trail (``[[Dog]]s``)
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import re
import string
from dataclasses import dataclass
from typing import Iterator, Optional

from .declarations import decode_percent


# -----------------------------------------------------------------------------

_BARE_LINK_RE = re.compile(r"\[\[([^:][^|\]]*[^|\s\]])\s*\]\]")
_TRAIL_CHARS  = frozenset(string.ascii_letters)


def followed_by_letter(text: str, end: int) -> bool:
    return end < len(text) and text[end] in _TRAIL_CHARS


# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class LinkOccurrence:
    whole_text: str
    target: str
    fragment: Optional[str] = None


# -----------------------------------------------------------------------------

class LinkScanner:

    def scan(self, markup: str) -> Iterator[LinkOccurrence]:
        """Yield each distinct bare link in *markup*, first occurrence first."""
        seen: set[str] = set()
        pos = 0
        while True:
            m = _BARE_LINK_RE.search(markup, pos)
            if m is None:
                return
            if followed_by_letter(markup, m.end()):
                pos = m.start() + 1
                continue
            pos = m.end()

            whole = m.group(0)
            if whole in seen:
                continue
            seen.add(whole)

            target = m.group(1)
            if "%" in target:
                target = decode_percent(target)
            fragment = target.split("#", 1)[1] if "#" in target else None
            yield LinkOccurrence(whole, target, fragment)


# -----------------------------------------------------------------------------
