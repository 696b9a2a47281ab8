#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Default link errors
===================
Declaration errors are local to a ``{{DEFAULTLINK:...}}`` call and render as
an inline error span.  ``LimitExceeded`` only aborts the substitution step of
one render pass.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import html


# -----------------------------------------------------------------------------

class DefaultLinkError(Exception):
    message = "Default link error."

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_html(self) -> str:
        return f'<span class="error">{html.escape(self.message, quote=False)}</span>'


# -----------------------------------------------------------------------------

class DeclarationError(DefaultLinkError):
    """Raised while parsing a default link declaration."""


class InvalidTargetPage(DeclarationError):
    message = "The target page of this default link is not a valid page name."


class InvalidLinkSyntax(DeclarationError):
    message = "A default link must contain a wiki link to this page."


class DisallowedNamespace(DeclarationError):
    message = "Pages in this namespace cannot declare default links."


class DuplicateDeclaration(DeclarationError):

    def __init__(self, old: str, new: str):
        self.old = old
        self.new = new
        super().__init__(
            f"This page already declared the default link {old}; "
            f"the conflicting declaration {new} was ignored."
        )


# -----------------------------------------------------------------------------

class LimitExceeded(DefaultLinkError):
    """The render's inclusion-size budget would be exceeded."""

    def __init__(self, attempted: int, remaining: int):
        self.attempted = attempted
        self.remaining = remaining
        super().__init__(
            f"Post-expand include size exceeded: needed {attempted} bytes, "
            f"{remaining} remaining."
        )


# -----------------------------------------------------------------------------
