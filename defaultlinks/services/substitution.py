#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Substitution
============
Applies a ``ResolutionPlan`` to markup in a single pass and charges the
growth against the render's inclusion-size budget.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import re
from typing import Callable

from defaultlinks.core.errors import LimitExceeded
from .resolution import ResolutionPlan


# -----------------------------------------------------------------------------

class IncludeSizeBudget:
    """Bytes of post-expand growth a single render may still add."""

    def __init__(self, limit: int):
        self.limit = limit
        self.used = 0

    @property
    def remaining(self) -> int:
        return self.limit - self.used

    def charge(self, amount: int) -> None:
        """Consume *amount* bytes, or raise ``LimitExceeded`` and consume nothing."""
        if amount > self.remaining:
            raise LimitExceeded(amount, self.remaining)
        self.used += amount


# -----------------------------------------------------------------------------

def _byte_len(text: str) -> int:
    return len(text.encode("utf-8"))


class SubstitutionEngine:

    def apply(
        self,
        markup: str,
        plan: ResolutionPlan,
        budget: IncludeSizeBudget,
        sanitize: Callable[[str], str] | None = None,
    ) -> tuple[str, int]:
        """
        Replace every plan entry in *markup* at once.

        Returns ``(new_markup, bytes_consumed)``.  Raises ``LimitExceeded``
        without touching the budget when the growth does not fit.
        """
        if not len(plan):
            return markup, 0

        replacements: dict[str, str] = {}
        for entry in plan:
            replacements.setdefault(
                entry.whole_text,
                sanitize(entry.replacement) if sanitize else entry.replacement,
            )

        # Longest first so a link never loses to a shorter one starting at the same offset
        literals = sorted(replacements, key=len, reverse=True)
        pattern = re.compile(
            "(?:" + "|".join(re.escape(s) for s in literals) + ")(?![A-Za-z])"
        )
        new_markup = pattern.sub(lambda m: replacements[m.group(0)], markup)

        consumed = _byte_len(new_markup) - _byte_len(markup)
        if consumed > 0:
            budget.charge(consumed)
        return new_markup, consumed


# -----------------------------------------------------------------------------
