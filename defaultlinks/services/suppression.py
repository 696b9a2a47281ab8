#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Suppression tracking
====================
Render options (compared by identity, never by value) for which default
link substitution is switched off.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator


# -----------------------------------------------------------------------------

class SuppressionTracker:

    def __init__(self):
        self._suppressed: list[object] = []

    def is_suppressed(self, options: object) -> bool:
        return any(o is options for o in self._suppressed)

    def suppress(self, options: object) -> None:
        """Suppress *options* for the rest of the render."""
        if not self.is_suppressed(options):
            self._suppressed.append(options)

    @contextmanager
    def scoped(self, options: object) -> Iterator[None]:
        """Suppress *options* inside the block, then restore the previous set."""
        saved = list(self._suppressed)
        self._suppressed.append(options)
        try:
            yield
        finally:
            self._suppressed = saved


# -----------------------------------------------------------------------------
