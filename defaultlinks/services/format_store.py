#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Format store
============
Declared default links live in the generic ``page_props`` table under two
property names:

  defaultlink     — the page's primary format, stored verbatim
  defaultlinksec  — fragment formats, flattened as
                    ``fragment_1\\ntext_1\\nfragment_2\\ntext_2 ...``

Declarations never contain newlines (they are stripped when parsed), so the
flattened form is unambiguous.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from typing import Iterable, Iterator, NamedTuple, Protocol

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from defaultlinks.models import PageProp

log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

PRIMARY_PROP   = "defaultlink"
FRAGMENTS_PROP = "defaultlinksec"
DEFAULT_LINK_PROPS = (PRIMARY_PROP, FRAGMENTS_PROP)


class PropRow(NamedTuple):
    page_id: str
    name: str
    value: str


# -----------------------------------------------------------------------------

def encode_fragment_formats(formats: dict[str, str]) -> str:
    return "\n".join(f"{fragment}\n{text}" for fragment, text in formats.items())


def decode_fragment_formats(value: str) -> Iterator[tuple[str, str]]:
    """Yield (fragment, text) pairs; a trailing unpaired line is ignored."""
    lines = value.split("\n")
    for i in range(0, len(lines) - 1, 2):
        yield lines[i], lines[i + 1]


# -----------------------------------------------------------------------------

class FormatStore(Protocol):

    def batch_read(self, page_ids: Iterable[str], names: Iterable[str]) -> list[PropRow]:
        ...

    def write(self, page_id: str, name: str, value: str) -> None:
        ...

    def delete_all(self, page_id: str) -> None:
        ...


# -----------------------------------------------------------------------------

class SqlFormatStore:
    """``FormatStore`` over the ``page_props`` table, using a sync session."""

    def __init__(self, db: Session):
        self._db = db

    def batch_read(self, page_ids: Iterable[str], names: Iterable[str]) -> list[PropRow]:
        page_ids = list(page_ids)
        if not page_ids:
            return []
        log.debug("Reading default links for %d page(s)", len(page_ids))
        result = self._db.execute(
            select(PageProp.page_id, PageProp.name, PageProp.value)
            .where(PageProp.page_id.in_(page_ids), PageProp.name.in_(list(names)))
        )
        return [PropRow(*row) for row in result.all()]

    def write(self, page_id: str, name: str, value: str) -> None:
        prop = self._db.get(PageProp, (page_id, name))
        if prop is None:
            self._db.add(PageProp(page_id=page_id, name=name, value=value))
        else:
            prop.value = value
        self._db.flush()

    def delete_all(self, page_id: str) -> None:
        self._db.execute(
            delete(PageProp)
            .where(PageProp.page_id == page_id, PageProp.name.in_(DEFAULT_LINK_PROPS))
        )
        self._db.flush()


# -----------------------------------------------------------------------------

def save_declarations(store: FormatStore, page_id: str, props: dict[str, str]) -> bool:
    """
    Replace the stored declarations of *page_id* with *props*.

    Returns True when the stored values changed, i.e. when pages linking to
    this one may now render differently.
    """
    before = {row.name: row.value for row in store.batch_read([page_id], DEFAULT_LINK_PROPS)}
    if before == props:
        return False
    store.delete_all(page_id)
    for name, value in props.items():
        store.write(page_id, name, value)
    log.info("Stored %d default link propert%s for page %s",
             len(props), "y" if len(props) == 1 else "ies", page_id)
    return True


# -----------------------------------------------------------------------------
