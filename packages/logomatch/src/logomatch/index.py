"""Searchable index over the reference catalog."""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from logomatch.normalize import index_text, reduce_website
from logomatch.types import CatalogEntry

log = structlog.get_logger()

INDEXABLE_KEYS = ("name", "website", "alias")


def _field_text(entry: CatalogEntry, key: str) -> str | None:
    if key == "website":
        return index_text(reduce_website(entry.website))
    return index_text(getattr(entry, key))


class CatalogIndex:
    """Per-field processed strings for every catalog entry.

    Each indexed key maps to a list aligned with the catalog order. Blank
    fields are stored as None, which rapidfuzz skips when extracting.
    """

    def __init__(self, entries: Sequence[CatalogEntry], keys: Sequence[str]) -> None:
        self._entries: tuple[CatalogEntry, ...] = tuple(entries)
        self._keys: tuple[str, ...] = tuple(keys)
        self._fields: dict[str, tuple[str | None, ...]] = {}
        self._by_name: dict[str, CatalogEntry] = {}

    @classmethod
    def build(
        cls, entries: Sequence[CatalogEntry], keys: Sequence[str] = INDEXABLE_KEYS
    ) -> "CatalogIndex":
        """Build the index. ``name`` is always indexed."""
        unknown = [k for k in keys if k not in INDEXABLE_KEYS]
        if unknown:
            raise ValueError(f"cannot index unknown catalog fields: {unknown}")
        ordered = ["name"] + [k for k in keys if k != "name"]

        index = cls(entries, ordered)
        for key in index._keys:
            index._fields[key] = tuple(_field_text(e, key) for e in index._entries)
        for entry in index._entries:
            # First occurrence wins for lookups by canonical name
            index._by_name.setdefault(entry.name, entry)

        log.info(
            "catalog_index_built",
            entries=len(index._entries),
            keys=list(index._keys),
            populated={k: sum(v is not None for v in index._fields[k]) for k in index._keys},
        )
        return index

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def keys(self) -> tuple[str, ...]:
        return self._keys

    @property
    def entries(self) -> tuple[CatalogEntry, ...]:
        return self._entries

    def field(self, key: str) -> tuple[str | None, ...]:
        return self._fields[key]

    def entry(self, position: int) -> CatalogEntry:
        return self._entries[position]

    def get(self, name: str) -> CatalogEntry | None:
        """Look up an entry by its canonical name."""
        return self._by_name.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def names(self) -> set[str]:
        return set(self._by_name)
