"""Catalog loading and source asset listing."""

from __future__ import annotations

from collections import Counter
from pathlib import Path

import pandas as pd
import structlog

from logomatch.exceptions import CatalogLoadError, SourceListingError
from logomatch.types import CatalogEntry

log = structlog.get_logger()

CATALOG_FIELDS = ("name", "city", "state", "alias", "website")


def _read_frame(path: Path) -> pd.DataFrame:
    suffix = path.suffix.lower()
    if suffix == ".jsonl":
        return pd.read_json(path, lines=True, dtype=False)
    if suffix == ".json":
        return pd.read_json(path, orient="records", dtype=False)
    if suffix in (".xlsx", ".xls"):
        return pd.read_excel(path, dtype=str)
    return pd.read_csv(path, dtype=str, keep_default_na=False)


def _cell(row: pd.Series, column: str | None) -> str | None:
    if column is None:
        return None
    value = row[column]
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    text = str(value).strip()
    return text or None


def load_catalog(path: str | Path) -> list[CatalogEntry]:
    """Read the reference catalog from JSON, JSONL, CSV or XLSX.

    Column names are matched case-insensitively, so both ``NAME`` and ``name``
    work. Rows without a name are skipped.
    """
    path = Path(path)
    log.info("catalog_load_start", path=str(path))
    try:
        df = _read_frame(path)
    except (OSError, ValueError) as e:
        raise CatalogLoadError(f"cannot read catalog {path}: {e}") from e

    if df.empty and len(df.columns) == 0:
        log.warning("catalog_empty", path=str(path))
        return []

    columns = {str(c).strip().lower(): c for c in df.columns}
    if "name" not in columns:
        raise CatalogLoadError(
            f"catalog {path} has no name column (found: {', '.join(map(str, df.columns))})"
        )
    mapping = {f: columns.get(f) for f in CATALOG_FIELDS}

    entries: list[CatalogEntry] = []
    for _, row in df.iterrows():
        name = _cell(row, mapping["name"])
        if not name:
            continue
        entries.append(
            CatalogEntry(
                name=name,
                city=_cell(row, mapping["city"]) or "",
                state=_cell(row, mapping["state"]) or "",
                alias=_cell(row, mapping["alias"]),
                website=_cell(row, mapping["website"]),
            )
        )

    dupes = [n for n, c in Counter(e.name for e in entries).items() if c > 1]
    if dupes:
        log.warning("catalog_duplicate_names", count=len(dupes), sample=dupes[:5])

    log.info("catalog_loaded", count=len(entries), skipped=len(df) - len(entries))
    return entries


def list_sources(directory: str | Path, extensions: tuple[str, ...] | None = None) -> list[str]:
    """Filenames in ``directory`` with one of ``extensions``, sorted.

    Listing order is not trusted to be stable, so callers key everything by
    filename rather than by position in this list.
    """
    directory = Path(directory)
    allowed = {e.lower() for e in extensions} if extensions else None
    try:
        names = [
            p.name
            for p in directory.iterdir()
            if p.is_file() and (allowed is None or p.suffix.lower() in allowed)
        ]
    except OSError as e:
        raise SourceListingError(f"cannot list sources in {directory}: {e}") from e
    names.sort()
    log.info("sources_listed", directory=str(directory), count=len(names))
    return names
