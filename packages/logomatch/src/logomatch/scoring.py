"""Distance scoring of a query against one indexed catalog field."""

from __future__ import annotations

from collections.abc import Callable

from rapidfuzz import fuzz, process

from logomatch.config import SearchConfig
from logomatch.index import CatalogIndex

SCORERS: dict[str, Callable[..., float]] = {
    "WRatio": fuzz.WRatio,
    "QRatio": fuzz.QRatio,
    "ratio": fuzz.ratio,
    "partial_ratio": fuzz.partial_ratio,
    "token_sort_ratio": fuzz.token_sort_ratio,
    "token_set_ratio": fuzz.token_set_ratio,
}


def get_scorer(name: str) -> Callable[..., float]:
    try:
        return SCORERS[name]
    except KeyError:
        raise ValueError(
            f"unknown scorer {name!r}, expected one of: {', '.join(sorted(SCORERS))}"
        ) from None


def to_distance(similarity: float) -> float:
    """rapidfuzz similarity (0-100, higher is closer) -> distance (0-1, lower is closer)."""
    return round(min(1.0, max(0.0, 1.0 - similarity / 100.0)), 6)


def score_key(
    processed_query: str,
    index: CatalogIndex,
    key: str,
    config: SearchConfig,
) -> list[tuple[int, float]]:
    """(catalog position, distance) for every entry within the threshold on ``key``."""
    scorer = get_scorer(config.scorer)
    cutoff = (1.0 - config.threshold) * 100.0
    matches = process.extract(
        processed_query,
        index.field(key),
        scorer=scorer,
        processor=None,
        limit=None,
        score_cutoff=cutoff,
    )
    return [(position, to_distance(similarity)) for _, similarity, position in matches]
