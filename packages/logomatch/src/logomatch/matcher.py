"""Fuzzy search over the catalog index, with a session result cache."""

from __future__ import annotations

import threading
from dataclasses import dataclass

import structlog

from logomatch.cache import ResultCache
from logomatch.config import SearchConfig
from logomatch.index import CatalogIndex
from logomatch.normalize import index_text, normalize_query
from logomatch.scoring import score_key
from logomatch.types import Candidate

log = structlog.get_logger()


def search(
    index: CatalogIndex, query: str, config: SearchConfig | None = None
) -> list[Candidate]:
    """Rank catalog entries against ``query``, best (lowest distance) first.

    Every indexed field is scored and an entry keeps its closest field.
    Ties are broken by catalog position so the ranking is deterministic.
    Returns an empty list when nothing is within ``config.threshold``.
    """
    config = config or SearchConfig()
    processed = index_text(normalize_query(query))
    if not processed or len(index) == 0:
        return []

    best: dict[int, tuple[float, str]] = {}
    for key in index.keys:
        for position, distance in score_key(processed, index, key, config):
            current = best.get(position)
            if current is None or distance < current[0]:
                best[position] = (distance, key)

    candidates = [
        Candidate(entry=index.entry(position), score=distance, position=position, matched_key=key)
        for position, (distance, key) in best.items()
    ]
    candidates.sort(key=lambda c: (c.score, c.position))
    if config.limit is not None:
        candidates = candidates[: config.limit]
    return candidates


@dataclass
class MatcherStats:
    """Statistics collected while searching."""

    searches: int = 0
    computed: int = 0
    cache_hits: int = 0
    cache_errors: int = 0
    empty_results: int = 0


class Matcher:
    """Search entry point owning one index and one result cache.

    Both are created once per session and shared by every lookup; lookups
    only read the index, so they may run from several threads.
    """

    def __init__(
        self,
        index: CatalogIndex,
        config: SearchConfig | None = None,
        cache: ResultCache | None = None,
    ) -> None:
        self.index = index
        self.config = config or SearchConfig()
        self.cache = cache if cache is not None else ResultCache()
        self.stats = MatcherStats()
        self._stats_lock = threading.Lock()

    def _cached(self, query: str) -> list[Candidate] | None:
        try:
            return self.cache.get(query)
        except Exception:
            # Recomputing is always a valid answer
            log.warning("cache_get_failed", query=query, exc_info=True)
            with self._stats_lock:
                self.stats.cache_errors += 1
            return None

    def search(self, query: str) -> list[Candidate]:
        """Cached search. Queries are compared in normalized form."""
        normalized = normalize_query(query)
        with self._stats_lock:
            self.stats.searches += 1

        candidates = self._cached(normalized)
        if candidates is not None:
            with self._stats_lock:
                self.stats.cache_hits += 1
            log.debug("search_cache_hit", query=normalized, count=len(candidates))
            return candidates

        candidates = search(self.index, normalized, self.config)
        with self._stats_lock:
            self.stats.computed += 1
            if not candidates:
                self.stats.empty_results += 1
        try:
            self.cache.put(normalized, candidates)
        except Exception:
            log.warning("cache_put_failed", query=normalized, exc_info=True)
            with self._stats_lock:
                self.stats.cache_errors += 1

        log.debug(
            "search_done",
            query=normalized,
            count=len(candidates),
            best=candidates[0].entry.name if candidates else None,
            best_score=candidates[0].score if candidates else None,
        )
        return candidates
