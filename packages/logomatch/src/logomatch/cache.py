"""In-process memo of search results keyed by normalized query."""

from __future__ import annotations

import threading
from collections import OrderedDict
from collections.abc import Sequence

import structlog

from logomatch.config import CacheConfig
from logomatch.normalize import normalize_query
from logomatch.types import Candidate

log = structlog.get_logger()


class ResultCache:
    """Query -> candidate list memo for one session.

    Entries are never invalidated because the catalog cannot change while the
    process runs. With ``max_size`` set the least recently used query is
    evicted once the cap is reached.
    """

    def __init__(self, config: CacheConfig | None = None) -> None:
        self.config = config or CacheConfig()
        self._entries: OrderedDict[str, tuple[Candidate, ...]] = OrderedDict()
        self._lock = threading.Lock()
        self.hits: int = 0
        self.misses: int = 0
        self.evictions: int = 0

    def get(self, query: str) -> list[Candidate] | None:
        key = normalize_query(query)
        with self._lock:
            found = self._entries.get(key)
            if found is None:
                self.misses += 1
                return None
            self._entries.move_to_end(key)
            self.hits += 1
        return list(found)

    def put(self, query: str, candidates: Sequence[Candidate]) -> None:
        key = normalize_query(query)
        with self._lock:
            if key in self._entries:
                # A concurrent lookup already stored an equivalent result
                self._entries.move_to_end(key)
                return
            self._entries[key] = tuple(candidates)
            max_size = self.config.max_size
            if max_size is not None:
                while len(self._entries) > max_size:
                    evicted, _ = self._entries.popitem(last=False)
                    self.evictions += 1
                    log.debug("cache_evicted", query=evicted)

    def __contains__(self, query: object) -> bool:
        if not isinstance(query, str):
            return False
        with self._lock:
            return normalize_query(query) in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
