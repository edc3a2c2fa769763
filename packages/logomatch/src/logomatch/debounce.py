"""Latest-wins debounced search for interactive input."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Generic, Literal, TypeVar

from logomatch.config import SearchConfig
from logomatch.matcher import Matcher
from logomatch.types import Candidate

T = TypeVar("T")


class Debouncer(Generic[T]):
    """Delays ``func`` per input stream, cancelling superseded calls.

    Each call for a stream cancels that stream's pending call; the cancelled
    caller gets None back. Only the last call made during a pause of
    ``delay`` seconds runs ``func`` (in a worker thread).
    """

    def __init__(self, delay: float, func: Callable[..., T]) -> None:
        self.delay = delay
        self.func = func
        self._pending: dict[str, asyncio.Task] = {}
        self._generation: dict[str, int] = {}

    async def _fire(self, *args: object) -> T:
        await asyncio.sleep(self.delay)
        return await asyncio.to_thread(self.func, *args)

    def cancel(self, stream: str) -> bool:
        self._generation[stream] = self._generation.get(stream, 0) + 1
        task = self._pending.pop(stream, None)
        if task is not None and not task.done():
            task.cancel()
            return True
        return False

    async def __call__(self, stream: str, *args: object) -> T | None:
        self.cancel(stream)
        generation = self._generation[stream]
        task = asyncio.ensure_future(self._fire(*args))
        self._pending[stream] = task
        try:
            return await task
        except asyncio.CancelledError:
            if self._generation.get(stream) != generation:
                return None
            raise
        finally:
            if self._pending.get(stream) is task:
                del self._pending[stream]

    def pending(self, stream: str) -> bool:
        task = self._pending.get(stream)
        return task is not None and not task.done()


SearchStatus = Literal["ok", "cleared", "too_short", "superseded"]


@dataclass
class SearchResponse:
    status: SearchStatus
    query: str = ""
    candidates: list[Candidate] = field(default_factory=list)


class InteractiveSearch:
    """Search-as-you-type rules on top of a :class:`Matcher`.

    Empty input clears the results, input shorter than
    ``min_query_length`` does not search, anything else is debounced.
    """

    def __init__(self, matcher: Matcher, config: SearchConfig | None = None) -> None:
        self.matcher = matcher
        self.config = config or matcher.config
        self._debouncer: Debouncer[list[Candidate]] = Debouncer(
            self.config.debounce_seconds, matcher.search
        )

    async def query(self, text: str, stream: str = "default") -> SearchResponse:
        stripped = text.strip()
        if not stripped:
            self._debouncer.cancel(stream)
            return SearchResponse(status="cleared")
        if len(stripped) < self.config.min_query_length:
            return SearchResponse(status="too_short", query=stripped)

        candidates = await self._debouncer(stream, stripped)
        if candidates is None:
            return SearchResponse(status="superseded", query=stripped)
        return SearchResponse(status="ok", query=stripped, candidates=candidates)
