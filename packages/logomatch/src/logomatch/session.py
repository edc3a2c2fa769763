"""Resolution session: source identifiers -> candidates -> operator -> store."""

from __future__ import annotations

import json
import os
from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import asdict, dataclass, field
from pathlib import Path

import structlog
from tqdm import tqdm

from logomatch.config import RenameConfig
from logomatch.matcher import Matcher
from logomatch.normalize import derive_query
from logomatch.presentation import Presenter, build_request
from logomatch.selections import SelectionStore, write_json_atomic
from logomatch.types import Choice, DisambiguationRequest

log = structlog.get_logger()

PROMPT_CACHE_VERSION = 1


class PromptCache:
    """On-disk copy of a computed request batch, reused until cleaned."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> list[DisambiguationRequest] | None:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            if data.get("version") != PROMPT_CACHE_VERSION:
                log.info("prompt_cache_version_mismatch", found=data.get("version"))
                return None
            requests = [
                DisambiguationRequest(
                    id=r["id"],
                    message=r["message"],
                    choices=[Choice(label=c["label"], value=c["value"]) for c in r["choices"]],
                )
                for r in data["requests"]
            ]
        except (json.JSONDecodeError, KeyError, TypeError, AttributeError) as e:
            log.warning("prompt_cache_unreadable", path=str(self.path), error=str(e))
            return None
        log.info("prompt_cache_loaded", path=str(self.path), count=len(requests))
        return requests

    def save(self, requests: Sequence[DisambiguationRequest]) -> None:
        write_json_atomic(
            self.path,
            {"version": PROMPT_CACHE_VERSION, "requests": [asdict(r) for r in requests]},
        )
        log.info("prompt_cache_saved", path=str(self.path), count=len(requests))

    def clean(self) -> bool:
        """Delete the cache file. Returns False if there was nothing to delete."""
        if not self.path.exists():
            return False
        self.path.unlink()
        log.info("prompt_cache_cleaned", path=str(self.path))
        return True


@dataclass
class SessionSummary:
    requests: int = 0
    recorded: int = 0
    skipped: list[str] = field(default_factory=list)
    rejected_names: int = 0


class ResolutionSession:
    """Builds disambiguation requests and records the operator's decisions.

    Candidate lookup for different identifiers is independent and runs on a
    thread pool. Decisions are written to the store one at a time, as soon
    as the presenter reports them, so an aborted session keeps its progress.
    """

    def __init__(
        self,
        matcher: Matcher,
        store: SelectionStore,
        config: RenameConfig | None = None,
        prompt_cache: PromptCache | None = None,
    ) -> None:
        self.matcher = matcher
        self.store = store
        self.config = config or RenameConfig()
        self.prompt_cache = prompt_cache

    def request_for(self, identifier: str) -> DisambiguationRequest:
        query = derive_query(identifier, self.config.paths.extensions)
        return build_request(identifier, self.matcher.search(query))

    def _compute(self, identifiers: Sequence[str], progress: bool) -> dict[str, DisambiguationRequest]:
        computed: dict[str, DisambiguationRequest] = {}
        if not identifiers:
            return computed

        max_workers = self.config.session.max_workers or min(8, os.cpu_count() or 2)
        bar = tqdm(total=len(identifiers), desc="Finding matching schools", disable=not progress)
        try:
            if max_workers < 2 or len(identifiers) < 2:
                for identifier in identifiers:
                    computed[identifier] = self.request_for(identifier)
                    bar.update(1)
            else:
                with ThreadPoolExecutor(max_workers=max_workers) as executor:
                    future_map = {executor.submit(self.request_for, i): i for i in identifiers}
                    for future in as_completed(future_map):
                        identifier = future_map[future]
                        computed[identifier] = future.result()
                        bar.set_postfix_str(identifier)
                        bar.update(1)
        finally:
            bar.close()
        return computed

    def build_requests(
        self, identifiers: Sequence[str], progress: bool = False
    ) -> list[DisambiguationRequest]:
        """One request per identifier, in the given order."""
        cached: dict[str, DisambiguationRequest] = {}
        if self.prompt_cache is not None:
            cached = {r.id: r for r in self.prompt_cache.load() or []}

        missing = [i for i in identifiers if i not in cached]
        log.info(
            "build_requests_start",
            total=len(identifiers),
            from_cache=len(identifiers) - len(missing),
            to_compute=len(missing),
        )
        computed = self._compute(missing, progress)
        requests = [cached.get(i) or computed[i] for i in identifiers]

        if self.prompt_cache is not None and computed:
            # Keep cached requests for identifiers outside this batch
            merged = {**cached, **{r.id: r for r in requests}}
            self.prompt_cache.save(list(merged.values()))

        empty = sum(1 for r in requests if not r.choices)
        log.info("build_requests_done", total=len(requests), empty=empty)
        return requests

    def record(self, identifier: str, names: Sequence[str]) -> tuple[list[str], int]:
        """Store a decision, dropping names the catalog does not know."""
        known = [n for n in names if n in self.matcher.index]
        rejected = len(names) - len(known)
        if rejected:
            log.warning(
                "decision_unknown_names",
                identifier=identifier,
                names=[n for n in names if n not in self.matcher.index],
            )
        return self.store.set(identifier, known), rejected

    def run(
        self,
        identifiers: Sequence[str],
        presenter: Presenter,
        progress: bool = False,
    ) -> SessionSummary:
        requests = self.build_requests(identifiers, progress=progress)
        summary = SessionSummary(requests=len(requests))
        pending = {r.id for r in requests}

        decisions = presenter.present(requests)
        pairs = decisions.items() if isinstance(decisions, Mapping) else decisions
        for identifier, names in pairs:
            if identifier not in pending:
                log.warning("decision_unexpected_id", identifier=identifier)
                continue
            _, rejected = self.record(identifier, list(names))
            pending.discard(identifier)
            summary.recorded += 1
            summary.rejected_names += rejected

        summary.skipped = [r.id for r in requests if r.id in pending]
        log.info(
            "session_done",
            requests=summary.requests,
            recorded=summary.recorded,
            skipped=len(summary.skipped),
        )
        return summary
